"""Logging setup"""

import json
import logging
from datetime import datetime, timezone

APP_NAME = "rds-exporter"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def __init__(self, app: str = APP_NAME) -> None:
        super().__init__()
        self.app = app

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "logger": record.name,
            "app": self.app,
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"invalid log level {level!r}")
    if fmt not in ("json", "text"):
        raise ValueError(f"invalid log format {fmt!r}")
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    # botocore logs every retried call at DEBUG
    logging.getLogger("botocore").setLevel(max(logging.INFO, logging.getLevelName(level)))
