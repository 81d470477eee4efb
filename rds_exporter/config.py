"""RDS exporter settings"""

import math
import os
import re
from dataclasses import dataclass, field


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}
_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def parse_duration(value: str) -> float:
    """Parse "90s", "5m", "1h30m" or a bare number of seconds into seconds."""
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration {value!r}")
        return seconds
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return total


def env_str(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def env_int(key: str, default: int = 0) -> int:
    value = os.environ.get(key, "")
    if value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{key}: {e}") from e


def env_duration(key: str, default: float = 0.0) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ValueError(f"can't parse env {key!r} as duration: {e}") from e


def env_list(key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    value = os.environ.get(key)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


DEFAULT_TAG_KEYS: tuple[str, ...] = ("purpose", "team", "region", "environment")


@dataclass
class Settings:
    """Process configuration, fixed at startup"""

    port: int = 6999
    host: str = "0.0.0.0"
    cache_ttl: float = 3600.0
    refresh_timeout: float = 300.0
    tag_keys: tuple[str, ...] = field(default=DEFAULT_TAG_KEYS)
    max_region_workers: int = 8
    aws_connect_timeout: int = 10
    aws_read_timeout: int = 60
    aws_max_attempts: int = 5
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        if self.cache_ttl <= 0:
            raise ValueError("cache_ttl must be positive")
        if self.refresh_timeout <= 0:
            raise ValueError("refresh_timeout must be positive")
        if self.max_region_workers < 1:
            raise ValueError("max_region_workers must be at least 1")
        if len(set(self.tag_keys)) != len(self.tag_keys):
            raise ValueError(f"duplicate tag keys in {list(self.tag_keys)}")
        invalid = [key for key in self.tag_keys if not _LABEL_NAME.fullmatch(f"tag_{key}")]
        if invalid:
            raise ValueError(f"tag keys {invalid} are not valid Prometheus label names")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=env_int("METRICS_PORT", 6999),
            host=env_str("LISTEN_HOST", "0.0.0.0"),
            cache_ttl=env_duration("CACHE_TTL", 3600.0),
            refresh_timeout=env_duration("REFRESH_TIMEOUT", 300.0),
            tag_keys=env_list("RDS_TAG_KEYS", DEFAULT_TAG_KEYS),
            max_region_workers=env_int("MAX_REGION_WORKERS", 8),
            aws_connect_timeout=env_int("AWS_CONNECT_TIMEOUT", 10),
            aws_read_timeout=env_int("AWS_READ_TIMEOUT", 60),
            aws_max_attempts=env_int("AWS_MAX_ATTEMPTS", 5),
            log_level=env_str("LOG_LEVEL", "INFO").upper(),
            log_format=env_str("LOG_FORMAT", "json").lower(),
        )
