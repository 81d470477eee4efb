"""AWS RDS provider

Region discovery goes through the Account API, instance listing and tags
through RDS. Per-call timeouts and retries with backoff come from the
botocore client config.
"""

import logging
import threading
from typing import Any, Iterator

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from rds_exporter.config import Settings
from rds_exporter.providers.base import BaseProvider

logger = logging.getLogger(__name__)

ENABLED_REGION_STATUSES = ["ENABLED", "ENABLED_BY_DEFAULT"]
DEFAULT_REGION = "us-east-1"


def client_config(settings: Settings) -> Config:
    return Config(
        retries={"mode": "standard", "max_attempts": settings.aws_max_attempts},
        connect_timeout=settings.aws_connect_timeout,
        read_timeout=settings.aws_read_timeout,
        max_pool_connections=settings.max_region_workers + 2,
    )


class AWSProvider(BaseProvider):
    """RDS instances across every enabled region of one account"""

    def __init__(self, settings: Settings, session: boto3.Session | None = None) -> None:
        self.settings = settings
        self.session = session or boto3.Session()
        self.client_config = client_config(settings)
        self._clients: dict[tuple[str, str], BaseClient] = {}
        # boto3 sessions are not thread safe; clients are.
        self._lock = threading.Lock()

    def _client(self, service: str, region: str | None = None) -> BaseClient:
        # account and sts are global; they still need some region to sign with
        region = region or self.session.region_name or DEFAULT_REGION
        key = (service, region)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = self.session.client(
                    service, region_name=region, config=self.client_config
                )
                self._clients[key] = client
            return client

    def list_regions(self) -> list[str]:
        paginator = self._client("account").get_paginator("list_regions")
        regions: list[str] = []
        for page in paginator.paginate(RegionOptStatusContains=ENABLED_REGION_STATUSES):
            for region in page.get("Regions", []):
                name = region.get("RegionName")
                if name:
                    regions.append(name)
        return regions

    def describe_instances(self, region: str) -> Iterator[list[dict[str, Any]]]:
        paginator = self._client("rds", region).get_paginator("describe_db_instances")
        for page in paginator.paginate():
            yield page.get("DBInstances", [])

    def list_tags(self, region: str, resource_name: str) -> list[dict[str, Any]]:
        response = self._client("rds", region).list_tags_for_resource(
            ResourceName=resource_name
        )
        return response.get("TagList", [])

    def health_check(self) -> bool:
        try:
            identity = self._client("sts").get_caller_identity()
        except (BotoCoreError, ClientError) as e:
            logger.error("Unable to resolve AWS credentials: %s", e)
            return False
        logger.info("Using AWS account %s", identity.get("Account"))
        return True
