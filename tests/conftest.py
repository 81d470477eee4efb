import threading
from typing import Any, Iterator

import pytest

from rds_exporter.config import Settings
from rds_exporter.providers.base import BaseProvider


def make_instance(identifier: str, region: str = "us-east-1", **fields: Any) -> dict[str, Any]:
    item = {
        "DBInstanceIdentifier": identifier,
        "DBInstanceArn": f"arn:aws:rds:{region}:123456789012:db:{identifier}",
        "AvailabilityZone": f"{region}a",
        "StorageType": "gp3",
        "DBInstanceClass": "db.t3.micro",
        "Engine": "postgres",
        "AllocatedStorage": 100,
    }
    item.update(fields)
    return {k: v for k, v in item.items() if v is not None}


class FakeProvider(BaseProvider):
    """In-memory stand-in for AWS

    ``pages`` maps region -> list of pages; ``page_errors`` maps region -> the
    index of the page whose fetch raises.
    """

    def __init__(
        self,
        regions: list[str] | None = None,
        pages: dict[str, list[list[dict[str, Any]]]] | None = None,
        tags: dict[str, list[dict[str, str]]] | None = None,
        page_errors: dict[str, int] | None = None,
        tag_errors: set[str] | None = None,
        regions_error: Exception | None = None,
    ) -> None:
        self.regions = regions or []
        self.pages = pages or {}
        self.tags = tags or {}
        self.page_errors = page_errors or {}
        self.tag_errors = tag_errors or set()
        self.regions_error = regions_error
        self.list_regions_calls = 0
        self.tag_calls: list[str] = []
        self._lock = threading.Lock()

    def list_regions(self) -> list[str]:
        with self._lock:
            self.list_regions_calls += 1
        if self.regions_error is not None:
            raise self.regions_error
        return list(self.regions)

    def describe_instances(self, region: str) -> Iterator[list[dict[str, Any]]]:
        for i, page in enumerate(self.pages.get(region, [])):
            if self.page_errors.get(region) == i:
                raise RuntimeError(f"throttled in {region}")
            yield page

    def list_tags(self, region: str, resource_name: str) -> list[dict[str, Any]]:
        with self._lock:
            self.tag_calls.append(resource_name)
        if resource_name in self.tag_errors:
            raise RuntimeError("AccessDenied")
        return self.tags.get(resource_name, [])

    def health_check(self) -> bool:
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cache_ttl=60.0,
        refresh_timeout=10.0,
        tag_keys=("team", "env"),
        max_region_workers=4,
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(
        regions=["us-east-1", "eu-west-1"],
        pages={
            "us-east-1": [
                [make_instance("db-1", Iops=3000), make_instance("db-2")],
                [make_instance("db-3", MaxAllocatedStorage=500)],
            ],
            "eu-west-1": [
                [make_instance("db-4", region="eu-west-1", StorageThroughput=125)],
            ],
        },
        tags={
            "arn:aws:rds:us-east-1:123456789012:db:db-1": [{"Key": "team", "Value": "core"}],
        },
    )
