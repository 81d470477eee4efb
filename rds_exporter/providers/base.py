"""Cloud provider abstract base class"""

from abc import ABC, abstractmethod
from typing import Any, Iterator


class BaseProvider(ABC):
    """Source of database instance records

    Methods are blocking and are called from worker threads, one region per
    thread. Implementations raise on failure; callers decide whether a
    failure aborts the refresh, the region or only the instance.
    """

    @abstractmethod
    def list_regions(self) -> list[str]:
        """Names of all regions enabled for the account"""
        ...

    @abstractmethod
    def describe_instances(self, region: str) -> Iterator[list[dict[str, Any]]]:
        """Pages of instance descriptions, following continuation tokens"""
        ...

    @abstractmethod
    def list_tags(self, region: str, resource_name: str) -> list[dict[str, Any]]:
        """Tags of one resource as [{"Key": ..., "Value": ...}]"""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Whether credentials resolve and the API is reachable"""
        ...
