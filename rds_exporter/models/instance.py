"""RDS instance record"""

from dataclasses import dataclass
from typing import Any


def _optional_int(item: dict[str, Any], key: str) -> int | None:
    value = item.get(key)
    if value is None:
        return None
    return int(value)


@dataclass(frozen=True)
class DBInstance:
    """The fields of one DescribeDBInstances item the exporter reads

    Built fresh on every refresh; the raw API dict is not retained.
    """

    identifier: str
    arn: str
    availability_zone: str = ""
    secondary_availability_zone: str | None = None
    storage_type: str = ""
    instance_class: str = ""
    engine: str = ""
    allocated_storage: int | None = None
    max_allocated_storage: int | None = None
    iops: int | None = None
    storage_throughput: int | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "DBInstance":
        return cls(
            identifier=item.get("DBInstanceIdentifier", ""),
            arn=item.get("DBInstanceArn", ""),
            availability_zone=item.get("AvailabilityZone", ""),
            secondary_availability_zone=item.get("SecondaryAvailabilityZone"),
            storage_type=item.get("StorageType", ""),
            instance_class=item.get("DBInstanceClass", ""),
            engine=item.get("Engine", ""),
            allocated_storage=_optional_int(item, "AllocatedStorage"),
            max_allocated_storage=_optional_int(item, "MaxAllocatedStorage"),
            iops=_optional_int(item, "Iops"),
            storage_throughput=_optional_int(item, "StorageThroughput"),
        )
