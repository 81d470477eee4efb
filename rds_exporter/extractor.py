"""Label and value extraction for one RDS instance

Pure functions: no I/O, no logging.
"""

from typing import Any, Iterable

from rds_exporter.models.instance import DBInstance
from rds_exporter.models.metric import (
    ALLOCATED_STORAGE,
    IOPS,
    MAX_ALLOCATED_STORAGE,
    STORAGE_THROUGHPUT,
    MetricFamily,
)

BASE_LABELS: tuple[str, ...] = (
    "dimension_DBInstanceIdentifier",
    "az",
    "secondary_az",
    "storage_type",
    "region",
    "db_instance_class",
    "engine",
)


def label_names(tag_keys: Iterable[str]) -> tuple[str, ...]:
    return BASE_LABELS + tuple(f"tag_{key}" for key in tag_keys)


def tag_values(
    tags: list[dict[str, Any]] | None, tag_keys: tuple[str, ...]
) -> tuple[str, ...]:
    """Resolve the configured tag keys to values, "" for missing ones.

    Slots are indexed by the declared key order; later duplicates of a key
    on the instance overwrite earlier ones.
    """
    slots = [""] * len(tag_keys)
    if not tags:
        return tuple(slots)
    index = {key: i for i, key in enumerate(tag_keys)}
    for tag in tags:
        key = tag.get("Key")
        value = tag.get("Value")
        if key is None or value is None:
            continue
        i = index.get(key)
        if i is not None:
            slots[i] = value
    return tuple(slots)


def extract(
    instance: DBInstance,
    region: str,
    tag_keys: tuple[str, ...],
    tags: list[dict[str, Any]] | None = None,
) -> tuple[tuple[str, ...], list[tuple[MetricFamily, float]]]:
    labels = (
        instance.identifier,
        instance.availability_zone,
        instance.secondary_availability_zone or "",
        instance.storage_type,
        region,
        instance.instance_class,
        instance.engine,
    ) + tag_values(tags, tag_keys)

    values: list[tuple[MetricFamily, float]] = []
    for family, value in (
        (ALLOCATED_STORAGE, instance.allocated_storage),
        (MAX_ALLOCATED_STORAGE, instance.max_allocated_storage),
        (IOPS, instance.iops),
        (STORAGE_THROUGHPUT, instance.storage_throughput),
    ):
        if value is not None:
            values.append((family, float(value)))
    return labels, values
