"""Gauge families and samples exposed by the exporter"""

import math
from dataclasses import dataclass


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_value(value: float) -> str:
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class MetricFamily:
    """One gauge name with its help text"""

    name: str
    help: str
    type: str = "gauge"


@dataclass(frozen=True)
class Metric:
    """A single observation with an ordered label tuple

    The label names are not stored per sample; they are fixed for the whole
    process and passed in when rendering.
    """

    name: str
    value: float
    labels: tuple[str, ...] = ()

    def to_prometheus_line(self, label_names: tuple[str, ...]) -> str:
        if len(label_names) != len(self.labels):
            raise ValueError(
                f"{self.name}: {len(self.labels)} label values for {len(label_names)} label names"
            )
        label_str = ",".join(
            f'{k}="{escape_label_value(v)}"' for k, v in zip(label_names, self.labels)
        )
        if not label_str:
            return f"{self.name} {format_value(self.value)}"
        return f"{self.name}{{{label_str}}} {format_value(self.value)}"


ALLOCATED_STORAGE = MetricFamily(
    "aws_rds_allocated_storage", "Allocated storage for RDS instance in GB"
)
MAX_ALLOCATED_STORAGE = MetricFamily(
    "aws_rds_max_allocated_storage", "Max allocated storage for RDS instance in GB"
)
IOPS = MetricFamily("aws_rds_iops", "IOPS for RDS instance")
STORAGE_THROUGHPUT = MetricFamily(
    "aws_rds_storage_throughput", "Storage throughput for RDS instance"
)

FAMILIES: tuple[MetricFamily, ...] = (
    ALLOCATED_STORAGE,
    MAX_ALLOCATED_STORAGE,
    IOPS,
    STORAGE_THROUGHPUT,
)
