"""Prometheus text exposition of a snapshot"""

import time

from rds_exporter.cache import Snapshot
from rds_exporter.models.metric import FAMILIES, Metric, MetricFamily

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

CACHE_AGE = MetricFamily(
    "aws_rds_exporter_cache_age_seconds", "Seconds since the last completed refresh"
)
REFRESH_DURATION = MetricFamily(
    "aws_rds_exporter_last_refresh_duration_seconds",
    "Duration of the last completed refresh",
)
REFRESH_TIMESTAMP = MetricFamily(
    "aws_rds_exporter_last_refresh_timestamp_seconds",
    "Unix time of the last completed refresh",
)
SAMPLES = MetricFamily(
    "aws_rds_exporter_samples", "Number of RDS samples in the current snapshot"
)


def _family_lines(
    family: MetricFamily, metrics: list[Metric], label_names: tuple[str, ...]
) -> list[str]:
    lines = [f"# HELP {family.name} {family.help}", f"# TYPE {family.name} {family.type}"]
    lines.extend(metric.to_prometheus_line(label_names) for metric in metrics)
    return lines


def render(
    snapshot: Snapshot, label_names: tuple[str, ...], now: float | None = None
) -> str:
    by_name: dict[str, list[Metric]] = {family.name: [] for family in FAMILIES}
    for metric in snapshot.metrics:
        by_name[metric.name].append(metric)

    lines: list[str] = []
    for family in FAMILIES:
        if by_name[family.name]:
            lines.extend(_family_lines(family, by_name[family.name], label_names))

    if snapshot.completed_at is not None:
        now = time.time() if now is None else now
        age = snapshot.age(now)
        lines.extend(_family_lines(CACHE_AGE, [Metric(CACHE_AGE.name, age)], ()))
        lines.extend(
            _family_lines(
                REFRESH_DURATION, [Metric(REFRESH_DURATION.name, snapshot.duration)], ()
            )
        )
        lines.extend(
            _family_lines(
                REFRESH_TIMESTAMP,
                [Metric(REFRESH_TIMESTAMP.name, snapshot.completed_at)],
                (),
            )
        )
    lines.extend(
        _family_lines(SAMPLES, [Metric(SAMPLES.name, len(snapshot.metrics))], ())
    )
    return "\n".join(lines) + "\n"
