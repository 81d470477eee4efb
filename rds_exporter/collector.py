"""Per-region RDS metric collection"""

import logging
import time

from rds_exporter.extractor import extract
from rds_exporter.models.instance import DBInstance
from rds_exporter.models.metric import Metric
from rds_exporter.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class RegionCollector:
    """Turns the instances of one region into labeled samples

    Failures never propagate: a failed page truncates the region, a failed
    tag lookup leaves the tag labels empty. Whatever was collected before a
    failure is returned.
    """

    def __init__(self, provider: BaseProvider, tag_keys: tuple[str, ...]) -> None:
        self.provider = provider
        self.tag_keys = tag_keys

    def collect(self, region: str, deadline: float | None = None) -> list[Metric]:
        metrics: list[Metric] = []
        instances = 0
        try:
            pages = iter(self.provider.describe_instances(region))
        except Exception as e:
            logger.error("Couldn't list RDS instances in region %s: %s", region, e)
            return metrics
        while True:
            if _expired(deadline):
                logger.warning(
                    "Deadline exceeded while listing RDS instances in region %s, "
                    "keeping %d samples",
                    region,
                    len(metrics),
                )
                break
            try:
                page = next(pages, None)
            except Exception as e:
                logger.error("Couldn't list RDS instances in region %s: %s", region, e)
                break
            if page is None:
                break
            for item in page:
                instance = DBInstance.from_api(item)
                tags = self._tags(region, instance, deadline)
                labels, values = extract(instance, region, self.tag_keys, tags)
                metrics.extend(
                    Metric(family.name, value, labels) for family, value in values
                )
                instances += 1

        logger.debug(
            "Collected %d samples from %d RDS instances in region %s",
            len(metrics),
            instances,
            region,
        )
        return metrics

    def _tags(self, region: str, instance: DBInstance, deadline: float | None):
        if not self.tag_keys or not instance.arn:
            return None
        if _expired(deadline):
            logger.warning(
                "Deadline exceeded, skipping tags for RDS instance %s", instance.arn
            )
            return None
        try:
            return self.provider.list_tags(region, instance.arn)
        except Exception as e:
            logger.warning("Error listing tags for RDS instance %s: %s", instance.arn, e)
            return None


def _expired(deadline: float | None) -> bool:
    return deadline is not None and time.monotonic() >= deadline
