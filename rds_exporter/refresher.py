"""Background refresh of the snapshot cache

The refresher runs on a timer: it rebuilds the snapshot at startup and then
every ``cache_ttl`` seconds, independently of scrapes. Scrapes only ever
read the cache.
"""

import asyncio
import contextlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from rds_exporter.cache import SnapshotCache
from rds_exporter.collector import RegionCollector
from rds_exporter.config import Settings
from rds_exporter.models.metric import Metric
from rds_exporter.providers.base import BaseProvider

logger = logging.getLogger(__name__)

# Extra time the fan-in waits past the collectors' own deadline.
JOIN_GRACE_SECONDS = 30.0


class CacheRefresher:
    """Fans region collectors out on a thread pool and swaps in the result"""

    def __init__(
        self,
        provider: BaseProvider,
        cache: SnapshotCache,
        settings: Settings,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.settings = settings
        self.collector = RegionCollector(provider, settings.tag_keys)
        self.join_grace = JOIN_GRACE_SECONDS
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_region_workers, thread_name_prefix="rds-region"
        )
        self._stopped = False
        self._refresh_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def in_progress(self) -> bool:
        return self._refresh_lock.locked()

    def is_stale(self) -> bool:
        age = self.cache.snapshot().age()
        return age is None or age >= self.settings.cache_ttl

    async def refresh(self) -> bool:
        """Rebuild the snapshot; a no-op returning False if one is running."""
        if self._refresh_lock.locked():
            logger.info("RDS metrics refresh already in progress, skipping")
            return False
        async with self._refresh_lock:
            return await self._refresh()

    async def _refresh(self) -> bool:
        loop = asyncio.get_running_loop()
        started = time.monotonic()
        deadline = started + self.settings.refresh_timeout

        try:
            regions = await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.provider.list_regions),
                timeout=self.settings.refresh_timeout,
            )
        except Exception:
            logger.exception("Error listing regions, keeping previous RDS metrics")
            return False

        futures = {
            region: loop.run_in_executor(
                self._executor, self.collector.collect, region, deadline
            )
            for region in regions
        }
        if futures:
            await asyncio.wait(
                futures.values(),
                timeout=self.settings.refresh_timeout + self.join_grace,
            )

        metrics: list[Metric] = []
        for region, future in futures.items():
            if not future.done() or future.cancelled():
                future.cancel()
                logger.error(
                    "Region %s did not finish within %.0fs, dropping its RDS metrics",
                    region,
                    self.settings.refresh_timeout + self.join_grace,
                )
                continue
            error = future.exception()
            if error is not None:
                logger.error("Collecting RDS metrics in region %s failed: %s", region, error)
                continue
            metrics.extend(future.result())

        duration = time.monotonic() - started
        self.cache.replace(metrics, duration=duration)
        logger.info(
            "Refreshed RDS metrics: %d samples from %d regions in %.1fs",
            len(metrics),
            len(regions),
            duration,
        )
        return True

    async def run(self) -> None:
        while True:
            started = time.monotonic()
            try:
                refreshed = await self.refresh()
            except Exception:
                logger.exception("Unexpected error refreshing RDS metrics")
                refreshed = False
            if not refreshed and self.is_stale():
                logger.warning("Serving RDS metrics older than the cache TTL")
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.settings.cache_ttl - elapsed))

    def start(self) -> None:
        if self._stopped:
            raise RuntimeError("refresher was stopped and cannot be restarted")
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info("RDS metrics refresher started, interval %.0fs", self.settings.cache_ttl)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._stopped = True
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
