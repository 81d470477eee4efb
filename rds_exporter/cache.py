"""Snapshot cache shared between the refresher and scrape handlers"""

import threading
import time
from dataclasses import dataclass
from typing import Iterable

from rds_exporter.models.metric import Metric


@dataclass(frozen=True)
class Snapshot:
    """The complete output of one refresh"""

    metrics: tuple[Metric, ...]
    completed_at: float | None
    duration: float = 0.0

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(metrics=(), completed_at=None)

    def age(self, now: float | None = None) -> float | None:
        if self.completed_at is None:
            return None
        return max(0.0, (time.time() if now is None else now) - self.completed_at)


class SnapshotCache:
    """Holds exactly one current snapshot

    Snapshots are immutable and replaced by reference, so the lock only
    covers the pointer swap: a reader gets either the old or the new
    snapshot, never a mix, and never waits for a refresh to finish.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = Snapshot.empty()

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    def read(self) -> tuple[tuple[Metric, ...], float | None]:
        snapshot = self.snapshot()
        return snapshot.metrics, snapshot.age()

    def replace(self, metrics: Iterable[Metric], duration: float = 0.0) -> Snapshot:
        snapshot = Snapshot(
            metrics=tuple(metrics), completed_at=time.time(), duration=duration
        )
        with self._lock:
            self._snapshot = snapshot
        return snapshot
