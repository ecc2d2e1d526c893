"""
Statistics — Per-source outcome counters for a mirror batch.

One Stat per configured source, in configured order. Every processed
repository bumps exactly one outcome counter. The aggregator is shared
across worker threads, so all mutation happens under a lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional

from ..models.repository import Outcome
from ..models.source import Source


@dataclass
class Stat:
    """Counters for one source."""

    source: Source
    repos: int = 0
    skipped: int = 0
    mirrored: int = 0
    updated: int = 0
    failed: int = 0
    failed_mirror: int = 0
    failed_update: int = 0
    listing_error: Optional[str] = None

    @property
    def processed(self) -> int:
        return (
            self.skipped
            + self.mirrored
            + self.updated
            + self.failed
            + self.failed_mirror
            + self.failed_update
        )

    @property
    def failures(self) -> int:
        return self.failed + self.failed_mirror + self.failed_update

    def summary_line(self) -> str:
        return (
            f"Source [{self.source}] stats: repos:{self.repos} "
            f"skipped:{self.skipped} mirrored:{self.mirrored} "
            f"updated:{self.updated} failed:{self.failed} "
            f"failed_mirror:{self.failed_mirror} failed_update:{self.failed_update}"
        )

    def to_dict(self) -> Dict:
        return {
            "source": str(self.source),
            "repos": self.repos,
            "skipped": self.skipped,
            "mirrored": self.mirrored,
            "updated": self.updated,
            "failed": self.failed,
            "failed_mirror": self.failed_mirror,
            "failed_update": self.failed_update,
            "listing_error": self.listing_error,
        }


class StatsAggregator:
    """Thread-safe collection of Stat entries."""

    def __init__(self):
        self._stats: List[Stat] = []
        self._lock = Lock()

    def begin(self, source: Source) -> Stat:
        """Create (or return) the Stat for a source."""
        with self._lock:
            return self._require(source)

    def set_total(self, source: Source, repos: int) -> None:
        with self._lock:
            self._require(source).repos = repos

    def mark_listing_error(self, source: Source, error: str) -> None:
        with self._lock:
            self._require(source).listing_error = error

    def record(self, source: Source, outcome: Outcome) -> None:
        """Count one repository outcome for a source."""
        field_name = Outcome(outcome).value
        with self._lock:
            stat = self._require(source)
            setattr(stat, field_name, getattr(stat, field_name) + 1)

    def report(self) -> List[Stat]:
        """Snapshot of all stats, in the order sources were begun."""
        with self._lock:
            return list(self._stats)

    def _find(self, source: Source) -> Optional[Stat]:
        for stat in self._stats:
            if stat.source is source:
                return stat
        return None

    def _require(self, source: Source) -> Stat:
        stat = self._find(source)
        if stat is None:
            stat = Stat(source=source)
            self._stats.append(stat)
        return stat
