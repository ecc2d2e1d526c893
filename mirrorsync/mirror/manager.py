"""
Mirror Manager — Runs one mirror batch across all configured sources.

This is the main entry point for mirror operations. For every source it
lists the remote repositories, runs each one through the sync engine and
collects per-source statistics.

## Usage from other modules:

    from mirrorsync.mirror.manager import MirrorManager

    manager = MirrorManager(config)
    report = manager.run()
    for stat in report.stats:
        print(stat.summary_line())

Sources are processed one after the other. With workers > 1 the
repositories of a source are spread over a bounded thread pool; each
repository has its own local path, so no two workers touch the same
mirror.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ListingError
from ..listing.gitlab import GitLabLister
from ..models.repository import Outcome, RepoResult, RepositoryRecord
from ..models.source import MirrorConfig, Source
from .engine import SyncEngine
from .operations import GitOperations
from .stats import Stat, StatsAggregator

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Everything a finished batch produced."""

    started_at: str
    ended_at: Optional[str] = None
    stats: List[Stat] = field(default_factory=list)
    results: List[RepoResult] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(s.failures for s in self.stats)

    @property
    def listing_errors(self) -> int:
        return sum(1 for s in self.stats if s.listing_error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "stats": [s.to_dict() for s in self.stats],
            "results": [r.to_dict() for r in self.results],
        }


class MirrorManager:
    """
    Orchestrates a mirror batch.

    Lister, engine and stats are injectable; by default they are built
    from the config.
    """

    def __init__(
        self,
        config: MirrorConfig,
        lister: Optional[GitLabLister] = None,
        engine: Optional[SyncEngine] = None,
        stats: Optional[StatsAggregator] = None,
    ):
        self.config = config
        self.destination = Path(config.destination)
        self.lister = lister or GitLabLister(
            timeout=config.api_timeout, per_page=config.per_page
        )
        self.engine = engine or SyncEngine(
            self.destination, GitOperations(timeout=config.git_timeout)
        )
        self.stats = stats or StatsAggregator()
        self.workers = config.workers

    def run(self) -> BatchReport:
        """Mirror every configured source and return the batch report."""
        report = BatchReport(started_at=datetime.now(timezone.utc).isoformat())

        self.destination.mkdir(parents=True, exist_ok=True)

        for source in self.config.sources:
            report.results.extend(self.sync_source(source))

        report.stats = self.stats.report()
        report.ended_at = datetime.now(timezone.utc).isoformat()

        for stat in report.stats:
            logger.info(f"[mirror] {stat.summary_line()}")

        return report

    # ─── Per Source ─────────────────────────────────────────

    def sync_source(self, source: Source) -> List[RepoResult]:
        """List and sync every repository of one source."""
        self.stats.begin(source)

        try:
            repos = self.lister.list_repositories(source)
        except ListingError as e:
            logger.error(
                f"[mirror] Failed to get source [{source}] repos. error:'{e.message}'"
            )
            self.stats.mark_listing_error(source, e.message)
            return []

        self.stats.set_total(source, len(repos))
        logger.info(f"[mirror] Found {len(repos)} repos for source [{source}]")

        if self.workers <= 1 or len(repos) <= 1:
            return [self._sync_one(source, repo) for repo in repos]

        results: List[RepoResult] = []
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="mirror-worker"
        ) as executor:
            futures = [executor.submit(self._sync_one, source, repo) for repo in repos]
            for future in as_completed(futures):
                results.append(future.result())
        return results

    def _sync_one(self, source: Source, repo: RepositoryRecord) -> RepoResult:
        try:
            result = self.engine.sync_repository(source, repo)
        except Exception as e:
            # Counted against this repository only.
            logger.exception(
                f"[mirror] Unexpected error on [{repo.http_url_to_repo}]: {e}"
            )
            result = RepoResult(
                source=str(source),
                remote=repo.http_url_to_repo,
                local=str(self.engine.local_path_for(source, repo)),
                outcome=Outcome.FAILED,
                operation="internal",
                error=str(e),
            )

        self.stats.record(source, result.outcome)
        return result
