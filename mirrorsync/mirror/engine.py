"""
Synchronization Engine — Decide and run the steps for one repository.

For each repository the engine walks a small state machine:

1. Filtered   — excluded by the source patterns, nothing touched
2. NewMirror  — no local mirror yet:
                clone → disablegc → mark → measure → [repack] → update
                any failure removes the partial mirror
3. Existing   — mirror already on disk:
                disablegc → update
                a failure leaves the mirror untouched
4. Failed     — the local path could not be inspected

The repack check only runs after an initial clone. Mirrors that grow past
the threshold later are not repacked by updates.

## Usage

    from mirrorsync.mirror.engine import SyncEngine

    engine = SyncEngine("/srv/mirrors", GitOperations())
    result = engine.sync_repository(source, repo)
    print(result.outcome)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from ..errors import InspectionError, OperationError, RemovalError
from ..models.repository import MirrorState, Outcome, RepoResult, RepositoryRecord
from ..models.source import Source
from .filter import should_skip
from .inspector import inspect
from .operations import REPACK_THRESHOLD_BYTES, GitOperations

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Per-repository decision engine.

    The operations object and inspect function are injectable so the
    decision logic can be exercised without git.
    """

    def __init__(
        self,
        destination: Union[str, Path],
        operations: Optional[GitOperations] = None,
        inspect_fn: Callable[[Path], MirrorState] = inspect,
        repack_threshold: int = REPACK_THRESHOLD_BYTES,
    ):
        self.destination = Path(destination)
        self.operations = operations or GitOperations()
        self.inspect = inspect_fn
        self.repack_threshold = repack_threshold

    def local_path_for(self, source: Source, repo: RepositoryRecord) -> Path:
        """<destination>/<domain>/<path_with_namespace>.git"""
        base = self.destination / source.domain / repo.path_with_namespace
        return Path(f"{base}.git")

    def sync_repository(self, source: Source, repo: RepositoryRecord) -> RepoResult:
        """Bring one repository's local mirror up to date."""
        remote = repo.http_url_to_repo
        local = self.local_path_for(source, repo)

        if should_skip(source, remote):
            logger.debug(f"[mirror] Skipping [{remote}]")
            return self._result(source, remote, local, Outcome.SKIPPED)

        try:
            state = self.inspect(local)
        except InspectionError as e:
            logger.error(
                f"[mirror] Failed to stat [{local}]: {e.message}",
                extra={"source": str(source), "repo": remote, "operation": "stat"},
            )
            return self._result(
                source, remote, local, Outcome.FAILED,
                operation="stat", error=e.message,
            )

        if not state.present:
            return self._new_mirror(source, remote, local)
        return self._existing_mirror(source, remote, local)

    # ─── New Mirror ─────────────────────────────────────────

    def _new_mirror(self, source: Source, remote: str, local: Path) -> RepoResult:
        logger.info(f"[mirror] Mirroring [{remote}] -> [{local}]")
        ops = self.operations
        repacked = False

        try:
            ops.clone(remote, local)
            ops.disable_auto_gc(local)
            ops.mark(local)

            try:
                state = self.inspect(local)
            except InspectionError as e:
                raise OperationError("objects", local, e.message) from e

            if state.largest_pack_bytes > self.repack_threshold:
                logger.info(
                    f"[mirror] Should repack [{local}]. "
                    f"objects largestsize={state.largest_pack_bytes}"
                )
                ops.repack(local)
                repacked = True
                logger.info(f"[mirror] Repack [{local}] finished.")

            ops.update(local)
        except OperationError as e:
            logger.error(
                f"[mirror] Failed mirror [{remote}] -> [{local}]: {e}",
                extra={"source": str(source), "repo": remote, "operation": e.operation},
            )
            self._rollback(local)
            return self._result(
                source, remote, local, Outcome.FAILED_MIRROR,
                operation=e.operation, error=e.detail, repacked=repacked,
            )
        except Exception as e:
            # A partial clone left behind would look Present on the next run.
            logger.exception(
                f"[mirror] Failed mirror [{remote}] -> [{local}]: {e}",
                extra={"source": str(source), "repo": remote, "operation": "internal"},
            )
            self._rollback(local)
            return self._result(
                source, remote, local, Outcome.FAILED_MIRROR,
                operation="internal", error=str(e), repacked=repacked,
            )

        logger.info(f"[mirror] Successfully mirror [{remote}] -> [{local}]")
        return self._result(source, remote, local, Outcome.MIRRORED, repacked=repacked)

    def _rollback(self, local: Path) -> None:
        # Best effort: the outcome is already decided.
        try:
            self.operations.remove(local)
        except RemovalError as e:
            logger.error(f"[mirror] Failed to remove [{local}]: {e.detail}")

    # ─── Existing Mirror ────────────────────────────────────

    def _existing_mirror(self, source: Source, remote: str, local: Path) -> RepoResult:
        logger.info(f"[mirror] Updating [{remote}] -> [{local}]")
        ops = self.operations

        try:
            # Re-applied every run: older mirrors may lack the setting.
            ops.disable_auto_gc(local)
            ops.update(local)
        except OperationError as e:
            logger.error(
                f"[mirror] Failed update [{remote}] -> [{local}]: {e}",
                extra={"source": str(source), "repo": remote, "operation": e.operation},
            )
            return self._result(
                source, remote, local, Outcome.FAILED_UPDATE,
                operation=e.operation, error=e.detail,
            )

        logger.info(f"[mirror] Successfully update [{remote}] -> [{local}]")
        return self._result(source, remote, local, Outcome.UPDATED)

    @staticmethod
    def _result(
        source: Source,
        remote: str,
        local: Path,
        outcome: Outcome,
        **kwargs,
    ) -> RepoResult:
        return RepoResult(
            source=str(source),
            remote=remote,
            local=str(local),
            outcome=outcome,
            **kwargs,
        )
