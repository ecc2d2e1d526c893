"""
Errors — Failure taxonomy for a mirror batch.

Each error type maps to the blast radius of the failure:

- ListingError: a whole source is skipped, the batch continues
- InspectionError: one repository is counted as failed, nothing is mutated
- OperationError: one maintenance step failed (clone, update, ...)
- RemovalError: cleanup of a partial mirror failed, logged only

## Usage

    from mirrorsync.errors import OperationError

    try:
        ops.update(local)
    except OperationError as e:
        logger.error(f"{e.operation} failed on {e.path}: {e.detail}")
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class MirrorSyncError(Exception):
    """Base class for all mirrorsync errors."""
    pass


class ConfigurationError(MirrorSyncError):
    """Raised when configuration is missing or invalid."""
    pass


class ListingError(MirrorSyncError):
    """Raised when the repositories of a source cannot be listed."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class InspectionError(MirrorSyncError):
    """Raised when a local mirror path cannot be examined."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{path}: {message}")


class OperationError(MirrorSyncError):
    """Raised when a maintenance operation fails."""

    def __init__(
        self,
        operation: str,
        path: Union[str, Path],
        detail: Optional[str] = None,
    ):
        self.operation = operation
        self.path = Path(path)
        self.detail = detail or "unknown error"
        super().__init__(f"{operation} error:'{self.detail}'")


class RemovalError(OperationError):
    """Raised when a partial mirror could not be deleted."""

    def __init__(self, path: Union[str, Path], detail: Optional[str] = None):
        super().__init__("remove", path, detail)
