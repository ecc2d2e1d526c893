"""
Repository Models — Remote repository records and local mirror state.

RepositoryRecord comes from the listing API; MirrorState is derived from
the filesystem on every run and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RepositoryRecord(BaseModel):
    """One repository as reported by the hosting API."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    path_with_namespace: str
    http_url_to_repo: str
    created_at: Optional[datetime] = None
    name_with_namespace: Optional[str] = None
    path: Optional[str] = None


class Outcome(str, Enum):
    """Terminal result of synchronizing one repository."""

    SKIPPED = "skipped"
    MIRRORED = "mirrored"
    UPDATED = "updated"
    FAILED = "failed"
    FAILED_MIRROR = "failed_mirror"
    FAILED_UPDATE = "failed_update"

    @property
    def is_failure(self) -> bool:
        return self in (Outcome.FAILED, Outcome.FAILED_MIRROR, Outcome.FAILED_UPDATE)


@dataclass(frozen=True)
class MirrorState:
    """What is on disk at a mirror path."""

    present: bool
    largest_pack_bytes: int = 0
    object_count: int = 0

    @classmethod
    def absent(cls) -> "MirrorState":
        return cls(present=False)

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "largest_pack_bytes": self.largest_pack_bytes,
            "object_count": self.object_count,
        }


@dataclass
class RepoResult:
    """Outcome of one repository plus the context needed to re-run it by hand."""

    source: str
    remote: str
    local: str
    outcome: Outcome
    operation: Optional[str] = None  # failing step, if any
    error: Optional[str] = None
    repacked: bool = False

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "remote": self.remote,
            "local": self.local,
            "outcome": self.outcome.value,
            "operation": self.operation,
            "error": self.error,
            "repacked": self.repacked,
        }
