"""
Models — Configuration schemas and per-repository records.
"""

from .repository import MirrorState, Outcome, RepoResult, RepositoryRecord
from .source import MirrorConfig, Source

__all__ = [
    "MirrorConfig",
    "MirrorState",
    "Outcome",
    "RepoResult",
    "RepositoryRecord",
    "Source",
]
