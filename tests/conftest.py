"""
Shared fixtures for mirror tests.

Provides sources, repository records and a FakeOperations stand-in for
GitOperations that builds a realistic bare-mirror layout on disk without
running git.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from mirrorsync.errors import OperationError, RemovalError
from mirrorsync.models.repository import RepositoryRecord
from mirrorsync.models.source import Source

MIB = 1024 * 1024


class FakeOperations:
    """
    Records every step and fails the ones named in ``fail_on``. Steps in
    ``crash_on`` raise a plain RuntimeError instead of OperationError.

    clone() lays out refs/, objects/pack/ and a pack file of ``pack_size``
    bytes before deciding whether to fail, so rollback has something to
    delete.
    """

    def __init__(
        self,
        fail_on: Iterable[str] = (),
        pack_size: int = 0,
        fail_remove: bool = False,
        crash_on: Iterable[str] = (),
    ):
        self.fail_on = set(fail_on)
        self.pack_size = pack_size
        self.fail_remove = fail_remove
        self.crash_on = set(crash_on)
        self.calls: List[str] = []

    def _step(self, name: str, local) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise OperationError(name, local, f"{name} exploded")
        if name in self.crash_on:
            raise RuntimeError(f"{name} crashed")

    def clone(self, url: str, local) -> None:
        path = Path(local)
        (path / "refs" / "heads").mkdir(parents=True)
        (path / "objects" / "pack").mkdir(parents=True)
        (path / "HEAD").write_text("ref: refs/heads/main\n")
        (path / "refs" / "heads" / "main").write_text("a" * 40 + "\n")
        if self.pack_size:
            with open(path / "objects" / "pack" / "pack-1.pack", "wb") as f:
                f.truncate(self.pack_size)
            (path / "objects" / "pack" / "pack-1.idx").write_bytes(b"idx")
        self._step("clone", local)

    def disable_auto_gc(self, local) -> None:
        self._step("disablegc", local)

    def mark(self, local) -> None:
        self._step("touch", local)
        (Path(local) / "refs" / ".gitkeep").touch()
        (Path(local) / "objects" / ".gitkeep").touch()

    def repack(self, local) -> None:
        self._step("repack", local)

    def update(self, local) -> None:
        self._step("update", local)

    def remove(self, local) -> None:
        self.calls.append("remove")
        if self.fail_remove:
            raise RemovalError(local, "permission denied")
        shutil.rmtree(local, ignore_errors=True)


def make_repo(
    path: str = "team/api",
    domain: str = "gitlab.example.com",
    repo_id: int = 1,
    url: Optional[str] = None,
) -> RepositoryRecord:
    """Build a RepositoryRecord the way the listing API would report it."""
    return RepositoryRecord(
        id=repo_id,
        name=path.rsplit("/", 1)[-1],
        path_with_namespace=path,
        http_url_to_repo=url or f"https://{domain}/{path}.git",
        created_at="2024-03-01T10:00:00Z",
    )


def make_existing_mirror(local: Path) -> Path:
    """Create a minimal mirror that looks like a previous successful run."""
    (local / "refs" / "heads").mkdir(parents=True)
    (local / "objects" / "pack").mkdir(parents=True)
    (local / "refs" / "heads" / "main").write_text("b" * 40 + "\n")
    (local / "objects" / "pack" / "pack-old.pack").write_bytes(b"x" * 1024)
    return local


@pytest.fixture
def source() -> Source:
    return Source(domain="gitlab.example.com")


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    dest = tmp_path / "mirrors"
    dest.mkdir()
    return dest


@pytest.fixture
def fake_ops() -> FakeOperations:
    return FakeOperations()
