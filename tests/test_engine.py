"""
Tests for the synchronization engine — the per-repository state machine.

Git is replaced by FakeOperations, which builds a mirror layout on disk,
so the real inspector runs against real files.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from conftest import MIB, FakeOperations, make_existing_mirror, make_repo
from mirrorsync.errors import InspectionError
from mirrorsync.mirror.engine import SyncEngine
from mirrorsync.mirror.operations import GitOperations
from mirrorsync.models.repository import Outcome
from mirrorsync.models.source import Source

THRESHOLD = 95 * MIB


class TestLocalPath:
    """Tests for local path derivation."""

    def test_layout(self, destination, source):
        engine = SyncEngine(destination, FakeOperations())

        local = engine.local_path_for(source, make_repo("group/sub/tool"))

        assert local == destination / "gitlab.example.com" / "group" / "sub" / "tool.git"


class TestFiltered:
    """Filtered repositories never touch the filesystem."""

    def test_skipped(self, destination):
        ops = FakeOperations()
        source = Source(domain="gitlab.example.com", exclude=["*/archived/*"])
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo("team/archived/old"))

        assert result.outcome == Outcome.SKIPPED
        assert ops.calls == []
        assert not (destination / "gitlab.example.com").exists()

    def test_skip_does_not_inspect(self, destination):
        def exploding_inspect(path):
            raise AssertionError("inspect must not run for filtered repos")

        source = Source(domain="gitlab.example.com", include=["*/infra/*"])
        engine = SyncEngine(destination, FakeOperations(), inspect_fn=exploding_inspect)

        result = engine.sync_repository(source, make_repo("team/api"))

        assert result.outcome == Outcome.SKIPPED


class TestNewMirror:
    """Absent mirror → clone path."""

    def test_success(self, destination, source):
        ops = FakeOperations(pack_size=10 * MIB)
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.MIRRORED
        assert ops.calls == ["clone", "disablegc", "touch", "update"]
        local = Path(result.local)
        assert (local / "refs" / ".gitkeep").exists()
        assert (local / "objects" / ".gitkeep").exists()
        assert result.repacked is False

    def test_repack_above_threshold(self, destination, source):
        ops = FakeOperations(pack_size=THRESHOLD + 1)
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.MIRRORED
        assert ops.calls == ["clone", "disablegc", "touch", "repack", "update"]
        assert result.repacked is True

    def test_no_repack_at_threshold(self, destination, source):
        ops = FakeOperations(pack_size=THRESHOLD)
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.MIRRORED
        assert "repack" not in ops.calls

    @pytest.mark.parametrize("step", ["clone", "disablegc", "touch", "update"])
    def test_failure_rolls_back(self, destination, source, step):
        ops = FakeOperations(fail_on=[step])
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == step
        assert ops.calls[-1] == "remove"
        assert not Path(result.local).exists()

    def test_update_failure_after_clone_removes_mirror(self, destination, source):
        ops = FakeOperations(fail_on=["update"])
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert ops.calls == ["clone", "disablegc", "touch", "update", "remove"]
        assert result.outcome == Outcome.FAILED_MIRROR
        assert not Path(result.local).exists()
        assert "update exploded" in result.error

    def test_repack_failure_rolls_back(self, destination, source):
        ops = FakeOperations(fail_on=["repack"], pack_size=THRESHOLD + 1)
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == "repack"
        assert "update" not in ops.calls
        assert not Path(result.local).exists()

    def test_measure_failure_rolls_back(self, destination, source):
        ops = FakeOperations()
        calls = {"n": 0}

        def flaky_inspect(path):
            calls["n"] += 1
            if calls["n"] == 1:
                from mirrorsync.mirror.inspector import inspect
                return inspect(path)
            raise InspectionError(path, "walk failed")

        engine = SyncEngine(destination, ops, inspect_fn=flaky_inspect)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == "objects"
        assert "update" not in ops.calls
        assert not Path(result.local).exists()

    def test_removal_failure_keeps_outcome(self, destination, source, caplog):
        ops = FakeOperations(fail_on=["clone"], fail_remove=True)
        engine = SyncEngine(destination, ops)

        with caplog.at_level("ERROR"):
            result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == "clone"
        assert "Failed to remove" in caplog.text

    @pytest.mark.parametrize("step", ["clone", "disablegc", "update"])
    def test_unexpected_error_rolls_back(self, destination, source, step):
        ops = FakeOperations(crash_on=[step])
        engine = SyncEngine(destination, ops)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == "internal"
        assert f"{step} crashed" in result.error
        assert ops.calls[-1] == "remove"
        assert not Path(result.local).exists()


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
class TestUndecodableGitOutput:
    """A clone whose stderr is not valid UTF-8 still fails cleanly."""

    @pytest.fixture
    def broken_git(self, tmp_path: Path) -> str:
        script = tmp_path / "fake-git"
        script.write_text(
            "#!/bin/sh\n"
            'mkdir -p "$4/objects/pack" "$4/refs/heads"\n'
            "printf 'remote: \\377\\376 bad\\n' >&2\n"
            "exit 128\n"
        )
        script.chmod(0o755)
        return str(script)

    def test_clone_failure_is_rolled_back(self, destination, source, broken_git):
        engine = SyncEngine(destination, GitOperations(git=broken_git))

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_MIRROR
        assert result.operation == "clone"
        assert "exit status 128" in result.error
        assert "remote:" in result.error
        assert not Path(result.local).exists()

    def test_next_run_starts_from_absent(self, destination, source, broken_git):
        engine = SyncEngine(destination, GitOperations(git=broken_git))
        engine.sync_repository(source, make_repo())

        ops = FakeOperations()
        result = SyncEngine(destination, ops).sync_repository(source, make_repo())

        assert result.outcome == Outcome.MIRRORED
        assert ops.calls[0] == "clone"


class TestExistingMirror:
    """Present mirror → update path."""

    def test_success(self, destination, source):
        ops = FakeOperations()
        engine = SyncEngine(destination, ops)
        make_existing_mirror(engine.local_path_for(source, make_repo()))

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.UPDATED
        assert ops.calls == ["disablegc", "update"]

    def test_large_existing_mirror_is_not_repacked(self, destination, source):
        ops = FakeOperations()
        engine = SyncEngine(destination, ops)
        local = make_existing_mirror(engine.local_path_for(source, make_repo()))
        with open(local / "objects" / "pack" / "pack-big.pack", "wb") as f:
            f.truncate(THRESHOLD + 1)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.UPDATED
        assert "repack" not in ops.calls

    @pytest.mark.parametrize("step", ["disablegc", "update"])
    def test_failure_preserves_mirror(self, destination, source, step):
        ops = FakeOperations(fail_on=[step])
        engine = SyncEngine(destination, ops)
        local = make_existing_mirror(engine.local_path_for(source, make_repo()))

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED_UPDATE
        assert result.operation == step
        assert "remove" not in ops.calls
        assert (local / "refs" / "heads" / "main").read_text() == "b" * 40 + "\n"


class TestInspectionFailure:
    """Inspector errors count as generic failures."""

    def test_failed_without_mutation(self, destination, source):
        def broken_inspect(path):
            raise InspectionError(path, "permission denied")

        ops = FakeOperations()
        engine = SyncEngine(destination, ops, inspect_fn=broken_inspect)

        result = engine.sync_repository(source, make_repo())

        assert result.outcome == Outcome.FAILED
        assert ops.calls == []
        assert result.error == "permission denied"


class TestIdempotence:
    """A second run against a healthy mirror updates instead of cloning."""

    def test_second_run_updates(self, destination, source):
        ops = FakeOperations()
        engine = SyncEngine(destination, ops)
        repo = make_repo()

        first = engine.sync_repository(source, repo)
        second = engine.sync_repository(source, repo)

        assert first.outcome == Outcome.MIRRORED
        assert second.outcome == Outcome.UPDATED
        assert ops.calls.count("clone") == 1
