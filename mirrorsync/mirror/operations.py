"""
Maintenance Operations — The git steps applied to a local mirror.

Each step either returns None or raises OperationError. Git runs as a
subprocess; stderr is captured so failures can be reported with context.

    ops = GitOperations()
    ops.clone("https://gitlab.example.com/team/api.git", local)
    ops.disable_auto_gc(local)
    ops.mark(local)
    ops.update(local)
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from ..errors import OperationError, RemovalError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Largest pack size the hosting side accepts; bigger packs get split.
REPACK_THRESHOLD_BYTES = 95 * 1024 * 1024
MAX_PACK_SIZE = "95m"

MARKER_NAME = ".gitkeep"


class GitOperations:
    """
    Runs maintenance steps against bare mirror repositories.

    Args:
        git: Path or name of the git executable.
        timeout: Optional wall-clock limit in seconds per git command.
                 Expiry is reported like any other failure.
    """

    def __init__(self, git: str = "git", timeout: Optional[int] = None):
        self.git = git
        self.timeout = timeout

    def _run(self, operation: str, local: PathLike, args: List[str]) -> None:
        cmd = [self.git] + args
        logger.debug(f"[git] {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                # Remote "remote:" lines are relayed as raw bytes.
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise OperationError(operation, local, f"timed out after {self.timeout}s")
        except OSError as e:
            raise OperationError(operation, local, str(e)) from e

        if result.returncode != 0:
            error = result.stderr.strip() or result.stdout.strip()
            raise OperationError(
                operation,
                local,
                f"exit status {result.returncode}" + (f": {error}" if error else ""),
            )

    def clone(self, url: str, local: PathLike) -> None:
        """Create a bare mirror clone of url at local."""
        self._run("clone", local, ["clone", "--mirror", url, str(local)])

    def disable_auto_gc(self, local: PathLike) -> None:
        """Turn off automatic gc so only scheduled maintenance compacts."""
        self._run(
            "disablegc", local,
            ["-C", str(local), "config", "--local", "gc.auto", "0"],
        )

    def mark(self, local: PathLike) -> None:
        """
        Create marker files in refs/ and objects/.

        External tooling relies on these to tell an empty mirror from a
        missing one.
        """
        base = Path(local)
        try:
            (base / "refs" / MARKER_NAME).touch()
            (base / "objects" / MARKER_NAME).touch()
        except OSError as e:
            raise OperationError("touch", local, str(e)) from e

    def repack(self, local: PathLike) -> None:
        """Rewrite packs so none exceeds MAX_PACK_SIZE."""
        self._run(
            "repack", local,
            ["-C", str(local), "repack", f"--max-pack-size={MAX_PACK_SIZE}", "-A", "-d"],
        )

    def update(self, local: PathLike) -> None:
        """Fetch every configured remote into the mirror."""
        self._run("update", local, ["-C", str(local), "remote", "update"])

    def remove(self, local: PathLike) -> None:
        """Delete the mirror directory. A missing path is not an error."""
        path = Path(local)
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
        except OSError as e:
            raise RemovalError(local, str(e)) from e
