"""
Mirror State Inspector — Look at a local mirror path on disk.

Reports whether the mirror exists and, when it does, how many files its
object store holds and how large its biggest pack file is.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple, Union

from ..errors import InspectionError
from ..models.repository import MirrorState

logger = logging.getLogger(__name__)

PACK_SUFFIX = ".pack"


def _raise(err: OSError) -> None:
    raise err


def measure_objects(local: Union[str, Path]) -> Tuple[int, int]:
    """
    Walk <local>/objects and return (largest_pack_bytes, object_count).

    Directories are not counted. Any traversal error is raised as
    InspectionError.
    """
    objects_dir = Path(local) / "objects"
    largest = 0
    count = 0

    try:
        if not objects_dir.is_dir():
            raise FileNotFoundError(f"no objects directory at {objects_dir}")

        for dirpath, _dirnames, filenames in os.walk(objects_dir, onerror=_raise):
            for filename in filenames:
                count += 1
                if not filename.endswith(PACK_SUFFIX):
                    continue
                size = os.stat(os.path.join(dirpath, filename)).st_size
                if size >= largest:
                    largest = size
    except OSError as e:
        raise InspectionError(local, str(e)) from e

    return largest, count


def inspect(local: Union[str, Path]) -> MirrorState:
    """
    Determine the state of a local mirror.

    Returns MirrorState.absent() if nothing exists at the path.
    Raises InspectionError for any other filesystem problem.
    """
    path = Path(local)
    try:
        os.stat(path)
    except FileNotFoundError:
        return MirrorState.absent()
    except OSError as e:
        raise InspectionError(path, str(e)) from e

    largest, count = measure_objects(path)
    logger.debug(f"[inspect] {path}: objects={count} largest_pack={largest}")
    return MirrorState(present=True, largest_pack_bytes=largest, object_count=count)
