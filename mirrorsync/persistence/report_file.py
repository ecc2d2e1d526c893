"""
Report File Persistence — Write the batch report as JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..mirror.manager import BatchReport

logger = logging.getLogger(__name__)


def save_report(report: BatchReport, path: Path) -> None:
    """
    Save a batch report to a JSON file.

    Uses atomic write (write to temp, then rename) so readers never see a
    half-written report.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.with_suffix(path.suffix + ".tmp")

    with temp_path.open("w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=4)
        f.write("\n")

    temp_path.replace(path)
    logger.info(f"Report saved: {len(report.results)} repos → {path}")
