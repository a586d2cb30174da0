# SPDX-License-Identifier: MIT
"""Whole-buffer file output for generators."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def write_if_changed(path: Path | str, content: str) -> bool:
    """Write content to path unless the file already holds exactly that.

    Leaving an identical file untouched keeps its timestamp, so make and
    MSBuild don't treat the project as modified.

    Returns:
        True if the file was written.
    """
    path = Path(path)
    data = content.encode("utf-8")
    if path.is_file() and path.read_bytes() == data:
        logger.debug("Unchanged: %s", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Wrote %s", path)
    return True
