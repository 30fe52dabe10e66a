"""Human-readable per-pass summary appended under the mod root.

Each entry looks like::

    ============================================================
    2025-01-31 18:04:12 - Startup
    From=[assault, marksman] To=[pmcBot]
    TotalReplaced=42
    bigmap: replaced 20
    woods: replaced 22

Writing is best-effort; failures are logged at debug level and never raised.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .identifiers import IdentifierSet
from .patcher import PatchResult

logger = logging.getLogger(__name__)

__all__ = ["DEBUG_DIR_NAME", "SUMMARY_FILE_NAME", "format_summary", "write_debug_summary"]

DEBUG_DIR_NAME = "_debug"
SUMMARY_FILE_NAME = "patched_summary.txt"


def format_summary(
    tag: str,
    identifiers: IdentifierSet,
    result: PatchResult,
    now: Optional[datetime] = None,
) -> List[str]:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "=" * 60,
        f"{stamp} - {tag}",
        f"From=[{', '.join(identifiers.sources)}] To=[{identifiers.target}]",
        f"TotalReplaced={result.total_replaced}",
    ]
    if not result.replaced_by_map:
        lines.append("(no map changes)")
    else:
        for name in sorted(result.replaced_by_map, key=str.casefold):
            lines.append(f"{name}: replaced {result.replaced_by_map[name]}")
    lines.append("")
    return lines


def write_debug_summary(
    mod_root: Union[str, Path],
    tag: str,
    identifiers: IdentifierSet,
    result: PatchResult,
) -> Optional[Path]:
    """Append a summary entry; returns the file path, or None on failure."""
    try:
        dbg_dir = Path(mod_root) / DEBUG_DIR_NAME
        os.makedirs(dbg_dir, exist_ok=True)
        path = dbg_dir / SUMMARY_FILE_NAME
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n".join(format_summary(tag, identifiers, result)) + "\n")
        return path
    except Exception as e:
        logger.debug("Failed writing debug summary under %s: %s", mod_root, e)
        return None
