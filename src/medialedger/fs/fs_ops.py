"""Safe single-file move operations.

Moves never overwrite: an existing destination skips the move. Each call
touches exactly one file, so a failure leaves every other file untouched.
"""

import errno
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

from medialedger.fs.paths import ensure_parent_dir, normalize_path

logger = structlog.get_logger(__name__)


@dataclass
class MoveOutcome:
    """Result of a filesystem move."""

    src: Path
    dst: Path
    status: Literal["moved", "noop", "skipped_collision", "failed"]
    reason: str | None = None

    @property
    def moved(self) -> bool:
        return self.status == "moved"

    @property
    def final_path(self) -> Path:
        """Where the file lives after the operation."""
        return self.dst if self.status in ("moved", "noop") else self.src


def move_file(src: Path, dst: Path) -> MoveOutcome:
    """Move ``src`` to ``dst``.

    Args:
        src: Existing file
        dst: Target path (parent directories are created)

    Returns:
        MoveOutcome; 'noop' when both paths are the same file,
        'skipped_collision' when ``dst`` already exists
    """
    src = normalize_path(src)
    dst = normalize_path(dst)

    if src == dst:
        return MoveOutcome(src=src, dst=dst, status="noop")

    if not src.exists():
        return MoveOutcome(
            src=src, dst=dst, status="failed", reason="source file does not exist"
        )

    # Case-only renames on case-insensitive filesystems report dst as existing
    case_only = str(src).lower() == str(dst).lower()
    if dst.exists() and not (case_only and dst.samefile(src)):
        return MoveOutcome(
            src=src, dst=dst, status="skipped_collision", reason="destination exists"
        )

    try:
        ensure_parent_dir(dst)
    except OSError as e:
        return MoveOutcome(
            src=src,
            dst=dst,
            status="failed",
            reason=f"failed to create destination directory: {e}",
        )

    try:
        src.rename(dst)
        logger.debug("fs.renamed", src=str(src), dst=str(dst))
    except OSError as e:
        if e.errno != errno.EXDEV:
            return MoveOutcome(
                src=src, dst=dst, status="failed", reason=f"rename failed: {e}"
            )

        # Cross-device move: copy + fsync + remove
        try:
            shutil.copy2(str(src), str(dst))
            with dst.open("rb") as handle:
                os.fsync(handle.fileno())
            src.unlink()
            logger.debug("fs.moved_across_devices", src=str(src), dst=str(dst))
        except OSError as copy_e:
            if dst.exists():
                dst.unlink(missing_ok=True)
            return MoveOutcome(
                src=src,
                dst=dst,
                status="failed",
                reason=f"failed cross-device move: {copy_e}",
            )

    return MoveOutcome(src=src, dst=dst, status="moved")
