"""Recursive video file scanner.

Walks a collection root and returns every video file, filtered by
extension, as normalized absolute paths.
"""

import os
from pathlib import Path

import structlog

from medialedger.core.constants import VIDEO_EXTENSIONS
from medialedger.core.errors import ConfigurationError
from medialedger.fs.paths import normalize_path

logger = structlog.get_logger(__name__)


def validate_root(root: Path) -> Path:
    """Check that a collection root is a readable directory.

    Args:
        root: Collection root

    Returns:
        The normalized root

    Raises:
        ConfigurationError: If the root is missing or not a directory
    """
    if not root.exists():
        raise ConfigurationError(f"Path does not exist: {root}")
    if not root.is_dir():
        raise ConfigurationError(f"Path is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ConfigurationError(f"Path is not readable: {root}")
    return normalize_path(root)


def list_video_files(root: Path | str) -> list[Path]:
    """Recursively list video files below ``root``.

    Args:
        root: Directory to scan

    Returns:
        Absolute paths of regular files whose extension is a video extension,
        sorted case-insensitively by filename

    Raises:
        ConfigurationError: If the root is missing or not a directory
    """
    root_path = validate_root(Path(root))

    files: list[Path] = []
    for item in root_path.rglob("*"):
        # Skip hidden files (starting with .)
        if item.name.startswith("."):
            continue
        if item.suffix.lower() not in VIDEO_EXTENSIONS:
            continue
        if not item.is_file():
            continue
        files.append(normalize_path(item))

    logger.debug("fs.scanned", root=str(root_path), files=len(files))
    return sorted(files, key=lambda path: (path.name.lower(), str(path)))
