"""Path utilities for filesystem operations."""

import os
import unicodedata
from pathlib import Path


def normalize_path(path: Path | str, root: Path | None = None) -> Path:
    """Normalize a path for consistent handling.

    Args:
        path: Path to normalize
        root: Optional root directory for relative paths

    Returns:
        Normalized absolute path (NFC on POSIX)
    """
    if not isinstance(path, Path):
        path = Path(path)

    if not path.is_absolute() and root is not None:
        path = root / path
    path = path.resolve()

    # macOS hands out NFD names; catalog paths are compared as NFC
    if os.name == "posix":
        path = Path(unicodedata.normalize("NFC", str(path)))

    return path


def ensure_parent_dir(path: Path) -> None:
    """Ensure parent directory exists for a path.

    Raises:
        OSError: If parent directory cannot be created
    """
    parent = path.parent
    if not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)
