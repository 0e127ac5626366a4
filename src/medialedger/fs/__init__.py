"""Filesystem collaborator: video file discovery and safe moves."""

from medialedger.fs.fs_ops import MoveOutcome, move_file
from medialedger.fs.paths import normalize_path
from medialedger.fs.scanner import list_video_files, validate_root

__all__ = [
    "MoveOutcome",
    "list_video_files",
    "move_file",
    "normalize_path",
    "validate_root",
]
