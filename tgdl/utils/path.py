"""
Utilities for handling file paths and attachment file names.
"""

import os
import uuid
from pathlib import Path

from pathvalidate import sanitize_filename

MAX_FILE_NAME_LEN = 255


def create_dir(directory_path: Path) -> None:
    """Creates a directory (and missing ancestors) if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def is_within(path: Path, root: Path) -> bool:
    """
    True if `path` equals `root` or lies below it, compared per component
    after resolving symlinks. `/data2` is not within `/data`.
    """
    real_path = Path(os.path.realpath(path))
    real_root = Path(os.path.realpath(root))
    return real_path == real_root or real_root in real_path.parents


def safe_file_name(
    suggested_name: str, fallback: str, max_len: int = MAX_FILE_NAME_LEN
) -> str:
    """
    Reduces an attachment name to a single path component of at most
    `max_len` bytes.

    Separators and characters the platform rejects are dropped. An empty
    result (or one that only names the current or parent directory) is
    replaced by `fallback`, and failing that by a random hex name.
    """
    for candidate in (suggested_name, fallback):
        name = sanitize_filename(candidate or "", platform="auto", max_len=max_len)
        if name not in ("", ".", ".."):
            return name
    return uuid.uuid4().hex[:max_len]
