"""
Data classes describing inbound attachments and downloads in progress.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

Notify = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class FileReference:
    """
    Opaque handle to remote bytes.

    `file_id` is what the transport needs to fetch the file, `unique_id` is
    stable across bots and is used to name files that arrive without one.
    """

    file_id: str
    unique_id: str
    size: int | None = None


@dataclass(frozen=True)
class PendingDownload:
    """One submitted transfer, alive between claiming and settling its slot."""

    file_reference: FileReference
    target_filename: str
    destination_dir: Path
    notify: Notify
