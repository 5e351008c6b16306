"""
Directory listings for the `/ls` command, split into message-sized chunks.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from tgdl.utils.formatting import human_readable_size

MESSAGE_LIMIT = 400
NAME_WIDTH = 50


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_dir: bool
    size: int


class DirectoryLister:
    """Enumerates a directory and renders a size-annotated, chunked report."""

    def __init__(self, message_limit: int = MESSAGE_LIMIT):
        self.message_limit = message_limit

    def list_entries(self, directory: Path) -> list[DirectoryEntry]:
        """
        Returns the entries of `directory` in the order the OS yields them.

        Raises OSError when the directory cannot be read.
        """
        entries = []
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir()
                    size = entry.stat().st_size
                except OSError:
                    # Dangling symlink or an entry removed mid-listing
                    is_dir, size = False, 0
                entries.append(DirectoryEntry(entry.name, is_dir, size))
        return entries

    @staticmethod
    def format_entry(entry: DirectoryEntry) -> str:
        kind = "d" if entry.is_dir else "-"
        return f"{kind} {entry.name:<{NAME_WIDTH}}: {human_readable_size(entry.size)}\n"

    def render(self, directory: Path) -> list[str]:
        """
        Builds the `/ls` reply as a list of messages.

        A message is flushed before an entry that would bring it to or past
        `message_limit` characters. The last message is always included.
        """
        messages = []
        buffer = f"Files in {directory}:\n"
        for entry in self.list_entries(directory):
            line = self.format_entry(entry)
            if len(buffer) + len(line) >= self.message_limit:
                messages.append(buffer)
                buffer = ""
            buffer += line
        messages.append(buffer)
        return messages
