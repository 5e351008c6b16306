"""
Core application engine.

`PathGuard` confines paths to the root directory, `DownloadManager` runs
transfers and settles `StatsTracker` counters, and `DirectoryLister` renders
`/ls` replies. `BotContext` wires them together once at startup.
"""

from .context import BotContext
from .download_manager import DownloadManager, FileFetcher
from .lister import DirectoryEntry, DirectoryLister
from .path_guard import PathGuard

__all__ = [
    "BotContext",
    "DirectoryEntry",
    "DirectoryLister",
    "DownloadManager",
    "FileFetcher",
    "PathGuard",
]
