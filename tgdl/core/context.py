"""
The context object that replaces process-wide globals: built once at startup
and handed to every handler.
"""

from dataclasses import dataclass

from tgdl.models.config import BotConfig
from tgdl.models.stats import StatsTracker

from .download_manager import DownloadManager, FileFetcher
from .lister import DirectoryLister
from .path_guard import PathGuard


@dataclass
class BotContext:
    config: BotConfig
    path_guard: PathGuard
    stats: StatsTracker
    lister: DirectoryLister
    downloads: DownloadManager

    @classmethod
    def create(cls, config: BotConfig, fetcher: FileFetcher) -> "BotContext":
        path_guard = PathGuard(config.initial_root)
        stats = StatsTracker()
        return cls(
            config=config,
            path_guard=path_guard,
            stats=stats,
            lister=DirectoryLister(),
            downloads=DownloadManager(
                path_guard,
                stats,
                fetcher,
                temp_suffix=config.temp_suffix,
                max_concurrent=config.max_concurrent_downloads,
            ),
        )
