"""
Runs attachment downloads: claim a pending slot, stream into a temporary
file, atomically promote it to its final name and settle the statistics.
"""

import asyncio
import contextlib
import logging
import os
from pathlib import Path
from typing import Protocol

from rich.markup import escape

from tgdl.core.path_guard import PathGuard
from tgdl.exceptions import TgdlError
from tgdl.models.attachment import FileReference, Notify, PendingDownload
from tgdl.models.config import DEFAULT_TEMP_SUFFIX
from tgdl.models.stats import StatsTracker
from tgdl.utils.path import MAX_FILE_NAME_LEN, safe_file_name

log = logging.getLogger(__name__)

PROGRESS_EVERY = 5


class FileFetcher(Protocol):
    """Anything that can write the bytes behind a file reference to a local path."""

    async def fetch(self, file_reference: FileReference, destination: Path) -> None: ...


class DownloadManager:
    """Orchestrates concurrent downloads into the current working directory."""

    def __init__(
        self,
        path_guard: PathGuard,
        stats: StatsTracker,
        fetcher: FileFetcher,
        temp_suffix: str = DEFAULT_TEMP_SUFFIX,
        max_concurrent: int = 0,
    ):
        self.path_guard = path_guard
        self.stats = stats
        self.fetcher = fetcher
        self.temp_suffix = temp_suffix
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(
        self, file_reference: FileReference, suggested_name: str, notify: Notify
    ) -> asyncio.Task:
        """
        Starts a download and returns immediately.

        The pending slot is claimed before this returns and the destination
        directory is captured now, so a later `/cd` does not move the file.
        The outcome is reported through `notify`.
        """
        if not suggested_name:
            log.info(f"Attachment without filename: {file_reference.unique_id}")
        download = PendingDownload(
            file_reference=file_reference,
            target_filename=safe_file_name(
                suggested_name,
                file_reference.unique_id,
                max_len=MAX_FILE_NAME_LEN - len(self.temp_suffix),
            ),
            destination_dir=self.path_guard.current_directory(),
            notify=notify,
        )

        self.stats.increment_pending()
        task = asyncio.create_task(
            self._run(download), name=f"download:{download.target_filename}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Waits until every submitted download has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _slot(self):
        return self._semaphore if self._semaphore else contextlib.nullcontext()

    async def _run(self, download: PendingDownload) -> None:
        succeeded = False
        try:
            async with self._slot():
                succeeded = await self._transfer(download)
        finally:
            if succeeded:
                self.stats.increment_succeeded()
            else:
                self.stats.increment_failed()
            remaining = self.stats.decrement_pending()

        if remaining == 0:
            await self._log_everywhere(download, "All downloads finished")
        elif remaining % PROGRESS_EVERY == 0:
            await self._log_everywhere(download, f"Done. Pending downloads: {remaining}")

    async def _transfer(self, download: PendingDownload) -> bool:
        log.info(f"Enqueued: {escape(download.target_filename)}")

        try:
            directory = self.path_guard.resolve(download.destination_dir)
        except TgdlError as e:
            await self._log_everywhere(download, f"Error: Path: {e}", logging.ERROR)
            return False

        final_path = directory / download.target_filename
        if final_path.parent != directory:
            await self._log_everywhere(
                download,
                f"Error: Path: invalid file name '{download.target_filename}'",
                logging.ERROR,
            )
            return False
        temp_path = final_path.with_name(final_path.name + self.temp_suffix)

        try:
            await self.fetcher.fetch(download.file_reference, temp_path)
        except Exception as e:
            await self._log_everywhere(download, f"Error: Download: {e}", logging.ERROR)
            self._discard(temp_path)
            return False

        try:
            os.replace(temp_path, final_path)
        except OSError as e:
            await self._log_everywhere(download, f"Error: Rename: {e}", logging.ERROR)
            self._discard(temp_path)
            return False

        log.info(f"[green]✓ Saved:[/] {escape(str(final_path))}")
        return True

    @staticmethod
    def _discard(temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning(escape(f"Could not remove temporary file '{temp_path}': {e}"))

    @staticmethod
    async def _log_everywhere(
        download: PendingDownload, message: str, level: int = logging.INFO
    ) -> None:
        """Logs `message` and replies with it. Reply failures are only logged."""
        log.log(level, escape(message))
        try:
            await download.notify(message)
        except Exception as e:
            log.warning(escape(f"Could not deliver notification '{message}': {e}"))
