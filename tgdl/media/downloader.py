"""
Handles the low-level streaming of files over HTTP into local paths.
"""

import asyncio
import logging
import os

import aiofiles
import aiohttp
from rich.markup import escape

log = logging.getLogger(__name__)


class Downloader:
    """A low-level file downloader with retry logic and a reusable connection pool."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        session: aiohttp.ClientSession | None = None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Gets or lazily creates the session used for file transfers."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=0,  # downloads are not admission-controlled here
                    ttl_dns_cache=600,
                    keepalive_timeout=30,
                    enable_cleanup_closed=True,
                )
                timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
                self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
                self._owns_session = True
                log.debug("Created download connection pool")
            return self._session

    async def close(self) -> None:
        """Closes the session if this downloader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Download connection pool closed.")

    async def download_file(self, url: str, destination_path: str) -> int:
        """
        Streams `url` into `destination_path`, retrying transient network errors
        with exponential backoff. Returns the number of bytes written.

        The destination is truncated on every attempt, so a retry never appends
        to a partial body.
        """
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    bytes_downloaded = 0
                    async with aiofiles.open(destination_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                            await f.write(chunk)
                            bytes_downloaded += len(chunk)
                return bytes_downloaded
            except aiohttp.ClientResponseError as e:
                # 4xx answers will not change on retry
                if 400 <= e.status < 500 and e.status != 429:
                    raise
                last_exception = e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e

            log.debug(
                escape(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{os.path.basename(destination_path)}' failed: {last_exception}. "
                    "Retrying..."
                )
            )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise last_exception
