"""
Minimal async client for the Telegram Bot API.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from tgdl.exceptions import DownloadError, TelegramAPIError
from tgdl.media.downloader import Downloader
from tgdl.models.attachment import FileReference

from .rate_limiter import AdaptiveRateLimiter

log = logging.getLogger(__name__)


class TelegramBotClient:
    """
    Async client for the handful of Bot API methods the bot needs.

    Features:
    - Long polling via `getUpdates`
    - Adaptive rate limiting for outgoing messages
    - File downloads through a shared `Downloader`

    The token is part of every URL, so it is scrubbed from any error text
    that may end up in a chat reply.
    """

    BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        token: str,
        poll_timeout: int = 10,
        downloader: Optional[Downloader] = None,
        base_url: str = BASE_URL,
    ):
        self._token = token
        self.poll_timeout = poll_timeout
        self.base_url = base_url.rstrip("/")
        self.downloader = downloader or Downloader()

        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_limiter = AdaptiveRateLimiter()

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=self.poll_timeout + 30, connect=15
                ),
            )

    async def close(self) -> None:
        """Gracefully closes the API session and the download pool."""
        if self._session and not self._session.closed:
            await self._session.close()
        await self.downloader.close()

    def _redact(self, text: str) -> str:
        return text.replace(self._token, "<token>") if self._token else text

    def _method_url(self, method: str) -> str:
        return f"{self.base_url}/bot{self._token}/{method}"

    def file_url(self, file_path: str) -> str:
        return f"{self.base_url}/file/bot{self._token}/{file_path}"

    async def api_call(self, method: str, throttle: bool = True, **params: Any) -> Any:
        """
        Calls a Bot API method and returns its `result`.

        Raises:
            TelegramAPIError: If the API answers with `ok: false`.
            aiohttp.ClientError: On transport failures.
        """
        await self._initialize_session()
        if throttle:
            await self._rate_limiter.acquire()

        payload = {k: v for k, v in params.items() if v is not None}
        try:
            async with self._session.post(self._method_url(method), json=payload) as r:
                try:
                    data = await r.json(content_type=None)
                except ValueError:
                    raise TelegramAPIError(
                        method, f"malformed response (HTTP {r.status})", r.status
                    ) from None
        except aiohttp.ClientError as e:
            raise aiohttp.ClientError(self._redact(str(e))) from None

        if not data.get("ok"):
            error_code = data.get("error_code")
            description = data.get("description", "unknown error")
            if error_code == 429:
                retry_after = data.get("parameters", {}).get("retry_after", 1)
                await self._rate_limiter.on_429(float(retry_after))
            raise TelegramAPIError(method, description, error_code)

        return data.get("result")

    # Public API Methods
    async def get_me(self) -> Dict[str, Any]:
        return await self.api_call("getMe")

    async def get_updates(self, offset: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.api_call(
            "getUpdates",
            throttle=False,
            offset=offset,
            timeout=self.poll_timeout,
            allowed_updates=["message"],
        )

    async def send_message(
        self, chat_id: int, text: str, reply_to_message_id: Optional[int] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_to_message_id is not None:
            params["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }
        return await self.api_call("sendMessage", **params)

    async def get_file(self, file_id: str) -> Dict[str, Any]:
        return await self.api_call("getFile", file_id=file_id)

    async def fetch(self, file_reference: FileReference, destination: Path) -> None:
        """Downloads the bytes behind `file_reference` into `destination`."""
        try:
            info = await self.get_file(file_reference.file_id)
            file_path = info.get("file_path")
            if not file_path:
                raise DownloadError(
                    f"no download path for '{file_reference.unique_id}'"
                )
            size = await self.downloader.download_file(
                self.file_url(file_path), str(destination)
            )
        except aiohttp.ClientResponseError as e:
            raise DownloadError(f"HTTP {e.status}: {e.message}") from None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(self._redact(str(e)) or type(e).__name__) from None
        log.debug(f"Fetched {size} bytes for '{file_reference.unique_id}'")
