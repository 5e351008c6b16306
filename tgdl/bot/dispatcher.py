"""
Routes Telegram updates to handlers and runs the long-polling loop.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
from rich.markup import escape

from tgdl.api.client import TelegramBotClient
from tgdl.core.context import BotContext
from tgdl.exceptions import TelegramAPIError

from .handlers import ATTACHMENT_HANDLERS, COMMAND_HANDLERS, Request

log = logging.getLogger(__name__)


def parse_command(text: str) -> Optional[Tuple[str, List[str]]]:
    """
    Splits command text into a lower-cased name and whitespace-separated args.

    `/cd@MyBot sub` yields `("/cd", ["sub"])`. Returns None for plain text.
    """
    tokens = text.split()
    if not tokens or not tokens[0].startswith("/"):
        return None
    name = tokens[0].split("@", 1)[0].lower()
    return name, tokens[1:]


class Dispatcher:
    """Turns raw updates into handler calls, enforcing the optional chat whitelist."""

    MAX_BACKOFF = 60.0

    def __init__(self, ctx: BotContext, client: TelegramBotClient):
        self.ctx = ctx
        self.client = client
        self._offset: Optional[int] = None

    def is_authorized(self, chat_id: int) -> bool:
        allowed = self.ctx.config.authorized_chat_id
        return allowed is None or chat_id == allowed

    def _make_request(self, message: Dict[str, Any]) -> Request:
        chat_id = message["chat"]["id"]
        message_id = message["message_id"]

        async def reply(text: str) -> None:
            await self.client.send_message(chat_id, text, reply_to_message_id=message_id)

        return Request(chat_id=chat_id, message_id=message_id, message=message, reply=reply)

    async def dispatch(self, update: Dict[str, Any]) -> None:
        """Handles one update. Handler errors are logged and reported, never raised."""
        message = update.get("message")
        if not message:
            return

        chat_id = message["chat"]["id"]
        if not self.is_authorized(chat_id):
            log.debug(f"Ignoring update from unauthorized chat {chat_id}")
            return

        request = self._make_request(message)
        handler = None
        for kind, attachment_handler in ATTACHMENT_HANDLERS.items():
            if kind in message:
                handler = attachment_handler
                break
        else:
            parsed = parse_command(message.get("text", ""))
            if parsed:
                name, request.args = parsed
                handler = COMMAND_HANDLERS.get(name)
                if handler is None:
                    log.debug(f"Unknown command: {escape(name)}")

        if handler is None:
            return

        try:
            await handler(self.ctx, request)
        except Exception as e:
            log.error(
                f"[red]✗ Handler {handler.__name__} failed: {escape(str(e))}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            try:
                await request.reply(f"Error: {e}")
            except Exception as reply_error:
                log.warning(escape(f"Could not reply to chat {chat_id}: {reply_error}"))

    async def poll_once(self) -> int:
        """Fetches and dispatches one batch of updates; returns how many arrived."""
        updates = await self.client.get_updates(self._offset)
        for update in updates:
            self._offset = update["update_id"] + 1
            await self.dispatch(update)
        return len(updates)

    async def run_polling(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Long-polls until `stop_event` is set, backing off on network errors.
        In-flight downloads are awaited before returning.
        """
        backoff = 1.0
        log.info("[bold cyan]Polling for updates...[/bold cyan]")
        try:
            while not (stop_event and stop_event.is_set()):
                try:
                    await self.poll_once()
                    backoff = 1.0
                except (aiohttp.ClientError, asyncio.TimeoutError, TelegramAPIError) as e:
                    log.warning(
                        f"[yellow]Polling failed: {escape(str(e))}. "
                        f"Retrying in {backoff:.0f}s[/yellow]"
                    )
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, self.MAX_BACKOFF)
        finally:
            if self.ctx.downloads.in_flight:
                log.info(
                    f"Waiting for {self.ctx.downloads.in_flight} download(s) to settle..."
                )
                await self.ctx.downloads.wait_idle()
