"""
Command and attachment handlers. Each handler receives the shared
`BotContext` and the inbound `Request`; recoverable failures become replies.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from rich.markup import escape

from tgdl.core.context import BotContext
from tgdl.exceptions import ChangeDirectoryError, MakeDirectoryError, OutsideRootError
from tgdl.models.attachment import FileReference, Notify

log = logging.getLogger(__name__)

EXPECTED_VIDEO_MIME = "video/mp4"


@dataclass
class Request:
    """One inbound message, reduced to what the handlers need."""

    chat_id: int
    message_id: int
    message: Dict[str, Any]
    reply: Notify
    args: List[str] = field(default_factory=list)


async def log_everywhere(request: Request, text: str, level: int = logging.INFO) -> None:
    """Logs `text` and replies with it; a failed reply is logged, not raised."""
    log.log(level, escape(text))
    try:
        await request.reply(text)
    except Exception as e:
        log.warning(escape(f"Could not reply to chat {request.chat_id}: {e}"))


def help_text(chat_id: int) -> str:
    return (
        "This is a bot for downloading attachments.\n"
        f"Chat ID: {chat_id}\nCommands:\n"
        "/help - show this help\n"
        "/cd [-r] <path> - change working directory "
        "(-r: reset to initial working dir)\n"
        "/pwd - print working directory\n"
        "/ls - list files in current working directory\n"
        "/stats - print statistics\n"
    )


async def handle_help(ctx: BotContext, request: Request) -> None:
    await request.reply(help_text(request.chat_id))


async def handle_pwd(ctx: BotContext, request: Request) -> None:
    await request.reply(str(ctx.path_guard.current_directory()))


async def handle_ls(ctx: BotContext, request: Request) -> None:
    directory = ctx.path_guard.current_directory()
    try:
        messages = await asyncio.to_thread(ctx.lister.render, directory)
    except OSError as e:
        await log_everywhere(request, f"Error: List: {e}", logging.ERROR)
        return
    for message in messages:
        await request.reply(message)


async def handle_cd(ctx: BotContext, request: Request) -> None:
    if len(request.args) != 1:
        await request.reply("Usage: /cd [-r] <path>")
        return

    try:
        ctx.path_guard.change_directory(request.args[0])
    except OutsideRootError as e:
        await log_everywhere(
            request, f"Path is not relative to initial working dir: {e.path}", logging.WARNING
        )
        return
    except MakeDirectoryError as e:
        await log_everywhere(request, f"Error: Mkdir: {e}", logging.ERROR)
        return
    except ChangeDirectoryError as e:
        await log_everywhere(request, f"Error: Chdir: {e}", logging.ERROR)
        return
    await request.reply("done!")


async def handle_stats(ctx: BotContext, request: Request) -> None:
    await log_everywhere(request, ctx.stats.snapshot().format_stats())


def _file_reference(media: Dict[str, Any]) -> FileReference:
    return FileReference(
        file_id=media["file_id"],
        unique_id=media["file_unique_id"],
        size=media.get("file_size"),
    )


async def handle_document(ctx: BotContext, request: Request) -> None:
    document = request.message["document"]
    ctx.downloads.submit(
        _file_reference(document), document.get("file_name", ""), request.reply
    )


async def handle_photo(ctx: BotContext, request: Request) -> None:
    # Telegram lists every available size, smallest first
    photo = request.message["photo"][-1]
    ctx.downloads.submit(
        _file_reference(photo), f"{photo['file_unique_id']}.jpg", request.reply
    )


async def handle_video(ctx: BotContext, request: Request) -> None:
    video = request.message["video"]
    mime = video.get("mime_type", "")
    if mime != EXPECTED_VIDEO_MIME:
        # download anyway
        await log_everywhere(
            request,
            f"Unsupported video format: {mime}, wants '{EXPECTED_VIDEO_MIME}'",
            logging.WARNING,
        )
    ctx.downloads.submit(
        _file_reference(video), f"{video['file_unique_id']}.mp4", request.reply
    )


COMMAND_HANDLERS = {
    "/help": handle_help,
    "/start": handle_help,
    "/cd": handle_cd,
    "/pwd": handle_pwd,
    "/ls": handle_ls,
    "/stats": handle_stats,
}

ATTACHMENT_HANDLERS = {
    "document": handle_document,
    "photo": handle_photo,
    "video": handle_video,
}
