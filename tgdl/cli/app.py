"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from tgdl import __version__
from tgdl.api.client import TelegramBotClient
from tgdl.bot.dispatcher import Dispatcher
from tgdl.core.context import BotContext
from tgdl.exceptions import TgdlError
from tgdl.storage.config_manager import ConfigManager

from .formatters import format_config_table

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("tgdl")

app = typer.Typer(
    name="tgdl",
    help=(
        "A Telegram bot that saves attachments sent to it into a confined"
        " directory. Use 'tgdl <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Telegram attachment downloader"""
    if version:
        console.print(f"[bold]tgdl[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("tgdl").setLevel(log_level)
    # Request URLs carry the token
    logging.getLogger("aiohttp").setLevel("WARNING")

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _cli_options(root: Path | None, workers: int | None, poll_timeout: int | None) -> dict:
    return {
        "initial_root": root,
        "max_concurrent_downloads": workers,
        "poll_timeout": poll_timeout,
    }


@app.command()
def run(
    root: Path | None = typer.Option(
        None,
        "--root",
        "-r",
        help="Directory to confine downloads to (default: $TGDL_ROOT or the current directory).",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        help="Maximum simultaneous downloads (0 = unbounded).",
    ),
    poll_timeout: int | None = typer.Option(
        None, "--poll-timeout", help="Long-polling timeout in seconds."
    ),
):
    """Start the bot and long-poll for messages."""
    config = ConfigManager().load_config(_cli_options(root, workers, poll_timeout))

    async def _run_async():
        client = TelegramBotClient(config.token, poll_timeout=config.poll_timeout)
        try:
            me = await client.get_me()
            log.info(f"[bold green]✓ Logged in as @{me.get('username')}[/bold green]")
            context = BotContext.create(config, fetcher=client)
            await Dispatcher(context, client).run_polling()
        finally:
            await client.close()

    asyncio.run(_run_async())


@app.command()
def check(
    root: Path | None = typer.Option(
        None, "--root", "-r", help="Directory to confine downloads to."
    ),
):
    """Validate the configuration and the bot token, then exit."""
    config = ConfigManager().load_config(_cli_options(root, None, None))

    async def _check_async() -> str | None:
        client = TelegramBotClient(config.token, poll_timeout=config.poll_timeout)
        try:
            me = await client.get_me()
            return me.get("username")
        except TgdlError as e:
            console.print(f"[red]✗ Token rejected: {e}[/red]")
            raise typer.Exit(code=1) from e
        finally:
            await client.close()

    bot_name = asyncio.run(_check_async())
    console.print(format_config_table(config, bot_name))
    console.print("[bold green]✓ Configuration is valid.[/bold green]")
