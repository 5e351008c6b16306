"""
Rich renderables for the command line: the fatal-error panel and the
`tgdl check` configuration table.
"""

import asyncio

import aiohttp
from rich import box
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tgdl.exceptions import ConfigurationError, TelegramAPIError
from tgdl.models.config import BotConfig
from tgdl.storage.config_manager import CHAT_ID_VAR, ROOT_VAR, TOKEN_VAR

# Checked in order, first match wins
ERROR_HINTS: list[tuple[type[BaseException], tuple[str, ...]]] = [
    (
        ConfigurationError,
        (
            f"Export {TOKEN_VAR} with the token issued by @BotFather.",
            f"{CHAT_ID_VAR}, if set, must be an integer chat id.",
            f"{ROOT_VAR} (or --root) must point to an existing directory.",
        ),
    ),
    (
        TelegramAPIError,
        (
            "Check that the bot token is valid and has not been revoked.",
            "Only one process may poll a bot at a time; stop other instances.",
        ),
    ),
    (
        aiohttp.ClientConnectorError,
        ("Check that api.telegram.org is reachable from this host.",),
    ),
    (
        asyncio.TimeoutError,
        ("The Telegram API did not answer in time; check the connection.",),
    ),
]
FALLBACK_HINTS = ("Run the command with -vv for detailed logs.",)


def hints_for(error: BaseException) -> tuple[str, ...]:
    for error_type, hints in ERROR_HINTS:
        if isinstance(error, error_type):
            return hints
    return FALLBACK_HINTS


def format_error_panel(error: BaseException, unexpected: bool = False) -> Panel:
    """Renders a fatal error together with hints on how to fix it."""
    headline = Text.assemble((f"{type(error).__name__}: ", "bold red"), str(error))
    if isinstance(error, TelegramAPIError) and error.error_code is not None:
        headline.append(f" (code {error.error_code})", style="dim")

    hints = Text("\n".join(f"• {hint}" for hint in hints_for(error)))
    title = "Unexpected error" if unexpected else "tgdl cannot continue"
    return Panel(
        Group(headline, Text(""), Text("What to check", style="bold yellow"), hints),
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
        box=box.ROUNDED,
        expand=False,
    )


def format_config_table(config: BotConfig, bot_name: str | None = None) -> Table:
    """Renders the effective configuration, with the token masked."""
    table = Table(title="tgdl configuration", box=box.SIMPLE_HEAVY, show_header=False)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value")

    token = config.token
    masked = f"{token[:4]}…{token[-4:]}" if len(token) > 8 else "****"
    if bot_name:
        table.add_row("Bot", f"@{bot_name}")
    table.add_row("Token", masked)
    table.add_row("Initial root", str(config.initial_root))
    table.add_row(
        "Whitelisted chat",
        str(config.authorized_chat_id) if config.authorized_chat_id is not None else "[dim]any[/dim]",
    )
    table.add_row(
        "Concurrent downloads",
        str(config.max_concurrent_downloads or "unbounded"),
    )
    table.add_row("Poll timeout", f"{config.poll_timeout}s")
    table.add_row("Temp suffix", config.temp_suffix)
    return table
