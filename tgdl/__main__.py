"""
Entry point for `tgdl` and `python -m tgdl`: runs the Typer app and turns
whatever escapes it into an exit status.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from tgdl.cli.app import app
from tgdl.cli.formatters import format_error_panel
from tgdl.exceptions import TgdlError

EXIT_OK = 0
EXIT_FAILURE = 1


def _report(error: BaseException, console: Console) -> int:
    if isinstance(error, (KeyboardInterrupt, asyncio.CancelledError)):
        console.print("\n[yellow]Bot stopped.[/yellow]")
        return EXIT_OK

    unexpected = not isinstance(error, TgdlError)
    console.print(format_error_panel(error, unexpected=unexpected))
    if unexpected:
        logging.getLogger("tgdl").debug("Full traceback:", exc_info=error)
    return EXIT_FAILURE


def main() -> None:
    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError, Exception) as e:
        sys.exit(_report(e, Console(stderr=True)))


if __name__ == "__main__":
    main()
