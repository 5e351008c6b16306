"""
Loads and validates the bot configuration from environment variables.
"""

import logging
import os
from typing import Any, MutableMapping

from pydantic import ValidationError
from rich.markup import escape

from tgdl.exceptions import ConfigurationError
from tgdl.models.config import BotConfig

log = logging.getLogger(__name__)

TOKEN_VAR = "TELEGRAM_TOKEN"
CHAT_ID_VAR = "TELEGRAM_CHATID"
ROOT_VAR = "TGDL_ROOT"
MAX_DOWNLOADS_VAR = "TGDL_MAX_DOWNLOADS"

# Removed from the environment once read
CONFIG_VARS = (TOKEN_VAR, CHAT_ID_VAR, ROOT_VAR, MAX_DOWNLOADS_VAR)


class ConfigManager:
    """Reads settings from an environment mapping (defaults to `os.environ`)."""

    def __init__(self, environ: MutableMapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def _initial_root(self) -> str:
        root = self.environ.get(ROOT_VAR, "").strip()
        if root:
            return root
        try:
            return os.getcwd()
        except OSError as e:
            raise ConfigurationError(f"Cannot determine working directory: {e}") from e

    def _erase_config_vars(self) -> None:
        for var in CONFIG_VARS:
            self.environ.pop(var, None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> BotConfig:
        """
        Builds the validated configuration, then erases the configuration
        variables from the environment.

        Args:
            cli_options: Command-line overrides; `None` values are ignored.

        Returns:
            A validated BotConfig object.

        Raises:
            ConfigurationError: If a required value is missing or invalid.
        """
        try:
            config = self._build_config(cli_options or {})
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
        finally:
            self._erase_config_vars()

        log.info(escape(f"Working directory: {config.initial_root}"))
        if config.authorized_chat_id is not None:
            log.info(f"Whitelisted chat ID: {config.authorized_chat_id}")
        return config

    def _build_config(self, cli_options: dict[str, Any]) -> BotConfig:
        token = self.environ.get(TOKEN_VAR, "")
        if not token:
            raise ConfigurationError(f"{TOKEN_VAR} is not set")

        settings: dict[str, Any] = {
            "token": token,
            "authorized_chat_id": self.environ.get(CHAT_ID_VAR) or None,
            "initial_root": self._initial_root(),
        }
        if max_downloads := self.environ.get(MAX_DOWNLOADS_VAR, "").strip():
            settings["max_concurrent_downloads"] = max_downloads
        settings.update({k: v for k, v in cli_options.items() if v is not None})
        return BotConfig(**settings)
