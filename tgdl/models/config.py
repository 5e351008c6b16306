"""
Pydantic model for the bot's startup configuration.
Built once at process start and never mutated afterwards.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_TEMP_SUFFIX = ".tmp"
DEFAULT_POLL_TIMEOUT = 10
MAX_TEMP_SUFFIX_LEN = 16


class BotConfig(BaseModel):
    """A validated, immutable configuration model for the bot."""

    # Telegram
    token: str = Field(..., repr=False)
    authorized_chat_id: int | None = None
    poll_timeout: int = DEFAULT_POLL_TIMEOUT

    # Storage
    initial_root: Path

    # Downloads
    max_concurrent_downloads: int = 0
    temp_suffix: str = DEFAULT_TEMP_SUFFIX

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("TELEGRAM_TOKEN is not set")
        return v

    @field_validator("authorized_chat_id", mode="before")
    @classmethod
    def validate_chat_id(cls, v):
        """Accepts the raw environment string; empty or 0 means no whitelist."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            try:
                v = int(v, 10)
            except ValueError as e:
                raise ValueError(f"TELEGRAM_CHATID is not a valid number: {v!r}") from e
        return v or None

    @field_validator("initial_root")
    @classmethod
    def validate_root(cls, v: Path) -> Path:
        """The root must be an existing directory; it is stored absolute and normalized."""
        root = Path(os.path.abspath(os.path.expanduser(v)))
        if not root.is_dir():
            raise ValueError(f"Initial working dir '{root}' is not a directory")
        return root

    @field_validator("poll_timeout")
    @classmethod
    def validate_poll_timeout(cls, v: int) -> int:
        if v < 0 or v > 300:
            raise ValueError("Poll timeout must be between 0 and 300 seconds.")
        return v

    @field_validator("max_concurrent_downloads")
    @classmethod
    def validate_max_downloads(cls, v: int) -> int:
        """0 keeps downloads unbounded."""
        if v < 0:
            raise ValueError("Max concurrent downloads cannot be negative.")
        return v

    @field_validator("temp_suffix")
    @classmethod
    def validate_temp_suffix(cls, v: str) -> str:
        if not v or os.sep in v or (os.altsep and os.altsep in v):
            raise ValueError("Temp suffix must be a non-empty file name suffix.")
        if len(v) > MAX_TEMP_SUFFIX_LEN:
            raise ValueError(f"Temp suffix cannot exceed {MAX_TEMP_SUFFIX_LEN} characters.")
        return v
