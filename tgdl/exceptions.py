"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class TgdlError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(TgdlError):
    """Raised for missing or invalid startup configuration. Always fatal."""


class OutsideRootError(TgdlError):
    """Raised when a requested path escapes the configured root directory."""

    def __init__(self, path: str, root: str):
        super().__init__(f"'{path}' is outside the initial working dir '{root}'")
        self.path = path
        self.root = root


class MakeDirectoryError(TgdlError):
    """Raised when a directory (or one of its ancestors) cannot be created."""


class ChangeDirectoryError(TgdlError):
    """Raised when a created directory cannot be entered."""


class DownloadError(TgdlError):
    """Raised when the bytes behind a file reference cannot be fetched."""


class TelegramAPIError(TgdlError):
    """Raised when the Bot API answers with `ok: false`."""

    def __init__(self, method: str, description: str, error_code: int | None = None):
        super().__init__(f"{method}: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code
