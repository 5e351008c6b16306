"""
Confines every user-supplied path to the configured root directory and owns
the bot's working directory.
"""

import logging
import os
from pathlib import Path

from rich.markup import escape

from tgdl.exceptions import ChangeDirectoryError, MakeDirectoryError, OutsideRootError
from tgdl.utils.path import create_dir, is_within

log = logging.getLogger(__name__)

RESET_FLAG = "-r"


class PathGuard:
    """
    Resolves paths against a fixed root and tracks the current working directory.

    The working directory lives here rather than in the process (no `os.chdir`),
    so it is always `initial_root` or one of its descendants.
    """

    def __init__(self, initial_root: Path):
        self.initial_root = Path(os.path.abspath(initial_root))
        self._current = self.initial_root

    def current_directory(self) -> Path:
        return self._current

    def resolve(self, requested_path: str | os.PathLike) -> Path:
        """
        Returns the absolute, normalized form of `requested_path`.

        Absolute paths must lie inside the root; relative paths are joined to
        the current directory. Paths that escape the root raise
        `OutsideRootError` and are never clamped.
        """
        path = Path(requested_path)
        if not path.is_absolute():
            path = self._current / path
        candidate = Path(os.path.normpath(path))

        if not is_within(candidate, self.initial_root):
            raise OutsideRootError(str(requested_path), str(self.initial_root))
        return candidate

    def change_directory(self, requested_path: str) -> Path:
        """
        Moves the working directory, creating it first when missing.

        `-r` resets to the root. The directory is created before it is
        entered; if entering fails, the working directory is left unchanged.
        """
        if requested_path == RESET_FLAG:
            self._current = self.initial_root
            log.info(escape(f"Working directory reset to {self.initial_root}"))
            return self._current

        target = self.resolve(requested_path)

        try:
            create_dir(target)
        except OSError as e:
            raise MakeDirectoryError(str(e)) from e

        try:
            self._check_enterable(target)
        except OSError as e:
            raise ChangeDirectoryError(str(e)) from e

        self._current = target
        log.info(escape(f"Working directory changed to {target}"))
        return target

    @staticmethod
    def _check_enterable(target: Path) -> None:
        if not target.is_dir():
            raise NotADirectoryError(f"Not a directory: '{target}'")
        if not os.access(target, os.X_OK):
            raise PermissionError(f"Permission denied: '{target}'")
