"""Pytest configuration and fixtures for tgdl tests."""

import asyncio
from pathlib import Path

import pytest

from tgdl.core.path_guard import PathGuard
from tgdl.models.attachment import FileReference
from tgdl.models.config import BotConfig
from tgdl.models.stats import StatsTracker


class FakeFetcher:
    """Writes canned bytes instead of talking to Telegram.

    `fail` maps a file_id to the exception its fetch should raise. Every fetch
    yields to the event loop between writes so concurrent downloads interleave.
    """

    def __init__(self, payload: bytes = b"hello world", fail: dict | None = None):
        self.payload = payload
        self.fail = fail or {}
        self.destinations: list[Path] = []
        self.active = 0
        self.peak_active = 0
        self.gate: asyncio.Event | None = None

    async def fetch(self, file_reference: FileReference, destination: Path) -> None:
        self.destinations.append(destination)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if error := self.fail.get(file_reference.file_id):
                raise error
            half = len(self.payload) // 2
            with open(destination, "wb") as f:
                f.write(self.payload[:half])
                f.flush()
                await asyncio.sleep(0)
                f.write(self.payload[half:])
            await asyncio.sleep(0)
        finally:
            self.active -= 1


class Replies:
    """Collects notifications sent back to the chat."""

    def __init__(self):
        self.messages: list[str] = []

    async def __call__(self, text: str) -> None:
        self.messages.append(text)

    def count(self, text: str) -> int:
        return sum(1 for m in self.messages if m == text)


def make_ref(n: int | str) -> FileReference:
    return FileReference(file_id=f"file-{n}", unique_id=f"uniq{n}")


@pytest.fixture
def root(tmp_path):
    """A fresh root directory with a sibling outside of it."""
    data = tmp_path / "data"
    data.mkdir()
    (tmp_path / "outside").mkdir()
    return data


@pytest.fixture
def guard(root):
    return PathGuard(root)


@pytest.fixture
def stats():
    return StatsTracker()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def replies():
    return Replies()


@pytest.fixture
def config(root):
    return BotConfig(token="TESTTOKEN", initial_root=root)
