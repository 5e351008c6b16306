"""Tests for the Telegram Bot API client and the HTTP downloader."""

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from tgdl.api.client import TelegramBotClient
from tgdl.core.download_manager import DownloadManager
from tgdl.core.path_guard import PathGuard
from tgdl.exceptions import DownloadError, TelegramAPIError
from tgdl.media.downloader import Downloader
from tgdl.models.attachment import FileReference
from tgdl.models.stats import StatsTracker

from tests.conftest import Replies

TOKEN = "TESTTOKEN"
PAYLOAD = b"\x89PNG" + bytes(range(256)) * 1024


class FakeBotAPI:
    """Serves the subset of the Bot API the client talks to."""

    def __init__(self):
        self.requests: list[tuple[str, dict]] = []
        self.files = {"documents/file_1.png": PAYLOAD}
        self.file_paths = {"F1": "documents/file_1.png", "MISSING": "documents/gone.bin"}

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(f"/bot{TOKEN}/{{method}}", self.method)
        app.router.add_get(f"/file/bot{TOKEN}/{{path:.*}}", self.file)
        return app

    async def method(self, request: web.Request) -> web.Response:
        method = request.match_info["method"]
        payload = await request.json()
        self.requests.append((method, payload))

        if method == "getMe":
            return web.json_response({"ok": True, "result": {"username": "test_bot"}})
        if method == "sendMessage":
            return web.json_response({"ok": True, "result": {"message_id": 1}})
        if method == "getFile":
            path = self.file_paths.get(payload["file_id"])
            if path is None:
                return web.json_response(
                    {"ok": False, "error_code": 400, "description": "Bad Request: file is too big"},
                    status=400,
                )
            return web.json_response({"ok": True, "result": {"file_path": path}})
        return web.json_response(
            {"ok": False, "error_code": 404, "description": "Not Found"}, status=404
        )

    async def file(self, request: web.Request) -> web.Response:
        body = self.files.get(request.match_info["path"])
        if body is None:
            raise web.HTTPNotFound()
        return web.Response(body=body)


@pytest.fixture
def bot_api():
    return FakeBotAPI()


@pytest_asyncio.fixture
async def client(bot_api):
    server = test_utils.TestServer(bot_api.app())
    await server.start_server()
    client = TelegramBotClient(
        TOKEN,
        poll_timeout=1,
        downloader=Downloader(max_attempts=1),
        base_url=str(server.make_url("")),
    )
    yield client
    await client.close()
    await server.close()


class TestTelegramBotClient:
    @pytest.mark.asyncio
    async def test_get_me(self, client):
        assert (await client.get_me())["username"] == "test_bot"

    @pytest.mark.asyncio
    async def test_send_message_replies_to_message(self, client, bot_api):
        await client.send_message(5, "done!", reply_to_message_id=9)

        method, payload = bot_api.requests[-1]
        assert method == "sendMessage"
        assert payload["chat_id"] == 5
        assert payload["text"] == "done!"
        assert payload["reply_parameters"]["message_id"] == 9

    @pytest.mark.asyncio
    async def test_api_error(self, client):
        with pytest.raises(TelegramAPIError) as exc_info:
            await client.api_call("noSuchMethod")
        assert exc_info.value.error_code == 404

    @pytest.mark.asyncio
    async def test_fetch_writes_file(self, client, tmp_path):
        destination = tmp_path / "out.png.tmp"
        await client.fetch(FileReference("F1", "U1"), destination)
        assert destination.read_bytes() == PAYLOAD

    @pytest.mark.asyncio
    async def test_fetch_rejected_file(self, client, tmp_path):
        with pytest.raises(TelegramAPIError, match="file is too big"):
            await client.fetch(FileReference("BIG", "U2"), tmp_path / "x")

    @pytest.mark.asyncio
    async def test_fetch_http_error_hides_token(self, client, tmp_path):
        with pytest.raises(DownloadError) as exc_info:
            await client.fetch(FileReference("MISSING", "U3"), tmp_path / "x")

        assert "HTTP 404" in str(exc_info.value)
        assert TOKEN not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_file_url(self, client):
        assert client.file_url("a/b.jpg").endswith(f"/file/bot{TOKEN}/a/b.jpg")


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_download_manager_with_client(self, client, root):
        stats = StatsTracker()
        manager = DownloadManager(PathGuard(root), stats, client)
        replies = Replies()

        manager.submit(FileReference("F1", "U1"), "picture.png", replies)
        manager.submit(FileReference("BIG", "U2"), "huge.iso", replies)
        await manager.wait_idle()

        assert (root / "picture.png").read_bytes() == PAYLOAD
        assert not (root / "huge.iso").exists()
        assert sorted(p.name for p in root.iterdir()) == ["picture.png"]
        assert (stats.succeeded, stats.failed, stats.pending) == (1, 1, 0)
        assert "Error: Download: getFile: Bad Request: file is too big" in replies.messages
        assert replies.messages[-1] == "All downloads finished"


class TestDownloader:
    @pytest.mark.asyncio
    async def test_retries_server_errors(self, tmp_path):
        attempts = []

        async def flaky(request):
            attempts.append(1)
            if len(attempts) < 3:
                raise web.HTTPServiceUnavailable()
            return web.Response(body=b"payload")

        app = web.Application()
        app.router.add_get("/f", flaky)
        server = test_utils.TestServer(app)
        await server.start_server()
        downloader = Downloader(max_attempts=3, base_delay=0)
        try:
            written = await downloader.download_file(
                str(server.make_url("/f")), str(tmp_path / "f")
            )
        finally:
            await downloader.close()
            await server.close()

        assert written == len(b"payload")
        assert len(attempts) == 3
        assert (tmp_path / "f").read_bytes() == b"payload"
