"""Tests for preview, streaming and cache routes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from starlette.requests import ClientDisconnect

from droidscope.api.routes.transfers import ScratchFileResponse
from droidscope.schemas.transfers import TransferPurpose, TransferStatus
from droidscope.services.transfer_manager import ScratchFile, TransferManager

from conftest import PullingExecutor


@pytest.fixture
def manager(tmp_path):
    manager = TransferManager(PullingExecutor(), tmp_path / "cache")
    with (
        patch("droidscope.api.routes.transfers.get_transfer_manager", return_value=manager),
        patch("droidscope.api.routes.cache.get_transfer_manager", return_value=manager),
    ):
        yield manager


def _files(root):
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


@pytest.mark.asyncio
async def test_preview_sends_file_and_releases(client: AsyncClient, connected, manager):
    resp = await client.get("/api/transfers/preview", params={"remote_path": "/sdcard/DCIM/a.jpg"})

    assert resp.status_code == 200
    assert resp.content == b"\xff" * 2048
    assert "a.jpg" in resp.headers["content-disposition"]
    assert _files(manager.cache_root) == []


@pytest.mark.asyncio
async def test_preview_failure(client: AsyncClient, connected, tmp_path):
    manager = TransferManager(PullingExecutor(write=False, output="adb: error: no such file\n"), tmp_path)
    with patch("droidscope.api.routes.transfers.get_transfer_manager", return_value=manager):
        resp = await client.get("/api/transfers/preview", params={"remote_path": "/sdcard/x"})

    assert resp.status_code == 502
    assert "no such file" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_preview_scratch_unavailable(client: AsyncClient, connected, tmp_path):
    blocker = tmp_path / "cache"
    blocker.write_text("not a directory")
    manager = TransferManager(PullingExecutor(), blocker)
    with patch("droidscope.api.routes.transfers.get_transfer_manager", return_value=manager):
        resp = await client.get("/api/transfers/preview", params={"remote_path": "/sdcard/a.jpg"})

    assert resp.status_code == 502
    assert "Scratch space unavailable" in resp.json()["detail"]
    assert not manager.is_busy(TransferPurpose.PREVIEW)


@pytest.mark.asyncio
async def test_preview_copy_released_when_send_fails(tmp_path):
    scratch = ScratchFile(tmp_path / "preview" / "abc123", "/sdcard/a.jpg")
    scratch.directory.mkdir(parents=True)
    scratch.path.write_bytes(b"\xff" * 16)
    response = ScratchFileResponse(scratch)

    async def receive():
        return {"type": "http.disconnect"}

    async def send(message):
        raise OSError("connection reset by peer")

    scope = {"type": "http", "method": "GET", "path": "/preview", "headers": []}
    with pytest.raises((OSError, ClientDisconnect)):
        await response(scope, receive, send)

    assert not scratch.directory.exists()


@pytest.mark.asyncio
async def test_preview_busy(client: AsyncClient, connected, manager):
    manager._active.add(TransferPurpose.PREVIEW)
    resp = await client.get("/api/transfers/preview", params={"remote_path": "/sdcard/a.jpg"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_stream_started(client: AsyncClient, connected):
    mock_manager = MagicMock()
    mock_manager.is_busy.return_value = False
    mock_manager.stream_file = AsyncMock()
    with patch("droidscope.api.routes.transfers.get_transfer_manager", return_value=mock_manager):
        resp = await client.post("/api/transfers/stream", json={"remote_path": "/sdcard/a.mp4"})
        await asyncio.sleep(0)

    assert resp.status_code == 202
    assert resp.json()["status"] == "started"
    mock_manager.stream_file.assert_called_once_with("/sdcard/a.mp4")


@pytest.mark.asyncio
async def test_stream_busy(client: AsyncClient, connected):
    mock_manager = MagicMock()
    mock_manager.is_busy.return_value = True
    with patch("droidscope.api.routes.transfers.get_transfer_manager", return_value=mock_manager):
        resp = await client.post("/api/transfers/stream", json={"remote_path": "/sdcard/a.mp4"})

    assert resp.status_code == 409
    mock_manager.stream_file.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_without_stream(client: AsyncClient, manager):
    resp = await client.post("/api/transfers/stream/cancel")
    assert resp.status_code == 200
    assert resp.json() == {"cancelled": False}


@pytest.mark.asyncio
async def test_status(client: AsyncClient, manager):
    resp = await client.get("/api/transfers/status")
    assert resp.status_code == 200
    assert TransferStatus(**resp.json()) == TransferStatus()


@pytest.mark.asyncio
async def test_cache_stats(client: AsyncClient, manager):
    await manager.fetch_preview("/sdcard/a.jpg")

    resp = await client.get("/api/transfers/cache")

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_files"] == 1
    assert data["total_size_bytes"] == 2048
    assert data["root"] == str(manager.cache_root)
