"""Tests for storage dashboard routes."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

from droidscope.services.storage_analyzer import StorageAnalyzer

from conftest import FakeExecutor

MB = 1024 * 1024

DEVICE = {
    "df /sdcard": (
        "Filesystem 1K-blocks Used Available Use% Mounted on\n"
        "/dev/fuse 20000 10000 10000 50% /storage/emulated\n"
    ),
    "images/media --projection _size": "2000000\n",
    "images/media --projection _id": "3\n",
    "stat -c '%s %n'": "".join(f"{(40 - i) * MB} /sdcard/Movies/{i}.mp4\n" for i in range(25)),
    "stat -c '%Y %s %n'": "1710000000 2048 /sdcard/Music/song.mp3\n",
    "pm list packages -f": "package:/data/app/a/base.apk=com.alpha\n",
}


@pytest.fixture
def analyzer():
    analyzer = StorageAnalyzer(FakeExecutor(DEVICE))
    with patch("droidscope.api.routes.storage.get_storage_analyzer", return_value=analyzer):
        yield analyzer


@pytest.mark.asyncio
async def test_analyze(client: AsyncClient, connected, analyzer):
    resp = await client.post("/api/storage/analyze")

    assert resp.status_code == 200
    data = resp.json()
    assert data["is_ready"] is True
    assert data["storage_stats"]["used_storage"] == 10000 * 1024
    sizes = [c["size"] for c in data["category_breakdown"]]
    assert sizes == sorted(sizes, reverse=True)
    await analyzer.wait_for_large_files()


@pytest.mark.asyncio
async def test_dashboard_before_analysis(client: AsyncClient, analyzer):
    resp = await client.get("/api/storage/dashboard")
    assert resp.status_code == 200
    assert resp.json()["is_ready"] is False
    assert resp.json()["version"] == 0


@pytest.mark.asyncio
async def test_large_files_pagination(client: AsyncClient, connected, analyzer):
    await client.post("/api/storage/analyze")
    await analyzer.wait_for_large_files()

    resp = await client.get("/api/storage/large-files", params={"offset": 20, "limit": 10})
    data = resp.json()
    assert data["total"] == 25
    assert len(data["files"]) == 5
    assert data["files"][0]["name"] == "20.mp4"

    resp = await client.get("/api/storage/large-files", params={"offset": 25})
    assert resp.json()["files"] == []


@pytest.mark.asyncio
async def test_category_files(client: AsyncClient, connected, analyzer):
    resp = await client.get("/api/storage/categories/Audio/files")
    assert resp.status_code == 200
    assert [f["name"] for f in resp.json()] == ["song.mp3"]

    resp = await client.get("/api/storage/categories/Apps/files")
    assert [f["name"] for f in resp.json()] == ["com.alpha"]


@pytest.mark.asyncio
async def test_unknown_category(client: AsyncClient, connected, analyzer):
    resp = await client.get("/api/storage/categories/Games/files")
    assert resp.status_code == 422
