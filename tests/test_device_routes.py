"""Tests for device routes and the device gate."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from droidscope.schemas.device import DeviceInfo


def _registry(info: DeviceInfo, refreshed: DeviceInfo | None = None):
    registry = MagicMock()
    registry.info = info
    registry.is_connected = info.is_connected
    registry.refresh = AsyncMock(return_value=refreshed or info)
    return registry


@pytest.mark.asyncio
async def test_device_info(client: AsyncClient, device_info):
    with patch("droidscope.api.routes.device.get_device_registry", return_value=_registry(device_info)):
        resp = await client.get("/api/device")

    assert resp.status_code == 200
    data = resp.json()
    assert data["model"] == "SM-G991B"
    assert data["storage_used_percentage"] == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_device_refresh(client: AsyncClient, device_info):
    registry = _registry(DeviceInfo.disconnected(), refreshed=device_info)
    with patch("droidscope.api.routes.device.get_device_registry", return_value=registry):
        resp = await client.post("/api/device/refresh")

    assert resp.status_code == 200
    assert resp.json()["is_connected"] is True
    registry.refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_gate_rejects_without_device(client: AsyncClient):
    registry = _registry(DeviceInfo.disconnected())
    with patch("droidscope.api.deps.get_device_registry", return_value=registry):
        resp = await client.post("/api/files/mkdir", json={"path": "/sdcard/x"})

    assert resp.status_code == 503
    assert resp.json()["detail"] == "No device connected"
    registry.refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_gate_rechecks_once(client: AsyncClient, device_info):
    registry = _registry(DeviceInfo.disconnected(), refreshed=device_info)
    navigator = MagicMock()
    navigator.refresh = AsyncMock(return_value={"current_path": "/sdcard/", "files": []})
    with (
        patch("droidscope.api.deps.get_device_registry", return_value=registry),
        patch("droidscope.api.routes.files.get_file_navigator", return_value=navigator),
    ):
        resp = await client.post("/api/files/refresh")

    assert resp.status_code == 200
    registry.refresh.assert_awaited_once()
