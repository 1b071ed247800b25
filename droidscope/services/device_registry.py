"""Device connection state and cached properties."""

from __future__ import annotations

import asyncio
import logging

from droidscope.schemas.device import DeviceInfo
from droidscope.services.adb_executor import CommandExecutor
from droidscope.utils.listing import parse_connected_serials, parse_disk_usage
from droidscope.utils.remote_paths import quote

logger = logging.getLogger(__name__)

PROP_MODEL = "ro.product.model"
PROP_MANUFACTURER = "ro.product.manufacturer"
PROP_ANDROID_VERSION = "ro.build.version.release"
BYTES_PER_GB = 1024 ** 3


class DeviceRegistry:
    """Tracks whether a device is attached and what it is."""

    def __init__(self, executor: CommandExecutor, storage_mount: str = "/data"):
        self._executor = executor
        self._storage_mount = storage_mount
        self._info = DeviceInfo.disconnected()

    @property
    def info(self) -> DeviceInfo:
        return self._info

    @property
    def is_connected(self) -> bool:
        return self._info.is_connected

    async def connected_serial(self) -> str | None:
        """Serial of the first attached device, or None."""
        output = await self._executor.execute(["devices"])
        serials = parse_connected_serials(output)
        return serials[0] if serials else None

    async def get_property(self, key: str) -> str:
        output = await self._executor.execute(["shell", "getprop", key])
        return output.strip()

    async def _storage_gb(self) -> tuple[float, float]:
        output = await self._executor.execute(["shell", "df", quote(self._storage_mount)])
        usage = parse_disk_usage(output, match_device_token=False)
        if usage is None:
            return 0.0, 0.0
        return usage.total_bytes / BYTES_PER_GB, usage.free_bytes / BYTES_PER_GB

    async def refresh(self) -> DeviceInfo:
        """Rebuild the device record.

        Property queries are skipped entirely when nothing is attached; adb
        stalls on them without a device.
        """
        serial = await self.connected_serial()
        if serial is None:
            info = DeviceInfo.disconnected()
        else:
            model, manufacturer, version, (total_gb, free_gb) = await asyncio.gather(
                self.get_property(PROP_MODEL),
                self.get_property(PROP_MANUFACTURER),
                self.get_property(PROP_ANDROID_VERSION),
                self._storage_gb(),
            )
            info = DeviceInfo(
                is_connected=True,
                serial=serial,
                model=model,
                manufacturer=manufacturer,
                android_version=version,
                total_storage_gb=total_gb,
                available_storage_gb=free_gb,
            )

        if info.is_connected != self._info.is_connected:
            if info.is_connected:
                logger.info("Device connected: %s %s (%s)", info.manufacturer, info.model, serial)
            else:
                logger.info("Device disconnected")
        self._info = info
        return info
