"""APScheduler-based background polling of the device connection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

if TYPE_CHECKING:
    from droidscope.services.device_registry import DeviceRegistry

logger = logging.getLogger(__name__)


class DeviceScheduler:
    """Refreshes the device registry on a fixed interval."""

    def __init__(self, registry: DeviceRegistry, interval_seconds: int):
        self._registry = registry
        self._interval = interval_seconds
        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1}
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        self._scheduler.add_job(
            self._refresh_device,
            "interval",
            seconds=self._interval,
            id="refresh_device",
            name="Refresh device connection",
        )
        self._scheduler.start()
        logger.info("Device scheduler started - polling every %ds", self._interval)

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Device scheduler stopped")

    async def _refresh_device(self) -> None:
        """Poll adb; the registry logs connect and disconnect transitions."""
        try:
            info = await self._registry.refresh()
            logger.debug("Device poll: connected=%s", info.is_connected)
        except Exception as e:
            logger.error("Device poll failed: %s", e)
