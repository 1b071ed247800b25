"""Business logic services - singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from droidscope.config import settings

if TYPE_CHECKING:
    from droidscope.services.adb_executor import CommandExecutor
    from droidscope.services.device_registry import DeviceRegistry
    from droidscope.services.file_navigator import RemoteFileNavigator
    from droidscope.services.scheduler import DeviceScheduler
    from droidscope.services.storage_analyzer import StorageAnalyzer
    from droidscope.services.transfer_manager import TransferManager

logger = logging.getLogger(__name__)

_executor: CommandExecutor | None = None
_device_registry: DeviceRegistry | None = None
_file_navigator: RemoteFileNavigator | None = None
_storage_analyzer: StorageAnalyzer | None = None
_transfer_manager: TransferManager | None = None
_scheduler: DeviceScheduler | None = None


async def init_services() -> None:
    """Create and wire up all service singletons."""
    global _executor, _device_registry, _file_navigator
    global _storage_analyzer, _transfer_manager, _scheduler

    from droidscope.services.adb_executor import CommandExecutor, resolve_adb_path
    from droidscope.services.device_registry import DeviceRegistry
    from droidscope.services.file_navigator import RemoteFileNavigator
    from droidscope.services.scheduler import DeviceScheduler
    from droidscope.services.storage_analyzer import StorageAnalyzer
    from droidscope.services.transfer_manager import TransferManager
    from droidscope.services.viewer import ViewerLauncher

    adb_path = resolve_adb_path(settings.adb_path, settings.adb_search_paths)
    _executor = CommandExecutor(adb_path)

    _device_registry = DeviceRegistry(_executor, storage_mount=settings.device_storage_mount)
    _file_navigator = RemoteFileNavigator(
        _executor,
        default_path=settings.default_path,
        browse_roots=settings.browse_roots,
        restricted_prefixes=settings.restricted_prefixes,
        allow_system_access=settings.allow_system_access,
    )
    _storage_analyzer = StorageAnalyzer(
        _executor,
        storage_mount=settings.user_storage_mount,
        large_file_roots=settings.large_file_roots,
        large_file_min_mb=settings.large_file_min_mb,
        large_file_limit=settings.large_file_limit,
        category_scan_root=settings.category_scan_root,
        category_scan_exclude=settings.category_scan_exclude,
        category_file_limit=settings.category_file_limit,
        documents_share=settings.documents_share,
    )
    _transfer_manager = TransferManager(
        _executor,
        settings.cache_dir,
        viewer=ViewerLauncher(settings.viewer_command),
        buffer_seconds=settings.stream_buffer_seconds,
    )
    _transfer_manager.clear_cache()

    await _device_registry.refresh()

    if settings.device_poll_interval_seconds > 0:
        _scheduler = DeviceScheduler(_device_registry, settings.device_poll_interval_seconds)
        _scheduler.start()
    else:
        logger.info("Device polling disabled (DROIDSCOPE_DEVICE_POLL_INTERVAL_SECONDS=0)")


async def shutdown_services() -> None:
    """Stop the scheduler, cancel scans and clear the scratch cache."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
    if _storage_analyzer:
        await _storage_analyzer.shutdown()
    if _transfer_manager:
        _transfer_manager.clear_cache()


def get_executor() -> CommandExecutor:
    if _executor is None:
        raise RuntimeError("Services not initialized - call init_services() first")
    return _executor


def get_device_registry() -> DeviceRegistry:
    if _device_registry is None:
        raise RuntimeError("Services not initialized - call init_services() first")
    return _device_registry


def get_file_navigator() -> RemoteFileNavigator:
    if _file_navigator is None:
        raise RuntimeError("Services not initialized - call init_services() first")
    return _file_navigator


def get_storage_analyzer() -> StorageAnalyzer:
    if _storage_analyzer is None:
        raise RuntimeError("Services not initialized - call init_services() first")
    return _storage_analyzer


def get_transfer_manager() -> TransferManager:
    if _transfer_manager is None:
        raise RuntimeError("Services not initialized - call init_services() first")
    return _transfer_manager
