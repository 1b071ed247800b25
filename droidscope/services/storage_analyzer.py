"""Storage dashboard - usage stats, category breakdown, large-file scan."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from droidscope.schemas.dashboard import DashboardSnapshot
from droidscope.schemas.files import KIND_EXTENSIONS, FileEntry, FileKind
from droidscope.schemas.storage import CategoryStats, StorageCategory, StorageStats
from droidscope.services.adb_executor import CommandExecutor
from droidscope.utils.listing import (
    parse_app_storage_bytes,
    parse_disk_usage,
    parse_int,
    parse_package_paths,
    parse_stat_scan,
)
from droidscope.utils.remote_paths import quote

logger = logging.getLogger(__name__)

MB = 1024 * 1024

MEDIA_URIS: dict[StorageCategory, str] = {
    StorageCategory.PHOTOS: "content://media/external/images/media",
    StorageCategory.VIDEOS: "content://media/external/video/media",
    StorageCategory.AUDIO: "content://media/external/audio/media",
}

CATEGORY_KINDS: dict[StorageCategory, FileKind] = {
    StorageCategory.PHOTOS: FileKind.IMAGE,
    StorageCategory.VIDEOS: FileKind.VIDEO,
    StorageCategory.AUDIO: FileKind.AUDIO,
    StorageCategory.DOCUMENTS: FileKind.DOCUMENT,
}

SUM_SIZES = "awk -F= '{sum += $2} END {print sum}'"
APP_COUNT_COMMAND = "pm list packages -3 2>/dev/null | wc -l"
APP_SIZES_COMMAND = "dumpsys diskstats | grep -E '^(App Sizes|App Data Sizes|Cache Sizes):'"


def media_size_command(uri: str) -> str:
    return f"content query --uri {uri} --projection _size | {SUM_SIZES}"


def media_count_command(uri: str) -> str:
    return f"content query --uri {uri} --projection _id | wc -l"


def large_file_command(roots: Sequence[str], limit: int) -> str:
    paths = " ".join(quote(r) for r in roots)
    return (
        f"find {paths} -type f -exec stat -c '%s %n' {{}} + 2>/dev/null"
        f" | sort -rn | head -{limit}"
    )


def _iname_clause(extensions: Sequence[str]) -> str:
    return " -o ".join(f"-iname '*.{ext}'" for ext in sorted(extensions))


def category_scan_command(
    category: StorageCategory, root: str, exclude: str, limit: int
) -> str | None:
    """find+stat pipeline listing a category's files, newest first."""
    if category == StorageCategory.OTHER:
        known = sorted(set().union(*KIND_EXTENSIONS.values()))
        match = f"! \\( {_iname_clause(known)} \\)"
    elif category in CATEGORY_KINDS:
        match = f"\\( {_iname_clause(KIND_EXTENSIONS[CATEGORY_KINDS[category]])} \\)"
    else:
        return None
    return (
        f"find {quote(root)} -path {quote(exclude)} -prune -o -type f {match}"
        f" -exec stat -c '%Y %s %n' {{}} + 2>/dev/null | sort -rn | head -{limit}"
    )


def build_category_breakdown(
    used_storage: int | None,
    media_sizes: Mapping[StorageCategory, int | None],
    media_counts: Mapping[StorageCategory, int],
    app_count: int | None,
    app_bytes: int,
    documents_share: float = 0.686,
) -> list[CategoryStats]:
    """Combine measured and estimated category sizes, largest first.

    Photos, Videos and Audio come from the media index. Documents and Other
    split whatever the media does not account for. Once Apps are known,
    Documents is capped at what media and apps leave over and Other takes
    the final remainder, so the sizes add up to ``used_storage`` whenever
    it covers the measured categories.
    """
    sizes = {category: 0 for category in StorageCategory}
    counts = {category: 0 for category in StorageCategory}
    estimated = {StorageCategory.DOCUMENTS, StorageCategory.OTHER}

    categorized = 0
    for category in MEDIA_URIS:
        size = media_sizes.get(category)
        if size is not None:
            sizes[category] = size
            categorized += size
        counts[category] = media_counts.get(category, 0)

    if used_storage is not None:
        remainder = max(0, used_storage - categorized)
        sizes[StorageCategory.DOCUMENTS] = int(remainder * documents_share)
        sizes[StorageCategory.OTHER] = remainder - sizes[StorageCategory.DOCUMENTS]

    if app_count is not None:
        counts[StorageCategory.APPS] = app_count
        if app_bytes > 0:
            sizes[StorageCategory.APPS] = app_bytes
            categorized += app_bytes
        else:
            estimated.add(StorageCategory.APPS)
    else:
        estimated.add(StorageCategory.APPS)

    if used_storage is not None:
        unmeasured = max(0, used_storage - categorized)
        sizes[StorageCategory.DOCUMENTS] = min(sizes[StorageCategory.DOCUMENTS], unmeasured)
        sizes[StorageCategory.OTHER] = unmeasured - sizes[StorageCategory.DOCUMENTS]

    breakdown = [
        CategoryStats(
            category=category,
            size=sizes[category],
            file_count=counts[category],
            estimated=category in estimated,
        )
        for category in StorageCategory
    ]
    return sorted(breakdown, key=lambda c: c.size, reverse=True)


class StorageAnalyzer:
    """Runs the dashboard pipeline and publishes progressive snapshots.

    Stats and categories complete before the dashboard is marked ready; the
    large-file scan then runs as a background task with its own flag.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        *,
        storage_mount: str = "/sdcard",
        large_file_roots: Sequence[str] = (
            "/sdcard/DCIM",
            "/sdcard/Movies",
            "/sdcard/Download",
            "/sdcard/Pictures",
        ),
        large_file_min_mb: int = 10,
        large_file_limit: int = 100,
        category_scan_root: str = "/sdcard/",
        category_scan_exclude: str = "/sdcard/Android",
        category_file_limit: int = 2000,
        documents_share: float = 0.686,
    ):
        self._executor = executor
        self._storage_mount = storage_mount
        self._large_file_roots = tuple(large_file_roots)
        self._large_file_min_bytes = large_file_min_mb * MB
        self._large_file_limit = large_file_limit
        self._category_scan_root = category_scan_root
        self._category_scan_exclude = category_scan_exclude
        self._category_file_limit = category_file_limit
        self._documents_share = documents_share
        self._snapshot = DashboardSnapshot()
        self._large_files_task: asyncio.Task | None = None

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    def _publish(self, **changes) -> DashboardSnapshot:
        changes["version"] = self._snapshot.version + 1
        self._snapshot = self._snapshot.model_copy(update=changes)
        return self._snapshot

    async def analyze(self) -> DashboardSnapshot:
        """Run stats and category phases, then start the large-file scan."""
        if self._snapshot.is_analyzing:
            logger.info("Storage analysis already running")
            return self._snapshot

        started = time.monotonic()
        self._publish(is_analyzing=True, is_ready=False, error_message=None)

        stats = await self.fetch_storage_stats()
        self._publish(storage_stats=stats)
        if stats is None:
            logger.warning("No usable df output for %s", self._storage_mount)
        else:
            logger.info("Storage: %s used of %s", stats.formatted_used, stats.formatted_total)

        breakdown = await self.analyze_categories(stats.used_storage if stats else None)
        for cat in breakdown:
            logger.debug("  %s: %s (%d items)", cat.category.value, cat.formatted_size, cat.file_count)

        self._publish(
            is_analyzing=False,
            is_ready=True,
            category_breakdown=tuple(breakdown),
            analyzed_at=datetime.now(timezone.utc),
            error_message=None if stats else "Could not read storage usage from device",
        )
        logger.info("Dashboard ready in %.1fs", time.monotonic() - started)

        self._start_large_file_scan()
        return self._snapshot

    async def fetch_storage_stats(self) -> StorageStats | None:
        output = await self._executor.execute(["shell", "df", quote(self._storage_mount)])
        usage = parse_disk_usage(output)
        if usage is None:
            return None
        return StorageStats(
            total_storage=usage.total_bytes,
            used_storage=usage.used_bytes,
            free_storage=usage.free_bytes,
        )

    async def analyze_categories(self, used_storage: int | None) -> list[CategoryStats]:
        media_sizes: dict[StorageCategory, int | None] = {}
        media_counts: dict[StorageCategory, int] = {}
        for category, uri in MEDIA_URIS.items():
            media_sizes[category] = parse_int(await self._executor.shell(media_size_command(uri)))
            count = parse_int(await self._executor.shell(media_count_command(uri)))
            # wc -l counts one line more than there are rows
            media_counts[category] = max(0, count - 1) if count is not None else 0

        app_count = parse_int(await self._executor.shell(APP_COUNT_COMMAND))
        app_bytes = 0
        if app_count is not None:
            app_bytes = parse_app_storage_bytes(await self._executor.shell(APP_SIZES_COMMAND))
            if app_bytes <= 0:
                logger.warning("Could not parse app sizes from dumpsys diskstats")

        return build_category_breakdown(
            used_storage,
            media_sizes,
            media_counts,
            app_count,
            app_bytes,
            self._documents_share,
        )

    # Large files

    def _start_large_file_scan(self) -> None:
        if self._large_files_task is not None and not self._large_files_task.done():
            logger.info("Large-file scan still running, not restarting")
            return
        self._publish(is_analyzing_large_files=True)
        self._large_files_task = asyncio.create_task(self._run_large_file_scan())

    async def _run_large_file_scan(self) -> None:
        started = time.monotonic()
        try:
            files = await self.find_large_files()
            self._publish(large_files=tuple(files))
            logger.info(
                "Found %d files >= %d MB in %.1fs",
                len(files),
                self._large_file_min_bytes // MB,
                time.monotonic() - started,
            )
        finally:
            self._publish(is_analyzing_large_files=False)

    async def find_large_files(self) -> list[FileEntry]:
        output = await self._executor.shell(
            large_file_command(self._large_file_roots, self._large_file_limit)
        )
        entries = sorted(parse_stat_scan(output), key=lambda e: e.size, reverse=True)
        return [e for e in entries[: self._large_file_limit] if e.size >= self._large_file_min_bytes]

    async def wait_for_large_files(self) -> None:
        if self._large_files_task is not None:
            await self._large_files_task

    def get_large_files(self, offset: int, limit: int) -> list[FileEntry]:
        files = self._snapshot.large_files
        if offset < 0 or limit <= 0 or offset >= len(files):
            return []
        return list(files[offset:offset + limit])

    # Category drill-down

    async def get_files_for_category(self, category: StorageCategory) -> list[FileEntry]:
        if category == StorageCategory.APPS:
            return await self.get_installed_apps()

        command = category_scan_command(
            category,
            self._category_scan_root,
            self._category_scan_exclude,
            self._category_file_limit,
        )
        if command is None:
            return []
        output = await self._executor.shell(command)
        files = parse_stat_scan(output, with_mtime=True)
        files.sort(key=lambda e: e.modified_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        logger.info("Category %s: %d files", category.value, len(files))
        return files[: self._category_file_limit]

    async def get_installed_apps(self) -> list[FileEntry]:
        output = await self._executor.execute(["shell", "pm", "list", "packages", "-f"])
        return parse_package_paths(output)

    async def shutdown(self) -> None:
        if self._large_files_task is not None and not self._large_files_task.done():
            self._large_files_task.cancel()
            try:
                await self._large_files_task
            except asyncio.CancelledError:
                pass
        self._large_files_task = None
