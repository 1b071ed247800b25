"""Scratch-cache backed preview and streaming of remote files."""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from contextlib import suppress
from pathlib import Path

import psutil

from droidscope.schemas.cache import CacheStats
from droidscope.schemas.operations import OpOutcome
from droidscope.schemas.transfers import (
    TransferPurpose,
    TransferResult,
    TransferState,
    TransferStatus,
)
from droidscope.services.adb_executor import CommandExecutor
from droidscope.services.file_navigator import PULL_SUMMARY, classify_transfer
from droidscope.services.viewer import ViewerLauncher
from droidscope.utils.remote_paths import basename

logger = logging.getLogger(__name__)

TERMINATE_GRACE_SECONDS = 3.0


class ScratchFile:
    """A pulled file inside its own per-operation scratch directory."""

    def __init__(self, directory: Path, remote_path: str):
        self.directory = directory
        self.remote_path = remote_path
        self.path = directory / (basename(remote_path) or "download")

    def release(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)
        logger.debug("Released scratch %s", self.directory)


async def _stop_process(process: asyncio.subprocess.Process | None, label: str) -> None:
    """Terminate a still-running process, killing it if it ignores SIGTERM."""
    if process is None or process.returncode is not None:
        return
    logger.info("Terminating %s (pid %s)", label, process.pid)
    with suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE_SECONDS)
    except asyncio.TimeoutError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()


class TransferManager:
    """Pulls remote files into transient scratch space for preview and streaming.

    Each purpose has its own namespace under the cache root and each
    operation its own subdirectory, so concurrent pulls of files sharing a
    basename cannot collide. One operation per purpose runs at a time.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        cache_root: str | Path,
        *,
        viewer: ViewerLauncher | None = None,
        buffer_seconds: float = 5.0,
    ):
        self._executor = executor
        self._cache_root = Path(cache_root)
        self._viewer = viewer or ViewerLauncher()
        self._buffer_seconds = buffer_seconds
        self._active: set[TransferPurpose] = set()
        self._cancel_stream = asyncio.Event()
        self._last_stream: TransferResult | None = None

    @property
    def cache_root(self) -> Path:
        return self._cache_root

    def is_busy(self, purpose: TransferPurpose) -> bool:
        return purpose in self._active

    def status(self) -> TransferStatus:
        return TransferStatus(
            active=sorted(self._active, key=lambda p: p.value),
            last_stream=self._last_stream,
        )

    def _new_scratch(self, purpose: TransferPurpose, remote_path: str) -> ScratchFile:
        directory = self._cache_root / purpose.value / uuid.uuid4().hex
        directory.mkdir(parents=True, exist_ok=True)
        scratch = ScratchFile(directory, remote_path)
        scratch.path.unlink(missing_ok=True)
        return scratch

    def _scratch_failed(
        self, purpose: TransferPurpose, remote_path: str, error: OSError
    ) -> TransferResult:
        logger.error("Cannot create %s scratch under %s: %s", purpose.value, self._cache_root, error)
        return TransferResult(
            status=TransferState.FAILED,
            purpose=purpose,
            remote_path=remote_path,
            message=f"Scratch space unavailable: {error}",
        )

    def _busy(self, purpose: TransferPurpose, remote_path: str) -> TransferResult:
        logger.info("%s already in progress, ignoring %s", purpose.value, remote_path)
        return TransferResult(
            status=TransferState.BUSY,
            purpose=purpose,
            remote_path=remote_path,
            message=f"A {purpose.value} is already in progress",
        )

    # Preview

    async def fetch_preview(self, remote_path: str) -> ScratchFile | TransferResult:
        """Pull a whole file; the caller must ``release()`` the returned scratch."""
        purpose = TransferPurpose.PREVIEW
        if self.is_busy(purpose):
            return self._busy(purpose, remote_path)

        self._active.add(purpose)
        try:
            try:
                scratch = self._new_scratch(purpose, remote_path)
            except OSError as e:
                return self._scratch_failed(purpose, remote_path, e)
            result = await self._executor.run(["pull", remote_path, str(scratch.path)])
            outcome = classify_transfer(result.output, PULL_SUMMARY, result.spawned)
            if outcome == OpOutcome.FAILURE or not scratch.path.is_file():
                scratch.release()
                logger.warning("Preview pull of %s failed: %s", remote_path, result.output.strip())
                return TransferResult(
                    status=TransferState.FAILED,
                    purpose=purpose,
                    remote_path=remote_path,
                    message=result.output.strip() or "adb unavailable",
                )
            logger.info("Pulled %s for preview (%s)", remote_path, outcome.value)
            return scratch
        finally:
            self._active.discard(purpose)

    async def preview_file(self, remote_path: str) -> TransferResult:
        """Pull, open in the viewer, wait for it to exit, then drop the scratch copy."""
        fetched = await self.fetch_preview(remote_path)
        if isinstance(fetched, TransferResult):
            return fetched

        try:
            viewer = await self._viewer.launch(fetched.path)
            if viewer is not None:
                await viewer.wait()
            return TransferResult(
                status=TransferState.COMPLETED if viewer else TransferState.FAILED,
                purpose=TransferPurpose.PREVIEW,
                remote_path=remote_path,
                local_path=str(fetched.path),
                pull_completed=True,
                message=None if viewer else "Viewer could not be started",
            )
        finally:
            fetched.release()

    # Streaming

    def cancel_stream(self) -> bool:
        if not self.is_busy(TransferPurpose.STREAM):
            return False
        logger.info("Stream cancel requested")
        self._cancel_stream.set()
        return True

    async def stream_file(self, remote_path: str) -> TransferResult:
        """Play a file while it is still downloading.

        The pull runs in the background; after the buffer delay the viewer
        opens the growing file. When the viewer exits (or the stream is
        cancelled) a still-running pull is terminated and the scratch copy
        deleted.
        """
        purpose = TransferPurpose.STREAM
        if self.is_busy(purpose):
            return self._busy(purpose, remote_path)

        try:
            scratch = self._new_scratch(purpose, remote_path)
        except OSError as e:
            self._last_stream = self._scratch_failed(purpose, remote_path, e)
            return self._last_stream

        self._active.add(purpose)
        self._cancel_stream.clear()
        pull: asyncio.subprocess.Process | None = None
        viewer: asyncio.subprocess.Process | None = None
        status = TransferState.FAILED
        message: str | None = None
        try:
            pull = await self._executor.spawn(["pull", remote_path, str(scratch.path)])
            if pull is None:
                message = "adb unavailable"
            else:
                logger.info("Buffering %s for %.1fs", remote_path, self._buffer_seconds)
                if await self._wait_cancelled(self._buffer_seconds):
                    status = TransferState.CANCELLED
                elif pull.returncode is not None and not scratch.path.exists():
                    message = "Pull ended before any data arrived"
                else:
                    viewer = await self._viewer.launch(scratch.path)
                    if viewer is None:
                        message = "Viewer could not be started"
                    else:
                        status = await self._watch_viewer(viewer)
        finally:
            pull_completed = pull is not None and pull.returncode == 0
            await _stop_process(pull, "background pull")
            if status != TransferState.COMPLETED:
                await _stop_process(viewer, "viewer")
            scratch.release()
            self._active.discard(purpose)

        logger.info("Stream of %s finished: %s", remote_path, status.value)
        self._last_stream = TransferResult(
            status=status,
            purpose=purpose,
            remote_path=remote_path,
            local_path=str(scratch.path),
            pull_completed=pull_completed,
            message=message,
        )
        return self._last_stream

    async def _wait_cancelled(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._cancel_stream.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _watch_viewer(self, viewer: asyncio.subprocess.Process) -> TransferState:
        viewer_exit = asyncio.ensure_future(viewer.wait())
        cancelled = asyncio.ensure_future(self._cancel_stream.wait())
        try:
            await asyncio.wait({viewer_exit, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (viewer_exit, cancelled):
                if not task.done():
                    task.cancel()
        if viewer_exit.done() and not viewer_exit.cancelled():
            return TransferState.COMPLETED
        return TransferState.CANCELLED

    # Cache housekeeping

    def cache_stats(self) -> CacheStats:
        total_files = 0
        total_size = 0
        if self._cache_root.exists():
            for f in self._cache_root.rglob("*"):
                if f.is_file():
                    total_files += 1
                    total_size += f.stat().st_size

        probe = self._cache_root if self._cache_root.exists() else self._cache_root.parent
        disk = psutil.disk_usage(str(probe))
        return CacheStats(
            root=str(self._cache_root),
            total_files=total_files,
            total_size_bytes=total_size,
            disk_free_bytes=disk.free,
            disk_usage_percent=disk.percent,
            active_transfers=len(self._active),
        )

    def clear_cache(self) -> None:
        """Remove leftovers of earlier runs; only idle namespaces are touched."""
        for purpose in TransferPurpose:
            if self.is_busy(purpose):
                continue
            shutil.rmtree(self._cache_root / purpose.value, ignore_errors=True)
        logger.debug("Scratch cache cleared at %s", self._cache_root)
