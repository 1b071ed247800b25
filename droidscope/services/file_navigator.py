"""Remote filesystem navigation and mutation with a path access policy."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from droidscope.schemas.files import FileEntry, NavigatorState, SortKey, SortOrder
from droidscope.schemas.operations import OpOutcome, OpResult
from droidscope.services.adb_executor import CommandExecutor
from droidscope.utils.listing import listing_error, parse_directory_listing, sort_listing
from droidscope.utils.remote_paths import is_root, is_under, parent, quote

logger = logging.getLogger(__name__)

RESTRICTED_MESSAGE = (
    "System directories are restricted. Enable system access to browse this folder."
)
# Case-insensitive substrings that mark a failed operation in adb output
FAILURE_MARKERS = (
    "error",
    "failed",
    "no such file",
    "permission denied",
    "read-only file system",
    "cannot",
    "not permitted",
)
# adb ends a transfer with a summary such as "1 file pulled, 0 skipped."
PULL_SUMMARY = re.compile(r"\b\d+ files? pulled\b", re.IGNORECASE)
PUSH_SUMMARY = re.compile(r"\b\d+ files? pushed\b", re.IGNORECASE)


def has_failure_marker(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in FAILURE_MARKERS)


def classify_mutation(output: str, spawned: bool = True) -> OpOutcome:
    """Silent output means success for mkdir/rm/mv/cp; other text is unverifiable."""
    if not spawned or has_failure_marker(output):
        return OpOutcome.FAILURE
    if not output.strip():
        return OpOutcome.SUCCESS
    return OpOutcome.UNKNOWN


def classify_transfer(output: str, summary: re.Pattern[str], spawned: bool = True) -> OpOutcome:
    """Success only when adb printed its transfer summary line."""
    if not spawned:
        return OpOutcome.FAILURE
    if summary.search(output):
        return OpOutcome.SUCCESS
    if has_failure_marker(output):
        return OpOutcome.FAILURE
    return OpOutcome.UNKNOWN


class RemoteFileNavigator:
    """Current directory state over the device filesystem.

    State is published as immutable ``NavigatorState`` snapshots; each
    listing replaces ``current_path`` and ``files`` together.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        *,
        default_path: str = "/sdcard/",
        browse_roots: Sequence[str] = ("/", "/sdcard"),
        restricted_prefixes: Sequence[str] = (),
        allow_system_access: bool = False,
    ):
        self._executor = executor
        self._browse_roots = tuple(browse_roots)
        self._restricted_prefixes = tuple(restricted_prefixes)
        self._state = NavigatorState(
            current_path=default_path,
            allow_system_access=allow_system_access,
        )

    @property
    def state(self) -> NavigatorState:
        return self._state

    @property
    def current_path(self) -> str:
        return self._state.current_path

    @property
    def files(self) -> tuple[FileEntry, ...]:
        return self._state.files

    @property
    def allow_system_access(self) -> bool:
        return self._state.allow_system_access

    def set_system_access(self, enabled: bool) -> NavigatorState:
        logger.info("System access %s", "enabled" if enabled else "disabled")
        return self._publish(allow_system_access=enabled)

    def set_sort(self, key: SortKey, order: SortOrder = SortOrder.ASC) -> NavigatorState:
        """Change the listing order and re-sort the entries already shown."""
        files = self._sorted(list(self.files), key, order)
        return self._publish(sort_key=key, sort_order=order, files=tuple(files))

    @staticmethod
    def _sorted(entries: list[FileEntry], key: SortKey, order: SortOrder) -> list[FileEntry]:
        return sort_listing(entries, key=key, ascending=order == SortOrder.ASC)

    def is_restricted(self, path: str) -> bool:
        return is_under(path, self._restricted_prefixes)

    def is_blocked(self, path: str) -> bool:
        return not self.allow_system_access and self.is_restricted(path)

    def _publish(self, **changes) -> NavigatorState:
        self._state = self._state.model_copy(update=changes)
        return self._state

    # Directory listing

    async def list_directory(self, path: str | None = None) -> NavigatorState:
        target = path or self.current_path
        self._publish(is_loading=True, error_message=None)

        if self.is_blocked(target):
            logger.info("Refused restricted path %s", target)
            return self._publish(is_loading=False, error_message=RESTRICTED_MESSAGE)

        output = await self._executor.execute(["shell", "ls", "-la", quote(target)])
        entries = parse_directory_listing(output, target)

        if not entries:
            error = listing_error(output)
            if error:
                logger.info("Listing %s failed: %s", target, error)
                return self._publish(is_loading=False, error_message=error)

        if not is_root(target, self._browse_roots):
            entries = [FileEntry.parent_of(target), *entries]
        entries = self._sorted(entries, self._state.sort_key, self._state.sort_order)

        logger.debug("Listed %s: %d entries", target, len(entries))
        return self._publish(
            current_path=target,
            files=tuple(entries),
            is_loading=False,
        )

    async def to_parent(self) -> NavigatorState:
        return await self.list_directory(parent(self.current_path))

    async def to_path(self, path: str) -> NavigatorState:
        return await self.list_directory(path)

    async def refresh(self) -> NavigatorState:
        return await self.list_directory(self.current_path)

    # Transfers

    async def pull_file(self, remote_path: str, local_path: str) -> OpResult:
        result = await self._executor.run(["pull", remote_path, local_path])
        outcome = classify_transfer(result.output, PULL_SUMMARY, result.spawned)
        logger.info("pull %s -> %s: %s", remote_path, local_path, outcome.value)
        return OpResult(outcome=outcome, output=result.output)

    async def push_file(self, local_path: str, remote_path: str) -> OpResult:
        result = await self._executor.run(["push", local_path, remote_path])
        outcome = classify_transfer(result.output, PUSH_SUMMARY, result.spawned)
        logger.info("push %s -> %s: %s", local_path, remote_path, outcome.value)
        return OpResult(outcome=outcome, output=result.output)

    # Mutations

    async def _mutate(self, args: list[str]) -> OpResult:
        result = await self._executor.run(["shell", *args])
        outcome = classify_mutation(result.output, result.spawned)
        if outcome == OpOutcome.FAILURE:
            logger.warning("%s failed: %s", args[0], result.output.strip() or "adb unavailable")
        else:
            logger.info("%s: %s", " ".join(args), outcome.value)
        return OpResult(outcome=outcome, output=result.output)

    async def create_directory(self, path: str) -> OpResult:
        return await self._mutate(["mkdir", "-p", quote(path)])

    async def delete_item(self, path: str, is_directory: bool = False) -> OpResult:
        flags = ["-rf"] if is_directory else []
        return await self._mutate(["rm", *flags, quote(path)])

    async def rename_item(self, old_path: str, new_path: str) -> OpResult:
        return await self._mutate(["mv", quote(old_path), quote(new_path)])

    async def copy_item(self, source_path: str, destination_path: str, is_directory: bool = False) -> OpResult:
        flags = ["-r"] if is_directory else []
        return await self._mutate(["cp", *flags, quote(source_path), quote(destination_path)])
