"""adb subprocess execution - combined output capture that never raises."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ADB_NAME = "adb.exe" if os.name == "nt" else "adb"
SDK_ENV_VARS = ("ANDROID_HOME", "ANDROID_SDK_ROOT")


def resolve_adb_path(override: str = "", search_paths: Iterable[str] = ()) -> str:
    """Pick the adb executable once at startup.

    An explicit override wins, then the first existing candidate, then the
    bare name so the process search path decides.
    """
    if override:
        return override

    candidates = [Path(p).expanduser() for p in search_paths]
    for var in SDK_ENV_VARS:
        sdk_root = os.environ.get(var)
        if sdk_root:
            candidates.append(Path(sdk_root) / "platform-tools" / ADB_NAME)

    for candidate in candidates:
        if candidate.is_file():
            logger.info("Using adb at %s", candidate)
            return str(candidate)

    logger.info("adb not found in search list, relying on PATH")
    return ADB_NAME


@dataclass(frozen=True)
class CommandResult:
    output: str
    spawned: bool
    returncode: int | None = None


class CommandExecutor:
    """Runs adb with the given arguments, one process per call."""

    def __init__(self, adb_path: str):
        self._adb_path = adb_path

    @property
    def adb_path(self) -> str:
        return self._adb_path

    async def run(self, args: Sequence[str]) -> CommandResult:
        """Run adb to completion; stdout and stderr share one buffer."""
        logger.debug("adb %s", " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                self._adb_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
            stdout, _ = await process.communicate()
        except (FileNotFoundError, PermissionError) as e:
            logger.warning("adb not runnable (%s): %s", self._adb_path, e)
            return CommandResult(output="", spawned=False)
        except OSError as e:
            logger.error("adb %s failed to start: %s", args[0] if args else "", e)
            return CommandResult(output="", spawned=False)

        return CommandResult(
            output=stdout.decode("utf-8", errors="replace"),
            spawned=True,
            returncode=process.returncode,
        )

    async def execute(self, args: Sequence[str]) -> str:
        """Run adb and return its combined output, or "" when it cannot run."""
        result = await self.run(args)
        return result.output

    async def shell(self, command: str) -> str:
        """Run a pipeline in the device shell (adb joins it into ``sh -c``)."""
        return await self.execute(["shell", command])

    async def spawn(self, args: Sequence[str]) -> asyncio.subprocess.Process | None:
        """Start adb without waiting, for long transfers the caller supervises."""
        logger.debug("adb (background) %s", " ".join(args))
        try:
            return await asyncio.create_subprocess_exec(
                self._adb_path,
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("adb background start failed (%s): %s", self._adb_path, e)
            return None
