"""Hand a local file to an external viewer process."""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def platform_opener() -> list[str]:
    if sys.platform == "darwin":
        return ["open"]
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", "/wait", ""]
    return ["xdg-open"]


class ViewerLauncher:
    """Starts the configured viewer (e.g. ``vlc --file-caching=5000``) or the platform opener."""

    def __init__(self, command: str = ""):
        self._command = shlex.split(command) if command else platform_opener()

    @property
    def command(self) -> list[str]:
        return list(self._command)

    async def launch(self, path: str | Path) -> asyncio.subprocess.Process | None:
        args = [*self._command, str(path)]
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error("Viewer %s failed to start: %s", self._command[0], e)
            return None
        logger.info("Viewer launched: %s", " ".join(args))
        return process
