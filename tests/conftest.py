"""Test fixtures - scripted adb executor and FastAPI test client."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from droidscope.api.deps import require_device
from droidscope.main import create_app
from droidscope.schemas.device import DeviceInfo
from droidscope.services.adb_executor import CommandResult


class FakeExecutor:
    """Stands in for CommandExecutor; answers by substring match on the joined args.

    Responses are checked in insertion order, first match wins. Unmatched
    commands print nothing. Every call is recorded in ``calls``.
    """

    adb_path = "/fake/adb"

    def __init__(self, responses: dict[str, str] | None = None, *, spawned: bool = True):
        self.responses = dict(responses or {})
        self.spawned = spawned
        self.calls: list[list[str]] = []
        self.spawn_result = None

    def _lookup(self, args: Sequence[str]) -> str:
        line = " ".join(args)
        for key, output in self.responses.items():
            if key in line:
                return output
        return ""

    async def run(self, args: Sequence[str]) -> CommandResult:
        self.calls.append(list(args))
        if not self.spawned:
            return CommandResult(output="", spawned=False)
        return CommandResult(output=self._lookup(args), spawned=True, returncode=0)

    async def execute(self, args: Sequence[str]) -> str:
        return (await self.run(args)).output

    async def shell(self, command: str) -> str:
        return await self.execute(["shell", command])

    async def spawn(self, args: Sequence[str]):
        self.calls.append(list(args))
        return self.spawn_result

    def joined_calls(self) -> list[str]:
        return [" ".join(c) for c in self.calls]


class PullingExecutor(FakeExecutor):
    """Writes the pulled file locally, like adb pull would."""

    def __init__(self, *, write: bool = True, output: str = "1 file pulled, 0 skipped.\n"):
        super().__init__()
        self.write = write
        self.output = output

    async def run(self, args: Sequence[str]) -> CommandResult:
        self.calls.append(list(args))
        if args[0] == "pull" and self.write:
            Path(args[2]).write_bytes(b"\xff" * 2048)
        return CommandResult(output=self.output, spawned=True, returncode=0)

    async def spawn(self, args: Sequence[str]):
        self.calls.append(list(args))
        if self.spawn_result is not None and self.write:
            Path(args[2]).write_bytes(b"\x00" * 1024)
        return self.spawn_result


@pytest.fixture
def device_info():
    return DeviceInfo(
        is_connected=True,
        serial="R58M123ABC",
        model="SM-G991B",
        manufacturer="samsung",
        android_version="14",
        total_storage_gb=128.0,
        available_storage_gb=64.0,
    )


@pytest_asyncio.fixture
async def client():
    """Async test client; services are patched per test, lifespan does not run."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def connected(client, device_info):
    """Bypass the device gate for routes that need a phone."""
    client._transport.app.dependency_overrides[require_device] = lambda: device_info
    return device_info
