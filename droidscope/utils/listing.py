"""Parsers for adb's line-oriented text output.

Every grammar here is whitespace-delimited with a trailing free-form field
(file names and paths may contain spaces, so they are rebuilt by joining the
remaining tokens). Parsing never raises: a short line is dropped, a bad
number becomes 0 and a bad date becomes ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from droidscope.schemas.files import FileEntry, SortKey
from droidscope.utils.remote_paths import PARENT_MARKER, basename, join

LS_DATE_FORMAT = "%Y-%m-%d %H:%M"
LS_MIN_FIELDS = 8
DF_MIN_FIELDS = 4
DF_DEVICE_TOKENS = ("/dev/", "/storage")
DEVICE_STATE_TOKEN = "\tdevice"
PACKAGE_PREFIX = "package:"
SYMLINK_ARROW = " -> "
APP_SIZE_LINE = re.compile(r"^(App Sizes|App Data Sizes|Cache Sizes):\s*\[(.*)\]")


@dataclass(frozen=True)
class DiskUsage:
    """One ``df`` data row, converted from 1K blocks to bytes."""

    filesystem: str
    total_bytes: int
    used_bytes: int
    free_bytes: int


def _to_int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0


def parse_int(output: str) -> int | None:
    """Parse a single number printed by a remote pipeline (``wc -l``, ``awk``).

    awk switches to ``%g`` notation for large sums, so float text is accepted
    and truncated.
    """
    text = output.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


def parse_connected_serials(output: str) -> list[str]:
    """Serials from ``adb devices`` whose state is ``device``."""
    serials = []
    for line in output.splitlines():
        if DEVICE_STATE_TOKEN not in line:
            continue
        serial, _, state = line.partition("\t")
        if state.strip() == "device":
            serials.append(serial.strip())
    return serials


def _sort_value(entry: FileEntry, key: SortKey):
    if key == SortKey.SIZE:
        return entry.size
    if key == SortKey.DATE:
        return entry.modified_at.timestamp() if entry.modified_at else float("-inf")
    if key == SortKey.TYPE:
        return entry.kind.value
    return entry.name.casefold()


def sort_listing(
    entries: list[FileEntry],
    key: SortKey = SortKey.NAME,
    ascending: bool = True,
) -> list[FileEntry]:
    """Order a listing by ``key``.

    The parent marker stays first and directories stay ahead of files in
    either direction; only the order within each group follows ``key``.
    Ties fall back to the case-insensitive name.
    """
    markers = [e for e in entries if e.is_parent_marker]
    directories = [e for e in entries if e.is_directory and not e.is_parent_marker]
    files = [e for e in entries if not e.is_directory]

    def ordered(group: list[FileEntry]) -> list[FileEntry]:
        by_name = sorted(group, key=lambda e: e.name.casefold())
        if key == SortKey.NAME:
            return by_name if ascending else by_name[::-1]
        return sorted(by_name, key=lambda e: _sort_value(e, key), reverse=not ascending)

    return markers + ordered(directories) + ordered(files)


def _parse_ls_date(date_token: str, time_token: str) -> datetime | None:
    try:
        return datetime.strptime(f"{date_token} {time_token}", LS_DATE_FORMAT)
    except ValueError:
        return None


def parse_ls_line(line: str, base_path: str) -> FileEntry | None:
    """Parse one ``ls -la`` line.

    ``-rw-rw---- 1 root sdcard_rw 1234567 2024-01-15 10:30 photo.jpg``
    """
    if not line.strip() or line.startswith("total"):
        return None

    tokens = line.split()
    if len(tokens) < LS_MIN_FIELDS:
        return None

    permissions = tokens[0]
    owner = tokens[2]
    name = " ".join(tokens[7:])
    link_target = None
    if permissions.startswith("l") and SYMLINK_ARROW in name:
        name, link_target = name.split(SYMLINK_ARROW, 1)

    if name in (".", PARENT_MARKER):
        return None

    return FileEntry(
        name=name,
        path=join(base_path, name),
        size=_to_int(tokens[4]),
        is_directory=permissions.startswith("d"),
        permissions=permissions,
        modified_at=_parse_ls_date(tokens[5], tokens[6]),
        owner=owner,
        link_target=link_target,
    )


def parse_directory_listing(output: str, base_path: str) -> list[FileEntry]:
    entries = []
    for line in output.splitlines():
        entry = parse_ls_line(line, base_path)
        if entry is not None:
            entries.append(entry)
    return sort_listing(entries)


def listing_error(output: str) -> str | None:
    """First ``ls:`` diagnostic in the output, e.g. a missing path."""
    for line in output.splitlines():
        if line.startswith("ls:"):
            return line.strip()
    return None


def parse_disk_usage(output: str, *, match_device_token: bool = True) -> DiskUsage | None:
    """Parse ``df`` output.

    Filesystem 1K-blocks Used Available Use% Mounted on
    /dev/fuse  115462124 106726360 8604692 93% /storage/emulated

    With ``match_device_token`` the data row is the first line mentioning a
    device or storage mount, otherwise it is simply the second line.
    """
    lines = output.splitlines()
    if match_device_token:
        data_line = next(
            (line for line in lines if any(tok in line for tok in DF_DEVICE_TOKENS)),
            "",
        )
    else:
        data_line = lines[1] if len(lines) > 1 else ""

    tokens = data_line.split()
    if len(tokens) < DF_MIN_FIELDS:
        return None

    return DiskUsage(
        filesystem=tokens[0],
        total_bytes=_to_int(tokens[1]) * 1024,
        used_bytes=_to_int(tokens[2]) * 1024,
        free_bytes=_to_int(tokens[3]) * 1024,
    )


def parse_stat_scan(output: str, *, with_mtime: bool = False) -> list[FileEntry]:
    """Parse ``stat -c '%s %n'`` or ``stat -c '%Y %s %n'`` lines."""
    numeric_fields = 2 if with_mtime else 1
    entries = []
    for line in output.splitlines():
        tokens = line.split(" ")
        if len(tokens) <= numeric_fields:
            continue
        path = " ".join(tokens[numeric_fields:])
        if not path.startswith("/"):
            continue

        modified_at = None
        if with_mtime:
            try:
                modified_at = datetime.fromtimestamp(float(tokens[0]), tz=timezone.utc)
            except (ValueError, OverflowError, OSError):
                modified_at = None

        entries.append(
            FileEntry(
                name=basename(path),
                path=path,
                size=_to_int(tokens[numeric_fields - 1]),
                modified_at=modified_at,
            )
        )
    return entries


def parse_package_paths(output: str) -> list[FileEntry]:
    """Parse ``pm list packages -f``: ``package:/data/app/foo/base.apk=com.example.foo``."""
    apps = []
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith(PACKAGE_PREFIX):
            continue
        # Split on the last "=": newer install paths contain base64 "==" runs
        path, sep, package = line[len(PACKAGE_PREFIX):].rpartition("=")
        if not sep or not path or not package:
            continue
        apps.append(FileEntry(name=package, path=path, permissions="rwxr-xr-x", owner="system"))
    return sorted(apps, key=lambda e: e.name)


def parse_app_storage_bytes(output: str) -> int:
    """Sum the app, app data and cache size lists from ``dumpsys diskstats``."""
    total = 0
    for line in output.splitlines():
        match = APP_SIZE_LINE.match(line.strip())
        if not match:
            continue
        for token in match.group(2).split(","):
            total += _to_int(token.strip())
    return total
