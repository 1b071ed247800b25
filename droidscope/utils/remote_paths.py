"""Path conventions for the device filesystem (always POSIX)."""

from __future__ import annotations

import posixpath
import shlex
from collections.abc import Iterable

PARENT_MARKER = ".."


def normalize(path: str) -> str:
    """Collapse duplicate separators and dot segments; keep absolute paths absolute."""
    if not path:
        return "/"
    cleaned = posixpath.normpath(path)
    # normpath keeps a leading "//"
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def join(base: str, name: str) -> str:
    return f"{base}{name}" if base.endswith("/") else f"{base}/{name}"


def parent(path: str) -> str:
    """Strip the last path segment ("/sdcard/DCIM/" -> "/sdcard")."""
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    head = posixpath.dirname(stripped)
    return head or "/"


def basename(path: str) -> str:
    return posixpath.basename(path.rstrip("/"))


def is_root(path: str, roots: Iterable[str]) -> bool:
    target = normalize(path)
    return any(target == normalize(root) for root in roots)


def is_under(path: str, prefixes: Iterable[str]) -> bool:
    """True when path equals one of the prefixes or lies beneath it."""
    target = normalize(path)
    for prefix in prefixes:
        base = normalize(prefix)
        if target == base or target.startswith(base.rstrip("/") + "/"):
            return True
    return False


def quote(path: str) -> str:
    """Quote a path for the device shell that adb joins arguments into."""
    return shlex.quote(path)
