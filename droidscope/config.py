"""DroidScope configuration - Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

import json
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Lists read from the environment as plain comma-separated text
CommaList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "DroidScope"
    debug: bool = False
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: CommaList = [
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # adb location (empty = search adb_search_paths, then rely on PATH)
    adb_path: str = ""
    adb_search_paths: CommaList = [
        "/usr/local/bin/adb",
        "/opt/homebrew/bin/adb",
        "~/Library/Android/sdk/platform-tools/adb",
        "~/Android/Sdk/platform-tools/adb",
    ]

    # Remote filesystem browsing
    default_path: str = "/sdcard/"
    browse_roots: CommaList = ["/", "/sdcard"]
    restricted_prefixes: CommaList = [
        "/system",
        "/data/data",
        "/data/system",
        "/proc",
        "/dev",
        "/sys",
    ]
    allow_system_access: bool = False

    # Storage analysis
    device_storage_mount: str = "/data"
    user_storage_mount: str = "/sdcard"
    large_file_roots: CommaList = [
        "/sdcard/DCIM",
        "/sdcard/Movies",
        "/sdcard/Download",
        "/sdcard/Pictures",
    ]
    large_file_min_mb: int = 10
    large_file_limit: int = 100
    category_scan_root: str = "/sdcard/"
    category_scan_exclude: str = "/sdcard/Android"
    category_file_limit: int = 2000
    documents_share: float = 0.686  # Documents vs Other split of the unmeasured remainder

    # Transfers
    cache_dir: str = str(Path(tempfile.gettempdir()) / "droidscope")
    stream_buffer_seconds: float = 5.0
    viewer_command: str = ""  # e.g. "vlc --file-caching=5000"; empty = platform opener

    # Background device polling (0 = on demand only)
    device_poll_interval_seconds: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DROIDSCOPE_",
        extra="ignore",
    )

    @field_validator(
        "cors_origins",
        "adb_search_paths",
        "browse_roots",
        "restricted_prefixes",
        "large_file_roots",
        mode="before",
    )
    @classmethod
    def split_comma_separated(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str):
            if value.startswith("["):
                return json.loads(value)
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("documents_share")
    @classmethod
    def check_share(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("documents_share must be between 0 and 1")
        return value

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Expand user and make the scratch cache directory absolute."""
        self.cache_dir = str(Path(self.cache_dir).expanduser().resolve())
        self.adb_search_paths = [str(Path(p).expanduser()) for p in self.adb_search_paths]
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
