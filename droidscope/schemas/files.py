"""Remote file schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from droidscope.schemas.storage import StorageCategory
from droidscope.utils.formatting import format_date, format_file_size
from droidscope.utils.remote_paths import PARENT_MARKER, parent


class FileKind(str, Enum):
    FOLDER = "folder"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    APK = "apk"
    ARCHIVE = "archive"
    OTHER = "other"


class SortKey(str, Enum):
    NAME = "name"
    SIZE = "size"
    DATE = "date"
    TYPE = "type"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


KIND_EXTENSIONS: dict[FileKind, frozenset[str]] = {
    FileKind.IMAGE: frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp", "heic", "dng", "raw"}),
    FileKind.VIDEO: frozenset({"mp4", "avi", "mkv", "mov", "wmv", "flv", "webm", "3gp"}),
    FileKind.AUDIO: frozenset({"mp3", "wav", "flac", "aac", "ogg", "m4a", "wma"}),
    FileKind.DOCUMENT: frozenset(
        {"pdf", "doc", "docx", "txt", "rtf", "odt", "xls", "xlsx", "ppt", "pptx"}
    ),
    FileKind.APK: frozenset({"apk"}),
    FileKind.ARCHIVE: frozenset({"zip", "rar", "7z", "tar", "gz", "bz2"}),
}

KIND_CATEGORY: dict[FileKind, StorageCategory] = {
    FileKind.IMAGE: StorageCategory.PHOTOS,
    FileKind.VIDEO: StorageCategory.VIDEOS,
    FileKind.AUDIO: StorageCategory.AUDIO,
    FileKind.DOCUMENT: StorageCategory.DOCUMENTS,
    FileKind.APK: StorageCategory.APPS,
}


def kind_for_name(name: str, is_directory: bool = False) -> FileKind:
    if is_directory:
        return FileKind.FOLDER
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return FileKind.OTHER
    ext = ext.lower()
    for kind, extensions in KIND_EXTENSIONS.items():
        if ext in extensions:
            return kind
    return FileKind.OTHER


class FileEntry(BaseModel):
    """One remote file or directory.

    Identity is the synthetic ``id``; two fetches of the same path give two
    distinct records.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    path: str
    size: int = 0
    is_directory: bool = False
    permissions: str = ""
    modified_at: datetime | None = None
    owner: str | None = None
    link_target: str | None = None

    @property
    def is_parent_marker(self) -> bool:
        return self.name == PARENT_MARKER

    @computed_field
    @property
    def kind(self) -> FileKind:
        return kind_for_name(self.name, self.is_directory)

    @computed_field
    @property
    def category(self) -> StorageCategory:
        return KIND_CATEGORY.get(self.kind, StorageCategory.OTHER)

    @computed_field
    @property
    def formatted_size(self) -> str:
        if self.is_directory:
            return "--"
        return format_file_size(self.size)

    @computed_field
    @property
    def formatted_date(self) -> str:
        return format_date(self.modified_at)

    @classmethod
    def parent_of(cls, path: str) -> "FileEntry":
        """Synthetic ``..`` entry pointing at the parent of ``path``."""
        return cls(
            name=PARENT_MARKER,
            path=parent(path),
            is_directory=True,
            permissions="drwxr-xr-x",
        )


class NavigatorState(BaseModel):
    """Published snapshot of the remote file navigator."""

    model_config = ConfigDict(frozen=True)

    current_path: str
    files: tuple[FileEntry, ...] = ()
    is_loading: bool = False
    error_message: str | None = None
    allow_system_access: bool = False
    sort_key: SortKey = SortKey.NAME
    sort_order: SortOrder = SortOrder.ASC


class PathRequest(BaseModel):
    path: str


class MoveRequest(BaseModel):
    source_path: str
    destination_path: str
    is_directory: bool = False


class TransferRequest(BaseModel):
    remote_path: str
    local_path: str


class SystemAccessRequest(BaseModel):
    enabled: bool
