"""Normalised records handed to filesystem callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .remote_object import RemoteObject

ObjectType = Literal["file", "dir"]


@dataclass(slots=True)
class Metadata:
    """
    Caller-facing metadata for one path.

    Notes:
        - `path` is the virtual (ID based) path of the object.
        - `size` is 0 for directories; `mimetype` is only set for files.
        - `has_dir` is only set for directories when has-dir tracking is on.
        - `visibility` is only set when a write confirmed it.
    """

    path: str
    name: str
    type: ObjectType
    filename: str
    extension: str

    timestamp: Optional[int] = None
    size: int = 0
    mimetype: Optional[str] = None
    has_dir: Optional[bool] = None
    visibility: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ListEntry:
    """One listed object together with its virtual path."""

    path: str
    obj: RemoteObject


@dataclass(slots=True)
class ListResult:
    """
    Result of a (possibly recursive) listing.

    `truncated` is True when paging stopped early because of a remote error;
    `entries` then holds only what was fetched before the failure.
    """

    entries: list[ListEntry] = field(default_factory=list)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def objects(self) -> list[RemoteObject]:
        return [e.obj for e in self.entries]
