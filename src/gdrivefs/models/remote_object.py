"""Data model for Drive objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gdrivefs.util.mime import is_folder


@dataclass(slots=True, frozen=True)
class Permission:
    """A single Drive permission entry (principal type + role)."""

    type: str
    role: str
    permission_id: Optional[str] = None


@dataclass(slots=True)
class RemoteObject:
    """
    Represents a Drive item as returned by the remote store.

    Notes:
        - `parents` may hold more than one ID; the hierarchy is a DAG.
        - `extra` holds the values of configured additional fetch fields.
    """

    object_id: str
    name: str
    mime_type: str
    parents: list[str] = field(default_factory=list)

    size: Optional[int] = None
    modified_time: Optional[datetime] = None
    permissions: list[Permission] = field(default_factory=list)
    web_content_link: Optional[str] = None
    web_view_link: Optional[str] = None
    trashed: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_dir(self) -> bool:
        return is_folder(self.mime_type)
