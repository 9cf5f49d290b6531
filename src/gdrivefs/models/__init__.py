"""Public model exports for gdrivefs."""

from __future__ import annotations

from .metadata import ListEntry, ListResult, Metadata, ObjectType
from .remote_object import Permission, RemoteObject

__all__ = [
    "RemoteObject",
    "Permission",
    "Metadata",
    "ObjectType",
    "ListEntry",
    "ListResult",
]
