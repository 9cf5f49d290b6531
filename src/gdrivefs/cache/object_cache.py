"""Session-local caches of Drive objects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from gdrivefs.models import RemoteObject

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ObjectCache:
    """
    In-memory indexes of Drive objects seen during one adapter session.

    Indexes:
        - by_id: object ID (or a requested alias such as "root") -> object
        - by_parent_and_name: (parent ID, name) -> object
        - has_dirs: directory ID -> "has at least one sub-directory"

    The indexes are caches only: they are never complete and may diverge
    from Drive. `put` and `evict` keep both object maps in step; a missing
    has_dirs entry means "unknown". No locking: single-threaded use only.
    """

    by_id: dict[str, RemoteObject] = field(default_factory=dict)
    by_parent_and_name: dict[tuple[str, str], RemoteObject] = field(default_factory=dict)
    has_dirs: dict[str, bool] = field(default_factory=dict)

    # ----------------------------
    # Query helpers
    # ----------------------------
    def get(self, key: str) -> Optional[RemoteObject]:
        return self.by_id.get(key)

    def get_by_name(self, parent_id: str, name: str) -> Optional[RemoteObject]:
        return self.by_parent_and_name.get((parent_id, name))

    def has_dir(self, object_id: str) -> Optional[bool]:
        return self.has_dirs.get(object_id)

    def __contains__(self, key: object) -> bool:
        return key in self.by_id

    def __len__(self) -> int:
        return len(self.by_id)

    # ----------------------------
    # Mutations
    # ----------------------------
    def put(
        self,
        obj: RemoteObject,
        *,
        parent_id: Optional[str] = None,
        name: Optional[str] = None,
        alias: Optional[str] = None,
    ) -> RemoteObject:
        """
        Install (or replace) an object.

        Any existing entry for the same object ID is replaced in both maps so
        that no stale copy survives under another key.
        """
        if not obj.object_id:
            return obj

        self._replace_stale(obj)
        self.by_id[obj.object_id] = obj
        if alias and alias != obj.object_id:
            self.by_id[alias] = obj
        if parent_id is not None:
            self.by_parent_and_name[(parent_id, name if name is not None else obj.name)] = obj
        return obj

    def set_has_dir(self, object_id: str, value: bool) -> None:
        self.has_dirs[object_id] = value

    def evict(self, object_id: str) -> None:
        """Remove every entry referring to object_id from all indexes."""
        for key in [k for k, v in self.by_id.items() if k == object_id or v.object_id == object_id]:
            del self.by_id[key]
        for key in [k for k, v in self.by_parent_and_name.items() if v.object_id == object_id]:
            del self.by_parent_and_name[key]
        self.has_dirs.pop(object_id, None)
        logger.debug("Evicted %s from object cache", object_id)

    def clear(self) -> None:
        self.by_id.clear()
        self.by_parent_and_name.clear()
        self.has_dirs.clear()

    def _replace_stale(self, obj: RemoteObject) -> None:
        for key, cached in list(self.by_id.items()):
            if cached.object_id == obj.object_id and cached is not obj:
                self.by_id[key] = obj
        for key, cached in list(self.by_parent_and_name.items()):
            if cached.object_id == obj.object_id and cached is not obj:
                parent_id, name = key
                if name == obj.name and (not obj.parents or parent_id in obj.parents):
                    self.by_parent_and_name[key] = obj
                else:
                    del self.by_parent_and_name[key]
