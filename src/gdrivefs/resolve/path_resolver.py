"""Path -> Drive object resolution backed by the object cache."""

from __future__ import annotations

import logging
from typing import Optional

from gdrivefs.cache import ObjectCache
from gdrivefs.config import AdapterOptions
from gdrivefs.controller import DriveClient, build_parent_query
from gdrivefs.controller.fields import PROBE_FIELDS
from gdrivefs.errors import FetchError, GDriveFsError, NetworkError, NotFoundError
from gdrivefs.models import RemoteObject
from gdrivefs.util.mime import FOLDER_MIME

from .paths import split_path

logger = logging.getLogger(__name__)


class PathResolver:
    """
    Resolve virtual paths to Drive objects.

    Lookup order for the leaf segment:
        1. cached object keyed by ID (a path segment IS an object ID)
        2. cached object keyed by (parent ID, name)
        3. remote get-by-ID
    """

    def __init__(
        self,
        client: DriveClient,
        cache: ObjectCache,
        options: Optional[AdapterOptions] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._options = options or AdapterOptions()

    @property
    def root_id(self) -> str:
        return self._options.root_id

    def split(self, path: str, *, parent_only: bool = True) -> tuple[str, str]:
        return split_path(
            path,
            self.root_id,
            slash_substitute=self._options.slash_substitute,
            parent_only=parent_only,
        )

    def resolve(self, path: str, *, check_dir: bool = False) -> Optional[RemoteObject]:
        """
        Return the object at path, or None when it does not exist.

        Raises:
            NetworkError: transport failure.
            FetchError: any other remote failure than "not found".
        """
        parent_id, leaf = self.split(path)

        cached = self._cache.get(leaf)
        if cached is not None:
            logger.debug("Cache hit by id: %s", leaf)
            return cached
        cached = self._cache.get_by_name(parent_id, leaf)
        if cached is not None:
            logger.debug("Cache hit by name: %s/%s", parent_id, leaf)
            return cached

        try:
            obj = self._client.get(leaf)
        except NotFoundError:
            logger.debug("Not found: %s", path)
            return None
        except NetworkError:
            raise
        except GDriveFsError as exc:
            raise FetchError(
                "Failed to fetch object",
                details={"path": path, "object_id": leaf},
                cause=exc,
            ) from exc

        if obj.trashed:
            logger.debug("Ignoring trashed object: %s", obj.object_id)
            return None

        self._cache.put(obj, alias=leaf)
        if check_dir and self._options.use_has_dir and obj.is_dir:
            self.probe_has_dir(obj.object_id)
        return obj

    def probe_has_dir(self, object_id: str) -> Optional[bool]:
        """
        Ask Drive whether object_id has any sub-directory (one page of one).

        Failures leave the has-dir status unknown and return None.
        """
        q = build_parent_query(object_id, mime_type=FOLDER_MIME)
        try:
            files, _ = self._client.list_files(q, page_size=1, fields=PROBE_FIELDS)
        except GDriveFsError as exc:
            logger.warning("Sub-directory probe failed for %s: %s", object_id, exc)
            return None

        value = bool(files)
        self._cache.set_has_dir(object_id, value)
        return value
