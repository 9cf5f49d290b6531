"""Directory listing over Drive parent-containment queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from gdrivefs.cache import ObjectCache
from gdrivefs.config import MAX_PAGE_SIZE, AdapterOptions
from gdrivefs.controller import DriveClient, build_parent_query
from gdrivefs.errors import GDriveFsError
from gdrivefs.models import ListEntry, ListResult
from gdrivefs.resolve import PathResolver, join_path

logger = logging.getLogger(__name__)


@dataclass
class _Walk:
    recursive: bool
    page_limit: int
    extra_filter: str
    found: dict[str, ListEntry] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)


class Lister:
    """
    List the children of a directory, optionally recursively.

    Results are keyed by object ID, so an object reachable through several
    parents (Drive's hierarchy is a DAG) is returned once, and a directory is
    never walked twice within one call.
    """

    def __init__(
        self,
        client: DriveClient,
        cache: ObjectCache,
        resolver: PathResolver,
        options: Optional[AdapterOptions] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._resolver = resolver
        self._options = options or AdapterOptions()

    def list(
        self,
        dirname: str = "",
        *,
        recursive: bool = False,
        page_limit: int = 0,
        extra_filter: str = "",
    ) -> ListResult:
        """
        List a directory given by its virtual path.

        Args:
            dirname: Virtual path of the directory ("" is the root).
            recursive: Walk into every child directory.
            page_limit: 0 pages until exhausted; N > 0 fetches a single page of
                at most N items (capped at 1000) per directory.
            extra_filter: Drive query clause ANDed to the parent filter.

        Returns:
            ListResult; `truncated` is set when a remote error stopped paging
            somewhere, in which case the entries are incomplete.
        """
        walk = _Walk(
            recursive=recursive,
            page_limit=min(max(page_limit, 0), MAX_PAGE_SIZE),
            extra_filter=extra_filter,
        )
        truncated = self._walk(dirname.strip("/"), walk)
        return ListResult(entries=list(walk.found.values()), truncated=truncated)

    def _walk(self, dirname: str, walk: _Walk) -> bool:
        _, item_id = self._resolver.split(dirname)
        if item_id in walk.visited:
            return False
        walk.visited.add(item_id)

        q = build_parent_query(item_id, extra=walk.extra_filter)
        page_size = walk.page_limit or self._options.list_page_size
        page_token: Optional[str] = None
        truncated = False
        saw_dir = False
        child_dirs: list[str] = []

        while True:
            try:
                objs, page_token = self._client.list_files(
                    q,
                    page_size=page_size,
                    page_token=page_token,
                )
            except GDriveFsError as exc:
                logger.warning("Listing of %s stopped early: %s", item_id, exc)
                truncated = True
                break

            for obj in objs:
                self._cache.put(obj, parent_id=item_id)
                path = join_path(dirname, obj.object_id)
                walk.found.setdefault(obj.object_id, ListEntry(path=path, obj=obj))
                if not obj.is_dir:
                    continue

                saw_dir = True
                child_dirs.append(obj.object_id)
                if walk.recursive:
                    truncated = self._walk(path, walk) or truncated

            if not page_token or walk.page_limit:
                break

        complete = not truncated and not page_token and not walk.extra_filter
        if saw_dir:
            self._cache.set_has_dir(item_id, True)
        elif complete:
            self._cache.set_has_dir(item_id, False)

        if self._options.use_has_dir:
            for child_id in child_dirs:
                if self._cache.has_dir(child_id) is None:
                    self._resolver.probe_has_dir(child_id)

        return truncated
