"""GoogleDriveAdapter: a path-addressable filesystem view of Google Drive."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from gdrivefs.auth import AuthInfo
from gdrivefs.cache import ObjectCache
from gdrivefs.config import AdapterOptions
from gdrivefs.controller import DriveClient
from gdrivefs.errors import GDriveFsError
from gdrivefs.listing import Lister
from gdrivefs.models import ListResult, Metadata, RemoteObject
from gdrivefs.resolve import PathResolver, dirname, join_path, split_extension
from gdrivefs.transfer import ContentStream, DownloadStreamer, UploadEngine, detect_chunk_size
from gdrivefs.transfer.upload import Content
from gdrivefs.util.mime import FOLDER_MIME, is_google_app
from gdrivefs.util.time import to_timestamp
from gdrivefs.visibility import VisibilityManager

logger = logging.getLogger(__name__)

OptionsLike = Union[AdapterOptions, Mapping[str, Any], None]


class GoogleDriveAdapter:
    """
    Filesystem operations over Drive, addressed by virtual ID paths.

    Paths are "/"-joined object IDs below the configured root, e.g.
    "FOLDER_ID/FILE_ID"; the last segment may be a new name when writing.

    Failure policy:
        - No GDriveFsError crosses this boundary. Failures are logged and
          reported as None / False.
        - Best-effort side effects (visibility after a write, visibility
          mirroring on copy, sub-directory probes) never fail the primary
          operation.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        root: Optional[str] = None,
        options: OptionsLike = None,
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        opts = _coerce_options(options, root)
        client = DriveClient(auth_info, scopes=scopes, options=opts)
        self._setup(client, client.credentials, opts, None)

    @classmethod
    def from_client(
        cls,
        client: DriveClient,
        *,
        credentials: Any = None,
        root: Optional[str] = None,
        options: OptionsLike = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ) -> "GoogleDriveAdapter":
        """Create adapter with an injected client (useful for tests)."""
        obj = cls.__new__(cls)
        opts = _coerce_options(options, root)
        if credentials is None:
            credentials = getattr(client, "credentials", None)
        obj._setup(client, credentials, opts, session_factory)
        return obj

    def _setup(
        self,
        client: DriveClient,
        credentials: Any,
        options: AdapterOptions,
        session_factory: Optional[Callable[[], Any]],
    ) -> None:
        self._options = options
        self._client = client
        self._credentials = credentials
        self._session_factory = session_factory
        self._cache = ObjectCache()
        self._resolver = PathResolver(client, self._cache, options)
        self._lister = Lister(client, self._cache, self._resolver, options)
        self._uploader = UploadEngine(
            client,
            self._cache,
            self._resolver,
            chunk_size=(
                detect_chunk_size(chunk_size=options.chunk_size) if options.chunk_size is not None else None
            ),
            memory_budget=options.memory_budget,
        )
        if session_factory is None:
            self._downloader = DownloadStreamer(credentials, options)
        else:
            self._downloader = DownloadStreamer(credentials, options, session_factory=session_factory)
        self._visibility = VisibilityManager(client, options)

    @property
    def options(self) -> AdapterOptions:
        return self._options

    @property
    def cache(self) -> ObjectCache:
        return self._cache

    @property
    def root_id(self) -> str:
        return self._resolver.root_id

    def set_team_drive_id(self, team_drive_id: str, corpora: str = "drive") -> None:
        """
        Operate on a shared drive from now on.

        When the adapter root is the "root" alias, the shared drive becomes the
        root. The object cache starts empty again.
        """
        options = dataclasses.replace(self._options, team_drive_id=team_drive_id, corpora=corpora)
        self._client.options = options
        self._setup(self._client, self._credentials, options, self._session_factory)

    # ----------------------------
    # Write APIs
    # ----------------------------
    def write(
        self,
        path: str,
        contents: Content,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Metadata]:
        """
        Create or overwrite the file at path.

        config keys:
            mimetype: MIME type override (guessed when absent).
            visibility: "public" or "private", applied after the upload.
        """
        config = config or {}
        try:
            obj = self._uploader.upload(path, contents, config.get("mimetype"))
        except GDriveFsError as exc:
            _log_failure("write", path, exc)
            return None

        meta = self._normalise(obj, dirname(path))
        visibility = config.get("visibility")
        if visibility and self._visibility.set_visibility(obj, visibility):
            meta.visibility = visibility
        return meta

    def write_stream(
        self,
        path: str,
        resource: Content,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Metadata]:
        return self.write(path, resource, config)

    def update(
        self,
        path: str,
        contents: Content,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Metadata]:
        return self.write(path, contents, config)

    def update_stream(
        self,
        path: str,
        resource: Content,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Metadata]:
        return self.write(path, resource, config)

    def create_dir(
        self,
        path: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Metadata]:
        parent_id, name = self._resolver.split(path)
        try:
            folder = self._client.create(
                {"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]}
            )
        except GDriveFsError as exc:
            _log_failure("create_dir", path, exc)
            return None

        self._cache.put(folder, parent_id=parent_id, name=name)
        self._cache.set_has_dir(folder.object_id, False)
        meta = self._normalise(folder, dirname(path))

        visibility = (config or {}).get("visibility")
        if visibility and self._visibility.set_visibility(folder, visibility):
            meta.visibility = visibility
        return meta

    def rename(self, path: str, newpath: str) -> bool:
        old_parent, _ = self._resolver.split(path)
        new_parent, new_name = self._resolver.split(newpath)
        try:
            obj = self._resolver.resolve(path)
            if obj is None:
                return False
            moving = new_parent != old_parent
            updated = self._client.update(
                obj.object_id,
                {"name": new_name},
                add_parents=new_parent if moving else None,
                remove_parents=old_parent if moving else None,
            )
        except GDriveFsError as exc:
            _log_failure("rename", path, exc)
            return False

        self._cache.evict(obj.object_id)
        self._cache.put(updated, parent_id=new_parent, name=new_name)
        return True

    def copy(self, path: str, newpath: str) -> bool:
        new_parent, new_name = self._resolver.split(newpath)
        try:
            src = self._resolver.resolve(path)
            if src is None:
                return False
            copied = self._client.copy(
                src.object_id,
                {"name": new_name, "parents": [new_parent]},
            )
        except GDriveFsError as exc:
            _log_failure("copy", path, exc)
            return False

        self._cache.put(copied, parent_id=new_parent, name=new_name)
        if self._visibility.is_public(src):
            self._visibility.publish(copied)
        else:
            self._visibility.unpublish(copied)
        return True

    def delete(self, path: str) -> bool:
        """
        Remove the object at path from its parent.

        An object with several parents only loses this parent; otherwise it
        is trashed, or permanently deleted when delete_action is "delete".
        """
        parent_id, _ = self._resolver.split(path)
        try:
            obj = self._resolver.resolve(path)
            if obj is None or not obj.parents:
                return False
            if len(obj.parents) > 1:
                self._client.update(obj.object_id, {}, remove_parents=parent_id)
            elif self._options.delete_action == "delete":
                self._client.delete(obj.object_id)
            else:
                self._client.trash(obj.object_id)
        except GDriveFsError as exc:
            _log_failure("delete", path, exc)
            return False

        self._cache.evict(obj.object_id)
        return True

    def delete_dir(self, path: str) -> bool:
        return self.delete(path)

    def set_visibility(self, path: str, visibility: str) -> bool:
        obj = self._resolve_quietly("set_visibility", path)
        if obj is None:
            return False
        return self._visibility.set_visibility(obj, visibility)

    # ----------------------------
    # Read APIs
    # ----------------------------
    def has(self, path: str) -> bool:
        return self._resolve_quietly("has", path, check_dir=True) is not None

    def read(self, path: str) -> Optional[bytes]:
        """Return the whole content of the file at path."""
        obj = self._resolve_quietly("read", path)
        if obj is None or obj.is_dir:
            return None

        try:
            if not is_google_app(obj.mime_type):
                return self._client.get_media(obj.object_id)
            with self._downloader.open_stream(obj) as stream:
                return stream.read()
        except GDriveFsError as exc:
            _log_failure("read", path, exc)
            return None

    def read_stream(self, path: str) -> Optional[ContentStream]:
        """Return a live content stream; the caller must close it."""
        obj = self._resolve_quietly("read_stream", path)
        if obj is None or obj.is_dir:
            return None
        try:
            return self._downloader.open_stream(obj)
        except GDriveFsError as exc:
            _log_failure("read_stream", path, exc)
            return None

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Metadata]:
        """
        List a directory as metadata records.

        A remote error during listing yields a shorter list; use
        `list_result()` to find out whether the listing was truncated.
        """
        result = self.list_result(directory, recursive=recursive)
        return [self._normalise(e.obj, dirname(e.path)) for e in result.entries]

    def list_result(
        self,
        directory: str = "",
        *,
        recursive: bool = False,
        page_limit: int = 0,
        extra_filter: str = "",
    ) -> ListResult:
        return self._lister.list(
            directory,
            recursive=recursive,
            page_limit=page_limit,
            extra_filter=extra_filter,
        )

    def get_metadata(self, path: str) -> Optional[Metadata]:
        obj = self._resolve_quietly("get_metadata", path, check_dir=True)
        if obj is None:
            return None
        return self._normalise(obj, dirname(path))

    def get_size(self, path: str) -> Optional[Metadata]:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Optional[Metadata]:
        meta = self.get_metadata(path)
        return meta if meta is not None and meta.mimetype is not None else None

    def get_timestamp(self, path: str) -> Optional[Metadata]:
        meta = self.get_metadata(path)
        return meta if meta is not None and meta.timestamp is not None else None

    def get_visibility(self, path: str) -> Optional[str]:
        obj = self._resolve_quietly("get_visibility", path)
        if obj is None:
            return None
        return self._visibility.get_raw_visibility(obj)

    def get_url(self, path: str) -> Optional[str]:
        """Publish the object and return a permanent content URL."""
        obj = self._resolve_quietly("get_url", path)
        if obj is None or not self._visibility.publish(obj):
            return None
        if obj.web_content_link:
            return obj.web_content_link.replace("export=download", "export=media")
        return obj.web_view_link

    def has_dir(self, path: str) -> bool:
        """Whether the directory has a sub-directory; True when unknown."""
        meta = self.get_metadata(path)
        if meta is not None and meta.has_dir is not None:
            return meta.has_dir
        return True

    # ----------------------------
    # Internals
    # ----------------------------
    def _resolve_quietly(
        self,
        op: str,
        path: str,
        *,
        check_dir: bool = False,
    ) -> Optional[RemoteObject]:
        try:
            return self._resolver.resolve(path, check_dir=check_dir)
        except GDriveFsError as exc:
            _log_failure(op, path, exc)
            return None

    def _normalise(self, obj: RemoteObject, dirname_: str) -> Metadata:
        filename, extension = split_extension(obj.name)
        meta = Metadata(
            path=join_path(dirname_, obj.object_id),
            name=obj.name,
            type="dir" if obj.is_dir else "file",
            filename=filename,
            extension=extension,
            timestamp=to_timestamp(obj.modified_time),
            extra=dict(obj.extra),
        )
        if obj.is_dir:
            if self._options.use_has_dir:
                meta.has_dir = bool(self._cache.has_dir(obj.object_id))
        else:
            meta.mimetype = obj.mime_type
            meta.size = obj.size or 0
        return meta


def _coerce_options(options: OptionsLike, root: Optional[str]) -> AdapterOptions:
    if isinstance(options, AdapterOptions):
        opts = options
    else:
        opts = AdapterOptions.from_dict(options)
    if root:
        opts = dataclasses.replace(opts, root=root)
    return opts


def _log_failure(op: str, path: str, exc: GDriveFsError) -> None:
    logger.warning(
        "%s failed for %r: %s (%s)",
        op,
        path,
        exc,
        exc.__class__.__name__,
        extra={"gdrivefs_details": exc.details},
    )
