"""Google Drive API client (internal use only)."""

from __future__ import annotations

import io
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

import httplib2
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from gdrivefs.auth import AuthInfo, GoogleCredentialProvider, OAuthClient
from gdrivefs.config import AdapterOptions
from gdrivefs.errors import (
    ApiError,
    GDriveFsError,
    HttpErrorInfo,
    NetworkError,
    is_retryable,
    map_http_error,
)
from gdrivefs.models import Permission, RemoteObject
from gdrivefs.util.time import parse_drive_time

from .fields import file_fields, list_fields
from .resumable import ChunkFeedUpload, ResumableSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class DriveClient:
    """
    Drive API client (internal only).

    Notes:
        - The Drive `service` object is NOT exposed.
        - Per-command default parameters from AdapterOptions are applied to
          every request.
        - Rate limiting and 5xx responses are retried with back-off; transport
          errors are not.
    """

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
        options: Optional[AdapterOptions] = None,
    ) -> None:
        self._options = options or AdapterOptions()
        self._retry_policy = _RetryPolicy()

        use_scopes = list(scopes) if scopes is not None else list(self.DEFAULT_SCOPES)
        client = OAuthClient(auth_info)
        creds = client.get_credentials(use_scopes, ensure_valid=True)
        self._service = client.build_drive_service(creds)
        self.credentials = GoogleCredentialProvider(creds)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        options: Optional[AdapterOptions] = None,
        credentials: Any = None,
    ) -> "DriveClient":
        """Create client from a pre-built Drive service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._options = options or AdapterOptions()
        obj._retry_policy = _RetryPolicy()
        obj._service = service
        obj.credentials = credentials
        return obj

    @property
    def options(self) -> AdapterOptions:
        return self._options

    @options.setter
    def options(self, value: AdapterOptions) -> None:
        self._options = value

    # ----------------------------
    # Files
    # ----------------------------
    def get(self, file_id: str) -> RemoteObject:
        req = self._service.files().get(
            **self._params("files.get", fileId=file_id, fields=self._file_fields())
        )
        data = self._execute(req.execute)
        return self._to_object(data)

    def list_files(
        self,
        q: str,
        *,
        page_size: int,
        page_token: Optional[str] = None,
        fields: Optional[str] = None,
    ) -> tuple[list[RemoteObject], Optional[str]]:
        """Fetch one page. Returns (objects, next page token or None)."""
        kwargs: dict[str, Any] = {
            "q": q,
            "pageSize": page_size,
            "fields": fields or list_fields(self._options.additional_fetch_fields),
            "spaces": self._options.spaces,
        }
        if page_token:
            kwargs["pageToken"] = page_token

        req = self._service.files().list(**self._params("files.list", **kwargs))
        data = self._execute(req.execute)
        files = [self._to_object(f) for f in data.get("files", []) or []]
        return files, data.get("nextPageToken") or None

    def create(
        self,
        metadata: dict[str, Any],
        *,
        content: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> RemoteObject:
        kwargs: dict[str, Any] = {"body": metadata, "fields": self._file_fields()}
        if content:
            kwargs["media_body"] = _inline_media(content, mime_type)
        req = self._service.files().create(**self._params("files.create", **kwargs))
        data = self._execute(req.execute)
        return self._to_object(data)

    def update(
        self,
        file_id: str,
        metadata: dict[str, Any],
        *,
        content: Optional[bytes] = None,
        mime_type: Optional[str] = None,
        add_parents: Optional[str] = None,
        remove_parents: Optional[str] = None,
    ) -> RemoteObject:
        kwargs: dict[str, Any] = {
            "fileId": file_id,
            "body": metadata,
            "fields": self._file_fields(),
        }
        if content:
            kwargs["media_body"] = _inline_media(content, mime_type)
        if add_parents:
            kwargs["addParents"] = add_parents
        if remove_parents:
            kwargs["removeParents"] = remove_parents
        req = self._service.files().update(**self._params("files.update", **kwargs))
        data = self._execute(req.execute)
        return self._to_object(data)

    def copy(self, file_id: str, metadata: dict[str, Any]) -> RemoteObject:
        req = self._service.files().copy(
            **self._params(
                "files.copy",
                fileId=file_id,
                body=metadata,
                fields=self._file_fields(),
            )
        )
        data = self._execute(req.execute)
        return self._to_object(data)

    def trash(self, file_id: str) -> None:
        req = self._service.files().update(
            **self._params("files.update", fileId=file_id, body={"trashed": True}, fields="id")
        )
        self._execute(req.execute)

    def delete(self, file_id: str) -> None:
        req = self._service.files().delete(**self._params("files.delete", fileId=file_id))
        self._execute(req.execute)

    def get_media(self, file_id: str) -> bytes:
        """Download the whole binary content of a file into memory."""
        req = self._service.files().get_media(**self._params("files.get", fileId=file_id))
        data = self._execute(req.execute)
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    # ----------------------------
    # Resumable uploads
    # ----------------------------
    def start_resumable(
        self,
        metadata: dict[str, Any],
        *,
        mime_type: str,
        chunk_size: int,
        total_size: Optional[int] = None,
        file_id: Optional[str] = None,
    ) -> ResumableSession:
        """
        Prepare a deferred resumable create (or update when file_id is set).

        No request is sent until the first chunk is pushed.
        """
        media = ChunkFeedUpload(mime_type, chunk_size, total_size)
        kwargs: dict[str, Any] = {
            "body": metadata,
            "media_body": media,
            "fields": self._file_fields(),
        }
        if file_id is None:
            req = self._service.files().create(**self._params("files.create", **kwargs))
        else:
            kwargs["fileId"] = file_id
            req = self._service.files().update(**self._params("files.update", **kwargs))
        return ResumableSession(self, req, media)

    def next_chunk(self, request: Any) -> Optional[RemoteObject]:
        """Drive one resumable step. Returns the object once complete."""
        _status, data = self._execute(request.next_chunk)
        if data is None:
            return None
        return self._to_object(data)

    # ----------------------------
    # Permissions
    # ----------------------------
    def create_permission(self, file_id: str, permission: dict[str, Any]) -> Permission:
        req = self._service.permissions().create(
            **self._params(
                "permissions.create",
                fileId=file_id,
                body=dict(permission),
                fields="id,type,role",
            )
        )
        data = self._execute(req.execute)
        return Permission(
            type=data.get("type") or permission.get("type", ""),
            role=data.get("role") or permission.get("role", ""),
            permission_id=data.get("id"),
        )

    def delete_permission(self, file_id: str, permission_id: str) -> None:
        req = self._service.permissions().delete(
            **self._params("permissions.delete", fileId=file_id, permissionId=permission_id)
        )
        self._execute(req.execute)

    # ----------------------------
    # Internals
    # ----------------------------
    def _params(self, command: str, **kwargs: Any) -> dict[str, Any]:
        params = self._options.command_params(command)
        params.update(kwargs)
        return params

    def _file_fields(self) -> str:
        return file_fields(self._options.additional_fetch_fields)

    def _to_object(self, data: dict[str, Any]) -> RemoteObject:
        return _file_dict_to_remote_object(data, self._options.additional_fetch_fields)

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if is_retryable(mapped) and attempt < self._retry_policy.max_retries:
                    logger.debug("Retrying Drive call after %s (attempt %d)", mapped, attempt + 1)
                    time.sleep(delay)
                    delay *= 2
                    continue
                if mapped is exc:
                    raise
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, GDriveFsError):
            return exc

        if isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError, httplib2.HttpLib2Error)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _inline_media(content: bytes, mime_type: Optional[str]) -> MediaIoBaseUpload:
    return MediaIoBaseUpload(
        io.BytesIO(content),
        mimetype=mime_type or "application/octet-stream",
        resumable=False,
    )


def build_parent_query(
    parent_id: str,
    *,
    mime_type: Optional[str] = None,
    extra: str = "",
) -> str:
    """Query for non-trashed direct children of parent_id."""
    q = f'trashed = false and "{parent_id}" in parents'
    if mime_type:
        q += f' and mimeType = "{mime_type}"'
    if extra:
        q += f" and ({extra})"
    return q


def _file_dict_to_remote_object(
    data: dict[str, Any],
    additional_fields: Sequence[str] = (),
) -> RemoteObject:
    file_id = data.get("id")
    name = data.get("name", "")
    mime_type = data.get("mimeType", "")
    parents = data.get("parents", []) or []

    size = None
    if isinstance(data.get("size"), str) and data["size"].isdigit():
        size = int(data["size"])
    elif isinstance(data.get("size"), int):
        size = data["size"]

    permissions = []
    for p in data.get("permissions", []) or []:
        if isinstance(p, dict):
            permissions.append(
                Permission(
                    type=str(p.get("type", "")),
                    role=str(p.get("role", "")),
                    permission_id=p.get("id"),
                )
            )

    extra = {f: data[f] for f in additional_fields if f in data}

    return RemoteObject(
        object_id=file_id if isinstance(file_id, str) else "",
        name=name if isinstance(name, str) else "",
        mime_type=mime_type if isinstance(mime_type, str) else "",
        parents=list(parents) if isinstance(parents, list) else [],
        size=size,
        modified_time=parse_drive_time(data.get("modifiedTime")),
        permissions=permissions,
        web_content_link=data.get("webContentLink"),
        web_view_link=data.get("webViewLink"),
        trashed=bool(data.get("trashed", False)),
        extra=extra,
    )


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
