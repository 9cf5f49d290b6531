"""Single-shot and chunked (resumable) uploads."""

from __future__ import annotations

import io
import logging
import os
import sys
from typing import IO, Any, Optional, Union

from gdrivefs.cache import ObjectCache
from gdrivefs.controller import DriveClient
from gdrivefs.errors import GDriveFsError, UploadError
from gdrivefs.models import RemoteObject
from gdrivefs.resolve import PathResolver
from gdrivefs.util.mime import guess_mime_type

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE: int = 100 * 1024 * 1024

# Drive requires non-final resumable chunks to be multiples of 256 KiB.
CHUNK_ALIGNMENT: int = 256 * 1024

# Buffered non-file streams rarely return more than this per read.
READ_SIZE: int = 8192

Content = Union[bytes, bytearray, memoryview, str, IO[Any]]


def detect_chunk_size(
    *,
    chunk_size: Optional[int] = None,
    memory_budget: Optional[int] = None,
) -> int:
    """
    Pick the upload chunk size.

    An explicit chunk_size is aligned down to 256 KiB. Otherwise the 100 MiB
    default is shrunk to a quarter of the memory still available under the
    budget (or the process address-space limit, when one is set), since the
    HTTP layer may hold its own copy of each chunk.
    """
    if chunk_size is not None:
        return max(CHUNK_ALIGNMENT, chunk_size // CHUNK_ALIGNMENT * CHUNK_ALIGNMENT)

    ceiling = memory_budget if memory_budget is not None else _process_memory_limit()
    if not ceiling:
        return DEFAULT_CHUNK_SIZE

    available = ceiling - _memory_in_use()
    aligned = available // 4 // CHUNK_ALIGNMENT * CHUNK_ALIGNMENT
    return max(CHUNK_ALIGNMENT, min(DEFAULT_CHUNK_SIZE, aligned))


def _process_memory_limit() -> Optional[int]:
    if sys.platform == "win32":
        return None
    import resource

    soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    if soft == resource.RLIM_INFINITY or soft <= 0:
        return None
    return soft


def _memory_in_use() -> int:
    if sys.platform == "win32":
        return 0
    import resource

    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, KiB elsewhere.
    return peak if sys.platform == "darwin" else peak * 1024


def stream_size(stream: IO[Any]) -> Optional[int]:
    """Bytes left in stream, or None when it cannot be known up front."""
    if isinstance(stream, io.TextIOBase):
        # Positions count characters; the UTF-8 length is only known once read.
        return None
    try:
        if stream.seekable():
            pos = stream.tell()
            end = stream.seek(0, io.SEEK_END)
            stream.seek(pos)
            return end - pos
    except (AttributeError, OSError, ValueError):
        pass

    try:
        return os.fstat(stream.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        return None


class ChunkReader:
    """
    Assemble fixed-size chunks from a stream using small reads.

    One read of look-ahead tells whether a chunk is the last one, so a stream
    whose length is an exact multiple of the chunk size needs no empty final
    chunk.
    """

    def __init__(self, stream: IO[Any], chunk_size: int, read_size: int = READ_SIZE) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self._read_size = read_size
        self._carry = b""
        self._eof = False

    def read_chunk(self) -> tuple[bytes, bool]:
        """Return (chunk, is_last)."""
        parts = [self._carry]
        count = len(self._carry)
        while count < self._chunk_size and not self._eof:
            data = self._read()
            if not data:
                self._eof = True
                break
            parts.append(data)
            count += len(data)

        buf = b"".join(parts)
        chunk, self._carry = buf[: self._chunk_size], buf[self._chunk_size :]

        if not self._carry and not self._eof:
            peek = self._read()
            if peek:
                self._carry = peek
            else:
                self._eof = True
        return chunk, self._eof and not self._carry

    def _read(self) -> bytes:
        data = self._stream.read(self._read_size)
        if isinstance(data, str):
            return data.encode("utf-8")
        return data or b""


class UploadEngine:
    """
    Write content to a virtual path.

    States: INIT -> SINGLE_SHOT | CHUNKED -> DONE | FAILED.

    In-memory content and streams that fit into one chunk are sent in one
    request. Larger (or unsized) streams go through a resumable session one
    chunk at a time. A failed chunked upload may leave a partial object on
    Drive; nothing is cleaned up.
    """

    def __init__(
        self,
        client: DriveClient,
        cache: ObjectCache,
        resolver: PathResolver,
        *,
        chunk_size: Optional[int] = None,
        memory_budget: Optional[int] = None,
        read_size: int = READ_SIZE,
    ) -> None:
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._client = client
        self._cache = cache
        self._resolver = resolver
        self.chunk_size = chunk_size
        self.memory_budget = memory_budget
        self._read_size = read_size

    def current_chunk_size(self) -> int:
        """Fixed chunk size, else one sized to the memory available right now."""
        if self.chunk_size is not None:
            return self.chunk_size
        return detect_chunk_size(memory_budget=self.memory_budget)

    def upload(
        self,
        path: str,
        content: Content,
        mimetype: Optional[str] = None,
    ) -> RemoteObject:
        """
        Create or update the object at path.

        Raises:
            UploadError: the transfer failed.
            FetchError / NetworkError: the existing object could not be looked up.
        """
        parent_id, name = self._resolver.split(path)
        existing = self._resolver.resolve(path)

        if isinstance(content, str):
            content = content.encode("utf-8")

        if isinstance(content, (bytes, bytearray, memoryview)):
            obj = self._single_shot(bytes(content), parent_id, name, existing, mimetype)
        else:
            chunk_size = self.current_chunk_size()
            size = stream_size(content)
            if size is not None and size <= chunk_size:
                data = self._read_all(content)
                obj = self._single_shot(data, parent_id, name, existing, mimetype)
            else:
                obj = self._chunked(content, size, chunk_size, parent_id, name, existing, mimetype)

        self._cache.put(obj, parent_id=parent_id)
        logger.debug("Upload %s: DONE (%s)", path, obj.object_id)
        return obj

    def _single_shot(
        self,
        data: bytes,
        parent_id: str,
        name: str,
        existing: Optional[RemoteObject],
        mimetype: Optional[str],
    ) -> RemoteObject:
        mime = mimetype or guess_mime_type(name, data)
        logger.debug("Upload %s/%s: SINGLE_SHOT (%d bytes)", parent_id, name, len(data))
        metadata = _metadata(parent_id, name, existing, mime)
        try:
            if existing is None:
                return self._client.create(metadata, content=data, mime_type=mime)
            return self._client.update(existing.object_id, metadata, content=data, mime_type=mime)
        except GDriveFsError as exc:
            logger.debug("Upload %s/%s: FAILED", parent_id, name)
            raise UploadError(
                "Upload failed",
                details={"parent_id": parent_id, "name": name},
                cause=exc,
            ) from exc

    def _chunked(
        self,
        stream: IO[Any],
        size: Optional[int],
        chunk_size: int,
        parent_id: str,
        name: str,
        existing: Optional[RemoteObject],
        mimetype: Optional[str],
    ) -> RemoteObject:
        logger.debug("Upload %s/%s: CHUNKED (size=%s, chunk=%d)", parent_id, name, size, chunk_size)
        reader = ChunkReader(stream, chunk_size, self._read_size)
        try:
            chunk, last = reader.read_chunk()
            mime = mimetype or guess_mime_type(name, chunk)
            session = self._client.start_resumable(
                _metadata(parent_id, name, existing, mime),
                mime_type=mime,
                chunk_size=chunk_size,
                total_size=size,
                file_id=existing.object_id if existing is not None else None,
            )
            while True:
                result = session.push(chunk, final=last)
                if result is not None:
                    return result
                chunk, last = reader.read_chunk()
        except UploadError:
            logger.debug("Upload %s/%s: FAILED", parent_id, name)
            raise
        except (GDriveFsError, OSError) as exc:
            logger.debug("Upload %s/%s: FAILED", parent_id, name)
            raise UploadError(
                "Chunked upload failed",
                details={"parent_id": parent_id, "name": name},
                cause=exc,
            ) from exc

    @staticmethod
    def _read_all(stream: IO[Any]) -> bytes:
        try:
            data = stream.read()
        except OSError as exc:
            raise UploadError("Failed to read upload source", cause=exc) from exc
        if isinstance(data, str):
            return data.encode("utf-8")
        return data or b""


def _metadata(
    parent_id: str,
    name: str,
    existing: Optional[RemoteObject],
    mime_type: str,
) -> dict[str, Any]:
    if existing is not None:
        return {"mimeType": mime_type}
    return {"name": name, "parents": [parent_id], "mimeType": mime_type}
