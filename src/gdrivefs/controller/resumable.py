"""Chunk-fed resumable upload session (internal use only)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from googleapiclient.http import MediaUpload

from gdrivefs.errors import UploadError
from gdrivefs.models import RemoteObject

if TYPE_CHECKING:
    from .drive_controller import DriveClient

logger = logging.getLogger(__name__)


class ChunkFeedUpload(MediaUpload):
    """
    MediaUpload whose bytes are handed over one chunk at a time.

    googleapiclient asks for `getbytes(resumable_progress, chunksize)` on every
    `next_chunk()`; only the chunk most recently fed is held in memory.
    """

    def __init__(self, mimetype: str, chunksize: int, size: Optional[int] = None) -> None:
        super().__init__()
        self._mimetype = mimetype
        self._chunksize = chunksize
        self._size = size
        self._buffer = b""
        self._offset = 0

    def chunksize(self) -> int:
        return self._chunksize

    def mimetype(self) -> str:
        return self._mimetype

    def size(self) -> Optional[int]:
        return self._size

    def resumable(self) -> bool:
        return True

    def has_stream(self) -> bool:
        return False

    def getbytes(self, begin: int, length: int) -> bytes:
        start = begin - self._offset
        if start < 0 or start > len(self._buffer):
            raise UploadError(
                "Requested bytes are outside of the current chunk",
                details={"begin": begin, "chunk_offset": self._offset},
            )
        return self._buffer[start : start + length]

    def feed(self, chunk: bytes, offset: int, *, final: bool) -> None:
        self._buffer = chunk
        self._offset = offset
        if final:
            # Lets the last request carry the total even when it fills a chunk.
            self._size = offset + len(chunk)


class ResumableSession:
    """
    One chunked upload in flight.

    Created by `DriveClient.start_resumable()`; the server-side object is
    provisioned by the first push. Nothing is persisted, so an abandoned
    session cannot be resumed.
    """

    def __init__(self, client: DriveClient, request: Any, media: ChunkFeedUpload) -> None:
        self._client = client
        self._request = request
        self._media = media
        self.bytes_sent = 0
        self.chunk_size = media.chunksize()
        self._acked = 0
        self._pending = b""

    def push(self, chunk: bytes, *, final: bool) -> Optional[RemoteObject]:
        """
        Send one chunk. Returns the resulting object once the upload is
        complete, None while more chunks are expected.

        Bytes the server did not take (a 308 with a shorter range) are sent
        again. For the final chunk that happens right away; otherwise they
        lead the next push, since a request shorter than one chunk would end
        the upload.
        """
        buffer = self._pending + chunk
        self.bytes_sent += len(chunk)
        self._media.feed(buffer, self._acked, final=final)

        while True:
            result = self._client.next_chunk(self._request)
            if result is not None:
                self._acked = self.bytes_sent
                self._pending = b""
                return result

            progress = self._progress()
            remaining = self.bytes_sent - progress
            if final and remaining == 0:
                raise UploadError(
                    "Upload did not complete after the final chunk",
                    details={"bytes_sent": self.bytes_sent},
                )
            self._acked = progress
            if not final and remaining < self.chunk_size:
                self._pending = buffer[len(buffer) - remaining :]
                logger.debug("Pushed chunk (%d bytes, %d acknowledged)", len(chunk), progress)
                return None
            logger.debug("Server kept %d of %d bytes, sending the rest", progress, self.bytes_sent)

    def _progress(self) -> int:
        progress = getattr(self._request, "resumable_progress", None)
        if not isinstance(progress, int) or not self._acked < progress <= self.bytes_sent:
            raise UploadError(
                "Upload made no progress",
                details={
                    "bytes_sent": self.bytes_sent,
                    "acknowledged": self._acked,
                    "progress": progress,
                },
            )
        return progress
