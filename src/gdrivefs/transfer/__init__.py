"""Transfer (upload/download) exports for gdrivefs."""

from __future__ import annotations

from .download import ContentStream, DownloadStreamer, RedirectContext
from .upload import (
    CHUNK_ALIGNMENT,
    DEFAULT_CHUNK_SIZE,
    ChunkReader,
    UploadEngine,
    detect_chunk_size,
    stream_size,
)

__all__ = [
    "UploadEngine",
    "ChunkReader",
    "detect_chunk_size",
    "stream_size",
    "DEFAULT_CHUNK_SIZE",
    "CHUNK_ALIGNMENT",
    "DownloadStreamer",
    "ContentStream",
    "RedirectContext",
]
