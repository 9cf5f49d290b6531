"""Internal Drive client exports for gdrivefs."""

from __future__ import annotations

from .drive_controller import DriveClient, build_parent_query
from .resumable import ChunkFeedUpload, ResumableSession

__all__ = ["DriveClient", "build_parent_query", "ChunkFeedUpload", "ResumableSession"]
