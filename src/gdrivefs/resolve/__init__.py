"""Path resolution exports for gdrivefs."""

from __future__ import annotations

from .path_resolver import PathResolver
from .paths import dirname, join_path, split_extension, split_path

__all__ = ["PathResolver", "split_path", "dirname", "join_path", "split_extension"]
