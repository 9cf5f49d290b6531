"""Cache exports for gdrivefs."""

from __future__ import annotations

from .object_cache import ObjectCache

__all__ = ["ObjectCache"]
