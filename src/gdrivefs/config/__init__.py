"""Configuration exports for gdrivefs."""

from __future__ import annotations

from .options import MAX_PAGE_SIZE, AdapterOptions

__all__ = ["AdapterOptions", "MAX_PAGE_SIZE"]
