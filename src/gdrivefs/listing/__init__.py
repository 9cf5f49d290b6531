"""Listing exports for gdrivefs."""

from __future__ import annotations

from .lister import Lister

__all__ = ["Lister"]
