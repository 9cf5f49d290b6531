from __future__ import annotations

import logging
import mimetypes
from typing import Mapping, Optional

import magic

logger = logging.getLogger(__name__)

FOLDER_MIME: str = "application/vnd.google-apps.folder"

GOOGLE_APPS_PREFIX: str = "application/vnd.google-apps"

OCTET_STREAM: str = "application/octet-stream"

# Export targets for native Google documents; "default" covers unlisted types.
DEFAULT_EXPORT_MAP: dict[str, str] = {
    "application/vnd.google-apps.document": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    ),
    "application/vnd.google-apps.spreadsheet": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ),
    "application/vnd.google-apps.drawing": "application/pdf",
    "application/vnd.google-apps.presentation": (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    ),
    "application/vnd.google-apps.script": "application/vnd.google-apps.script+json",
    "default": "application/pdf",
}

_SNIFF_BYTES = 8192


def is_folder(mime_type: str) -> bool:
    return mime_type == FOLDER_MIME


def is_google_app(mime_type: str) -> bool:
    """
    Returns True if the MIME type is a native Google 'apps' type.

    Such objects have no binary content and must be exported.
    """
    return mime_type.startswith(GOOGLE_APPS_PREFIX)


def export_mime_for(mime_type: str, export_map: Mapping[str, str]) -> str:
    """Pick the export target for a native document type."""
    if mime_type in export_map:
        return export_map[mime_type]
    return export_map.get("default", DEFAULT_EXPORT_MAP["default"])


def guess_mime_type(name: str, content: Optional[bytes] = None) -> str:
    """
    Guess a MIME type from the file name, then from the content.

    Content detection asks libmagic about the first few KiB.
    """
    guessed, _ = mimetypes.guess_type(name, strict=False)
    if guessed:
        return guessed
    if content:
        try:
            detected = magic.from_buffer(bytes(content[:_SNIFF_BYTES]), mime=True)
        except magic.MagicException as exc:
            logger.debug("libmagic could not classify %s: %s", name, exc)
            detected = None
        if detected:
            return detected
    return OCTET_STREAM
