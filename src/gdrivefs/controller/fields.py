"""Field definitions for Google Drive API responses."""

from __future__ import annotations

from typing import Sequence

# Minimal superset needed for directory emulation.
FILE_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "modifiedTime,"
    "parents,"
    "permissions,"
    "size,"
    "webContentLink,"
    "webViewLink,"
    "trashed"
)

# Existence probes only need to know whether any file came back.
PROBE_FIELDS: str = "files(id)"


def file_fields(additional: Sequence[str] = ()) -> str:
    if not additional:
        return FILE_FIELDS
    return ",".join([FILE_FIELDS, *additional])


def list_fields(additional: Sequence[str] = ()) -> str:
    return f"nextPageToken,files({file_fields(additional)})"
