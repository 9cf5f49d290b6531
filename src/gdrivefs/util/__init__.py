from .mime import (
    DEFAULT_EXPORT_MAP,
    FOLDER_MIME,
    export_mime_for,
    guess_mime_type,
    is_folder,
    is_google_app,
)
from .time import parse_drive_time, to_timestamp

__all__ = [
    "FOLDER_MIME",
    "DEFAULT_EXPORT_MAP",
    "is_folder",
    "is_google_app",
    "export_mime_for",
    "guess_mime_type",
    "parse_drive_time",
    "to_timestamp",
]
