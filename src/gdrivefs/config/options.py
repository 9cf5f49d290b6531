"""Adapter options for gdrivefs."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from gdrivefs.util.mime import DEFAULT_EXPORT_MAP

MAX_PAGE_SIZE: int = 1000

DELETE_ACTIONS: tuple[str, ...] = ("trash", "delete")

# Commands that accept supportsAllDrives when a shared drive is selected.
_DRIVE_COMMANDS: tuple[str, ...] = (
    "files.copy",
    "files.create",
    "files.delete",
    "files.get",
    "files.list",
    "files.update",
    "permissions.create",
    "permissions.delete",
)


def _default_publish_permission() -> dict[str, Any]:
    return {"type": "anyone", "role": "reader"}


@dataclass(frozen=True)
class AdapterOptions:
    """
    Options for GoogleDriveAdapter.

    Fields:
        root: Root object ID of the virtual tree ("root" = My Drive).
        spaces: Comma-separated Drive spaces to query.
        use_has_dir: Track "has at least one sub-directory" per directory.
        additional_fetch_fields: Extra Drive fields fetched with every object.
        publish_permission: Permission created when an object is published.
        apps_export_map: Export MIME type per native Google type (+ "default").
        default_params: Extra request parameters per command, e.g.
            {"files.list": {"orderBy": "name"}}.
        team_drive_id: Shared drive to operate on.
        corpora: files.list corpora used with a shared drive.
        delete_action: "trash" or "delete" (permanent).
        list_page_size: Page size of unbounded listings.
        chunk_size: Fixed upload chunk size; None derives it from memory.
        memory_budget: Memory ceiling in bytes used to derive the chunk size.
        slash_substitute: String standing for "/" inside object names in paths.
        download_timeout: Socket timeout of download hops, in seconds.
        max_redirect_hops: Request ceiling of one logical download.
    """

    root: str = "root"
    spaces: str = "drive"
    use_has_dir: bool = False
    additional_fetch_fields: tuple[str, ...] = ()
    publish_permission: dict[str, Any] = field(default_factory=_default_publish_permission)
    apps_export_map: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXPORT_MAP))
    default_params: dict[str, dict[str, Any]] = field(default_factory=dict)
    team_drive_id: Optional[str] = None
    corpora: str = "drive"
    delete_action: str = "trash"
    list_page_size: int = MAX_PAGE_SIZE
    chunk_size: Optional[int] = None
    memory_budget: Optional[int] = None
    slash_substitute: Optional[str] = None
    download_timeout: float = 300.0
    max_redirect_hops: int = 6

    def __post_init__(self) -> None:
        if not isinstance(self.root, str) or not self.root.strip():
            raise ValueError("AdapterOptions.root must be a non-empty string")
        if self.delete_action not in DELETE_ACTIONS:
            raise ValueError(f"AdapterOptions.delete_action must be one of {DELETE_ACTIONS}")
        if not 1 <= self.list_page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"AdapterOptions.list_page_size must be in 1..{MAX_PAGE_SIZE}")
        if self.chunk_size is not None and self.chunk_size <= 0:
            raise ValueError("AdapterOptions.chunk_size must be positive")
        if self.memory_budget is not None and self.memory_budget <= 0:
            raise ValueError("AdapterOptions.memory_budget must be positive")
        if self.max_redirect_hops < 1:
            raise ValueError("AdapterOptions.max_redirect_hops must be >= 1")
        if self.slash_substitute == "":
            raise ValueError("AdapterOptions.slash_substitute must not be empty")
        for key in ("type", "role"):
            if not isinstance(self.publish_permission.get(key), str):
                raise ValueError(f"AdapterOptions.publish_permission['{key}'] must be a string")

        if isinstance(self.additional_fetch_fields, str):
            fields = tuple(f.strip() for f in self.additional_fetch_fields.split(","))
            object.__setattr__(self, "additional_fetch_fields", tuple(f for f in fields if f))
        elif not isinstance(self.additional_fetch_fields, tuple):
            object.__setattr__(self, "additional_fetch_fields", tuple(self.additional_fetch_fields))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> AdapterOptions:
        """
        Build options from a plain mapping, merging nested mappings over the
        defaults (so a partial apps_export_map keeps the other entries).
        """
        if not data:
            return cls()

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown adapter option(s): {', '.join(unknown)}")

        defaults = cls()
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            current = getattr(defaults, key)
            if isinstance(current, dict) and isinstance(value, Mapping):
                merged = dict(current)
                merged.update(value)
                value = merged
            kwargs[key] = value
        return cls(**kwargs)

    def command_params(self, command: str) -> dict[str, Any]:
        """Return the default parameters for a Drive command (e.g. "files.list")."""
        params: dict[str, Any] = {}
        if self.team_drive_id and command in _DRIVE_COMMANDS:
            params["supportsAllDrives"] = True
            if command == "files.list":
                params["corpora"] = self.corpora
                params["includeItemsFromAllDrives"] = True
                params["driveId"] = self.team_drive_id
        params.update(self.default_params.get(command, {}))
        return params

    @property
    def root_id(self) -> str:
        """Root of the virtual tree; a shared drive replaces the "root" alias."""
        if self.root == "root" and self.team_drive_id:
            return self.team_drive_id
        return self.root
