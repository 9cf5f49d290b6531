"""Virtual path helpers.

A virtual path is a "/"-joined chain of Drive object IDs below the root, e.g.
"FOLDER_ID/FILE_ID". Only the last segment may be a plain name (an object
that does not exist yet). Names containing "/" are written with a configured
substitute string.
"""

from __future__ import annotations

from typing import Optional

# Placeholder for a substituted "/" while splitting (BEL never appears in names).
_SLASH_PLACEHOLDER = "\x07"


def split_path(
    path: str,
    root_id: str,
    *,
    slash_substitute: Optional[str] = None,
    parent_only: bool = True,
) -> tuple[str, str]:
    """
    Split a virtual path into (parent, leaf).

    With parent_only=True the parent is the second-to-last segment (an ID);
    otherwise it is the whole directory part of the path. The root ID stands
    in for a missing parent, and "" / "/" resolve to ("", root_id).
    """
    if path in ("", "/"):
        return "", root_id

    if slash_substitute:
        path = path.replace(slash_substitute, _SLASH_PLACEHOLDER)

    segments = path.split("/")
    leaf = segments.pop()
    if parent_only:
        parent = segments.pop() if segments else ""
    else:
        parent = "/".join(segments)
    if parent == "":
        parent = root_id

    if slash_substitute:
        leaf = leaf.replace(_SLASH_PLACEHOLDER, "/")
    return parent, leaf


def dirname(path: str) -> str:
    """Directory part of a virtual path ("" at the top level)."""
    path = path.strip("/")
    if "/" not in path:
        return ""
    return path.rsplit("/", 1)[0]


def join_path(dirname_: str, object_id: str) -> str:
    return f"{dirname_}/{object_id}" if dirname_ else object_id


def split_extension(name: str) -> tuple[str, str]:
    """
    Split a name into (filename, extension).

    Only the last "." separates the extension; a name without "." has none.
    """
    if "." not in name:
        return name, ""
    filename, extension = name.rsplit(".", 1)
    return filename, extension
