"""Public/private visibility on top of Drive permissions."""

from __future__ import annotations

import logging
from typing import Optional

from gdrivefs.config import AdapterOptions
from gdrivefs.controller import DriveClient
from gdrivefs.errors import GDriveFsError
from gdrivefs.models import RemoteObject

logger = logging.getLogger(__name__)

VISIBILITY_PUBLIC: str = "public"
VISIBILITY_PRIVATE: str = "private"


class VisibilityManager:
    """
    Map the configured publish permission (by default "anyone"/"reader") to
    a public/private visibility.

    Mutations return False instead of raising; the cached object's permission
    list is kept in step with what Drive accepted.
    """

    def __init__(self, client: DriveClient, options: Optional[AdapterOptions] = None) -> None:
        self._client = client
        self._options = options or AdapterOptions()

    @property
    def _publish_type(self) -> str:
        return self._options.publish_permission["type"]

    @property
    def _publish_role(self) -> str:
        return self._options.publish_permission["role"]

    def get_raw_visibility(self, obj: RemoteObject) -> str:
        for permission in obj.permissions:
            if permission.type == self._publish_type and permission.role == self._publish_role:
                return VISIBILITY_PUBLIC
        return VISIBILITY_PRIVATE

    def is_public(self, obj: RemoteObject) -> bool:
        return self.get_raw_visibility(obj) == VISIBILITY_PUBLIC

    def publish(self, obj: RemoteObject) -> bool:
        if self.is_public(obj):
            return True
        try:
            permission = self._client.create_permission(
                obj.object_id,
                self._options.publish_permission,
            )
        except GDriveFsError as exc:
            logger.warning("Failed to publish %s: %s", obj.object_id, exc)
            return False
        obj.permissions.append(permission)
        return True

    def unpublish(self, obj: RemoteObject) -> bool:
        for permission in list(obj.permissions):
            if permission.type != self._publish_type or permission.role != self._publish_role:
                continue
            if not permission.permission_id:
                continue
            try:
                self._client.delete_permission(obj.object_id, permission.permission_id)
            except GDriveFsError as exc:
                logger.warning("Failed to unpublish %s: %s", obj.object_id, exc)
                return False
            obj.permissions.remove(permission)
        return True

    def set_visibility(self, obj: RemoteObject, visibility: str) -> bool:
        if visibility == VISIBILITY_PUBLIC:
            return self.publish(obj)
        return self.unpublish(obj)
