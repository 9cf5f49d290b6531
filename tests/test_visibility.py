import unittest

from gdrivefs.config import AdapterOptions
from gdrivefs.errors import PermissionError
from gdrivefs.models import Permission, RemoteObject
from gdrivefs.visibility import VISIBILITY_PRIVATE, VISIBILITY_PUBLIC, VisibilityManager


class FakeClient:
    def __init__(self) -> None:
        self.calls = []
        self.error = None

    def create_permission(self, file_id, permission):
        self.calls.append(("create_permission", file_id, dict(permission)))
        if self.error is not None:
            raise self.error
        return Permission(type=permission["type"], role=permission["role"], permission_id="P1")

    def delete_permission(self, file_id, permission_id):
        self.calls.append(("delete_permission", file_id, permission_id))
        if self.error is not None:
            raise self.error


def _obj(*permissions) -> RemoteObject:
    return RemoteObject(object_id="F1", name="a", mime_type="text/plain", permissions=list(permissions))


class TestVisibilityManager(unittest.TestCase):
    def test_raw_visibility(self) -> None:
        mgr = VisibilityManager(FakeClient())
        self.assertEqual(mgr.get_raw_visibility(_obj()), VISIBILITY_PRIVATE)
        self.assertEqual(
            mgr.get_raw_visibility(_obj(Permission("user", "owner"), Permission("anyone", "reader"))),
            VISIBILITY_PUBLIC,
        )
        # Same type, other role is not the publish permission.
        self.assertEqual(mgr.get_raw_visibility(_obj(Permission("anyone", "writer"))), VISIBILITY_PRIVATE)

    def test_publish_creates_permission_once(self) -> None:
        client = FakeClient()
        mgr = VisibilityManager(client)
        obj = _obj()

        self.assertTrue(mgr.publish(obj))
        self.assertTrue(mgr.publish(obj))

        self.assertEqual(len(client.calls), 1)
        self.assertTrue(mgr.is_public(obj))

    def test_publish_failure_returns_false(self) -> None:
        client = FakeClient()
        client.error = PermissionError("denied")
        mgr = VisibilityManager(client)
        obj = _obj()

        with self.assertLogs("gdrivefs.visibility", level="WARNING"):
            self.assertFalse(mgr.publish(obj))
        self.assertEqual(obj.permissions, [])

    def test_unpublish_removes_matching_permissions(self) -> None:
        client = FakeClient()
        mgr = VisibilityManager(client)
        owner = Permission("user", "owner", "P0")
        obj = _obj(owner, Permission("anyone", "reader", "anyoneWithLink"))

        self.assertTrue(mgr.unpublish(obj))

        self.assertEqual(client.calls, [("delete_permission", "F1", "anyoneWithLink")])
        self.assertEqual(obj.permissions, [owner])

    def test_unpublish_private_object_is_noop(self) -> None:
        client = FakeClient()
        self.assertTrue(VisibilityManager(client).unpublish(_obj()))
        self.assertEqual(client.calls, [])

    def test_custom_publish_permission(self) -> None:
        client = FakeClient()
        opts = AdapterOptions(publish_permission={"type": "domain", "role": "reader", "domain": "example.com"})
        mgr = VisibilityManager(client, opts)
        obj = _obj(Permission("anyone", "reader"))

        self.assertFalse(mgr.is_public(obj))
        self.assertTrue(mgr.set_visibility(obj, VISIBILITY_PUBLIC))
        self.assertEqual(client.calls[0][2]["domain"], "example.com")


if __name__ == "__main__":
    unittest.main()
