import io
import re
import unittest
from datetime import datetime, timezone

from gdrivefs import AdapterOptions, GoogleDriveAdapter
from gdrivefs.errors import ApiError, NotFoundError
from gdrivefs.models import Permission, RemoteObject
from gdrivefs.util.mime import FOLDER_MIME

_PARENT_RE = re.compile(r'"([^"]+)" in parents')

DT = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeDrive:
    """In-memory stand-in for DriveClient."""

    def __init__(self) -> None:
        self.calls = []
        self.objects = {}
        self.content = {}
        self.seq = 0
        self.fail = {}
        self.credentials = None
        self._add(RemoteObject(object_id="0AROOT", name="My Drive", mime_type=FOLDER_MIME), alias="root")

    def _add(self, obj, alias=None):
        self.objects[obj.object_id] = obj
        if alias:
            self.objects[alias] = obj
        return obj

    def _check(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise self.fail[op]

    def _new_id(self):
        self.seq += 1
        return f"N{self.seq}"

    def add_dir(self, object_id, parents):
        return self._add(RemoteObject(object_id=object_id, name=object_id, mime_type=FOLDER_MIME, parents=list(parents)))

    def add_file(self, object_id, name, parents, data=b"", mime="text/plain", **kw):
        self.content[object_id] = data
        return self._add(
            RemoteObject(
                object_id=object_id,
                name=name,
                mime_type=mime,
                parents=list(parents),
                size=len(data),
                modified_time=DT,
                **kw,
            )
        )

    # DriveClient surface
    def get(self, file_id):
        self._check("get")
        obj = self.objects.get(file_id)
        if obj is None:
            raise NotFoundError("not found", details={"file_id": file_id})
        return obj

    def list_files(self, q, *, page_size, page_token=None, fields=None):
        self._check("list_files")
        parent_id = _PARENT_RE.search(q).group(1)
        if parent_id in self.objects:
            parent_id = self.objects[parent_id].object_id
        items = [
            o for k, o in self.objects.items()
            if k == o.object_id and parent_id in o.parents and not o.trashed
        ]
        if "mimeType = " in q:
            items = [o for o in items if o.is_dir]
        return items[:page_size], None

    def create(self, metadata, *, content=None, mime_type=None):
        self._check("create")
        obj = RemoteObject(
            object_id=self._new_id(),
            name=metadata["name"],
            mime_type=metadata.get("mimeType") or mime_type,
            parents=list(metadata["parents"]),
            size=len(content or b""),
            modified_time=DT,
            web_content_link="https://drive.google.com/uc?id=X&export=download",
        )
        self.content[obj.object_id] = content or b""
        return self._add(obj)

    def update(self, file_id, metadata, *, content=None, mime_type=None, add_parents=None, remove_parents=None):
        self._check("update")
        obj = self.objects[file_id]
        parents = [p for p in obj.parents if p != remove_parents]
        if add_parents:
            parents.append(add_parents)
        updated = RemoteObject(
            object_id=file_id,
            name=metadata.get("name", obj.name),
            mime_type=metadata.get("mimeType", obj.mime_type),
            parents=parents,
            size=obj.size,
            modified_time=obj.modified_time,
            permissions=list(obj.permissions),
        )
        if content is not None:
            self.content[file_id] = content
            updated.size = len(content)
        return self._add(updated)

    def copy(self, file_id, metadata):
        self._check("copy")
        src = self.objects[file_id]
        obj = RemoteObject(
            object_id=self._new_id(),
            name=metadata["name"],
            mime_type=src.mime_type,
            parents=list(metadata["parents"]),
            size=src.size,
        )
        self.content[obj.object_id] = self.content.get(file_id, b"")
        return self._add(obj)

    def trash(self, file_id):
        self._check("trash")
        self.objects[file_id].trashed = True

    def delete(self, file_id):
        self._check("delete")
        del self.objects[file_id]

    def get_media(self, file_id):
        self._check("get_media")
        return self.content[file_id]

    def create_permission(self, file_id, permission):
        self._check("create_permission")
        return Permission(type=permission["type"], role=permission["role"], permission_id="anyoneWithLink")

    def delete_permission(self, file_id, permission_id):
        self._check("delete_permission")


class TestGoogleDriveAdapter(unittest.TestCase):
    def _adapter(self, **opts):
        drive = FakeDrive()
        drive.add_dir("D1", ["0AROOT"])
        drive.add_file("F1", "report.final.pdf", ["D1"], b"%PDF-1.4", mime="application/pdf")
        adapter = GoogleDriveAdapter.from_client(drive, options=AdapterOptions(**opts))
        return adapter, drive

    # ----------------------------
    # Read
    # ----------------------------
    def test_get_metadata_of_file(self) -> None:
        adapter, _ = self._adapter()

        meta = adapter.get_metadata("D1/F1")

        self.assertEqual(meta.path, "D1/F1")
        self.assertEqual(meta.type, "file")
        self.assertEqual(meta.filename, "report.final")
        self.assertEqual(meta.extension, "pdf")
        self.assertEqual(meta.size, 8)
        self.assertEqual(meta.mimetype, "application/pdf")
        self.assertEqual(meta.timestamp, 1735689600)
        self.assertIsNone(meta.has_dir)

    def test_get_metadata_of_dir(self) -> None:
        adapter, _ = self._adapter()

        meta = adapter.get_metadata("D1")

        self.assertEqual(meta.type, "dir")
        self.assertEqual(meta.size, 0)
        self.assertIsNone(meta.mimetype)
        self.assertIsNone(adapter.get_mimetype("D1"))

    def test_has_and_missing(self) -> None:
        adapter, _ = self._adapter()
        self.assertTrue(adapter.has("D1/F1"))
        self.assertFalse(adapter.has("D1/nope"))
        self.assertIsNone(adapter.get_metadata("D1/nope"))
        self.assertIsNone(adapter.read("D1/nope"))

    def test_read(self) -> None:
        adapter, _ = self._adapter()
        self.assertEqual(adapter.read("D1/F1"), b"%PDF-1.4")
        self.assertIsNone(adapter.read("D1"))

    def test_fetch_failure_is_reported_not_raised(self) -> None:
        adapter, drive = self._adapter()
        drive.fail["get"] = ApiError("boom")

        with self.assertLogs("gdrivefs.adapter", level="WARNING"):
            self.assertFalse(adapter.has("D1/F1"))

    def test_list_contents(self) -> None:
        adapter, drive = self._adapter()
        drive.add_file("F2", "b.txt", ["0AROOT"], b"b")

        shallow = adapter.list_contents("")
        self.assertEqual(sorted(m.path for m in shallow), ["D1", "F2"])

        deep = adapter.list_contents("", recursive=True)
        self.assertEqual(sorted(m.path for m in deep), ["D1", "D1/F1", "F2"])
        self.assertFalse(adapter.list_result("").truncated)

    def test_has_dir(self) -> None:
        adapter, drive = self._adapter(use_has_dir=True)
        drive.add_dir("D2", ["D1"])

        self.assertTrue(adapter.has_dir("D1"))
        self.assertFalse(adapter.has_dir("D1/D2"))
        self.assertTrue(adapter.get_metadata("D1").has_dir)

    def test_has_dir_unknown_without_tracking(self) -> None:
        adapter, _ = self._adapter()
        self.assertTrue(adapter.has_dir("D1"))

    # ----------------------------
    # Write
    # ----------------------------
    def test_write_creates_and_caches(self) -> None:
        adapter, drive = self._adapter()

        meta = adapter.write("D1/notes.txt", b"hello")

        self.assertEqual(meta.path, "D1/N1")
        self.assertEqual(meta.mimetype, "text/plain")
        self.assertEqual(meta.size, 5)
        self.assertIsNone(meta.visibility)
        self.assertIn("N1", adapter.cache)

        calls_before = len(drive.calls)
        self.assertTrue(adapter.has("D1/N1"))
        self.assertEqual(len(drive.calls), calls_before)

    def test_write_twice_updates(self) -> None:
        adapter, drive = self._adapter()

        first = adapter.write("D1/notes.txt", b"one")
        second = adapter.update("D1/notes.txt", b"two!")

        self.assertEqual(first.path, second.path)
        self.assertEqual(drive.calls.count("create"), 1)
        self.assertEqual(drive.calls.count("update"), 1)
        self.assertEqual(adapter.read(second.path), b"two!")

    def test_write_stream_with_visibility(self) -> None:
        adapter, _ = self._adapter()

        meta = adapter.write_stream("a.bin", io.BytesIO(b"\x00\x01"), {"visibility": "public"})

        self.assertEqual(meta.visibility, "public")
        self.assertEqual(meta.mimetype, "application/octet-stream")
        self.assertEqual(adapter.get_visibility(meta.path), "public")

    def test_write_visibility_failure_keeps_write(self) -> None:
        adapter, drive = self._adapter()
        drive.fail["create_permission"] = ApiError("denied")

        with self.assertLogs("gdrivefs.visibility", level="WARNING"):
            meta = adapter.write("a.txt", b"x", {"visibility": "public"})

        self.assertIsNotNone(meta)
        self.assertIsNone(meta.visibility)

    def test_write_failure_returns_none(self) -> None:
        adapter, drive = self._adapter()
        drive.fail["create"] = ApiError("boom")

        with self.assertLogs("gdrivefs.adapter", level="WARNING"):
            self.assertIsNone(adapter.write("a.txt", b"x"))

    def test_create_dir(self) -> None:
        adapter, drive = self._adapter(use_has_dir=True)

        meta = adapter.create_dir("D1/sub")

        self.assertEqual(meta.type, "dir")
        self.assertEqual(meta.path, "D1/N1")
        self.assertFalse(meta.has_dir)
        self.assertEqual(drive.objects["N1"].parents, ["D1"])

    def test_rename_within_parent(self) -> None:
        adapter, drive = self._adapter()
        adapter.get_metadata("D1/F1")

        self.assertTrue(adapter.rename("D1/F1", "D1/renamed.pdf"))

        self.assertEqual(drive.objects["F1"].name, "renamed.pdf")
        self.assertEqual(drive.objects["F1"].parents, ["D1"])
        self.assertEqual(adapter.cache.get("F1").name, "renamed.pdf")
        self.assertIsNone(adapter.cache.get_by_name("D1", "report.final.pdf"))

    def test_rename_moves_between_parents(self) -> None:
        adapter, drive = self._adapter()
        drive.add_dir("D2", ["0AROOT"])

        self.assertTrue(adapter.rename("D1/F1", "D2/moved.pdf"))

        self.assertEqual(drive.objects["F1"].parents, ["D2"])
        self.assertIs(adapter.cache.get_by_name("D2", "moved.pdf"), adapter.cache.get("F1"))

    def test_rename_missing_is_false(self) -> None:
        adapter, _ = self._adapter()
        self.assertFalse(adapter.rename("D1/nope", "D1/x"))

    def test_copy_mirrors_visibility(self) -> None:
        adapter, drive = self._adapter()
        drive.objects["F1"].permissions.append(Permission("anyone", "reader", "anyoneWithLink"))

        self.assertTrue(adapter.copy("D1/F1", "D1/copy.pdf"))

        self.assertIn("create_permission", drive.calls)
        self.assertEqual(adapter.read("D1/N1"), b"%PDF-1.4")

    def test_copy_of_private_file_stays_private(self) -> None:
        adapter, drive = self._adapter()

        self.assertTrue(adapter.copy("D1/F1", "copy.pdf"))

        self.assertNotIn("create_permission", drive.calls)
        self.assertEqual(adapter.get_visibility("N1"), "private")

    def test_delete_trashes_and_evicts(self) -> None:
        adapter, drive = self._adapter()
        adapter.get_metadata("D1/F1")

        self.assertTrue(adapter.delete("D1/F1"))

        self.assertIn("trash", drive.calls)
        self.assertNotIn("F1", adapter.cache)
        self.assertIsNone(adapter.get_metadata("D1/F1"))

    def test_delete_permanently(self) -> None:
        adapter, drive = self._adapter(delete_action="delete")

        self.assertTrue(adapter.delete("D1/F1"))

        self.assertIn("delete", drive.calls)
        self.assertNotIn("F1", drive.objects)
        self.assertFalse(adapter.has("D1/F1"))

    def test_delete_with_several_parents_unlinks(self) -> None:
        adapter, drive = self._adapter()
        drive.add_dir("D2", ["0AROOT"])
        drive.objects["F1"].parents.append("D2")

        self.assertTrue(adapter.delete("D2/F1"))

        self.assertNotIn("trash", drive.calls)
        self.assertEqual(drive.objects["F1"].parents, ["D1"])

    def test_delete_missing_is_false(self) -> None:
        adapter, _ = self._adapter()
        self.assertFalse(adapter.delete_dir("nope"))

    def test_get_url_publishes(self) -> None:
        adapter, drive = self._adapter()
        meta = adapter.write("a.txt", b"x")

        url = adapter.get_url(meta.path)

        self.assertEqual(url, "https://drive.google.com/uc?id=X&export=media")
        self.assertIn("create_permission", drive.calls)

    def test_set_visibility(self) -> None:
        adapter, drive = self._adapter()

        self.assertTrue(adapter.set_visibility("D1/F1", "public"))
        self.assertEqual(adapter.get_visibility("D1/F1"), "public")
        self.assertTrue(adapter.set_visibility("D1/F1", "private"))
        self.assertEqual(adapter.get_visibility("D1/F1"), "private")
        self.assertIn("delete_permission", drive.calls)

    def test_root_option(self) -> None:
        drive = FakeDrive()
        drive.add_dir("BASE", ["0AROOT"])
        drive.add_file("F9", "x.txt", ["BASE"], b"x")
        adapter = GoogleDriveAdapter.from_client(drive, root="BASE")

        self.assertEqual(adapter.root_id, "BASE")
        self.assertEqual([m.path for m in adapter.list_contents()], ["F9"])

    def test_options_from_dict(self) -> None:
        adapter = GoogleDriveAdapter.from_client(FakeDrive(), options={"team_drive_id": "TD1"})
        self.assertEqual(adapter.root_id, "TD1")
        self.assertEqual(adapter.options.team_drive_id, "TD1")

    def test_set_team_drive_id(self) -> None:
        drive = FakeDrive()
        adapter = GoogleDriveAdapter.from_client(drive)
        adapter.write("a.txt", b"x")

        adapter.set_team_drive_id("TD1")

        self.assertEqual(adapter.root_id, "TD1")
        self.assertEqual(drive.options.command_params("files.list")["driveId"], "TD1")
        self.assertEqual(len(adapter.cache), 0)


if __name__ == "__main__":
    unittest.main()
