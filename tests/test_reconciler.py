import pytest

from conftest import file_contents
from dbfs_uploader.errors import (
    ConflictError, InvalidPathError, NotFoundError, TransferError)
from dbfs_uploader.reconciler import ObservedState, UploadReconciler
from dbfs_uploader.remote.local import LocalBlockStore
from dbfs_uploader.upload_configuration import DesiredUpload


def desired(dbfs_path, source=""):
    return DesiredUpload({"dbfs_path": dbfs_path, "source": source})


class TestCreate:
    def test_directory(self, store):
        state = UploadReconciler(store).create(desired("/tmp/x"))

        assert store.calls == [("mkdirs", "/tmp/x")]
        assert state == ObservedState("/tmp/x", True)
        assert state.file_size is None

    def test_file_makes_parent_then_uploads(self, store, make_file):
        state = UploadReconciler(store).create(
            desired("/jars/lib/app.jar", make_file(1234)))

        assert store.ops() == ["mkdirs", "create", "add_block", "close"]
        assert store.calls[0] == ("mkdirs", "/jars/lib")
        assert store.calls[1] == ("create", "/jars/lib/app.jar", True)
        assert state == ObservedState("/jars/lib/app.jar", False, 1234)

    def test_parent_mkdirs_failure_is_ignored(self, store, make_file):
        store.failures["mkdirs"] = 1

        state = UploadReconciler(store).create(
            desired("/jars/app.jar", make_file(10)))

        assert state.file_size == 10
        assert store.paths["/jars/app.jar"] == file_contents(10)

    def test_missing_source_fails_before_any_remote_call(self, store,
                                                         tmp_path):
        with pytest.raises(InvalidPathError):
            UploadReconciler(store).create(
                desired("/jars/app.jar", str(tmp_path / "nope.jar")))

        assert store.calls == []


class TestRead:
    def test_file(self, store):
        store.paths["/data/a.csv"] = b"a,b\n1,2\n"

        state = UploadReconciler(store).read("/data/a.csv")

        assert state == ObservedState("/data/a.csv", False, 8)

    def test_directory_has_no_size(self, store):
        UploadReconciler(store).create(desired("/data"))

        state = UploadReconciler(store).read("/data")

        assert state.is_directory
        assert state.file_size is None
        assert state.to_dict() == {"dbfs_path": "/data", "is_directory": True}

    def test_missing_path(self, store):
        with pytest.raises(NotFoundError):
            UploadReconciler(store).read("/nope")

    def test_read_is_idempotent(self, store, make_file):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(5000)))

        assert reconciler.read("/data/a.bin") == reconciler.read("/data/a.bin")


class TestUpdate:
    def test_file_is_replaced(self, store, make_file):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(10, "old.bin")))
        new_source = make_file(1000001, "new.bin")
        store.calls = []

        state = reconciler.update("/data/a.bin", desired("/data/a.bin",
                                                         new_source))

        assert store.calls[0] == ("get_status", "/data/a.bin")
        assert store.calls[1] == ("delete", "/data/a.bin", False)
        assert store.block_sizes() == [900000, 100001]
        assert state.file_size == 1000001
        assert reconciler.read("/data/a.bin").file_size == 1000001

    def test_directory_is_a_no_op(self, store):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data"))
        store.calls = []

        state = reconciler.update("/data", desired("/data"))

        assert store.ops() == ["get_status"]
        assert state == ObservedState("/data", True)

    def test_bad_source_keeps_the_old_file(self, store, make_file, tmp_path):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(10)))

        with pytest.raises(InvalidPathError):
            reconciler.update("/data/a.bin", desired(
                "/data/a.bin", str(tmp_path / "missing.bin")))

        assert "delete" not in store.ops()
        assert reconciler.read("/data/a.bin").file_size == 10

    def test_failed_upload_after_delete_is_reported(self, store, make_file,
                                                    capsys):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(10)))
        store.failures["add_block"] = 2

        with pytest.raises(TransferError):
            reconciler.update("/data/a.bin", desired("/data/a.bin",
                                                     make_file(20, "b.bin")))

        assert "/data/a.bin was deleted" in capsys.readouterr().err
        with pytest.raises(NotFoundError):
            reconciler.read("/data/a.bin")

    def test_missing_path(self, store, make_file):
        with pytest.raises(NotFoundError):
            UploadReconciler(store).update(
                "/nope", desired("/nope", make_file(10)))

        assert store.ops() == ["get_status"]

    def test_desired_directory_replaces_a_file(self, store, make_file):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a", make_file(10)))
        store.calls = []

        state = reconciler.update("/data/a", desired("/data/a"))

        assert store.calls == [
            ("get_status", "/data/a"),
            ("delete", "/data/a", False),
            ("mkdirs", "/data/a"),
        ]
        assert state == ObservedState("/data/a", True)
        assert reconciler.read("/data/a").is_directory


class TestDelete:
    def test_is_never_recursive(self, store, make_file):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(10)))

        reconciler.delete("/data/a.bin")

        assert store.calls[-1] == ("delete", "/data/a.bin", False)
        with pytest.raises(NotFoundError):
            reconciler.read("/data/a.bin")

    def test_non_empty_directory(self, store, make_file):
        reconciler = UploadReconciler(store)
        reconciler.create(desired("/data/a.bin", make_file(10)))

        with pytest.raises(ConflictError):
            reconciler.delete("/data")

    def test_missing_path(self, store):
        with pytest.raises(NotFoundError):
            UploadReconciler(store).delete("/nope")


class TestLifecycle:
    def test_file_against_local_store(self, tmp_path, make_file):
        root = tmp_path / "dbfs"
        root.mkdir()
        store = LocalBlockStore("file://" + str(root))
        reconciler = UploadReconciler(store)

        created = reconciler.create(
            desired("/FileStore/app.jar", make_file(1900000, "v1.jar")))
        assert created == reconciler.read("/FileStore/app.jar")
        assert created.file_size == 1900000

        updated = reconciler.update(
            "/FileStore/app.jar", desired("/FileStore/app.jar",
                                          make_file(7, "v2.jar")))
        assert updated.file_size == 7
        assert (root / "FileStore" / "app.jar").read_bytes() == file_contents(7)

        reconciler.delete("/FileStore/app.jar")
        with pytest.raises(NotFoundError):
            reconciler.read("/FileStore/app.jar")
        assert store.open_handles() == 0

    def test_directory_against_local_store(self, tmp_path):
        store = LocalBlockStore("file://" + str(tmp_path))
        reconciler = UploadReconciler(store)

        assert reconciler.create(desired("/a/b")).is_directory
        assert reconciler.update("/a/b", desired("/a/b")).is_directory

        with pytest.raises(ConflictError):
            reconciler.delete("/a")
        reconciler.delete("/a/b")
        reconciler.delete("/a")
        with pytest.raises(NotFoundError):
            reconciler.read("/a")
