import collections

import pytest

from dbfs_uploader.errors import ConflictError, NotFoundError, RemoteError
from dbfs_uploader.remote.base import (
    FileStatus, MAX_BLOCK_SIZE, RemoteBlockStoreBase)


DIRECTORY = object()


class FakeBlockStore(RemoteBlockStoreBase):
    """An in-memory store that records every call made to it.

    Set failures[op] = n to make the nth call to op raise RemoteError.
    """

    def __init__(self):
        self.calls = []
        self.paths = {}
        self.failures = {}
        self._counts = collections.Counter()
        self._pending = {}
        self._next_handle = 1

    def _record(self, op, *args):
        self.calls.append((op,) + args)
        self._counts[op] += 1
        if self.failures.get(op) == self._counts[op]:
            raise RemoteError(str(args[0]), "injected {} failure".format(op))

    def ops(self):
        return [call[0] for call in self.calls]

    def block_sizes(self):
        return [call[2] for call in self.calls if call[0] == "add_block"]

    def open_handles(self):
        return list(self._pending)

    def mkdirs(self, path):
        self._record("mkdirs", path)
        self.paths[path] = DIRECTORY

    def create(self, path, overwrite):
        self._record("create", path, overwrite)
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = (path, bytearray())
        return handle

    def add_block(self, handle, data):
        self._record("add_block", handle, len(data))
        assert len(data) <= MAX_BLOCK_SIZE
        self._pending[handle][1].extend(data)

    def close(self, handle):
        self._record("close", handle)
        path, data = self._pending.pop(handle)
        self.paths[path] = bytes(data)

    def get_status(self, path):
        self._record("get_status", path)
        if path not in self.paths:
            raise NotFoundError(path, "no such file or directory")
        value = self.paths[path]
        if value is DIRECTORY:
            return FileStatus(is_dir=True)
        return FileStatus(is_dir=False, file_size=len(value))

    def delete(self, path, recursive):
        self._record("delete", path, recursive)
        if path not in self.paths:
            raise NotFoundError(path, "no such file or directory")
        children = [p for p in self.paths if p.startswith(path.rstrip("/") + "/")]
        if children and not recursive:
            raise ConflictError(path, "directory is not empty")
        for child in children:
            del self.paths[child]
        del self.paths[path]


def file_contents(size):
    pattern = bytes(range(256))
    return (pattern * (size // len(pattern) + 1))[:size]


@pytest.fixture
def store():
    return FakeBlockStore()


@pytest.fixture
def make_file(tmp_path):
    def _make_file(size, name="source.bin"):
        path = tmp_path / name
        path.write_bytes(file_contents(size))
        return str(path)

    return _make_file
