# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Path-addressed remote block storage.

Base class definition."""

import abc

from typing import Any


# The remote service rejects add-block calls larger than this.
MAX_BLOCK_SIZE = 900000


class FileStatus(object):
  """The status of a remote path, as reported by get_status()."""

  def __init__(self, is_dir: bool, file_size: int = 0) -> None:
    self.is_dir: bool = is_dir
    self.file_size: int = file_size

  def __eq__(self, other: Any) -> bool:
    return (isinstance(other, FileStatus) and
            (self.is_dir, self.file_size) == (other.is_dir, other.file_size))

  def __repr__(self) -> str:
    return 'FileStatus(is_dir={!r}, file_size={!r})'.format(
        self.is_dir, self.file_size)


class RemoteBlockStoreBase(object):
  """The remote operations consumed by the uploader.

  Implementations raise dbfs_uploader.errors.NotFoundError for missing paths,
  ConflictError for non-empty directories deleted without recursive=True, and
  RemoteError for everything else the service reports."""

  @abc.abstractmethod
  def mkdirs(self, path: str) -> None:
    """Create a directory and any missing parents.  Existing ones are fine."""
    pass

  @abc.abstractmethod
  def create(self, path: str, overwrite: bool) -> Any:
    """Open a stream to path and return an opaque handle for it."""
    pass

  @abc.abstractmethod
  def add_block(self, handle: Any, data: bytes) -> None:
    """Append a block of at most MAX_BLOCK_SIZE bytes to an open handle."""
    pass

  @abc.abstractmethod
  def close(self, handle: Any) -> None:
    """Close the handle, committing the uploaded blocks."""
    pass

  @abc.abstractmethod
  def get_status(self, path: str) -> FileStatus:
    """Get the file or directory status of path."""
    pass

  @abc.abstractmethod
  def delete(self, path: str, recursive: bool) -> None:
    """Delete the file or directory at path."""
    pass
