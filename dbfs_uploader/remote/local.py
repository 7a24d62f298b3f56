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

"""Upload to a directory on the local filesystem.

Implements the same handle protocol as DBFS, including the block size limit,
so that uploads can be staged or tested without a workspace."""

import itertools
import os
import posixpath
import shutil
import urllib.parse

from typing import BinaryIO, Dict

from dbfs_uploader.errors import ConflictError, NotFoundError, RemoteError
from dbfs_uploader.remote.base import FileStatus, MAX_BLOCK_SIZE, RemoteBlockStoreBase


class LocalBlockStore(RemoteBlockStoreBase):
  """See base class for interface docs."""

  def __init__(self, upload_location: str) -> None:
    # If upload_location is "file:///srv/dbfs", url.path is "/srv/dbfs", which
    # is the directory standing in for the DBFS root.
    url = urllib.parse.urlparse(upload_location)

    # "file://staging" parses "staging" as a host, not a directory.
    if url.netloc not in ('', 'localhost'):
      raise RuntimeError(
          'Local upload location {} names a host ({}).  Use file:///{} for '
          'an absolute path.'.format(upload_location, url.netloc,
                                     (url.netloc + url.path).lstrip('/')))

    if not url.path:
      raise RuntimeError(
          'Local upload location {} has no directory.  Use file:///some/dir.'
          .format(upload_location))
    self._root = url.path

    # Handles are plain integers, like DBFS handles.
    self._handle_ids = itertools.count(1)
    self._open_files: Dict[int, BinaryIO] = {}

  def _local_path(self, path: str) -> str:
    # Normalizing against "/" keeps ".." from climbing out of the root.
    clean = posixpath.normpath('/' + path.lstrip('/'))
    return os.path.join(self._root, *clean.split('/'))

  def mkdirs(self, path: str) -> None:
    local_path = self._local_path(path)
    if os.path.isfile(local_path):
      raise RemoteError(path, 'a file already exists at this path')
    os.makedirs(local_path, exist_ok=True)

  def create(self, path: str, overwrite: bool) -> int:
    local_path = self._local_path(path)
    if os.path.isdir(local_path):
      raise ConflictError(path, 'a directory already exists at this path')
    if os.path.exists(local_path) and not overwrite:
      raise ConflictError(path, 'file already exists')

    os.makedirs(os.path.dirname(local_path), exist_ok=True)
    handle = next(self._handle_ids)
    self._open_files[handle] = open(local_path, 'wb')
    return handle

  def add_block(self, handle: int, data: bytes) -> None:
    if handle not in self._open_files:
      raise RemoteError(str(handle), 'invalid or expired handle')
    if len(data) > MAX_BLOCK_SIZE:
      raise RemoteError(str(handle), 'block of {} bytes exceeds {}'.format(
          len(data), MAX_BLOCK_SIZE))
    self._open_files[handle].write(data)

  def close(self, handle: int) -> None:
    output = self._open_files.pop(handle, None)
    if output is None:
      raise RemoteError(str(handle), 'invalid or expired handle')
    output.close()

  def get_status(self, path: str) -> FileStatus:
    local_path = self._local_path(path)
    if os.path.isdir(local_path):
      return FileStatus(is_dir=True)
    if os.path.isfile(local_path):
      return FileStatus(is_dir=False, file_size=os.path.getsize(local_path))
    raise NotFoundError(path, 'no such file or directory')

  def delete(self, path: str, recursive: bool) -> None:
    local_path = self._local_path(path)
    if os.path.isdir(local_path):
      if recursive:
        shutil.rmtree(local_path)
      elif os.listdir(local_path):
        raise ConflictError(path, 'directory is not empty')
      else:
        os.rmdir(local_path)
    elif os.path.isfile(local_path):
      os.remove(local_path)
    else:
      raise NotFoundError(path, 'no such file or directory')

  def open_handles(self) -> int:
    """The number of handles created but not yet closed."""
    return len(self._open_files)
