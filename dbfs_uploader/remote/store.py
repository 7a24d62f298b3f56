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

"""Create remote block stores from upload location URLs."""

import urllib.parse

from typing import Any, List

from dbfs_uploader.remote.base import FileStatus, RemoteBlockStoreBase
from dbfs_uploader.remote.local import LocalBlockStore


# Supported protocols.  Built based on which optional modules are available for
# remote storage providers.
SUPPORTED_PROTOCOLS: List[str] = ['file']


# All supported protocols.  Used to provide more useful error messages.
ALL_SUPPORTED_PROTOCOLS: List[str] = ['dbfs', 'file']


# Try to load the DBFS store.  If we can, the user has the Databricks SDK.
try:
  from dbfs_uploader.remote.dbfs import DBFSBlockStore
  SUPPORTED_PROTOCOLS.append('dbfs')
except ImportError:
  pass


class VerboseBlockStore(RemoteBlockStoreBase):
  """A proxy for another store that prints each call before making it.

  The output looks like "bash -x", so that it is easy to see which remote calls
  were made and in what order."""

  def __init__(self, store: RemoteBlockStoreBase) -> None:
    self._store = store

  def mkdirs(self, path: str) -> None:
    print('+ mkdirs', path)
    self._store.mkdirs(path)

  def create(self, path: str, overwrite: bool) -> Any:
    print('+ create', path, '--overwrite' if overwrite else '')
    handle = self._store.create(path, overwrite)
    print('  handle', handle)
    return handle

  def add_block(self, handle: Any, data: bytes) -> None:
    print('+ add-block', handle, '({} bytes)'.format(len(data)))
    self._store.add_block(handle, data)

  def close(self, handle: Any) -> None:
    print('+ close', handle)
    self._store.close(handle)

  def get_status(self, path: str) -> FileStatus:
    print('+ get-status', path)
    return self._store.get_status(path)

  def delete(self, path: str, recursive: bool) -> None:
    print('+ delete', path, '--recursive' if recursive else '')
    self._store.delete(path, recursive)


def is_understood(upload_location: str) -> bool:
  """Is the URL understood, independent of libraries available?"""
  url = urllib.parse.urlparse(upload_location)
  return url.scheme in ALL_SUPPORTED_PROTOCOLS


def is_supported(upload_location: str) -> bool:
  """Is the URL supported with the libraries available?"""
  url = urllib.parse.urlparse(upload_location)
  return url.scheme in SUPPORTED_PROTOCOLS


def create(upload_location: str, verbose: bool = False) -> RemoteBlockStoreBase:
  """Create a store appropriate to the upload location URL."""

  if not is_understood(upload_location):
    raise RuntimeError("Protocol of {} isn't supported.  Use one of: {}".format(
        upload_location, ', '.join(ALL_SUPPORTED_PROTOCOLS)))

  if not is_supported(upload_location):
    # Only dbfs depends on an optional module.
    raise RuntimeError(
        'databricks-sdk was not found.\n'
        '  Install it with `pip install databricks-sdk`.')

  store: RemoteBlockStoreBase
  if urllib.parse.urlparse(upload_location).scheme == 'dbfs':
    store = DBFSBlockStore(upload_location)
  else:
    store = LocalBlockStore(upload_location)

  if verbose:
    store = VerboseBlockStore(store)
  return store
