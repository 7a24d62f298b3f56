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

"""Upload to the Databricks File System (DBFS)."""

import base64
import functools
import urllib.parse

from typing import Any, Callable, TypeVar, cast

import databricks.sdk  # type: ignore
import databricks.sdk.errors  # type: ignore
from databricks.sdk.service import files  # type: ignore

from dbfs_uploader.errors import ConflictError, NotFoundError, RemoteError
from dbfs_uploader.remote.base import FileStatus, RemoteBlockStoreBase


# Error codes DBFS uses when a non-recursive delete hits a non-empty directory.
# IO_ERROR means other things for other calls, so only delete checks these.
DIRECTORY_NOT_EMPTY_CODES = ['DIRECTORY_NOT_EMPTY', 'IO_ERROR']


ReturnType = TypeVar('ReturnType')


def _translate_errors(
    method: Callable[..., ReturnType]) -> Callable[..., ReturnType]:
  """Map SDK exceptions onto the uploader's remote error types.

  The first positional argument of the wrapped method names the path (or
  handle) used in the error message."""

  @functools.wraps(method)
  def wrapper(self: 'DBFSBlockStore', target: Any, *args, **kwargs):
    try:
      return method(self, target, *args, **kwargs)
    except databricks.sdk.errors.NotFound as e:
      raise NotFoundError(str(target), str(e)) from e
    except databricks.sdk.errors.DatabricksError as e:
      if isinstance(e, databricks.sdk.errors.ResourceConflict):
        raise ConflictError(str(target), str(e)) from e
      raise RemoteError(str(target), str(e)) from e

  return cast(Callable[..., ReturnType], wrapper)


class DBFSBlockStore(RemoteBlockStoreBase):
  """See base class for interface docs."""

  def __init__(self, upload_location: str) -> None:
    # Parse the upload location (URL).
    url = urllib.parse.urlparse(upload_location)

    # If upload_location is "dbfs://foo/bar", url.netloc is "foo", which is the
    # name of a profile in ~/.databrickscfg.  With no profile, the SDK falls
    # back to its environment variables and default profile.
    self._client = databricks.sdk.WorkspaceClient(profile=url.netloc or None)

    # Talk to the DBFS REST API directly.  The higher-level helpers on
    # WorkspaceClient.dbfs refuse to delete empty directories without the
    # recursive flag.
    self._dbfs = files.DbfsAPI(self._client.api_client)

    # Strip the right slash so that base path + "/path" has no blank folder.
    self._base_path = url.path.rstrip('/')

  def _full_path(self, path: str) -> str:
    return self._base_path + '/' + path.lstrip('/')

  @_translate_errors
  def mkdirs(self, path: str) -> None:
    self._dbfs.mkdirs(self._full_path(path))

  @_translate_errors
  def create(self, path: str, overwrite: bool) -> Any:
    response = self._dbfs.create(self._full_path(path), overwrite=overwrite)
    return response.handle

  @_translate_errors
  def add_block(self, handle: Any, data: bytes) -> None:
    # The REST API carries blocks as base64 in a JSON body.
    self._dbfs.add_block(handle, base64.b64encode(data).decode('ascii'))

  @_translate_errors
  def close(self, handle: Any) -> None:
    self._dbfs.close(handle)

  @_translate_errors
  def get_status(self, path: str) -> FileStatus:
    info = self._dbfs.get_status(self._full_path(path))
    return FileStatus(bool(info.is_dir), info.file_size or 0)

  @_translate_errors
  def delete(self, path: str, recursive: bool) -> None:
    try:
      self._dbfs.delete(self._full_path(path), recursive=recursive)
    except databricks.sdk.errors.DatabricksError as e:
      if (not recursive and
          getattr(e, 'error_code', None) in DIRECTORY_NOT_EMPTY_CODES):
        raise ConflictError(path, str(e)) from e
      raise
