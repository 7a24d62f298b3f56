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

"""Top-level module API.

Create, read, update, and delete one remote path against its desired state.
If you'd like to build dbfs-uploader into your own tooling, this is the API to
use.  See also the command-line front end in dbfs_uploader.cli.
"""

import sys
import threading

from typing import Any, Dict, Optional

from dbfs_uploader import path_policy
from dbfs_uploader.chunk_uploader import ChunkUploader
from dbfs_uploader.path_policy import ResolvedUpload, UploadMode
from dbfs_uploader.remote.base import RemoteBlockStoreBase
from dbfs_uploader.upload_configuration import AbandonPolicy, DesiredUpload


class ObservedState(object):
  """What the remote service reports about a path after an operation."""

  def __init__(self, dbfs_path: str, is_directory: bool,
               file_size: Optional[int] = None) -> None:
    self.dbfs_path: str = dbfs_path
    self.is_directory: bool = is_directory

    self.file_size: Optional[int] = file_size
    """The size of the remote file in bytes.  None for directories."""

  def __eq__(self, other: Any) -> bool:
    return isinstance(other, ObservedState) and self.to_dict() == other.to_dict()

  def __repr__(self) -> str:
    return 'ObservedState({!r}, is_directory={!r}, file_size={!r})'.format(
        self.dbfs_path, self.is_directory, self.file_size)

  def to_dict(self) -> Dict[str, Any]:
    state: Dict[str, Any] = {
      'dbfs_path': self.dbfs_path,
      'is_directory': self.is_directory,
    }
    if not self.is_directory:
      state['file_size'] = self.file_size
    return state


class UploadReconciler(object):
  """Converges remote paths on their desired state.

  Every remote call goes through the store passed in here; nothing is kept
  between calls, so one reconciler can serve any number of paths.
  """

  def __init__(self, store: RemoteBlockStoreBase,
               cancel: Optional[threading.Event] = None,
               abandon_policy: AbandonPolicy = AbandonPolicy.LEAVE) -> None:
    self._store = store
    self._cancel = cancel
    self._abandon_policy = abandon_policy

  def create(self, desired: DesiredUpload) -> ObservedState:
    """Create desired.dbfs_path as a directory, or upload desired.source to it.

    :raises: :class:`dbfs_uploader.errors.UploadError` on any failure.
    """
    resolved = path_policy.resolve(desired.dbfs_path, desired.source)
    return self._create_resolved(resolved)

  def read(self, dbfs_path: str) -> ObservedState:
    """Report the current remote state of dbfs_path.

    :raises: :class:`dbfs_uploader.errors.NotFoundError` if it doesn't exist.
    """
    status = self._store.get_status(dbfs_path)
    if status.is_dir:
      return ObservedState(dbfs_path, True)
    return ObservedState(dbfs_path, False, status.file_size)

  def update(self, dbfs_path: str, desired: DesiredUpload) -> ObservedState:
    """Replace the remote file at dbfs_path with desired.source.

    Directories have no content, so updating one does nothing.  Files are never
    diffed: the old file is deleted and the new one uploaded in full.  This is
    not atomic.  If the upload fails, dbfs_path is left absent and the error is
    raised as-is.  A desired directory replaces a remote file with an empty
    directory.
    """
    status = self._store.get_status(dbfs_path)
    if status.is_dir:
      return ObservedState(dbfs_path, True)

    # Resolve the source before deleting anything, so that a bad local path
    # leaves the remote file in place.
    resolved = path_policy.resolve(dbfs_path, desired.source)

    self._store.delete(dbfs_path, False)
    try:
      return self._create_resolved(resolved)
    except Exception:
      print('WARNING: {} was deleted, but its replacement failed to upload.  '
            'It no longer exists remotely.'.format(dbfs_path), file=sys.stderr)
      raise

  def delete(self, dbfs_path: str) -> None:
    """Delete dbfs_path.  Non-empty directories are not deleted.

    :raises: :class:`dbfs_uploader.errors.NotFoundError`,
             :class:`dbfs_uploader.errors.ConflictError`
    """
    self._store.delete(dbfs_path, False)

  def _create_resolved(self, resolved: ResolvedUpload) -> ObservedState:
    if resolved.mode == UploadMode.DIRECTORY:
      self._store.mkdirs(resolved.dbfs_path)
      return ObservedState(resolved.dbfs_path, True)

    # Do a "mkdir -p" on the parent.  It usually exists already, and if it
    # really can't be made, create() will fail below with a better error.
    try:
      self._store.mkdirs(path_policy.parent_of(resolved.dbfs_path))
    except Exception:
      pass

    assert resolved.local_path is not None
    uploader = ChunkUploader(self._store, self._cancel, self._abandon_policy)
    file_size = uploader.upload(resolved.dbfs_path, resolved.local_path)
    return ObservedState(resolved.dbfs_path, False, file_size)
