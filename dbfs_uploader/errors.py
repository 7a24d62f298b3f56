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

"""Errors raised while uploading to remote block storage.

Every operation aborts on the first error and raises it to the caller.  There
is no internal retry and no rollback of partially written remote objects."""

from typing import Any, Optional


class UploadError(Exception):
  """A base class for all upload errors."""

  close_error: Optional[Exception] = None
  """Set when a best-effort close of an abandoned handle also failed."""


class InvalidPathError(UploadError):
  """Raised when a local source path cannot be resolved or statted."""

  def __init__(self, source: str, local_path: str, reason: str) -> None:
    super().__init__('Unable to use local source {!r} (resolved to {}): {}'.format(
        source, local_path, reason))
    self.source = source
    self.local_path = local_path


class LocalIOError(UploadError):
  """Raised when the local file cannot be opened, statted, or read."""

  def __init__(self, local_path: str, reason: str) -> None:
    super().__init__('Unable to read {}: {}'.format(local_path, reason))
    self.local_path = local_path


class CancelledError(UploadError):
  """Raised when the caller's cancellation event was set mid-upload."""

  def __init__(self, dbfs_path: str) -> None:
    super().__init__('Upload to {} was cancelled'.format(dbfs_path))
    self.dbfs_path = dbfs_path


class ProtocolError(UploadError):
  """A failure in one phase of the create/add-block/close protocol.

  The remote error that caused it is available as __cause__."""

  phase = ''

  def __init__(self, dbfs_path: str, reason: str,
               handle: Any = None) -> None:
    super().__init__('{} failed for {}: {}'.format(
        self.phase, dbfs_path, reason))
    self.dbfs_path = dbfs_path

    self.handle = handle
    """The upload handle, if one was opened before the failure."""


class OpenError(ProtocolError):
  """Raised when the remote service refuses to open an upload handle."""
  phase = 'create'


class TransferError(ProtocolError):
  """Raised when an add-block call fails.  The handle is left open."""
  phase = 'add-block'

  def __init__(self, dbfs_path: str, reason: str, handle: Any,
               position: int) -> None:
    super().__init__(dbfs_path, reason, handle)

    self.position = position
    """The number of bytes acknowledged before the failing block."""


class CloseError(ProtocolError):
  """Raised when closing the handle fails after all blocks were sent."""
  phase = 'close'


class RemoteError(UploadError):
  """A failure reported by the remote block store."""

  def __init__(self, path: str, reason: str) -> None:
    super().__init__('{}: {}'.format(path, reason))
    self.path = path
    self.reason = reason


class NotFoundError(RemoteError):
  """Raised when a remote path does not exist."""
  pass


class ConflictError(RemoteError):
  """Raised when the remote state forbids the operation.

  For example, deleting a non-empty directory without recursive=True."""
  pass
