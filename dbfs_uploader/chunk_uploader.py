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

"""Transfers a local file to a remote path in bounded-size blocks.

The remote protocol has three phases:
  1) Issue a create call and get a handle.
  2) Issue one or more add-block calls with that handle.
  3) Issue a close call with that handle.
"""

import os
import threading

from typing import Any, Optional

from dbfs_uploader.errors import (
    CancelledError, CloseError, LocalIOError, OpenError, TransferError,
    UploadError)
from dbfs_uploader.remote.base import MAX_BLOCK_SIZE, RemoteBlockStoreBase
from dbfs_uploader.upload_configuration import AbandonPolicy


class ChunkPlan(object):
  """The read cursor for one upload.

  chunk_size is always min(MAX_BLOCK_SIZE, total_size - position), so the
  final block is exactly the bytes that remain and never empty.
  """

  def __init__(self, total_size: int) -> None:
    self.position: int = 0
    self.total_size: int = total_size
    self.chunk_size: int = min(MAX_BLOCK_SIZE, total_size)

  def advance(self, bytes_sent: int) -> bool:
    """Move past a block that was sent.  Returns True once all are sent."""
    self.position += bytes_sent
    assert self.position <= self.total_size

    if self.position == self.total_size:
      return True

    self.chunk_size = min(MAX_BLOCK_SIZE, self.total_size - self.position)
    return False


class ChunkUploader(object):
  """Runs the create/add-block/close protocol for one file at a time.

  Remote create is always called with overwrite=True.  Callers decide whether
  replacing the remote path is what they want.
  """

  def __init__(self, store: RemoteBlockStoreBase,
               cancel: Optional[threading.Event] = None,
               abandon_policy: AbandonPolicy = AbandonPolicy.LEAVE) -> None:
    """
    Args:
      store: The remote block store to upload to.
      cancel: If set while an upload is running, no further remote calls are
              made and CancelledError is raised.  A call already in flight is
              left to the store to interrupt.
      abandon_policy: What to do with the handle if the upload fails after it
                      was created.
    """
    self._store = store
    self._cancel = cancel
    self._abandon_policy = abandon_policy

  def upload(self, dbfs_path: str, local_path: str) -> int:
    """Upload local_path to dbfs_path.  Returns the number of bytes sent.

    :raises: OpenError, TransferError, CloseError for remote failures,
             LocalIOError if the local file can't be read, and CancelledError.
    """
    self._check_cancelled(dbfs_path)
    try:
      handle = self._store.create(dbfs_path, True)
    except Exception as e:
      raise OpenError(dbfs_path, str(e)) from e

    try:
      bytes_sent = self._transfer(handle, dbfs_path, local_path)
      self._check_cancelled(dbfs_path)
    except UploadError as e:
      self._abandon(handle, e)
      raise

    try:
      self._store.close(handle)
    except Exception as e:
      raise CloseError(dbfs_path, str(e), handle) from e

    return bytes_sent

  def _transfer(self, handle: Any, dbfs_path: str, local_path: str) -> int:
    try:
      with open(local_path, 'rb') as f:
        plan = ChunkPlan(os.fstat(f.fileno()).st_size)

        while True:
          data = f.read(plan.chunk_size)
          if not data:
            # EOF.  Also how an empty file finishes without any blocks.
            break

          self._check_cancelled(dbfs_path)
          try:
            self._store.add_block(handle, data)
          except Exception as e:
            raise TransferError(
                dbfs_path, str(e), handle, plan.position) from e

          if plan.advance(len(data)):
            break
    except OSError as e:
      raise LocalIOError(local_path, e.strerror or str(e)) from e

    return plan.position

  def _abandon(self, handle: Any, error: UploadError) -> None:
    if self._abandon_policy != AbandonPolicy.CLOSE:
      return

    try:
      self._store.close(handle)
    except Exception as close_error:
      # Keep the original error as the one raised.
      error.close_error = close_error

  def _check_cancelled(self, dbfs_path: str) -> None:
    if self._cancel is not None and self._cancel.is_set():
      raise CancelledError(dbfs_path)
