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

"""Decides what kind of upload a desired path is, and where its source lives."""

import enum
import os
import posixpath

from typing import Optional

from dbfs_uploader.errors import InvalidPathError


class UploadMode(enum.Enum):
  DIRECTORY = 'directory'
  """Create the remote path as a directory.  Nothing is transferred."""

  FILE = 'file'
  """Upload the contents of a local file to the remote path."""


class ResolvedUpload(object):
  """A remote path paired with an absolute local source, if any."""

  def __init__(self, mode: UploadMode, dbfs_path: str,
               local_path: Optional[str] = None) -> None:
    self.mode: UploadMode = mode
    self.dbfs_path: str = dbfs_path
    self.local_path: Optional[str] = local_path


def resolve_source(source: str) -> str:
  """Returns the absolute, normalized form of a local source path.

  Relative paths are joined to the current working directory.  Raises
  InvalidPathError if the result cannot be statted.
  """

  local_path = os.path.normpath(source)
  if not local_path.startswith(os.sep):
    try:
      local_path = os.path.normpath(os.path.join(os.getcwd(), local_path))
    except OSError as e:
      raise InvalidPathError(source, local_path, str(e)) from e

  try:
    os.stat(local_path)
  except OSError as e:
    raise InvalidPathError(source, local_path, e.strerror or str(e)) from e

  return local_path


def resolve(dbfs_path: str, source: Optional[str]) -> ResolvedUpload:
  """Resolve the upload mode and local path for a remote path."""

  if not source:
    return ResolvedUpload(UploadMode.DIRECTORY, dbfs_path)

  return ResolvedUpload(UploadMode.FILE, dbfs_path, resolve_source(source))


def parent_of(dbfs_path: str) -> str:
  """The remote directory that contains dbfs_path."""
  return posixpath.dirname(dbfs_path.rstrip('/')) or '/'
