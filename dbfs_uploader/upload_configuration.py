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

import enum

from . import configuration


class RemotePath(configuration.ValidatingType, str):
  """A wrapper that can be used in Field() to require an absolute remote path."""

  @staticmethod
  def name() -> str:
    return 'absolute remote path'

  @staticmethod
  def validate(value):
    if type(value) is not str:
      raise TypeError()
    if not value.startswith('/'):
      raise ValueError('{!r} does not start with "/"'.format(value))
    if value.rstrip('/') != value and value != '/':
      raise ValueError('{!r} has a trailing "/"'.format(value))


class AbandonPolicy(enum.Enum):
  """What to do with an open upload handle when an upload fails."""

  LEAVE = 'leave'
  """Leave the handle open.  The remote service expires it eventually."""

  CLOSE = 'close'
  """Make a best-effort attempt to close the handle.

  A failure to close is attached to the original error, which is still the one
  raised.
  """


class DesiredUpload(configuration.Base):
  """The desired state of one remote path."""

  dbfs_path = configuration.Field(RemotePath, required=True).cast()
  """The absolute remote path to create.  Must start with "/"."""

  source = configuration.Field(str, default='').cast()
  """The local file to upload to dbfs_path.

  Relative paths are resolved against the current working directory.  If empty
  or missing, dbfs_path is created as a directory instead.
  """


class UploaderConfig(configuration.Base):
  """Settings for the uploader itself, shared by every operation."""

  upload_location = configuration.Field(str, default='dbfs://').cast()
  """Where the remote paths live.

  "dbfs://" uses the default Databricks SDK configuration, "dbfs://PROFILE"
  uses a named profile, and "file:///some/dir" uses a local directory as the
  root of the remote namespace.
  """

  abandon_policy = configuration.Field(
      AbandonPolicy, default=AbandonPolicy.LEAVE).cast()
  """What to do with the upload handle when a transfer fails."""

  verbose = configuration.Field(bool, default=False).cast()
  """Print every remote call as it is made."""
