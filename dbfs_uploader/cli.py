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

"""Command-line front end for dbfs-uploader."""

import argparse
import os
import sys
import traceback

from typing import Any, Dict, List, Optional

import yaml

from dbfs_uploader import __version__
from dbfs_uploader.configuration import ConfigError
from dbfs_uploader.errors import UploadError
from dbfs_uploader.reconciler import ObservedState, UploadReconciler
from dbfs_uploader.remote import store as remote_store
from dbfs_uploader.upload_configuration import (
    AbandonPolicy, DesiredUpload, UploaderConfig)


DESCRIPTION = """
Upload local files to DBFS, or create DBFS directories.

Files are sent in blocks of at most 900,000 bytes.  Updating a file replaces
it completely.  Directories are never deleted recursively.
"""


def _add_desired_args(parser: argparse.ArgumentParser) -> None:
  parser.add_argument('-c', '--config',
                      help='A YAML file with dbfs_path and source fields.  ' +
                           'Flags given on the command line take precedence.')
  parser.add_argument('--dbfs-path',
                      help='The absolute remote path, starting with "/".')
  parser.add_argument('--source',
                      help='The local file to upload.  Leave this out to ' +
                           'create a directory.')


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
      prog='dbfs-uploader', description=DESCRIPTION,
      formatter_class=argparse.RawDescriptionHelpFormatter)
  parser.add_argument('--version', action='version',
                      version='%(prog)s ' + __version__)
  parser.add_argument('--upload-location',
                      default=os.environ.get('DBFS_UPLOAD_LOCATION', 'dbfs://'),
                      help='dbfs://, dbfs://PROFILE, or file:///some/dir.  ' +
                           'Defaults to $DBFS_UPLOAD_LOCATION or dbfs://.')
  parser.add_argument('--abandon-policy',
                      default=AbandonPolicy.LEAVE.value,
                      choices=[policy.value for policy in AbandonPolicy],
                      help='What to do with the upload handle if a transfer ' +
                           'fails.')
  parser.add_argument('-v', '--verbose', action='store_true',
                      help='Print every remote call as it is made.')

  subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
  subparsers.required = True

  _add_desired_args(subparsers.add_parser(
      'create', help='Create a directory or upload a file.'))
  _add_desired_args(subparsers.add_parser(
      'update', help='Replace an uploaded file with new content.'))

  for command, help_text in [('read', 'Show the remote state of a path.'),
                        ('delete', 'Delete a file or an empty directory.')]:
    subparser = subparsers.add_parser(command, help=help_text)
    subparser.add_argument('--dbfs-path', required=True,
                           help='The absolute remote path, starting with "/".')

  return parser.parse_args(argv)


def _desired_upload(args: argparse.Namespace) -> DesiredUpload:
  config_dict: Dict[str, Any] = {}
  if getattr(args, 'config', None):
    with open(args.config) as f:
      config_dict = yaml.safe_load(f) or {}

  for key in ['dbfs_path', 'source']:
    value = getattr(args, key, None)
    if value is not None:
      config_dict[key] = value

  return DesiredUpload(config_dict)


def _run(args: argparse.Namespace) -> Optional[ObservedState]:
  uploader_config = UploaderConfig({
    'upload_location': args.upload_location,
    'abandon_policy': args.abandon_policy,
    'verbose': args.verbose,
  })

  store = remote_store.create(uploader_config.upload_location,
                              verbose=uploader_config.verbose)
  reconciler = UploadReconciler(
      store, abandon_policy=uploader_config.abandon_policy)

  desired = _desired_upload(args)
  if args.command == 'create':
    return reconciler.create(desired)
  elif args.command == 'update':
    return reconciler.update(desired.dbfs_path, desired)
  elif args.command == 'read':
    return reconciler.read(desired.dbfs_path)
  else:
    reconciler.delete(desired.dbfs_path)
    return None


def main(argv: Optional[List[str]] = None) -> int:
  args = _parse_args(argv)

  try:
    state = _run(args)
  except (ConfigError, UploadError, OSError, RuntimeError,
          yaml.YAMLError) as e:
    print('dbfs-uploader: ' + str(e), file=sys.stderr)
    if args.verbose:
      traceback.print_exc()
    return 1

  if state is not None:
    print(yaml.safe_dump(state.to_dict(), default_flow_style=False), end='')
  return 0
