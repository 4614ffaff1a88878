# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
updater - release catalog and update determination core.

Decides, for a client reporting its application, version, platform and
architecture, whether a newer release exists and which one to offer. The
package also validates and filters the release catalog for listing and
registration.

Features
--------
  - Strict version parsing with a total order (prerelease aware)
  - Best-release selection under application policy (prerelease inclusion,
    version bounds, minimum-version gated required updates)
  - Release filter validation, sorting and pagination
  - Registration validation with field-level errors
  - Pluggable storage (in-memory, JSON file) behind a protocol
  - Cooperative cancellation with deadlines
  - Artifact download with checksum verification

Quick Start
-----------
Register a release and check for updates:

    $ updater --catalog catalog.json register releases/my-app.yaml
    $ updater --catalog catalog.json check my-app 1.2.0 linux amd64

For full CLI documentation:

    $ updater --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
service : module
    UpdateService, the upward interface for an HTTP layer.
versioning : package
    Version parsing, ordering and constraints.
policy : package
    Determination algorithm (pure functions).
storage : package
    Storage protocol and bundled backends.
config : package
    YAML configuration loading and merging.
io : package
    Artifact download and verification.

Public API
----------
    from updater import UpdateService, MemoryStorage
    from updater.config import load_config
    from updater.versioning import parse_version, compare_versions

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"
__description__ = "Release catalog and update determination core"

# Re-export commonly used names for convenience
from updater.cancellation import CancellationToken
from updater.config import ServiceSettings, load_config
from updater.filters import ReleaseFilter
from updater.registration import RegisterReleaseRequest
from updater.release import Release, new_release
from updater.service import UpdateService
from updater.storage import JSONStorage, MemoryStorage, create_storage
from updater.versioning import Version, compare_versions, parse_version

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "CancellationToken",
    "JSONStorage",
    "MemoryStorage",
    "RegisterReleaseRequest",
    "Release",
    "ReleaseFilter",
    "ServiceSettings",
    "UpdateService",
    "Version",
    "compare_versions",
    "create_storage",
    "load_config",
    "new_release",
    "parse_version",
]
