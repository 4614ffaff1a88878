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

"""Release catalog storage for updater.

Public API:

- Storage: Protocol every backend satisfies.
- MemoryStorage: Thread-safe in-memory backend (tests, development).
- JSONStorage: Single-document JSON file backend with atomic writes.
- create_storage: Build a backend from configuration.
"""

from .base import Storage
from .factory import SUPPORTED_STORAGE_TYPES, create_storage
from .json_file import JSONStorage, load_catalog, save_catalog
from .memory import MemoryStorage

__all__ = [
    "JSONStorage",
    "MemoryStorage",
    "SUPPORTED_STORAGE_TYPES",
    "Storage",
    "create_storage",
    "load_catalog",
    "save_catalog",
]
