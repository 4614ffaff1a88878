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

"""Storage backend factory."""

from __future__ import annotations

from typing import Any

from updater.exceptions import ConfigError
from updater.logging import Logger
from updater.storage.base import Storage
from updater.storage.json_file import JSONStorage
from updater.storage.memory import MemoryStorage

SUPPORTED_STORAGE_TYPES: tuple[str, ...] = ("memory", "json")


def create_storage(config: dict[str, Any], *, logger: Logger | None = None) -> Storage:
    """Create a storage backend from a merged configuration.

    Args:
        config: Full configuration as returned by load_config. The
            ``storage`` and ``versioning`` sections are used.
        logger: Logger passed to backends that log.

    Returns:
        A MemoryStorage or JSONStorage instance.

    Raises:
        ConfigError: On an unknown storage type, or a json backend without a
            path.

    Example:
        ```python
        from updater.config import load_config
        from updater.storage import create_storage

        storage = create_storage(load_config(overrides={
            "storage": {"type": "json", "path": "catalog.json"},
        }))
        ```

    """
    storage_cfg = config.get("storage") or {}
    ordering = (config.get("versioning") or {}).get("prerelease_ordering", "lexical")
    storage_type = str(storage_cfg.get("type", "memory")).strip().lower()

    if storage_type == "memory":
        return MemoryStorage(ordering=ordering)
    if storage_type == "json":
        path = storage_cfg.get("path")
        if not path:
            raise ConfigError("storage.path is required for json storage")
        return JSONStorage(path, ordering=ordering, logger=logger)

    raise ConfigError(
        f"Unsupported storage type {storage_type!r}. "
        f"Supported types: {', '.join(SUPPORTED_STORAGE_TYPES)}"
    )
