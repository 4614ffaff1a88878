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
Configuration loader for updater.

Layers
------
1. **Built-in defaults** (DEFAULT_CONFIG)
   - Memory storage, lexical prerelease ordering, page size 50
2. **Configuration file** (YAML, optional)
   - Deployment settings (storage backend and path, ordering, page size)
3. **Overrides** (dict, optional)
   - Values from the command line or the embedding application

Merge Behavior
--------------
The loader performs deep merging with "last wins" semantics:

  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution
---------------
A relative ``storage.path`` given in a configuration file is resolved against
the directory of that file, so a config file and its catalog can be moved
together.

Error Handling
--------------
- FileNotFoundError: Configuration file doesn't exist
- ConfigError: YAML parse errors, non-mapping documents, invalid values
- All errors are chained with "from err" for better debugging

Examples
--------
Basic usage:

    >>> from pathlib import Path
    >>> from updater.config import load_config
    >>> cfg = load_config(Path("updater.yaml"))
    >>> cfg["storage"]["type"]
    'json'

Overrides win over the file:

    >>> cfg = load_config(overrides={"listing": {"default_limit": 20}})
    >>> cfg["listing"]["default_limit"]
    20
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from updater.exceptions import ConfigError
from updater.logging import Logger, get_global_logger
from updater.versioning import PRERELEASE_ORDERINGS, PrereleaseOrdering

DEFAULT_CONFIG: dict[str, Any] = {
    "storage": {"type": "memory", "path": "catalog.json"},
    "versioning": {"prerelease_ordering": "lexical"},
    "listing": {"default_limit": 50},
    "logging": {"verbose": False, "debug": False},
}

STORAGE_TYPES = ("memory", "json")


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      FileNotFoundError - when file does not exist
      ConfigError       - for invalid YAML (parse error) with chained context
    """
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")

    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Validation
# -------------------------------


def _validate_config(cfg: dict[str, Any]) -> None:
    """Check the sections the service and storage factory read."""
    for section in ("storage", "versioning", "listing", "logging"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigError(f"Configuration section '{section}' must be a mapping")

    storage_type = str(cfg["storage"].get("type", "")).strip().lower()
    if storage_type not in STORAGE_TYPES:
        raise ConfigError(
            f"Unsupported storage type {storage_type!r}. "
            f"Supported types: {', '.join(STORAGE_TYPES)}"
        )

    ordering = cfg["versioning"].get("prerelease_ordering")
    if ordering not in PRERELEASE_ORDERINGS:
        raise ConfigError(
            f"Invalid versioning.prerelease_ordering {ordering!r}. "
            f"Expected one of: {', '.join(PRERELEASE_ORDERINGS)}"
        )

    limit = cfg["listing"].get("default_limit")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ConfigError(
            f"listing.default_limit must be a positive integer, got {limit!r}"
        )


# -------------------------------
# Public API
# -------------------------------


def load_config(
    path: Path | str | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """
    Load the effective configuration.

    Steps
      1) Start from DEFAULT_CONFIG.
      2) If 'path' is given, read it (must be a YAML mapping or empty).
      3) Resolve a relative storage.path against the file's directory.
      4) Merge: defaults -> file -> overrides (dicts deep-merge).
      5) Validate storage type, prerelease ordering and page size.

    Returns
      A merged configuration dict.

    Raises
      FileNotFoundError if 'path' does not exist,
      ConfigError on YAML errors or invalid values.
    """
    logger = logger or get_global_logger()
    cfg: dict[str, Any] = deepcopy(DEFAULT_CONFIG)

    if path is not None:
        config_path = Path(path)
        logger.verbose("CONFIG", f"Loading configuration: {config_path}")
        data = _load_yaml_file(config_path)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration file {config_path} must contain a YAML mapping"
            )

        storage = data.get("storage")
        if isinstance(storage, dict) and isinstance(storage.get("path"), str):
            p = Path(storage["path"])
            if storage["path"] and not p.is_absolute():
                storage = dict(storage, path=str((config_path.parent / p).resolve()))
                data = dict(data, storage=storage)

        cfg = _deep_merge_dicts(cfg, data)

    if overrides:
        logger.debug("CONFIG", f"Applying overrides: {sorted(overrides)}")
        cfg = _deep_merge_dicts(cfg, overrides)

    _validate_config(cfg)
    return cfg


@dataclass(frozen=True)
class ServiceSettings:
    """Typed settings UpdateService reads from the configuration.

    Attributes:
        prerelease_ordering: How differing prerelease labels are ordered.
        default_limit: Page size used when a filter leaves limit at 0.

    """

    prerelease_ordering: PrereleaseOrdering = "lexical"
    default_limit: int = 50

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> ServiceSettings:
        versioning = cfg.get("versioning") or {}
        listing = cfg.get("listing") or {}
        return cls(
            prerelease_ordering=versioning.get("prerelease_ordering", "lexical"),
            default_limit=int(listing.get("default_limit", 50)),
        )
