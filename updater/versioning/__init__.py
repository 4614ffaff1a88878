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

"""Version parsing and comparison utilities for updater.

This package parses version strings into an ordered value and provides the
total order every other component relies on: catalog scans, minimum-version
gates, application version bounds, constraints and "sort by version".

Public API:

- Version: Frozen dataclass (major, minor, patch, prerelease, build, raw).
- parse_version: Parse text into a Version or raise VersionFormatError.
- compare_versions: Compare two version strings, returning -1, 0, or 1.
- is_newer: Check if a remote version is newer than the current version.
- version_key: Sort key for version strings (invalid ones sort first).
- VersionConstraint / parse_constraint: Operator + version checks.

Ordering Rules:

1. major, minor and patch compare numerically.
2. A version without a prerelease label is greater than one with a label.
3. Two labels compare as plain strings ("lexical", the default), or
   identifier by identifier when "semver" ordering is selected.
4. Build metadata never participates.

Example:
    Basic version comparison:
        ```python
        from updater.versioning import compare_versions, is_newer

        compare_versions("1.2.0", "1.1.9")        # 1
        compare_versions("1.0.0", "1.0.0-rc.1")   # 1 (release > prerelease)
        is_newer("2.0.0-beta.1", "1.5.0")         # True
        ```

    Prerelease ordering modes:
        ```python
        compare_versions("1.0.0-rc.10", "1.0.0-rc.2")                   # -1
        compare_versions("1.0.0-rc.10", "1.0.0-rc.2", ordering="semver")  # 1
        ```

Note:
    Version comparison does no I/O. Strings are parsed strictly: a leading
    "v" or a fourth numeric component is a format error.
"""

from .keys import (
    PRERELEASE_ORDERINGS,
    PrereleaseOrdering,
    Version,
    VersionConstraint,
    compare_versions,
    is_newer,
    parse_constraint,
    parse_version,
    try_parse_version,
    version_key,
)

__all__ = [
    "PRERELEASE_ORDERINGS",
    "PrereleaseOrdering",
    "Version",
    "VersionConstraint",
    "compare_versions",
    "is_newer",
    "parse_constraint",
    "parse_version",
    "try_parse_version",
    "version_key",
]
