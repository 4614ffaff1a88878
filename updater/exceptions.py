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

"""Exception hierarchy for updater.

This module defines a custom exception hierarchy that allows callers
(typically an HTTP layer) to distinguish between failure kinds and map each
one to a transport-level status:

- VersionFormatError: A version string failed to parse
- ValidationError: A release, registration request, or filter broke a rule
- NotFoundError: Application or release does not exist (from storage)
- ConflictError: Duplicate composite key on registration (from storage)
- StorageError: Any other storage collaborator failure
- CancelledError: The caller cancelled the request or its deadline passed
- ConfigError: Configuration file problems
- NetworkError: Artifact download failures

All exceptions inherit from UpdaterError and expose a stable, machine-readable
``kind`` so a single structured error object can be produced with
``to_dict()``.

Example:
    Mapping errors to HTTP status codes:
        ```python
        from updater.exceptions import NotFoundError, UpdaterError

        STATUS = {"validation_error": 422, "format_error": 400,
                  "not_found": 404, "conflict": 409}

        try:
            decision = service.check_for_update("app", "1.0.0", "linux", "amd64")
        except UpdaterError as e:
            status = STATUS.get(e.kind, 500)
            body = e.to_dict()
        ```
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "UpdaterError",
    "VersionFormatError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
    "CancelledError",
    "ConfigError",
    "NetworkError",
]


class UpdaterError(Exception):
    """Base exception for all updater errors.

    Attributes:
        kind: Stable machine-readable error kind.
        message: Human-readable description.
        details: Extra key/value context (field names, offending values).

    """

    kind = "internal_error"

    def __init__(self, message: str, *, details: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details: dict[str, str] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Return the structured error object for the caller."""
        payload: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class VersionFormatError(UpdaterError, ValueError):
    """Raised when a version string (current, minimum, constraint) is malformed.

    Example:
        ```python
        from updater.versioning import parse_version
        from updater.exceptions import VersionFormatError

        try:
            parse_version("1.2.x")
        except VersionFormatError as e:
            print(e.details["version"])  # "1.2.x"
        ```
    """

    kind = "format_error"

    def __init__(self, message: str, *, version: str | None = None):
        details = {"version": version} if version is not None else None
        super().__init__(message, details=details)
        self.version = version


class ValidationError(UpdaterError, ValueError):
    """Raised when a release, registration request, or filter fails a rule.

    Every validation error names the field that failed, so the caller can
    report it next to the offending input.
    """

    kind = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message, details={"field": field})
        self.field = field


class NotFoundError(UpdaterError, LookupError):
    """Raised when a referenced application or release does not exist."""

    kind = "not_found"


class ConflictError(UpdaterError):
    """Raised when a release with the same composite key already exists."""

    kind = "conflict"


class StorageError(UpdaterError):
    """Raised for storage collaborator failures (I/O, corrupt data files).

    The original exception is always chained with ``raise ... from err``.
    """

    kind = "storage_error"


class CancelledError(UpdaterError):
    """Raised when a cancellation token fires or its deadline passes."""

    kind = "cancelled"


class ConfigError(UpdaterError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Unknown storage backend types or missing backend settings
    - Invalid values in the versioning or listing sections
    """

    kind = "config_error"


class NetworkError(UpdaterError):
    """Raised for download failures and checksum mismatches on artifacts."""

    kind = "network_error"
