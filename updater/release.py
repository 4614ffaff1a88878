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

"""Release catalog entity for updater.

A Release is one downloadable artifact for one (application, version,
platform, architecture) tuple. It owns its structural validation and the
predicates the determination algorithm composes: platform/arch match,
"is newer than", "meets minimum version" and checksum verification.

Example:
    Build and validate a release:
        ```python
        from updater.release import new_release

        release = new_release(
            "my-app", "1.5.0", "Linux", "AMD64",
            "https://cdn.example.com/my-app-1.5.0.tar.gz",
        )
        release.checksum = "9f86d081884c7d65..."
        release.validate()
        print(release.id)  # my-app-1.5.0-linux-amd64
        ```

"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from updater.exceptions import ValidationError, VersionFormatError
from updater.platforms import (
    DEFAULT_CHECKSUM_TYPE,
    checksum_algorithm,
    is_valid_architecture,
    is_valid_checksum_type,
    is_valid_platform,
    normalize_architecture,
    normalize_platform,
)
from updater.versioning import parse_version

ALLOWED_URL_SCHEMES = ("http", "https")


def release_id(app_id: str, version: str, platform: str, arch: str) -> str:
    """Derive the composite release identifier."""
    return f"{app_id}-{version}-{platform}-{arch}"


def validate_download_url(url: str, *, field_name: str = "download_url") -> None:
    """Check that ``url`` is http(s) with a non-empty host.

    Raises:
        ValidationError: On a malformed URL, other scheme, or missing host.
    """
    try:
        parsed = urlparse(url)
    except ValueError as err:
        raise ValidationError(field_name, f"malformed URL: {err}") from err

    if parsed.scheme not in ALLOWED_URL_SCHEMES:
        raise ValidationError(
            field_name,
            f"unsupported URL scheme {parsed.scheme!r}: must use HTTP or HTTPS",
        )
    if not parsed.hostname:
        raise ValidationError(field_name, "URL must have a valid host")


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Release:
    """A registered release.

    Attributes:
        id: Composite key "{application_id}-{version}-{platform}-{architecture}".
        application_id: Owning application.
        version: Version text (must parse).
        platform: Target operating system (lower-case).
        architecture: Target CPU architecture (lower-case).
        download_url: External http(s) download location.
        checksum: Hex digest of the artifact.
        checksum_type: sha256, md5 or sha1.
        file_size: Size in bytes, >= 0.
        release_notes: Human-readable notes.
        release_date: Official release timestamp.
        required: Whether the update is mandatory for affected clients.
        minimum_version: Optional gate scoping who the required flag affects.
        metadata: Free-form string metadata.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.

    """

    id: str
    application_id: str
    version: str
    platform: str
    architecture: str
    download_url: str
    checksum: str = ""
    checksum_type: str = DEFAULT_CHECKSUM_TYPE.value
    file_size: int = 0
    release_notes: str = ""
    release_date: datetime = field(default_factory=_now)
    required: bool = False
    minimum_version: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    # ----------------------------
    # Validation
    # ----------------------------

    def validate(self) -> None:
        """Validate structure and content, stopping at the first failure.

        Raises:
            ValidationError: Naming the field that failed.

        """
        if not self.id:
            raise ValidationError("id", "release ID cannot be empty")
        if not self.application_id:
            raise ValidationError("application_id", "application ID cannot be empty")
        if not self.version:
            raise ValidationError("version", "version cannot be empty")
        try:
            parse_version(self.version)
        except VersionFormatError as err:
            raise ValidationError(
                "version", f"invalid version format: {err.message}"
            ) from err
        if not self.platform or not is_valid_platform(self.platform):
            raise ValidationError("platform", f"invalid platform: {self.platform!r}")
        if not self.architecture or not is_valid_architecture(self.architecture):
            raise ValidationError(
                "architecture", f"invalid architecture: {self.architecture!r}"
            )
        if not self.download_url:
            raise ValidationError("download_url", "download URL cannot be empty")
        validate_download_url(self.download_url)
        if not self.checksum:
            raise ValidationError("checksum", "checksum cannot be empty")
        if not is_valid_checksum_type(self.checksum_type):
            raise ValidationError(
                "checksum_type", f"invalid checksum type: {self.checksum_type!r}"
            )
        if self.file_size < 0:
            raise ValidationError("file_size", "file size cannot be negative")
        if self.minimum_version:
            try:
                parse_version(self.minimum_version)
            except VersionFormatError as err:
                raise ValidationError(
                    "minimum_version", f"invalid minimum version: {err.message}"
                ) from err

    # ----------------------------
    # Predicates
    # ----------------------------

    def is_compatible_with(self, platform: str, arch: str) -> bool:
        return normalize_platform(self.platform) == normalize_platform(
            platform
        ) and normalize_architecture(self.architecture) == normalize_architecture(arch)

    def is_newer_than(self, other: Release) -> bool:
        """Return True if this release's version is greater than ``other``'s.

        Raises:
            VersionFormatError: If either version does not parse.
        """
        return parse_version(self.version).greater_than(parse_version(other.version))

    def meets_minimum_version(self, current_version: str) -> bool:
        """Return whether ``current_version`` passes this release's gate.

        Always True when no minimum version is set; otherwise True iff
        current >= minimum.

        Raises:
            VersionFormatError: If either version does not parse.
        """
        if not self.minimum_version:
            return True
        current = parse_version(current_version)
        minimum = parse_version(self.minimum_version)
        return current.greater_than_or_equal(minimum)

    @property
    def is_prerelease(self) -> bool:
        return parse_version(self.version).is_prerelease

    def platform_info(self) -> str:
        """Return "platform-architecture", e.g. "linux-amd64"."""
        return f"{self.platform}-{self.architecture}"

    # ----------------------------
    # Integrity
    # ----------------------------

    def generate_checksum(self, data: bytes) -> str:
        """Hex digest of ``data`` under the declared algorithm.

        Unknown algorithm tags fall back to sha256.
        """
        h = checksum_algorithm(self.checksum_type).new_hash()
        h.update(data)
        return h.hexdigest()

    def verify_checksum(self, data: bytes) -> bool:
        return self.checksum.strip().lower() == self.generate_checksum(data).lower()

    # ----------------------------
    # Edits
    # ----------------------------

    def set_metadata(self, key: str, value: str) -> None:
        self.metadata[key] = value
        self.updated_at = _now()

    def get_metadata(self, key: str) -> str | None:
        return self.metadata.get(key)

    def set_release_notes(self, notes: str) -> None:
        self.release_notes = notes
        self.updated_at = _now()

    # ----------------------------
    # Text representation
    # ----------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible types (ISO-8601 timestamps)."""
        return {
            "id": self.id,
            "application_id": self.application_id,
            "version": self.version,
            "platform": self.platform,
            "architecture": self.architecture,
            "download_url": self.download_url,
            "checksum": self.checksum,
            "checksum_type": self.checksum_type,
            "file_size": self.file_size,
            "release_notes": self.release_notes,
            "release_date": self.release_date.isoformat(),
            "required": self.required,
            "minimum_version": self.minimum_version,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Release:
        """Build a Release from ``to_dict()`` output.

        Missing ``id`` is derived from the composite key. Validation is left
        to the caller; corrupt catalog entries are still loadable.
        """
        app_id = data.get("application_id", "")
        version = data.get("version", "")
        platform = data.get("platform", "")
        arch = data.get("architecture", "")
        return cls(
            id=data.get("id") or release_id(app_id, version, platform, arch),
            application_id=app_id,
            version=version,
            platform=platform,
            architecture=arch,
            download_url=data.get("download_url", ""),
            checksum=data.get("checksum", ""),
            checksum_type=data.get("checksum_type") or DEFAULT_CHECKSUM_TYPE.value,
            file_size=int(data.get("file_size", 0) or 0),
            release_notes=data.get("release_notes", ""),
            release_date=parse_timestamp(data.get("release_date")),
            required=bool(data.get("required", False)),
            minimum_version=data.get("minimum_version") or "",
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not value:
        return _now()
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


_TRUE_WORDS = frozenset({"true", "yes", "1"})
_FALSE_WORDS = frozenset({"false", "no", "0"})


def parse_flag(value: Any, field_name: str, default: bool = False) -> bool:
    """Read a boolean field from a decoded document.

    Accepts real booleans and the strings true/false, yes/no and 1/0 in any
    case. ``None`` gives ``default``.

    Raises:
        ValidationError: For any other value.

    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(field_name, f"expected true or false, got {value!r}")


def parse_count(value: Any, field_name: str, default: int = 0) -> int:
    """Read an integer field from a decoded document.

    Empty values give ``default``. Range checks are left to ``validate()``.

    Raises:
        ValidationError: If the value is not an integer.

    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(field_name, f"expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ValidationError(
            field_name, f"expected an integer, got {value!r}"
        ) from err


def new_release(
    app_id: str,
    version: str,
    platform: str,
    arch: str,
    download_url: str,
) -> Release:
    """Create a Release with defaults.

    Platform and architecture are normalized to lower case, the id is
    derived from the composite key, the checksum algorithm is sha256,
    ``required`` is False and all timestamps are now (UTC).
    """
    now = _now()
    platform = normalize_platform(platform)
    arch = normalize_architecture(arch)
    return Release(
        id=release_id(app_id, version, platform, arch),
        application_id=app_id,
        version=version,
        platform=platform,
        architecture=arch,
        download_url=download_url,
        release_date=now,
        created_at=now,
        updated_at=now,
    )
