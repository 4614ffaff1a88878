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

"""Release registration requests.

A RegisterReleaseRequest carries the fields a publisher submits for a new
release. It is normalized, validated field by field (errors name the
submitted field), then turned into a Release. Composite-key uniqueness is the
storage collaborator's job, not this module's.

Example:
    ```python
    from updater.registration import RegisterReleaseRequest

    req = RegisterReleaseRequest(
        application_id="my-app",
        version="1.5.0",
        platform="Linux",
        architecture="AMD64",
        download_url="https://cdn.example.com/my-app-1.5.0.tar.gz",
        checksum="9F86D081884C7D65...",
        checksum_type="SHA256",
    ).normalize()
    req.validate()
    release = req.to_release()
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from updater.exceptions import ValidationError, VersionFormatError
from updater.platforms import (
    is_valid_architecture,
    is_valid_checksum_type,
    is_valid_platform,
    normalize_architecture,
    normalize_platform,
)
from updater.release import (
    Release,
    new_release,
    parse_count,
    parse_flag,
    parse_timestamp,
    validate_download_url,
)
from updater.versioning import parse_version


@dataclass(frozen=True)
class RegisterReleaseRequest:
    """Submitted release registration."""

    application_id: str
    version: str
    platform: str
    architecture: str
    download_url: str
    checksum: str
    checksum_type: str
    file_size: int = 0
    release_notes: str = ""
    release_date: datetime | None = None
    required: bool = False
    minimum_version: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    def normalize(self) -> RegisterReleaseRequest:
        """Return a copy with trimmed text and lower-cased tags."""
        return replace(
            self,
            application_id=self.application_id.strip(),
            version=self.version.strip(),
            platform=normalize_platform(self.platform),
            architecture=normalize_architecture(self.architecture),
            download_url=self.download_url.strip(),
            checksum=self.checksum.strip().lower(),
            checksum_type=self.checksum_type.strip().lower(),
            minimum_version=self.minimum_version.strip(),
        )

    def validate(self) -> None:
        """Validate the request, stopping at the first failure.

        Raises:
            ValidationError: Naming the submitted field that failed.

        """
        if not self.application_id:
            raise ValidationError("application_id", "application_id is required")
        if not self.platform:
            raise ValidationError("platform", "platform is required")
        if not is_valid_platform(self.platform):
            raise ValidationError("platform", f"invalid platform: {self.platform!r}")
        if not self.architecture:
            raise ValidationError("architecture", "architecture is required")
        if not is_valid_architecture(self.architecture):
            raise ValidationError(
                "architecture", f"invalid architecture: {self.architecture!r}"
            )
        if not self.version:
            raise ValidationError("version", "version is required")
        try:
            parse_version(self.version)
        except VersionFormatError as err:
            raise ValidationError("version", f"invalid version: {err.message}") from err
        if not self.download_url:
            raise ValidationError("download_url", "download_url is required")
        validate_download_url(self.download_url)
        if not self.checksum:
            raise ValidationError("checksum", "checksum is required")
        if not self.checksum_type:
            raise ValidationError("checksum_type", "checksum_type is required")
        if not is_valid_checksum_type(self.checksum_type):
            raise ValidationError(
                "checksum_type", f"invalid checksum_type: {self.checksum_type}"
            )
        if self.file_size < 0:
            raise ValidationError("file_size", "file_size cannot be negative")
        if self.minimum_version:
            try:
                parse_version(self.minimum_version)
            except VersionFormatError as err:
                raise ValidationError(
                    "minimum_version",
                    f"invalid minimum_version format: {err.message}",
                ) from err

    def to_release(self) -> Release:
        """Build the Release described by this request.

        The request should be normalized and validated first; the result is
        validated again as a Release.
        """
        release = new_release(
            self.application_id,
            self.version,
            self.platform,
            self.architecture,
            self.download_url,
        )
        release.checksum = self.checksum
        release.checksum_type = self.checksum_type
        release.file_size = self.file_size
        release.release_notes = self.release_notes
        release.required = self.required
        release.minimum_version = self.minimum_version
        release.metadata = dict(self.metadata)
        if self.release_date is not None:
            release.release_date = parse_timestamp(self.release_date)
        release.validate()
        return release

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegisterReleaseRequest:
        """Build a request from a decoded document (JSON or YAML).

        Raises:
            ValidationError: If file_size, required or release_date cannot
                be read as their types.

        """
        release_date = data.get("release_date")
        if release_date:
            try:
                release_date = parse_timestamp(release_date)
            except (TypeError, ValueError) as err:
                raise ValidationError(
                    "release_date", f"invalid timestamp {release_date!r}"
                ) from err
        return cls(
            application_id=str(data.get("application_id") or ""),
            version=str(data.get("version") or ""),
            platform=str(data.get("platform") or ""),
            architecture=str(data.get("architecture") or ""),
            download_url=str(data.get("download_url") or ""),
            checksum=str(data.get("checksum") or ""),
            checksum_type=str(data.get("checksum_type") or ""),
            file_size=parse_count(data.get("file_size"), "file_size"),
            release_notes=str(data.get("release_notes") or ""),
            release_date=release_date or None,
            required=parse_flag(data.get("required"), "required"),
            minimum_version=str(data.get("minimum_version") or ""),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )
