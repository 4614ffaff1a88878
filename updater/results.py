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

"""Public API return types for updater.

This module defines dataclasses for return values from UpdateService
methods: update decisions, latest-version lookups, listing pages and
application statistics.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values. ``to_dict()`` produces JSON-compatible dictionaries using the
field names clients already depend on.

Example:
    Using result types:
        ```python
        from updater.service import UpdateService
        from updater.storage import MemoryStorage

        service = UpdateService(MemoryStorage())
        decision = service.check_for_update("my-app", "1.2.0", "linux", "amd64")
        if decision.update_available:
            print(decision.latest_version, decision.download_url)
        ```

Note:
    Only public API return types belong in this module. Domain types
    (Release, Application, ReleaseFilter) stay co-located with their logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from updater.release import Release

T = TypeVar("T")


@dataclass(frozen=True)
class UpdateDecision:
    """Result of an update check.

    When ``update_available`` is False only ``current_version`` (and
    ``latest_version``, echoing it) are meaningful.

    Attributes:
        update_available: Whether a strictly newer release was found.
        current_version: Version the client reported.
        latest_version: Offered version, or the current version when none.
        download_url: Artifact location of the offered release.
        checksum: Hex digest of the artifact.
        checksum_type: Digest algorithm.
        file_size: Artifact size in bytes.
        release_notes: Release notes of the offered release.
        release_date: Release timestamp of the offered release.
        required: Whether the update is mandatory for this client.
        minimum_version: Gate of the offered release, if any.
        metadata: Release metadata (only when requested).
    """

    update_available: bool
    current_version: str
    latest_version: str
    download_url: str = ""
    checksum: str = ""
    checksum_type: str = ""
    file_size: int = 0
    release_notes: str = ""
    release_date: datetime | None = None
    required: bool = False
    minimum_version: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def no_update(cls, current_version: str) -> UpdateDecision:
        return cls(
            update_available=False,
            current_version=current_version,
            latest_version=current_version,
        )

    @classmethod
    def for_release(
        cls,
        release: Release,
        current_version: str,
        *,
        required: bool,
        include_metadata: bool = False,
    ) -> UpdateDecision:
        return cls(
            update_available=True,
            current_version=current_version,
            latest_version=release.version,
            download_url=release.download_url,
            checksum=release.checksum,
            checksum_type=release.checksum_type,
            file_size=release.file_size,
            release_notes=release.release_notes,
            release_date=release.release_date,
            required=required,
            minimum_version=release.minimum_version,
            metadata=dict(release.metadata) if include_metadata else {},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "update_available": self.update_available,
            "latest_version": self.latest_version,
            "current_version": self.current_version,
        }
        if not self.update_available:
            return data
        data.update(
            {
                "download_url": self.download_url,
                "checksum": self.checksum,
                "checksum_type": self.checksum_type,
                "file_size": self.file_size,
                "release_notes": self.release_notes,
                "release_date": (
                    self.release_date.isoformat() if self.release_date else None
                ),
                "required": self.required,
            }
        )
        if self.minimum_version:
            data["minimum_version"] = self.minimum_version
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class LatestVersion:
    """Latest release for a platform/architecture pair.

    Attributes:
        version: Version text of the latest release.
        release_id: Composite release identifier.
        download_url: Artifact location.
        checksum: Hex digest of the artifact.
        checksum_type: Digest algorithm.
        file_size: Artifact size in bytes.
        release_notes: Release notes.
        release_date: Release timestamp.
        required: Release's own required flag.
        minimum_version: Lowest client version the required flag applies
            to (empty when unset).
        metadata: Release metadata (only when requested).
    """

    version: str
    release_id: str
    download_url: str
    checksum: str
    checksum_type: str
    file_size: int
    release_notes: str
    release_date: datetime
    required: bool
    minimum_version: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_release(
        cls, release: Release, *, include_metadata: bool = False
    ) -> LatestVersion:
        return cls(
            version=release.version,
            release_id=release.id,
            download_url=release.download_url,
            checksum=release.checksum,
            checksum_type=release.checksum_type,
            file_size=release.file_size,
            release_notes=release.release_notes,
            release_date=release.release_date,
            required=release.required,
            minimum_version=release.minimum_version,
            metadata=dict(release.metadata) if include_metadata else {},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "latest_version": self.version,
            "release_id": self.release_id,
            "download_url": self.download_url,
            "checksum": self.checksum,
            "checksum_type": self.checksum_type,
            "file_size": self.file_size,
            "release_notes": self.release_notes,
            "release_date": self.release_date.isoformat(),
            "required": self.required,
            "minimum_version": self.minimum_version,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class ReleaseSummary:
    """Listing entry for one release."""

    id: str
    version: str
    platform: str
    architecture: str
    download_url: str
    checksum: str
    checksum_type: str
    file_size: int
    release_date: datetime
    required: bool
    minimum_version: str = ""

    @classmethod
    def from_release(cls, release: Release) -> ReleaseSummary:
        return cls(
            id=release.id,
            version=release.version,
            platform=release.platform,
            architecture=release.architecture,
            download_url=release.download_url,
            checksum=release.checksum,
            checksum_type=release.checksum_type,
            file_size=release.file_size,
            release_date=release.release_date,
            required=release.required,
            minimum_version=release.minimum_version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "platform": self.platform,
            "architecture": self.architecture,
            "download_url": self.download_url,
            "checksum": self.checksum,
            "checksum_type": self.checksum_type,
            "file_size": self.file_size,
            "release_date": self.release_date.isoformat(),
            "required": self.required,
            "minimum_version": self.minimum_version,
        }


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated listing.

    Attributes:
        items: Entries on this page.
        total_count: Matches before pagination.
        page: 1-based page number (offset // limit + 1).
        page_size: Requested page size (the filter's limit).
        has_more: Whether entries exist past this page.
    """

    items: list[T]
    total_count: int
    page: int
    page_size: int
    has_more: bool

    @classmethod
    def build(
        cls, items: list[T], total_count: int, *, offset: int, limit: int
    ) -> Page[T]:
        page = offset // limit + 1 if limit > 0 else 1
        return cls(
            items=items,
            total_count=total_count,
            page=page,
            page_size=limit,
            has_more=offset + len(items) < total_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                item.to_dict() if hasattr(item, "to_dict") else item
                for item in self.items
            ],
            "total_count": self.total_count,
            "page": self.page,
            "page_size": self.page_size,
            "has_more": self.has_more,
        }


@dataclass(frozen=True)
class ApplicationStats:
    """Catalog statistics for one application.

    Attributes:
        application_id: Application identifier.
        total_releases: Number of registered releases.
        latest_version: Greatest parseable version, "" when none.
        latest_release_date: Most recent release timestamp, None when empty.
        platform_count: Number of distinct platforms with releases.
        required_releases: Number of releases flagged as required.
    """

    application_id: str
    total_releases: int
    latest_version: str
    latest_release_date: datetime | None
    platform_count: int
    required_releases: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "total_releases": self.total_releases,
            "latest_version": self.latest_version,
            "latest_release_date": (
                self.latest_release_date.isoformat()
                if self.latest_release_date
                else None
            ),
            "platform_count": self.platform_count,
            "required_releases": self.required_releases,
        }
