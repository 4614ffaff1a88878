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

"""Release filter: query criteria, pagination and sorting.

A ReleaseFilter is built per request, validated, then normalized (defaults
filled in) before it reaches the storage collaborator. ``apply_filter`` is
the reference implementation of filtering, sorting and pagination that the
bundled storage backends share.

Example:
    ```python
    from updater.filters import ReleaseFilter

    flt = ReleaseFilter(application_id=" my-app ", platforms=("Linux",))
    flt.validate()
    flt = flt.normalize()
    print(flt.limit, flt.sort_by, flt.sort_order)  # 50 release_date desc
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from updater.exceptions import ValidationError, VersionFormatError
from updater.platforms import (
    is_valid_architecture,
    is_valid_platform,
    normalize_architecture,
    normalize_platform,
)
from updater.release import Release, parse_count, parse_flag
from updater.versioning import PrereleaseOrdering, parse_version, version_key

DEFAULT_LIMIT = 50
DEFAULT_SORT_BY = "release_date"
DEFAULT_SORT_ORDER = "desc"
SORT_FIELDS: tuple[str, ...] = (
    "version",
    "release_date",
    "platform",
    "architecture",
    "created_at",
)
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")


@dataclass(frozen=True)
class ReleaseFilter:
    """Query over one application's catalog.

    Attributes:
        application_id: Application to list (required).
        platform: Single platform filter.
        architecture: Architecture filter.
        version: Exact version filter.
        required: Required-status filter; None means either.
        platforms: Multi-platform filter; a release matches any of them.
        limit: Page size (0 means "use the default").
        offset: Number of results to skip.
        sort_by: One of SORT_FIELDS.
        sort_order: "asc" or "desc".

    """

    application_id: str
    platform: str = ""
    architecture: str = ""
    version: str = ""
    required: bool | None = None
    platforms: tuple[str, ...] = ()
    limit: int = 0
    offset: int = 0
    sort_by: str = ""
    sort_order: str = ""

    def validate(self) -> None:
        """Check the filter, stopping at the first failure.

        Raises:
            ValidationError: Naming the offending field.

        """
        if not self.application_id or not self.application_id.strip():
            raise ValidationError("application_id", "application_id is required")
        if self.limit < 0:
            raise ValidationError("limit", "limit cannot be negative")
        if self.offset < 0:
            raise ValidationError("offset", "offset cannot be negative")
        if self.sort_order and self.sort_order not in SORT_ORDERS:
            raise ValidationError("sort_order", "sort_order must be 'asc' or 'desc'")
        if self.sort_by and self.sort_by not in SORT_FIELDS:
            raise ValidationError("sort_by", f"invalid sort_by field: {self.sort_by!r}")
        for platform in self.platforms:
            if not is_valid_platform(platform):
                raise ValidationError(
                    "platforms", f"invalid platform in platforms list: {platform!r}"
                )
        if self.platform and not is_valid_platform(self.platform):
            raise ValidationError("platform", f"invalid platform: {self.platform!r}")
        if self.architecture and not is_valid_architecture(self.architecture):
            raise ValidationError(
                "architecture", f"invalid architecture: {self.architecture!r}"
            )
        if self.version:
            try:
                parse_version(self.version.strip())
            except VersionFormatError as err:
                raise ValidationError(
                    "version", f"invalid version format: {err.message}"
                ) from err

    def normalize(self, *, default_limit: int = DEFAULT_LIMIT) -> ReleaseFilter:
        """Return a copy with trimmed identifiers and defaults filled in.

        Idempotent: normalizing a normalized filter returns an equal filter.
        """
        return replace(
            self,
            application_id=self.application_id.strip(),
            platform=normalize_platform(self.platform),
            architecture=normalize_architecture(self.architecture),
            version=self.version.strip(),
            platforms=tuple(normalize_platform(p) for p in self.platforms),
            limit=self.limit or default_limit,
            sort_by=self.sort_by or DEFAULT_SORT_BY,
            sort_order=self.sort_order or DEFAULT_SORT_ORDER,
        )

    @property
    def page(self) -> int:
        """1-based page number implied by offset and limit."""
        if self.limit <= 0:
            return 1
        return self.offset // self.limit + 1

    def matches(self, release: Release) -> bool:
        if release.application_id != self.application_id:
            return False
        if self.platform and normalize_platform(release.platform) != self.platform:
            return False
        if self.architecture and (
            normalize_architecture(release.architecture) != self.architecture
        ):
            return False
        if self.version and release.version != self.version:
            return False
        if self.required is not None and release.required != self.required:
            return False
        if self.platforms and (
            normalize_platform(release.platform) not in self.platforms
        ):
            return False
        return True

    @classmethod
    def for_target(cls, app_id: str, platform: str, arch: str) -> ReleaseFilter:
        """Filter selecting every release for one platform/architecture pair.

        Used by the determination algorithm; the limit is left at 0 so
        storage backends return the whole candidate set.
        """
        return cls(
            application_id=app_id.strip(),
            platform=normalize_platform(platform),
            architecture=normalize_architecture(arch),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseFilter:
        """Build a filter from a query mapping; bad numbers raise ValidationError."""
        required = data.get("required")
        return cls(
            application_id=data.get("application_id", ""),
            platform=data.get("platform") or "",
            architecture=data.get("architecture") or "",
            version=data.get("version") or "",
            required=(
                None if required is None else parse_flag(required, "required")
            ),
            platforms=tuple(data.get("platforms") or ()),
            limit=parse_count(data.get("limit"), "limit"),
            offset=parse_count(data.get("offset"), "offset"),
            sort_by=data.get("sort_by") or "",
            sort_order=data.get("sort_order") or "",
        )


def _sort_key(sort_by: str, ordering: PrereleaseOrdering):
    if sort_by == "version":
        return lambda r: version_key(r.version, ordering=ordering)
    if sort_by == "platform":
        return lambda r: r.platform
    if sort_by == "architecture":
        return lambda r: r.architecture
    if sort_by == "created_at":
        return lambda r: r.created_at
    return lambda r: r.release_date


def sort_releases(
    releases: Iterable[Release],
    sort_by: str = DEFAULT_SORT_BY,
    sort_order: str = DEFAULT_SORT_ORDER,
    *,
    ordering: PrereleaseOrdering = "lexical",
) -> list[Release]:
    """Sort releases by a SORT_FIELDS field; stable for equal keys."""
    return sorted(
        releases,
        key=_sort_key(sort_by, ordering),
        reverse=sort_order == "desc",
    )


def apply_filter(
    releases: Iterable[Release],
    flt: ReleaseFilter,
    *,
    ordering: PrereleaseOrdering = "lexical",
) -> tuple[list[Release], int]:
    """Filter, sort and paginate ``releases``.

    A filter with ``limit == 0`` (not normalized) returns every match.

    Returns:
        A tuple (page, total_count), where page is the requested slice and
            total_count is the number of matches before pagination.

    """
    matched = [r for r in releases if flt.matches(r)]
    if flt.sort_by:
        matched = sort_releases(
            matched,
            flt.sort_by,
            flt.sort_order or DEFAULT_SORT_ORDER,
            ordering=ordering,
        )
    total = len(matched)
    start = min(flt.offset, total)
    end = total if flt.limit <= 0 else min(start + flt.limit, total)
    return matched[start:end], total
