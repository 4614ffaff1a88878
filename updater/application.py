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

"""Applications and their update policy.

The policy is read-only input to the determination algorithm: it supplies
the default prerelease inclusion and optional version bounds limiting which
catalog entries are offered. The remaining fields are informational and
passed through to clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import re
from typing import Any

from updater.exceptions import ValidationError, VersionFormatError
from updater.platforms import (
    is_valid_architecture,
    is_valid_platform,
    normalize_platform,
)
from updater.release import parse_count, parse_flag
from updater.versioning import Version, parse_version

_APP_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,100}")

DEFAULT_UPDATE_INTERVAL = 3600


def is_valid_app_id(app_id: str) -> bool:
    return bool(app_id) and _APP_ID_RE.fullmatch(app_id) is not None


@dataclass(frozen=True)
class ApplicationPolicy:
    """Per-application update configuration.

    Attributes:
        allow_prerelease: Default prerelease inclusion when a request leaves
            it unset.
        update_interval: Seconds between client checks (informational).
        min_version: Lowest catalog version offered, if set.
        max_version: Highest catalog version offered, if set.
        auto_update: Whether clients may install without asking.
        required_update: Application-wide "always mandatory" hint.
        update_check_url: Custom check endpoint override.
        notification_url: Webhook for new releases.
        analytics_enabled: Whether clients may report usage.
        custom_fields: Application-specific metadata.

    """

    allow_prerelease: bool = False
    update_interval: int = DEFAULT_UPDATE_INTERVAL
    min_version: str = ""
    max_version: str = ""
    auto_update: bool = False
    required_update: bool = False
    update_check_url: str = ""
    notification_url: str = ""
    analytics_enabled: bool = False
    custom_fields: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Check the interval and version bounds.

        Raises:
            ValidationError: If the interval is negative, a bound does not
                parse, or min_version > max_version.

        """
        if self.update_interval < 0:
            raise ValidationError(
                "update_interval", "update interval cannot be negative"
            )

        lower = self._bound("min_version", self.min_version)
        upper = self._bound("max_version", self.max_version)
        if lower is not None and upper is not None and lower.greater_than(upper):
            raise ValidationError(
                "min_version", "min version cannot be greater than max version"
            )

    @staticmethod
    def _bound(name: str, text: str) -> Version | None:
        if not text:
            return None
        try:
            return parse_version(text)
        except VersionFormatError as err:
            label = name.replace("_", " ")
            raise ValidationError(name, f"invalid {label}: {err.message}") from err

    def within_bounds(self, version: Version) -> bool:
        """Return whether ``version`` lies inside [min_version, max_version]."""
        if self.min_version and version.less_than(parse_version(self.min_version)):
            return False
        if self.max_version and version.greater_than(parse_version(self.max_version)):
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "allow_prerelease": self.allow_prerelease,
            "update_interval": self.update_interval,
            "min_version": self.min_version,
            "max_version": self.max_version,
            "auto_update": self.auto_update,
            "required_update": self.required_update,
            "update_check_url": self.update_check_url,
            "notification_url": self.notification_url,
            "analytics_enabled": self.analytics_enabled,
            "custom_fields": dict(self.custom_fields),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ApplicationPolicy:
        data = data or {}
        return cls(
            allow_prerelease=parse_flag(
                data.get("allow_prerelease"), "allow_prerelease"
            ),
            update_interval=parse_count(
                data.get("update_interval"), "update_interval", DEFAULT_UPDATE_INTERVAL
            ),
            min_version=data.get("min_version") or "",
            max_version=data.get("max_version") or "",
            auto_update=parse_flag(data.get("auto_update"), "auto_update"),
            required_update=parse_flag(data.get("required_update"), "required_update"),
            update_check_url=data.get("update_check_url") or "",
            notification_url=data.get("notification_url") or "",
            analytics_enabled=parse_flag(
                data.get("analytics_enabled"), "analytics_enabled"
            ),
            custom_fields={
                str(k): str(v) for k, v in (data.get("custom_fields") or {}).items()
            },
        )


@dataclass(frozen=True)
class Application:
    """An application that receives updates.

    Attributes:
        id: URL-safe identifier (letters, digits, "-" and "_", max 100).
        name: Display name.
        platforms: Supported platforms (normalized, non-empty).
        description: Optional description.
        policy: Update policy.
        created_at: Creation timestamp (ISO-8601 text).
        updated_at: Last modification timestamp (ISO-8601 text).

    """

    id: str
    name: str
    platforms: tuple[str, ...]
    description: str = ""
    policy: ApplicationPolicy = field(default_factory=ApplicationPolicy)
    created_at: str = ""
    updated_at: str = ""

    def validate(self) -> None:
        if not self.id:
            raise ValidationError("id", "application ID cannot be empty")
        if not is_valid_app_id(self.id):
            raise ValidationError(
                "id",
                "application ID must contain only alphanumeric characters, "
                "hyphens, and underscores",
            )
        if not self.name:
            raise ValidationError("name", "application name cannot be empty")
        if not self.platforms:
            raise ValidationError(
                "platforms", "at least one platform must be specified"
            )
        for platform in self.platforms:
            if not is_valid_platform(platform):
                raise ValidationError("platforms", f"invalid platform: {platform!r}")
        self.policy.validate()

    def supports_platform(self, platform: str) -> bool:
        wanted = normalize_platform(platform)
        return any(normalize_platform(p) == wanted for p in self.platforms)

    def supports_architecture(self, platform: str, arch: str) -> bool:
        return self.supports_platform(platform) and is_valid_architecture(arch)

    def with_policy(self, policy: ApplicationPolicy) -> Application:
        return replace(self, policy=policy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "platforms": list(self.platforms),
            "config": self.policy.to_dict(),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Application:
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            platforms=tuple(normalize_platform(p) for p in data.get("platforms") or ()),
            policy=ApplicationPolicy.from_dict(data.get("config")),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
        )
