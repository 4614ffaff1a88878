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

"""Update determination service for updater.

UpdateService is the upward interface an HTTP layer (or the CLI) calls. It is
stateless: every method is a function of its arguments and what the storage
collaborator returns. Authentication, permissions and rate limiting belong
in the caller, around these methods.

Cancellation:
    Every method accepts an optional CancellationToken. The token is checked
    before and after each storage call and handed to the storage method, so
    a cancelled request raises CancelledError and never returns a partial
    result.

Error Handling:
    Errors raised by the storage collaborator (NotFoundError, ConflictError,
    StorageError, CancelledError) pass through unchanged. Any other exception
    escaping a backend is wrapped in StorageError with the cause chained.

Example:
    ```python
    from updater.service import UpdateService
    from updater.storage import MemoryStorage

    service = UpdateService(MemoryStorage())
    decision = service.check_for_update("my-app", "1.2.0", "linux", "amd64")
    print(decision.to_dict())
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from updater.application import Application
from updater.cancellation import CancellationToken, check_token
from updater.config import ServiceSettings
from updater.exceptions import StorageError, UpdaterError, ValidationError
from updater.filters import ReleaseFilter
from updater.logging import Logger, get_global_logger
from updater.policy.updates import (
    decide_update,
    eligible_candidates,
    latest_release,
    select_best,
)
from updater.registration import RegisterReleaseRequest
from updater.release import Release
from updater.results import (
    ApplicationStats,
    LatestVersion,
    Page,
    ReleaseSummary,
    UpdateDecision,
)
from updater.storage.base import Storage
from updater.versioning import parse_version

T = TypeVar("T")


class UpdateService:
    """Release determination, listing and registration over a storage backend.

    Attributes:
        storage: Storage collaborator.
        settings: Prerelease ordering and default page size.

    """

    def __init__(
        self,
        storage: Storage,
        *,
        settings: ServiceSettings | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.storage = storage
        self.settings = settings or ServiceSettings()
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    # ----------------------------
    # Storage access
    # ----------------------------

    def _call(
        self,
        operation: str,
        fn: Callable[..., T],
        *args,
        token: CancellationToken | None = None,
    ) -> T:
        check_token(token, operation)
        try:
            result = fn(*args, token=token)
        except UpdaterError:
            raise
        except Exception as err:
            raise StorageError(f"{operation} failed: {err}") from err
        check_token(token, operation)
        return result

    def _application_for(
        self, app_id: str, platform: str, token: CancellationToken | None
    ) -> Application:
        app = self._call(
            "get application",
            self.storage.get_application,
            app_id.strip(),
            token=token,
        )
        if not app.supports_platform(platform):
            raise ValidationError(
                "platform",
                f"application {app.id} does not support platform {platform}",
            )
        return app

    def _candidates(
        self, app_id: str, platform: str, arch: str, token: CancellationToken | None
    ) -> list[Release]:
        flt = ReleaseFilter.for_target(app_id, platform, arch)
        releases, _ = self._call(
            "find releases", self.storage.find_releases, flt, token=token
        )
        self.logger.debug(
            "UPDATE",
            f"{len(releases)} candidate(s) for {flt.application_id} "
            f"{flt.platform}/{flt.architecture}",
        )
        return releases

    # ----------------------------
    # Determination
    # ----------------------------

    def check_for_update(
        self,
        app_id: str,
        current_version: str,
        platform: str,
        arch: str,
        allow_prerelease: bool | None = False,
        include_metadata: bool = False,
        *,
        token: CancellationToken | None = None,
    ) -> UpdateDecision:
        """Decide whether a client should update, and to which release.

        Args:
            app_id: Application identifier.
            current_version: Version the client is running.
            platform: Client platform (case-insensitive).
            arch: Client architecture (case-insensitive).
            allow_prerelease: Whether prereleases may be offered. None uses
                the application's policy default.
            include_metadata: Copy release metadata into the decision.
            token: Optional cancellation token.

        Returns:
            The UpdateDecision.

        Raises:
            VersionFormatError: If current_version does not parse.
            NotFoundError: If the application is not registered.
            ValidationError: If the application does not support platform.
            CancelledError: If the token fires.

        """
        check_token(token, "check for update")
        parse_version(current_version)

        app = self._application_for(app_id, platform, token)
        if allow_prerelease is None:
            allow_prerelease = app.policy.allow_prerelease
        releases = self._candidates(app_id, platform, arch, token)

        decision = decide_update(
            current_version=current_version,
            candidates=releases,
            allow_prerelease=allow_prerelease,
            include_metadata=include_metadata,
            policy=app.policy,
            ordering=self.settings.prerelease_ordering,
            logger=self.logger,
        )
        if decision.update_available:
            self.logger.verbose(
                "UPDATE",
                f"{app.id} {current_version} -> {decision.latest_version} "
                f"({'required' if decision.required else 'optional'})",
            )
        else:
            self.logger.verbose("UPDATE", f"{app.id} {current_version} is up to date")
        return decision

    def get_latest_version(
        self,
        app_id: str,
        platform: str,
        arch: str,
        allow_prerelease: bool | None = False,
        include_metadata: bool = False,
        *,
        token: CancellationToken | None = None,
    ) -> LatestVersion | None:
        """Return the greatest eligible release, or None when there is none."""
        check_token(token, "get latest version")
        app = self._application_for(app_id, platform, token)
        if allow_prerelease is None:
            allow_prerelease = app.policy.allow_prerelease
        releases = self._candidates(app_id, platform, arch, token)

        best = latest_release(
            releases,
            allow_prerelease=allow_prerelease,
            policy=app.policy,
            ordering=self.settings.prerelease_ordering,
            logger=self.logger,
        )
        if best is None:
            return None
        return LatestVersion.from_release(best, include_metadata=include_metadata)

    # ----------------------------
    # Catalog
    # ----------------------------

    def list_releases(
        self, flt: ReleaseFilter, *, token: CancellationToken | None = None
    ) -> Page[ReleaseSummary]:
        """Validate, normalize and run a listing query.

        Raises:
            ValidationError: If the filter is invalid.

        """
        check_token(token, "list releases")
        flt.validate()
        flt = flt.normalize(default_limit=self.settings.default_limit)
        releases, total = self._call(
            "find releases", self.storage.find_releases, flt, token=token
        )
        self.logger.verbose(
            "CATALOG",
            f"Listing {flt.application_id}: {len(releases)} of {total} "
            f"(page {flt.page})",
        )
        return Page.build(
            [ReleaseSummary.from_release(r) for r in releases],
            total,
            offset=flt.offset,
            limit=flt.limit,
        )

    def validate_registration(self, request: RegisterReleaseRequest) -> Release:
        """Normalize and validate a registration request into a Release.

        Uniqueness is not checked here.

        Raises:
            ValidationError: Naming the first field that failed.

        """
        request = request.normalize()
        request.validate()
        return request.to_release()

    def register_release(
        self,
        request: RegisterReleaseRequest,
        *,
        token: CancellationToken | None = None,
    ) -> Release:
        """Validate a registration and save it.

        Raises:
            ValidationError: If the request is invalid or the application
                does not support the platform.
            NotFoundError: If the application is not registered.
            ConflictError: If the composite key already exists.

        """
        check_token(token, "register release")
        release = self.validate_registration(request)
        self._application_for(release.application_id, release.platform, token)
        self._call("save release", self.storage.save_release, release, token=token)
        self.logger.verbose("CATALOG", f"Registered release {release.id}")
        return release

    def delete_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        *,
        token: CancellationToken | None = None,
    ) -> Release:
        """Delete a release and return what was removed.

        Raises:
            NotFoundError: If the release does not exist.

        """
        release = self._call(
            "get release",
            self.storage.get_release,
            app_id,
            version,
            platform,
            arch,
            token=token,
        )
        self._call(
            "delete release",
            self.storage.delete_release,
            app_id,
            version,
            platform,
            arch,
            token=token,
        )
        self.logger.verbose("CATALOG", f"Deleted release {release.id}")
        return release

    def application_stats(
        self, app_id: str, *, token: CancellationToken | None = None
    ) -> ApplicationStats:
        """Compute catalog statistics for an application.

        Raises:
            NotFoundError: If the application is not registered.

        """
        app = self._call(
            "get application", self.storage.get_application, app_id, token=token
        )
        releases, _ = self._call(
            "find releases",
            self.storage.find_releases,
            ReleaseFilter(application_id=app.id),
            token=token,
        )

        best = select_best(
            eligible_candidates(releases, allow_prerelease=True, logger=self.logger),
            ordering=self.settings.prerelease_ordering,
        )

        return ApplicationStats(
            application_id=app.id,
            total_releases=len(releases),
            latest_version=best.release.version if best else "",
            latest_release_date=max(
                (r.release_date for r in releases), default=None
            ),
            platform_count=len({r.platform for r in releases}),
            required_releases=sum(1 for r in releases if r.required),
        )
