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

"""In-memory release catalog.

Used for tests and development, and as the in-process cache behind
JSONStorage. Maps are guarded by a re-entrant lock so concurrent callers see
consistent snapshots and duplicate composite keys are rejected atomically.

Example:
    ```python
    from updater.storage import MemoryStorage

    storage = MemoryStorage()
    storage.save_application(app)
    storage.save_release(release)
    releases, total = storage.find_releases(ReleaseFilter("my-app"))
    ```
"""

from __future__ import annotations

from copy import deepcopy
import threading

from updater.application import Application
from updater.cancellation import CancellationToken, check_token
from updater.exceptions import ConflictError, NotFoundError
from updater.filters import ReleaseFilter, apply_filter
from updater.platforms import normalize_architecture, normalize_platform
from updater.release import Release, release_id
from updater.versioning import PrereleaseOrdering


class MemoryStorage:
    """Thread-safe in-memory Storage implementation.

    Releases are kept in insertion order, which is the catalog order seen
    by find_releases when no sort is requested. Returned objects are copies,
    so callers cannot mutate the catalog behind the lock.
    """

    def __init__(self, *, ordering: PrereleaseOrdering = "lexical") -> None:
        self.ordering: PrereleaseOrdering = ordering
        self._lock = threading.RLock()
        self._applications: dict[str, Application] = {}
        self._releases: dict[str, Release] = {}

    # ----------------------------
    # Applications
    # ----------------------------

    def list_applications(
        self, token: CancellationToken | None = None
    ) -> list[Application]:
        check_token(token, "list applications")
        with self._lock:
            return list(self._applications.values())

    def get_application(
        self, app_id: str, token: CancellationToken | None = None
    ) -> Application:
        check_token(token, "get application")
        with self._lock:
            try:
                return self._applications[app_id]
            except KeyError:
                raise NotFoundError(f"application {app_id!r} not found") from None

    def save_application(
        self, app: Application, token: CancellationToken | None = None
    ) -> None:
        check_token(token, "save application")
        with self._lock:
            self._applications[app.id] = app

    # ----------------------------
    # Releases
    # ----------------------------

    def find_releases(
        self, flt: ReleaseFilter, token: CancellationToken | None = None
    ) -> tuple[list[Release], int]:
        check_token(token, "find releases")
        with self._lock:
            snapshot = list(self._releases.values())
            page, total = apply_filter(snapshot, flt, ordering=self.ordering)
            return [deepcopy(r) for r in page], total

    def get_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        token: CancellationToken | None = None,
    ) -> Release:
        check_token(token, "get release")
        key = composite_key(app_id, version, platform, arch)
        with self._lock:
            try:
                return deepcopy(self._releases[key])
            except KeyError:
                raise NotFoundError(f"release {key!r} not found") from None

    def save_release(
        self, release: Release, token: CancellationToken | None = None
    ) -> None:
        check_token(token, "save release")
        key = composite_key(
            release.application_id,
            release.version,
            release.platform,
            release.architecture,
        )
        with self._lock:
            if key in self._releases:
                raise ConflictError(
                    f"release {key!r} already exists", details={"id": key}
                )
            self._releases[key] = deepcopy(release)

    def delete_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        token: CancellationToken | None = None,
    ) -> None:
        check_token(token, "delete release")
        key = composite_key(app_id, version, platform, arch)
        with self._lock:
            if key not in self._releases:
                raise NotFoundError(f"release {key!r} not found")
            del self._releases[key]

    def close(self) -> None:
        with self._lock:
            self._applications.clear()
            self._releases.clear()


def composite_key(app_id: str, version: str, platform: str, arch: str) -> str:
    return release_id(
        app_id.strip(),
        version.strip(),
        normalize_platform(platform),
        normalize_architecture(arch),
    )
