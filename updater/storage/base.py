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

"""Storage collaborator protocol.

The determination service never touches a database or file directly; it
talks to an object satisfying ``Storage``. Any backend (in-memory fake, JSON
file, a database adapter living outside this package) that implements these
methods can be passed to UpdateService.

Contract:

- Lookups of a missing application or release raise NotFoundError.
- save_release raises ConflictError when the composite key already exists.
- find_releases returns matches in catalog (insertion) order when the
  filter carries no sort field, and the total match count before
  pagination.
- Every method accepts an optional CancellationToken and raises
  CancelledError once it is cancelled.
- Backend-specific failures surface as StorageError with the cause chained.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from updater.application import Application
from updater.cancellation import CancellationToken
from updater.filters import ReleaseFilter
from updater.release import Release


@runtime_checkable
class Storage(Protocol):
    """Protocol for release catalog backends."""

    def get_application(
        self, app_id: str, token: CancellationToken | None = None
    ) -> Application: ...

    def save_application(
        self, app: Application, token: CancellationToken | None = None
    ) -> None: ...

    def find_releases(
        self, flt: ReleaseFilter, token: CancellationToken | None = None
    ) -> tuple[list[Release], int]: ...

    def get_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        token: CancellationToken | None = None,
    ) -> Release: ...

    def save_release(
        self, release: Release, token: CancellationToken | None = None
    ) -> None: ...

    def delete_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        token: CancellationToken | None = None,
    ) -> None: ...

    def close(self) -> None: ...
