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

"""JSON file release catalog.

The whole catalog lives in one JSON document:

    {
      "applications": [ {...}, ... ],
      "releases": [ {...}, ... ],
      "last_updated": "2025-01-01T00:00:00+00:00"
    }

The document is loaded once into an in-memory catalog and rewritten after
every mutation. Writes go to a temporary file in the same directory which is
then renamed over the catalog, so readers never observe a half-written file.

Key Features:

- Auto-creation of the catalog file and its parent directories
- Pretty-printed output (2-space indent, sorted keys, trailing newline)
- Corrupt or unreadable files raise StorageError with the cause chained

Example:
    ```python
    from pathlib import Path
    from updater.storage import JSONStorage

    storage = JSONStorage(Path("data/catalog.json"))
    releases, total = storage.find_releases(ReleaseFilter("my-app"))
    ```

"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
import json
import os
from pathlib import Path
import tempfile
from typing import Any

from updater.application import Application
from updater.cancellation import CancellationToken
from updater.exceptions import StorageError
from updater.logging import Logger, get_global_logger
from updater.release import Release
from updater.storage.memory import MemoryStorage, composite_key
from updater.versioning import PrereleaseOrdering


class JSONStorage(MemoryStorage):
    """Storage backed by a single JSON document on disk.

    Attributes:
        path: Location of the catalog file.

    """

    def __init__(
        self,
        path: Path | str,
        *,
        ordering: PrereleaseOrdering = "lexical",
        logger: Logger | None = None,
    ) -> None:
        """Open (or create) the catalog at ``path``.

        Raises:
            StorageError: If the file cannot be read, is not valid JSON, or
                does not have the catalog shape.

        """
        super().__init__(ordering=ordering)
        self.path = Path(path)
        self._logger = logger or get_global_logger()
        if self.path.exists():
            self._load()
        else:
            self._logger.verbose("STORAGE", f"Creating catalog file {self.path}")
            self._save()

    def _load(self) -> None:
        data = load_catalog(self.path)
        try:
            applications = [Application.from_dict(a) for a in data["applications"]]
            releases = [Release.from_dict(r) for r in data["releases"]]
        except (AttributeError, KeyError, TypeError, ValueError) as err:
            raise StorageError(
                f"Catalog file {self.path} has an invalid structure: {err}"
            ) from err

        with self._lock:
            self._applications = {a.id: a for a in applications}
            self._releases = {
                composite_key(
                    r.application_id, r.version, r.platform, r.architecture
                ): r
                for r in releases
            }
        self._logger.verbose(
            "STORAGE",
            f"Loaded {len(applications)} application(s) and "
            f"{len(releases)} release(s) from {self.path}",
        )

    def _save(self) -> None:
        with self._lock:
            document = {
                "applications": [a.to_dict() for a in self._applications.values()],
                "releases": [r.to_dict() for r in self._releases.values()],
                "last_updated": datetime.now(UTC).isoformat(),
            }
            save_catalog(document, self.path)
        self._logger.debug("STORAGE", f"Wrote catalog to {self.path}")

    def _commit(self, mutate: Callable[[], None]) -> None:
        """Apply ``mutate`` to the in-memory maps and write the catalog.

        If the write fails the maps are restored, so memory never holds a
        change that is not on disk.
        """
        with self._lock:
            applications = dict(self._applications)
            releases = dict(self._releases)
            mutate()
            try:
                self._save()
            except StorageError:
                self._applications = applications
                self._releases = releases
                raise

    def save_application(
        self, app: Application, token: CancellationToken | None = None
    ) -> None:
        self._commit(lambda: super(JSONStorage, self).save_application(app, token))

    def save_release(
        self, release: Release, token: CancellationToken | None = None
    ) -> None:
        self._commit(lambda: super(JSONStorage, self).save_release(release, token))

    def delete_release(
        self,
        app_id: str,
        version: str,
        platform: str,
        arch: str,
        token: CancellationToken | None = None,
    ) -> None:
        self._commit(
            lambda: super(JSONStorage, self).delete_release(
                app_id, version, platform, arch, token
            )
        )

    def close(self) -> None:
        # every mutation is already on disk
        return None


def load_catalog(path: Path) -> dict[str, Any]:
    """Load a catalog document.

    Raises:
        StorageError: If the file cannot be read or is not a JSON object.

    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as err:
        raise StorageError(f"Catalog file {path} is not valid JSON: {err}") from err
    except OSError as err:
        raise StorageError(f"Failed to read catalog file {path}: {err}") from err

    if not isinstance(data, dict):
        raise StorageError(f"Catalog file {path} must contain a JSON object")
    data.setdefault("applications", [])
    data.setdefault("releases", [])
    return data


def save_catalog(document: dict[str, Any], path: Path) -> None:
    """Atomically write a catalog document.

    Uses 2-space indentation and sorted keys for consistent diffs, with a
    trailing newline. The temporary file is removed if anything fails.

    Raises:
        StorageError: If the file cannot be written.

    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
    except OSError as err:
        raise StorageError(f"Failed to prepare catalog file {path}: {err}") from err

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_name, path)
    except OSError as err:
        Path(tmp_name).unlink(missing_ok=True)
        raise StorageError(f"Failed to write catalog file {path}: {err}") from err
