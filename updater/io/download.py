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

"""Release artifact download and verification for updater.

Fetches the artifact a Release points at and checks it against the release's
checksum, the same way a client is expected to before installing.

Key Features:

- **Retries with backoff** - Transient HTTP failures (429, 5xx) are retried
  through a urllib3 Retry policy mounted on the session.
- **Atomic writes** - The body streams into <filename>.part, which is renamed
  to <filename> only once the download completes.
- **Stream hashing** - The digest is computed while writing, using the
  algorithm named by the release (sha256, md5 or sha1).

Constants:

- DEFAULT_CHUNK (int): Stream chunk size (1 MiB).

Example:
Download and verify:

    >>> from pathlib import Path
    >>> from updater.io import download_release
    >>> result = download_release(release, Path("./downloads"))
    >>> print(result.path, result.checksum)

Verify a file already on disk:

    >>> from updater.io import verify_file
    >>> verify_file(release, Path("./downloads/my-app-1.5.0.tar.gz"))
    True

Notes:
- All HTTP errors are raised as NetworkError chained to the requests error
- Timeouts are per-request, not total download time
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from updater import __version__
from updater.exceptions import NetworkError
from updater.logging import Logger, get_global_logger
from updater.platforms import checksum_algorithm
from updater.release import Release

# Stream size per chunk (1 MiB).
DEFAULT_CHUNK = 1024 * 1024


@dataclass(frozen=True)
class DownloadResult:
    """Verified artifact on disk.

    Attributes:
        path: Location of the downloaded file.
        checksum: Hex digest computed while downloading.
        checksum_type: Algorithm used for the digest.
        size: Number of bytes written.
    """

    path: Path
    checksum: str
    checksum_type: str
    size: int


def _filename_from_cd(content_disposition: str) -> str | None:
    """
    Extract a filename from a Content-Disposition header if present.

    Example header:
      'attachment; filename="my-app-1.5.0.tar.gz"'
    """
    if not content_disposition:
        return None
    for part in (s.strip() for s in content_disposition.split(";")):
        if part.lower().startswith("filename="):
            value = part.split("=", 1)[1].strip().strip('"')
            return Path(value).name or None
    return None


def _filename_from_url(url: str) -> str:
    """
    Derive a filename from the URL path. Fallback to a generic name if empty.
    """
    name = Path(urlparse(url).path).name
    return name or "download.bin"


def make_session() -> requests.Session:
    """
    Create a requests.Session with retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Identifies the client in the User-Agent.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.headers.update({"User-Agent": f"updater/{__version__}"})
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def hash_file(path: Path, checksum_type: str) -> str:
    """Hex digest of a file under ``checksum_type`` (unknown tags use sha256)."""
    h = checksum_algorithm(checksum_type).new_hash()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(DEFAULT_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_file(release: Release, path: Path) -> bool:
    """Return whether the file at ``path`` matches the release checksum."""
    digest = hash_file(path, release.checksum_type)
    return release.checksum.strip().lower() == digest.lower()


def download_release(
    release: Release,
    destination_folder: Path,
    *,
    timeout: int = 60,
    logger: Logger | None = None,
) -> DownloadResult:
    """Download a release artifact and verify it.

    Follows redirects and retries transient failures. Writes to
    <filename>.part and renames it to <filename> only once its checksum (and
    declared size) match, so an existing file at the target is left alone
    on a mismatch.

    Args:
        release: Release whose download_url and checksum are used.
        destination_folder: Folder to save into (created if missing).
        timeout: Per-request timeout (seconds).
        logger: Logger for progress (defaults to the global one).

    Returns:
        The verified DownloadResult.

    Raises:
        NetworkError: For HTTP failures (after retries), or when the
            downloaded bytes do not match the release.
        OSError: If the .part file cannot be written (it is removed first).

    """
    logger = logger or get_global_logger()
    destination_folder = Path(destination_folder)
    destination_folder.mkdir(parents=True, exist_ok=True)

    url = release.download_url
    logger.verbose("HTTP", f"GET {url}")

    with make_session() as session:
        try:
            resp = session.get(url, stream=True, allow_redirects=True, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as err:
            raise NetworkError(f"download failed for {url}: {err}") from err

        logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")

        cd_name = _filename_from_cd(resp.headers.get("Content-Disposition", ""))
        filename = cd_name or _filename_from_url(resp.url or url)
        target = destination_folder / filename
        tmp = target.with_suffix(target.suffix + ".part")
        logger.verbose("FILE", f"Downloading to: {tmp}")

        algorithm = checksum_algorithm(release.checksum_type)
        h = algorithm.new_hash()
        size = 0
        try:
            with tmp.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=DEFAULT_CHUNK):
                    if not chunk:
                        continue
                    f.write(chunk)
                    h.update(chunk)
                    size += len(chunk)
        except requests.RequestException as err:
            tmp.unlink(missing_ok=True)
            raise NetworkError(f"download interrupted for {url}: {err}") from err
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        finally:
            resp.close()

    digest = h.hexdigest()
    logger.verbose("FILE", f"{algorithm.value.upper()}: {digest}")

    # target is only ever replaced by a verified file
    if release.checksum.strip().lower() != digest.lower():
        tmp.unlink(missing_ok=True)
        raise NetworkError(
            f"{algorithm.value} mismatch for {filename}: got {digest}, "
            f"expected {release.checksum}",
            details={"release_id": release.id},
        )
    if release.file_size and size != release.file_size:
        tmp.unlink(missing_ok=True)
        raise NetworkError(
            f"size mismatch for {filename}: got {size} bytes, "
            f"expected {release.file_size}",
            details={"release_id": release.id},
        )

    logger.debug("FILE", f"Atomic rename: {tmp.name} -> {target.name}")
    tmp.replace(target)

    logger.verbose("FILE", f"Download complete: {target}")
    return DownloadResult(
        path=target, checksum=digest, checksum_type=algorithm.value, size=size
    )
