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

"""Artifact I/O for updater.

Public API:

download_release : function
    Download a release artifact and verify it against the release checksum.
verify_file : function
    Check a file already on disk against a release checksum.
hash_file : function
    Hex digest of a file under a checksum algorithm.
DownloadResult : class
    Verified artifact on disk.

Example:
    from pathlib import Path
    from updater.io import download_release

    result = download_release(release, Path("./downloads"))
    print(f"Downloaded to {result.path} with hash {result.checksum}")

"""

from .download import (
    DownloadResult,
    download_release,
    hash_file,
    make_session,
    verify_file,
)

__all__ = [
    "DownloadResult",
    "download_release",
    "hash_file",
    "make_session",
    "verify_file",
]
