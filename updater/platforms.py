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

"""Supported platforms, architectures and checksum algorithms.

Each set is a closed ``str`` enumeration. Values are lower-case and match
what clients send, so members compare equal to their plain string values.
"""

from __future__ import annotations

from enum import Enum
import hashlib


class Platform(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    DARWIN = "darwin"
    ANDROID = "android"
    IOS = "ios"


class Architecture(str, Enum):
    AMD64 = "amd64"
    ARM64 = "arm64"
    I386 = "386"
    ARM = "arm"


class ChecksumType(str, Enum):
    """Checksum algorithms accepted on releases.

    SHA256 is the only one recommended for new data; MD5 and SHA1 remain
    for catalogs registered before that.
    """

    SHA256 = "sha256"
    MD5 = "md5"
    SHA1 = "sha1"

    def new_hash(self):
        """Return a fresh hashlib object for this algorithm."""
        return hashlib.new(self.value)


SUPPORTED_PLATFORMS: tuple[str, ...] = tuple(p.value for p in Platform)
SUPPORTED_ARCHITECTURES: tuple[str, ...] = tuple(a.value for a in Architecture)
SUPPORTED_CHECKSUM_TYPES: tuple[str, ...] = tuple(c.value for c in ChecksumType)
DEFAULT_CHECKSUM_TYPE = ChecksumType.SHA256


def normalize_platform(platform: str) -> str:
    return (platform or "").strip().lower()


def normalize_architecture(arch: str) -> str:
    return (arch or "").strip().lower()


def is_valid_platform(platform: str) -> bool:
    return normalize_platform(platform) in SUPPORTED_PLATFORMS


def is_valid_architecture(arch: str) -> bool:
    return normalize_architecture(arch) in SUPPORTED_ARCHITECTURES


def is_valid_checksum_type(checksum_type: str) -> bool:
    return (checksum_type or "").strip().lower() in SUPPORTED_CHECKSUM_TYPES


def checksum_algorithm(checksum_type: str) -> ChecksumType:
    """Resolve a checksum tag, falling back to SHA256 for unknown tags."""
    try:
        return ChecksumType((checksum_type or "").strip().lower())
    except ValueError:
        return DEFAULT_CHECKSUM_TYPE
