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

"""Core version parsing and comparison for updater.

This module is format-agnostic: it does NOT touch storage or the network.
It only parses and compares version strings consistently for every caller
(catalog scans, minimum-version gates, constraints, list sorting).
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Literal

from updater.exceptions import ValidationError, VersionFormatError

# ----------------------------
# Ordering modes
# ----------------------------

PrereleaseOrdering = Literal["lexical", "semver"]
PRERELEASE_ORDERINGS: tuple[str, ...] = ("lexical", "semver")

_NUMERIC = re.compile(r"[0-9]+")
_MAX_COMPONENTS = 3

# Releases sort above any prerelease with the same core tuple.
_RELEASE_MARK = (1,)


def _split_semver_identifiers(pre: str) -> tuple[tuple[int, object], ...]:
    """Split a prerelease label into semver identifiers.

    Numeric identifiers are encoded (0, int) and alphanumeric ones (1, str)
    so numeric identifiers order below alphanumeric ones, and a shorter
    label orders below a longer one sharing its prefix.
    Example: "rc.10" -> ((1, "rc"), (0, 10))
    """
    out: list[tuple[int, object]] = []
    for ident in pre.split("."):
        if _NUMERIC.fullmatch(ident):
            out.append((0, int(ident)))
        else:
            out.append((1, ident))
    return tuple(out)


# ----------------------------
# Version value
# ----------------------------


@dataclass(frozen=True, eq=False)
class Version:
    """A parsed version: major.minor.patch with optional prerelease and build.

    Attributes:
        major: Major component.
        minor: Minor component (0 when omitted).
        patch: Patch component (0 when omitted).
        prerelease: Label after the first "-", or None.
        build: Metadata after the first "+", or None. Never affects ordering.
        raw: Original text, echoed back by ``str()``.

    """

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str | None = None
    build: str | None = None
    raw: str = ""

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def sort_key(self, ordering: PrereleaseOrdering = "lexical") -> tuple:
        """Return a tuple that sorts versions in precedence order.

        - lexical: labels compare as plain strings ("rc.10" < "rc.2").
        - semver: labels compare identifier by identifier ("rc.2" < "rc.10").
        """
        if not self.prerelease:
            return (self.core, _RELEASE_MARK)
        if ordering == "semver":
            return (self.core, (0, _split_semver_identifiers(self.prerelease)))
        return (self.core, (0, self.prerelease))

    def compare(
        self, other: Version, *, ordering: PrereleaseOrdering = "lexical"
    ) -> int:
        """Compare with another version.

        Returns -1 if self < other, 0 if equal, 1 if self > other.
        """
        a = self.sort_key(ordering)
        b = other.sort_key(ordering)
        return (a > b) - (a < b)

    def equal(self, other: Version) -> bool:
        return self.compare(other) == 0

    def greater_than(self, other: Version) -> bool:
        return self.compare(other) > 0

    def less_than(self, other: Version) -> bool:
        return self.compare(other) < 0

    def greater_than_or_equal(self, other: Version) -> bool:
        return self.compare(other) >= 0

    def less_than_or_equal(self, other: Version) -> bool:
        return self.compare(other) <= 0

    # Operators follow the default (lexical) ordering.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.equal(other)

    def __hash__(self) -> int:
        return hash((self.core, self.prerelease or None))

    def __lt__(self, other: Version) -> bool:
        return self.less_than(other)

    def __le__(self, other: Version) -> bool:
        return self.less_than_or_equal(other)

    def __gt__(self, other: Version) -> bool:
        return self.greater_than(other)

    def __ge__(self, other: Version) -> bool:
        return self.greater_than_or_equal(other)


def parse_version(text: str) -> Version:
    """Parse a version string.

    Supported forms: "1.2.3", "1.2.3-beta.1", "1.2.3+build.7",
    "1.2.3-rc.1+sha.abc", and partial "1.2" / "1" (missing parts are 0).

    Args:
        text: Version text.

    Returns:
        The parsed Version, with ``raw`` set to ``text`` verbatim.

    Raises:
        VersionFormatError: If the text is empty, a numeric component is not
            a non-negative integer, or there are more than three components.

    """
    if not isinstance(text, str) or text == "":
        raise VersionFormatError("version string cannot be empty", version=text or "")

    main = text
    build: str | None = None
    prerelease: str | None = None

    i = main.find("+")
    if i != -1:
        build = main[i + 1 :] or None
        main = main[:i]
    i = main.find("-")
    if i != -1:
        prerelease = main[i + 1 :] or None
        main = main[:i]

    parts = main.split(".")
    if len(parts) > _MAX_COMPONENTS:
        raise VersionFormatError(f"invalid version format: {text}", version=text)

    nums: list[int] = []
    for name, part in zip(("major", "minor", "patch"), parts):
        if not _NUMERIC.fullmatch(part):
            raise VersionFormatError(f"invalid {name} version: {part!r}", version=text)
        nums.append(int(part))
    nums.extend([0] * (_MAX_COMPONENTS - len(nums)))

    return Version(
        major=nums[0],
        minor=nums[1],
        patch=nums[2],
        prerelease=prerelease,
        build=build,
        raw=text,
    )


def try_parse_version(text: str | None) -> Version | None:
    """Parse ``text``, returning None instead of raising on bad input."""
    if not text:
        return None
    try:
        return parse_version(text)
    except VersionFormatError:
        return None


def compare_versions(
    a: str, b: str, *, ordering: PrereleaseOrdering = "lexical"
) -> int:
    """Compare two version strings.

    Returns -1 if a < b, 0 if equal, 1 if a > b.

    Raises:
        VersionFormatError: If either string does not parse.
    """
    return parse_version(a).compare(parse_version(b), ordering=ordering)


def is_newer(
    remote: str,
    current: str | None,
    *,
    ordering: PrereleaseOrdering = "lexical",
) -> bool:
    """Decide if 'remote' is newer than 'current'.

    Returns True iff remote > current. Any version is newer than None.
    """
    if current is None:
        return True
    return compare_versions(remote, current, ordering=ordering) > 0


def version_key(text: str, *, ordering: PrereleaseOrdering = "lexical") -> tuple:
    """Compute a sort key for a version string.

    Unparseable strings sort below every valid version, ordered by their
    raw text, so catalogs with corrupt entries can still be listed.
    """
    parsed = try_parse_version(text)
    if parsed is None:
        return (0, text)
    return (1, parsed.sort_key(ordering))


# ----------------------------
# Constraints
# ----------------------------

OPERATORS: tuple[str, ...] = ("=", "==", "!=", ">", ">=", "<", "<=", "")
_CONSTRAINT_RE = re.compile(r"^\s*(==|!=|>=|<=|=|>|<)?\s*(\S+)\s*$")


@dataclass(frozen=True)
class VersionConstraint:
    """An operator paired with a version, e.g. (">=", "1.2.0").

    Attributes:
        operator: One of =, ==, !=, >, >=, <, <=; empty means "=".
        version: Version text to compare against.

    """

    operator: str
    version: str

    def check(
        self, version: Version | str, *, ordering: PrereleaseOrdering = "lexical"
    ) -> bool:
        """Return whether ``version`` satisfies this constraint.

        Raises:
            VersionFormatError: If the constraint version (or ``version`` when
                given as text) is malformed.
            ValidationError: If the operator is not recognized.

        """
        try:
            bound = parse_version(self.version)
        except VersionFormatError as err:
            raise VersionFormatError(
                f"invalid constraint version: {err.message}", version=self.version
            ) from err

        if isinstance(version, str):
            version = parse_version(version)

        cmp = version.compare(bound, ordering=ordering)
        op = self.operator
        if op in ("=", "==", ""):
            return cmp == 0
        if op == "!=":
            return cmp != 0
        if op == ">":
            return cmp > 0
        if op == ">=":
            return cmp >= 0
        if op == "<":
            return cmp < 0
        if op == "<=":
            return cmp <= 0
        raise ValidationError("operator", f"unsupported operator: {op}")


def parse_constraint(text: str) -> VersionConstraint:
    """Split constraint text such as ">= 1.2.0" into a VersionConstraint.

    Raises:
        ValidationError: If the text has no version part.
    """
    m = _CONSTRAINT_RE.match(text or "")
    if not m:
        raise ValidationError("constraint", f"invalid constraint: {text!r}")
    return VersionConstraint(operator=m.group(1) or "", version=m.group(2))
