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

"""Update decision policy for updater.

Determines, from a client's current version and the candidate releases for
its platform/architecture, whether an update is offered and which release.
Everything here is a pure function over in-memory data; fetching candidates
is the service's job.

Example:
    Decide for a client at 1.2.0:

        from updater.policy.updates import decide_update

        decision = decide_update(
            current_version="1.2.0",
            candidates=releases,
            allow_prerelease=False,
        )
        print(decision.update_available, decision.latest_version)

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from updater.application import ApplicationPolicy
from updater.exceptions import VersionFormatError
from updater.logging import Logger, get_global_logger
from updater.release import Release
from updater.results import UpdateDecision
from updater.versioning import PrereleaseOrdering, Version, parse_version


@dataclass(frozen=True)
class Candidate:
    """A catalog entry whose version parsed, with its catalog position."""

    release: Release
    version: Version
    position: int


def eligible_candidates(
    releases: Sequence[Release],
    *,
    allow_prerelease: bool,
    policy: ApplicationPolicy | None = None,
    logger: Logger | None = None,
) -> list[Candidate]:
    """Parse and filter catalog entries.

    Entries whose version does not parse are skipped and logged. Prereleases
    are dropped unless ``allow_prerelease``; entries outside the policy's
    min/max bounds are dropped.
    """
    logger = logger or get_global_logger()
    result: list[Candidate] = []
    for position, release in enumerate(releases):
        try:
            version = parse_version(release.version)
        except VersionFormatError as err:
            logger.verbose(
                "CATALOG",
                f"Skipping release {release.id!r}: {err.message}",
            )
            continue
        if version.is_prerelease and not allow_prerelease:
            logger.debug("CATALOG", f"Skipping prerelease {release.version}")
            continue
        if policy is not None and not policy.within_bounds(version):
            logger.debug(
                "CATALOG",
                f"Skipping {release.version}: outside application version bounds",
            )
            continue
        result.append(Candidate(release=release, version=version, position=position))
    return result


def select_best(
    candidates: Sequence[Candidate],
    *,
    ordering: PrereleaseOrdering = "lexical",
) -> Candidate | None:
    """Pick the greatest version.

    Equal versions go to the later release_date, then to the earliest
    catalog position.
    """
    best: Candidate | None = None
    for cand in candidates:
        if best is None:
            best = cand
            continue
        cmp = cand.version.compare(best.version, ordering=ordering)
        if cmp > 0:
            best = cand
        elif cmp == 0 and cand.release.release_date > best.release.release_date:
            best = cand
    return best


def is_required_for(release: Release, current_version: str) -> bool:
    """Whether ``release`` is mandatory for a client at ``current_version``.

    The required flag is gated from below: it applies to clients at or
    above ``minimum_version`` and to every client when no minimum is set.
    A client older than the minimum is still offered the release, but as
    an optional update. For example, a required 1.5.0 with minimum 1.0.0
    is mandatory for 1.2.0 and optional for 0.9.0.
    """
    return release.required and release.meets_minimum_version(current_version)


def decide_update(
    *,
    current_version: str,
    candidates: Sequence[Release],
    allow_prerelease: bool,
    include_metadata: bool = False,
    policy: ApplicationPolicy | None = None,
    ordering: PrereleaseOrdering = "lexical",
    logger: Logger | None = None,
) -> UpdateDecision:
    """Decide whether to offer an update.

    Args:
        current_version: Version the client reported.
        candidates: Releases already narrowed to the client's
            application, platform and architecture, in catalog order.
        allow_prerelease: Whether prerelease versions may be offered.
        include_metadata: Copy release metadata into the decision.
        policy: Application policy whose version bounds apply, if any.
        ordering: Prerelease label ordering.
        logger: Logger for skipped entries (defaults to the global one).

    Returns:
        The decision. When nothing strictly newer exists the decision echoes
        the current version.

    Raises:
        VersionFormatError: If ``current_version`` does not parse.

    """
    logger = logger or get_global_logger()
    current = parse_version(current_version)

    eligible = eligible_candidates(
        candidates, allow_prerelease=allow_prerelease, policy=policy, logger=logger
    )
    best = select_best(eligible, ordering=ordering)
    if best is None or best.version.compare(current, ordering=ordering) <= 0:
        return UpdateDecision.no_update(current_version)

    return UpdateDecision.for_release(
        best.release,
        current_version,
        required=is_required_for(best.release, current_version),
        include_metadata=include_metadata,
    )


def latest_release(
    candidates: Sequence[Release],
    *,
    allow_prerelease: bool,
    policy: ApplicationPolicy | None = None,
    ordering: PrereleaseOrdering = "lexical",
    logger: Logger | None = None,
) -> Release | None:
    """Greatest eligible release, without comparing to a current version."""
    eligible = eligible_candidates(
        candidates, allow_prerelease=allow_prerelease, policy=policy, logger=logger
    )
    best = select_best(eligible, ordering=ordering)
    return best.release if best else None
