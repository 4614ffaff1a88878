"""
Tests for updater.policy module.

Tests the update decision algorithm including:
- Newer-version detection and no-update echo
- Prerelease exclusion and inclusion
- Required flag gated by minimum version
- Application version bounds
- Tie-breaking between equal versions
- Skipping malformed catalog entries
"""

from __future__ import annotations

import pytest

from updater.application import ApplicationPolicy
from updater.exceptions import VersionFormatError
from updater.policy import (
    decide_update,
    eligible_candidates,
    is_required_for,
    latest_release,
    select_best,
)


class TestDecideUpdate:
    """Tests for decide_update."""

    def test_newer_stable_release(self, make_release):
        """Test that a newer stable release is offered."""
        decision = decide_update(
            current_version="1.2.0",
            candidates=[make_release("1.5.0")],
            allow_prerelease=False,
        )
        assert decision.update_available
        assert decision.latest_version == "1.5.0"
        assert decision.current_version == "1.2.0"
        assert decision.download_url.endswith("my-app-1.5.0.tar.gz")

    def test_prerelease_excluded_unless_allowed(self, make_release):
        """Test prerelease inclusion follows allow_prerelease."""
        catalog = [make_release("1.5.0"), make_release("2.0.0-beta.1")]

        decision = decide_update(
            current_version="1.5.0", candidates=catalog, allow_prerelease=False
        )
        assert not decision.update_available
        assert decision.latest_version == "1.5.0"

        decision = decide_update(
            current_version="1.5.0", candidates=catalog, allow_prerelease=True
        )
        assert decision.update_available
        assert decision.latest_version == "2.0.0-beta.1"

    def test_same_version_is_not_an_update(self, make_release):
        """Test that only strictly newer versions are offered."""
        decision = decide_update(
            current_version="1.5.0+build.9",
            candidates=[make_release("1.5.0")],
            allow_prerelease=False,
        )
        assert not decision.update_available
        assert decision.to_dict() == {
            "update_available": False,
            "latest_version": "1.5.0+build.9",
            "current_version": "1.5.0+build.9",
        }

    def test_empty_catalog(self):
        """Test that an empty candidate set yields no update."""
        decision = decide_update(
            current_version="1.0.0", candidates=[], allow_prerelease=True
        )
        assert not decision.update_available

    def test_invalid_current_version(self, make_release):
        """Test that a malformed current version is a format error."""
        with pytest.raises(VersionFormatError):
            decide_update(
                current_version="latest",
                candidates=[make_release("1.0.0")],
                allow_prerelease=False,
            )

    def test_required_gated_by_minimum_version(self, make_release):
        """Test the required flag applies only at or above the minimum."""
        catalog = [make_release("1.5.1", required=True, minimum_version="1.0.0")]

        decision = decide_update(
            current_version="1.2.0", candidates=catalog, allow_prerelease=False
        )
        assert decision.update_available
        assert decision.required is True
        assert decision.to_dict()["minimum_version"] == "1.0.0"

        decision = decide_update(
            current_version="0.9.0", candidates=catalog, allow_prerelease=False
        )
        assert decision.update_available
        assert decision.required is False

        decision = decide_update(
            current_version="2.0.0", candidates=catalog, allow_prerelease=False
        )
        assert not decision.update_available
        assert decision.required is False

    def test_metadata_only_when_requested(self, make_release):
        """Test that release metadata is copied only on request."""
        catalog = [make_release("2.0.0", metadata={"channel": "stable"})]
        plain = decide_update(
            current_version="1.0.0", candidates=catalog, allow_prerelease=False
        )
        assert plain.metadata == {}
        assert "metadata" not in plain.to_dict()

        rich = decide_update(
            current_version="1.0.0",
            candidates=catalog,
            allow_prerelease=False,
            include_metadata=True,
        )
        assert rich.to_dict()["metadata"] == {"channel": "stable"}

    def test_policy_bounds(self, make_release):
        """Test that versions above max_version are never offered."""
        catalog = [make_release("1.5.0"), make_release("3.0.0")]
        decision = decide_update(
            current_version="1.0.0",
            candidates=catalog,
            allow_prerelease=False,
            policy=ApplicationPolicy(max_version="2.0.0"),
        )
        assert decision.latest_version == "1.5.0"

    def test_semver_ordering(self, make_release):
        """Test that semver mode picks rc.10 over rc.2."""
        catalog = [make_release("1.0.0-rc.2"), make_release("1.0.0-rc.10")]
        lexical = decide_update(
            current_version="0.9.0", candidates=catalog, allow_prerelease=True
        )
        semver = decide_update(
            current_version="0.9.0",
            candidates=catalog,
            allow_prerelease=True,
            ordering="semver",
        )
        assert lexical.latest_version == "1.0.0-rc.2"
        assert semver.latest_version == "1.0.0-rc.10"

    def test_monotonic_in_current_version(self, make_release):
        """Test that a higher current version never gains an update."""
        catalog = [make_release(v) for v in ("1.0.0", "1.4.0", "2.1.0")]
        previous = True
        for current in ("0.1.0", "1.0.0", "1.4.0", "2.0.0", "2.1.0", "3.0.0"):
            available = decide_update(
                current_version=current, candidates=catalog, allow_prerelease=False
            ).update_available
            assert not (available and not previous)
            previous = available


class TestCandidates:
    """Tests for eligible_candidates and select_best."""

    def test_malformed_entries_are_skipped(self, make_release):
        """Test that one corrupt entry does not block the others."""
        catalog = [make_release("not.a.version"), make_release("1.1.0")]
        eligible = eligible_candidates(catalog, allow_prerelease=False)
        assert [c.release.version for c in eligible] == ["1.1.0"]
        assert eligible[0].position == 1

    def test_tie_prefers_later_release_date(self, make_release, day):
        """Test that equal versions go to the later release date."""
        early = make_release("1.0.0", released=day(1))
        late = make_release("1.0.0+build.2", released=day(5))
        best = select_best(eligible_candidates([early, late], allow_prerelease=False))
        assert best.release is late

    def test_tie_prefers_catalog_order(self, make_release, day):
        """Test that full ties go to the first catalog entry."""
        first = make_release("1.0.0", released=day(1))
        second = make_release("1.0.0", released=day(1))
        best = select_best(
            eligible_candidates([first, second], allow_prerelease=False)
        )
        assert best.release is first

    def test_select_best_empty(self):
        """Test that no candidates yields None."""
        assert select_best([]) is None


class TestHelpers:
    """Tests for is_required_for and latest_release."""

    def test_is_required_for(self, make_release):
        """Test required flag evaluation."""
        assert is_required_for(make_release("2.0.0", required=True), "0.1.0")
        assert not is_required_for(make_release("2.0.0"), "0.1.0")

    @pytest.mark.parametrize(
        "current,expected",
        [("0.9.0", False), ("1.0.0", True), ("1.2.0", True)],
    )
    def test_is_required_for_minimum_is_lower_gate(
        self, make_release, current, expected
    ):
        """Test that the flag applies at or above the minimum, not below it."""
        release = make_release("1.5.0", required=True, minimum_version="1.0.0")
        assert is_required_for(release, current) is expected

    def test_latest_release(self, make_release):
        """Test the greatest eligible release is returned."""
        catalog = [make_release("1.0.0"), make_release("1.1.0-rc.1")]
        assert latest_release(catalog, allow_prerelease=False).version == "1.0.0"
        assert latest_release(catalog, allow_prerelease=True).version == "1.1.0-rc.1"
        assert latest_release([], allow_prerelease=True) is None
