"""
Tests for updater.filters module.

Tests release filters including:
- Validation order and named failures
- Normalization defaults and idempotence
- Matching, sorting and pagination
"""

from __future__ import annotations

import pytest

from updater.exceptions import ValidationError
from updater.filters import (
    DEFAULT_LIMIT,
    ReleaseFilter,
    apply_filter,
    sort_releases,
)


class TestValidate:
    """Tests for ReleaseFilter.validate."""

    def test_negative_limit(self):
        """Test that limit=-1 is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            ReleaseFilter("my-app", limit=-1).validate()
        assert exc_info.value.field == "limit"

    @pytest.mark.parametrize(
        "kwargs,field",
        [
            ({"application_id": "  "}, "application_id"),
            ({"offset": -5}, "offset"),
            ({"sort_order": "up"}, "sort_order"),
            ({"sort_by": "size"}, "sort_by"),
            ({"platforms": ("linux", "plan9")}, "platforms"),
            ({"platform": "plan9"}, "platform"),
            ({"architecture": "sparc"}, "architecture"),
            ({"version": "1.x"}, "version"),
        ],
    )
    def test_invalid_fields(self, kwargs, field):
        """Test each invalid field is named in the error."""
        kwargs.setdefault("application_id", "my-app")
        with pytest.raises(ValidationError) as exc_info:
            ReleaseFilter(**kwargs).validate()
        assert exc_info.value.field == field

    def test_limit_checked_before_sort_order(self):
        """Test the validation order on multiple failures."""
        with pytest.raises(ValidationError) as exc_info:
            ReleaseFilter("my-app", limit=-1, sort_order="up").validate()
        assert exc_info.value.field == "limit"

    def test_valid_filter(self):
        """Test a fully specified valid filter."""
        ReleaseFilter(
            "my-app",
            platform="Linux",
            architecture="AMD64",
            version="1.0.0",
            platforms=("windows",),
            limit=10,
            offset=20,
            sort_by="version",
            sort_order="asc",
        ).validate()


class TestNormalize:
    """Tests for ReleaseFilter.normalize."""

    def test_defaults(self):
        """Test that a filter without limit normalizes to 50."""
        flt = ReleaseFilter(" my-app ", platform="Linux").normalize()
        assert flt.limit == DEFAULT_LIMIT == 50
        assert flt.sort_by == "release_date"
        assert flt.sort_order == "desc"
        assert flt.application_id == "my-app"
        assert flt.platform == "linux"

    def test_idempotent(self):
        """Test that normalize(normalize(f)) == normalize(f)."""
        flt = ReleaseFilter("my-app", platforms=("Windows",), limit=5).normalize()
        assert flt.normalize() == flt

    def test_custom_default_limit(self):
        """Test that explicit limits are kept and defaults are configurable."""
        assert ReleaseFilter("a").normalize(default_limit=10).limit == 10
        assert ReleaseFilter("a", limit=3).normalize(default_limit=10).limit == 3

    def test_page(self):
        """Test the 1-based page number."""
        assert ReleaseFilter("a", limit=10, offset=0).page == 1
        assert ReleaseFilter("a", limit=10, offset=25).page == 3
        assert ReleaseFilter("a").page == 1

    def test_from_dict(self):
        """Test building a filter from query strings."""
        flt = ReleaseFilter.from_dict(
            {"application_id": "my-app", "limit": "5", "required": "false"}
        )
        assert flt.limit == 5
        assert flt.required is False

    @pytest.mark.parametrize("field", ["limit", "offset"])
    def test_from_dict_non_numeric(self, field):
        """Test that non-numeric paging values name their field."""
        with pytest.raises(ValidationError) as exc_info:
            ReleaseFilter.from_dict({"application_id": "my-app", field: "ten"})
        assert exc_info.value.field == field


class TestMatching:
    """Tests for filter matching and apply_filter."""

    @pytest.fixture
    def releases(self, make_release, day):
        return [
            make_release("1.0.0", released=day(1)),
            make_release("1.1.0", released=day(2), required=True),
            make_release("1.1.0", platform="windows", released=day(3)),
            make_release("1.2.0", arch="arm64", released=day(4)),
            make_release("9.0.0", app_id="other-app", released=day(5)),
        ]

    def test_application_scope(self, releases):
        """Test that only the requested application is returned."""
        page, total = apply_filter(releases, ReleaseFilter("my-app"))
        assert total == 4
        assert all(r.application_id == "my-app" for r in page)

    def test_field_filters(self, releases):
        """Test platform, architecture, version and required filters."""
        flt = ReleaseFilter("my-app", platform="linux", architecture="amd64")
        assert [r.version for r in apply_filter(releases, flt)[0]] == [
            "1.0.0",
            "1.1.0",
        ]
        flt = ReleaseFilter("my-app", version="1.1.0")
        assert apply_filter(releases, flt)[1] == 2
        flt = ReleaseFilter("my-app", required=True)
        assert [r.version for r in apply_filter(releases, flt)[0]] == ["1.1.0"]
        flt = ReleaseFilter("my-app", required=False)
        assert apply_filter(releases, flt)[1] == 3

    def test_platforms_list(self, releases):
        """Test that a release matches any platform in the list."""
        flt = ReleaseFilter("my-app", platforms=("windows", "darwin"))
        page, total = apply_filter(releases, flt)
        assert total == 1
        assert page[0].platform == "windows"

    def test_default_sort_is_newest_first(self, releases):
        """Test release_date descending after normalization."""
        page, _ = apply_filter(releases, ReleaseFilter("my-app").normalize())
        assert [r.release_date.day for r in page] == [4, 3, 2, 1]

    def test_pagination(self, releases):
        """Test offset and limit slicing with the pre-pagination total."""
        flt = ReleaseFilter(
            "my-app", limit=2, offset=1, sort_by="release_date", sort_order="asc"
        )
        page, total = apply_filter(releases, flt)
        assert total == 4
        assert [r.release_date.day for r in page] == [2, 3]

    def test_offset_past_end(self, releases):
        """Test that an offset past the end yields an empty page."""
        page, total = apply_filter(releases, ReleaseFilter("my-app", offset=10))
        assert page == []
        assert total == 4


class TestSortReleases:
    """Tests for sort_releases."""

    def test_version_sort_uses_version_order(self, make_release):
        """Test that version sorting is numeric, not textual."""
        releases = [make_release(v) for v in ("1.10.0", "1.9.0", "1.0.0-rc.1")]
        ordered = sort_releases(releases, "version", "asc")
        assert [r.version for r in ordered] == ["1.0.0-rc.1", "1.9.0", "1.10.0"]

    def test_semver_ordering(self, make_release):
        """Test prerelease ordering mode is honoured."""
        releases = [make_release(v) for v in ("1.0.0-rc.2", "1.0.0-rc.10")]
        lexical = sort_releases(releases, "version", "desc")
        semver = sort_releases(releases, "version", "desc", ordering="semver")
        assert lexical[0].version == "1.0.0-rc.2"
        assert semver[0].version == "1.0.0-rc.10"

    def test_stable_for_equal_keys(self, make_release, day):
        """Test that equal keys keep their input order."""
        a = make_release("1.0.0", platform="linux", released=day(1))
        b = make_release("2.0.0", platform="linux", released=day(2))
        assert sort_releases([a, b], "platform", "asc") == [a, b]
