"""
Tests for updater.release and updater.platforms modules.

Tests the release entity including:
- Construction defaults and id derivation
- Field-by-field validation with named failures
- Compatibility, newer-than and minimum-version predicates
- Checksum generation and verification
- Dict round trip used by the JSON catalog
"""

from __future__ import annotations

import hashlib

import pytest

from updater.exceptions import ValidationError, VersionFormatError
from updater.platforms import (
    Architecture,
    ChecksumType,
    checksum_algorithm,
    is_valid_architecture,
    is_valid_platform,
)
from updater.release import Release, new_release, validate_download_url


class TestPlatforms:
    """Tests for the closed platform, architecture and checksum sets."""

    def test_platform_membership_is_case_insensitive(self):
        """Test that platform checks normalize case and whitespace."""
        assert is_valid_platform("Linux")
        assert is_valid_platform(" darwin ")
        assert not is_valid_platform("solaris")
        assert not is_valid_platform("")

    def test_architecture_values(self):
        """Test supported architectures including the 386 tag."""
        assert Architecture.I386 == "386"
        assert is_valid_architecture("ARM64")
        assert not is_valid_architecture("mips")

    def test_checksum_algorithm_falls_back_to_sha256(self):
        """Test that unknown checksum tags resolve to sha256."""
        assert checksum_algorithm("MD5") is ChecksumType.MD5
        assert checksum_algorithm("crc32") is ChecksumType.SHA256


class TestNewRelease:
    """Tests for new_release defaults."""

    def test_defaults(self):
        """Test id derivation, normalization and defaults."""
        release = new_release(
            "my-app", "1.5.0", "Linux", "AMD64", "https://cdn.example.com/a"
        )
        assert release.id == "my-app-1.5.0-linux-amd64"
        assert release.platform == "linux"
        assert release.architecture == "amd64"
        assert release.checksum_type == "sha256"
        assert release.required is False
        assert release.file_size == 0
        assert release.metadata == {}
        assert release.created_at == release.updated_at == release.release_date
        assert release.release_date.tzinfo is not None

    def test_platform_info(self, make_release):
        """Test the platform-architecture label."""
        assert make_release("1.0.0", arch="arm64").platform_info() == "linux-arm64"


class TestValidate:
    """Tests for Release.validate."""

    def test_valid_release(self, make_release):
        """Test that a complete release validates."""
        make_release("1.0.0").validate()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("id", ""),
            ("application_id", ""),
            ("version", ""),
            ("version", "1.x"),
            ("platform", "beos"),
            ("architecture", "sparc"),
            ("download_url", ""),
            ("download_url", "ftp://files.example.com/a.tar.gz"),
            ("download_url", "https://"),
            ("checksum", ""),
            ("checksum_type", "crc32"),
            ("file_size", -1),
            ("minimum_version", "one"),
        ],
    )
    def test_invalid_field_is_named(self, make_release, field, value):
        """Test that each invalid field raises ValidationError naming it."""
        release = make_release("1.0.0")
        setattr(release, field, value)
        with pytest.raises(ValidationError) as exc_info:
            release.validate()
        assert exc_info.value.field == field

    def test_first_failure_wins(self, make_release):
        """Test that validation stops at the first failing field."""
        release = make_release("1.0.0", checksum="", platform="beos")
        with pytest.raises(ValidationError) as exc_info:
            release.validate()
        assert exc_info.value.field == "platform"

    def test_url_scheme_message(self):
        """Test the message for a non-http(s) URL."""
        with pytest.raises(ValidationError, match="unsupported URL scheme"):
            validate_download_url("file:///etc/passwd")


class TestPredicates:
    """Tests for release predicates."""

    def test_is_compatible_with(self, make_release):
        """Test platform and architecture matching ignores case."""
        release = make_release("1.0.0")
        assert release.is_compatible_with("Linux", "AMD64")
        assert not release.is_compatible_with("windows", "amd64")
        assert not release.is_compatible_with("linux", "arm64")

    def test_is_newer_than(self, make_release):
        """Test version comparison between releases."""
        assert make_release("1.10.0").is_newer_than(make_release("1.9.0"))
        assert not make_release("1.0.0-rc.1").is_newer_than(make_release("1.0.0"))

    def test_is_newer_than_malformed(self, make_release):
        """Test that a malformed version raises instead of comparing."""
        with pytest.raises(VersionFormatError):
            make_release("bad").is_newer_than(make_release("1.0.0"))

    def test_meets_minimum_version(self, make_release):
        """Test the minimum-version gate."""
        assert make_release("2.0.0").meets_minimum_version("0.1.0")
        gated = make_release("2.0.0", minimum_version="1.0.0")
        assert gated.meets_minimum_version("1.0.0")
        assert gated.meets_minimum_version("1.5.0")
        assert not gated.meets_minimum_version("0.9.9")

    def test_is_prerelease(self, make_release):
        """Test prerelease detection from the version label."""
        assert make_release("2.0.0-beta.1").is_prerelease
        assert not make_release("2.0.0+build.1").is_prerelease


class TestChecksum:
    """Tests for checksum generation and verification."""

    def test_generate_sha256(self, make_release):
        """Test the default sha256 digest."""
        release = make_release("1.0.0")
        assert release.generate_checksum(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_verify_ignores_case(self, make_release):
        """Test verification is case-insensitive on the stored digest."""
        digest = hashlib.md5(b"payload").hexdigest().upper()
        release = make_release("1.0.0", checksum=digest, checksum_type="md5")
        assert release.verify_checksum(b"payload")
        assert not release.verify_checksum(b"other")

    def test_unknown_type_uses_sha256(self, make_release):
        """Test that an unknown algorithm tag hashes with sha256."""
        release = make_release("1.0.0", checksum_type="whirlpool")
        assert release.generate_checksum(b"x") == hashlib.sha256(b"x").hexdigest()


class TestEdits:
    """Tests for metadata and notes edits."""

    def test_set_metadata_touches_updated_at(self, make_release, day):
        """Test that edits refresh updated_at."""
        release = make_release("1.0.0", updated_at=day(1))
        release.set_metadata("channel", "stable")
        assert release.get_metadata("channel") == "stable"
        assert release.get_metadata("missing") is None
        assert release.updated_at > day(1)

    def test_set_release_notes(self, make_release, day):
        """Test release notes replacement."""
        release = make_release("1.0.0", updated_at=day(1))
        release.set_release_notes("Fixed crash")
        assert release.release_notes == "Fixed crash"
        assert release.updated_at > day(1)


class TestSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip(self, make_release, day):
        """Test that a release survives the catalog representation."""
        release = make_release(
            "1.2.0",
            released=day(3),
            required=True,
            minimum_version="1.0.0",
            metadata={"channel": "stable"},
        )
        data = release.to_dict()
        assert data["release_date"] == "2025-01-03T00:00:00+00:00"

        restored = Release.from_dict(data)
        assert restored == release

    def test_missing_id_is_derived(self):
        """Test id derivation and defaults for sparse input."""
        restored = Release.from_dict(
            {
                "application_id": "my-app",
                "version": "1.0.0",
                "platform": "linux",
                "architecture": "amd64",
                "release_date": "2025-01-02T00:00:00Z",
            }
        )
        assert restored.id == "my-app-1.0.0-linux-amd64"
        assert restored.checksum_type == "sha256"
        assert restored.release_date.year == 2025
        assert restored.release_date.tzinfo is not None
