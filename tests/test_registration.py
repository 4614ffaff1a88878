"""
Tests for updater.registration module.

Tests release registration requests including:
- Normalization of submitted text
- Field-level validation errors (checksum_type, URL scheme, versions)
- Conversion into a validated Release
- Building requests from decoded documents
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from updater.exceptions import ValidationError
from updater.registration import RegisterReleaseRequest


@pytest.fixture
def request_():
    """Provide a valid, un-normalized registration request."""
    return RegisterReleaseRequest(
        application_id=" my-app ",
        version=" 1.5.0 ",
        platform="Linux",
        architecture="AMD64",
        download_url=" https://cdn.example.com/my-app-1.5.0.tar.gz ",
        checksum=" ABCDEF0123 ",
        checksum_type="SHA256",
        file_size=1024,
        release_notes="Bug fixes",
    )


class TestNormalize:
    """Tests for RegisterReleaseRequest.normalize."""

    def test_trims_and_lowercases(self, request_):
        """Test that text is trimmed and tags are lower-cased."""
        req = request_.normalize()
        assert req.application_id == "my-app"
        assert req.version == "1.5.0"
        assert req.platform == "linux"
        assert req.architecture == "amd64"
        assert req.download_url == "https://cdn.example.com/my-app-1.5.0.tar.gz"
        assert req.checksum == "abcdef0123"
        assert req.checksum_type == "sha256"

    def test_normalized_request_validates(self, request_):
        """Test that the sample request is valid once normalized."""
        request_.normalize().validate()


class TestValidate:
    """Tests for RegisterReleaseRequest.validate."""

    def test_sha512_rejected(self, request_):
        """Test that sha512 is not an accepted checksum type."""
        req = replace(request_, checksum_type="sha512").normalize()
        with pytest.raises(ValidationError) as exc_info:
            req.validate()
        assert exc_info.value.field == "checksum_type"
        assert "sha512" in exc_info.value.message

    def test_ftp_scheme_rejected(self, request_):
        """Test that non-http(s) download URLs are rejected."""
        req = replace(request_, download_url="ftp://host/file").normalize()
        with pytest.raises(ValidationError, match="unsupported URL scheme") as exc:
            req.validate()
        assert exc.value.field == "download_url"

    @pytest.mark.parametrize(
        "changes,field",
        [
            ({"application_id": ""}, "application_id"),
            ({"platform": ""}, "platform"),
            ({"platform": "haiku"}, "platform"),
            ({"architecture": ""}, "architecture"),
            ({"architecture": "ppc"}, "architecture"),
            ({"version": ""}, "version"),
            ({"version": "1.2.3.4"}, "version"),
            ({"download_url": ""}, "download_url"),
            ({"checksum": ""}, "checksum"),
            ({"checksum_type": ""}, "checksum_type"),
            ({"file_size": -10}, "file_size"),
            ({"minimum_version": "x"}, "minimum_version"),
        ],
    )
    def test_invalid_fields(self, request_, changes, field):
        """Test that each invalid field is named."""
        req = replace(request_, **changes).normalize()
        with pytest.raises(ValidationError) as exc_info:
            req.validate()
        assert exc_info.value.field == field

    def test_platform_checked_before_version(self, request_):
        """Test the validation order on multiple failures."""
        req = replace(request_, platform="haiku", version="bad").normalize()
        with pytest.raises(ValidationError) as exc_info:
            req.validate()
        assert exc_info.value.field == "platform"


class TestToRelease:
    """Tests for RegisterReleaseRequest.to_release."""

    def test_builds_release(self, request_):
        """Test that all submitted fields reach the release."""
        released = datetime(2025, 2, 1, tzinfo=UTC)
        req = replace(
            request_,
            required=True,
            minimum_version="1.0.0",
            metadata={"channel": "stable"},
            release_date=released,
        ).normalize()
        req.validate()

        release = req.to_release()
        assert release.id == "my-app-1.5.0-linux-amd64"
        assert release.checksum == "abcdef0123"
        assert release.file_size == 1024
        assert release.release_notes == "Bug fixes"
        assert release.required is True
        assert release.minimum_version == "1.0.0"
        assert release.metadata == {"channel": "stable"}
        assert release.release_date == released

    def test_release_date_defaults_to_now(self, request_):
        """Test that a missing release date is filled in."""
        release = request_.normalize().to_release()
        assert release.release_date.year >= 2025


class TestFromDict:
    """Tests for RegisterReleaseRequest.from_dict."""

    def test_from_yaml_style_document(self):
        """Test conversion of loosely typed document values."""
        req = RegisterReleaseRequest.from_dict(
            {
                "application_id": "my-app",
                "version": 2,
                "platform": "windows",
                "architecture": "arm64",
                "download_url": "https://cdn.example.com/a.zip",
                "checksum": "abc",
                "checksum_type": "md5",
                "file_size": "2048",
                "release_date": "2025-03-01T12:00:00Z",
                "metadata": {"build": 42},
            }
        )
        assert req.version == "2"
        assert req.file_size == 2048
        assert req.metadata == {"build": "42"}
        assert req.release_date == datetime(2025, 3, 1, 12, tzinfo=UTC)
        assert req.required is False
        req.normalize().validate()

    def test_non_numeric_file_size(self):
        """Test that file_size "big" is a validation error, not a crash."""
        with pytest.raises(ValidationError) as exc_info:
            RegisterReleaseRequest.from_dict({"file_size": "big"})
        assert exc_info.value.field == "file_size"

    def test_bad_release_date(self):
        """Test that an unparseable release_date names its field."""
        with pytest.raises(ValidationError) as exc_info:
            RegisterReleaseRequest.from_dict({"release_date": "yesterday"})
        assert exc_info.value.field == "release_date"

    @pytest.mark.parametrize(
        "value,expected",
        [(True, True), (False, False), ("false", False), ("TRUE", True), ("no", False)],
    )
    def test_required_flag(self, value, expected):
        """Test that string flags are parsed, not truth-tested."""
        req = RegisterReleaseRequest.from_dict({"required": value})
        assert req.required is expected

    def test_invalid_required_flag(self):
        """Test that an unrecognised required value is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            RegisterReleaseRequest.from_dict({"required": "maybe"})
        assert exc_info.value.field == "required"
