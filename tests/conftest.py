"""
Pytest configuration and shared fixtures for updater tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
import yaml

from updater.application import Application, ApplicationPolicy
from updater.logging import SilentLogger, set_global_logger
from updater.release import Release, new_release
from updater.service import UpdateService
from updater.storage import MemoryStorage


@pytest.fixture(autouse=True)
def _silent_global_logger():
    """Reset the global logger so CLI tests do not leak verbose settings."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def make_release():
    """
    Factory fixture for valid releases.

    Usage:
        release = make_release("1.5.0", required=True, minimum_version="1.0.0")
    """

    def _make(
        version: str,
        *,
        app_id: str = "my-app",
        platform: str = "linux",
        arch: str = "amd64",
        released: datetime | None = None,
        **fields: Any,
    ) -> Release:
        release = new_release(
            app_id,
            version,
            platform,
            arch,
            f"https://cdn.example.com/{app_id}-{version}.tar.gz",
        )
        release.checksum = "a" * 64
        if released is not None:
            release.release_date = released
        for name, value in fields.items():
            setattr(release, name, value)
        return release

    return _make


@pytest.fixture
def sample_application() -> Application:
    """Provide an application supporting linux and windows."""
    return Application(
        id="my-app",
        name="My App",
        platforms=("linux", "windows"),
        description="Sample application",
        policy=ApplicationPolicy(),
        created_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:00+00:00",
    )


@pytest.fixture
def storage(sample_application: Application) -> MemoryStorage:
    """Provide an in-memory storage with the sample application registered."""
    s = MemoryStorage()
    s.save_application(sample_application)
    return s


@pytest.fixture
def service(storage: MemoryStorage) -> UpdateService:
    """Provide an UpdateService over the seeded in-memory storage."""
    return UpdateService(storage)


@pytest.fixture
def day():
    """Return a helper producing UTC datetimes for day N of January 2025."""

    def _day(n: int) -> datetime:
        return datetime(2025, 1, n, tzinfo=UTC)

    return _day
