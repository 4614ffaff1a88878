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

"""Command-line interface for updater.

This module provides the ``updater`` console script, which runs the
determination service against a JSON catalog file. It is meant for
publishing pipelines and for inspecting a catalog by hand.

Commands:

    check: Decide whether a client version should update
    latest: Show the latest release for a platform/architecture
    list: List releases of an application
    register: Register releases (and optionally the application) from YAML
    delete: Delete a release
    stats: Show catalog statistics for an application
    verify: Check a local file against a release checksum

Example:
    Register a release:
        ```bash
        $ updater --catalog catalog.json register releases/my-app-1.5.0.yaml
        ```

    Check for an update:
        ```bash
        $ updater --catalog catalog.json check my-app 1.2.0 linux amd64
        ```

    List releases, newest first:
        ```bash
        $ updater --catalog catalog.json list my-app --platform linux --limit 10
        ```

    Enable verbose output:
        ```bash
        $ updater --catalog catalog.json check my-app 1.2.0 linux amd64 --verbose
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, validation, storage or download failure)

Note:
    Results are printed to stdout as JSON using the same field names as the
    service results. Errors are printed to stderr as a JSON error object.
    Verbose mode also shows full tracebacks on errors for debugging.

"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any

import yaml

from updater import __version__
from updater.application import Application
from updater.config import ServiceSettings, load_config
from updater.exceptions import (
    ConfigError,
    ConflictError,
    NotFoundError,
    UpdaterError,
    ValidationError,
)
from updater.filters import SORT_FIELDS, SORT_ORDERS, ReleaseFilter
from updater.io import verify_file
from updater.logging import get_logger, set_global_logger
from updater.registration import RegisterReleaseRequest
from updater.release import Release
from updater.service import UpdateService
from updater.storage import create_storage

DEFAULT_CATALOG = "catalog.json"


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=False))


def _print_error(err: UpdaterError | OSError, args: argparse.Namespace) -> int:
    if isinstance(err, UpdaterError):
        payload = err.to_dict()
    else:
        payload = {"kind": "io_error", "message": str(err)}
    print(json.dumps({"error": payload}, indent=2), file=sys.stderr)
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _build_service(args: argparse.Namespace) -> UpdateService:
    """Configure logging, load configuration and open the catalog."""
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    overrides: dict[str, Any] = {}
    if args.catalog:
        overrides["storage"] = {"type": "json", "path": str(args.catalog)}
    elif not args.config:
        overrides["storage"] = {"type": "json", "path": DEFAULT_CATALOG}

    cfg = load_config(args.config, overrides=overrides, logger=logger)
    storage = create_storage(cfg, logger=logger)
    return UpdateService(
        storage, settings=ServiceSettings.from_config(cfg), logger=logger
    )


def _find_release_by_id(service: UpdateService, release_id: str) -> Release:
    list_applications = getattr(service.storage, "list_applications", None)
    if list_applications is None:
        raise ConfigError("The configured storage cannot look up releases by ID")
    for app in list_applications():
        flt = ReleaseFilter(application_id=app.id)
        releases, _ = service.storage.find_releases(flt)
        for release in releases:
            if release.id == release_id:
                return release
    raise NotFoundError(f"release {release_id!r} not found")


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'updater check' command.

    Args:
        args: Parsed command-line arguments containing the application ID,
            current version, platform, architecture and flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    try:
        service = _build_service(args)
        decision = service.check_for_update(
            args.app_id,
            args.current_version,
            args.platform,
            args.arch,
            allow_prerelease=True if args.prerelease else None,
            include_metadata=args.metadata,
        )
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json(decision.to_dict())
    return 0


def cmd_latest(args: argparse.Namespace) -> int:
    """Handler for 'updater latest' command."""
    try:
        service = _build_service(args)
        latest = service.get_latest_version(
            args.app_id,
            args.platform,
            args.arch,
            allow_prerelease=True if args.prerelease else None,
            include_metadata=args.metadata,
        )
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    if latest is None:
        _print_json({"latest_version": None})
    else:
        _print_json(latest.to_dict())
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handler for 'updater list' command."""
    required: bool | None = None
    if args.required:
        required = True
    elif args.optional:
        required = False

    flt = ReleaseFilter(
        application_id=args.app_id,
        platform=args.platform or "",
        architecture=args.arch or "",
        version=args.version_filter or "",
        required=required,
        limit=args.limit,
        offset=args.offset,
        sort_by=args.sort_by or "",
        sort_order=args.sort_order or "",
    )
    try:
        service = _build_service(args)
        page = service.list_releases(flt)
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json(page.to_dict())
    return 0


def _load_registration_file(path: Path) -> tuple[dict | None, list[dict]]:
    """Read a registration YAML file.

    The document is either a single release mapping, or a mapping with an
    optional ``application`` section and a ``releases`` list.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {path}: {err}") from err

    if not isinstance(data, dict):
        raise ConfigError(f"Registration file {path} must contain a YAML mapping")

    application = data.get("application")
    if application is not None and not isinstance(application, dict):
        raise ConfigError(f"'application' in {path} must be a mapping")

    if "releases" in data:
        releases = data["releases"] or []
        if not isinstance(releases, list) or not all(
            isinstance(r, dict) for r in releases
        ):
            raise ConfigError(f"'releases' in {path} must be a list of mappings")
    elif application is None:
        releases = [data]
    else:
        releases = []
    return application, releases


def _check_registrable(
    service: UpdateService,
    releases: list[Release],
    application: Application | None,
) -> None:
    """Reject the batch if any release would fail when saved.

    Raises:
        ConflictError: If a release is already in the catalog or appears
            twice in the batch.
        NotFoundError: If a release names an unknown application.
        ValidationError: If the application does not support a platform.

    """
    seen: set[str] = set()
    for release in releases:
        if release.id in seen:
            raise ConflictError(
                f"release {release.id!r} appears more than once",
                details={"id": release.id},
            )
        seen.add(release.id)

        try:
            service.storage.get_release(
                release.application_id,
                release.version,
                release.platform,
                release.architecture,
            )
        except NotFoundError:
            exists = False
        else:
            exists = True
        if exists:
            raise ConflictError(
                f"release {release.id!r} already exists", details={"id": release.id}
            )

        if application is not None and application.id == release.application_id:
            app = application
        else:
            app = service.storage.get_application(release.application_id)
        if not app.supports_platform(release.platform):
            raise ValidationError(
                "platform",
                f"application {app.id} does not support platform "
                f"{release.platform}",
            )


def cmd_register(args: argparse.Namespace) -> int:
    """Handler for 'updater register' command.

    Every entry is validated and checked against the catalog (conflicts,
    application, platform) before anything is saved, so a bad entry leaves
    the catalog untouched. Only an I/O failure part-way through the saves
    can leave a partial batch behind.
    """
    path = Path(args.file)
    try:
        application, documents = _load_registration_file(path)
        service = _build_service(args)

        app: Application | None = None
        if application is not None:
            app = Application.from_dict(application)
            app.validate()

        pending = [RegisterReleaseRequest.from_dict(d) for d in documents]
        releases = [service.validate_registration(r) for r in pending]
        _check_registrable(service, releases, app)

        if app is not None:
            service.storage.save_application(app)
            service.logger.verbose("CATALOG", f"Saved application {app.id}")
        registered = [service.register_release(request) for request in pending]
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json(
        {
            "registered": [
                {
                    "id": r.id,
                    "version": r.version,
                    "created_at": r.created_at.isoformat(),
                }
                for r in registered
            ]
        }
    )
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Handler for 'updater delete' command."""
    try:
        service = _build_service(args)
        release = service.delete_release(
            args.app_id, args.release_version, args.platform, args.arch
        )
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json({"deleted": release.id})
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handler for 'updater stats' command."""
    try:
        service = _build_service(args)
        stats = service.application_stats(args.app_id)
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json(stats.to_dict())
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Handler for 'updater verify' command.

    Returns:
        Exit code (0 when the file matches the release checksum, 1 when it
        does not or on error).

    """
    path = Path(args.file)
    try:
        service = _build_service(args)
        release = _find_release_by_id(service, args.release_id)
        ok = verify_file(release, path)
    except (UpdaterError, OSError) as err:
        return _print_error(err, args)

    _print_json(
        {
            "release_id": release.id,
            "file": str(path),
            "checksum_type": release.checksum_type,
            "verified": ok,
        }
    )
    return 0 if ok else 1


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("platform", help="Client platform (e.g. linux, windows)")
    parser.add_argument("arch", help="Client architecture (e.g. amd64, arm64)")
    parser.add_argument(
        "--prerelease",
        action="store_true",
        help="Allow prerelease versions (default: application policy)",
    )
    parser.add_argument(
        "--metadata",
        action="store_true",
        help="Include release metadata in the output",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the updater CLI."""
    parser = argparse.ArgumentParser(
        prog="updater",
        description="updater - release catalog and update determination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"updater {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help=f"JSON catalog file (default: from config or ./{DEFAULT_CATALOG})",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        help="Decide whether a client version should update",
    )
    parser_check.add_argument("app_id", help="Application ID")
    parser_check.add_argument("current_version", help="Version the client runs")
    _add_target_args(parser_check)
    _add_common_flags(parser_check)
    parser_check.set_defaults(func=cmd_check)

    # 'latest' command
    parser_latest = subparsers.add_parser(
        "latest",
        help="Show the latest release for a platform/architecture",
    )
    parser_latest.add_argument("app_id", help="Application ID")
    _add_target_args(parser_latest)
    _add_common_flags(parser_latest)
    parser_latest.set_defaults(func=cmd_latest)

    # 'list' command
    parser_list = subparsers.add_parser("list", help="List releases of an application")
    parser_list.add_argument("app_id", help="Application ID")
    parser_list.add_argument("--platform", default=None, help="Platform filter")
    parser_list.add_argument("--arch", default=None, help="Architecture filter")
    parser_list.add_argument(
        "--release-version",
        dest="version_filter",
        default=None,
        help="Exact version filter",
    )
    required_group = parser_list.add_mutually_exclusive_group()
    required_group.add_argument(
        "--required", action="store_true", help="Only required releases"
    )
    required_group.add_argument(
        "--optional", action="store_true", help="Only optional releases"
    )
    parser_list.add_argument(
        "--limit", type=int, default=0, help="Page size (default: from config)"
    )
    parser_list.add_argument(
        "--offset", type=int, default=0, help="Number of releases to skip"
    )
    parser_list.add_argument(
        "--sort-by",
        choices=SORT_FIELDS,
        default=None,
        help="Sort field (default: release_date)",
    )
    parser_list.add_argument(
        "--sort-order",
        choices=SORT_ORDERS,
        default=None,
        help="Sort order (default: desc)",
    )
    _add_common_flags(parser_list)
    parser_list.set_defaults(func=cmd_list)

    # 'register' command
    parser_register = subparsers.add_parser(
        "register",
        help="Register releases from a YAML file",
    )
    parser_register.add_argument("file", help="Path to the registration YAML file")
    _add_common_flags(parser_register)
    parser_register.set_defaults(func=cmd_register)

    # 'delete' command
    parser_delete = subparsers.add_parser("delete", help="Delete a release")
    parser_delete.add_argument("app_id", help="Application ID")
    parser_delete.add_argument("release_version", help="Release version")
    parser_delete.add_argument("platform", help="Release platform")
    parser_delete.add_argument("arch", help="Release architecture")
    _add_common_flags(parser_delete)
    parser_delete.set_defaults(func=cmd_delete)

    # 'stats' command
    parser_stats = subparsers.add_parser(
        "stats",
        help="Show catalog statistics for an application",
    )
    parser_stats.add_argument("app_id", help="Application ID")
    _add_common_flags(parser_stats)
    parser_stats.set_defaults(func=cmd_stats)

    # 'verify' command
    parser_verify = subparsers.add_parser(
        "verify",
        help="Check a local file against a release checksum",
    )
    parser_verify.add_argument("release_id", help="Release ID")
    parser_verify.add_argument("file", help="Path to the downloaded file")
    _add_common_flags(parser_verify)
    parser_verify.set_defaults(func=cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the updater CLI.

    This function is registered as the 'updater' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
