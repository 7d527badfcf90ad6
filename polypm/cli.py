#!/usr/bin/env python3
"""
Command-line interface for polypm.
Detects an available package manager (or uses the one requested) and forwards
install/uninstall/update/search/list requests to it.
"""

from __future__ import annotations

import argparse
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from . import __version__
from .config import PolyPMConfig, load_config
from .exceptions import (
    ConfigError,
    InvalidArgumentsError,
    LaunchFailedError,
    ManagerNotAvailableError,
    PackageParseError,
    PolyPMError,
    RepositoryError,
    UnsupportedOperationError,
)
from .manager import VerifiedPackageManager
from .managers import Manager
from .models import ExitStatus, PackageRecord
from .output import RichOutput
from .pm_types import ManagerInfoDict
from .verify import default_manager, verify


class ExitCode(IntEnum):
    """Process exit codes for failures that are not a manager's own exit status."""

    SUCCESS = 0
    FAILURE = 1
    INVALID_ARGUMENTS = 64
    PARSE_ERROR = 65
    CONFIG_ERROR = 66
    NO_MANAGER = 69
    LAUNCH_FAILED = 71
    REPOSITORY_ERROR = 74
    UNSUPPORTED_OPERATION = 78
    INTERRUPTED = 130


_ERROR_EXIT_CODES: list[tuple[type[PolyPMError], ExitCode]] = [
    (PackageParseError, ExitCode.PARSE_ERROR),
    (InvalidArgumentsError, ExitCode.INVALID_ARGUMENTS),
    (UnsupportedOperationError, ExitCode.UNSUPPORTED_OPERATION),
    (ManagerNotAvailableError, ExitCode.NO_MANAGER),
    (LaunchFailedError, ExitCode.LAUNCH_FAILED),
    (ConfigError, ExitCode.CONFIG_ERROR),
    (RepositoryError, ExitCode.REPOSITORY_ERROR),
]


def exit_code_for(error: PolyPMError) -> ExitCode:
    for error_type, code in _ERROR_EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return ExitCode.FAILURE


def _manager_arg(value: str) -> Manager:
    try:
        return Manager.from_name(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


class CLI:
    """Command-line interface for polypm."""

    def __init__(self, output: Optional[RichOutput] = None) -> None:
        self.parser = self._create_parser()
        self.output = output

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="polypm",
            description="A generic package manager for interfacing with multiple "
            "distro and platform specific package managers.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s managers                 # Show supported managers and availability
  %(prog)s install wget jq@1.7      # Install packages (name[@version])
  %(prog)s -m apt search ripgrep    # Search with a specific manager
  %(prog)s --json list              # List installed packages as JSON
            """,
        )

        parser.add_argument("--version", action="version", version=f"polypm {__version__}")
        parser.add_argument(
            "--manager",
            "-m",
            type=_manager_arg,
            help=f"Package manager to use ({', '.join(m.value for m in Manager)}); "
            "auto-detected when omitted",
        )
        parser.add_argument(
            "--json", action="store_true", default=None, help="Print results as JSON"
        )
        parser.add_argument("--config", type=Path, help="Custom config file path")
        parser.add_argument(
            "--sudo",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Prefix privileged commands with sudo when not root",
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="count",
            default=0,
            help="Increase verbosity (use -vv for trace)",
        )
        parser.add_argument(
            "--quiet", "-q", action="store_true", help="Only log errors"
        )
        parser.add_argument("--log-file", type=Path, help="Also write logs to this file")

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        subparsers.add_parser(
            "managers", help="List supported package managers and display their availability"
        )

        search_parser = subparsers.add_parser(
            "search", help="Search for a given sub-string and list matching packages"
        )
        search_parser.add_argument("query", nargs="?", default="", help="Search query")

        subparsers.add_parser("list", help="List all packages that are installed")

        for name, verb in (("install", "Install"), ("uninstall", "Uninstall")):
            sub = subparsers.add_parser(
                name,
                help=f"{verb} the given package(s); use <name>@<version> to pin a version",
            )
            sub.add_argument("packages", nargs="+", help="Package specifiers")
            self._add_extra_flags(sub)

        update_parser = subparsers.add_parser(
            "update", help="Update/upgrade the given package(s) or (--)all of them"
        )
        update_parser.add_argument("packages", nargs="*", help="Package specifiers")
        update_parser.add_argument(
            "--all", "-a", action="store_true", help="Update all installed packages"
        )
        self._add_extra_flags(update_parser)

        subparsers.add_parser("sync", help="Update the cached package repository data")

        repo_parser = subparsers.add_parser(
            "repo", help="Add the provided third-party repo location to the package manager"
        )
        repo_parser.add_argument("repo", help="Repository in the manager's own format")

        return parser

    @staticmethod
    def _add_extra_flags(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--extra",
            action="append",
            default=[],
            metavar="FLAG",
            help="Extra flag passed to the manager after its default flags "
            "(repeatable, e.g. --extra=--no-install-recommends)",
        )

    def _configure_logging(
        self, verbose: int, quiet: bool, log_file: Optional[Path], level: str
    ) -> None:
        """Configure logging based on verbosity."""
        logger.remove()

        if quiet:
            level = "ERROR"
        elif verbose == 1:
            level = "DEBUG"
        elif verbose >= 2:
            level = "TRACE"

        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>",
        )

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                log_file,
                level="DEBUG",
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{name}:{function}:{line} | {message}",
                rotation="10 MB",
                retention="1 week",
            )

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse arguments and run the requested command."""
        args = self.parser.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return ExitCode.INVALID_ARGUMENTS

        try:
            config = load_config(args.config)
        except ConfigError as e:
            self._configure_logging(args.verbose, args.quiet, args.log_file, "INFO")
            self._output(False).print_error(str(e))
            return ExitCode.CONFIG_ERROR

        self._configure_logging(args.verbose, args.quiet, args.log_file, config.log_level)
        json_mode = config.json_output if args.json is None else args.json
        output = self._output(json_mode)

        try:
            return self._handle_command(args, config, output)
        except LaunchFailedError as e:
            logger.error(f"Command failed: {e}")
            output.print_error(str(e), e.command)
            return exit_code_for(e)
        except PolyPMError as e:
            logger.error(f"Command failed: {e}")
            output.print_error(str(e))
            return exit_code_for(e)

    def _output(self, json_mode: bool) -> RichOutput:
        if self.output is None:
            self.output = RichOutput(json_mode=json_mode)
        else:
            self.output.json_mode = json_mode
        return self.output

    def _select_manager(
        self, args: argparse.Namespace, config: PolyPMConfig
    ) -> VerifiedPackageManager:
        preferred = args.manager or config.manager
        verified = default_manager(preferred, config.priority, config.probe_timeout)
        if verified is None:
            if preferred is not None:
                raise ManagerNotAvailableError(
                    f"{preferred} ({preferred.binary}) is not available on this system",
                    manager=preferred.value,
                )
            raise ManagerNotAvailableError("No supported package manager found")

        use_sudo = config.use_sudo if args.sudo is None else args.sudo
        logger.info(f"Using {verified.manager} ({verified.binary_path})")
        return VerifiedPackageManager(verified, use_sudo=use_sudo)

    def _handle_command(
        self, args: argparse.Namespace, config: PolyPMConfig, output: RichOutput
    ) -> int:
        if args.command == "managers":
            output.print_managers(self._manager_listing(config.probe_timeout))
            return ExitCode.SUCCESS

        pm = self._select_manager(args, config)

        match args.command:
            case "search":
                output.print_packages(pm.search(args.query), title="Search results")
                return ExitCode.SUCCESS
            case "list":
                output.print_packages(pm.list_installed(), title="Installed packages")
                return ExitCode.SUCCESS
            case "install":
                packages = self._parse_packages(args.packages)
                return self._report(pm.install(*packages, extra_flags=args.extra), output)
            case "uninstall":
                packages = self._parse_packages(args.packages)
                return self._report(pm.uninstall(*packages, extra_flags=args.extra), output)
            case "update":
                if args.all == bool(args.packages):
                    raise InvalidArgumentsError("Specify either package(s) or --all")
                if args.all:
                    return self._report(pm.update_all(extra_flags=args.extra), output)
                packages = self._parse_packages(args.packages)
                return self._report(pm.update(*packages, extra_flags=args.extra), output)
            case "sync":
                return self._report(pm.sync(), output)
            case "repo":
                return self._report(pm.add_repo(args.repo), output)
            case _:
                raise InvalidArgumentsError(f"Unknown command: {args.command}")

    @staticmethod
    def _parse_packages(specs: Sequence[str]) -> list[PackageRecord]:
        return [PackageRecord.parse(spec) for spec in specs]

    @staticmethod
    def _report(status: ExitStatus, output: RichOutput) -> int:
        """
        Mirror the manager's exit status, echoing the command on failure.

        A manager killed by signal N reports -N; that becomes 128 + N, as a
        shell would report it.
        """
        if not status.success:
            logger.error(f"Manager exited with code {status.code}")
            output.print_error(f"package manager exited with code {status.code}", status.command)
        if status.code < 0:
            return 128 - status.code
        return status.code

    @staticmethod
    def _manager_listing(probe_timeout: float) -> list[ManagerInfoDict]:
        return [
            {
                "name": manager.value,
                "display_name": manager.display_name,
                "available": verify(manager, probe_timeout) is not None,
                "file_extensions": [fmt.file_extension for fmt in manager.supported_formats],
            }
            for manager in Manager
        ]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console script entry point."""
    try:
        return CLI().run(argv)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return ExitCode.INTERRUPTED
