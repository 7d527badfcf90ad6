#!/usr/bin/env python3
"""
polypm - one interface over platform package managers

Drives Homebrew, Chocolatey, apt, dnf, yum, zypper and flatpak through a
single operation vocabulary, as a library or from the command line.

Features:
- Install, uninstall, update and update-all with per-manager command tables
- Search and list installed packages as manager-agnostic records
- Availability verification before execution
- Blocking, status-only and background execution modes

License:
    GPL-3.0-or-later

Version:
    1.0.0
"""

from typing import Any, Dict

__version__ = "1.0.0"
__license__ = "GPL-3.0-or-later"

from .commands import COMMAND_TABLE, lookup, supported_commands
from .consolidate import consolidate, consolidate_args
from .exceptions import (
    ConfigError,
    InvalidArgumentsError,
    LaunchFailedError,
    ManagerNotAvailableError,
    ManagerUnavailableAbort,
    PackageParseError,
    PolyPMError,
    RepositoryError,
    UnsupportedOperationError,
)
from .executor import Executor, SubprocessExecutor
from .manager import PackageManager, VerifiedPackageManager
from .managers import Manager
from .models import Cmd, CommandResult, CommandRow, ExitStatus, Operation, PackageRecord, PkgFormat
from .verify import VerifiedManager, default_manager, detect_managers, is_installed, verify

__all__ = [
    # Facade
    "PackageManager",
    "VerifiedPackageManager",

    # Managers and verification
    "Manager",
    "VerifiedManager",
    "verify",
    "is_installed",
    "detect_managers",
    "default_manager",

    # Command table and consolidation
    "COMMAND_TABLE",
    "lookup",
    "supported_commands",
    "consolidate",
    "consolidate_args",

    # Execution
    "Executor",
    "SubprocessExecutor",

    # Data models
    "PackageRecord",
    "Operation",
    "Cmd",
    "CommandRow",
    "CommandResult",
    "ExitStatus",
    "PkgFormat",

    # Exceptions
    "PolyPMError",
    "UnsupportedOperationError",
    "InvalidArgumentsError",
    "ManagerNotAvailableError",
    "LaunchFailedError",
    "PackageParseError",
    "ConfigError",
    "RepositoryError",
    "ManagerUnavailableAbort",

    # Discovery function
    "get_tool_info",
]


def get_tool_info() -> Dict[str, Any]:
    """
    Return metadata about this tool for discovery.

    Returns:
        Dict containing tool metadata including name, version, description,
        supported managers and the operations they expose.
    """
    return {
        "name": "polypm",
        "version": __version__,
        "description": "Unified interface over platform package managers",
        "license": __license__,
        "managers": {
            manager.value: sorted(cmd.value for cmd in supported_commands(manager))
            for manager in Manager
        },
        "functions": [
            "install",
            "uninstall",
            "update",
            "update_all",
            "sync",
            "add_repo",
            "search",
            "list_installed",
            "execute_pkg_command",
        ],
        "requirements": ["loguru", "pydantic", "rich"],
        "classes": {
            "PackageManager": "Trusting facade over a manager",
            "VerifiedPackageManager": "Facade over a manager that passed verification",
        },
    }
