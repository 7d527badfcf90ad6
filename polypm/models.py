#!/usr/bin/env python3
"""
Data models for polypm
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TypedDict

from .exceptions import PackageParseError
from .pm_types import PackageDict, PackageName, PackageVersion

VERSION_SEPARATOR = "@"


class Cmd(Enum):
    """Command kinds a manager's command table can map"""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    UPDATE = "update"
    UPDATE_ALL = "update-all"
    SEARCH = "search"
    LIST = "list"
    SYNC = "sync"
    ADD_REPO = "add-repo"

    @property
    def mutates(self) -> bool:
        """Whether running this command changes system state."""
        return self not in (Cmd.SEARCH, Cmd.LIST)

    @property
    def requires_targets(self) -> bool:
        """Whether this command must name at least one package."""
        return self in (Cmd.INSTALL, Cmd.UNINSTALL, Cmd.UPDATE)


class Operation(Enum):
    """High-level operations offered by the package manager facade"""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    UPDATE = "update"
    UPDATE_ALL = "update-all"
    SEARCH = "search"
    LIST_INSTALLED = "list-installed"

    @property
    def cmd(self) -> Cmd:
        return _OPERATION_CMDS[self]

    @property
    def requires_targets(self) -> bool:
        return self.cmd.requires_targets


_OPERATION_CMDS = {
    Operation.INSTALL: Cmd.INSTALL,
    Operation.UNINSTALL: Cmd.UNINSTALL,
    Operation.UPDATE: Cmd.UPDATE,
    Operation.UPDATE_ALL: Cmd.UPDATE_ALL,
    Operation.SEARCH: Cmd.SEARCH,
    Operation.LIST_INSTALLED: Cmd.LIST,
}


class PkgFormat(Enum):
    """On-disk package formats a manager can consume"""

    BOTTLE = "tar.gz"
    EXE = "exe"
    MSI = "msi"
    RPM = "rpm"
    DEB = "deb"
    FLATPAK = "flatpak"

    @property
    def file_extension(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """A manager-agnostic package: a name and an optional version"""

    name: PackageName
    version: PackageVersion | None = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise PackageParseError("Package name cannot be empty", text=str(self.name))
        if self.version is not None and not self.version.strip():
            raise PackageParseError(
                f"Empty version for package '{self.name}'", text=f"{self.name}@"
            )

    @classmethod
    def parse(cls, text: str) -> PackageRecord:
        """
        Parse a package specifier of the form ``name`` or ``name@version``.

        Raises:
            PackageParseError: If the name or version is empty, or the
                specifier holds more than one version separator.
        """
        spec = text.strip()
        if not spec:
            raise PackageParseError("Package specifier cannot be empty", text=text)
        if spec.count(VERSION_SEPARATOR) > 1:
            raise PackageParseError(
                f"Package specifier '{text}' has more than one '{VERSION_SEPARATOR}'",
                text=text,
            )

        name, sep, version = spec.partition(VERSION_SEPARATOR)
        if not sep:
            return cls(PackageName(name))
        if not name:
            raise PackageParseError(f"Missing package name in '{text}'", text=text)
        if not version:
            raise PackageParseError(f"Missing version after '@' in '{text}'", text=text)
        return cls(PackageName(name), PackageVersion(version))

    @classmethod
    def coerce(cls, target: PackageRecord | str) -> PackageRecord:
        """Accept either a record or a specifier string."""
        if isinstance(target, cls):
            return target
        return cls.parse(target)

    def cli_display(self, delimiter: str) -> str:
        """Package name formatted for a manager's command line."""
        if self.version is None:
            return self.name
        return f"{self.name}{delimiter}{self.version}"

    def to_dict(self) -> PackageDict:
        return {"name": self.name, "version": self.version}

    def __str__(self) -> str:
        return self.cli_display(VERSION_SEPARATOR)


@dataclass(frozen=True, slots=True)
class CommandRow:
    """One command table entry: sub-command tokens and default flags"""

    tokens: tuple[str, ...]
    default_flags: tuple[str, ...] = ()
    # Binary to run instead of the manager's primary one
    program: str | None = None


class CommandResult(TypedDict):
    """Type definition for command execution results"""

    success: bool
    stdout: str
    stderr: str
    command: list[str]
    return_code: int


@dataclass(frozen=True, slots=True)
class ExitStatus:
    """Completion status of a manager invocation whose output was discarded"""

    code: int
    command: tuple[str, ...] = field(default=())

    @property
    def success(self) -> bool:
        return self.code == 0

    def __bool__(self) -> bool:
        return self.success
