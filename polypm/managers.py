#!/usr/bin/env python3
"""
The closed set of package managers polypm knows how to drive.

Each manager is a zero-state enum member. Its identity alone selects the
command table rows and output parsers; adding a manager means adding a member,
its traits, its table rows and its parsers.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .models import Cmd, PackageRecord, PkgFormat

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import CommandRow
    from .pm_types import PackageStream


@dataclass(frozen=True, slots=True)
class ManagerTraits:
    """Static facts about a manager"""

    binary: str
    display_name: str
    pkg_delimiter: str
    formats: tuple[PkgFormat, ...]
    platforms: tuple[str, ...]
    needs_root: bool = False


class Manager(Enum):
    """
    Supported package managers.

    Declaration order is the detection priority used when no manager is
    requested explicitly.
    """

    BREW = "brew"
    CHOCO = "choco"
    APT = "apt"
    DNF = "dnf"
    YUM = "yum"
    ZYPPER = "zypper"
    FLATPAK = "flatpak"

    @classmethod
    def from_name(cls, name: str) -> Manager:
        """Case-insensitive lookup by short name."""
        key = (name or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(
            f"Unknown package manager: {name!r} "
            f"(expected one of {', '.join(m.value for m in cls)})"
        )

    @property
    def traits(self) -> ManagerTraits:
        return _TRAITS[self]

    @property
    def binary(self) -> str:
        return self.traits.binary

    @property
    def display_name(self) -> str:
        return self.traits.display_name

    @property
    def pkg_delimiter(self) -> str:
        return self.traits.pkg_delimiter

    @property
    def supported_formats(self) -> tuple[PkgFormat, ...]:
        return self.traits.formats

    @property
    def needs_root(self) -> bool:
        return self.traits.needs_root

    def supports_platform(self, system: str | None = None) -> bool:
        """Whether this manager can exist on the given (or current) OS."""
        system = (system or platform.system()).lower()
        return system in self.traits.platforms

    def command_rows(self) -> Mapping[Cmd, CommandRow]:
        from .commands import rows_for

        return rows_for(self)

    def parse_list(self, raw: str) -> PackageStream:
        from .parsers import parse_list

        return parse_list(self, raw)

    def parse_search(self, raw: str) -> PackageStream:
        from .parsers import parse_search

        return parse_search(self, raw)

    def format_package(self, pkg: PackageRecord) -> list[str]:
        """Command-line arguments naming ``pkg`` for this manager."""
        if self is Manager.CHOCO and pkg.version is not None:
            return [pkg.name, "--version", pkg.version]
        return [pkg.cli_display(self.pkg_delimiter)]

    def __str__(self) -> str:
        return self.display_name


_LINUX = ("linux",)

_TRAITS: dict[Manager, ManagerTraits] = {
    Manager.BREW: ManagerTraits(
        binary="brew",
        display_name="Homebrew",
        pkg_delimiter="@",
        formats=(PkgFormat.BOTTLE,),
        platforms=("darwin", "linux"),
    ),
    Manager.CHOCO: ManagerTraits(
        binary="choco",
        display_name="Chocolatey",
        pkg_delimiter=" ",
        formats=(PkgFormat.EXE, PkgFormat.MSI),
        platforms=("windows",),
    ),
    Manager.APT: ManagerTraits(
        binary="apt-get",
        display_name="Advanced Package Tool (APT)",
        pkg_delimiter="=",
        formats=(PkgFormat.DEB,),
        platforms=_LINUX,
        needs_root=True,
    ),
    Manager.DNF: ManagerTraits(
        binary="dnf",
        display_name="Dandified YUM (DNF)",
        pkg_delimiter="-",
        formats=(PkgFormat.RPM,),
        platforms=_LINUX,
        needs_root=True,
    ),
    Manager.YUM: ManagerTraits(
        binary="yum",
        display_name="Yellowdog Updater Modified (YUM)",
        pkg_delimiter="-",
        formats=(PkgFormat.RPM,),
        platforms=_LINUX,
        needs_root=True,
    ),
    Manager.ZYPPER: ManagerTraits(
        binary="zypper",
        display_name="Zypper",
        pkg_delimiter="-",
        formats=(PkgFormat.RPM,),
        platforms=_LINUX,
        needs_root=True,
    ),
    Manager.FLATPAK: ManagerTraits(
        binary="flatpak",
        display_name="Flatpak",
        pkg_delimiter="-",
        formats=(PkgFormat.FLATPAK,),
        platforms=_LINUX,
    ),
}
