#!/usr/bin/env python3
"""
Static command table: (manager, command kind) -> sub-command tokens and default flags.

The table is built once at import and exposed read-only. A pair missing from
the table is unsupported; lookups never fall back to a guessed command line.
"""

from __future__ import annotations

from types import MappingProxyType
from collections.abc import Mapping

from loguru import logger

from .exceptions import UnsupportedOperationError
from .managers import Manager
from .models import Cmd, CommandRow


def _row(*tokens: str, flags: tuple[str, ...] = (), program: str | None = None) -> CommandRow:
    return CommandRow(tokens=tuple(tokens), default_flags=flags, program=program)


_BREW = {
    Cmd.INSTALL: _row("install"),
    Cmd.UNINSTALL: _row("uninstall"),
    Cmd.UPDATE: _row("upgrade"),
    Cmd.UPDATE_ALL: _row("upgrade"),
    Cmd.SEARCH: _row("search"),
    Cmd.LIST: _row("list", flags=("--versions",)),
    Cmd.SYNC: _row("update"),
    Cmd.ADD_REPO: _row("tap"),
}

_CHOCO = {
    Cmd.INSTALL: _row("install", flags=("-y",)),
    Cmd.UNINSTALL: _row("uninstall", flags=("-y",)),
    Cmd.UPDATE: _row("upgrade", flags=("-y",)),
    Cmd.UPDATE_ALL: _row("upgrade", "all", flags=("-y",)),
    Cmd.SEARCH: _row("search", flags=("-r",)),
    Cmd.LIST: _row("list", flags=("-r",)),
    Cmd.SYNC: _row("sync"),
    Cmd.ADD_REPO: _row("source", "add"),
}

# apt-get has no search/list sub-commands; reads go through apt
_APT = {
    Cmd.INSTALL: _row("install", flags=("--yes",)),
    Cmd.UNINSTALL: _row("remove", flags=("--yes",)),
    Cmd.UPDATE: _row("install", flags=("--yes", "--only-upgrade")),
    Cmd.UPDATE_ALL: _row("upgrade", flags=("--yes",)),
    Cmd.SEARCH: _row("search", program="apt"),
    Cmd.LIST: _row("list", flags=("--installed",), program="apt"),
    Cmd.SYNC: _row("update"),
}

_DNF = {
    Cmd.INSTALL: _row("install", flags=("-y",)),
    Cmd.UNINSTALL: _row("remove", flags=("-y",)),
    Cmd.UPDATE: _row("upgrade", flags=("-y",)),
    Cmd.UPDATE_ALL: _row("distro-sync", flags=("-y",)),
    Cmd.SEARCH: _row("search", flags=("-q",)),
    Cmd.LIST: _row("list", flags=("--installed",)),
    Cmd.SYNC: _row("makecache"),
    # --add-repo must precede the repository argument
    Cmd.ADD_REPO: _row("config-manager", "--add-repo"),
}

_ZYPPER = {
    Cmd.INSTALL: _row("install", flags=("-n",)),
    Cmd.UNINSTALL: _row("remove", flags=("-n",)),
    Cmd.UPDATE: _row("update", flags=("-n",)),
    Cmd.UPDATE_ALL: _row("dist-upgrade", flags=("-n",)),
    Cmd.SEARCH: _row("--xmlout", "search", flags=("--no-refresh", "-q")),
    Cmd.LIST: _row("--xmlout", "search", flags=("-i",)),
    Cmd.SYNC: _row("refresh"),
    Cmd.ADD_REPO: _row("addrepo", flags=("-f",)),
}

_FLATPAK = {
    Cmd.INSTALL: _row("install", flags=("-y",)),
    Cmd.UNINSTALL: _row("uninstall", flags=("-y",)),
    Cmd.UPDATE: _row("update", flags=("-y",)),
    Cmd.UPDATE_ALL: _row("update", flags=("-y",)),
    Cmd.SEARCH: _row("search"),
    Cmd.LIST: _row("list"),
    Cmd.ADD_REPO: _row("remote-add", flags=("--if-not-exists",)),
}

COMMAND_TABLE: Mapping[Manager, Mapping[Cmd, CommandRow]] = MappingProxyType({
    Manager.BREW: MappingProxyType(_BREW),
    Manager.CHOCO: MappingProxyType(_CHOCO),
    Manager.APT: MappingProxyType(_APT),
    Manager.DNF: MappingProxyType(_DNF),
    # yum accepts the same sub-commands as dnf
    Manager.YUM: MappingProxyType(_DNF),
    Manager.ZYPPER: MappingProxyType(_ZYPPER),
    Manager.FLATPAK: MappingProxyType(_FLATPAK),
})


def rows_for(manager: Manager) -> Mapping[Cmd, CommandRow]:
    """All command rows declared for ``manager``."""
    return COMMAND_TABLE[manager]


def supported_commands(manager: Manager) -> frozenset[Cmd]:
    return frozenset(COMMAND_TABLE[manager])


def lookup(manager: Manager, cmd: Cmd) -> CommandRow:
    """
    Return the command row for ``(manager, cmd)``.

    Raises:
        UnsupportedOperationError: If the manager declares no row for ``cmd``.
    """
    row = COMMAND_TABLE[manager].get(cmd)
    if row is None:
        logger.debug(f"No command row for {manager.value}/{cmd.value}")
        raise UnsupportedOperationError(manager, cmd)
    return row
