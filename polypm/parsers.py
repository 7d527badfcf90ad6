#!/usr/bin/env python3
"""
Manager-specific parsers for ``list`` and ``search`` output.

Every parser is a generator over a fully captured stdout buffer. Manager
output is not a stable interface, so lines that do not look like a package
entry are skipped rather than failing the whole parse.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator
from typing import TypeAlias

from loguru import logger

from .exceptions import PackageParseError
from .managers import Manager
from .models import PackageRecord
from .pm_types import PackageName, PackageVersion

Parser: TypeAlias = Callable[[str], Iterator[PackageRecord]]

_NAME_RE = re.compile(r"^[A-Za-z0-9][\w.+:@/~-]*$")


def _record(name: str, version: str | None = None) -> PackageRecord | None:
    name = name.strip()
    if not _NAME_RE.match(name):
        logger.trace(f"Skipping malformed package name: {name!r}")
        return None
    try:
        return PackageRecord(
            PackageName(name), PackageVersion(version.strip()) if version else None
        )
    except PackageParseError as e:
        logger.trace(f"Skipping malformed entry {name!r}: {e}")
        return None


def _lines(raw: str) -> Iterator[str]:
    for line in raw.splitlines():
        if line.strip():
            yield line


# Homebrew


def _parse_brew_list(raw: str) -> Iterator[PackageRecord]:
    # `brew list --versions` prints "name v1 [v2 ...]"
    for line in _lines(raw):
        if line.startswith("==>") or line[0].isspace():
            continue
        fields = line.split()
        record = _record(fields[0], fields[-1] if len(fields) > 1 else None)
        if record is not None:
            yield record


def _parse_brew_search(raw: str) -> Iterator[PackageRecord]:
    for line in _lines(raw):
        if line.startswith("==>"):
            continue
        for token in line.split():
            # versioned formulae are spelled name@version
            name, _, version = token.partition("@")
            record = _record(name, version or None)
            if record is not None:
                yield record


# Chocolatey (limit-output mode prints "name|version")


def _parse_choco(raw: str) -> Iterator[PackageRecord]:
    for line in _lines(raw):
        name, sep, rest = line.strip().partition("|")
        if not sep:
            logger.trace(f"Skipping choco line without separator: {line!r}")
            continue
        record = _record(name, rest.split("|", 1)[0] or None)
        if record is not None:
            yield record


# APT


def _parse_apt(raw: str) -> Iterator[PackageRecord]:
    # "name/suite[,now] version arch [flags]"; descriptions are indented
    for line in _lines(raw):
        if line[0].isspace():
            continue
        name, sep, info = line.partition("/")
        fields = info.split()
        if not sep or len(fields) < 2:
            logger.trace(f"Skipping apt line: {line!r}")
            continue
        record = _record(name, fields[1])
        if record is not None:
            yield record


# DNF / YUM


def _parse_dnf_list(raw: str) -> Iterator[PackageRecord]:
    # "name.arch  version  @repo"; long names wrap onto a continuation line
    pending: str | None = None
    for line in _lines(raw):
        fields = line.split()
        if pending is not None and line[0].isspace() and len(fields) == 2:
            fields = [pending, *fields]
        pending = None

        if len(fields) == 1 and "." in fields[0] and not line[0].isspace():
            pending = fields[0]
            continue
        if len(fields) != 3 or "." not in fields[0]:
            logger.trace(f"Skipping dnf line: {line!r}")
            continue
        record = _record(fields[0], fields[1])
        if record is not None:
            yield record


def _parse_dnf_search(raw: str) -> Iterator[PackageRecord]:
    # "name.arch : summary" under "=== ... ===" section banners
    for line in _lines(raw):
        stripped = line.strip()
        if stripped.startswith("=") or stripped.startswith("Last metadata"):
            continue
        if " : " in stripped:
            name = stripped.split(" : ", 1)[0]
        elif "\t" in stripped:
            name = stripped.split("\t", 1)[0]
        else:
            logger.trace(f"Skipping dnf line: {line!r}")
            continue
        record = _record(name)
        if record is not None:
            yield record


# Zypper (--xmlout)


def _parse_zypper(raw: str) -> Iterator[PackageRecord]:
    start = raw.find("<")
    if start < 0:
        return
    try:
        root = ET.fromstring(raw[start:])
    except ET.ParseError as e:
        logger.warning(f"Could not parse zypper XML output: {e}")
        return

    for solvable in root.iter("solvable"):
        if solvable.get("kind", "package") != "package":
            continue
        name = solvable.get("name")
        if not name:
            logger.trace("Skipping zypper solvable without a name")
            continue
        record = _record(name, solvable.get("edition"))
        if record is not None:
            yield record


# Flatpak (tab separated columns)


def _parse_flatpak(raw: str) -> Iterator[PackageRecord]:
    for line in _lines(raw):
        row = line.split("\t")
        match len(row):
            case 4 | 5:
                name, version = row[1], row[2]
            case 6:
                name, version = row[2], row[3]
            case _:
                logger.trace(f"Skipping flatpak row with {len(row)} columns")
                continue
        record = _record(name, version or None)
        if record is not None:
            yield record


_LIST_PARSERS: dict[Manager, Parser] = {
    Manager.BREW: _parse_brew_list,
    Manager.CHOCO: _parse_choco,
    Manager.APT: _parse_apt,
    Manager.DNF: _parse_dnf_list,
    Manager.YUM: _parse_dnf_list,
    Manager.ZYPPER: _parse_zypper,
    Manager.FLATPAK: _parse_flatpak,
}

_SEARCH_PARSERS: dict[Manager, Parser] = {
    Manager.BREW: _parse_brew_search,
    Manager.CHOCO: _parse_choco,
    Manager.APT: _parse_apt,
    Manager.DNF: _parse_dnf_search,
    Manager.YUM: _parse_dnf_search,
    Manager.ZYPPER: _parse_zypper,
    Manager.FLATPAK: _parse_flatpak,
}


def parse_list(manager: Manager, raw: str) -> Iterator[PackageRecord]:
    """Parse the output of ``manager``'s list command into package records."""
    return _LIST_PARSERS[manager](raw)


def parse_search(manager: Manager, raw: str) -> Iterator[PackageRecord]:
    """Parse the output of ``manager``'s search command into package records."""
    return _SEARCH_PARSERS[manager](raw)
