#!/usr/bin/env python3
"""
Type definitions shared across polypm.
Uses modern Python typing features including type aliases and NewType.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, NewType, TypeAlias, TypedDict, Union
from collections.abc import Iterator
from pathlib import Path

if TYPE_CHECKING:
    from .models import PackageRecord

# Strong type aliases using NewType for better type safety
PackageName = NewType("PackageName", str)
PackageVersion = NewType("PackageVersion", str)

# Type aliases for complex types
PackageStream: TypeAlias = Iterator["PackageRecord"]
PathLike: TypeAlias = Union[str, Path]
PackageTarget: TypeAlias = Union["PackageRecord", str]

# Literal types for constrained values
LogLevel: TypeAlias = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class PackageDict(TypedDict):
    """JSON shape of a package record."""
    name: str
    version: str | None


class ManagerInfoDict(TypedDict):
    """JSON shape of a manager listing."""
    name: str
    display_name: str
    available: bool
    file_extensions: list[str]


__all__ = [
    # NewTypes
    "PackageName",
    "PackageVersion",

    # Type aliases
    "PackageStream",
    "PathLike",
    "PackageTarget",
    "LogLevel",

    # TypedDict classes
    "PackageDict",
    "ManagerInfoDict",
]
