#!/usr/bin/env python3
"""
Argument consolidation.

Final argument order is always::

    sub-command tokens, caller arguments, default flags, caller extra flags

Flags trail the positional arguments because some managers require the
package name to come before any flag.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .exceptions import InvalidArgumentsError
from .models import Cmd, CommandRow


def consolidate_args(
    cmds: Iterable[str],
    args: Iterable[str] = (),
    flags: Iterable[str] = (),
    extra_flags: Iterable[str] = (),
) -> list[str]:
    """
    Merge the segments of a command line in a fixed order.

    Each segment can be supplied independently, e.g. a custom argument list
    that still keeps a manager's default flags.

    Example:
        ```python
        consolidate_args(["install"], ["pkg"], ["--yes"])
        # ['install', 'pkg', '--yes']
        ```
    """
    return [*cmds, *args, *flags, *extra_flags]


def require_targets(cmd: Cmd, args: Sequence[str]) -> None:
    """
    Reject a target-less invocation of a command that must name packages.

    Raises:
        InvalidArgumentsError: If ``cmd`` requires targets and ``args`` is empty.
    """
    if cmd.requires_targets and not args:
        raise InvalidArgumentsError(
            f"The '{cmd.value}' command requires at least one package",
            cmd=cmd.value,
        )


def consolidate(
    row: CommandRow,
    args: Sequence[str] = (),
    extra_flags: Sequence[str] = (),
) -> list[str]:
    """Apply a command table row to the caller's arguments and extra flags."""
    return consolidate_args(row.tokens, args, row.default_flags, extra_flags)
