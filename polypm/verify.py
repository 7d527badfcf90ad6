#!/usr/bin/env python3
"""
Availability checks for package managers.

A :class:`VerifiedManager` marks a manager that passed an availability probe.
It can only be obtained from :func:`verify` (or the helpers built on it), so a
function that accepts one has proof that the check happened. A manager that
is not installed is an expected outcome: :func:`verify` returns ``None``
instead of raising.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from loguru import logger

from .exceptions import ManagerNotAvailableError
from .managers import Manager

DEFAULT_PROBE_TIMEOUT = 10.0

_VERIFY_TOKEN = object()


class VerifiedManager:
    """A manager known to be installed and launchable on this host"""

    __slots__ = ("_manager", "_binary_path", "_program_paths")

    def __init__(
        self,
        manager: Manager,
        binary_path: str,
        program_paths: Mapping[str, str] | None = None,
        *,
        _token: object = None,
    ):
        if _token is not _VERIFY_TOKEN:
            raise TypeError(
                "VerifiedManager cannot be constructed directly; use polypm.verify.verify()"
            )
        object.__setattr__(self, "_manager", manager)
        object.__setattr__(self, "_binary_path", binary_path)
        object.__setattr__(self, "_program_paths", MappingProxyType(dict(program_paths or {})))

    def __setattr__(self, name, value):
        raise AttributeError("VerifiedManager is immutable")

    @property
    def manager(self) -> Manager:
        return self._manager

    @property
    def binary_path(self) -> str:
        """Absolute path of the manager binary resolved during verification."""
        return self._binary_path

    @property
    def program_paths(self) -> Mapping[str, str]:
        """Resolved paths of auxiliary programs named by the manager's command rows."""
        return self._program_paths

    def program_path(self, program: str) -> str:
        """
        Resolved path for ``program``.

        Raises:
            KeyError: If ``program`` was not probed for this manager
        """
        if program == self._manager.binary:
            return self._binary_path
        return self._program_paths[program]

    def _key(self) -> tuple:
        return (self._manager, self._binary_path, frozenset(self._program_paths.items()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VerifiedManager):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"VerifiedManager({self._manager.name}, {self._binary_path!r})"

    def __str__(self) -> str:
        return str(self._manager)


def _probe(program: str, probe_timeout: float) -> str | None:
    """Resolve ``program`` on PATH and check that it launches."""
    binary_path = shutil.which(program)
    if binary_path is None:
        logger.trace(f"{program} not found in PATH")
        return None

    logger.trace(f"Probing {binary_path} --version")
    try:
        completed = subprocess.run(
            [binary_path, "--version"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=probe_timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"{binary_path} did not answer --version within {probe_timeout}s")
        return None
    except OSError as e:
        logger.debug(f"{binary_path} could not be launched: {e}")
        return None

    if completed.returncode != 0:
        logger.debug(f"{binary_path} --version exited with {completed.returncode}")
    return binary_path


def is_installed(manager: Manager, probe_timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
    """Check if package manager is installed on the system."""
    return verify(manager, probe_timeout) is not None


def verify(
    manager: Manager, probe_timeout: float = DEFAULT_PROBE_TIMEOUT
) -> VerifiedManager | None:
    """
    Verify that ``manager`` is available.

    The manager binary is probed first, then every other program its command
    rows launch (apt reads go through ``apt`` rather than ``apt-get``). All of
    them must resolve and launch.

    Args:
        manager: Manager to check
        probe_timeout: Seconds to wait for each ``--version`` probe

    Returns:
        A VerifiedManager, or None when the manager is absent or not launchable
    """
    binary_path = _probe(manager.binary, probe_timeout)
    if binary_path is None:
        logger.debug(f"{manager} is not available")
        return None

    program_paths: dict[str, str] = {}
    for row in manager.command_rows().values():
        if row.program is None or row.program in program_paths or row.program == manager.binary:
            continue
        path = _probe(row.program, probe_timeout)
        if path is None:
            logger.debug(f"{manager} is not available: {row.program} is missing")
            return None
        program_paths[row.program] = path

    logger.debug(f"Verified {manager} at {binary_path}")
    return VerifiedManager(manager, binary_path, program_paths, _token=_VERIFY_TOKEN)


def ensure_verified(
    manager: Manager, probe_timeout: float = DEFAULT_PROBE_TIMEOUT
) -> VerifiedManager:
    """Like :func:`verify` but raises ManagerNotAvailableError when absent."""
    verified = verify(manager, probe_timeout)
    if verified is None:
        raise ManagerNotAvailableError(
            f"{manager} ({manager.binary}) was not found or could not be launched",
            manager=manager.value,
        )
    return verified


def detect_managers(
    candidates: Iterable[Manager] | None = None,
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    system: str | None = None,
) -> list[VerifiedManager]:
    """Verify every candidate valid on this platform, keeping priority order."""
    detected = []
    for manager in candidates if candidates is not None else Manager:
        if not manager.supports_platform(system):
            logger.trace(f"Skipping {manager}: not supported on this platform")
            continue
        verified = verify(manager, probe_timeout)
        if verified is not None:
            detected.append(verified)
    return detected


def default_manager(
    preferred: Manager | None = None,
    priority: Iterable[Manager] | None = None,
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> VerifiedManager | None:
    """
    Pick the manager to use.

    An explicitly preferred manager is verified on its own; otherwise the first
    available manager in ``priority`` order wins.
    """
    if preferred is not None:
        return verify(preferred, probe_timeout)

    for manager in priority if priority is not None else Manager:
        if not manager.supports_platform():
            continue
        verified = verify(manager, probe_timeout)
        if verified is not None:
            return verified
    return None
