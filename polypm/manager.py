#!/usr/bin/env python3
"""
Package manager facade.

Two entry points drive a manager through the same operation vocabulary:

* :class:`PackageManager` trusts the caller. It takes a plain
  :class:`~polypm.managers.Manager` and, if the binary turns out not to be
  launchable, aborts with :class:`~polypm.exceptions.ManagerUnavailableAbort`.
* :class:`VerifiedPackageManager` only accepts a
  :class:`~polypm.verify.VerifiedManager` and reports a launch failure as a
  typed :class:`~polypm.exceptions.LaunchFailedError`.

Example:
    ```python
    from polypm import Manager, PackageManager

    brew = PackageManager(Manager.BREW).verify()
    if brew is not None:
        brew.install("wget")
        for pkg in brew.list_installed():
            print(pkg)
    ```
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from pathlib import Path
from typing import TypeVar

from loguru import logger

from . import commands
from .consolidate import consolidate, require_targets
from .exceptions import (
    InvalidArgumentsError,
    LaunchFailedError,
    ManagerUnavailableAbort,
    RepositoryError,
)
from .executor import Executor, SubprocessExecutor
from .managers import Manager
from .models import Cmd, CommandResult, ExitStatus, Operation, PackageRecord
from .pm_types import PackageTarget
from .verify import DEFAULT_PROBE_TIMEOUT, VerifiedManager, verify

T = TypeVar("T")

APT_SOURCES_LIST = Path("/etc/apt/sources.list")
CONFIG_MANAGER_PLUGIN = "dnf-command(config-manager)"


class _PackageManagerBase(ABC):
    """Operation vocabulary shared by both API tiers."""

    def __init__(self, manager: Manager, executor: Executor | None, use_sudo: bool):
        self._manager = manager
        self.executor: Executor = executor or SubprocessExecutor(use_sudo=use_sudo)

    @property
    def manager(self) -> Manager:
        return self._manager

    @property
    def binary(self) -> str:
        """Program used for rows that do not name their own."""
        return self._manager.binary

    @abstractmethod
    def _launch(self, argv: list[str], call: Callable[[], T]) -> T:
        """Run ``call`` and translate a launch failure of ``argv`` for this tier."""

    def _resolve_program(self, program: str) -> str:
        """Path used to launch a program named by a command row."""
        return program

    # Command construction

    def consolidated(
        self,
        cmd: Cmd,
        args: Sequence[str] = (),
        extra_flags: Sequence[str] = (),
    ) -> list[str]:
        """
        Build the final argument list for ``cmd``.

        Raises:
            UnsupportedOperationError: If the manager has no row for ``cmd``
            InvalidArgumentsError: If ``cmd`` needs targets and none were given
        """
        row = commands.lookup(self._manager, cmd)
        require_targets(cmd, args)
        final = consolidate(row, args, extra_flags)
        logger.debug(f"{self._manager.value}/{cmd.value} -> {final}")
        return final

    def _program(self, cmd: Cmd | None) -> str:
        if cmd is not None:
            row = commands.lookup(self._manager, cmd)
            if row.program is not None:
                return self._resolve_program(row.program)
        return self.binary

    def _privileged(self, cmd: Cmd | None) -> bool:
        return self._manager.needs_root and (cmd is None or cmd.mutates)

    # Execution modes

    def exec_cmds(self, args: Sequence[str], cmd: Cmd | None = None) -> CommandResult:
        """Run a finalized argument list, blocking and capturing output."""
        program = self._program(cmd)
        return self._launch(
            [program, *args],
            lambda: self.executor.run(program, args, self._privileged(cmd)),
        )

    def exec_cmds_status(self, args: Sequence[str], cmd: Cmd | None = None) -> ExitStatus:
        """Run a finalized argument list, blocking, and return only its exit status."""
        program = self._program(cmd)
        return self._launch(
            [program, *args],
            lambda: self.executor.status(program, args, self._privileged(cmd)),
        )

    def exec_cmds_spawn(self, args: Sequence[str], cmd: Cmd | None = None) -> subprocess.Popen:
        """Start a finalized argument list without waiting for it."""
        program = self._program(cmd)
        return self._launch(
            [program, *args],
            lambda: self.executor.spawn(program, args, self._privileged(cmd)),
        )

    # Mutations

    def _format_targets(self, targets: Iterable[PackageTarget]) -> list[str]:
        args: list[str] = []
        for target in targets:
            pkg = PackageRecord.coerce(target)
            formatted = self._manager.format_package(pkg)
            logger.debug(f">> {pkg} -> {formatted}")
            args.extend(formatted)
        return args

    def execute_pkg_command(
        self,
        targets: Iterable[PackageTarget] | PackageTarget,
        operation: Operation,
        extra_flags: Sequence[str] = (),
    ) -> ExitStatus:
        """
        Run a mutating operation against one or more packages.

        Args:
            targets: Package records or ``name[@version]`` specifiers; a single
                specifier counts as one target
            operation: INSTALL, UNINSTALL, UPDATE or UPDATE_ALL
            extra_flags: Caller flags appended after the default flags

        Returns:
            ExitStatus of the manager; a non-zero code is not an error here
        """
        # a lone specifier is one target, not an iterable of characters
        if isinstance(targets, (str, PackageRecord)):
            targets = [targets]
        targets = list(targets)
        logger.debug(f"> Operation {operation.value} on {[str(t) for t in targets]}")
        match operation:
            case Operation.SEARCH | Operation.LIST_INSTALLED:
                raise InvalidArgumentsError(
                    f"'{operation.value}' is a read operation; use search() or list_installed()",
                    operation=operation.value,
                )
            case Operation.UPDATE_ALL if targets:
                raise InvalidArgumentsError(
                    "update-all does not take package arguments",
                    operation=operation.value,
                )

        cmds = self.consolidated(operation.cmd, self._format_targets(targets), extra_flags)
        return self.exec_cmds_status(cmds, operation.cmd)

    def install(self, *targets: PackageTarget, extra_flags: Sequence[str] = ()) -> ExitStatus:
        return self.execute_pkg_command(targets, Operation.INSTALL, extra_flags)

    def uninstall(self, *targets: PackageTarget, extra_flags: Sequence[str] = ()) -> ExitStatus:
        return self.execute_pkg_command(targets, Operation.UNINSTALL, extra_flags)

    def update(self, *targets: PackageTarget, extra_flags: Sequence[str] = ()) -> ExitStatus:
        return self.execute_pkg_command(targets, Operation.UPDATE, extra_flags)

    def update_all(self, extra_flags: Sequence[str] = ()) -> ExitStatus:
        """Update/upgrade all packages."""
        return self.execute_pkg_command((), Operation.UPDATE_ALL, extra_flags)

    def update_all_spawn(self, extra_flags: Sequence[str] = ()) -> subprocess.Popen:
        """Start a full update in the background and return its process handle."""
        cmds = self.consolidated(Cmd.UPDATE_ALL, (), extra_flags)
        return self.exec_cmds_spawn(cmds, Cmd.UPDATE_ALL)

    def sync(self) -> ExitStatus:
        """Refresh the manager's repository metadata."""
        return self.exec_cmds_status(self.consolidated(Cmd.SYNC), Cmd.SYNC)

    def add_repo(self, repo: str) -> ExitStatus:
        """
        Add a third-party repository in the manager's own repo syntax.

        apt has no add-repo sub-command, so the line is appended to
        ``/etc/apt/sources.list``. dnf and yum need the config-manager plugin,
        which is installed before the repository is added.

        Raises:
            InvalidArgumentsError: If ``repo`` is empty
            RepositoryError: If the sources file cannot be written or the
                plugin install fails
        """
        if not repo or not repo.strip():
            raise InvalidArgumentsError("Repository cannot be empty")
        if self._manager is Manager.APT:
            return self._append_apt_source(repo.strip())

        cmds = self.consolidated(Cmd.ADD_REPO, [repo])
        if self._manager in (Manager.DNF, Manager.YUM):
            self._install_config_manager()
        return self.exec_cmds_status(cmds, Cmd.ADD_REPO)

    def _append_apt_source(self, line: str) -> ExitStatus:
        if "\n" in line or "\r" in line:
            raise InvalidArgumentsError("apt repository must be a single sources.list line", repo=line)

        logger.info(f"Appending '{line}' to {APT_SOURCES_LIST}")
        try:
            with APT_SOURCES_LIST.open("a", encoding="utf-8") as f:
                f.write(f"\n{line}")
        except OSError as e:
            raise RepositoryError(
                f"Cannot write {APT_SOURCES_LIST}: {e}", repo=line, path=str(APT_SOURCES_LIST)
            ) from e
        return ExitStatus(0)

    def _install_config_manager(self) -> None:
        logger.debug(f"Installing {CONFIG_MANAGER_PLUGIN} before adding a repository")
        status = self.install(CONFIG_MANAGER_PLUGIN)
        if not status.success:
            raise RepositoryError(
                "failed to install config-manager plugin",
                plugin=CONFIG_MANAGER_PLUGIN,
                exit_code=status.code,
            )

    # Reads

    def search(self, query: str = "") -> Iterator[PackageRecord]:
        """
        Search for packages by name or description.

        Returns:
            A one-shot iterator of matching package records
        """
        cmds = self.consolidated(Cmd.SEARCH, [query] if query else [])
        result = self.exec_cmds(cmds, Cmd.SEARCH)
        if not result["success"]:
            logger.warning(f"Search exited with {result['return_code']}: {result['stderr'].strip()}")
        return self._manager.parse_search(result["stdout"])

    def list_installed(self) -> Iterator[PackageRecord]:
        """List installed packages as a one-shot iterator."""
        result = self.exec_cmds(self.consolidated(Cmd.LIST), Cmd.LIST)
        if not result["success"]:
            logger.warning(f"Listing exited with {result['return_code']}: {result['stderr'].strip()}")
        return self._manager.parse_list(result["stdout"])

    def __str__(self) -> str:
        return str(self._manager)


class PackageManager(_PackageManagerBase):
    """
    Trusting API tier.

    Executes immediately against ``manager.binary``. Using an instance whose
    manager is not installed is a caller error and aborts with
    ManagerUnavailableAbort.
    """

    def __init__(
        self,
        manager: Manager,
        executor: Executor | None = None,
        use_sudo: bool = False,
    ):
        super().__init__(manager, executor, use_sudo)

    def _launch(self, argv: list[str], call: Callable[[], T]) -> T:
        try:
            return call()
        except OSError as e:
            raise ManagerUnavailableAbort(argv, e) from e

    def verify(self, probe_timeout: float = DEFAULT_PROBE_TIMEOUT) -> VerifiedPackageManager | None:
        """Upgrade to the verified tier, or None if the manager is unavailable."""
        verified = verify(self._manager, probe_timeout)
        if verified is None:
            return None
        return VerifiedPackageManager(
            verified,
            executor=self.executor,
        )

    def __repr__(self) -> str:
        return f"PackageManager({self._manager.name})"


class VerifiedPackageManager(_PackageManagerBase):
    """
    Verified API tier.

    Only constructible from a VerifiedManager, so every instance proves that
    its manager passed an availability probe.
    """

    def __init__(
        self,
        verified: VerifiedManager,
        executor: Executor | None = None,
        use_sudo: bool = False,
    ):
        if not isinstance(verified, VerifiedManager):
            raise TypeError(
                f"VerifiedPackageManager requires a VerifiedManager, got {type(verified).__name__}"
            )
        super().__init__(verified.manager, executor, use_sudo)
        self.verified = verified

    @property
    def binary(self) -> str:
        return self.verified.binary_path

    def _resolve_program(self, program: str) -> str:
        return self.verified.program_path(program)

    def _launch(self, argv: list[str], call: Callable[[], T]) -> T:
        try:
            return call()
        except OSError as e:
            logger.error(f"Verified manager {self._manager} failed to launch: {e}")
            raise LaunchFailedError(argv, e, manager=self._manager.value) from e

    def __repr__(self) -> str:
        return f"VerifiedPackageManager({self.verified!r})"
