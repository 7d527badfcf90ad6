#!/usr/bin/env python3
"""
Process execution for package manager command lines.

Commands are always executed as an argument vector, never through a shell, so
arguments containing shell metacharacters reach the manager literally.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from loguru import logger

from .models import CommandResult, ExitStatus


@runtime_checkable
class Executor(Protocol):
    """Anything able to run a manager command line in the three execution modes."""

    def run(self, program: str, args: Sequence[str], privileged: bool = False) -> CommandResult: ...

    def status(self, program: str, args: Sequence[str], privileged: bool = False) -> ExitStatus: ...

    def spawn(self, program: str, args: Sequence[str], privileged: bool = False) -> subprocess.Popen: ...


class SubprocessExecutor:
    """
    Executor backed by :mod:`subprocess`.

    Launch failures (binary missing, not executable) propagate as ``OSError``;
    a manager that launches and exits non-zero is reported as data.
    """

    def __init__(self, use_sudo: bool = False):
        """
        Args:
            use_sudo: Prefix privileged commands with sudo when not running as root
        """
        self.use_sudo = use_sudo

    def build_argv(self, program: str, args: Sequence[str], privileged: bool = False) -> list[str]:
        argv = [program, *args]
        if privileged and self._needs_sudo():
            argv.insert(0, "sudo")
        return argv

    def _needs_sudo(self) -> bool:
        if not self.use_sudo or os.name != "posix":
            return False
        return os.geteuid() != 0

    def run(self, program: str, args: Sequence[str], privileged: bool = False) -> CommandResult:
        """
        Run a command to completion, capturing stdout and stderr.

        Returns:
            CommandResult with execution results and metadata
        """
        argv = self.build_argv(program, args, privileged)
        logger.info(f"Executing {' '.join(argv)}")
        try:
            process = subprocess.run(
                argv,
                check=False,
                text=True,
                errors="replace",
                capture_output=True,
            )
        except OSError as e:
            logger.error(f"Failed to launch {argv[0]}: {e}")
            raise

        result: CommandResult = {
            "success": process.returncode == 0,
            "stdout": process.stdout,
            "stderr": process.stderr,
            "command": argv,
            "return_code": process.returncode,
        }

        if process.returncode != 0:
            logger.warning(f"Command {' '.join(argv)} failed with code {process.returncode}")
            logger.debug(f"Error output: {process.stderr}")
        else:
            logger.debug(f"Command {' '.join(argv)} executed successfully")
        return result

    def status(self, program: str, args: Sequence[str], privileged: bool = False) -> ExitStatus:
        """
        Run a command to completion without capturing its output.

        The child inherits the caller's stdio so progress stays visible.
        """
        argv = self.build_argv(program, args, privileged)
        logger.info(f"Executing {' '.join(argv)}")
        try:
            process = subprocess.run(argv, check=False)
        except OSError as e:
            logger.error(f"Failed to launch {argv[0]}: {e}")
            raise

        logger.debug(f">>> {' '.join(argv)} exited with {process.returncode}")
        return ExitStatus(process.returncode, tuple(argv))

    def spawn(self, program: str, args: Sequence[str], privileged: bool = False) -> subprocess.Popen:
        """
        Start a command and return immediately.

        The caller owns the returned handle and decides whether to wait on it,
        enforce a time limit, or abandon it.
        """
        argv = self.build_argv(program, args, privileged)
        logger.info(f"Spawning {' '.join(argv)}")
        try:
            return subprocess.Popen(argv)
        except OSError as e:
            logger.error(f"Failed to launch {argv[0]}: {e}")
            raise
