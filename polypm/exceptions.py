#!/usr/bin/env python3
"""
Exception types for polypm.
Every expected failure mode carries an error code and a context mapping so the
CLI can report it and pick an exit code without string matching.
"""

from __future__ import annotations

from typing import Any


def create_error_context(**kwargs: Any) -> dict[str, Any]:
    """Build a context mapping, dropping unset values."""
    return {key: value for key, value in kwargs.items() if value is not None}


class PolyPMError(Exception):
    """Base exception for all polypm errors"""

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        **extra_context: Any,
    ):
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.context = dict(context or {})
        self.context.update(create_error_context(**extra_context))

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to structured dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "error_code": self.error_code,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={str(self)!r}, error_code={self.error_code!r})"


class UnsupportedOperationError(PolyPMError):
    """Raised when a manager has no command table row for a command kind"""

    def __init__(self, manager: Any, cmd: Any, **kwargs: Any):
        self.manager = manager
        self.cmd = cmd
        super().__init__(
            f"{manager} does not support the '{getattr(cmd, 'value', cmd)}' command",
            error_code="UNSUPPORTED_OPERATION",
            manager=str(manager),
            cmd=getattr(cmd, "value", str(cmd)),
            **kwargs,
        )


class InvalidArgumentsError(PolyPMError):
    """Raised before any process launch when the caller's arguments are unusable"""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="INVALID_ARGUMENTS", **kwargs)


class ManagerNotAvailableError(PolyPMError):
    """Raised when a caller asks for an exception instead of an absent verification result"""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="MANAGER_NOT_AVAILABLE", **kwargs)


class LaunchFailedError(PolyPMError):
    """Exception raised when a verified manager binary could not be launched"""

    def __init__(self, command: list[str], original_error: OSError, **kwargs: Any):
        self.command = list(command)
        self.original_error = original_error
        super().__init__(
            f"Failed to launch {' '.join(self.command)}: {original_error}",
            error_code="LAUNCH_FAILED",
            command=self.command,
            **kwargs,
        )


class PackageParseError(PolyPMError, ValueError):
    """Exception raised when a package specifier is malformed"""

    def __init__(self, message: str, text: str, **kwargs: Any):
        self.text = text
        super().__init__(message, error_code="PACKAGE_PARSE_ERROR", text=text, **kwargs)


class RepositoryError(PolyPMError):
    """Exception raised when a repository could not be added"""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="REPOSITORY_ERROR", **kwargs)


class ConfigError(PolyPMError):
    """Exception raised when there's a configuration error"""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="CONFIG_ERROR", **kwargs)


class ManagerUnavailableAbort(RuntimeError):
    """
    Raised by the trusting API tier when the manager binary cannot be launched.

    Executing against a manager that was never verified and is not installed
    is a caller error. This is not a PolyPMError; use the verified tier to get
    a typed LaunchFailedError instead.
    """

    def __init__(self, command: list[str], original_error: OSError):
        self.command = list(command)
        self.original_error = original_error
        super().__init__(
            f"command executed without a prior availability check: "
            f"{' '.join(self.command)} ({original_error})"
        )
