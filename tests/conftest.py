import importlib
import subprocess
from dataclasses import dataclass
from unittest.mock import Mock

import pytest

from polypm.models import ExitStatus
from polypm.verify import verify

# `polypm.verify` as an attribute is the re-exported function; patch the module itself.
verify_module = importlib.import_module("polypm.verify")


@dataclass
class Call:
    mode: str
    program: str
    args: list
    privileged: bool


class RecordingExecutor:
    """Executor double that records invocations instead of launching processes."""

    def __init__(self, stdout="", stderr="", return_code=0, error=None):
        self.stdout = stdout
        self.stderr = stderr
        self.return_code = return_code
        self.error = error
        self.calls: list[Call] = []

    def _record(self, mode, program, args, privileged):
        self.calls.append(Call(mode, program, list(args), privileged))
        if self.error is not None:
            raise self.error

    def run(self, program, args, privileged=False):
        self._record("run", program, args, privileged)
        return {
            "success": self.return_code == 0,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "command": [program, *args],
            "return_code": self.return_code,
        }

    def status(self, program, args, privileged=False):
        self._record("status", program, args, privileged)
        return ExitStatus(self.return_code, (program, *args))

    def spawn(self, program, args, privileged=False):
        self._record("spawn", program, args, privileged)
        return Mock(spec=subprocess.Popen)


@pytest.fixture
def recorder():
    """Factory for RecordingExecutor instances."""
    return RecordingExecutor


@pytest.fixture
def make_verified(monkeypatch):
    """Produce VerifiedManager tokens without touching the host."""

    def _make(manager, path=None):
        resolved = path or f"/usr/bin/{manager.binary}"
        monkeypatch.setattr(
            verify_module.shutil,
            "which",
            lambda name: resolved if name == manager.binary else f"/usr/bin/{name}",
        )
        monkeypatch.setattr(
            verify_module.subprocess,
            "run",
            lambda argv, **kwargs: subprocess.CompletedProcess(argv, 0),
        )
        verified = verify(manager)
        assert verified is not None
        return verified

    return _make
