import json
from io import StringIO

import pytest
from rich.console import Console

from polypm import cli as cli_module
from polypm.cli import CLI, ExitCode, main
from polypm.config import CONFIG_ENV_VAR
from polypm.manager import VerifiedPackageManager
from polypm.managers import Manager


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def console():
    out, err = StringIO(), StringIO()
    output = cli_module.RichOutput(
        console=Console(file=out, width=200),
        error_console=Console(file=err, width=200),
    )
    return output, out, err


@pytest.fixture
def host(monkeypatch, make_verified, recorder):
    """Select ``manager`` for the CLI and route its commands to a recorder."""

    def _install(manager=Manager.BREW, **executor_kwargs):
        verified = make_verified(manager)
        executor = recorder(**executor_kwargs)
        selected = {}

        def fake_default(preferred=None, priority=None, probe_timeout=None):
            selected["preferred"] = preferred
            return verified

        monkeypatch.setattr(cli_module, "default_manager", fake_default)
        monkeypatch.setattr(
            cli_module,
            "VerifiedPackageManager",
            lambda v, use_sudo=False: VerifiedPackageManager(v, executor=executor),
        )
        return executor, selected

    return _install


def run(console, *argv):
    output, _, _ = console
    return CLI(output=output).run(list(argv))


class TestMutations:
    """Mutating commands mirror the manager's exit status."""

    def test_install_success(self, host, console):
        executor, _ = host()
        assert run(console, "install", "wget", "jq@1.7") == 0
        assert executor.calls[0].args == ["install", "wget", "jq@1.7"]

    def test_exit_code_is_mirrored(self, host, console):
        host(Manager.APT, return_code=100)
        assert run(console, "install", "nope") == 100
        assert "apt-get install nope --yes" in console[2].getvalue()

    def test_extra_flags(self, host, console):
        executor, _ = host(Manager.APT)
        run(console, "uninstall", "vim", "--extra=--purge")
        assert executor.calls[0].args == ["remove", "vim", "--yes", "--purge"]

    def test_update_all(self, host, console):
        executor, _ = host()
        assert run(console, "update", "--all") == 0
        assert executor.calls[0].args == ["upgrade"]

    @pytest.mark.parametrize("argv", [["update"], ["update", "--all", "wget"]])
    def test_update_needs_exactly_one_form(self, host, console, argv):
        executor, _ = host()
        assert run(console, *argv) == ExitCode.INVALID_ARGUMENTS
        assert executor.calls == []

    def test_sync_and_repo(self, host, console):
        executor, _ = host()
        run(console, "sync")
        run(console, "repo", "homebrew/cask-fonts")
        assert [c.args for c in executor.calls] == [["update"], ["tap", "homebrew/cask-fonts"]]

    def test_malformed_specifier(self, host, console):
        executor, _ = host()
        assert run(console, "install", "a@b@c") == ExitCode.PARSE_ERROR
        assert executor.calls == []

    def test_unsupported_operation(self, host, console):
        executor, _ = host(Manager.FLATPAK)
        assert run(console, "-m", "flatpak", "sync") == ExitCode.UNSUPPORTED_OPERATION
        assert executor.calls == []

    def test_signal_exit_follows_shell_convention(self, host, console):
        host(return_code=-15)
        assert run(console, "install", "wget") == 143

    def test_apt_repo_line(self, host, console, tmp_path, monkeypatch):
        sources = tmp_path / "sources.list"
        sources.write_text("", encoding="utf-8")
        monkeypatch.setattr("polypm.manager.APT_SOURCES_LIST", sources)
        executor, _ = host(Manager.APT)
        assert run(console, "repo", "deb http://ppa.launchpad.net/x/y/ubuntu jammy main") == 0
        assert "deb http://ppa.launchpad.net/x/y/ubuntu jammy main" in sources.read_text(encoding="utf-8")
        assert executor.calls == []

    def test_repository_error(self, host, console):
        host(Manager.DNF, return_code=1)
        assert run(console, "repo", "https://example.com/x.repo") == ExitCode.REPOSITORY_ERROR
        assert "config-manager plugin" in console[2].getvalue()

    def test_launch_failure(self, host, console):
        host(error=FileNotFoundError(2, "No such file"))
        assert run(console, "install", "wget") == ExitCode.LAUNCH_FAILED
        assert "/usr/bin/brew install wget" in console[2].getvalue()


class TestReads:
    """Search and list output."""

    def test_list_json(self, host, console):
        host(Manager.CHOCO, stdout="git|2.43.0\n7zip|23.1.0\n")
        assert run(console, "--json", "list") == 0
        assert json.loads(console[1].getvalue()) == [
            {"name": "git", "version": "2.43.0"},
            {"name": "7zip", "version": "23.1.0"},
        ]

    def test_search_table(self, host, console):
        executor, _ = host(stdout="wget\nwget2\n")
        assert run(console, "search", "wget") == 0
        assert executor.calls[0].args == ["search", "wget"]
        text = console[1].getvalue()
        assert "wget2" in text


class TestSelection:
    """Manager selection and configuration handling."""

    def test_requested_manager_is_preferred(self, host, console):
        _, selected = host(Manager.DNF)
        run(console, "--manager", "dnf", "sync")
        assert selected["preferred"] is Manager.DNF

    def test_no_manager(self, monkeypatch, console):
        monkeypatch.setattr(cli_module, "default_manager", lambda *a, **k: None)
        assert run(console, "list") == ExitCode.NO_MANAGER
        assert "No supported package manager" in console[2].getvalue()

    def test_unknown_manager_name(self, console):
        with pytest.raises(SystemExit) as excinfo:
            run(console, "-m", "pacman", "list")
        assert excinfo.value.code == 2

    def test_missing_config_file(self, tmp_path, console):
        assert run(console, "--config", str(tmp_path / "nope.toml"), "list") == ExitCode.CONFIG_ERROR

    def test_config_json_output(self, tmp_path, host, console):
        host(Manager.CHOCO, stdout="git|2.43.0\n")
        config = tmp_path / "polypm.toml"
        config.write_text("json_output = true\n", encoding="utf-8")
        run(console, "--config", str(config), "list")
        assert json.loads(console[1].getvalue()) == [{"name": "git", "version": "2.43.0"}]

    def test_no_command(self, console):
        assert run(console) == ExitCode.INVALID_ARGUMENTS


def test_managers_listing(monkeypatch, console):
    monkeypatch.setattr(
        cli_module,
        "verify",
        lambda manager, probe_timeout=None: object() if manager is Manager.FLATPAK else None,
    )
    assert run(console, "--json", "managers") == 0
    listing = json.loads(console[1].getvalue())
    assert [m["name"] for m in listing] == [m.value for m in Manager]
    assert [m["name"] for m in listing if m["available"]] == ["flatpak"]
    flatpak = listing[-1]
    assert flatpak["display_name"] == "Flatpak"
    assert flatpak["file_extensions"] == ["flatpak"]


def test_main_handles_interrupt(monkeypatch):
    def interrupted(self, argv=None):
        raise KeyboardInterrupt

    monkeypatch.setattr(CLI, "run", interrupted)
    assert main([]) == ExitCode.INTERRUPTED
