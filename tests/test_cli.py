"""
Command-line surface: flags, exit codes, the failure path.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from sfm import cli as cli_module
from sfm import session
from sfm.cli import __version__, cli
from sfm.config_block import has_block
from sfm.context import RuntimeContext
from sfm.errors import UserCancelled
from sfm.generator import SyntaxCheck


@pytest.fixture(autouse=True)
def quiet_host(monkeypatch):
    monkeypatch.setattr(session, "find_missing", lambda: [])
    monkeypatch.setattr(session, "validate_syntax", lambda *args, **kwargs: SyntaxCheck(True))


@pytest.fixture
def invoke(tmp_path: Path):
    home = tmp_path / "home"
    home.mkdir()
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, list(args), env={"HOME": str(home), "SHELL": "/bin/bash", "NO_COLOR": "1"})

    _invoke.home = home
    return _invoke


def test_help(invoke):
    result = invoke("--help")
    assert result.exit_code == 0
    for flag in ("--batch", "--shell", "--rollback", "--ui", "--verbose"):
        assert flag in result.output


def test_version(invoke):
    result = invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_batch_install(invoke):
    result = invoke("-b")
    assert result.exit_code == 0, result.output
    assert "Setup Complete" in result.output
    assert has_block(invoke.home / ".bashrc")
    assert (invoke.home / ".sfm" / "config").exists()


def test_batch_rollback(invoke):
    (invoke.home / ".bashrc").write_text("export A=1\n")
    invoke("-b")

    result = invoke("--rollback", "-b")
    assert result.exit_code == 0, result.output
    assert (invoke.home / ".bashrc").read_text() == "export A=1\n"
    assert not (invoke.home / ".sfm").exists()


def test_unknown_shell_falls_back(invoke):
    result = invoke("--shell", "tcsh", "-b")
    assert result.exit_code == 0, result.output
    assert has_block(invoke.home / ".bashrc")
    log = (invoke.home / ".sfm" / "setup.log").read_text()
    assert "[WARNING] Unknown shell override 'tcsh'" in log


def test_bad_ui_choice(invoke):
    result = invoke("--ui", "curses")
    assert result.exit_code == 2


def test_unexpected_error_exits_nonzero(invoke, monkeypatch):
    def boom(self, uninstall=False):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(cli_module.SessionController, "run", boom)
    result = invoke("-b")
    assert result.exit_code == 1
    assert "Error occurred" in result.output
    assert "setup.log" in result.output
    log = (invoke.home / ".sfm" / "setup.log").read_text()
    assert "[ERROR] Setup failed: disk on fire" in log
    assert "Traceback" in log


def test_cancel_is_not_a_failure(invoke, monkeypatch):
    def cancel(self, uninstall=False):
        raise UserCancelled("function selection")

    monkeypatch.setattr(cli_module.SessionController, "run", cancel)
    result = invoke("-b")
    assert result.exit_code == 0
    assert "Cancelled" in result.output


def test_state_dir_unwritable(invoke, monkeypatch):
    def denied(*args, **kwargs):
        raise PermissionError("read-only home")

    monkeypatch.setattr(RuntimeContext, "create", denied)
    result = invoke("-b")
    assert result.exit_code == 1
    assert "cannot prepare SFM state directory" in result.output
