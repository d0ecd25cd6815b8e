"""
Dependency checks and package installs, with the package manager faked out.
"""

from sfm import deps
from sfm.env_probe import PackageManager

APT = PackageManager("apt", ("sudo", "apt-get", "install", "-y"))


class FakeProc:
    def __init__(self, returncode):
        self.returncode = returncode

    def poll(self):
        return self.returncode


def _fake_popen(monkeypatch, codes):
    calls = []

    def popen(cmd, **kwargs):
        calls.append(cmd)
        return FakeProc(codes.get(cmd[-1], 0))

    monkeypatch.setattr(deps.subprocess, "Popen", popen)
    return calls


def test_find_missing(ctx, monkeypatch):
    monkeypatch.setattr(deps, "has_executable", lambda name: name not in {"unzip", "bzip2"})
    assert deps.find_missing() == ["unzip", "bzip2"]
    assert "Missing dependency: unzip" in ctx.log_file.read_text()


def test_install_missing_reports_each(ctx, monkeypatch):
    calls = _fake_popen(monkeypatch, {"bzip2": 100})
    results = deps.install_missing(APT, ["unzip", "bzip2"], ctx.log_file, ctx.console)

    assert results == {"unzip": True, "bzip2": False}
    assert calls == [["sudo", "apt-get", "install", "-y", "unzip"],
                     ["sudo", "apt-get", "install", "-y", "bzip2"]]
    log = ctx.log_file.read_text()
    assert "Installed: unzip" in log
    assert "Failed to install bzip2 (exit 100)" in log


def test_install_cannot_start(ctx, monkeypatch):
    def popen(cmd, **kwargs):
        raise FileNotFoundError("sudo")

    monkeypatch.setattr(deps.subprocess, "Popen", popen)
    assert not deps.install_package(APT, "curl", ctx.log_file, ctx.console)
