import subprocess

import pytest

from hostprep.utils import execution
from hostprep.utils.execution import CommandError, CommandRunner, ExecutionContext


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def _spy(monkeypatch, rc=0, err=""):
    calls = []

    def fake_run(argv, capture_output=False, text=False, check=False):
        calls.append(argv)
        return DummyCP(rc, err=err)

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


def test_run_prefixes_sudo_for_non_root(monkeypatch):
    calls = _spy(monkeypatch)
    monkeypatch.setattr(execution.os, "geteuid", lambda: 1000)
    CommandRunner().run(["apt", "update"], sudo=True)
    assert calls == [["sudo", "apt", "update"]]


def test_run_skips_sudo_for_root_or_when_disabled(monkeypatch):
    calls = _spy(monkeypatch)
    monkeypatch.setattr(execution.os, "geteuid", lambda: 0)
    CommandRunner().run(["apt", "update"], sudo=True)
    monkeypatch.setattr(execution.os, "geteuid", lambda: 1000)
    CommandRunner(ExecutionContext(use_sudo=False)).run(["apt", "update"], sudo=True)
    assert calls == [["apt", "update"], ["apt", "update"]]


def test_shell_mode_wraps_in_sh(monkeypatch):
    calls = _spy(monkeypatch)
    CommandRunner().run(["curl -fsSL https://example.test/install.sh | sh"], shell=True)
    assert calls == [["sh", "-c", "curl -fsSL https://example.test/install.sh | sh"]]


def test_nonzero_exit_raises_command_error(monkeypatch):
    _spy(monkeypatch, rc=100, err="E: Unable to locate package nope")
    with pytest.raises(CommandError) as ei:
        CommandRunner().run(["apt", "install", "-y", "nope"])
    assert ei.value.returncode == 100
    assert "Unable to locate package" in str(ei.value)


def test_dry_run_executes_nothing(monkeypatch):
    calls = _spy(monkeypatch)
    cp = CommandRunner(ExecutionContext(dry_run=True)).run(["systemctl", "start", "cron"], sudo=True)
    assert cp.returncode == 0
    assert calls == []


def test_probe_runs_even_in_dry_run_and_never_raises(monkeypatch):
    calls = _spy(monkeypatch, rc=3)
    cp = CommandRunner(ExecutionContext(dry_run=True)).probe(["systemctl", "is-active", "cron"])
    assert cp.returncode == 3
    assert calls == [["systemctl", "is-active", "cron"]]


def test_probe_missing_binary_reports_127(monkeypatch):
    def boom(argv, capture_output=False, text=False, check=False):
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    monkeypatch.setattr(subprocess, "run", boom)
    cp = CommandRunner().probe(["docker", "compose", "version"])
    assert cp.returncode == 127
