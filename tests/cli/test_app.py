import json
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hostprep.cli import app as cli
from hostprep.utils import execution

runner = CliRunner()

INSTALLED = {"apt", "git", "cron", "curl", "aws", "docker", "tailscale"}
COMPOSE_VERSION = ("docker", "compose", "version")


@pytest.fixture
def env(monkeypatch, tmp_path: Path, home: Path):
    """Isolated HOME and a config that keeps the transcript inside tmp_path."""
    cfg = tmp_path / "hostprep.yaml"
    cfg.write_text(f"log_file: {tmp_path / 'setup.log'}\n")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("HOSTPREP_CONFIG", str(cfg))
    return tmp_path


@pytest.fixture
def no_subprocess(monkeypatch):
    calls = []

    def fake_run(argv, **kw):
        calls.append(argv)
        # an empty unit listing: every service is skipped
        rc = 0 if argv[:2] == ["systemctl", "list-unit-files"] else 1
        return subprocess.CompletedProcess(argv, rc, "", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


def _use_runner(monkeypatch, fake):
    monkeypatch.setattr(cli, "CommandRunner", lambda ctx=None: fake)


def test_bare_invocation_without_package_manager_exits_1(monkeypatch, env, no_subprocess):
    monkeypatch.setattr(execution.shutil, "which", lambda name: None)
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 1
    assert "Unsupported package manager" in result.output
    assert no_subprocess == []
    assert (env / "setup.log").exists()


def test_detect_reports_selected_manager(monkeypatch, env):
    monkeypatch.setattr(execution.shutil, "which", lambda name: "/usr/bin/dnf" if name == "dnf" else None)
    result = runner.invoke(cli.app, ["detect"])
    assert result.exit_code == 0, result.output
    assert "Using package manager: dnf" in result.output
    assert "dnf makecache" in result.output


def test_plan_changes_nothing(monkeypatch, env, fake_runner):
    fake = fake_runner(present={"apt", "git"})
    _use_runner(monkeypatch, fake)
    result = runner.invoke(cli.app, ["plan"])
    assert result.exit_code == 0, result.output
    assert "satisfied" in result.output and "git" in result.output
    assert fake.calls == []


def test_full_run_succeeds_and_writes_events(monkeypatch, env, fake_runner, keygen, home: Path):
    fake = fake_runner(
        present=INSTALLED,
        probes={COMPOSE_VERSION: (0, "v2", "")},
        on_run=keygen,
    )
    _use_runner(monkeypatch, fake)
    events = env / "events.jsonl"

    result = runner.invoke(cli.app, ["run", "--events-file", str(events)])
    assert result.exit_code == 0, result.output
    assert "Setup complete!" in result.output
    assert "Copy the SSH public key below" in result.output
    assert "⚠️  docker" in result.output
    assert (home / ".aws" / "credentials").exists()

    types = [json.loads(line)["type"] for line in events.read_text().splitlines()]
    assert types[0] == "RunStarted" and types[-1] == "RunFinished"
    assert "StepApplied" in types and "StepSkipped" in types


def test_abort_exit_code_is_failing_command_status(monkeypatch, env, fake_runner):
    fake = fake_runner(present={"apt"}, fail={("apt", "install", "-y", "git"): 100})
    _use_runner(monkeypatch, fake)
    result = runner.invoke(cli.app, ["run"])
    assert result.exit_code == 100
    assert "Setup aborted at 'git'" in result.output
    assert fake.commands() == ["apt update", "apt install -y git"]


def test_continue_on_error_finishes_then_exits_1(monkeypatch, env, fake_runner, keygen):
    fake = fake_runner(
        present={"apt"},
        probes={COMPOSE_VERSION: (0, "v2", "")},
        fail={("apt", "install", "-y", "git"): 100},
        on_run=keygen,
    )
    _use_runner(monkeypatch, fake)
    result = runner.invoke(cli.app, ["run", "--continue-on-error"])
    assert result.exit_code == 1
    assert "1 failed step(s)" in result.output
    assert fake.commands()[-1] == "tailscale up --ssh --advertise-exit-node"


def test_dry_run_reaches_the_end_without_changes(monkeypatch, env, home: Path, no_subprocess):
    monkeypatch.setattr(execution.shutil, "which", lambda name: "/usr/bin/apt" if name == "apt" else None)
    result = runner.invoke(cli.app, ["run", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert not (home / ".ssh").exists()
    assert not (home / ".aws").exists()
    # only read-only probes reached subprocess
    assert all(argv[0] in ("systemctl", "docker") for argv in no_subprocess)


def test_unknown_key_strategy_is_usage_error(env):
    result = runner.invoke(cli.app, ["run", "--key-strategy", "borrow"])
    assert result.exit_code == 2


def test_invalid_config_exits_2(env, monkeypatch):
    bad = env / "bad.yaml"
    bad.write_text("failure_policy: sometimes\n")
    result = runner.invoke(cli.app, ["run", "--config", str(bad)])
    assert result.exit_code == 2
    assert "Invalid configuration" in result.output
