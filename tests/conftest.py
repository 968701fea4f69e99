import os
import subprocess
from pathlib import Path

import pytest

from hostprep.bootstrap.context import ProvisionContext
from hostprep.config.models import ProvisionConfig
from hostprep.utils.execution import CommandError, ExecutionContext

UNIT_LISTING = "cron.service enabled enabled\ntailscaled.service enabled enabled\n"
LIST_UNITS = ("systemctl", "list-unit-files", "--no-legend", "--no-pager")


# ----------------- Fakes for the host -----------------

class FakeRunner:
    """
    Records every command instead of executing it.

    present  : binaries that `which` resolves
    probes   : argv tuple -> (rc, stdout, stderr); unknown probes return rc=1
    fail     : argv tuple -> rc raised as CommandError from run()
    on_run   : callback(argv) to simulate side effects (e.g. ssh-keygen)
    """

    def __init__(self, present=(), probes=None, fail=None, on_run=None, dry_run=False):
        self.ctx = ExecutionContext(dry_run=dry_run)
        self.present = set(present)
        self.probes = {LIST_UNITS: (0, UNIT_LISTING, ""), **(probes or {})}
        self.fail = fail or {}
        self.on_run = on_run
        self.calls = []
        self.sudo_calls = []
        self.probed = []

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.present else None

    def probe(self, argv):
        argv = list(argv)
        self.probed.append(argv)
        rc, out, err = self.probes.get(tuple(argv), (1, "", ""))
        return subprocess.CompletedProcess(argv, rc, out, err)

    def run(self, argv, *, sudo=False, shell=False):
        argv = list(argv)
        self.calls.append(argv)
        if sudo:
            self.sudo_calls.append(argv)
        if tuple(argv) in self.fail:
            raise CommandError(argv, self.fail[tuple(argv)], "simulated failure")
        if self.on_run and not self.ctx.dry_run:
            self.on_run(argv)
        return subprocess.CompletedProcess(argv, 0, "", "")

    def commands(self):
        return [" ".join(c) for c in self.calls]


class FakePeer:
    def __init__(self, files=None, label="root@proxmox"):
        self.files = dict(files or {})
        self.label = label
        self.fetched = []
        self.closed = False

    def exists(self, remote_path):
        return remote_path in self.files

    def fetch(self, remote_path, local_path: Path, *, mode=0o600):
        if remote_path not in self.files:
            raise IOError(2, "No such file", remote_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_text(self.files[remote_path])
        os.chmod(local_path, mode)
        self.fetched.append(remote_path)

    def close(self):
        self.closed = True


def keygen_side_effect(argv):
    """Emulate ssh-keygen writing both halves of the key."""
    if argv and argv[0] == "ssh-keygen":
        key = Path(argv[argv.index("-f") + 1])
        key.write_text("PRIVATE\n")
        key.with_name(key.name + ".pub").write_text("ssh-ed25519 AAAAfake me@box\n")


# ----------------- Fixtures -----------------

@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def fake_peer():
    return FakePeer


@pytest.fixture
def keygen():
    return keygen_side_effect


@pytest.fixture
def make_ctx(home):
    def _make(runner, config=None, pm="apt", peer=None):
        cfg = config or ProvisionConfig()
        spec = next(p for p in cfg.package_managers if p.name == pm)

        def peer_factory(_spec):
            if peer is None:
                raise AssertionError("peer host must not be contacted")
            return peer

        return ProvisionContext(
            config=cfg,
            runner=runner,
            package_manager=spec,
            home=home,
            peer_factory=peer_factory,
        )
    return _make
