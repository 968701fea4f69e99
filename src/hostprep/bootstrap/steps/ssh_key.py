# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import getpass
import logging
import socket
from pathlib import Path
from typing import Optional

import typer

from .base import Check, Step

log = logging.getLogger("hostprep")


def _pub_path(key: Path) -> Path:
    return key.with_name(key.name + ".pub")


class SshKeyStep(Step):
    """
    Ensure ~/.ssh/id_ed25519 exists, either generated locally or copied
    from the peer host. An existing private key is never touched.
    """

    stage = "credentials"

    def __init__(self):
        super().__init__("ssh-key")

    def check(self, ctx) -> Check:
        key = ctx.path(ctx.config.ssh_key.path)
        if key.exists():
            return Check.satisfied(f"SSH key already exists at {key}")
        return Check.needs_action(f"no key at {key} ({ctx.config.ssh_key.strategy})")

    def apply(self, ctx) -> Optional[str]:
        spec = ctx.config.ssh_key
        key = ctx.path(spec.path)

        if ctx.dry_run:
            log.info("[dry-run] %s SSH key at %s", spec.strategy, key)
            return

        key.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        if spec.strategy == "fetch":
            peer = ctx.peer()
            log.info("Copying shared SSH key from %s", peer.label)
            # public half first: the private key is the idempotency guard
            peer.fetch(spec.remote_path + ".pub", _pub_path(key), mode=0o644)
            peer.fetch(spec.remote_path, key, mode=0o600)
            return f"copied from {peer.label}"

        comment = spec.comment or f"{getpass.getuser()}@{socket.gethostname()}"
        log.info("Generating new SSH key...")
        ctx.runner.run(["ssh-keygen", "-t", "ed25519", "-f", str(key), "-N", "", "-C", comment])


class PublicKeyStep(Step):
    """Print the public key for manual copy into GitHub and friends."""

    stage = "credentials"

    def __init__(self):
        super().__init__("ssh-public-key")

    def check(self, ctx) -> Check:
        pub = _pub_path(ctx.path(ctx.config.ssh_key.path))
        if pub.exists():
            return Check.needs_action(f"show {pub}")
        if ctx.dry_run or ctx.check_only:
            mode = "dry-run" if ctx.dry_run else "plan"
            return Check.satisfied(f"{pub} not created yet ({mode})", warning=True)
        return Check.error(f"public key missing at {pub}")

    def apply(self, ctx) -> None:
        pub = _pub_path(ctx.path(ctx.config.ssh_key.path))
        content = pub.read_text().strip()
        log.info("public key: %s", content)
        typer.echo("")
        typer.echo("Copy the SSH public key below to GitHub or other services:")
        typer.echo("-" * 59)
        typer.echo(content)
        typer.echo("-" * 59)
