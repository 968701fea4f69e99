# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from .base import Check, Step

log = logging.getLogger("hostprep")


def unit_registered(listing: str, service: str) -> bool:
    """
    True if `systemctl list-unit-files` output has a unit named `service`
    or `service.<type>` (docker.service, docker.socket, ...).
    """
    for line in listing.splitlines():
        parts = line.split()
        if not parts:
            continue
        unit = parts[0]
        if unit == service or unit.startswith(service + "."):
            return True
    return False


class ServiceStep(Step):
    stage = "services"

    def check(self, ctx) -> Check:
        cp = ctx.runner.probe(["systemctl", "list-unit-files", "--no-legend", "--no-pager"])
        if cp.returncode != 0:
            # no usable unit listing (no systemd): same as not registered
            reason = (cp.stderr or "").strip() or f"exit {cp.returncode}"
            return Check.satisfied(f"service not found ({reason}). Skipping enable/start.", warning=True)

        if not unit_registered(cp.stdout, self.name):
            return Check.satisfied("service not found. Skipping enable/start.", warning=True)

        enabled = ctx.runner.probe(["systemctl", "is-enabled", "--quiet", self.name]).returncode == 0
        active = ctx.runner.probe(["systemctl", "is-active", "--quiet", self.name]).returncode == 0
        if enabled and active:
            return Check.satisfied("service enabled and running")
        return Check.needs_action(f"enabled={enabled} active={active}")

    def apply(self, ctx) -> None:
        log.info("Enabling %s service...", self.name)
        ctx.runner.run(["systemctl", "enable", self.name], sudo=True)
        log.info("Starting %s service...", self.name)
        ctx.runner.run(["systemctl", "start", self.name], sudo=True)
