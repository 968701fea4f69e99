# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from .base import Check, Step

log = logging.getLogger("hostprep")


class TailscaleUpStep(Step):
    """
    `tailscale up` with SSH relay and exit-node advertisement.

    Always runs: tailscale itself treats a repeated `up` with the same
    flags as a no-op.
    """

    stage = "overlay"

    def __init__(self):
        super().__init__("tailscale-up")

    def check(self, ctx) -> Check:
        return Check.needs_action(" ".join(["tailscale", "up", *ctx.config.tailscale.up_args]))

    def apply(self, ctx) -> None:
        log.info("Starting Tailscale with SSH and advertising as exit node...")
        ctx.runner.run(["tailscale", "up", *ctx.config.tailscale.up_args], sudo=True)
