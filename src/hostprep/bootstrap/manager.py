# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from hostprep.config.models import PackageManagerSpec, PeerSpec, ProvisionConfig
from hostprep.observers.dispatcher import EventBus
from hostprep.utils.execution import CommandRunner, ExecutionContext
from hostprep.utils.ssh import PeerSession, open_peer

from .context import ProvisionContext, resolve_home
from .detector import detect_package_manager
from .pipeline import Pipeline, RunSummary, build_steps


class ProvisionManager:
    """
    Detect -> build steps -> run. Detection happens before any step, so an
    unsupported host fails with nothing installed.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        *,
        runner: Optional[CommandRunner] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
        home: Optional[Path] = None,
        peer_factory: Callable[[PeerSpec], PeerSession] = open_peer,
    ):
        self.config = config
        self.runner = runner or CommandRunner(ExecutionContext(use_sudo=config.use_sudo))
        self.bus = bus
        self.run_id = run_id
        self.home = home
        self.peer_factory = peer_factory

    def detect(self) -> PackageManagerSpec:
        return detect_package_manager(self.config.package_managers, which=self.runner.which)

    def run(self, *, check_only: bool = False) -> RunSummary:
        pm = self.detect()
        ctx = ProvisionContext(
            config=self.config,
            runner=self.runner,
            package_manager=pm,
            home=self.home or resolve_home(),
            peer_factory=self.peer_factory,
        )
        pipeline = Pipeline(
            build_steps(self.config),
            failure_policy=self.config.failure_policy,
            bus=self.bus,
            run_id=self.run_id,
        )
        try:
            return pipeline.run(ctx, check_only=check_only)
        finally:
            ctx.close()
