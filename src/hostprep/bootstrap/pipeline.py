# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/pipeline.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from hostprep.config.models import ProvisionConfig
from hostprep.utils.execution import CommandError

from .context import ProvisionContext
from .steps.base import Check, Status, Step
from .steps.credentials import AwsCredentialsStep
from .steps.overlay import TailscaleUpStep
from .steps.packages import ComposePluginStep, DependencyStep
from .steps.services import ServiceStep
from .steps.ssh_key import PublicKeyStep, SshKeyStep

# Observer bits
from hostprep.observers.dispatcher import EventBus
from hostprep.observers.events import (
    RunFinished,
    RunStarted,
    StepApplied,
    StepFailed,
    StepPlanned,
    StepSkipped,
    new_ctx,
)

log = logging.getLogger("hostprep")


class StepFailedError(RuntimeError):
    def __init__(self, step: Step, detail: str, cause: Optional[BaseException] = None):
        self.step = step
        self.cause = cause
        super().__init__(f"{step.name}: {detail}")

    @property
    def exit_code(self) -> int:
        if isinstance(self.cause, CommandError) and self.cause.returncode > 0:
            return self.cause.returncode
        return 1


class Outcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"


@dataclass
class StepResult:
    name: str
    stage: str
    outcome: Outcome
    detail: str = ""
    status: Optional[Status] = None


@dataclass
class RunSummary:
    run_id: str
    results: List[StepResult] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def applied(self) -> int:
        return self.count(Outcome.APPLIED)

    @property
    def skipped(self) -> int:
        return self.count(Outcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(Outcome.FAILED)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def build_steps(cfg: ProvisionConfig) -> List[Step]:
    """
    Fixed stage order: packages, credentials/keys, services, overlay.
    The public key banner sits right before `tailscale up`.
    """
    steps: List[Step] = [DependencyStep(d) for d in cfg.dependencies]
    if cfg.docker.install_compose_plugin:
        steps.append(ComposePluginStep())
    steps.append(SshKeyStep())
    steps.append(AwsCredentialsStep())
    steps.extend(ServiceStep(s) for s in cfg.services)
    steps.append(PublicKeyStep())
    if cfg.tailscale.enabled:
        steps.append(TailscaleUpStep())
    return steps


class Pipeline:
    def __init__(
        self,
        steps: List[Step],
        *,
        failure_policy: str = "abort",
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        if failure_policy not in ("abort", "continue"):
            raise ValueError(f"unknown failure policy: {failure_policy}")
        self.steps = steps
        self.failure_policy = failure_policy
        self.bus = bus or EventBus()
        self.run_id = run_id

    def run(self, ctx: ProvisionContext, *, check_only: bool = False) -> RunSummary:
        """
        Walk the steps in order. Under "abort" the first failure raises
        StepFailedError; under "continue" it is recorded and the run goes on.
        """
        ctx.check_only = check_only
        event_ctx = new_ctx(ctx.package_manager.name, run_id=self.run_id)
        summary = RunSummary(run_id=event_ctx["run_id"])
        self.bus.emit(RunStarted(steps=[s.name for s in self.steps], check_only=check_only, **event_ctx))

        started = time.monotonic()
        try:
            for i, step in enumerate(self.steps, 1):
                log.debug("[%s] step %d/%d: %s", step.stage, i, len(self.steps), step.name)
                self._run_step(step, ctx, event_ctx, summary, check_only)
        finally:
            self.bus.emit(
                RunFinished(
                    applied=summary.applied,
                    skipped=summary.skipped,
                    failed=summary.failed,
                    duration_ms=int((time.monotonic() - started) * 1000),
                    **event_ctx,
                )
            )
        return summary

    def _run_step(self, step, ctx, event_ctx, summary, check_only) -> None:
        cause = None
        try:
            chk = step.check(ctx)
        except Exception as e:
            chk, cause = Check.error(str(e)), e

        if check_only:
            log.info("[%s] %s: %s %s", step.stage, step.name, chk.status.value, chk.detail)
            summary.results.append(StepResult(step.name, step.stage, Outcome.PLANNED, chk.detail, chk.status))
            self.bus.emit(StepPlanned(name=step.name, stage=step.stage, status=chk.status.value, detail=chk.detail, **event_ctx))
            return

        if chk.status == Status.SATISFIED:
            log.log(logging.WARNING if chk.warning else logging.INFO, "[%s] %s: %s", step.stage, step.name, chk.detail)
            summary.results.append(StepResult(step.name, step.stage, Outcome.SKIPPED, chk.detail, chk.status))
            self.bus.emit(StepSkipped(name=step.name, stage=step.stage, detail=chk.detail, warning=chk.warning, **event_ctx))
            return

        if chk.status == Status.ERROR:
            self._fail(step, chk.detail, cause, event_ctx, summary)
            return

        t0 = time.monotonic()
        try:
            note = step.apply(ctx)
        except Exception as e:
            self._fail(step, str(e), e, event_ctx, summary)
            return

        duration_ms = int((time.monotonic() - t0) * 1000)
        log.info("[%s] %s: applied in %d ms", step.stage, step.name, duration_ms)
        summary.results.append(StepResult(step.name, step.stage, Outcome.APPLIED, note or "", chk.status))
        self.bus.emit(StepApplied(name=step.name, stage=step.stage, duration_ms=duration_ms, detail=note or "", **event_ctx))

    def _fail(self, step, detail, cause, event_ctx, summary) -> None:
        summary.results.append(StepResult(step.name, step.stage, Outcome.FAILED, detail, Status.ERROR))
        self.bus.emit(StepFailed(name=step.name, stage=step.stage, error=detail, **event_ctx))

        if self.failure_policy == "continue":
            log.warning("⚠️  [%s] %s failed, continuing: %s", step.stage, step.name, detail)
            return

        log.error("[%s] %s failed: %s", step.stage, step.name, detail)
        raise StepFailedError(step, detail, cause) from cause
