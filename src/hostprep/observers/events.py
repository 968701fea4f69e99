# src/hostprep/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import socket
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single provisioning run
    host: str         # machine being provisioned
    package_manager: Optional[str]

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(package_manager: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "host": socket.gethostname(),
        "package_manager": package_manager,
    }


# ---------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunStarted(BaseEvent):
    steps: List[str]
    check_only: bool = False

@dataclass(frozen=True)
class RunFinished(BaseEvent):
    applied: int
    skipped: int
    failed: int
    duration_ms: int


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    name: str
    stage: str
    detail: str = ""
    warning: bool = False

@dataclass(frozen=True)
class StepPlanned(BaseEvent):
    name: str
    stage: str
    status: str
    detail: str = ""

@dataclass(frozen=True)
class StepApplied(BaseEvent):
    name: str
    stage: str
    duration_ms: int
    detail: str = ""

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    name: str
    stage: str
    error: str
