# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hostprep.bootstrap.context import ProvisionContext


class Status(str, Enum):
    SATISFIED = "satisfied"
    NEEDS_ACTION = "needs-action"
    ERROR = "error"


@dataclass(frozen=True)
class Check:
    status: Status
    detail: str = ""
    # a satisfied check that should still be surfaced to the operator
    warning: bool = False

    @classmethod
    def satisfied(cls, detail: str = "", *, warning: bool = False) -> "Check":
        return cls(Status.SATISFIED, detail, warning)

    @classmethod
    def needs_action(cls, detail: str = "") -> "Check":
        return cls(Status.NEEDS_ACTION, detail)

    @classmethod
    def error(cls, detail: str) -> "Check":
        return cls(Status.ERROR, detail)


class Step(ABC):
    """
    One idempotent unit of provisioning.

    check() inspects the host and never mutates it; apply() is only called
    when check() returned NEEDS_ACTION.
    """

    stage: str = ""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def check(self, ctx: "ProvisionContext") -> Check: ...

    @abstractmethod
    def apply(self, ctx: "ProvisionContext") -> Optional[str]:
        """Perform the action; may return a short note for the operator."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
