# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/context.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from hostprep.config.models import PackageManagerSpec, PeerSpec, ProvisionConfig
from hostprep.utils.execution import CommandRunner
from hostprep.utils.ssh import PeerSession, open_peer

log = logging.getLogger("hostprep")


class ConfigError(RuntimeError):
    pass


def resolve_home() -> Path:
    home = os.environ.get("HOME")
    if not home:
        raise ConfigError("$HOME is not set")
    return Path(home)


@dataclass
class ProvisionContext:
    """
    Everything a step may touch, passed explicitly through the pipeline.
    """
    config: ProvisionConfig
    runner: CommandRunner
    package_manager: PackageManagerSpec
    home: Path
    peer_factory: Callable[[PeerSpec], PeerSession] = open_peer
    check_only: bool = False
    index_refreshed: bool = False
    _index_error: Optional[Exception] = field(default=None, repr=False)
    _peer: Optional[PeerSession] = field(default=None, repr=False)

    @property
    def dry_run(self) -> bool:
        return self.runner.ctx.dry_run

    def path(self, p: str) -> Path:
        """Expand a leading ~ against the context home, not the process env."""
        if p == "~" or p.startswith("~/"):
            return self.home / p[2:]
        return Path(p)

    def refresh_package_index(self) -> None:
        """
        Run the update command at most once per run. A failed update is
        remembered and re-raised for every later install.
        """
        if self._index_error is not None:
            raise self._index_error
        if self.index_refreshed:
            return
        log.info("Updating package lists (%s)...", self.package_manager.name)
        try:
            self.runner.run(self.package_manager.update, sudo=True)
        except Exception as e:
            self._index_error = e
            raise
        finally:
            self.index_refreshed = True

    def install_package(self, package: str) -> None:
        self.refresh_package_index()
        log.info("Installing %s...", package)
        self.runner.run([*self.package_manager.install, package], sudo=True)

    def peer(self) -> PeerSession:
        if self._peer is None:
            self._peer = self.peer_factory(self.config.peer)
        return self._peer

    def close(self) -> None:
        if self._peer is not None:
            self._peer.close()
            self._peer = None
