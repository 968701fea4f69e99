# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/execution.py

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

log = logging.getLogger("hostprep")


@dataclass(frozen=True)
class ExecutionContext:
    """
    controls how commands are executed
    """

    dry_run: bool = False
    use_sudo: bool = True


class CommandError(RuntimeError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {shlex.join(self.argv)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class CommandRunner:
    """
    Runs host commands synchronously.

    probe() is read-only and always executes, even in dry-run mode.
    run() mutates the host: it is skipped under dry-run and raises
    CommandError on a non-zero exit.
    """

    def __init__(self, ctx: Optional[ExecutionContext] = None):
        self.ctx = ctx or ExecutionContext()

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def probe(self, argv: Sequence[str]) -> subprocess.CompletedProcess:
        log.debug("probe: %s", shlex.join(argv))
        try:
            return subprocess.run(list(argv), capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            return subprocess.CompletedProcess(list(argv), 127, "", str(e))

    def _with_sudo(self, argv: List[str]) -> List[str]:
        if not self.ctx.use_sudo or os.geteuid() == 0:
            return argv
        return ["sudo", *argv]

    def run(
        self,
        argv: Sequence[str],
        *,
        sudo: bool = False,
        shell: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        shell=True hands argv[0] to `sh -c` (used for `curl ... | sh`).
        """
        cmd = ["sh", "-c", argv[0]] if shell else list(argv)
        if sudo:
            cmd = self._with_sudo(cmd)

        if self.ctx.dry_run:
            log.info("[dry-run] %s", shlex.join(cmd))
            return subprocess.CompletedProcess(cmd, 0, "", "")

        log.debug("run: %s", shlex.join(cmd))
        cp = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if cp.stdout:
            log.debug("stdout:\n%s", cp.stdout.rstrip())
        if cp.stderr:
            log.debug("stderr:\n%s", cp.stderr.rstrip())
        if cp.returncode != 0:
            raise CommandError(cmd, cp.returncode, cp.stderr or "")
        return cp
