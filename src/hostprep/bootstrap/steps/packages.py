# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/steps/packages.py

from __future__ import annotations

import logging
import os
import platform
import shlex

import requests

from hostprep.config.models import DependencySpec
from .base import Check, Step

log = logging.getLogger("hostprep")


class DependencyStep(Step):
    """
    Install one tool if none of its commands resolve on PATH.
    """

    stage = "packages"

    def __init__(self, dep: DependencySpec):
        super().__init__(dep.name)
        self.dep = dep

    def check(self, ctx) -> Check:
        for cmd in self.dep.commands:
            if ctx.runner.which(cmd):
                return Check.satisfied(f"{cmd} already installed")
        return Check.needs_action(f"none of {', '.join(self.dep.commands)} on PATH")

    def apply(self, ctx) -> None:
        if self.dep.install_script:
            log.info("Installing %s via %s...", self.name, self.dep.install_script)
            ctx.runner.run([f"curl -fsSL {shlex.quote(self.dep.install_script)} | sh"], shell=True)
            return
        ctx.install_package(self.dep.package_for(ctx.package_manager.name))


class ComposePluginStep(Step):
    """
    Docker Compose v2 CLI plugin, so that `docker compose` works.
    """

    stage = "packages"

    def __init__(self):
        super().__init__("docker-compose-plugin")

    def check(self, ctx) -> Check:
        cp = ctx.runner.probe(["docker", "compose", "version"])
        if cp.returncode == 0:
            return Check.satisfied("docker compose already available")
        return Check.needs_action("docker compose not available")

    def apply(self, ctx) -> None:
        docker = ctx.config.docker
        url = docker.compose_url.format(arch=platform.machine())
        dest = ctx.path(docker.plugin_dir) / "docker-compose"

        if ctx.dry_run:
            log.info("[dry-run] download %s -> %s", url, dest)
            return

        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = dest.with_name(f".{dest.name}.part")
        log.info("Downloading %s", url)
        try:
            with requests.get(url, stream=True, timeout=60) as r:
                r.raise_for_status()
                with tmp.open("wb") as f:
                    for chunk in r.iter_content(chunk_size=1 << 16):
                        f.write(chunk)
            os.chmod(tmp, 0o755)
            os.replace(tmp, dest)
        finally:
            if tmp.exists():
                tmp.unlink()
