# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import shutil
from typing import Callable, Iterable, Optional

from hostprep.config.models import PackageManagerSpec

log = logging.getLogger("hostprep")


class UnsupportedPackageManagerError(RuntimeError):
    pass


def detect_package_manager(
    managers: Iterable[PackageManagerSpec],
    which: Callable[[str], Optional[str]] = shutil.which,
) -> PackageManagerSpec:
    """
    Return the first manager whose binary resolves on PATH.
    Order is the order of `managers` (apt, dnf, yum by default); no scoring.
    """
    tried = []
    for pm in managers:
        tried.append(pm.name)
        path = which(pm.name)
        if path:
            log.info("Using package manager: %s (%s)", pm.name, path)
            return pm
    raise UnsupportedPackageManagerError(
        f"Unsupported package manager (looked for {', '.join(tried)}). "
        "Install dependencies manually."
    )
