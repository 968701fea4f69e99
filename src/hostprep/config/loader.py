# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/loader.py

import logging
import os
from pathlib import Path

import yaml

from . import defaults
from .models import ProvisionConfig

log = logging.getLogger("hostprep")


def _find_config_file(path: str | Path | None) -> Path | None:
    """
    Locate the config file using this priority:

    1. explicit path (must exist)
    2. HOSTPREP_CONFIG environment variable
    3. ~/.config/hostprep/config.yaml
    """
    if path is not None:
        p = Path(path).expanduser()
        if not p.is_file():
            raise FileNotFoundError(f"Config file not found: {p}")
        return p

    env = os.environ.get("HOSTPREP_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.is_file():
            return p
        log.warning("HOSTPREP_CONFIG=%s does not exist, using defaults", env)
        return None

    p = Path(defaults.CONFIG_SEARCH_PATH).expanduser()
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path | None = None) -> ProvisionConfig:
    """
    Load and validate the provisioning config.

    With no file anywhere on the search path the built-in defaults are
    returned, so a bare `hostprep` run needs no configuration at all.
    """
    cfg_path = _find_config_file(path)
    if cfg_path is None:
        log.debug("No config file found, using built-in defaults")
        return ProvisionConfig()

    log.debug("Loading config from %s", cfg_path)
    return ProvisionConfig.model_validate(_load_yaml(cfg_path))
