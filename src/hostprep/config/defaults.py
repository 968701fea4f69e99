# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/defaults.py

from __future__ import annotations

# Probe order matters: the first manager found on PATH wins.
PACKAGE_MANAGERS = [
    {"name": "apt", "update": ["apt", "update"], "install": ["apt", "install", "-y"]},
    {"name": "dnf", "update": ["dnf", "makecache"], "install": ["dnf", "install", "-y"]},
    {"name": "yum", "update": ["yum", "makecache"], "install": ["yum", "install", "-y"]},
]

TAILSCALE_INSTALL_SCRIPT = "https://tailscale.com/install.sh"

DEPENDENCIES = [
    {"name": "git"},
    {"name": "cron", "commands": ["cron", "crond"], "packages": {"dnf": "cronie", "yum": "cronie"}},
    {"name": "curl"},
    {"name": "awscli", "commands": ["aws"]},
    {"name": "docker", "packages": {"apt": "docker.io"}},
    {"name": "tailscale", "install_script": TAILSCALE_INSTALL_SCRIPT},
]

SERVICES = ["cron", "tailscaled", "docker"]

COMPOSE_DOWNLOAD_URL = (
    "https://github.com/docker/compose/releases/latest/download/docker-compose-linux-{arch}"
)

PEER_HOST = "proxmox"
PEER_USER = "root"

AWS_DEFAULT_REGION = "eu-west-2"

LOG_FILE = "/tmp/setup.log"

CONFIG_SEARCH_PATH = "~/.config/hostprep/config.yaml"
