# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/steps/credentials.py

from __future__ import annotations

import logging
import os
from typing import Optional

from jinja2 import StrictUndefined, Template

from .base import Check, Step

log = logging.getLogger("hostprep")

PLACEHOLDER_ACCESS_KEY_ID = "YOUR_ACCESS_KEY_ID"
PLACEHOLDER_SECRET_ACCESS_KEY = "YOUR_SECRET_ACCESS_KEY"

CREDENTIALS_TEMPLATE = Template(
    """\
[default]
aws_access_key_id = {{ access_key_id }}
aws_secret_access_key = {{ secret_access_key }}
region = {{ region }}
""",
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def render_credentials(region: str) -> str:
    return CREDENTIALS_TEMPLATE.render(
        access_key_id=PLACEHOLDER_ACCESS_KEY_ID,
        secret_access_key=PLACEHOLDER_SECRET_ACCESS_KEY,
        region=region,
    )


class AwsCredentialsStep(Step):
    """
    ~/.aws/credentials: fetched from the peer when it has one (and fetching
    is enabled), otherwise a placeholder template. Existence alone gates
    action; contents are never merged or validated.
    """

    stage = "credentials"

    def __init__(self):
        super().__init__("aws-credentials")

    def check(self, ctx) -> Check:
        path = ctx.path(ctx.config.aws_credentials.path)
        if path.exists():
            return Check.satisfied(f"AWS credentials file already exists at {path}")
        return Check.needs_action(f"no credentials at {path}")

    def apply(self, ctx) -> Optional[str]:
        spec = ctx.config.aws_credentials
        path = ctx.path(spec.path)

        if spec.fetch_from_peer:
            peer = ctx.peer()
            if peer.exists(spec.remote_path):
                if ctx.dry_run:
                    log.info("[dry-run] fetch %s:%s -> %s", peer.label, spec.remote_path, path)
                    return
                log.info("Copying AWS credentials from %s", peer.label)
                path.parent.mkdir(parents=True, exist_ok=True)
                peer.fetch(spec.remote_path, path, mode=0o600)
                return f"copied from {peer.label}"
            log.info("No credentials on %s, writing template", peer.label)

        if ctx.dry_run:
            log.info("[dry-run] write credentials template to %s", path)
            return

        path.parent.mkdir(parents=True, exist_ok=True)
        # O_EXCL: never clobber a file that appeared since check()
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(render_credentials(spec.region))

        log.warning(
            "AWS credentials template created at %s. "
            "Please edit this file and add your actual AWS credentials manually.",
            path,
        )
        return f"template created at {path}; edit it and add your actual AWS credentials"
