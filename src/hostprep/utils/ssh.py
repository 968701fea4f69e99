# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
from typing import Optional

import paramiko

from hostprep.config.models import PeerSpec

log = logging.getLogger("hostprep")


class PeerSession:
    """
    SFTP access to the peer host. Remote paths are relative to the peer
    user's home directory (the SFTP session starts there).
    """

    def __init__(self, client: paramiko.SSHClient, label: str = "peer"):
        self.client = client
        self.label = label
        self._sftp: Optional[paramiko.SFTPClient] = None

    @property
    def sftp(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            self._sftp = self.client.open_sftp()
        return self._sftp

    def exists(self, remote_path: str) -> bool:
        try:
            self.sftp.stat(remote_path)
            return True
        except IOError as e:
            if getattr(e, "errno", None) == errno.ENOENT:
                return False
            raise

    def fetch(self, remote_path: str, local_path: Path, *, mode: int = 0o600) -> None:
        """
        Download to a temp name next to the target, then rename, so an
        interrupted copy never leaves a truncated file that looks complete.
        """
        local_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = local_path.with_name(f".{local_path.name}.hostprep-{os.getpid()}")
        log.debug("[%s] fetching %s -> %s", self.label, remote_path, local_path)
        try:
            # created with the final mode; never readable by others mid-copy
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
            with os.fdopen(fd, "wb") as f:
                self.sftp.getfo(remote_path, f)
            os.chmod(tmp, mode)
            os.replace(tmp, local_path)
        finally:
            if tmp.exists():
                tmp.unlink()

    def close(self) -> None:
        try:
            if self._sftp is not None:
                self._sftp.close()
        finally:
            self.client.close()


def _load_pkey(key_path: str):
    for key_cls in (
        paramiko.Ed25519Key,
        paramiko.RSAKey,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(key_path)
        except paramiko.SSHException:
            continue
    raise RuntimeError(f"Unsupported private key format for {key_path}")


def open_peer(peer: PeerSpec) -> PeerSession:
    client = paramiko.SSHClient()
    client.load_system_host_keys()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    pkey = _load_pkey(str(Path(peer.pkey_path).expanduser())) if peer.pkey_path else None

    log.info("Connecting to peer %s@%s:%d", peer.username, peer.host, peer.port)
    client.connect(
        hostname=peer.host,
        port=peer.port,
        username=peer.username,
        pkey=pkey,
        timeout=peer.connect_timeout,
        allow_agent=pkey is None,
        look_for_keys=pkey is None,
    )

    return PeerSession(client, label=f"{peer.username}@{peer.host}")
