# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/models.py

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import defaults


class PackageManagerSpec(BaseModel):
    """Update/install command templates for one package manager."""

    model_config = ConfigDict(frozen=True)

    name: Literal["apt", "dnf", "yum"]
    update: List[str]
    install: List[str]


class DependencySpec(BaseModel):
    name: str
    # any of these on PATH means the tool is present; defaults to [name]
    commands: List[str] = Field(default_factory=list)
    # per-manager package name overrides, e.g. {"apt": "docker.io"}
    packages: Dict[str, str] = Field(default_factory=dict)
    install_script: Optional[str] = None

    @model_validator(mode="after")
    def default_commands(self):
        if not self.commands:
            self.commands = [self.name]
        return self

    def package_for(self, manager: str) -> str:
        return self.packages.get(manager, self.name)


class SshKeySpec(BaseModel):
    path: str = "~/.ssh/id_ed25519"
    strategy: Literal["generate", "fetch"] = "generate"
    comment: Optional[str] = None         # defaults to user@hostname
    remote_path: str = ".ssh/id_ed25519"  # relative to the peer user's home


class AwsCredentialsSpec(BaseModel):
    path: str = "~/.aws/credentials"
    region: str = defaults.AWS_DEFAULT_REGION
    fetch_from_peer: bool = False
    remote_path: str = ".aws/credentials"


class PeerSpec(BaseModel):
    """
    The host holding shared key material and real credentials.
    """
    host: str = defaults.PEER_HOST
    username: str = defaults.PEER_USER
    port: int = 22
    pkey_path: Optional[str] = None
    connect_timeout: float = 20.0


class DockerSpec(BaseModel):
    install_compose_plugin: bool = True
    compose_url: str = defaults.COMPOSE_DOWNLOAD_URL
    plugin_dir: str = "~/.docker/cli-plugins"


class TailscaleSpec(BaseModel):
    enabled: bool = True
    up_args: List[str] = Field(default_factory=lambda: ["--ssh", "--advertise-exit-node"])


class ProvisionConfig(BaseModel):
    package_managers: List[PackageManagerSpec] = Field(
        default_factory=lambda: [PackageManagerSpec(**pm) for pm in defaults.PACKAGE_MANAGERS]
    )
    dependencies: List[DependencySpec] = Field(
        default_factory=lambda: [DependencySpec(**d) for d in defaults.DEPENDENCIES]
    )
    services: List[str] = Field(default_factory=lambda: list(defaults.SERVICES))
    ssh_key: SshKeySpec = Field(default_factory=SshKeySpec)
    aws_credentials: AwsCredentialsSpec = Field(default_factory=AwsCredentialsSpec)
    peer: PeerSpec = Field(default_factory=PeerSpec)
    docker: DockerSpec = Field(default_factory=DockerSpec)
    tailscale: TailscaleSpec = Field(default_factory=TailscaleSpec)
    failure_policy: Literal["abort", "continue"] = "abort"
    use_sudo: bool = True
    log_file: str = defaults.LOG_FILE

    @field_validator("dependencies", mode="before")
    @classmethod
    def accept_bare_names(cls, v):
        # allow `dependencies: [git, curl]` in YAML
        if isinstance(v, list):
            return [{"name": d} if isinstance(d, str) else d for d in v]
        return v

    @field_validator("package_managers")
    @classmethod
    def unique_managers(cls, v):
        names = [pm.name for pm in v]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate package manager entries: {names}")
        return v

    def needs_peer(self) -> bool:
        return self.ssh_key.strategy == "fetch" or self.aws_credentials.fetch_from_peer
