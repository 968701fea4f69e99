# src/hostprep/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from hostprep.bootstrap.context import ConfigError
from hostprep.bootstrap.detector import UnsupportedPackageManagerError
from hostprep.bootstrap.manager import ProvisionManager
from hostprep.bootstrap.pipeline import StepFailedError
from hostprep.config.loader import load_config
from hostprep.config.models import ProvisionConfig
from hostprep.logging.log import init_logging
from hostprep.observers.console import ConsoleObserver
from hostprep.observers.dispatcher import EventBus
from hostprep.observers.jsonfile import JsonFileObserver
from hostprep.utils.execution import CommandRunner, ExecutionContext


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Provision a fresh Linux server (packages, keys, services, tailscale).")

KEY_STRATEGIES = ("generate", "fetch")


# ------------------------------------------------------------------------------
# Helpers (extracted logic)
# ------------------------------------------------------------------------------

def _load(
    config: Optional[Path],
    *,
    continue_on_error: bool = False,
    key_strategy: Optional[str] = None,
) -> ProvisionConfig:
    try:
        cfg = load_config(config)
    except (FileNotFoundError, ValidationError) as e:
        typer.secho(f"❌ Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    if continue_on_error:
        cfg.failure_policy = "continue"
    if key_strategy:
        if key_strategy not in KEY_STRATEGIES:
            raise typer.BadParameter(
                f"Unknown key strategy: {key_strategy}\n"
                f"Valid strategies: {', '.join(KEY_STRATEGIES)}"
            )
        cfg.ssh_key.strategy = key_strategy
    return cfg


def _provision(
    *,
    config: Optional[Path] = None,
    dry_run: bool = False,
    debug: bool = False,
    continue_on_error: bool = False,
    key_strategy: Optional[str] = None,
    events_file: Optional[Path] = None,
    log_file: Optional[Path] = None,
    check_only: bool = False,
) -> None:
    cfg = _load(config, continue_on_error=continue_on_error, key_strategy=key_strategy)

    logger, run_id, log_path = init_logging(log_file=log_file or cfg.log_file, verbose=debug)
    logger.debug("config: %s", cfg.model_dump())

    observers = [ConsoleObserver()]
    if events_file:
        observers.append(JsonFileObserver(events_file))
    bus = EventBus(observers=observers)

    runner = CommandRunner(ExecutionContext(dry_run=dry_run, use_sudo=cfg.use_sudo))
    manager = ProvisionManager(cfg, runner=runner, bus=bus, run_id=run_id)

    try:
        summary = manager.run(check_only=check_only)
    except UnsupportedPackageManagerError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except ConfigError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except StepFailedError as e:
        typer.secho(f"Setup aborted at '{e.step.name}'. Full transcript: {log_path}", err=True)
        raise typer.Exit(code=e.exit_code)

    if check_only:
        return

    if not summary.ok:
        typer.secho(
            f"⚠️  Setup finished with {summary.failed} failed step(s). Full transcript: {log_path}",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(code=1)

    typer.echo("")
    typer.secho("✅ Setup complete!", fg=typer.colors.GREEN, bold=True)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    Run with no command to provision this host with the default settings.
    """
    if ctx.invoked_subcommand is None:
        _provision()


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Provisioning YAML"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Probe the host but change nothing"),
    debug: bool = typer.Option(False, "--debug"),
    continue_on_error: bool = typer.Option(
        False,
        "--continue-on-error",
        help="Record failed steps and keep going instead of aborting",
    ),
    key_strategy: Optional[str] = typer.Option(
        None,
        "--key-strategy",
        help="SSH key source: generate or fetch (from the peer host)",
    ),
    events_file: Optional[Path] = typer.Option(None, "--events-file", help="Append JSONL events here"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Transcript (default /tmp/setup.log)"),
):
    """
    Provision this host. Every step is skipped if already satisfied.
    """
    _provision(
        config=config,
        dry_run=dry_run,
        debug=debug,
        continue_on_error=continue_on_error,
        key_strategy=key_strategy,
        events_file=events_file,
        log_file=log_file,
    )


@app.command()
def plan(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Provisioning YAML"),
    debug: bool = typer.Option(False, "--debug"),
    log_file: Optional[Path] = typer.Option(None, "--log-file"),
):
    """
    Show what each step would do. Changes nothing.
    """
    _provision(config=config, debug=debug, log_file=log_file, check_only=True)


@app.command()
def detect(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Provisioning YAML"),
):
    """
    Print the package manager that would be used.
    """
    cfg = _load(config)
    manager = ProvisionManager(cfg, runner=CommandRunner(ExecutionContext(use_sudo=cfg.use_sudo)))
    try:
        pm = manager.detect()
    except UnsupportedPackageManagerError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Using package manager: {pm.name}")
    typer.echo(f"  update : {' '.join(pm.update)}")
    typer.echo(f"  install: {' '.join(pm.install)} <package>")
