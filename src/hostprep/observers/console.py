# src/hostprep/observers/console.py
import typer

from .events import (
    BaseEvent,
    RunFinished,
    RunStarted,
    StepApplied,
    StepFailed,
    StepPlanned,
    StepSkipped,
)


class ConsoleObserver:
    """Human-readable progress lines, in the style of the old setup scripts."""

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, RunStarted):
            mode = "Checking" if event.check_only else "Provisioning"
            typer.secho(f"{mode} {event.host} (package manager: {event.package_manager})", bold=True)
        elif isinstance(event, StepSkipped):
            if event.warning:
                typer.secho(f"⚠️  {event.name}: {event.detail}", fg=typer.colors.YELLOW)
            else:
                typer.echo(f"✅ {event.name}: {event.detail or 'already satisfied'}")
        elif isinstance(event, StepApplied):
            suffix = f" ({event.detail})" if event.detail else ""
            typer.echo(f"🔧 {event.name}: done{suffix}")
        elif isinstance(event, StepPlanned):
            typer.echo(f"  [{event.status:<12}] {event.name}  {event.detail}".rstrip())
        elif isinstance(event, StepFailed):
            typer.secho(f"❌ {event.name}: {event.error}", fg=typer.colors.RED, err=True)
        elif isinstance(event, RunFinished):
            typer.echo(
                f"\napplied={event.applied} skipped={event.skipped} failed={event.failed} "
                f"({event.duration_ms} ms)"
            )
