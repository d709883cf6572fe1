"""Main CLI implementation using Typer."""

from pathlib import Path
from typing import Any, Callable, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from ciguard.cli.commands import show_live, show_plan, validate_config
from ciguard.core.config import ConfigManager
from ciguard.core.engine import UpdateEngine
from ciguard.providers import LiveStateError, ProviderRegistry
from ciguard.utils.logging import setup_logging


DEFAULT_CONFIG = "./config.yaml"

# Create Typer app
app = typer.Typer(
    name="ciguard",
    help="ciguard - keep cloud-init drives through declarative Proxmox disk updates",
    add_completion=False,
)

# Console for rich output
console = Console()


def _build_engine(config_path: str) -> UpdateEngine:
    """Load configuration and wire up providers."""
    setup_logging()
    manager = ConfigManager(Path(config_path))
    manager.load()
    setup_logging(manager.config.guard.log_level)

    registry = ProviderRegistry()
    registry.initialize(manager.config)

    return UpdateEngine(config_manager=manager, provider_registry=registry)


def _run_cli_command(handler: Callable[..., Any], config: str, **kwargs: Any):
    """Helper to run a CLI command with an engine and error handling."""
    try:
        engine = _build_engine(config)
        handler(engine, **kwargs)
    except (LiveStateError, FileNotFoundError, ValidationError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command("plan")
def plan_command(
    name: Optional[str] = typer.Argument(None, help="VM name to plan"),
    all: bool = typer.Option(False, "--all", help="Plan all declared VMs"),
    config: str = typer.Option(
        DEFAULT_CONFIG, "--config", "-c", help="Main configuration file"
    ),
):
    """Show the disk changes an update would apply."""
    if not name and not all:
        console.print("[red]Error:[/red] Specify VM name or use --all")
        raise typer.Exit(1)
    _run_cli_command(show_plan, config=config, name=name, all_vms=all)


@app.command("live")
def live_command(
    name: str = typer.Argument(..., help="VM name"),
    config: str = typer.Option(
        DEFAULT_CONFIG, "--config", "-c", help="Main configuration file"
    ),
):
    """Show the live disk slots of a VM."""
    _run_cli_command(show_live, config=config, name=name)


# Config subcommands
config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("validate")
def config_validate_command(
    config: str = typer.Option(
        DEFAULT_CONFIG, "--config", "-c", help="Main configuration file"
    ),
):
    """Validate configuration files."""
    _run_cli_command(validate_config, config=config)


def main():
    """Main entry point for CLI."""
    app()
