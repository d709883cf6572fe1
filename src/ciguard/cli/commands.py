"""Command implementations for CLI."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from ciguard.core.engine import DiskPlan, UpdateEngine
from ciguard.core.preserve import is_cloud_init_volume


console = Console()


def _render_plan(plan: DiskPlan):
    """Print one VM's planned disk changes."""
    if not plan.changes.pending() and not plan.preserved:
        console.print(f"[green]VM {plan.vm}: no disk changes[/green]")
        return

    table = Table(title=f"VM {plan.vm}")
    table.add_column("Slot", style="cyan")
    table.add_column("Action")
    table.add_column("Volume", style="dim")

    for slot in plan.changes.pending():
        change = plan.changes.get(slot)
        action = "[red]delete[/red]" if change.delete else "[yellow]update[/yellow]"
        table.add_row(str(slot), action, change.volume or "-")

    for slot in plan.preserved:
        table.add_row(str(slot), "[green]preserved[/green]", str(plan.live_disks.get(str(slot), "-")))

    console.print(table)
    console.print()


def show_plan(engine: UpdateEngine, name: Optional[str], all_vms: bool):
    """Show planned disk changes for one or all VMs."""
    if all_vms:
        plans = engine.plan_all()
        if not plans:
            console.print("[yellow]No VMs could be planned[/yellow]")
        for plan in plans.values():
            _render_plan(plan)
    else:
        _render_plan(engine.plan(name))


def show_live(engine: UpdateEngine, name: str):
    """Show the live disk slots of a VM."""
    disks = engine.live_disks(name)

    table = Table(title=f"Live disks of {name}")
    table.add_column("Slot", style="cyan")
    table.add_column("Value", style="dim")
    table.add_column("Cloud-init")

    for slot, value in disks.items():
        seed = "[green]✓[/green]" if is_cloud_init_volume(value) else "✗"
        table.add_row(slot, str(value), seed)

    console.print(table)


def validate_config(engine: UpdateEngine):
    """Summarize the loaded configuration."""
    manager = engine.config_manager
    console.print(f"[green]✓[/green] Configuration valid: {manager.config_path}")
    console.print(f"  Provider: {manager.config.guard.provider}")

    table = Table(title="VMs")
    table.add_column("Name", style="cyan")
    table.add_column("Location")
    table.add_column("Disks")
    table.add_column("Cloud-init")

    for name, spec in manager.vms.items():
        table.add_row(
            name,
            str(spec.ref),
            ", ".join(sorted(spec.disks)) or "-",
            "yes" if spec.has_cloud_init_params else "no",
        )

    console.print(table)
