"""Rich output formatting for the analytics CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from analytics_engine.dispatch.models import DispatchResult, SlotInfo


# ---------------------------------------------------------------------------
# Colour mappings
# ---------------------------------------------------------------------------

_OUTCOME_COLOURS: dict[str, str] = {
    "DELIVERED": "green",
    "FAILED": "red",
    "SKIPPED": "dim",
}

_STATE_COLOURS: dict[str, str] = {
    "enabled": "green",
    "disabled": "yellow",
    "initialized": "cyan",
    "registered": "dim",
}


def _coloured(value: str, colours: dict[str, str]) -> str:
    """Return a Rich markup string with *value* colour-coded."""
    colour = colours.get(value, "white")
    return f"[{colour}]{value}[/{colour}]"


# ---------------------------------------------------------------------------
# Provider slots
# ---------------------------------------------------------------------------


def display_slots(console: Console, slots: list[SlotInfo]) -> None:
    """Render the registered provider slots.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    slots:
        Slot views as returned by ``AnalyticsService.slots()``.
    """
    if not slots:
        console.print("[dim]No providers registered.[/dim]")
        return

    table = Table(title="Analytics Providers", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Slot", style="dim")
    table.add_column("Provider", style="bold")
    table.add_column("Identifier")
    table.add_column("State")

    for slot in slots:
        table.add_row(
            slot.slot_id,
            escape(slot.provider_name),
            escape(slot.provider_identifier),
            _coloured(slot.state.value, _STATE_COLOURS),
        )

    console.print(table)
    enabled = sum(1 for slot in slots if slot.is_enabled)
    console.print(f"\n[bold]{enabled}[/bold] of [bold]{len(slots)}[/bold] provider(s) enabled")


# ---------------------------------------------------------------------------
# Dispatch results
# ---------------------------------------------------------------------------


def display_dispatch_result(console: Console, result: DispatchResult) -> None:
    """Render the per-provider outcome of one fan-out operation."""
    if not result.accepted:
        console.print(f"[red]{result.operation} was rejected before dispatch.[/red]")
        return

    if not result.results:
        console.print(f"[dim]{result.operation}: no eligible providers.[/dim]")
        return

    table = Table(title=f"Dispatch: {result.operation}", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Provider", style="bold")
    table.add_column("Outcome")
    table.add_column("Error")

    for call in result.results:
        table.add_row(escape(call.provider_name), _coloured(call.outcome.value, _OUTCOME_COLOURS), escape(call.error) or "-")

    console.print(table)


def display_event_parameters(console: Console, name: str, parameters: dict[str, Any]) -> None:
    """Render the caller-supplied parameters of an event before it is tracked."""
    lines = [f"[bold]Event:[/bold] {escape(name)}"]
    if parameters:
        lines.extend(f"  {escape(key)} = {escape(repr(value))}" for key, value in sorted(parameters.items()))
    else:
        lines.append("  [dim](no parameters)[/dim]")
    console.print(Panel("\n".join(lines), title="Tracked Event", border_style="blue"))
