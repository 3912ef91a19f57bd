"""Analytics CLI application -- Typer-based developer interface.

Wires an :class:`~analytics_engine.dispatch.service.AnalyticsService` from
``ANALYTICS_*`` settings and exercises it from the command line: track an
event with contexts attached, apply consent, or list the configured
providers.  Human-readable output goes to *stderr* via Rich; ``--json``
writes dispatch results to *stdout* so that pipelines can compose cleanly.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from analytics_cli.display import display_dispatch_result, display_event_parameters, display_slots
from analytics_engine.config import Settings, load_settings
from analytics_engine.dispatch.models import DispatchResult
from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.factory import create_service_from_settings
from analytics_engine.logging_config import configure_logging
from analytics_engine.models.contexts import DeviceContext, PlayerContext, SessionContext

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="analytics",
    help="Analytics engine - fan events out to every configured provider.",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_events_file: Path | None = None
_verbose: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit dispatch results as JSON to stdout instead of human-readable output.",
    ),
    events_file: Path | None = typer.Option(
        None,
        "--events-file",
        help="Also record events to this JSON-lines file.",
        envvar="ANALYTICS_EVENTS_FILE",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _events_file, _verbose  # noqa: PLW0603
    _json_output = json_mode
    _events_file = events_file
    _verbose = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cli_settings() -> Settings:
    """Load settings, applying global CLI options on top of the environment."""
    overrides: dict[str, Any] = {}
    if _events_file is not None:
        overrides["events_file"] = _events_file
    if _verbose:
        overrides["debug"] = True
    try:
        settings = load_settings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid analytics settings:[/red] {escape(str(exc))}")
        raise typer.Exit(code=3) from exc
    configure_logging(settings)
    return settings


def _parse_value(raw: str) -> Any:
    """Parse *raw* as JSON, falling back to the plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_pairs(pairs: list[str] | None, label: str) -> dict[str, Any]:
    """Parse ``KEY=VALUE`` options into a dict, exiting on malformed input."""
    parsed: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid {label} '{escape(pair)}': expected KEY=VALUE[/red]")
            raise typer.Exit(code=2)
        parsed[key] = _parse_value(raw)
    return parsed


def _emit_json(payload: dict[str, DispatchResult]) -> None:
    data = {key: result.model_dump(mode="json") for key, result in payload.items()}
    typer.echo(json.dumps(data, sort_keys=True))


def _apply_contexts(
    service: AnalyticsService,
    *,
    player_id: str | None,
    player_level: int | None,
    session_id: str | None,
    platform: str | None,
) -> None:
    player_fields: dict[str, Any] = {}
    if player_id is not None:
        player_fields["player_id"] = player_id
    if player_level is not None:
        player_fields["level"] = player_level
    if player_fields:
        service.update_global_context(PlayerContext, PlayerContext(**player_fields))
    if session_id is not None:
        service.update_global_context(SessionContext, SessionContext(session_id=session_id))
    if platform is not None:
        service.update_global_context(DeviceContext, DeviceContext(platform=platform))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("track")
def track_command(
    name: str = typer.Argument(..., help="Event name, e.g. 'level_complete'."),
    params: list[str] | None = typer.Option(
        None,
        "--param",
        "-p",
        help="Event parameter as KEY=VALUE. VALUE is parsed as JSON when possible.",
    ),
    player_id: str | None = typer.Option(None, "--player-id", help="Attach a PlayerContext with this id."),
    player_level: int | None = typer.Option(None, "--player-level", help="Attach a PlayerContext at this level."),
    session_id: str | None = typer.Option(None, "--session-id", help="Attach a SessionContext."),
    platform: str | None = typer.Option(None, "--platform", help="Attach a DeviceContext for this platform."),
) -> None:
    """Track one event through every configured provider, then flush.

    Examples::

        analytics track level_complete -p level=3 -p stars=2 --player-level 3
        analytics --json track purchase -p sku='"gem_pack"' --session-id s-42
    """
    parameters = _parse_pairs(params, "parameter")
    settings = _load_cli_settings()
    service = create_service_from_settings(settings)

    try:
        _apply_contexts(
            service,
            player_id=player_id,
            player_level=player_level,
            session_id=session_id,
            platform=platform,
        )
    except ValidationError as exc:
        service.shutdown()
        console.print(f"[red]Invalid context value:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if not _json_output:
        display_event_parameters(console, name, parameters)

    result = service.track_event(name, parameters)
    flush = service.shutdown()

    if _json_output:
        _emit_json({"track": result, "flush": flush})
    else:
        display_dispatch_result(console, result)

    if not result.accepted:
        raise typer.Exit(code=1)


@app.command("consent")
def consent_command(
    grant: bool = typer.Option(..., "--grant/--deny", help="Global consent decision."),
    overrides: list[str] | None = typer.Option(
        None,
        "--override",
        "-o",
        help="Per-provider consent as IDENTIFIER=true|false, e.g. Debug=true.",
    ),
) -> None:
    """Apply a consent decision and show the resulting provider states."""
    parsed = _parse_pairs(overrides, "override")
    for identifier, value in parsed.items():
        if not isinstance(value, bool):
            console.print(f"[red]Override for '{escape(identifier)}' must be true or false[/red]")
            raise typer.Exit(code=2)

    settings = _load_cli_settings()
    service = create_service_from_settings(settings)
    result = service.set_consent(grant, parsed)
    slots = service.slots()
    service.shutdown()

    if _json_output:
        _emit_json({"consent": result})
        return

    display_dispatch_result(console, result)
    display_slots(console, slots)


@app.command("providers")
def providers_command() -> None:
    """List the providers configured by the current settings."""
    settings = _load_cli_settings()
    service = create_service_from_settings(settings)
    slots = service.slots()
    service.shutdown()

    if _json_output:
        typer.echo(json.dumps([slot.model_dump(mode="json") for slot in slots], sort_keys=True))
        return

    display_slots(console, slots)
