from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

_TIER_COLORS = {
    "normal": typer.colors.GREEN,
    "high_flow": typer.colors.YELLOW,
    "very_high_flow": typer.colors.BRIGHT_RED,
    "no_rowing": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_advisory(payload: Dict[str, Any]) -> None:
    echo_heading("Rowing Advisory")
    tier = payload.get("tier")
    typer.secho(f"tier: {tier}", fg=_TIER_COLORS.get(str(tier)))
    echo_key_values(
        [
            ("station", payload.get("label")),
            ("measured_at", payload.get("timestamp")),
            ("flow_m3_s", payload.get("value")),
        ]
    )
    typer.echo()
    typer.echo(payload.get("message", ""))
