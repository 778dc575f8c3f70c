from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from app.schemas import AdvisoryResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_advisory
from logging_config import configure_logging
from services.advisor import FALLBACK_SPEECH, build_default_advisor
from services.upstream import FetchError


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Check whether river flow allows rowing today.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Row advisor service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service when using the remote command.",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIState(config=load_config(base_url=base_url, http_timeout=timeout))


async def _fetch_advisory() -> Dict[str, Any]:
    advisor = build_default_advisor()
    try:
        advisory = await advisor.current_advisory()
    finally:
        await advisor.aclose()
        build_default_advisor.cache_clear()
    return AdvisoryResponse.from_advisory(advisory).model_dump(mode="json")


@app.command("check")
def check_command(
    as_json: bool = typer.Option(False, "--json", help="Print the advisory as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log cache and upstream activity."),
) -> None:
    """Fetch the latest reading and print the rowing advisory."""
    configure_logging("INFO" if verbose else "WARNING")
    try:
        payload = asyncio.run(_fetch_advisory())
    except FetchError as exc:
        typer.secho(f"{FALLBACK_SPEECH} ({exc.cause})", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
        return
    render_advisory(payload)


@app.command("remote")
def remote_command(ctx: typer.Context) -> None:
    """Ask a running row advisor service for the current advisory."""
    state = _get_state(ctx)
    client = ApiClient(state.config)
    ctx.call_on_close(client.close)
    payload = client.get_advisory()
    render_advisory(payload)
