from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for a running row advisor service."""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.http_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def get_advisory(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/advisory")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        try:
            payload = response.json()
        except ValueError:
            typer.secho(
                f"Service at {self._config.base_url} did not return JSON.",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        if not isinstance(payload, dict) or "message" not in payload:
            raise typer.BadParameter("Unexpected response payload from /advisory.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("detail"):
            detail = str(data["detail"])
        else:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
