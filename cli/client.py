from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import httpx
import typer

from cli.config import CLIConfig

_CONTENT_TYPES = {".json": "application/json", ".csv": "text/csv"}


class ApiClient:
    """Minimal HTTP client for a running dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_summary(self, region: str, threshold: float) -> Dict[str, Any]:
        try:
            response = self._client.get(
                "/summary", params={"region": region, "threshold": threshold}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def refresh(self) -> Dict[str, Any]:
        try:
            response = self._client.post("/readings/refresh")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def upload_file(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        content_type = _CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    "/uploads",
                    files={"file": (path.name, handle, content_type)},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
