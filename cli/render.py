from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Dashboard Summary")
    echo_key_values(
        [
            ("region", payload.get("region")),
            ("crack_threshold", payload.get("crack_threshold")),
            ("reading_count", payload.get("reading_count")),
            ("regions_monitored", payload.get("regions_monitored")),
            ("high_risk_count", payload.get("high_risk_count")),
            ("critical_count", payload.get("critical_count")),
            ("mean_stress_score", payload.get("mean_stress_score")),
            ("max_crack_sensitivity", payload.get("max_crack_sensitivity")),
        ]
    )

    per_region = payload.get("per_region_count") or {}
    if per_region:
        typer.echo("per_region_count:")
        for region, count in per_region.items():
            typer.echo(f"  - {region}: {count}")

    typer.echo()
    latest = payload.get("latest")
    if payload.get("alert"):
        typer.secho(
            f"ALERT: latest reading in {latest.get('Region')} at {latest.get('Timestamp')} is high-risk",
            fg=typer.colors.RED,
            bold=True,
        )
    elif latest:
        typer.secho("Latest reading within limits.", fg=typer.colors.GREEN)
    else:
        typer.echo("No readings match the filter.")


def render_load_result(payload: Dict[str, Any]) -> None:
    echo_heading("Upload Result")
    echo_key_values(
        [
            ("filename", payload.get("filename")),
            ("status", payload.get("status")),
            ("reading_count", payload.get("reading_count")),
        ]
    )

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No errors recorded.")
