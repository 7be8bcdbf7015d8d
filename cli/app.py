from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from app.schemas import LoadStatus, SummaryOut
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_load_result, render_summary
from logging_config import configure_logging
from models.records import REGION_ALL
from services.aggregator import Aggregator
from services.generator import ReadingGenerator
from services.loader import ReadingLoader
from settings import get_settings
from storage.reading_file import ReadingFileStore


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for the cathedral structural health dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

generate_app = typer.Typer(
    help="Write one batch of synthetic readings to the configured output path.",
    add_completion=False,
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _write_batch(count: int, output: Path, seed: Optional[int]) -> None:
    generator = ReadingGenerator(rng=random.Random(seed))
    readings = generator.generate(count)
    try:
        ReadingFileStore(output).write_batch(readings)
    except OSError as exc:
        typer.secho(f"Failed to write {output}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Wrote {len(readings)} readings to {output}", fg=typer.colors.GREEN)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("generate")
def generate_command(
    count: Optional[int] = typer.Option(
        None, "--count", "-n", min=0, help="Number of readings (defaults to CATHEDRAL_BATCH_SIZE)."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Target JSON file."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible output."),
) -> None:
    """Generate a batch of synthetic readings and write it as JSON."""
    settings = get_settings()
    _write_batch(
        count=settings.batch_size if count is None else count,
        output=output or Path(settings.readings_path),
        seed=settings.random_seed if seed is None else seed,
    )


@app.command("summary")
def summary_command(
    file: Optional[Path] = typer.Argument(
        None, dir_okay=False, help="JSON or CSV readings file (defaults to CATHEDRAL_READINGS_PATH)."
    ),
    region: str = typer.Option(REGION_ALL, "--region", "-r", help="Region name or 'All'."),
    threshold: float = typer.Option(
        0.5, "--threshold", "-t", min=0.5, max=1.5, help="Minimum crack sensitivity."
    ),
) -> None:
    """Summarize a local readings file without a running server."""
    path = file or Path(get_settings().readings_path)
    if not path.is_file():
        raise typer.BadParameter(f"File {path} does not exist.")

    loaded = ReadingLoader().load(path.name, path.read_bytes())
    if loaded.result.status is LoadStatus.rejected:
        render_load_result(loaded.result.model_dump(mode="json"))
        raise typer.Exit(code=1)

    try:
        summary = Aggregator().aggregate(loaded.readings, region, threshold)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    payload = SummaryOut.from_summary(summary, region=region, crack_threshold=threshold)
    render_summary(payload.model_dump(mode="json", by_alias=True))


@app.command("status")
def status_command(
    ctx: typer.Context,
    region: str = typer.Option(REGION_ALL, "--region", "-r", help="Region name or 'All'."),
    threshold: float = typer.Option(0.5, "--threshold", "-t", help="Minimum crack sensitivity."),
) -> None:
    """Fetch the live summary from a running dashboard."""
    state = _get_state(ctx)
    render_summary(state.client.get_summary(region, threshold))


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Ask a running dashboard to generate a fresh batch now."""
    state = _get_state(ctx)
    render_summary(state.client.refresh())


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON or CSV file."),
) -> None:
    """Upload historical readings to a running dashboard."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    render_load_result(state.client.upload_file(file))


@generate_app.command()
def generate_default() -> None:
    """Generate one batch using only environment configuration."""
    configure_logging()
    settings = get_settings()
    _write_batch(
        count=settings.batch_size,
        output=Path(settings.readings_path),
        seed=settings.random_seed,
    )
