"""Typer CLI entrypoint for running top-down analyses from request files."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer

from agents.strategies.analysis_strategy import LocalStrategy, select_strategy
from app import get_version
from app.core.config import get_settings
from app.core.errors import InvalidInputError
from app.core.logging import setup_logging
from services.analysis_service import analyze_with_market_data, build_request, run_analysis
from trading_core.config import DEFAULT_AGGREGATION_CONFIG

app = typer.Typer(help="Top-down analysis engine.")


@app.command("analyze")
def analyze(
    request_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON analysis request."),
    local: bool = typer.Option(False, "--local", help="Skip the generative service."),
    market: bool = typer.Option(False, "--market/--no-market", help="Fetch a market snapshot first."),
    indent: int = typer.Option(2, "--indent", help="JSON indentation of the printed result."),
) -> None:
    """Score a request file and print the resulting verdict as JSON."""

    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        payload = json.loads(request_file.read_text(encoding="utf-8"))
        request = build_request(payload)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{request_file} is not valid JSON: {exc}") from exc
    except InvalidInputError as exc:
        typer.echo(f"Invalid request: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    strategy = LocalStrategy() if local else select_strategy(settings)
    if market:
        result = asyncio.run(analyze_with_market_data(request, strategy=strategy, settings=settings))
    else:
        result = run_analysis(request, strategy=strategy, settings=settings)
    typer.echo(result.model_dump_json(indent=indent or None))


@app.command("weights")
def weights() -> None:
    """List the timeframe importance weights used for aggregation."""

    config = DEFAULT_AGGREGATION_CONFIG
    for timeframe, weight in sorted(config.timeframe_weights.items(), key=lambda item: -item[1]):
        typer.echo(f"{timeframe:<6}{weight:.2f}")
    typer.echo(f"{'other':<6}{config.fallback_weight:.2f}")


@app.command("version")
def version() -> None:
    """Print the installed engine version."""

    typer.echo(get_version())


if __name__ == "__main__":
    app()
