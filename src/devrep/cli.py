"""Click-based CLI for devrep reputation analysis."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
import httpx

from devrep.config import load_config
from devrep.exceptions import DevRepError
from devrep.formatter import format_cli_output, format_json
from devrep.scorer import analyze_developer


@click.group()
@click.version_option(package_name="devrep")
def main() -> None:
    """devrep - developer reputation scoring from GitHub activity."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )


@main.command()
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub token of the developer")
@click.option("--config", "config_path", default=None, help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option(
    "--no-advisory",
    is_flag=True,
    default=False,
    help="Skip the AI advisory step and use the base score only",
)
def analyze(
    token: str | None,
    config_path: str | None,
    verbose: bool,
    output_json: bool,
    no_advisory: bool,
) -> None:
    """Analyze the reputation of the GitHub account that owns TOKEN."""
    if not token:
        click.echo("Error: GitHub token required. Set GITHUB_TOKEN or use --token.", err=True)
        sys.exit(1)

    try:
        config = load_config(config_path)
        if no_advisory:
            advisory = config.advisory.model_copy(update={"api_key": None})
            config = config.model_copy(update={"advisory": advisory})
        outcome = asyncio.run(analyze_developer(token=token, config=config))
    except (DevRepError, httpx.HTTPError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if output_json:
        click.echo(format_json(outcome))
    else:
        click.echo(format_cli_output(outcome, verbose=verbose))


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port")
@click.option("--config", "config_path", default=None, help="Config file path")
def serve(host: str, port: int, config_path: str | None) -> None:
    """Run the HTTP analysis endpoint."""
    import uvicorn

    from devrep.api import create_app

    try:
        config = load_config(config_path)
    except DevRepError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    logging.getLogger("devrep").setLevel(logging.INFO)
    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
