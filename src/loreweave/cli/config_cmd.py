"""CLI commands for inspecting configuration."""

from __future__ import annotations

import typer
import yaml

from loreweave.cli._errors import require_config

app = typer.Typer(help="Inspect configuration.")


@app.command("show")
def show() -> None:
    """Print the effective configuration (env > YAML > defaults) as YAML.

    The API key is redacted.
    """
    config = require_config()
    typer.echo(yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True).rstrip())
