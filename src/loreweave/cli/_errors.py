"""CLI error handling and shared loaders."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from loreweave.config import LoreweaveConfig, get_config
from loreweave.errors import ConfigError, ProjectLoadError
from loreweave.project import Project, load_project


def handle_error(msg: str) -> NoReturn:
    """Print an error message and exit."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def require_config() -> LoreweaveConfig:
    """Effective configuration, or exit with the parse error."""
    try:
        return get_config()
    except ConfigError as e:
        handle_error(str(e))


def require_project(path: Path) -> Project:
    """Load a project snapshot, or exit with a readable message."""
    if not path.exists():
        handle_error(f"Project not found: {path}")
    try:
        return load_project(path)
    except ProjectLoadError as e:
        handle_error(str(e))
