"""CLI command for batch indexing a project snapshot."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from loreweave.cli._errors import handle_error, require_config, require_project
from loreweave.cli._runtime import build_indexer, open_store
from loreweave.errors import StoreError
from loreweave.models import ProgressStatus


def index(
    project_path: Path = typer.Argument(..., help="Project snapshot (.json / .yaml)"),
    store_path: str = typer.Option(None, "--store", "-s", help="Vector store path"),
    no_chunk: bool = typer.Option(
        False, "--no-chunk", help="Embed one excerpt per chapter instead of chunks"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Re-embed entities even when unchanged"),
) -> None:
    """Embed every chapter, character and wiki entry of a project.

    Unchanged entities are skipped unless --force is given. Switching
    between chunked and --no-chunk indexing re-embeds everything. Exits 1
    if any entity failed.

    Examples:
        loreweave index novel.yaml
        loreweave index novel.json --store /tmp/vectors.db --no-chunk
        loreweave index novel.yaml --force
    """
    config = require_config()
    project = require_project(project_path)
    entities = project.entities()
    if not entities:
        typer.echo("No entities in project.")
        raise typer.Exit(0)

    store = open_store(config, store_path)
    indexer = build_indexer(config, store, chunk=not no_chunk, force=force)
    if not indexer.adapter.available:
        typer.echo(
            f"Embedding provider unavailable ({indexer.adapter.unavailable_reason}); "
            "nothing will be embedded."
        )

    def progress(current: int, total: int, label: str, status: ProgressStatus) -> None:
        if status is not ProgressStatus.INDEXING:
            typer.echo(f"[{current}/{total}] {label}: {status.value}")

    async def run():
        await indexer.warm_from_store()
        return await indexer.index_all(entities, progress=progress)

    try:
        result = asyncio.run(run())
    except StoreError as e:
        handle_error(str(e))
    finally:
        store.close()

    typer.echo(result.summary())
    for err in result.errors:
        typer.echo(f"  {err['label']} ({err['id']}): {err['error']}", err=True)
    if result.failed:
        raise typer.Exit(1)
