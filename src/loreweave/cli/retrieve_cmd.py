"""CLI command for querying a project's retrieval layer."""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from pathlib import Path

import typer

from loreweave.cli._errors import require_config, require_project
from loreweave.cli._runtime import build_retriever, open_store
from loreweave.models import RetrievalResult, entity_label


class TargetType(str, Enum):
    chapter = "chapter"
    character = "character"
    wiki = "wiki"
    all = "all"


def _row(kind: str, result: RetrievalResult) -> dict:
    return {
        "type": kind,
        "id": result.entity_id,
        "label": entity_label(result.entity),
        "score": round(result.relevance_score, 4),
        "match_type": result.match_type.value,
    }


def retrieve(
    project_path: Path = typer.Argument(..., help="Project snapshot (.json / .yaml)"),
    query: str = typer.Argument(..., help="Free-text query"),
    target: TargetType = typer.Option(TargetType.all, "--type", "-t", help="Entity type to rank"),
    top_k: int = typer.Option(None, "--top-k", "-k", help="Result count (single --type only)"),
    exclude: str = typer.Option(None, "--exclude", help="Chapter id to leave out (current chapter)"),
    store_path: str = typer.Option(None, "--store", "-s", help="Vector store path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text"),
) -> None:
    """Rank a project's entities against a query.

    Without an embedding provider the ranking is keyword-only.

    Examples:
        loreweave retrieve novel.yaml "the dragon clan's destruction"
        loreweave retrieve novel.yaml "Lin Feng" --type character --json
    """
    config = require_config()
    project = require_project(project_path)
    store = open_store(config, store_path)
    retriever = build_retriever(config, store)

    async def run() -> tuple[str, bool, list[str], list[dict]]:
        if target is TargetType.all:
            ctx = await retriever.retrieve_context(
                query,
                project.chapters,
                project.characters,
                project.wiki_entries,
                current_chapter_id=exclude,
            )
            rows = [
                *(_row("chapter", r) for r in ctx.relevant_chapters),
                *(_row("character", r) for r in ctx.relevant_characters),
                *(_row("wiki", r) for r in ctx.relevant_wiki_entries),
            ]
            return ctx.retrieval_mode.value, ctx.degraded, ctx.reasons, rows

        pools = {
            TargetType.chapter: project.chapters,
            TargetType.character: project.characters,
            TargetType.wiki: project.wiki_entries,
        }
        outcome = await retriever.retrieve(
            query,
            pools[target],
            target.value,
            top_k=top_k,
            exclude_id=exclude if target is TargetType.chapter else None,
        )
        reasons = [outcome.reason] if outcome.degraded and outcome.reason else []
        return (
            outcome.mode.value,
            outcome.degraded,
            reasons,
            [_row(target.value, r) for r in outcome.results],
        )

    try:
        mode, degraded, reasons, rows = asyncio.run(run())
    finally:
        store.close()

    if as_json:
        payload = {"mode": mode, "degraded": degraded, "reasons": reasons, "results": rows}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    typer.echo(f"Mode: {mode}" + (" (degraded)" if degraded else ""))
    for reason in reasons:
        typer.echo(f"  {reason}")
    if not rows:
        typer.echo("No results.")
        return
    for row in rows:
        typer.echo(
            f"  [{row['type']}] {row['label']} ({row['id']})  "
            f"score={row['score']:.3f} {row['match_type']}"
        )
