"""CLI commands for exploring the character relationship graph."""

from __future__ import annotations

from pathlib import Path

import typer

from loreweave.cli._errors import handle_error, require_project
from loreweave.graph.engine import RelationshipGraph, TraversalConfig

app = typer.Typer(help="Explore character relationships.")


def _graph(project_path: Path) -> RelationshipGraph:
    project = require_project(project_path)
    return RelationshipGraph(project.characters)


@app.command("traverse")
def traverse(
    project_path: Path = typer.Argument(..., help="Project snapshot (.json / .yaml)"),
    seeds: list[str] = typer.Argument(..., help="Seed character ids"),
    depth: int = typer.Option(2, "--depth", "-d", help="Maximum hops from a seed"),
    decay: float = typer.Option(0.6, "--decay", help="Per-hop depth decay"),
    min_weight: float = typer.Option(0.1, "--min-weight", help="Prune paths below this weight"),
) -> None:
    """Weighted BFS from one or more seed characters.

    Examples:
        loreweave graph traverse novel.yaml lin
        loreweave graph traverse novel.yaml lin zhao --depth 3 --min-weight 0.05
    """
    graph = _graph(project_path)
    unknown = [s for s in seeds if s not in graph]
    if unknown:
        handle_error(f"Unknown character id(s): {', '.join(unknown)}")

    hits = graph.traverse(
        seeds,
        TraversalConfig(max_depth=depth, depth_decay=decay, min_path_weight=min_weight),
    )
    for hit in hits:
        chain = " -> ".join(hit.relation_chain) or "seed"
        typer.echo(
            f"  depth={hit.depth} relevance={hit.relevance_score:.3f} "
            f"weight={hit.path_weight:.3f}  {hit.character.name} ({chain})"
        )


@app.command("path")
def path(
    project_path: Path = typer.Argument(..., help="Project snapshot (.json / .yaml)"),
    source: str = typer.Argument(..., help="Source character id"),
    target: str = typer.Argument(..., help="Target character id"),
    max_depth: int = typer.Option(4, "--max-depth", help="Maximum edges in the path"),
) -> None:
    """Shortest relationship path between two characters."""
    graph = _graph(project_path)
    for cid in (source, target):
        if cid not in graph:
            handle_error(f"Unknown character id: {cid}")

    found = graph.find_path(source, target, max_depth=max_depth)
    if found is None:
        typer.echo(f"No path from {source} to {target} within {max_depth} hops.")
        return

    parts = [found.characters[0].name]
    for relation, character in zip(found.relations, found.characters[1:]):
        parts.append(f"-[{relation}]-> {character.name}")
    typer.echo(" ".join(parts))


@app.command("summary")
def summary(
    project_path: Path = typer.Argument(..., help="Project snapshot (.json / .yaml)"),
    character_id: str = typer.Argument(..., help="Character id"),
    max_connections: int = typer.Option(10, "--max", help="Maximum connections listed"),
) -> None:
    """Direct and indirect relations of one character."""
    graph = _graph(project_path)
    if character_id not in graph:
        handle_error(f"Unknown character id: {character_id}")

    text = graph.summary(character_id, max_connections=max_connections)
    typer.echo(text or f"{graph.get(character_id).name} has no recorded relationships.")
