"""loreweave CLI -- typer-based command interface.

Commands:
    loreweave index <project>                 Embed a project's entities
    loreweave retrieve <project> <query>      Rank entities against a query
    loreweave graph traverse/path/summary     Explore character relationships
    loreweave config show                     Print effective configuration
"""

from __future__ import annotations

import typer

from loreweave.cli import config_cmd, graph_cmd, index_cmd, retrieve_cmd

app = typer.Typer(
    name="loreweave",
    help="Retrieve narrative context: index entities, rank them, walk relationships.",
    no_args_is_help=True,
)

app.add_typer(graph_cmd.app, name="graph")
app.add_typer(config_cmd.app, name="config")
app.command("index")(index_cmd.index)
app.command("retrieve")(retrieve_cmd.retrieve)


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Structured debug logs on stderr"),
) -> None:
    if verbose:
        from loreweave.observability import ObservabilityConfig, configure

        configure(ObservabilityConfig(log_level="DEBUG", log_format="console"))


def main() -> None:
    """Entry point for the loreweave CLI."""
    app()
