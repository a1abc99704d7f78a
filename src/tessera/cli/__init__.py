"""CLI commands for Tessera.

Provides command-line interface using Typer:
- tessera serve: Run the backend API server
- tessera edge: Run the SSR edge server
- tessera config show: Print a tenant's resolved configuration

Usage:
    tessera --help
    tessera serve --port 8080
    tessera edge --port 3000
    tessera config show acme.example.com --all
"""

import typer

from tessera.cli.config_cmd import app as config_app
from tessera.cli.serve import edge_app, serve_app

app = typer.Typer(
    name="tessera",
    help="Tessera: per-tenant runtime configuration for multi-tenant web apps",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(edge_app, name="edge")
app.add_typer(config_app, name="config")


@app.callback()
def callback() -> None:
    """Tessera: per-tenant runtime configuration for multi-tenant web apps."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
