"""Server commands.

Both servers are started through uvicorn's factory mode so every worker
builds its own application (and its own resolver caches). Host and port
default to the ``TESSERA_HOST``/``TESSERA_PORT`` and
``TESSERA_EDGE_HOST``/``TESSERA_EDGE_PORT`` settings.

Usage:
    tessera serve --port 8080 --reload
    tessera edge --workers 4
"""

from __future__ import annotations

from typing import Annotated

import typer

serve_app = typer.Typer(help="Run the Tessera backend API server")
edge_app = typer.Typer(help="Run the Tessera SSR edge server")

HostOption = Annotated[str | None, typer.Option("--host", "-h", help="Interface to bind")]
PortOption = Annotated[int | None, typer.Option("--port", "-p", help="Port to listen on")]
ReloadOption = Annotated[bool, typer.Option("--reload", "-r", help="Restart on code changes")]
WorkersOption = Annotated[int, typer.Option("--workers", "-w", min=1, help="Worker processes")]
LogLevelOption = Annotated[str, typer.Option("--log-level", "-l", help="uvicorn log level")]


def _run(
    label: str,
    factory: str,
    host: str,
    port: int,
    reload: bool,
    workers: int,
    log_level: str,
) -> None:
    import uvicorn

    if reload and workers > 1:
        typer.echo("--reload runs a single worker", err=True)
        workers = 1

    typer.echo(f"Starting Tessera {label} on {host}:{port} ({workers} worker(s))")
    uvicorn.run(
        app=factory,
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level.lower(),
    )


@serve_app.callback(invoke_without_command=True)
def serve(
    host: HostOption = None,
    port: PortOption = None,
    reload: ReloadOption = False,
    workers: WorkersOption = 1,
    log_level: LogLevelOption = "info",
) -> None:
    """Run the backend API server."""
    from tessera.config import settings

    _run(
        "backend",
        "tessera.api.app:create_app",
        host or settings.host,
        port or settings.port,
        reload,
        workers,
        log_level,
    )


@edge_app.callback(invoke_without_command=True)
def edge(
    host: HostOption = None,
    port: PortOption = None,
    reload: ReloadOption = False,
    workers: WorkersOption = 1,
    log_level: LogLevelOption = "info",
) -> None:
    """Run the SSR edge server."""
    from tessera.edge.settings import EdgeSettings

    edge_settings = EdgeSettings()
    _run(
        "edge",
        "tessera.edge.app:create_edge_app",
        host or edge_settings.host,
        port or edge_settings.port,
        reload,
        workers,
        log_level,
    )
