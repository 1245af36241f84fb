"""CLI command for running the API server.

Usage:
    studytrack serve
    studytrack serve --port 8080 --host 0.0.0.0
    studytrack serve --reload --log-level debug

The cache lives in the server process, so the server always runs a single
worker; several workers would each hold a cache the others never invalidate.
"""

from __future__ import annotations

import typer

from studytrack.config import settings

app = typer.Typer(help="Run the StudyTrack API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(
        settings.host,
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        settings.port,
        "--port",
        "-p",
        help="Port to listen on",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    access_log: bool = typer.Option(
        True,
        "--access-log/--no-access-log",
        help="Enable/disable access logging",
    ),
) -> None:
    """Run the StudyTrack API server."""
    import uvicorn

    typer.echo("Starting StudyTrack server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Document store: {settings.document_store}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    typer.echo()
    typer.echo(f"API documentation: http://{host}:{port}/docs")
    typer.echo()

    uvicorn.run(
        app="studytrack.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=log_level.lower(),
        access_log=access_log,
    )
