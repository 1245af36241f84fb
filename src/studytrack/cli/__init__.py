"""CLI commands for StudyTrack.

Provides command-line interface using Typer:
- studytrack serve: Run the API server
- studytrack init-db: Create the SQL document store schema

Usage:
    studytrack --help
    studytrack serve --port 8080
"""

import typer

from studytrack.cli.init_db import app as init_db_app
from studytrack.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="studytrack",
    help="StudyTrack: study tracking backend",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(init_db_app, name="init-db")


@app.callback()
def callback() -> None:
    """StudyTrack: study tracking backend."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
