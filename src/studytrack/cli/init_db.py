"""CLI command for creating the SQL document store schema.

Usage:
    studytrack init-db
    DATABASE_URL=sqlite+aiosqlite:///studytrack.db studytrack init-db
"""

from __future__ import annotations

import asyncio

import typer

from studytrack.config import settings
from studytrack.persistence.db import close_db, init_db

app = typer.Typer(help="Create the documents table")


async def _init() -> None:
    try:
        await init_db()
    finally:
        await close_db()


@app.callback(invoke_without_command=True)
def init() -> None:
    """Create the documents table if it does not exist."""
    typer.echo(f"Initializing database at {settings.database_url.split('@')[-1]}")
    asyncio.run(_init())
    typer.echo("Done.")
