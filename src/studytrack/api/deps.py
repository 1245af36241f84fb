"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from studytrack.persistence.storage import Storage


def get_storage(request: Request) -> Storage:
    """The application's Storage, created in ``create_app``."""
    storage: Storage = request.app.state.storage
    return storage


StorageDep = Annotated[Storage, Depends(get_storage)]
