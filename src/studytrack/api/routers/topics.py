"""Topic endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from studytrack.api.deps import StorageDep
from studytrack.api.errors import NotFoundError
from studytrack.api.schemas import NameInput
from studytrack.core.model import Topic
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/topics", tags=["Topics"])


@router.get("", response_model=list[Topic])
async def list_topics(owner_id: OwnerId, storage: StorageDep) -> list[Topic]:
    return await storage.get_topics(owner_id)


@router.post("", response_model=Topic, status_code=status.HTTP_201_CREATED)
async def create_topic(body: NameInput, owner_id: OwnerId, storage: StorageDep) -> Topic:
    return await storage.create_topic(owner_id, body.name)


@router.put("/{topic_id}", response_model=Topic)
async def update_topic(topic_id: str, body: NameInput, owner_id: OwnerId, storage: StorageDep) -> Topic:
    topic = await storage.update_topic(owner_id, topic_id, body.name)
    if topic is None:
        raise NotFoundError("Topic", topic_id)
    return topic


@router.delete("/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(topic_id: str, owner_id: OwnerId, storage: StorageDep) -> Response:
    if not await storage.delete_topic(owner_id, topic_id):
        raise NotFoundError("Topic", topic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
