"""Inbound platform event routes."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...models import EventKind, InboundEvent


class EventRequest(BaseModel):
    """Webhook payload forwarded by the messaging bridge."""

    id: str | None = None
    kind: EventKind = EventKind.TEXT
    sender_id: str
    conversation_id: str
    content: str = ""
    action_id: str | None = None
    timestamp: datetime | None = None


class EventAccepted(BaseModel):
    """Response model for a queued event."""

    status: str = "queued"
    event_id: str = Field(..., description="Id assigned to the queued event")


def create_events_router(app: IApplication) -> APIRouter:
    """Create events router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.post("/events", response_model=EventAccepted, status_code=202)
    async def receive_event(request: EventRequest) -> dict:
        """Queue an inbound event for the message router."""
        if request.kind == EventKind.ACTION and not request.action_id:
            raise HTTPException(status_code=422, detail="action events need an action_id")

        event = InboundEvent(
            id=request.id or str(uuid.uuid4()),
            kind=request.kind,
            sender_id=request.sender_id,
            conversation_id=request.conversation_id,
            content=request.content,
            action_id=request.action_id,
            timestamp=request.timestamp or datetime.now(timezone.utc),
        )
        try:
            await app.submit(event)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "queued", "event_id": event.id}

    return router
