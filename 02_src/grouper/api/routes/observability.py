"""Observability API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import IApplication


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class HandleMappingResponse(BaseModel):
    """Response model for a cached handle mapping."""

    username: str
    recipient_id: str
    address: str | None = None
    source: str
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None


class SidebarGroupResponse(BaseModel):
    """Response model for a sidebar group known to the orchestrator."""

    id: str
    name: str
    original_group_id: str
    created_by: str
    created_at: datetime
    members: list[str]


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get audit events with optional filters."""
        after_dt = None
        if after:
            try:
                after_dt = datetime.fromisoformat(after)
            except ValueError:
                raise HTTPException(
                    status_code=400, detail="Invalid after timestamp format"
                )

        try:
            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=[event_type] if event_type else None,
                actor=actor,
                limit=limit,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "actor": e.actor,
                "data": e.data,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    @router.get("/handles", response_model=list[HandleMappingResponse])
    async def get_handles() -> list[dict]:
        """List cached handle -> recipient mappings."""
        try:
            mappings = await app.storage.list_handle_mappings()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return [vars(m) for m in mappings]

    @router.get("/groups", response_model=list[SidebarGroupResponse])
    async def get_groups() -> list[dict]:
        """List sidebar groups created since startup."""
        return [vars(g) for g in app.orchestrator.list_groups()]

    return router
