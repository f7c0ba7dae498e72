"""Inbox API: push mailbox items for analysis, hide threads."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response

from app.routers.utils.dependencies import get_inbox_service
from app.schemas.inbox import InboxItem
from app.services.inbox_service import InboxIngestResult, InboxService

inbox_router = APIRouter(prefix="/inbox", tags=["Inbox"])


@inbox_router.post("/items", response_model=InboxIngestResult)
async def ingest_inbox_items(
    items: List[InboxItem],
    service: InboxService = Depends(get_inbox_service),
) -> InboxIngestResult:
    """Fold new mailbox messages; already seen and hidden threads are skipped."""
    return await service.ingest_items(items)


@inbox_router.post("/threads/{thread_id}/hide", status_code=204)
async def hide_inbox_thread(
    thread_id: str,
    service: InboxService = Depends(get_inbox_service),
) -> Response:
    await service.hide_thread(thread_id)
    return Response(status_code=204)
