"""Tickets API: list, get, status, delete, manual and chat entry."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi_pagination import Page, Params, paginate

from app.adapters.base import BaseChannelAdapter
from app.adapters.chat_widget import ChatWidgetAdapter
from app.adapters.manual import ManualEntryAdapter
from app.exceptions import (
    AnalysisError,
    AnalysisTimeoutError,
    NoRelevantContentError,
    TicketNotFoundError,
)
from app.routers.utils.dependencies import get_ticket_by_id, get_ticket_manager
from app.schemas.inbox import ChatTranscript
from app.schemas.ticket import (
    ManualEntryCreate,
    SupportTicket,
    TicketStatus,
    TicketStatusUpdate,
)
from app.services.ticket_manager import TicketManager

tickets_router = APIRouter(prefix="/tickets", tags=["Ticket"])


@tickets_router.get("", response_model=Page[SupportTicket])
def list_tickets(
    params: Params = Depends(),
    customer_key: Optional[str] = Query(None),
    status: Optional[TicketStatus] = Query(None),
    manager: TicketManager = Depends(get_ticket_manager),
) -> Page[SupportTicket]:
    """List tickets, newest activity first."""
    tickets = manager.list_tickets(customer_key=customer_key, status=status)
    return paginate(tickets, params=params)


@tickets_router.get("/{ticket_id}", response_model=SupportTicket)
def get_ticket(ticket: SupportTicket = Depends(get_ticket_by_id)) -> SupportTicket:
    return ticket


@tickets_router.patch("/{ticket_id}/status", response_model=SupportTicket)
async def update_ticket_status(
    data: TicketStatusUpdate,
    ticket: SupportTicket = Depends(get_ticket_by_id),
    manager: TicketManager = Depends(get_ticket_manager),
) -> SupportTicket:
    """Set a ticket's status by hand."""
    return await manager.update_status(ticket.id, data.status)


@tickets_router.delete("/{ticket_id}", status_code=204)
async def delete_ticket(
    ticket: SupportTicket = Depends(get_ticket_by_id),
    manager: TicketManager = Depends(get_ticket_manager),
) -> Response:
    await manager.delete_ticket(ticket.id)
    return Response(status_code=204)


@tickets_router.delete("/{ticket_id}/messages/{message_id}")
async def delete_ticket_message(
    message_id: str,
    ticket: SupportTicket = Depends(get_ticket_by_id),
    manager: TicketManager = Depends(get_ticket_manager),
) -> Response:
    """Delete one message; the ticket goes too when it was its last message."""
    try:
        remaining = await manager.delete_message(ticket.id, message_id)
    except TicketNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    if remaining is None:
        return Response(status_code=204)
    return Response(
        content=remaining.model_dump_json(by_alias=True),
        media_type="application/json",
    )


async def _analyze_and_ingest(
    manager: TicketManager, adapter: BaseChannelAdapter, raw: Any
) -> SupportTicket:
    try:
        return await manager.analyze_and_ingest(adapter, raw)
    except NoRelevantContentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AnalysisTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except AnalysisError as e:
        raise HTTPException(status_code=502, detail=str(e))


@tickets_router.post("/manual", response_model=SupportTicket, status_code=201)
async def create_manual_entry(
    data: ManualEntryCreate,
    manager: TicketManager = Depends(get_ticket_manager),
) -> SupportTicket:
    """Analyze a pasted conversation and fold it into the customer's ticket."""
    return await _analyze_and_ingest(manager, ManualEntryAdapter(), data)


@tickets_router.post("/chat", response_model=SupportTicket, status_code=201)
async def create_chat_entry(
    data: ChatTranscript,
    manager: TicketManager = Depends(get_ticket_manager),
) -> SupportTicket:
    """Analyze a chat widget transcript; guests are keyed by session id."""
    return await _analyze_and_ingest(manager, ChatWidgetAdapter(), data)
