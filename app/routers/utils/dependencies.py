from fastapi import Depends, HTTPException, Request

from app.exceptions import TicketNotFoundError
from app.schemas.ticket import SupportTicket
from app.services.inbox_service import InboxService
from app.services.ticket_manager import TicketManager


def get_ticket_manager(request: Request) -> TicketManager:
    """FastAPI dependency returning the process-wide ticket manager."""
    return request.app.state.ticket_manager


def get_ticket_by_id(
    ticket_id: str,
    manager: TicketManager = Depends(get_ticket_manager),
) -> SupportTicket:
    """FastAPI dependency to get a ticket by ID."""
    try:
        return manager.get_ticket(ticket_id)
    except TicketNotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")


def get_inbox_service(request: Request) -> InboxService:
    """FastAPI dependency returning the inbox service."""
    return request.app.state.inbox_service
