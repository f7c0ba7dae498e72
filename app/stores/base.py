"""Persistence contract for the ticket set."""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from pydantic import ValidationError

from app.infra.logging_config import get_logger
from app.schemas.ticket import SupportTicket

logger = get_logger("stores")


class TicketStore(Protocol):
    def load_all(self) -> Optional[List[SupportTicket]]:
        """Return the stored tickets, or None when nothing is stored or readable."""
        ...

    def save_all(self, tickets: List[SupportTicket]) -> bool:
        """Persist the full set. Returns False on failure; never raises."""
        ...


def parse_tickets(raw: Any, source: str) -> List[SupportTicket]:
    """Validate stored dicts into tickets, skipping records that do not parse."""
    tickets: List[SupportTicket] = []
    for item in raw if isinstance(raw, list) else []:
        try:
            tickets.append(SupportTicket.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping unreadable ticket from %s: %s", source, e)
    return tickets
