"""Row-per-customer SQL store: each row holds one customer's tickets as JSON."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.db import db_session
from app.infra.logging_config import get_logger
from app.models.customer_state import CustomerState
from app.schemas.ticket import SupportTicket
from app.core.ticket_order import sort_by_activity
from app.stores.base import parse_tickets

logger = get_logger("stores.remote")


def group_by_customer(tickets: List[SupportTicket]) -> Dict[str, List[SupportTicket]]:
    """Customer key -> that customer's tickets, newest activity first."""
    grouped: Dict[str, List[SupportTicket]] = {}
    for ticket in tickets:
        grouped.setdefault(ticket.customer_key or "unknown", []).append(ticket)
    return {key: sort_by_activity(items) for key, items in grouped.items()}


class RemoteTicketStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def load_all(self) -> Optional[List[SupportTicket]]:
        try:
            with db_session(self.session_factory) as db:
                rows = db.query(CustomerState).all()
                data = [row.data for row in rows]
        except SQLAlchemyError as e:
            logger.error("Failed to load remote tickets: %s", e)
            return None

        tickets: List[SupportTicket] = []
        for chunk in data:
            tickets.extend(parse_tickets(chunk, "remote"))
        return sort_by_activity(tickets)

    def save_all(self, tickets: List[SupportTicket]) -> bool:
        """
        Full sync of the ticket set.

        Rows whose customer no longer has tickets are deleted first, then every
        remaining customer row is upserted. Any failure rolls back and returns False.
        """
        grouped = group_by_customer(tickets)
        now = datetime.now(timezone.utc)
        try:
            with db_session(self.session_factory) as db:
                existing = {key for (key,) in db.query(CustomerState.customer_key).all()}
                stale = existing - set(grouped)
                if stale:
                    logger.info("Deleting %d stale customer rows", len(stale))
                    db.query(CustomerState).filter(
                        CustomerState.customer_key.in_(stale)
                    ).delete(synchronize_session=False)

                for key, items in grouped.items():
                    db.merge(
                        CustomerState(
                            customer_key=key,
                            data=[t.to_storage_dict() for t in items],
                            updated_at=now,
                        )
                    )
        except SQLAlchemyError as e:
            logger.error("Failed to save remote tickets: %s", e)
            return False

        logger.info("Upserted %d customer rows", len(grouped))
        return True
