"""Ordering helpers shared by the reconciler, the manager and the stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from app.schemas.ticket import SupportTicket


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sort_by_activity(tickets: Iterable[SupportTicket]) -> List[SupportTicket]:
    """Newest activity first; used for display and for picking the latest ticket."""
    return sorted(tickets, key=lambda t: as_utc(t.last_activity_at), reverse=True)
