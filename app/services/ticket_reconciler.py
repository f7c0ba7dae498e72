"""Folds normalized messages into the ticket set: append to a recent ticket or open a new one."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional
from uuid import uuid4

from app.constants.taxonomy import UNCATEGORIZED
from app.core.customer_key import normalize_email, resolve_customer_key
from app.core.merge_policy import merge_ticket_fields
from app.core.ticket_order import as_utc, sort_by_activity
from app.schemas.ticket import (
    Severity,
    SupportTicket,
    TicketMessage,
    TicketMessageInput,
    TicketStatus,
)

APPEND_WINDOW = timedelta(days=7)
REOPEN_FROM = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


def _new_id() -> str:
    return str(uuid4())


class TicketReconciler:
    """
    Pure reconciliation over an in-memory snapshot of tickets.

    Every method returns a new list and leaves the given tickets untouched.
    No I/O, no locking: callers serialize writes per customer.
    """

    def __init__(
        self,
        append_window: timedelta = APPEND_WINDOW,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._append_window = append_window
        self._new_id = id_factory

    def fold(
        self,
        tickets: Iterable[SupportTicket],
        msg_input: TicketMessageInput,
        now: datetime,
    ) -> List[SupportTicket]:
        """Merge one message into the ticket set and return the next set."""
        now = as_utc(now)
        current = list(tickets)
        email = normalize_email(msg_input.customer_email)
        customer_key = resolve_customer_key(email, msg_input.customer_fallback_id)
        message = self._build_message(customer_key, msg_input, now)

        latest = self.latest_for_customer(current, customer_key)
        if latest is not None and self.can_append(latest, now):
            updated = self._append(latest, message, msg_input, email, now)
            return [updated if t.id == latest.id else t for t in current]

        ticket = self._create(customer_key, message, msg_input, email, now)
        return [ticket, *current]

    def latest_for_customer(
        self, tickets: Iterable[SupportTicket], customer_key: str
    ) -> Optional[SupportTicket]:
        matching = [t for t in tickets if t.customer_key == customer_key]
        if not matching:
            return None
        return sort_by_activity(matching)[0]

    def can_append(self, ticket: SupportTicket, now: datetime) -> bool:
        """Within the window (inclusive) of the ticket's last activity and not Closed."""
        if ticket.status == TicketStatus.CLOSED:
            return False
        return as_utc(now) - as_utc(ticket.last_activity_at) <= self._append_window

    def delete_ticket(
        self, tickets: Iterable[SupportTicket], ticket_id: str
    ) -> List[SupportTicket]:
        return [t for t in tickets if t.id != ticket_id]

    def delete_message(
        self, tickets: Iterable[SupportTicket], ticket_id: str, message_id: str
    ) -> List[SupportTicket]:
        """Remove one message; a ticket left without messages is removed too."""
        result: List[SupportTicket] = []
        for ticket in tickets:
            if ticket.id != ticket_id:
                result.append(ticket)
                continue
            remaining = [m for m in ticket.messages if m.id != message_id]
            if remaining:
                result.append(ticket.model_copy(update={"messages": remaining}))
        return result

    def update_status(
        self, tickets: Iterable[SupportTicket], ticket_id: str, status: TicketStatus
    ) -> List[SupportTicket]:
        return [
            t.model_copy(update={"status": TicketStatus(status)}) if t.id == ticket_id else t
            for t in tickets
        ]

    def _build_message(
        self, customer_key: str, msg_input: TicketMessageInput, now: datetime
    ) -> TicketMessage:
        return TicketMessage(
            id=self._new_id(),
            customer_key=customer_key,
            channel=msg_input.channel,
            customer_text=msg_input.customer_text or "",
            agent_reply_text=msg_input.agent_reply_text or "",
            order_id=msg_input.order_id or "",
            product_id=msg_input.product_id or "",
            product_name=msg_input.product_name or "",
            product_amazon_id=msg_input.product_amazon_id or "",
            created_at=now,
            customer_analysis=msg_input.customer_analysis,
            agent_analysis=msg_input.agent_analysis,
            external=dict(msg_input.external or {}),
        )

    def _append(
        self,
        ticket: SupportTicket,
        message: TicketMessage,
        msg_input: TicketMessageInput,
        email: str,
        now: datetime,
    ) -> SupportTicket:
        analysis = msg_input.customer_analysis
        merged = merge_ticket_fields(
            existing={
                "customer_name": ticket.customer_name,
                "customer_email": ticket.customer_email,
                "root_cause_primary": ticket.root_cause_primary,
                "root_cause_secondary": ticket.root_cause_secondary,
                "replacement_requested": ticket.replacement_requested,
                "troubleshooting_applied": ticket.troubleshooting_applied,
                "severity": ticket.severity,
            },
            incoming={
                "customer_name": msg_input.customer_name,
                "customer_email": email,
                "root_cause_primary": analysis.root_cause_primary,
                "root_cause_secondary": analysis.root_cause_secondary,
                "replacement_requested": analysis.replacement_requested,
                "troubleshooting_applied": analysis.troubleshooting_applied,
                "severity": analysis.severity,
            },
        )
        status = TicketStatus.REOPENED if ticket.status in REOPEN_FROM else ticket.status
        return ticket.model_copy(
            update={
                **merged,
                "status": status,
                "last_activity_at": now,
                "messages": [message, *ticket.messages],
            }
        )

    def _create(
        self,
        customer_key: str,
        message: TicketMessage,
        msg_input: TicketMessageInput,
        email: str,
        now: datetime,
    ) -> SupportTicket:
        analysis = msg_input.customer_analysis
        return SupportTicket(
            id=self._new_id(),
            customer_key=customer_key,
            customer_name=msg_input.customer_name or "",
            customer_email=email,
            created_at=now,
            last_activity_at=now,
            status=analysis.suggested_status or TicketStatus.OPEN,
            severity=analysis.severity or Severity.NORMAL,
            root_cause_primary=analysis.root_cause_primary or UNCATEGORIZED,
            root_cause_secondary=analysis.root_cause_secondary or "",
            replacement_requested=bool(analysis.replacement_requested),
            troubleshooting_applied=bool(analysis.troubleshooting_applied),
            messages=[message],
        )


_default_reconciler = TicketReconciler()


def fold(
    tickets: Iterable[SupportTicket],
    msg_input: TicketMessageInput,
    now: datetime,
) -> List[SupportTicket]:
    """fold(tickets, input, now) -> tickets' with the default 7-day window."""
    return _default_reconciler.fold(tickets, msg_input, now)
