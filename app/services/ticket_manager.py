"""TicketManager: the single writer around the pure reconciler and the ticket store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, List, Optional

from app.adapters.base import BaseChannelAdapter
from app.core.ticket_order import sort_by_activity
from app.exceptions import AnalysisError, TicketNotFoundError
from app.infra.logging_config import get_logger
from app.schemas.ticket import SupportTicket, TicketMessageInput, TicketStatus
from app.services.legacy_migration import migrate_legacy_issues
from app.services.ticket_reconciler import TicketReconciler
from app.stores.smart import LoadSource, SmartTicketStore
from app.workers.analysis import ConversationAnalyzer

logger = get_logger("ticket_manager")


class TicketManager:
    """
    Holds the in-memory ticket set and serializes every change to it.

    Each write is load (in memory) -> reconcile -> persist under one lock.
    Persistence is best-effort: a failed save is logged and the in-memory set
    stays authoritative until the next successful save.
    """

    def __init__(
        self,
        store: SmartTicketStore,
        analyzer: Optional[ConversationAnalyzer] = None,
        reconciler: Optional[TicketReconciler] = None,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.reconciler = reconciler or TicketReconciler()
        self._tickets: List[SupportTicket] = []
        self._lock = asyncio.Lock()
        self.booted = False

    async def boot(self) -> LoadSource:
        """Load shared-first; on first run migrate the legacy issue file once."""
        async with self._lock:
            tickets, source = await asyncio.to_thread(self.store.load_shared_first)
            if source == "remote":
                logger.info("Loaded %d tickets from remote storage", len(tickets))
                self._tickets = tickets
            elif source == "local":
                logger.info("Loaded %d tickets from local storage", len(tickets))
                self._tickets = tickets
                if self.store.remote_enabled and tickets:
                    await self._persist()
            else:
                self._tickets = self._migrate_legacy()
                await self._persist()
            self.booted = True
            return source

    def _migrate_legacy(self) -> List[SupportTicket]:
        legacy = self.store.local.load_legacy_issues()
        if not legacy:
            return []
        migrated = migrate_legacy_issues(legacy)
        logger.info("Migrated %d legacy tickets", len(migrated))
        return migrated

    async def _persist(self) -> None:
        # File and database writes run off the event loop; the lock is still held.
        target = await asyncio.to_thread(self.store.save, list(self._tickets))
        if self.store.remote_enabled and target != "remote":
            logger.warning("Tickets saved locally only (%d tickets)", len(self._tickets))

    async def ingest(
        self, msg_input: TicketMessageInput, now: Optional[datetime] = None
    ) -> SupportTicket:
        """Fold one message and persist; returns the ticket it landed in."""
        async with self._lock:
            now = now or datetime.now(timezone.utc)
            known = {m.id for t in self._tickets for m in t.messages}
            self._tickets = self.reconciler.fold(self._tickets, msg_input, now)
            await self._persist()
            ticket = self._ticket_with_new_message(known)
        logger.info(
            "Ingested %s message into ticket %s (%d messages)",
            msg_input.channel.value,
            ticket.id,
            len(ticket.messages),
        )
        return ticket

    def _ticket_with_new_message(self, known: set[str]) -> SupportTicket:
        # the folded message is always the first message of its ticket
        for ticket in self._tickets:
            if ticket.messages and ticket.messages[0].id not in known:
                return ticket
        raise TicketNotFoundError("Folded ticket not found")

    async def analyze_and_ingest(
        self, adapter: BaseChannelAdapter, raw: Any, now: Optional[datetime] = None
    ) -> SupportTicket:
        """
        Analyze a raw channel record and fold it.

        Raises AnalysisError (and subclasses) without folding anything when the
        analysis fails.
        """
        if self.analyzer is None:
            raise AnalysisError("No analyzer configured")
        try:
            msg_input = await adapter.build_input(raw, self.analyzer)
        except AnalysisError as e:
            logger.error("Analysis failed for %s input: %s", adapter.channel.value, e)
            raise
        return await self.ingest(msg_input, now)

    async def delete_ticket(self, ticket_id: str) -> None:
        async with self._lock:
            self.get_ticket(ticket_id)
            self._tickets = self.reconciler.delete_ticket(self._tickets, ticket_id)
            await self._persist()

    async def delete_message(
        self, ticket_id: str, message_id: str
    ) -> Optional[SupportTicket]:
        """Remove a message; returns the ticket, or None if it was removed with it."""
        async with self._lock:
            ticket = self.get_ticket(ticket_id)
            if not any(m.id == message_id for m in ticket.messages):
                raise TicketNotFoundError(f"Message {message_id} not found")
            self._tickets = self.reconciler.delete_message(
                self._tickets, ticket_id, message_id
            )
            await self._persist()
            return self._find(ticket_id)

    async def update_status(
        self, ticket_id: str, status: TicketStatus
    ) -> SupportTicket:
        async with self._lock:
            self.get_ticket(ticket_id)
            self._tickets = self.reconciler.update_status(
                self._tickets, ticket_id, status
            )
            await self._persist()
            return self.get_ticket(ticket_id)

    def _find(self, ticket_id: str) -> Optional[SupportTicket]:
        return next((t for t in self._tickets if t.id == ticket_id), None)

    def get_ticket(self, ticket_id: str) -> SupportTicket:
        ticket = self._find(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    def list_tickets(
        self,
        customer_key: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[SupportTicket]:
        """Tickets by newest activity, optionally filtered."""
        tickets = self._tickets
        if customer_key is not None:
            tickets = [t for t in tickets if t.customer_key == customer_key]
        if status is not None:
            tickets = [t for t in tickets if t.status == status]
        return sort_by_activity(tickets)

    def tickets_for_customer(self, customer_key: str) -> List[SupportTicket]:
        return self.list_tickets(customer_key=customer_key)
