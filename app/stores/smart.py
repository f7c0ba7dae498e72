"""Local-first writes with an optional remote store; remote-first reads."""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from app.infra.logging_config import get_logger
from app.schemas.ticket import SupportTicket
from app.stores.local import LocalTicketStore
from app.stores.remote import RemoteTicketStore

logger = get_logger("stores.smart")

LoadSource = Literal["remote", "local", "empty"]
SaveTarget = Literal["remote", "local"]


class SmartTicketStore:
    def __init__(
        self,
        local: LocalTicketStore,
        remote: Optional[RemoteTicketStore] = None,
    ):
        self.local = local
        self.remote = remote

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def load_shared_first(self) -> Tuple[List[SupportTicket], LoadSource]:
        """Remote when it answers, else the local cache, else empty."""
        if self.remote is not None:
            remote = self.remote.load_all()
            if remote is not None:
                return remote, "remote"

        local = self.local.load_all()
        if local is not None:
            return local, "local"

        return [], "empty"

    def load_all(self) -> Optional[List[SupportTicket]]:
        tickets, source = self.load_shared_first()
        return None if source == "empty" else tickets

    def save(self, tickets: List[SupportTicket]) -> SaveTarget:
        """Write the local cache, then the remote; report where it landed."""
        if not self.local.save_all(tickets):
            logger.warning("Local cache write failed")
        if self.remote is not None:
            if self.remote.save_all(tickets):
                return "remote"
            logger.warning("Remote save failed; tickets kept in local cache only")
        return "local"

    def save_all(self, tickets: List[SupportTicket]) -> bool:
        if self.remote is not None:
            return self.save(tickets) == "remote"
        return self.local.save_all(tickets)
