"""InboxService: dedups pushed mailbox items, analyzes each new thread, folds it."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from app.adapters.email_thread import EmailThreadAdapter
from app.adapters.inbox_cursor import InboxCursor, group_threads
from app.exceptions import AnalysisError, NoRelevantContentError
from app.infra.logging_config import get_logger
from app.schemas.inbox import InboxItem
from app.services.ticket_manager import TicketManager

logger = get_logger("inbox_service")


class ThreadFailure(BaseModel):
    thread_id: str
    error: str


class InboxIngestResult(BaseModel):
    accepted: int = 0
    ticket_ids: List[str] = Field(default_factory=list)
    failures: List[ThreadFailure] = Field(default_factory=list)


class InboxService:
    """
    Applies the inbox cursor before anything reaches the ticket core.

    Items already seen, older than the cursor, or in hidden threads are dropped.
    Each remaining thread is analyzed once. A thread whose analysis fails is
    reported, nothing from it is folded, and its items stay unseen so the next
    batch retries it.
    """

    def __init__(
        self,
        manager: TicketManager,
        cursor_path: Optional[str | Path] = None,
        seen_limit: int = 2500,
        hidden_limit: int = 5000,
    ) -> None:
        self.manager = manager
        self.cursor_path = Path(cursor_path) if cursor_path else None
        self.adapter = EmailThreadAdapter()
        self.cursor = self._load_cursor()
        self.cursor.seen_limit = seen_limit
        self.cursor.hidden_limit = hidden_limit
        self._lock = asyncio.Lock()

    def _load_cursor(self) -> InboxCursor:
        if self.cursor_path is None or not self.cursor_path.exists():
            return InboxCursor()
        try:
            return InboxCursor.model_validate_json(
                self.cursor_path.read_text(encoding="utf-8")
            )
        except (OSError, ValidationError) as e:
            logger.error("Failed to read inbox cursor %s: %s", self.cursor_path, e)
            return InboxCursor()

    def _save_cursor(self) -> None:
        if self.cursor_path is None:
            return
        tmp: Optional[str] = None
        try:
            self.cursor_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.cursor_path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.cursor.model_dump(mode="json"), f)
            os.replace(tmp, self.cursor_path)
        except OSError as e:
            logger.error("Failed to write inbox cursor %s: %s", self.cursor_path, e)
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)

    async def ingest_items(self, items: List[InboxItem]) -> InboxIngestResult:
        async with self._lock:
            fresh = self.cursor.select(items)
            result = InboxIngestResult(accepted=len(fresh))
            done: List[InboxItem] = []
            failed: List[InboxItem] = []
            try:
                for thread in group_threads(fresh):
                    if not any(not m.is_from_me for m in thread.messages):
                        done.extend(thread.messages)
                        continue
                    try:
                        ticket = await self.manager.analyze_and_ingest(
                            self.adapter, thread
                        )
                    except NoRelevantContentError as e:
                        done.extend(thread.messages)
                        result.failures.append(
                            ThreadFailure(thread_id=thread.thread_id, error=str(e))
                        )
                        continue
                    except AnalysisError as e:
                        failed.extend(thread.messages)
                        result.failures.append(
                            ThreadFailure(thread_id=thread.thread_id, error=str(e))
                        )
                        continue
                    done.extend(thread.messages)
                    result.ticket_ids.append(ticket.id)
            finally:
                # Failed threads stay eligible for the next batch.
                ceiling = min((m.date_ms for m in failed), default=None)
                self.cursor.commit(done, ceiling_ms=ceiling)
                self._save_cursor()

        logger.info(
            "Inbox batch: %d new items, %d folded, %d failed",
            result.accepted,
            len(result.ticket_ids),
            len(result.failures),
        )
        return result

    async def hide_thread(self, thread_id: str) -> None:
        async with self._lock:
            self.cursor.hide_thread(thread_id)
            self._save_cursor()
