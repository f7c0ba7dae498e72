"""Dedup and time-window bookkeeping for polled inboxes, applied before analysis."""

from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from app.schemas.inbox import EmailThread, InboxItem

SEEN_LIMIT = 2500
HIDDEN_LIMIT = 5000


def uniq_push_limited(values: List[str], value: str, limit: int) -> List[str]:
    """Prepend value unless present; keep at most `limit` newest entries."""
    if value in values:
        return values
    return [value, *values][:limit]


class InboxCursor(BaseModel):
    """
    Poll state for one mailbox.

    last_seen_ms is the newest message timestamp accepted so far; seen_message_ids
    and hidden_thread_ids are bounded newest-first lists. Serializable as-is.
    """

    last_seen_ms: int = 0
    seen_message_ids: List[str] = Field(default_factory=list)
    hidden_thread_ids: List[str] = Field(default_factory=list)
    seen_limit: int = SEEN_LIMIT
    hidden_limit: int = HIDDEN_LIMIT

    def select(self, items: Iterable[InboxItem]) -> List[InboxItem]:
        """
        Return the items not seen before, oldest first, without touching the cursor.

        Skips hidden threads, already-seen message ids, duplicates within the
        batch, and anything older than last_seen_ms.
        """
        fresh: List[InboxItem] = []
        batch_ids: set[str] = set()
        for item in sorted(items, key=lambda i: i.date_ms):
            if item.thread_id in self.hidden_thread_ids:
                continue
            if item.message_id in self.seen_message_ids or item.message_id in batch_ids:
                continue
            if item.date_ms < self.last_seen_ms:
                continue
            batch_ids.add(item.message_id)
            fresh.append(item)
        return fresh

    def commit(
        self, items: Iterable[InboxItem], ceiling_ms: Optional[int] = None
    ) -> None:
        """
        Mark items as seen and move last_seen_ms up to the newest of them.

        last_seen_ms never passes ceiling_ms, so items at or after the ceiling
        stay eligible for a later batch.
        """
        newest = self.last_seen_ms
        for item in sorted(items, key=lambda i: i.date_ms):
            self.seen_message_ids = uniq_push_limited(
                self.seen_message_ids, item.message_id, self.seen_limit
            )
            newest = max(newest, item.date_ms)
        if ceiling_ms is not None:
            newest = min(newest, ceiling_ms)
        self.last_seen_ms = max(self.last_seen_ms, newest)

    def accept(self, items: Iterable[InboxItem]) -> List[InboxItem]:
        """Select the fresh items and commit all of them."""
        fresh = self.select(items)
        self.commit(fresh)
        return fresh

    def hide_thread(self, thread_id: str) -> None:
        self.hidden_thread_ids = uniq_push_limited(
            self.hidden_thread_ids, thread_id, self.hidden_limit
        )

    def is_hidden(self, thread_id: str) -> bool:
        return thread_id in self.hidden_thread_ids


def group_threads(items: Iterable[InboxItem]) -> List[EmailThread]:
    """Group accepted items by thread, messages oldest first, threads by newest message."""
    by_thread: dict[str, List[InboxItem]] = {}
    for item in items:
        by_thread.setdefault(item.thread_id, []).append(item)
    threads = [
        EmailThread(thread_id=tid, messages=sorted(msgs, key=lambda m: m.date_ms))
        for tid, msgs in by_thread.items()
    ]
    return sorted(threads, key=lambda t: t.messages[-1].date_ms, reverse=True)
