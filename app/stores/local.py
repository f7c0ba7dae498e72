"""JSON file store: the local safety cache, plus the legacy issue file reader."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional

from app.infra.logging_config import get_logger
from app.schemas.ticket import SupportTicket
from app.stores.base import parse_tickets

logger = get_logger("stores.local")


def _read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to read %s: %s", path, e)
        return None


class LocalTicketStore:
    """Stores the whole ticket set as one JSON array in camelCase layout."""

    def __init__(self, path: str | Path, legacy_path: str | Path | None = None):
        self.path = Path(path)
        self.legacy_path = Path(legacy_path) if legacy_path else None

    def load_all(self) -> Optional[List[SupportTicket]]:
        raw = _read_json(self.path)
        if not isinstance(raw, list):
            return None
        return parse_tickets(raw, str(self.path))

    def save_all(self, tickets: List[SupportTicket]) -> bool:
        payload = [t.to_storage_dict() for t in tickets]
        tmp: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            return False
        return True

    def load_legacy_issues(self) -> Optional[List[Any]]:
        """Raw records of the older flat issue file, or None when absent."""
        if self.legacy_path is None:
            return None
        raw = _read_json(self.legacy_path)
        if not isinstance(raw, list):
            return None
        return raw
