"""CustomerState model: one row per customer key holding that customer's tickets."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB

from app.db import Base


class CustomerState(Base):
    """Row per customer; data is the JSON list of that customer's tickets."""

    __tablename__ = "support_intel_state"

    customer_key = Column(String(512), primary_key=True)
    data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
