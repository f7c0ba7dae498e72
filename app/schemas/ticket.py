"""Pydantic schemas for support tickets and the messages folded into them."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.constants.taxonomy import UNCATEGORIZED


class Channel(str, Enum):
    """Channels a ticket message can arrive through."""

    MANUAL = "Manual"
    EMAIL = "Email"
    CHAT = "Chat"
    AMAZON = "Amazon"
    WHATSAPP = "WhatsApp"
    GMAIL = "Gmail"


class TicketStatus(str, Enum):
    OPEN = "Open"
    TROUBLESHOOTING = "Troubleshooting"
    WAITING_CUSTOMER = "Waiting Customer"
    RESOLVED = "Resolved"
    REPLACEMENT_IN_PROGRESS = "Replacement in progress"
    CLOSED = "Closed"
    REOPENED = "Reopened"


class Severity(str, Enum):
    """Totally ordered: Normal < Urgent < Critical."""

    NORMAL = "Normal"
    URGENT = "Urgent"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK: dict[Severity, int] = {
    Severity.NORMAL: 1,
    Severity.URGENT: 2,
    Severity.CRITICAL: 3,
}


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


# -----------------------------------------------------------------------------
# Analysis records (produced by the analysis worker)
# -----------------------------------------------------------------------------


class _CamelModel(BaseModel):
    """Accepts snake_case or camelCase; dumps camelCase with by_alias=True."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerAnalysis(_CamelModel):
    """Structured analysis of the customer side of a conversation."""

    text: str = ""
    root_cause_primary: str = UNCATEGORIZED
    root_cause_secondary: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    severity: Severity = Severity.NORMAL
    suggested_status: Optional[TicketStatus] = None
    summary: str = ""
    positives: list[str] = Field(default_factory=list)
    negative_points: list[str] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)
    positive_tags: list[str] = Field(default_factory=list)
    negative_tags: list[str] = Field(default_factory=list)
    pain_point_tags: list[str] = Field(default_factory=list)
    replacement_requested: bool = False
    troubleshooting_applied: bool = False


class AgentReplyAnalysis(_CamelModel):
    """QA evaluation of the agent replies in a conversation."""

    overall_quality_score: int = Field(default=0, ge=0, le=100)
    summary: str = ""
    positive_themes: list[str] = Field(default_factory=list)
    negative_themes: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Message input and stored messages
# -----------------------------------------------------------------------------


class TicketMessageInput(_CamelModel):
    """One conversational turn, normalized by a channel adapter, ready to fold."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    customer_name: str = ""
    customer_email: str = ""
    customer_fallback_id: Optional[str] = None
    channel: Channel = Channel.MANUAL
    customer_text: str = ""
    agent_reply_text: Optional[str] = None
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_amazon_id: Optional[str] = None
    customer_analysis: CustomerAnalysis
    agent_analysis: Optional[AgentReplyAnalysis] = None
    external: dict[str, Any] = Field(default_factory=dict)


class TicketMessage(_CamelModel):
    """Immutable record of one folded turn; owned by exactly one ticket."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    customer_key: str
    channel: Channel = Channel.MANUAL
    customer_text: str = ""
    agent_reply_text: str = ""
    order_id: str = ""
    product_id: str = ""
    product_name: str = ""
    product_amazon_id: str = ""
    created_at: datetime
    customer_analysis: CustomerAnalysis = Field(default_factory=CustomerAnalysis)
    agent_analysis: Optional[AgentReplyAnalysis] = None
    external: dict[str, Any] = Field(default_factory=dict)


class SupportTicket(_CamelModel):
    """Aggregate support case for one customer; messages are newest first."""

    id: str
    customer_key: str
    customer_name: str = ""
    customer_email: str = ""
    created_at: datetime
    last_activity_at: datetime
    status: TicketStatus = TicketStatus.OPEN
    severity: Severity = Severity.NORMAL
    root_cause_primary: str = UNCATEGORIZED
    root_cause_secondary: str = ""
    replacement_requested: bool = False
    troubleshooting_applied: bool = False
    messages: list[TicketMessage] = Field(min_length=1)

    def to_storage_dict(self) -> dict[str, Any]:
        """JSON-safe dict in the stored (camelCase) layout."""
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------------------------------------------------------
# API payloads
# -----------------------------------------------------------------------------


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class ManualEntryCreate(BaseModel):
    """Operator form for pasting a conversation."""

    customer_name: str = ""
    customer_email: str = ""
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_amazon_id: Optional[str] = None
    chat_conversation: str = Field(..., min_length=1)
