"""Raw transport records handed to channel adapters (polled mailbox, chat widget)."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InboxAttachmentMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    index: int
    name: str = ""
    content_type: str = "application/octet-stream"
    is_image: bool = False


class InboxItem(BaseModel):
    """One message of a polled mailbox thread."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    thread_id: str
    message_id: str
    date_iso: Optional[str] = Field(default=None, alias="dateISO")
    date_ms: int = 0
    subject: str = ""
    from_raw: str = ""
    from_name: str = ""
    from_email: str = ""
    is_from_me: bool = False
    body_text: str = ""
    has_attachments: bool = False
    attachments: list[InboxAttachmentMeta] = Field(default_factory=list)


class EmailThread(BaseModel):
    thread_id: str
    messages: list[InboxItem] = Field(default_factory=list)


class ChatSession(BaseModel):
    """A chat widget session; the session id identifies guests without an email."""

    session_id: str
    customer_id: Optional[str] = None
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: Optional[str] = None
    order_number: Optional[str] = None
    is_logged_in: bool = False
    shopify_store_url: Optional[str] = None
    status: Literal["active", "closed", "archived"] = "active"
    last_message_at: Optional[datetime] = None


class ChatMessage(BaseModel):
    session_id: str
    message_text: str = ""
    is_from_customer: bool = True
    agent_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ChatTranscript(BaseModel):
    session: ChatSession
    messages: list[ChatMessage] = Field(default_factory=list)
