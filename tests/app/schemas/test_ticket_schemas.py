"""Tests for ticket and inbox schemas."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.schemas.inbox import InboxItem
from app.schemas.ticket import (
    CustomerAnalysis,
    Severity,
    SupportTicket,
    TicketMessageInput,
)


def test_severity_rank_order():
    assert Severity.NORMAL.rank < Severity.URGENT.rank < Severity.CRITICAL.rank


def test_customer_analysis_defaults():
    analysis = CustomerAnalysis()
    assert analysis.root_cause_primary == "Uncategorized"
    assert analysis.severity == Severity.NORMAL
    assert analysis.suggested_status is None
    assert analysis.replacement_requested is False


def test_message_input_requires_analysis_and_is_frozen():
    with pytest.raises(ValidationError):
        TicketMessageInput(customer_email="a@x.com")

    msg = TicketMessageInput(customer_analysis=CustomerAnalysis(text="leak"))
    with pytest.raises(ValidationError):
        msg.customer_email = "b@x.com"


def test_ticket_accepts_stored_camel_case_layout():
    ticket = SupportTicket.model_validate(
        {
            "id": "t1",
            "customerKey": "email:a@x.com",
            "createdAt": "2026-01-01T00:00:00Z",
            "lastActivityAt": "2026-01-02T00:00:00Z",
            "status": "Waiting Customer",
            "severity": "Urgent",
            "rootCausePrimary": "Valve Leak",
            "messages": [
                {
                    "id": "m1",
                    "customerKey": "email:a@x.com",
                    "customerText": "valve leaks",
                    "createdAt": "2026-01-02T00:00:00Z",
                }
            ],
        }
    )
    assert ticket.last_activity_at == datetime(2026, 1, 2, tzinfo=timezone.utc)
    stored = ticket.to_storage_dict()
    assert stored["customerKey"] == "email:a@x.com"
    assert stored["status"] == "Waiting Customer"
    assert "root_cause_primary" not in stored
    assert stored["messages"][0]["customerText"] == "valve leaks"


def test_ticket_requires_at_least_one_message():
    with pytest.raises(ValidationError):
        SupportTicket.model_validate(
            {
                "id": "t1",
                "customerKey": "email:a@x.com",
                "createdAt": "2026-01-01T00:00:00Z",
                "lastActivityAt": "2026-01-01T00:00:00Z",
                "messages": [],
            }
        )


def test_inbox_item_aliases():
    item = InboxItem.model_validate(
        {
            "threadId": "t",
            "messageId": "m",
            "dateISO": "2026-01-01T00:00:00Z",
            "dateMs": 5,
            "isFromMe": True,
        }
    )
    assert item.date_iso == "2026-01-01T00:00:00Z"
    assert item.is_from_me is True
