"""Tests for TicketReconciler (fold and operator edits)."""

from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.ticket import Severity, TicketStatus
from app.services.ticket_reconciler import (
    APPEND_WINDOW,
    TicketReconciler,
    fold,
    sort_by_activity,
)
from tests.fixtures.ticket_fixtures import make_input

T0 = datetime(2026, 1, 5, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def reconciler():
    counter = iter(range(1, 1000))
    return TicketReconciler(id_factory=lambda: f"id-{next(counter)}")


def _only(tickets, customer_key):
    return [t for t in tickets if t.customer_key == customer_key]


def test_first_fold_creates_open_ticket():
    """Scenario 1: empty set -> one ticket carrying the analysis fields."""
    tickets = fold(
        [],
        make_input(email="a@x.com", root_cause="Valve Leak", severity=Severity.URGENT),
        T0,
    )
    assert len(tickets) == 1
    ticket = tickets[0]
    assert ticket.customer_key == "email:a@x.com"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.severity == Severity.URGENT
    assert ticket.root_cause_primary == "Valve Leak"
    assert ticket.created_at == T0
    assert ticket.last_activity_at == T0
    assert len(ticket.messages) == 1
    assert ticket.messages[0].created_at == T0


def test_scenarios_escalate_reopen_and_split():
    """Scenarios 2-4 in sequence on one customer."""
    tickets = fold(
        [],
        make_input(email="a@x.com", root_cause="Valve Leak", severity=Severity.URGENT),
        T0,
    )

    # 2: escalates severity, root cause stays
    tickets = fold(
        tickets,
        make_input(email="a@x.com", root_cause="Noise", severity=Severity.CRITICAL),
        T0 + timedelta(days=1),
    )
    assert len(tickets) == 1
    first = tickets[0]
    assert first.severity == Severity.CRITICAL
    assert first.root_cause_primary == "Valve Leak"
    assert len(first.messages) == 2
    assert first.last_activity_at == T0 + timedelta(days=1)

    # 3: resolved ticket reopens on append
    tickets = TicketReconciler().update_status(
        tickets, first.id, TicketStatus.RESOLVED
    )
    tickets = fold(tickets, make_input(email="a@x.com"), T0 + timedelta(days=3))
    assert len(tickets) == 1
    first = tickets[0]
    assert first.status == TicketStatus.REOPENED
    assert len(first.messages) == 3

    # 4: more than 7 days after last activity opens a second ticket
    later = first.last_activity_at + timedelta(days=8)
    tickets = fold(tickets, make_input(email="a@x.com"), later)
    assert len(tickets) == 2
    new, old = sort_by_activity(tickets)
    assert new.id != old.id
    assert new.customer_key == old.customer_key
    assert len(new.messages) == 1
    assert old == first


def test_anonymous_folds_never_merge():
    """Scenario 5: no email and no fallback -> distinct tickets and keys."""
    tickets = fold([], make_input(email="", name=""), T0)
    tickets = fold(tickets, make_input(email="", name=""), T0 + timedelta(minutes=1))
    assert len(tickets) == 2
    assert tickets[0].customer_key != tickets[1].customer_key
    assert all(t.customer_key.startswith("anon:") for t in tickets)


def test_fallback_id_groups_guest_messages(reconciler):
    tickets = reconciler.fold([], make_input(email="", fallback_id="sess-9"), T0)
    tickets = reconciler.fold(
        tickets, make_input(email="", fallback_id="sess-9"), T0 + timedelta(hours=2)
    )
    assert len(tickets) == 1
    assert tickets[0].customer_key == "fallback:sess-9"
    assert len(tickets[0].messages) == 2


def test_email_normalization_groups_messages(reconciler):
    tickets = reconciler.fold([], make_input(email="  Jane@Example.com"), T0)
    tickets = reconciler.fold(
        tickets, make_input(email="jane@example.COM "), T0 + timedelta(hours=1)
    )
    assert len(tickets) == 1
    assert tickets[0].customer_email == "jane@example.com"


def test_window_boundary_is_inclusive(reconciler):
    """Exactly 7 days appends; one millisecond more creates."""
    start = reconciler.fold([], make_input(), T0)

    at_edge = reconciler.fold(start, make_input(), T0 + APPEND_WINDOW)
    assert len(at_edge) == 1
    assert len(at_edge[0].messages) == 2

    past_edge = reconciler.fold(
        start, make_input(), T0 + APPEND_WINDOW + timedelta(milliseconds=1)
    )
    assert len(past_edge) == 2


def test_closed_ticket_never_receives_append(reconciler):
    tickets = reconciler.fold([], make_input(), T0)
    tickets = reconciler.update_status(tickets, tickets[0].id, TicketStatus.CLOSED)
    result = reconciler.fold(tickets, make_input(), T0 + timedelta(seconds=1))
    assert len(result) == 2
    closed = next(t for t in result if t.status == TicketStatus.CLOSED)
    assert len(closed.messages) == 1


def test_append_targets_latest_ticket_for_customer(reconciler, setup_tickets):
    now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    result = reconciler.fold(setup_tickets, make_input(), now)
    by_id = {t.id: t for t in result}
    assert len(by_id["t-jane-new"].messages) == 3
    assert by_id["t-jane-old"] == next(t for t in setup_tickets if t.id == "t-jane-old")
    assert by_id["t-omar"] == next(t for t in setup_tickets if t.id == "t-omar")


def test_severity_never_decreases(reconciler):
    sequence = [
        Severity.URGENT,
        Severity.NORMAL,
        Severity.CRITICAL,
        Severity.URGENT,
        Severity.NORMAL,
    ]
    tickets = []
    seen_max = 0
    for i, severity in enumerate(sequence):
        tickets = reconciler.fold(
            tickets, make_input(severity=severity), T0 + timedelta(hours=i)
        )
        seen_max = max(seen_max, severity.rank)
        assert tickets[0].severity.rank == seen_max


def test_root_cause_uncategorized_is_replaced_then_sticky(reconciler):
    tickets = reconciler.fold([], make_input(root_cause="Uncategorized"), T0)
    assert tickets[0].root_cause_primary == "Uncategorized"

    tickets = reconciler.fold(
        tickets, make_input(root_cause="Valve Problem"), T0 + timedelta(hours=1)
    )
    assert tickets[0].root_cause_primary == "Valve Problem"

    tickets = reconciler.fold(
        tickets, make_input(root_cause="Comfort"), T0 + timedelta(hours=2)
    )
    assert tickets[0].root_cause_primary == "Valve Problem"


def test_sticky_flags_and_identity_fields(reconciler):
    tickets = reconciler.fold(
        [], make_input(name="Jane", replacement_requested=True), T0
    )
    tickets = reconciler.fold(
        tickets,
        make_input(name="", troubleshooting_applied=True, root_cause_secondary="Pump"),
        T0 + timedelta(hours=1),
    )
    ticket = tickets[0]
    assert ticket.customer_name == "Jane"
    assert ticket.replacement_requested is True
    assert ticket.troubleshooting_applied is True
    assert ticket.root_cause_secondary == "Pump"

    tickets = reconciler.fold(
        tickets, make_input(name="Jane Doe"), T0 + timedelta(hours=2)
    )
    assert tickets[0].customer_name == "Jane Doe"
    assert tickets[0].replacement_requested is True


def test_n_folds_keep_messages_newest_first(reconciler):
    tickets = []
    for i in range(5):
        tickets = reconciler.fold(tickets, make_input(), T0 + timedelta(days=i))
    assert len(tickets) == 1
    created = [m.created_at for m in tickets[0].messages]
    assert len(created) == 5
    assert created == sorted(created, reverse=True)
    assert len({m.id for m in tickets[0].messages}) == 5


def test_create_uses_suggested_status(reconciler):
    tickets = reconciler.fold(
        [], make_input(suggested_status=TicketStatus.TROUBLESHOOTING), T0
    )
    assert tickets[0].status == TicketStatus.TROUBLESHOOTING


def test_append_does_not_apply_suggested_status(reconciler):
    tickets = reconciler.fold([], make_input(), T0)
    tickets = reconciler.fold(
        tickets,
        make_input(suggested_status=TicketStatus.WAITING_CUSTOMER),
        T0 + timedelta(hours=1),
    )
    assert tickets[0].status == TicketStatus.OPEN


def test_fold_does_not_mutate_input(reconciler):
    tickets = reconciler.fold([], make_input(), T0)
    snapshot = [t.model_copy(deep=True) for t in tickets]
    reconciler.fold(tickets, make_input(), T0 + timedelta(hours=1))
    assert tickets == snapshot


def test_naive_now_is_treated_as_utc(reconciler):
    tickets = reconciler.fold([], make_input(), T0)
    naive = (T0 + timedelta(days=2)).replace(tzinfo=None)
    tickets = reconciler.fold(tickets, make_input(), naive)
    assert len(tickets) == 1
    assert tickets[0].last_activity_at == T0 + timedelta(days=2)


def test_message_defaults_for_absent_fields(reconciler):
    tickets = reconciler.fold([], make_input(), T0)
    message = tickets[0].messages[0]
    assert message.agent_reply_text == ""
    assert message.order_id == ""
    assert message.product_id == ""


def test_delete_message_keeps_ticket_with_remaining(reconciler, setup_tickets):
    result = reconciler.delete_message(setup_tickets, "t-jane-new", "t-jane-new-m0")
    ticket = next(t for t in result if t.id == "t-jane-new")
    assert [m.id for m in ticket.messages] == ["t-jane-new-m1"]
    assert len(result) == 3


def test_delete_last_message_removes_ticket(reconciler, setup_tickets):
    result = reconciler.delete_message(setup_tickets, "t-omar", "t-omar-m0")
    assert "t-omar" not in {t.id for t in result}
    assert len(result) == 2


def test_edits_with_unknown_ids_leave_set_unchanged(reconciler, setup_tickets):
    assert reconciler.delete_ticket(setup_tickets, "missing") == setup_tickets
    assert reconciler.delete_message(setup_tickets, "missing", "m") == setup_tickets
    assert (
        reconciler.update_status(setup_tickets, "missing", TicketStatus.CLOSED)
        == setup_tickets
    )


def test_delete_ticket(reconciler, setup_tickets):
    result = reconciler.delete_ticket(setup_tickets, "t-jane-old")
    assert [t.id for t in result] == ["t-jane-new", "t-omar"]
