"""One-time conversion of flat v1 issue records into tickets grouped by customer email."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.constants.taxonomy import UNCATEGORIZED
from app.core.customer_key import normalize_email, resolve_customer_key
from app.infra.logging_config import get_logger
from app.schemas.ticket import (
    Channel,
    CustomerAnalysis,
    Sentiment,
    Severity,
    SupportTicket,
    TicketMessage,
    TicketStatus,
)

logger = get_logger("legacy_migration")

LEGACY_SOLVED = "Solved"
_DATETIME = TypeAdapter(datetime)


class LegacyIssue(BaseModel):
    """A v1 issue record. Lenient: missing or odd fields fall back to defaults."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    customer_name: str = ""
    customer_email: str = ""
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    status: str = ""
    problem_text: str = ""
    summary: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    positives: list[str] = Field(default_factory=list)

    @field_validator(
        "customer_name",
        "customer_email",
        "status",
        "problem_text",
        "summary",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("sentiment", mode="before")
    @classmethod
    def _unknown_sentiment(cls, value: Any) -> Any:
        if isinstance(value, str) and value in {s.value for s in Sentiment}:
            return value
        return Sentiment.NEUTRAL

    @field_validator("positives", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @field_validator("created_at", mode="before")
    @classmethod
    def _readable_date(cls, value: Any) -> Any:
        if value is None:
            return datetime.now(timezone.utc)
        try:
            return _DATETIME.validate_python(value)
        except ValidationError:
            logger.warning("Unreadable legacy createdAt %r, using now", value)
            return datetime.now(timezone.utc)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def _legacy_status(status: str) -> TicketStatus:
    return TicketStatus.RESOLVED if status == LEGACY_SOLVED else TicketStatus.OPEN


def _to_message(issue: LegacyIssue, customer_key: str) -> TicketMessage:
    return TicketMessage(
        id=str(uuid4()),
        customer_key=customer_key,
        channel=Channel.MANUAL,
        customer_text=issue.problem_text,
        agent_reply_text="",
        created_at=issue.created_at,
        customer_analysis=CustomerAnalysis(
            text=issue.problem_text,
            root_cause_primary=UNCATEGORIZED,
            sentiment=issue.sentiment,
            severity=Severity.NORMAL,
            suggested_status=_legacy_status(issue.status),
            summary=issue.summary,
            positives=issue.positives,
        ),
    )


def parse_legacy_issues(records: Iterable[Any]) -> List[LegacyIssue]:
    """Validate raw records, skipping the ones that are not readable objects."""
    issues: List[LegacyIssue] = []
    for record in records or []:
        if isinstance(record, LegacyIssue):
            issues.append(record)
        elif isinstance(record, dict):
            try:
                issues.append(LegacyIssue.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping unreadable legacy record: %s", e)
        else:
            logger.warning("Skipping legacy record that is not an object: %r", record)
    return issues


def migrate_legacy_issues(records: Iterable[Any]) -> List[SupportTicket]:
    """
    Group legacy records by normalized email and build one ticket per customer.

    Records are processed newest first; the newest record of a group sets the
    ticket fields (status mapped Solved -> Resolved, anything else -> Open,
    severity Normal, root cause Uncategorized). Every record becomes a Manual
    message. Messages end sorted newest first and last_activity_at is the
    newest message timestamp.
    """
    issues = sorted(
        parse_legacy_issues(records), key=lambda i: i.created_at, reverse=True
    )
    groups: dict[str, List[LegacyIssue]] = {}
    for issue in issues:
        key = resolve_customer_key(normalize_email(issue.customer_email))
        groups.setdefault(key, []).append(issue)

    tickets: List[SupportTicket] = []
    for key, group in groups.items():
        newest = group[0]
        ordered = sorted(
            (_to_message(issue, key) for issue in group),
            key=lambda m: m.created_at,
            reverse=True,
        )
        tickets.append(
            SupportTicket(
                id=str(uuid4()),
                customer_key=key,
                customer_name=newest.customer_name,
                customer_email=normalize_email(newest.customer_email),
                created_at=newest.created_at,
                last_activity_at=ordered[0].created_at,
                status=_legacy_status(newest.status),
                severity=Severity.NORMAL,
                root_cause_primary=UNCATEGORIZED,
                root_cause_secondary="",
                replacement_requested=False,
                troubleshooting_applied=False,
                messages=ordered,
            )
        )
    logger.info("Migrated %d legacy issues into %d tickets", len(issues), len(tickets))
    return tickets
