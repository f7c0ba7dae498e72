"""Per-field merge policies applied when a message is appended to a ticket."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from app.constants.taxonomy import UNCATEGORIZED
from app.schemas.ticket import SEVERITY_RANK, Severity


class MergePolicy(str, Enum):
    OVERWRITE_IF_PRESENT = "overwrite_if_present"
    KEEP_EXISTING_IF_CLASSIFIED = "keep_existing_if_classified"
    KEEP_EXISTING_IF_SET = "keep_existing_if_set"
    OR_ACCUMULATE = "or_accumulate"
    MAX_BY_RANK = "max_by_rank"


def _overwrite_if_present(existing: Any, incoming: Any) -> Any:
    return incoming if incoming else existing


def _keep_existing_if_classified(existing: Any, incoming: Any) -> Any:
    if existing and existing != UNCATEGORIZED:
        return existing
    return incoming or UNCATEGORIZED


def _keep_existing_if_set(existing: Any, incoming: Any) -> Any:
    return existing or incoming or ""


def _or_accumulate(existing: Any, incoming: Any) -> bool:
    return bool(existing) or bool(incoming)


def _max_by_rank(existing: Any, incoming: Any) -> Severity:
    current = Severity(existing) if existing else Severity.NORMAL
    if not incoming:
        return current
    candidate = Severity(incoming)
    # ties keep the existing value
    if SEVERITY_RANK[candidate] > SEVERITY_RANK[current]:
        return candidate
    return current


POLICY_FUNCTIONS: dict[MergePolicy, Callable[[Any, Any], Any]] = {
    MergePolicy.OVERWRITE_IF_PRESENT: _overwrite_if_present,
    MergePolicy.KEEP_EXISTING_IF_CLASSIFIED: _keep_existing_if_classified,
    MergePolicy.KEEP_EXISTING_IF_SET: _keep_existing_if_set,
    MergePolicy.OR_ACCUMULATE: _or_accumulate,
    MergePolicy.MAX_BY_RANK: _max_by_rank,
}

TICKET_MERGE_POLICIES: dict[str, MergePolicy] = {
    "customer_name": MergePolicy.OVERWRITE_IF_PRESENT,
    "customer_email": MergePolicy.OVERWRITE_IF_PRESENT,
    "root_cause_primary": MergePolicy.KEEP_EXISTING_IF_CLASSIFIED,
    "root_cause_secondary": MergePolicy.KEEP_EXISTING_IF_SET,
    "replacement_requested": MergePolicy.OR_ACCUMULATE,
    "troubleshooting_applied": MergePolicy.OR_ACCUMULATE,
    "severity": MergePolicy.MAX_BY_RANK,
}


def apply_policy(policy: MergePolicy, existing: Any, incoming: Any) -> Any:
    return POLICY_FUNCTIONS[policy](existing, incoming)


def merge_ticket_fields(
    existing: dict[str, Any],
    incoming: dict[str, Any],
    policies: dict[str, MergePolicy] = TICKET_MERGE_POLICIES,
) -> dict[str, Any]:
    """
    Merge incoming field values into the existing ones, field by field.

    Only fields named in the policy table are returned; callers apply the result
    as an update on top of the existing ticket.
    """
    return {
        field: apply_policy(policy, existing.get(field), incoming.get(field))
        for field, policy in policies.items()
    }
