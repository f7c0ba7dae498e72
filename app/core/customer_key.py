"""Customer key derivation from raw contact info (email, fallback id, or none)."""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

EMAIL_PREFIX = "email:"
FALLBACK_PREFIX = "fallback:"
ANON_PREFIX = "anon:"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def resolve_customer_key(raw_email: Optional[str], fallback_id: Optional[str] = None) -> str:
    """
    Build the key that groups tickets by customer.

    email:{normalized email} when an email is present, else fallback:{id} when a
    fallback identifier (e.g. chat session id) is present. With neither, a fresh
    anon:{uuid4} is minted, so two anonymous calls never share a key.
    """
    email = normalize_email(raw_email)
    if email:
        return f"{EMAIL_PREFIX}{email}"
    fallback = str(fallback_id).strip() if fallback_id is not None else ""
    if fallback:
        return f"{FALLBACK_PREFIX}{fallback}"
    return f"{ANON_PREFIX}{uuid4()}"


def is_anonymous_key(customer_key: str) -> bool:
    return customer_key.startswith(ANON_PREFIX)
