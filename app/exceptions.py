"""Errors raised by the shell around the ticket core (never by the core itself)."""

from __future__ import annotations


class AnalysisError(Exception):
    """The AI analysis call failed or returned an unusable response."""


class AnalysisTimeoutError(AnalysisError):
    """The AI analysis call did not finish within the configured timeout."""


class NoRelevantContentError(AnalysisError):
    """The conversation has no product-related content worth a ticket."""


class TicketNotFoundError(LookupError):
    """No ticket (or message) with the given id."""
