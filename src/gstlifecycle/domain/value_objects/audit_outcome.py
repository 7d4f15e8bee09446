"""Outcome of a transition attempt."""

from enum import StrEnum


class AuditOutcome(StrEnum):
    """How a transition attempt ended."""

    APPLIED = "APPLIED"
    REJECTED_BY_RULE = "REJECTED_BY_RULE"
    REJECTED_BY_GATEWAY = "REJECTED_BY_GATEWAY"
    FAILED = "FAILED"
