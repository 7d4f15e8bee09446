"""Result of evaluating a transition rule."""

from dataclasses import dataclass

from gstlifecycle.domain.value_objects.deny_reason import DenyReason


@dataclass(frozen=True)
class RuleDecision:
    """ALLOW, or DENY with a reason code and a human-readable message."""

    allowed: bool
    reason: DenyReason | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> "RuleDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "RuleDecision":
        return cls(allowed=False, reason=reason, message=message)
