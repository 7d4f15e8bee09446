"""Reason codes carried by transition denials."""

from enum import StrEnum


class DenyReason(StrEnum):
    """Why a transition rule refused a request."""

    INVALID_STATUS = "invalid-status"
    WINDOW_EXPIRED = "window-expired"
    REASON_TOO_SHORT = "reason-too-short"
    MISSING_FIELDS = "missing-fields"
    INVALID_FIELD = "invalid-field"
    UNSUPPORTED_KIND = "unsupported-kind"
    MOVEMENT_STARTED = "movement-started"
    VALIDITY_EXPIRED = "validity-expired"
    NOT_EXPIRED = "not-expired"
    INVALID_PAYLOAD = "invalid-payload"
    GATEWAY_REJECTED = "gateway-rejected"
