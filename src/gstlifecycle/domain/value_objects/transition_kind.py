"""Transition kinds."""

from enum import StrEnum


class TransitionKind(StrEnum):
    """Requested lifecycle transitions."""

    GENERATE = "generate"
    ACCEPT = "accept"
    REJECT = "reject"
    UPDATE_VEHICLE = "update-vehicle"
    CANCEL = "cancel"
    CHANGE_TRANSPORTER = "change-transporter"
    EXTEND_VALIDITY = "extend-validity"
    EXPIRE = "expire"
    RECEIVE = "receive"
    CONSOLIDATE = "consolidate"
