"""Compliance gateway DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# "Sucess" is how the gateway actually spells it
SUCCESS_STATUS_CODES = frozenset({"1", "Sucess", "Success"})


@dataclass(frozen=True)
class GatewayCredentials:
    """Gateway account credentials."""

    email: str
    username: str
    password: str
    client_id: str
    client_secret: str
    gstin: str
    ip_address: str = "127.0.0.1"

    def __repr__(self) -> str:
        return f"GatewayCredentials(username={self.username!r}, gstin={self.gstin!r})"


@dataclass(frozen=True)
class GatewaySession:
    """Opaque handle returned by authentication; passed back on every submit."""

    token: str
    credentials: GatewayCredentials = field(repr=False)
    expires_at: datetime | None = None


@dataclass(frozen=True)
class GatewayAuthResult:
    """Outcome of authenticate: a session on success, otherwise the gateway's error."""

    status_code: str
    description: str
    session: GatewaySession | None = None

    @property
    def is_success(self) -> bool:
        return self.status_code in SUCCESS_STATUS_CODES and self.session is not None


@dataclass(frozen=True)
class GatewayResponse:
    """Normalised gateway reply to a submission."""

    status_code: str
    description: str
    data: dict[str, Any] = field(default_factory=dict)
    correlation_id: str | None = None
    document_number: str | None = None
    valid_until: datetime | None = None
    acknowledged_at: datetime | None = None

    @property
    def is_success(self) -> bool:
        return self.status_code in SUCCESS_STATUS_CODES
