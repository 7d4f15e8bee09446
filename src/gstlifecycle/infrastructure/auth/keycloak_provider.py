"""Keycloak OIDC provider - resolves operators from bearer tokens."""

from dataclasses import dataclass, field

import structlog
from keycloak import KeycloakOpenID
from keycloak.exceptions import KeycloakError

logger = structlog.get_logger(__name__)


@dataclass
class OIDCUser:
    """Operator identity from an introspected token."""

    user_id: str
    email: str | None
    username: str | None
    realm_roles: list[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        """Empty ``role`` means no role is required."""
        return not role or role in self.realm_roles


class KeycloakProvider:
    """Token introspection against a Keycloak realm."""

    def __init__(
        self,
        server_url: str,
        realm: str,
        client_id: str,
        client_secret: str = "",
    ) -> None:
        self._openid = KeycloakOpenID(
            server_url=server_url,
            realm_name=realm,
            client_id=client_id,
            client_secret_key=client_secret,
        )

    def decode_token(self, token: str) -> OIDCUser | None:
        """None for inactive tokens and for tokens Keycloak refuses to introspect."""
        try:
            claims = self._openid.introspect(token)
        except KeycloakError as e:
            logger.warning("Token introspection failed", error=str(e))
            return None
        if not claims.get("active"):
            logger.info("Inactive token presented", client_id=claims.get("client_id"))
            return None
        realm_access = claims.get("realm_access") or {}
        return OIDCUser(
            user_id=claims.get("sub", ""),
            email=claims.get("email"),
            username=claims.get("preferred_username"),
            realm_roles=list(realm_access.get("roles", [])),
        )
