"""Auth middleware - resolves the operator from a bearer token."""

from dataclasses import dataclass, field

import falcon.asgi
import structlog

from gstlifecycle.infrastructure.auth.keycloak_provider import KeycloakProvider

logger = structlog.get_logger(__name__)

ANONYMOUS = "anonymous"


@dataclass
class RequestUser:
    """Operator acting on documents; recorded as the audit actor."""

    user_id: str
    email: str | None = None
    username: str | None = None
    roles: list[str] = field(default_factory=list)


class AuthMiddleware:
    """Middleware that validates bearer tokens and sets req.context.user.

    Without a Keycloak provider every request runs as ``anonymous``. With
    one, a missing or invalid token leaves ``req.context.user`` as None, and
    a valid token lacking ``operator_role`` sets ``req.context.forbidden``.
    """

    def __init__(
        self,
        keycloak_provider: KeycloakProvider | None = None,
        operator_role: str = "",
    ) -> None:
        self._keycloak = keycloak_provider
        self._operator_role = operator_role

    async def process_request(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        req.context.forbidden = False
        if self._keycloak is None:
            req.context.user = RequestUser(user_id=ANONYMOUS)
            return

        req.context.user = None
        auth = req.get_header("Authorization")
        if not auth or not auth.startswith("Bearer "):
            return
        user = self._keycloak.decode_token(auth[7:])
        if user is None:
            return
        if not user.has_role(self._operator_role):
            logger.info("Operator role missing", user_id=user.user_id, role=self._operator_role)
            req.context.forbidden = True
            return
        req.context.user = RequestUser(
            user_id=user.user_id,
            email=user.email,
            username=user.username,
            roles=user.realm_roles,
        )
