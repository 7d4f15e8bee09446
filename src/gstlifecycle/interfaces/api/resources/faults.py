"""Mapping of lifecycle faults to HTTP responses."""

import falcon
import falcon.asgi

from gstlifecycle.domain.exceptions import (
    ConflictFault,
    GatewayFault,
    GatewayTimeout,
    GSTLifecycleError,
    NotFound,
    PermissionDenied,
    ValidationFault,
)


def write_fault(resp: falcon.asgi.Response, exc: GSTLifecycleError) -> None:
    """Set status and body for a fault raised by a use case."""
    if isinstance(exc, NotFound):
        resp.status = falcon.HTTP_404
        resp.media = {"error": str(exc)}
    elif isinstance(exc, PermissionDenied):
        resp.status = falcon.HTTP_403
        resp.media = {"error": "Permission denied"}
    elif isinstance(exc, ValidationFault):
        resp.status = falcon.HTTP_400
        resp.media = {"error": str(exc), "field": exc.field}
    elif isinstance(exc, ConflictFault):
        resp.status = falcon.HTTP_409
        resp.media = {"error": str(exc), "reason": "conflict", "retryable": True}
    elif isinstance(exc, GatewayFault):
        resp.status = falcon.HTTP_504 if isinstance(exc, GatewayTimeout) else falcon.HTTP_502
        resp.media = {"error": str(exc), "reason": exc.reason, "retryable": True}
    else:
        resp.status = falcon.HTTP_500
        resp.media = {"error": str(exc)}


def write_result_status(resp: falcon.asgi.Response, applied: bool, created: bool = False) -> None:
    if not applied:
        resp.status = falcon.HTTP_422
    elif created:
        resp.status = falcon.HTTP_201
    else:
        resp.status = falcon.HTTP_200


def current_user(req: falcon.asgi.Request, resp: falcon.asgi.Response):
    """The acting operator, or None after writing 401/403 to ``resp``."""
    user = getattr(req.context, "user", None)
    if user:
        return user
    if getattr(req.context, "forbidden", False):
        write_fault(resp, PermissionDenied("Operator role required"))
    else:
        resp.status = falcon.HTTP_401
        resp.media = {"error": "Unauthorized"}
    return None
