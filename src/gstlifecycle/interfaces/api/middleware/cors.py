"""CORS middleware for browser clients of the lifecycle API."""

import falcon.asgi

from gstlifecycle.infrastructure.gateway.whitebooks_gateway import CORRELATION_HEADER

ALLOW_ANY = "*"


class CORSMiddleware:
    """Adds CORS headers and answers OPTIONS preflight.

    Origins are matched exactly; ``*`` in the list allows any origin. The
    gateway correlation header is exposed so the UI can show it next to a
    failed transition.
    """

    def __init__(self, origins: list[str]) -> None:
        self._allow_any = ALLOW_ANY in origins
        self._origins = frozenset(o for o in origins if o != ALLOW_ANY)

    def _allowed_origin(self, origin: str | None) -> str | None:
        if not origin:
            return None
        if self._allow_any or origin in self._origins:
            return origin
        return None

    def _set_cors_headers(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        origin = self._allowed_origin(req.get_header("Origin"))
        if origin is None:
            return
        resp.set_header("Access-Control-Allow-Origin", origin)
        resp.set_header("Vary", "Origin")
        resp.set_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        resp.set_header("Access-Control-Allow-Headers", "Authorization, Content-Type")
        resp.set_header("Access-Control-Expose-Headers", CORRELATION_HEADER)
        resp.set_header("Access-Control-Max-Age", "86400")

    async def process_request(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        if req.method == "OPTIONS":
            self._set_cors_headers(req, resp)
            resp.status = falcon.HTTP_204
            resp.complete = True

    async def process_response(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, resource, req_succeeded
    ) -> None:
        self._set_cors_headers(req, resp)
