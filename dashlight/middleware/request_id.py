import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def current_request_id() -> str:
    """Request id of the request being handled, or "-" outside a request."""
    return _request_id.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id: the caller's X-Request-Id if sent, a fresh uuid4 otherwise.

    The id is visible to log records (contextvar), to exception handlers
    (request.state.request_id) and to the client (response header).
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = rid

        token = _request_id.set(rid)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
