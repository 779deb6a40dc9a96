"""
GenEdu Backend — Request ID Middleware
========================================

What:  Assigns a short correlation ID to every request.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates one; stores it in a ContextVar and echoes it back.
Who:   Added last in create_app(), so it is the first middleware to run.

Where the ID shows up:
    - X-Request-ID response header (exposed to the browser through CORS)
    - `requestId` in every error envelope built by main.error_response()
    - the access log line written by RequestLoggingMiddleware

Accepting the client's header lets the frontend tag a request before it is
sent and quote the same ID in its own error reports.

Limitation:
    Handlers registered for bare Exception run in Starlette's outermost
    ServerErrorMiddleware, outside this middleware's context, so those 500
    responses carry no requestId.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests share one thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# 8 hex chars: enough to correlate log lines, short enough to read aloud
GENERATED_ID_LENGTH = 8


def new_request_id() -> str:
    return uuid.uuid4().hex[:GENERATED_ID_LENGTH]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Sets request_id_var and request.state.request_id for the duration of
    the request, then copies the ID onto the response headers.

    An empty X-Request-ID header counts as absent.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
