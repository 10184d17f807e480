"""Middleware for request correlation ID and thread name propagation."""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from coding_threads.platform.observability import correlation_id_ctx, thread_name_ctx

REQUEST_ID_HEADER = "X-Request-ID"
THREAD_NAME_HEADER = "X-Thread-Name"

# /threads/<name> and everything below it
THREAD_PATH = re.compile(r"^/threads/(?P<name>[^/]+)")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that sets the logging context of a request.

    Extracts X-Request-ID from incoming request headers or generates a new UUID
    if not present, and echoes it back in the response headers. Requests under
    /threads/<name> also bind the thread name, echoed as X-Thread-Name.

    Both values live in context variables read by the structured logging
    processors. A message posted to a thread carries the correlation ID on to
    the turn it triggers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        match = THREAD_PATH.match(request.url.path)
        thread_name = match["name"] if match else None

        correlation_token = correlation_id_ctx.set(correlation_id)
        thread_token = thread_name_ctx.set(thread_name)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = correlation_id
            if thread_name:
                response.headers[THREAD_NAME_HEADER] = thread_name
            return response
        finally:
            thread_name_ctx.reset(thread_token)
            correlation_id_ctx.reset(correlation_token)
