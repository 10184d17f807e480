"""HTTP middleware components.

- CorrelationIdMiddleware: binds the request ID and the addressed thread to
  the logging context
"""

from coding_threads.platform.server.middlewares.correlation import (
    REQUEST_ID_HEADER,
    THREAD_NAME_HEADER,
    CorrelationIdMiddleware,
)

__all__ = [
    "CorrelationIdMiddleware",
    "REQUEST_ID_HEADER",
    "THREAD_NAME_HEADER",
]
