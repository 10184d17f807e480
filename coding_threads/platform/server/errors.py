"""Exception handlers mapping thread errors to HTTP responses.

Usage:
    app = FastAPI()
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from coding_threads.platform.threads.errors import (
    ThreadError,
    ThreadNameError,
    ThreadNotFoundError,
    ThreadUnavailableError,
    WorkingDirectoryError,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def thread_not_found_handler(request: Request, exc: ThreadNotFoundError) -> JSONResponse:
    """Handle unknown thread names - 404 Not Found."""
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


async def invalid_thread_handler(request: Request, exc: ThreadError) -> JSONResponse:
    """Handle malformed names and unusable working directories - 422."""
    logger.info("Rejected thread request on %s: %s", request.url.path, exc)
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


async def thread_unavailable_handler(
    request: Request, exc: ThreadUnavailableError
) -> JSONResponse:
    """Handle threads that did not answer in time - 503 Service Unavailable."""
    logger.warning("Thread unavailable on %s: %s", request.url.path, exc)
    response = _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)
    response.headers["Retry-After"] = str(max(1, round(exc.timeout)))
    return response


async def thread_error_handler(request: Request, exc: ThreadError) -> JSONResponse:
    """Handle any other thread failure - 409 Conflict."""
    logger.warning("Thread error on %s: %s", request.url.path, exc)
    return _error_response(status.HTTP_409_CONFLICT, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the thread exception handlers on the application.

    Specific exceptions are registered before their base class.
    """
    app.add_exception_handler(ThreadNotFoundError, thread_not_found_handler)
    app.add_exception_handler(ThreadNameError, invalid_thread_handler)
    app.add_exception_handler(WorkingDirectoryError, invalid_thread_handler)
    app.add_exception_handler(ThreadUnavailableError, thread_unavailable_handler)
    app.add_exception_handler(ThreadError, thread_error_handler)
