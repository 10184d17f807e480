"""Base HTTP endpoints for health checks, metrics, and service info.

This module provides infrastructure endpoints that are typically used
by load balancers, monitoring systems, and service discovery. The service
reports unhealthy as soon as its thread manager starts shutting down, so
no new conversation is routed to an instance that is stopping its threads.
"""

import logging
from enum import Enum

from fastapi import APIRouter, Request, Response

from coding_threads.platform.observability.metrics import metrics as prom_metrics
from coding_threads.platform.server.health import HealthCheck, metadata
from coding_threads.platform.threads import ThreadManager

logger = logging.getLogger(__name__)

base_router = APIRouter()
base_tags: list[Enum | str] = ["base"]


def _thread_manager(request: Request) -> ThreadManager | None:
    return getattr(request.app.state, "thread_manager", None)


@base_router.get("/health", tags=base_tags)
async def health(request: Request):
    """Health check endpoint for load balancers and orchestrators.

    Returns:
        200 OK with status if healthy, 404 if unhealthy
    """
    if is_healthy(_thread_manager(request)):
        return {"status": "OK"}
    else:
        return Response(status_code=404)


def is_healthy(manager: ThreadManager | None = None) -> bool:
    """Check if the service is currently healthy.

    Returns:
        True if HealthCheck is enabled and the thread manager is not shutting down
    """
    if not HealthCheck.status():
        logger.info("health-check: fail. disabled")
        return False

    if manager is not None and manager.closing:
        logger.info("health-check: fail. thread manager shutting down")
        return False

    return True


@base_router.get("/info", tags=base_tags)
async def info(request: Request):
    """Service metadata plus the number of threads, in total and per status."""
    manager = _thread_manager(request)
    if manager is None:
        return metadata.info(threads=0, threads_by_status={})
    return metadata.info(threads=len(manager), threads_by_status=manager.status_counts())


@base_router.get("/metrics", tags=base_tags)
async def metrics():
    body, media_type = prom_metrics()
    return Response(body, media_type=media_type)
