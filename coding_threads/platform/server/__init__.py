"""HTTP server infrastructure module.

This module provides the FastAPI application factory and HTTP-related utilities:
- Application factory
- Route handlers
- FastAPI dependencies
- Health checks
"""

from coding_threads.platform.server.app import create_app
from coding_threads.platform.server.health import HealthCheck

__all__ = [
    "create_app",
    "HealthCheck",
]
