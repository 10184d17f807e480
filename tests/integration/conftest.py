"""Integration test fixtures.

This module provides shared fixtures for integration tests including:
- Route/handler tests against a shallow app owning a real ThreadManager
- Clients with health checks toggled
- Full application tests through create_app with an injected agent factory
"""

import time
from collections.abc import AsyncIterator, Callable, Generator
from contextlib import ExitStack, asynccontextmanager
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coding_threads.platform.server.errors import register_exception_handlers
from coding_threads.platform.server.health import HealthCheck
from coding_threads.platform.server.routes import root as root_router
from coding_threads.platform.server.routes.threads import threads_router
from coding_threads.platform.settings import LitellmSettings, Settings, ThreadsSettings
from coding_threads.platform.threads import AgentFactory, NotificationBus, ThreadManager

# =============================================================================
# FastAPI App Fixtures (Shallow - no middleware, minimal lifespan)
# =============================================================================


def build_test_app(agent_factory: AgentFactory, settings: ThreadsSettings) -> FastAPI:
    """Create a minimal app whose lifespan owns a ThreadManager.

    This is intentionally SHALLOW - no middleware, no logging or bugsnag setup.
    Tests route handlers and their interaction with the thread manager.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        bus = NotificationBus(settings.subscriber_queue_size)
        app.state.thread_manager = ThreadManager(agent_factory, bus, settings)
        yield
        await app.state.thread_manager.shutdown()

    app = FastAPI(lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(root_router)
    app.include_router(threads_router)
    return app


@pytest.fixture
def make_client(threads_settings: ThreadsSettings) -> Generator[Callable[..., TestClient]]:
    """Factory for started test clients over a shallow app.

    The client is entered as a context manager so the lifespan runs and the
    event loop hosting the thread processes outlives each request.
    """
    with ExitStack() as stack:

        def factory(agent_factory: AgentFactory) -> TestClient:
            app = build_test_app(agent_factory, threads_settings)
            return stack.enter_context(TestClient(app))

        yield factory


@pytest.fixture
def client(make_client, agent_factory) -> TestClient:
    """Client whose threads reply "ok" to every message."""
    return make_client(agent_factory)


@pytest.fixture
def client_with_health_enabled(client: TestClient) -> Generator[TestClient]:
    """Create a test client with health checks enabled."""
    HealthCheck.enable()
    yield client
    HealthCheck.disable()


@pytest.fixture
def client_with_health_disabled(client: TestClient) -> Generator[TestClient]:
    """Create a test client with health checks disabled."""
    HealthCheck.disable()
    yield client


@pytest.fixture
def app_settings(threads_settings: ThreadsSettings) -> Settings:
    """Full application settings pointing at an unreachable LiteLLM proxy."""
    return Settings(
        litellm=LitellmSettings(proxy_api_base="http://litellm.invalid", proxy_api_key="sk-test"),
        threads=threads_settings,
    )


# =============================================================================
# Helpers
# =============================================================================


def poll(
    client: TestClient,
    path: str,
    predicate: Callable[[dict[str, Any]], bool],
    timeout: float = 2.0,
) -> dict[str, Any]:
    """GET a path until its JSON body satisfies the predicate."""
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(path).json()
        if predicate(body):
            return body
        if time.monotonic() > deadline:
            raise AssertionError(f"condition not met for {path}: {body}")
        time.sleep(0.02)


@pytest.fixture
def poll_until() -> Callable[..., dict[str, Any]]:
    return poll
