"""FastAPI application factory and server configuration.

This module creates and configures the FastAPI application with all middleware,
routes, and lifecycle management.
"""

import asyncio
import logging
import os
import signal
from contextlib import asynccontextmanager

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from coding_threads.agents.coding import default_builder
from coding_threads.platform.constants import SERVICE_NAME
from coding_threads.platform.observability import errors as bugsnag
from coding_threads.platform.observability.logging import configure_logging
from coding_threads.platform.observability.metrics import prometheus_middleware
from coding_threads.platform.observability.tracing import initialize_tracing
from coding_threads.platform.server.errors import register_exception_handlers
from coding_threads.platform.server.health import HealthCheck
from coding_threads.platform.server.middlewares import CorrelationIdMiddleware
from coding_threads.platform.server.routes import root as root_router
from coding_threads.platform.server.routes.threads import threads_router
from coding_threads.platform.settings import Settings
from coding_threads.platform.threads import AgentFactory, NotificationBus, ThreadManager


def lifespan_closure(settings: Settings, agent_factory: AgentFactory | None = None):
    @asynccontextmanager
    async def lifespan(app):
        """
        Use this to initialize all of the singleton dependencies and shared
        objects.  i.e. thread manager, reporters, bugsnag, etc
        """
        if settings.bugsnag.release_stage in ["production", "development"]:
            signal_handler = SignalHandler(app)
            signal_handler.register_signal_handler()
        await bugsnag.initialize_bugsnag(
            settings.bugsnag.api_key,
            settings.bugsnag.release_stage,
        )

        # Configure structured logging (JSON in prod/dev, console in local)
        if settings.app_http.log_json is not None:
            json_output = settings.app_http.log_json
        else:
            json_output = settings.bugsnag.release_stage != "local"
        configure_logging(settings.app_http.log_level, json_output=json_output)

        app.state.settings = settings

        tracer_provider = None
        if settings.opentelemetry.enabled:
            tracer_provider = initialize_tracing(
                app_name=SERVICE_NAME,
                host=settings.opentelemetry.host,
                port=settings.opentelemetry.port,
            )

        factory = agent_factory or default_builder(settings).build
        bus = NotificationBus(settings.threads.subscriber_queue_size)
        app.state.thread_manager = ThreadManager(factory, bus, settings.threads)

        HealthCheck.enable()
        yield

        await app.state.thread_manager.shutdown()
        if tracer_provider is not None:
            tracer_provider.shutdown()

    return lifespan


def create_app(settings: Settings, agent_factory: AgentFactory | None = None):
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings instance
        agent_factory: Optional factory building each thread's conversation.
            Defaults to the coding agent wired from settings. Inject for testing.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan_closure(settings, agent_factory))
    app.add_middleware(CorrelationIdMiddleware)
    app.middleware("http")(prometheus_middleware)
    if settings.opentelemetry.enabled:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=settings.opentelemetry.excluded_urls)

    register_exception_handlers(app)

    # Include platform routes (health, metrics, info)
    app.include_router(root_router)

    # Include thread routes
    app.include_router(threads_router)

    return app


class SignalHandler:
    def __init__(self, app: FastAPI):
        self.app = app

    async def handle_exit(self):
        """
        Handle the exit of the server
        Do NOT use FastAPI @app.on_event("shutdown") or lifespan
        The problem with this method is, it is invoked *after* server
        stops accepting request, so it does not give us any time to
        drain requests in progress and DNS cache to refresh
        """
        HealthCheck.disable()
        for i in range(20):
            logging.info("Shutting down...")
            await asyncio.sleep(1)

        # Stop every thread process
        if hasattr(self.app.state, "thread_manager"):
            await self.app.state.thread_manager.shutdown()

        # stop service successfully
        os.kill(os.getpid(), signal.SIGUSR1)

    def signal_handler(self):
        """
        Signal handler function
        """
        asyncio.create_task(self.handle_exit())

    def register_signal_handler(self) -> None:
        """
        Register signal handlers for the server
        """
        loop = asyncio.get_running_loop()
        for sig in [signal.SIGINT, signal.SIGTERM]:
            loop.add_signal_handler(sig, self.signal_handler)
