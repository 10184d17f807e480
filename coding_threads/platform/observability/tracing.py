"""OpenTelemetry tracing initialization.

Installs a global tracer provider exporting spans over OTLP/gRPC, and
instruments the libraries whose spans we want (LangChain model calls,
stdlib logging trace correlation).
"""

import logging

from openinference.instrumentation.langchain import LangChainInstrumentor
from openinference.semconv.resource import ResourceAttributes
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME as RESOURCE_SERVICE_NAME
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)


def initialize_tracing(app_name: str, host: str, port: int) -> TracerProvider:
    """Configure the global tracer provider and instrument libraries.

    Args:
        app_name: Service name reported on every span
        host: OTLP collector host
        port: OTLP collector gRPC port

    Returns:
        The installed TracerProvider, shut it down to flush pending spans
    """
    resource = Resource.create(
        {
            RESOURCE_SERVICE_NAME: app_name,
            ResourceAttributes.PROJECT_NAME: app_name,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{host}:{port}", insecure=True))
    )
    trace.set_tracer_provider(provider)

    LoggingInstrumentor().instrument(set_logging_format=True)
    LangChainInstrumentor().instrument(tracer_provider=provider)
    logger.info("Tracing initialized, exporting to %s:%d", host, port)
    return provider
