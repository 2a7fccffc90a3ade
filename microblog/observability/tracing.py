"""OpenTelemetry tracing exported over OTLP/HTTP."""

from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from sqlalchemy.engine import Engine

# Health checks and metric scrapes are not traced
EXCLUDED_URLS = "healthz,metrics"

_provider: TracerProvider | None = None


def parse_otlp_headers(raw: str | None) -> dict[str, str] | None:
    """Parse ``key=value,key2=value2`` (the OTEL_EXPORTER_OTLP_HEADERS format)."""
    if not raw:
        return None
    headers: dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers or None


def configure_tracing(
    app: FastAPI,
    engines: list[Engine],
    service_name: str,
    environment: str,
    endpoint: str | None,
    headers: str | None = None,
) -> TracerProvider | None:
    """Install the tracer provider and instrument the app once.

    Returns the provider, or None when no endpoint is configured.
    """
    global _provider
    if _provider is not None:
        return _provider
    if not endpoint:
        return None

    resource = Resource.create(
        {"service.name": service_name, "deployment.environment": environment}
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=endpoint, headers=parse_otlp_headers(headers))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(
        app, tracer_provider=provider, excluded_urls=EXCLUDED_URLS
    )
    SQLAlchemyInstrumentor().instrument(engines=engines, tracer_provider=provider)
    # Covers the Resend mail client
    HTTPXClientInstrumentor().instrument(tracer_provider=provider)
    _provider = provider
    return provider
