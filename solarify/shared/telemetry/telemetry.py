"""OpenTelemetry tracer provider and instrumentation for the API process.

Exporters: "console" for local runs, "otlp" for a collector (Jaeger, Tempo,
Cloud Trace agent), "none" to sample spans without exporting them.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from solarify.core.config import Settings

logger = logging.getLogger(__name__)

# Polled constantly by uptime checks and the admin dashboard
UNTRACED_URLS = "/api/v1/health,/api/v1/monitoring/performance"


def build_span_exporter(kind: str, otlp_endpoint: str | None) -> SpanExporter | None:
    """Exporter for TELEMETRY_EXPORTER; None means spans are sampled but dropped."""
    if kind == "none":
        return None
    if kind == "otlp":
        if otlp_endpoint:
            return OTLPSpanExporter(endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://"))
        logger.warning("TELEMETRY_EXPORTER=otlp without TELEMETRY_OTLP_ENDPOINT; using console")
    elif kind != "console":
        logger.warning("Unknown telemetry exporter '%s'; using console", kind)
    return ConsoleSpanExporter()


class Telemetry:
    """Owns the tracer provider for one application instance."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.provider: TracerProvider | None = None

    def start(self, app: FastAPI, instrument_redis: bool = False) -> bool:
        """Install the global tracer provider and instrument FastAPI and logging.

        Returns False (and leaves tracing off) when the provider cannot be set up;
        the API keeps serving without spans.
        """
        s = self.settings
        try:
            provider = TracerProvider(
                resource=Resource(attributes={
                    SERVICE_NAME: s.app_name,
                    SERVICE_VERSION: s.app_version,
                    "deployment.environment": s.telemetry_environment,
                }),
                sampler=TraceIdRatioBased(s.telemetry_sample_rate),
            )
            exporter = build_span_exporter(s.telemetry_exporter, s.telemetry_otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Telemetry setup failed; continuing without tracing")
            return False

        self.provider = provider
        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls=UNTRACED_URLS)
        LoggingInstrumentor().instrument(tracer_provider=provider, set_logging_format=True)
        if instrument_redis:
            RedisInstrumentor().instrument(tracer_provider=provider)
        logger.info(
            "Tracing on: service=%s exporter=%s sample_rate=%s",
            s.app_name, s.telemetry_exporter, s.telemetry_sample_rate,
        )
        return True

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self.provider is None:
            return
        try:
            self.provider.shutdown()
        except Exception:
            logger.exception("Error flushing spans on shutdown")
        self.provider = None
