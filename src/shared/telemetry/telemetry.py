"""OpenTelemetry setup for the access-control service"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import \
    OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (BatchSpanProcessor,
                                            ConsoleSpanExporter, SpanExporter)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Load balancer probes carry no access decisions
EXCLUDED_URLS = "/health"


def _build_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    if exporter_type == "none":
        return None
    if exporter_type == "otlp":
        if not otlp_endpoint:
            raise ValueError("telemetry_otlp_endpoint is required for the otlp exporter")
        return OTLPSpanExporter(endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://"))
    return ConsoleSpanExporter()


class TelemetryConfig:
    """
    Tracer provider plus the library instrumentations.

    Access checks open their own spans through `traced`; this class only makes
    those spans go somewhere and links them to the HTTP request, the store
    queries and the Redis calls underneath.
    """

    def __init__(self, service_name: str, service_version: str, enabled: bool = True):
        self.service_name = service_name
        self.service_version = service_version
        self.enabled = enabled
        self.tracer_provider: TracerProvider | None = None
        self._instrumented: list[str] = []

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """
        Install the global tracer provider.

        Args:
            exporter_type: "console", "otlp" or "none" (spans recorded, not exported)
            otlp_endpoint: OTLP gRPC endpoint, required for "otlp"
            sample_rate: Ratio of new traces to sample; child spans follow their parent

        Raises:
            ValueError: "otlp" without an endpoint
        """
        if not self.enabled:
            return None

        provider = TracerProvider(
            resource=Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                }
            ),
            sampler=ParentBased(TraceIdRatioBased(sample_rate)),
        )
        exporter = _build_exporter(exporter_type, otlp_endpoint)
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(provider)
        self.tracer_provider = provider
        logger.info(
            f"OpenTelemetry initialized: service={self.service_name}, "
            f"exporter={exporter_type}, sample_rate={sample_rate}"
        )
        return provider

    def instrument(
        self, app: FastAPI, engine: AsyncEngine | None = None, redis: bool = False
    ) -> None:
        """Instrument the app, the store engine and optionally the Redis client"""
        if self.tracer_provider is None:
            return

        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.tracer_provider, excluded_urls=EXCLUDED_URLS
        )
        self._instrumented.append("fastapi")

        if engine is not None:
            # The instrumentor hooks the sync engine behind the async facade
            SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine, tracer_provider=self.tracer_provider
            )
            self._instrumented.append("sqlalchemy")

        if redis:
            RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
            self._instrumented.append("redis")

        logger.info(f"Instrumentation enabled: {', '.join(self._instrumented)}")

    def shutdown(self) -> None:
        """Flush pending spans"""
        if self.tracer_provider is not None:
            self.tracer_provider.shutdown()
            logger.info("Telemetry shutdown complete")


_telemetry: TelemetryConfig | None = None


def get_telemetry() -> TelemetryConfig | None:
    return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _telemetry
    _telemetry = telemetry
