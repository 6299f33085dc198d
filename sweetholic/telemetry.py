"""
Observability for the SweetHolic API:
  - OpenTelemetry spans exported over OTLP gRPC (Jaeger in development)
  - Prometheus counters for posts, reactions, list reorders and rollbacks,
    plus a feed latency histogram

Tracing is switched off with OTEL_ENABLED=false (tests, local runs without
a collector); metrics are always collected and served at /metrics.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from sweetholic.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
FEED_LATENCY = Histogram(
    "feed_latency_seconds",
    "End-to-end latency of GET /api/posts/feed",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

POSTS_CREATED_TOTAL = Counter(
    "posts_created_total",
    "Total number of posts created (with their photos and food items)",
)

REACTIONS_ADDED_TOTAL = Counter(
    "reactions_added_total",
    "Reactions added, by reaction type",
    ["reaction_type"],
)

LIST_REORDERS_TOTAL = Counter(
    "list_reorders_total",
    "Number of committed list reorder batches",
)

TRANSACTION_ROLLBACKS_TOTAL = Counter(
    "transaction_rollbacks_total",
    "Multi-row writes that were rolled back",
    ["operation"],  # 'create_post' or 'reorder_list_items'
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def _exporting_provider() -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.service_name,
                "service.version": "1.0.0",
                "deployment.environment": settings.environment,
            }
        )
    )
    try:
        exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint, insecure=True)
    except Exception as exc:
        # The API keeps serving; spans are simply not exported
        logger.warning("OTLP exporter unavailable (%s); spans will not be exported", exc)
        return provider
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info("Exporting traces to %s", settings.otel_exporter_otlp_endpoint)
    return provider


def setup_tracing(engine=None) -> None:  # noqa: ANN001
    """
    Install the global TracerProvider and instrument the ORM.

    `engine` is the async engine's `sync_engine`; every statement then shows
    up as a child span of the request that issued it.
    """
    if not settings.otel_enabled:
        logger.info("OTel tracing disabled")
        return

    trace.set_tracer_provider(_exporting_provider())
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine)
    else:
        SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Add request spans; a no-op when tracing is disabled."""
    if settings.otel_enabled:
        FastAPIInstrumentor.instrument_app(app)
