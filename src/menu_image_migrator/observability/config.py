"""OpenTelemetry and logging configuration for the migration job."""

import logging
import os
from collections.abc import Mapping

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "menu-image-migrator"


def get_service_resource() -> Resource:
    """Create OpenTelemetry resource identifying the migration job.

    Returns:
        Resource with service name and environment attributes
    """
    service_name = os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME)
    environment = os.getenv("ENVIRONMENT", "development")

    return Resource.create(
        {
            "service.name": service_name,
            "deployment.environment": environment,
        }
    )


def exporters_enabled(environ: Mapping[str, str] | None = None) -> bool:
    """Whether OTLP exporters should be configured.

    Exporters are opt-in for a one-off job and never enabled under test.
    """
    env = os.environ if environ is None else environ
    if env.get("ENVIRONMENT", "development") == "test":
        return False
    return env.get("ENABLE_OTEL_EXPORTERS", "false").lower() == "true"


def setup_observability(enable_exporters: bool | None = None) -> None:
    """Initialize tracing, metrics and auto-instrumentation.

    Args:
        enable_exporters: Force exporters on or off; read from the
            environment when None
    """
    if enable_exporters is None:
        enable_exporters = exporters_enabled()

    resource = get_service_resource()

    if enable_exporters:
        otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318")

        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{otlp_endpoint}/v1/traces"))
        )
        trace.set_tracer_provider(tracer_provider)

        # Short interval so the final counts are exported before the job exits
        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=f"{otlp_endpoint}/v1/metrics"),
            export_interval_millis=5000,
        )
        metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

        logger.info(f"OpenTelemetry exporters configured with endpoint: {otlp_endpoint}")
    else:
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    HTTPXClientInstrumentor().instrument()
    PymongoInstrumentor().instrument()

    logger.info("Auto-instrumentation enabled for httpx and pymongo")


def shutdown_observability() -> None:
    """Flush pending spans and metrics before the process exits."""
    tracer_provider = trace.get_tracer_provider()
    if isinstance(tracer_provider, TracerProvider):
        tracer_provider.shutdown()

    meter_provider = metrics.get_meter_provider()
    if isinstance(meter_provider, MeterProvider):
        meter_provider.shutdown()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_str = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_str, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        timestamp=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # pymongo and botocore are chatty at DEBUG
    for noisy in ("pymongo", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))

    logger.info(f"Structured JSON logging configured at {level_str} level")
