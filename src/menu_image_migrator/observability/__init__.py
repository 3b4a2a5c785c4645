"""OpenTelemetry instrumentation and observability utilities."""

from menu_image_migrator.observability.config import (
    configure_logging,
    setup_observability,
    shutdown_observability,
)
from menu_image_migrator.observability.decorators import traced

__all__ = ["setup_observability", "shutdown_observability", "configure_logging", "traced"]
