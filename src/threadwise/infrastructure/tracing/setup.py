"""Tracing setup for OpenTelemetry integration."""

import os

from strands.telemetry import StrandsTelemetry

DEFAULT_SERVICE_NAME = "threadwise"


def setup_tracing(service_name: str = DEFAULT_SERVICE_NAME) -> StrandsTelemetry | None:
    """Initialize tracing if an OTLP endpoint is configured.

    Model calls made through strands are exported as spans. Nothing is
    set up when OTEL_EXPORTER_OTLP_ENDPOINT is unset or empty.

    Args:
        service_name: Service name used when OTEL_SERVICE_NAME is unset.

    Returns:
        StrandsTelemetry instance if tracing was enabled, None otherwise.
    """
    if not os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT"):
        return None

    os.environ.setdefault("OTEL_SERVICE_NAME", service_name)

    telemetry = StrandsTelemetry()
    telemetry.setup_otlp_exporter()
    return telemetry
