"""Logging setup, OpenTelemetry provider and span helpers."""

from solarify.shared.telemetry.logging import setup_logging
from solarify.shared.telemetry.telemetry import Telemetry
from solarify.shared.telemetry.tracing import add_span_attributes, traced

__all__ = ["Telemetry", "add_span_attributes", "setup_logging", "traced"]
