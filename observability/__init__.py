"""Observability package for DevDocs Cache."""

from .logging import setup_logging, JSONFormatter, HANDLER_NAME
from .telemetry import SessionTelemetry

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'HANDLER_NAME',
    'SessionTelemetry'
]
