"""
Service runtime for the price monitor.

Exports:
    ServiceRunner: Base class for long-running services
    setup_logging: structlog configuration
"""

from pricewatch.services.base import ServiceRunner, setup_logging

__all__ = ["ServiceRunner", "setup_logging"]
