"""Monitoring package for logging and workflow observability."""

from fleetshare.monitoring.logger import configure_logger

__all__ = [
    "configure_logger",
]
