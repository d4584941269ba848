"""fleetshare."""

from .monitoring.logger import configure_logger

# Configure logger with default settings (just console logging)
# Log level and JSON output can be changed by calling configure_logger again from create_app
configure_logger()
