"""Structured logging infrastructure.

This package provides centralized logging configuration and utilities
for the notification queue service using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_request_context(): Context manager for request-scoped logging

Example:
    from infrastructure.logging import configure_logging, get_module_logger

    # At application startup
    configure_logging()

    # In a module
    logger = get_module_logger()
    logger.info("notification_job_queued", job_id="ntf_123")
"""

# Core logging setup
from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

# Request context binding
from infrastructure.logging.context import bind_request_context

__all__ = [
    # Setup
    "configure_logging",
    "get_module_logger",
    # Context
    "bind_request_context",
]
