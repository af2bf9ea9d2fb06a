"""Structured logging infrastructure.

This package provides centralized logging configuration and utilities
for pique using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_mutation_context(): Context manager for mutation-scoped logging
    - get_correlation_id(): Get current correlation ID from context
    - clear_mutation_context(): Clear all mutation context

Example:
    from infrastructure.logging import get_module_logger, bind_mutation_context

    logger = get_module_logger()

    with bind_mutation_context(project_id="p-1", mutation_id="m-1"):
        logger.info("mutation_applied")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_mutation_context,
    get_correlation_id,
    clear_mutation_context,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_mutation_context",
    "get_correlation_id",
    "clear_mutation_context",
]
