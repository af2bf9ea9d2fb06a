"""Structlog configuration for pique.

Call ``configure_logging()`` once at process start; modules then take a
logger bound to their own path with ``get_module_logger()``. Log output is
JSON in production and a console rendering otherwise. Under pytest every
record is dropped.

Usage:
    from infrastructure.logging import get_module_logger

    logger = get_module_logger()
    logger.info("mutation_committed", mutation_id=mutation.id)
"""

import inspect
import logging
import sys
from enum import Enum
from typing import Any, List, MutableMapping, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

from infrastructure.services.providers import get_settings

SUPPRESSED_LEVEL = logging.CRITICAL + 1


def _is_test_environment() -> bool:
    return "pytest" in sys.modules


def render_operation_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Render classified results and enum members as plain values.

    Lets callers pass an ``OperationResult`` or an ``OperationStatus``
    straight into a log call.
    """
    for key, value in list(event_dict.items()):
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif hasattr(value, "to_dict") and hasattr(value, "status"):
            event_dict[key] = value.to_dict()
    return event_dict


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        render_operation_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name; defaults to ``settings.LOG_LEVEL``
        is_production: JSON output when True, console output when False;
            defaults to ``settings.is_production``

    Returns:
        The root structlog logger
    """
    if _is_test_environment():
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(format="%(message)s", level=SUPPRESSED_LEVEL, force=True)
        logging.root.setLevel(SUPPRESSED_LEVEL)
        return structlog.stdlib.get_logger()

    settings = get_settings()
    if is_production is None:
        is_production = settings.is_production

    processors = _shared_processors()
    if is_production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level_name = (log_level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level_name, logging.INFO),
    )
    return structlog.stdlib.get_logger()


logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Logger bound to the calling module.

    Binds ``component`` (last segment of the module name) and
    ``module_path`` (full module name), e.g. ``executor`` and
    ``pique.mutations.executor``.
    """
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module = inspect.getmodule(caller) if caller is not None else None
    if module is None:
        return logger.bind(component="unknown")

    return logger.bind(
        component=module.__name__.rsplit(".", 1)[-1],
        module_path=module.__name__,
    )
