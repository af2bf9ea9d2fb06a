"""Mutation-scoped logging context.

Every log entry emitted while a mutation is applied, retried, committed,
rolled back or replayed carries the same ``correlation_id`` and mutation
fields. Bindings nest: leaving an inner block restores the outer values.

Usage:
    from infrastructure.logging import bind_mutation_context

    with bind_mutation_context(project_id="p-1", mutation_id="m-42"):
        logger.info("mutation_applied")
"""

import uuid
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import structlog


@contextmanager
def bind_mutation_context(
    correlation_id: Optional[str] = None,
    project_id: Optional[str] = None,
    mutation_id: Optional[str] = None,
    entity_kind: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind mutation fields to all logs emitted inside the block.

    Args:
        correlation_id: Correlation id; inherited from an enclosing block,
            or generated, when not given
        project_id: Project the mutation belongs to
        mutation_id: Mutation being processed
        entity_kind: Kind of entity the mutation targets
        **extra_context: Additional fields

    Yields:
        The correlation id in effect inside the block
    """
    correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
    context: Dict[str, Any] = {"correlation_id": correlation_id}
    for key, value in (
        ("project_id", project_id),
        ("mutation_id", mutation_id),
        ("entity_kind", entity_kind),
    ):
        if value is not None:
            context[key] = value
    context.update(extra_context)

    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield correlation_id
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("correlation_id")


def clear_mutation_context() -> None:
    structlog.contextvars.clear_contextvars()
