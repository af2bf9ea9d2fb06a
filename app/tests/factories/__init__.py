"""Test data factories for deterministic test data generation."""

from tests.factories.pique import (
    make_project,
    make_queue_item,
    make_segment,
    make_segments,
)

__all__ = [
    "make_project",
    "make_queue_item",
    "make_segment",
    "make_segments",
]
