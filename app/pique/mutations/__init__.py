"""Optimistic mutations: models, remote dispatch and execution.

Usage:
    from pique.mutations import Mutation, MutationExecutor, RemoteCall

    outcome = await executor.apply(
        Mutation(EntityKind.SEGMENT, [RemoteCall.create(EntityKind.SEGMENT, data)],
                 apply_local=lambda c: c.append(segment))
    )
"""

from pique.mutations.models import (
    LocalDelta,
    Mutation,
    MutationOutcome,
    MutationState,
    RemoteCall,
    RemoteOperation,
)
from pique.mutations.dispatcher import IdRegistry, RemoteDispatcher
from pique.mutations.executor import MutationExecutor

__all__ = [
    "IdRegistry",
    "LocalDelta",
    "Mutation",
    "MutationExecutor",
    "MutationOutcome",
    "MutationState",
    "RemoteCall",
    "RemoteDispatcher",
    "RemoteOperation",
]
