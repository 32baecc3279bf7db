"""Resume reconciliation: which planned chunks still need sending.

This is the only place that decides skip versus send. The confirmed set must
come from the remote store; local bookkeeping can be stale after a crash or
restart.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from chunkctl.uploaders.planner import ChunkDescriptor


def missing_chunks(
    plan: Iterable[ChunkDescriptor],
    confirmed: Collection[int],
) -> list[ChunkDescriptor]:
    """Return planned chunks whose index is not confirmed.

    Args:
        plan: Chunk descriptors in ascending index order.
        confirmed: Indices the remote store has acknowledged.

    Returns:
        Unconfirmed descriptors, ascending by index.
    """
    confirmed_set = frozenset(confirmed)
    return [chunk for chunk in plan if chunk.index not in confirmed_set]


def confirmed_bytes(
    plan: Iterable[ChunkDescriptor],
    confirmed: Collection[int],
) -> int:
    """Sum the lengths of confirmed chunks."""
    confirmed_set = frozenset(confirmed)
    return sum(chunk.length for chunk in plan if chunk.index in confirmed_set)
