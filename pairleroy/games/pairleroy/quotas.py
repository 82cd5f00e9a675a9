"""Largest-remainder (Hamilton) apportionment of integer quotas."""

from __future__ import annotations

import math
from collections.abc import Sequence

from pairleroy.games.pairleroy.errors import InfeasibleQuotaError, InvalidInputError


def _by_largest_remainder(raw: list[float]) -> list[int]:
    """Indices sorted by descending fractional part; ties keep index order."""
    return sorted(range(len(raw)), key=lambda i: -(raw[i] - math.floor(raw[i])))


def quotas_from_percents(total: int, percents: Sequence[float]) -> list[int]:
    """Split ``total`` into integer counts proportional to ``percents``.

    The counts always sum to ``total`` exactly.
    """
    if total < 0:
        raise InvalidInputError(f"Invalid total: {total}")
    weight_sum = sum(percents)
    if weight_sum <= 0:
        raise InvalidInputError(f"Percentages must have a positive sum, got {list(percents)}")
    if any(p < 0 for p in percents):
        raise InvalidInputError(f"Percentages must be non-negative, got {list(percents)}")

    raw = [p / weight_sum * total for p in percents]
    counts = [math.floor(x) for x in raw]
    remainder = total - sum(counts)
    for i in _by_largest_remainder(raw)[:remainder]:
        counts[i] += 1
    return counts


def quotas_hamilton_cap(
    total: int,
    weights: Sequence[float],
    caps: Sequence[int],
) -> list[int]:
    """Like :func:`quotas_from_percents` but bucket ``i`` never exceeds ``caps[i]``.

    Units blocked by a cap are swept left to right into any bucket with room.
    """
    if len(weights) != len(caps):
        raise InvalidInputError(
            f"weights and caps differ in length: {len(weights)} != {len(caps)}"
        )
    if total < 0 or any(c < 0 for c in caps) or any(w < 0 for w in weights):
        raise InvalidInputError(
            f"Negative quota input: total {total}, weights {list(weights)}, caps {list(caps)}"
        )
    n = len(weights)
    weight_sum = sum(weights) or 1
    raw = [total * (w / weight_sum) for w in weights]

    counts = [0] * n
    remaining = total
    for i in range(n):
        counts[i] = min(math.floor(raw[i]), caps[i])
        remaining -= counts[i]

    for i in _by_largest_remainder(raw):
        if remaining <= 0:
            break
        if counts[i] < caps[i]:
            counts[i] += 1
            remaining -= 1

    for i in range(n):
        if remaining <= 0:
            break
        take = min(caps[i] - counts[i], remaining)
        counts[i] += take
        remaining -= take

    if remaining != 0:
        raise InfeasibleQuotaError(
            f"Cannot place {total} across caps {list(caps)} ({remaining} left over)"
        )
    return counts
