"""Alternate colour assignment framed as a constraint search.

Each tile of arity k needs k distinct colours drawn from a shared pool of
per-colour counts. Tiles are visited most-constrained first (tri, bi, mono)
and candidate colour sets are tried depth first with undo on failure.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from pairleroy.games.pairleroy.assignment import seeded_shuffle
from pairleroy.games.pairleroy.errors import AssignmentInfeasibleError
from pairleroy.games.pairleroy.rng import Rng

logger = logging.getLogger(__name__)

DEFAULT_MAX_BACKTRACKS = 5000
CANDIDATE_DRAWS = 6


def choose_k_distinct_colors(counts: Sequence[int], k: int, rng: Rng) -> list[int] | None:
    """Draw k distinct colours, each weighted by its remaining count.

    Returns None when fewer than k colours have a positive count.
    """
    avail = [i for i, c in enumerate(counts) if c > 0]
    if len(avail) < k:
        return None
    chosen: list[int] = []
    local = list(counts)
    for _ in range(k):
        pool = [(i, local[i]) for i in avail if local[i] > 0 and i not in chosen]
        total = sum(w for _, w in pool)
        if not pool or total == 0:
            return None
        r = rng() * total
        pick = pool[0][0]
        for i, w in pool:
            r -= w
            if r <= 0:
                pick = i
                break
        chosen.append(pick)
        local[pick] -= 1
    return chosen


def _candidate_sets(counts: list[int], k: int, rng: Rng) -> list[list[int]]:
    seen: dict[tuple[int, ...], None] = {}
    for _ in range(CANDIDATE_DRAWS):
        cset = choose_k_distinct_colors(counts, k, rng)
        if cset is None:
            break
        seen[tuple(sorted(cset))] = None
    if not seen:
        by_abundance = sorted(
            (i for i in range(len(counts)) if counts[i] > 0),
            key=lambda i: -counts[i],
        )
        if len(by_abundance) >= k:
            seen[tuple(sorted(by_abundance[:k]))] = None
    candidates = [list(key) for key in seen]
    return seeded_shuffle(candidates, rng)


@dataclass
class _Frame:
    pos: int
    candidates: list[list[int]]
    next_idx: int = 0
    applied: list[int] | None = field(default=None)


def assign_colors_to_tiles(
    types: Sequence[int],
    color_counts: Sequence[int],
    rng: Rng,
    max_backtracks: int = DEFAULT_MAX_BACKTRACKS,
) -> list[list[int]]:
    """Give each tile ``types[i]`` distinct colours without exceeding ``color_counts``.

    Returns the sorted colour set of every tile, in input order. Raises
    AssignmentInfeasibleError when the search fails or spends more than
    ``max_backtracks`` dead ends.
    """
    order = sorted(range(len(types)), key=lambda i: -types[i])
    result: list[list[int] | None] = [None] * len(types)
    if not order:
        return []

    counts = list(color_counts)
    backtracks = 0
    stack = [_Frame(pos=0, candidates=_candidate_sets(counts, types[order[0]], rng))]

    while stack:
        frame = stack[-1]
        if frame.applied is not None:
            for c in frame.applied:
                counts[c] += 1
            frame.applied = None

        if frame.next_idx >= len(frame.candidates):
            stack.pop()
            backtracks += 1
            if backtracks > max_backtracks:
                raise AssignmentInfeasibleError(
                    f"Gave up after {backtracks} backtracks", backtracks=backtracks,
                )
            continue

        comb = frame.candidates[frame.next_idx]
        frame.next_idx += 1
        if any(counts[c] <= 0 for c in comb):
            continue

        for c in comb:
            counts[c] -= 1
        frame.applied = comb
        result[order[frame.pos]] = comb

        next_pos = frame.pos + 1
        if next_pos == len(order):
            logger.debug(f"assign_colors_to_tiles solved with {backtracks} backtracks")
            return result  # type: ignore[return-value]
        stack.append(
            _Frame(pos=next_pos, candidates=_candidate_sets(counts, types[order[next_pos]], rng))
        )

    raise AssignmentInfeasibleError(
        f"No colour assignment for quotas {list(color_counts)}", backtracks=backtracks,
    )
