"""Bulk combo assignment under exact colour-unit quotas.

Every tile carries 3 colour units: a mono tile spends all 3 on one colour, a
bi tile 2 on its major and 1 on its minor, a tri tile 1 on each of three
distinct colours. Given per-colour unit targets summing to 3 * N, the engine
allocates units in three phases (mono, bi-major, then bi-minor and tri) so
that the finished board uses every colour exactly as often as requested.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from pairleroy.games.pairleroy.errors import (
    InfeasibleTriAssignmentError,
    InfeasibleTriColorError,
    InvalidInputError,
    InvariantViolationError,
)
from pairleroy.games.pairleroy.quotas import quotas_from_percents, quotas_hamilton_cap
from pairleroy.games.pairleroy.rng import Rng
from pairleroy.games.pairleroy.types import (
    NUM_COLORS,
    UNITS_PER_TILE,
    BiCombo,
    Combo,
    MonoCombo,
    TileType,
    TriCombo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reshuffles of the bi-minor list spent trying to avoid major == minor pairs.
MAX_PAIRING_RESHUFFLES = 50


def seeded_shuffle(items: list[T], rng: Rng) -> list[T]:
    """Fisher-Yates shuffle in place, driven by ``rng``."""
    for i in range(len(items) - 1, 0, -1):
        j = int(rng() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def _expand(counts: Sequence[int]) -> list[int]:
    return [c for c in range(NUM_COLORS) for _ in range(counts[c])]


def _positive_colors(counts: Sequence[int]) -> int:
    return sum(1 for v in counts if v > 0)


def _build_tri_triples(counts: list[int], tri_tile_count: int) -> list[list[int]]:
    """Greedily take the three most abundant colours for each tri tile."""
    triples: list[list[int]] = []
    for _ in range(tri_tile_count):
        avail = sorted(
            (c for c in range(NUM_COLORS) if counts[c] > 0),
            key=lambda c: -counts[c],
        )
        if len(avail) < 3:
            raise InfeasibleTriAssignmentError(
                f"Only {len(avail)} colours left for tri tile {len(triples) + 1}/{tri_tile_count}"
            )
        tri = avail[:3]
        for c in tri:
            counts[c] -= 1
        triples.append(tri)
    return triples


def _repair_self_pairs(majors: list[int], minors: list[int]) -> None:
    """Swap minors between bi tiles until no tile pairs a colour with itself.

    A swap with tile ``j`` is only made when neither tile ends up self-paired,
    so per-colour totals never change. Pairs with no such partner are left.
    """
    for i in range(len(majors)):
        if majors[i] != minors[i]:
            continue
        for j in range(len(majors)):
            if minors[j] != majors[i] and majors[j] != minors[i]:
                minors[i], minors[j] = minors[j], minors[i]
                break


def assign_tile_combos(
    types: Sequence[int],
    color_unit_targets: Sequence[int],
    rng: Rng,
) -> list[Combo]:
    """Give every tile a combo so that colour usage matches the unit targets.

    ``types[i]`` is 1, 2 or 3 (mono, bi, tri). ``color_unit_targets`` holds
    one unit count per colour and must sum to ``3 * len(types)``.
    """
    if len(color_unit_targets) != NUM_COLORS:
        raise InvalidInputError(
            f"Expected {NUM_COLORS} colour targets, got {len(color_unit_targets)}"
        )
    if any(u < 0 for u in color_unit_targets):
        raise InvalidInputError(
            f"Colour targets must be non-negative, got {list(color_unit_targets)}"
        )
    if any(t not in (TileType.MONO, TileType.BI, TileType.TRI) for t in types):
        raise InvalidInputError(f"Tile types must be 1, 2 or 3, got {sorted(set(types))}")

    n = len(types)
    mono_tile_count = sum(1 for k in types if k == TileType.MONO)
    bi_tile_count = sum(1 for k in types if k == TileType.BI)
    tri_tile_count = sum(1 for k in types if k == TileType.TRI)

    remaining = list(color_unit_targets)

    # Phase 1: mono tiles take 3 units of a single colour
    mono_cap = [u // 3 for u in remaining]
    mono_counts = quotas_hamilton_cap(mono_tile_count, remaining, mono_cap)
    for c in range(NUM_COLORS):
        remaining[c] -= 3 * mono_counts[c]

    # Phase 2: bi tiles take 2 units of their major colour
    bi_cap = [u // 2 for u in remaining]
    bi_major_counts = quotas_hamilton_cap(bi_tile_count, remaining, bi_cap)
    for c in range(NUM_COLORS):
        remaining[c] -= 2 * bi_major_counts[c]

    # Phase 3: what is left feeds one bi-minor unit per bi tile and 3 per tri tile
    expected = bi_tile_count + 3 * tri_tile_count
    if sum(remaining) != expected:
        raise InvariantViolationError(
            f"Unit conservation broken: {sum(remaining)} units left, "
            f"{expected} needed (targets {list(color_unit_targets)}, {n} tiles)"
        )

    bi_minor_counts = quotas_hamilton_cap(bi_tile_count, remaining, remaining)
    tri_counts = [remaining[c] - bi_minor_counts[c] for c in range(NUM_COLORS)]

    if tri_tile_count > 0 and _positive_colors(tri_counts) < 3:
        for c in range(NUM_COLORS):
            if _positive_colors(tri_counts) >= 3:
                break
            if tri_counts[c] == 0 and bi_minor_counts[c] > 0:
                # Swap one unit each way so both totals stay put
                donors = [d for d in range(NUM_COLORS) if d != c and tri_counts[d] > 1]
                if not donors:
                    break
                donor = max(donors, key=lambda d: tri_counts[d])
                bi_minor_counts[c] -= 1
                tri_counts[c] += 1
                tri_counts[donor] -= 1
                bi_minor_counts[donor] += 1
        if _positive_colors(tri_counts) < 3:
            raise InfeasibleTriColorError(
                f"Tri tiles need 3 colours, tri units available: {tri_counts}"
            )

    logger.debug(
        f"assign_tile_combos quotas mono={mono_counts} bi_major={bi_major_counts} "
        f"bi_minor={bi_minor_counts} tri={tri_counts}"
    )

    monos = _expand(mono_counts)
    bi_majors = _expand(bi_major_counts)
    bi_minors = _expand(bi_minor_counts)
    seeded_shuffle(bi_majors, rng)
    seeded_shuffle(bi_minors, rng)
    for _ in range(MAX_PAIRING_RESHUFFLES):
        if not any(maj == mn for maj, mn in zip(bi_majors, bi_minors)):
            break
        seeded_shuffle(bi_minors, rng)

    _repair_self_pairs(bi_majors, bi_minors)

    tri_triples = _build_tri_triples(list(tri_counts), tri_tile_count)

    for name, built, wanted in (
        ("mono", len(monos), mono_tile_count),
        ("bi-major", len(bi_majors), bi_tile_count),
        ("bi-minor", len(bi_minors), bi_tile_count),
        ("tri", len(tri_triples), tri_tile_count),
    ):
        if built != wanted:
            raise InvariantViolationError(f"Built {built} {name} colours for {wanted} tiles")

    idx_by_type: dict[int, list[int]] = {TileType.MONO: [], TileType.BI: [], TileType.TRI: []}
    for i, k in enumerate(types):
        idx_by_type[k].append(i)
    for k in (TileType.MONO, TileType.BI, TileType.TRI):
        seeded_shuffle(idx_by_type[k], rng)

    combos: list[Combo | None] = [None] * n
    for tile_idx, color in zip(idx_by_type[TileType.MONO], monos):
        combos[tile_idx] = MonoCombo(color=color)
    for tile_idx, maj, mn in zip(idx_by_type[TileType.BI], bi_majors, bi_minors):
        if maj == mn:
            logger.debug(f"assign_tile_combos self-pair on colour {maj}, minor bumped")
            mn = (maj + 1) % NUM_COLORS
        combos[tile_idx] = BiCombo(major=maj, minor=mn)
    for tile_idx, tri in zip(idx_by_type[TileType.TRI], tri_triples):
        combos[tile_idx] = TriCombo(color_a=tri[0], color_b=tri[1], color_c=tri[2])

    return combos  # type: ignore[return-value]


def tile_types_from_percents(
    tile_count: int,
    types_pct: Sequence[float],
    rng: Rng,
) -> list[int]:
    """Draw a shuffled list of tile types matching the mono/bi/tri percentages."""
    if len(types_pct) != 3:
        raise InvalidInputError(f"Expected 3 type percentages, got {len(types_pct)}")
    counts = quotas_from_percents(tile_count, types_pct)
    types = [k for k, count in zip((TileType.MONO, TileType.BI, TileType.TRI), counts) for _ in range(count)]
    return seeded_shuffle([int(k) for k in types], rng)


def assign_board_combos(
    tile_count: int,
    types_pct: Sequence[float],
    color_pct: Sequence[float],
    rng: Rng,
) -> list[Combo]:
    """Pre-fill a whole board: pick tile types, then assign exact-quota combos."""
    if len(color_pct) != NUM_COLORS:
        raise InvalidInputError(f"Expected {NUM_COLORS} colour percentages, got {len(color_pct)}")
    types = tile_types_from_percents(tile_count, types_pct, rng)
    targets = quotas_from_percents(UNITS_PER_TILE * tile_count, color_pct)
    logger.debug(f"assign_board_combos {tile_count} tiles, unit targets {targets}")
    return assign_tile_combos(types, targets, rng)
