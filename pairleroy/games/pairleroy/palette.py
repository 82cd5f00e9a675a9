"""Interactive combo sampling: one weighted draw at a time, no global quotas."""

from __future__ import annotations

from collections.abc import Sequence

from pairleroy.games.pairleroy.rng import Rng
from pairleroy.games.pairleroy.types import (
    BiCombo,
    Combo,
    MonoCombo,
    TileType,
    TriCombo,
    rotation_steps_for_combo,
)

PALETTE_SIZE = 4


def pick_weighted(weights: Sequence[float], rng: Rng) -> int:
    """Roulette-wheel pick over the positive weights. Returns 0 if none."""
    positive = [(i, w) for i, w in enumerate(weights) if w > 0]
    if not positive:
        return 0
    r = rng() * sum(w for _, w in positive)
    for idx, weight in positive:
        r -= weight
        if r <= 0:
            return idx
    return positive[-1][0]


def _pick_color(
    color_pct: Sequence[float],
    rng: Rng,
    exclude: Sequence[int] = (),
    allow_fallback: bool = True,
) -> int:
    weights = [0 if i in exclude else p for i, p in enumerate(color_pct)]
    if not any(w > 0 for w in weights):
        if allow_fallback:
            weights = list(color_pct)
        else:
            pool = [i for i in range(len(color_pct)) if i not in exclude]
            if not pool:
                return 0
            return pool[int(rng() * len(pool))]
    return pick_weighted(weights, rng)


def sample_combo(
    types_pct: Sequence[float],
    color_pct: Sequence[float],
    rng: Rng,
) -> Combo:
    """Draw one combo: a weighted tile type, then weighted colours for it."""
    tile_type = pick_weighted(types_pct, rng) + 1

    if tile_type == TileType.MONO:
        return MonoCombo(color=_pick_color(color_pct, rng))

    if tile_type == TileType.BI:
        major = _pick_color(color_pct, rng)
        minor = _pick_color(color_pct, rng, exclude=[major], allow_fallback=False)
        return BiCombo(major=major, minor=minor)

    available = sum(1 for p in color_pct if p > 0)
    if available >= 3:
        colors: list[int] = []
        for _ in range(3):
            colors.append(_pick_color(color_pct, rng, exclude=colors, allow_fallback=False))
    else:
        colors = [_pick_color(color_pct, rng) for _ in range(3)]
    return TriCombo(color_a=colors[0], color_b=colors[1], color_c=colors[2])


def create_palette(
    types_pct: Sequence[float],
    color_pct: Sequence[float],
    rng: Rng,
    size: int = PALETTE_SIZE,
) -> list[Combo]:
    """Draw ``size`` independent combos, each at its first rotation step."""
    combos: list[Combo] = []
    for _ in range(size):
        combo = sample_combo(types_pct, color_pct, rng)
        combo.rotation_step = rotation_steps_for_combo(combo)[0]
        combos.append(combo)
    return combos
