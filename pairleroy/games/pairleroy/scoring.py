"""Points, crowns and per-player resource ledgers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from pairleroy.games.pairleroy.rules import POINTS_PER_CROWN
from pairleroy.games.pairleroy.types import Combo

logger = logging.getLogger(__name__)


def points_for_neighbor_count(count: int, table: Sequence[int]) -> int:
    """Points earned for a placement touching ``count`` placed neighbours.

    Counts beyond the end of the table use its last entry.
    """
    if count <= 0 or not table:
        return 0
    return table[min(len(table) - 1, count)]


def crowns_from_score(score: int, points_per_crown: int = POINTS_PER_CROWN) -> int:
    if score <= 0:
        return 0
    return score // points_per_crown


class PlayerLedger(BaseModel):
    """Score and resources held by one player."""

    player_id: str
    score: int = 0
    crowns: int = 0
    tile_colors: dict[int, int] = Field(default_factory=dict)
    # junction key string -> amenagement colour (None when undetermined)
    amenagements: dict[str, int | None] = Field(default_factory=dict)
    amenagement_colors: dict[int, int] = Field(default_factory=dict)


def _adjust_tally(tally: dict[int, int], color: int, delta: int) -> None:
    value = tally.get(color, 0) + delta
    if value > 0:
        tally[color] = value
    else:
        tally.pop(color, None)


def award_points(
    ledger: PlayerLedger,
    delta: int,
    source: str = "generic",
    points_per_crown: int = POINTS_PER_CROWN,
) -> int:
    """Add ``delta`` to the score and keep crowns in step. Returns the crown delta."""
    if delta == 0:
        return 0
    previous = ledger.score
    ledger.score = previous + delta
    crown_delta = crowns_from_score(ledger.score, points_per_crown) - crowns_from_score(
        previous, points_per_crown
    )
    ledger.crowns += crown_delta
    logger.debug(
        f"award_points {ledger.player_id}: {delta:+d} ({source}) -> {ledger.score}, "
        f"crowns {crown_delta:+d}"
    )
    return crown_delta


def spend_points(
    ledger: PlayerLedger,
    cost: int,
    reason: str = "spend",
    points_per_crown: int = POINTS_PER_CROWN,
) -> bool:
    """Pay ``cost`` points. Returns False, leaving the score untouched, if short."""
    if cost <= 0:
        return True
    if ledger.score < cost:
        logger.debug(f"{ledger.player_id} cannot pay {cost} for {reason} (has {ledger.score})")
        return False
    award_points(ledger, -cost, reason, points_per_crown)
    return True


def adjust_tile_resources(ledger: PlayerLedger, combo: Combo, delta: int) -> None:
    """Credit (delta=1) or debit (delta=-1) the colour units of a placed combo."""
    for color, units in zip(combo.colors, combo.units):
        _adjust_tally(ledger.tile_colors, color, units * delta)


def register_amenagement(ledger: PlayerLedger, key: str, color: int | None) -> None:
    if key not in ledger.amenagements and color is not None and color >= 0:
        _adjust_tally(ledger.amenagement_colors, color, 1)
    ledger.amenagements[key] = color


def unregister_amenagement(ledger: PlayerLedger, key: str) -> None:
    if key not in ledger.amenagements:
        return
    color = ledger.amenagements.pop(key)
    if color is not None and color >= 0:
        _adjust_tally(ledger.amenagement_colors, color, -1)
