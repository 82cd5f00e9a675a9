"""Automatic board filling: place palette combos ring by ring from the centre."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal

from pairleroy.config import settings
from pairleroy.games.pairleroy.board import Board
from pairleroy.games.pairleroy.palette import PALETTE_SIZE, create_palette
from pairleroy.games.pairleroy.rng import Rng
from pairleroy.games.pairleroy.types import (
    Combo,
    normalize_rotation_step,
    oriented_side_colors,
    rotation_steps_for_combo,
)

logger = logging.getLogger(__name__)

StepResult = Literal["placed", "halt", "done"]

DEFAULT_MAX_ATTEMPTS = 12


def _rotation_order(combo: Combo) -> list[int]:
    order = list(rotation_steps_for_combo(combo))
    preferred = normalize_rotation_step(combo, combo.rotation_step)
    if preferred in order:
        order.remove(preferred)
        order.insert(0, preferred)
    return order


def attempt_placement_with_palette(board: Board, palette: Sequence[Combo | None]) -> int | None:
    """Place the first palette combo that fits, innermost ring first.

    Placements are unowned. Returns the tile index used, or None.
    """
    empty = board.empty_tiles()
    for ring in board.rings:
        available = [idx for idx in ring if idx in empty]
        if not available:
            continue
        for combo in palette:
            if combo is None:
                continue
            for step in _rotation_order(combo):
                oriented = oriented_side_colors(combo, step)
                for tile_idx in available:
                    if not board.can_place(tile_idx, oriented):
                        continue
                    combo.rotation_step = step
                    board.commit_placement(tile_idx, combo, step, oriented)
                    return tile_idx
    return None


class AutoFiller:
    """Steps a board towards full, one placement per call."""

    def __init__(
        self,
        board: Board,
        types_pct: Sequence[float],
        color_pct: Sequence[float],
        rng: Rng,
        palette_size: int = PALETTE_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.board = board
        self.types_pct = list(types_pct)
        self.color_pct = list(color_pct)
        self.rng = rng
        self.palette_size = palette_size
        self.max_attempts = max_attempts
        self.pending_palette: list[Combo] | None = None
        self.done = False

    def _new_palette(self) -> list[Combo]:
        return create_palette(self.types_pct, self.color_pct, self.rng, self.palette_size)

    def step(self) -> StepResult:
        if self.done:
            return "done"
        if self.board.is_full():
            self.done = True
            return "done"

        palette = self.pending_palette
        self.pending_palette = None
        for attempt in range(self.max_attempts):
            if not palette:
                palette = self._new_palette()
                if not palette:
                    return "halt"
            tile_idx = attempt_placement_with_palette(self.board, palette)
            if tile_idx is not None:
                if settings.debug_autofill:
                    logger.debug(f"autofill placed tile {tile_idx} on attempt {attempt + 1}")
                self.pending_palette = self._new_palette()
                return "placed"
            palette = None

        logger.info(
            f"autofill halted after {self.max_attempts} palettes, "
            f"{self.board.placed_count}/{self.board.tile_count} tiles placed"
        )
        return "halt"

    def run(self, max_steps: int | None = None) -> StepResult:
        """Step until the board is full, a step halts, or ``max_steps`` is spent."""
        result: StepResult = "placed"
        steps = 0
        while max_steps is None or steps < max_steps:
            result = self.step()
            if result != "placed":
                break
            steps += 1
        return result
