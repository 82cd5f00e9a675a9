"""Board logic: placement validation by edge matching, junction readiness."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from functools import lru_cache

from pairleroy.games.pairleroy.errors import InvalidInputError
from pairleroy.games.pairleroy.hexgrid import (
    DEFAULT_RADIUS,
    build_neighbor_data,
    compute_junction_map,
    generate_axial_grid,
    hex_distance,
    rings_by_distance,
)
from pairleroy.games.pairleroy.types import (
    SIDES,
    Combo,
    Junction,
    JunctionKey,
    Placement,
    normalize_rotation_step,
    oriented_side_colors,
    rotation_steps_for_combo,
)

logger = logging.getLogger(__name__)


def opposite_direction(direction: int) -> int:
    return (direction + 3) % SIDES


@lru_cache(maxsize=8)
def _geometry(radius: int) -> tuple:
    """Read-only geometry shared by every board of the same radius."""
    tiles = generate_axial_grid(radius)
    index_map, neighbors = build_neighbor_data(tiles)
    junctions = compute_junction_map(tiles)
    junctions_by_tile: dict[int, list[Junction]] = {}
    for junction in junctions.values():
        for tile_idx in junction.tiles:
            junctions_by_tile.setdefault(tile_idx, []).append(junction)
    return tiles, index_map, neighbors, junctions, rings_by_distance(tiles), junctions_by_tile


class Board:
    """Tiles, neighbour table, junctions and current placements for one radius.

    The geometry is built once in the constructor; only ``placements`` changes
    during play.
    """

    def __init__(self, radius: int = DEFAULT_RADIUS) -> None:
        self.radius = radius
        (
            self.tiles,
            self.index_map,
            self.neighbors,
            self.junctions,
            self.rings,
            self._junctions_by_tile,
        ) = _geometry(radius)
        self.center_index = self.index_map.get((0, 0), 0)
        self._distance_cache: dict[tuple[int, int], int] = {}
        self.placements: list[Placement | None] = [None] * len(self.tiles)
        self.placed_count = 0

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    def empty_tiles(self) -> set[int]:
        return {i for i, p in enumerate(self.placements) if p is None}

    def is_full(self) -> bool:
        return self.placed_count >= len(self.tiles)

    def is_placed(self, tile_idx: int) -> bool:
        return self.placements[tile_idx] is not None

    def _check_index(self, tile_idx: int) -> None:
        if not 0 <= tile_idx < len(self.tiles):
            raise IndexError(f"Tile index out of range: {tile_idx}")

    # ── Placement ──

    def can_place(self, tile_idx: int, side_colors: Sequence[int]) -> bool:
        """Check if oriented side colours can go on ``tile_idx``.

        Rules:
        1. Tile must be empty
        2. Every placed neighbour must show the same colour on the shared edge
        3. Tile must touch a placed neighbour, unless the board is empty
        """
        self._check_index(tile_idx)
        if len(side_colors) != SIDES:
            raise InvalidInputError(f"Expected {SIDES} side colours, got {len(side_colors)}")
        if self.placements[tile_idx] is not None:
            return False

        has_neighbor = False
        for direction, neighbor_idx in enumerate(self.neighbors[tile_idx]):
            if neighbor_idx == -1:
                continue
            neighbor = self.placements[neighbor_idx]
            if neighbor is None:
                continue
            has_neighbor = True
            if neighbor.side_colors[opposite_direction(direction)] != side_colors[direction]:
                return False

        return has_neighbor or self.placed_count == 0

    def commit_placement(
        self,
        tile_idx: int,
        combo: Combo,
        rotation_step: int,
        side_colors: Sequence[int],
        player_id: str | None = None,
    ) -> Placement:
        """Record a placement. Assumes can_place() has already returned True."""
        placement = Placement(
            player_id=player_id,
            combo=combo.model_copy(update={"rotation_step": rotation_step}),
            rotation_step=rotation_step,
            side_colors=list(side_colors),
        )
        self.placements[tile_idx] = placement
        self.placed_count += 1
        logger.debug(f"placed {combo.colors} on tile {tile_idx} (step {rotation_step})")
        return placement

    def try_place_combo(
        self,
        tile_idx: int,
        combo: Combo,
        player_id: str | None = None,
    ) -> Placement | None:
        """Place ``combo`` at its current rotation if the edges allow it."""
        rotation = normalize_rotation_step(combo, combo.rotation_step)
        oriented = oriented_side_colors(combo, rotation)
        if not self.can_place(tile_idx, oriented):
            return None
        combo.rotation_step = rotation
        return self.commit_placement(tile_idx, combo, rotation, oriented, player_id)

    def remove_placement(self, tile_idx: int) -> Placement | None:
        self._check_index(tile_idx)
        placement = self.placements[tile_idx]
        if placement is not None:
            self.placements[tile_idx] = None
            self.placed_count = max(0, self.placed_count - 1)
        return placement

    def clear(self) -> None:
        self.placements = [None] * len(self.tiles)
        self.placed_count = 0

    def valid_placements(self, combo: Combo) -> list[tuple[int, int]]:
        """All (tile_idx, rotation_step) pairs where ``combo`` fits."""
        found: list[tuple[int, int]] = []
        for step in rotation_steps_for_combo(combo):
            oriented = oriented_side_colors(combo, step)
            for tile_idx in sorted(self.empty_tiles()):
                if self.can_place(tile_idx, oriented):
                    found.append((tile_idx, step))
        return found

    # ── Neighbourhood ──

    def neighbor_placement_count(self, tile_idx: int) -> int:
        return sum(
            1 for n in self.neighbors[tile_idx] if n >= 0 and self.placements[n] is not None
        )

    def hex_distance_between(self, idx_a: int, idx_b: int) -> int:
        if idx_a == idx_b:
            return 0
        key = (min(idx_a, idx_b), max(idx_a, idx_b))
        cached = self._distance_cache.get(key)
        if cached is None:
            cached = hex_distance(self.tiles[key[0]], self.tiles[key[1]])
            self._distance_cache[key] = cached
        return cached

    # ── Junctions ──

    def junction(self, key: JunctionKey) -> Junction:
        if key not in self.junctions:
            raise KeyError(f"Unknown junction: {key}")
        return self.junctions[key]

    def junctions_around(self, tile_idx: int) -> list[Junction]:
        return list(self._junctions_by_tile.get(tile_idx, []))

    def is_junction_ready(self, junction: Junction) -> bool:
        """A junction is ready once three distinct contributing tiles are placed."""
        contributing = {
            tile_idx for tile_idx, _v in junction.entries if self.placements[tile_idx] is not None
        }
        return len(contributing) >= 3

    def ready_junctions(self) -> Iterator[Junction]:
        for junction in self.junctions.values():
            if self.is_junction_ready(junction):
                yield junction

    def junction_distance(self, a: Junction, b: Junction) -> int:
        """Smallest hex distance between the tiles of two junctions."""
        return min(self.hex_distance_between(i, j) for i in a.tiles for j in b.tiles)

    # ── Serialisation ──

    def to_dict(self) -> dict:
        return {
            "radius": self.radius,
            "placements": {
                str(idx): p.model_dump(mode="json")
                for idx, p in enumerate(self.placements)
                if p is not None
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> Board:
        board = cls(radius=data["radius"])
        for key, raw in data.get("placements", {}).items():
            board.placements[int(key)] = Placement.model_validate(raw)
            board.placed_count += 1
        return board
