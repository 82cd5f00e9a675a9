"""Castles, outposts and amenagements on board junctions.

Each player's first structure is a castle; every later one is an outpost.
Castles and outposts project influence over nearby junctions, and a ready
junction inside someone's influence becomes an amenagement owned by the
closest influencing player.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pairleroy.games.pairleroy.board import Board
from pairleroy.games.pairleroy.rules import RuleSettings
from pairleroy.games.pairleroy.scoring import (
    PlayerLedger,
    register_amenagement,
    spend_points,
    unregister_amenagement,
)
from pairleroy.games.pairleroy.types import (
    Junction,
    JunctionKey,
    junction_key_from_str,
    junction_key_to_str,
)

logger = logging.getLogger(__name__)

CASTLE = "castle"
OUTPOST = "outpost"
_TYPE_PRIORITY = {CASTLE: 0, OUTPOST: 1}


class StructureTracker:
    """Structure ownership for one game, keyed by junction."""

    def __init__(
        self,
        board: Board,
        rules: RuleSettings,
        seat_order: Sequence[str],
        ledgers: dict[str, PlayerLedger],
    ) -> None:
        self.board = board
        self.rules = rules
        self.seat_order = list(seat_order)
        self.ledgers = ledgers
        self.castles: dict[JunctionKey, str] = {}
        self.outposts: dict[JunctionKey, str] = {}
        self.amenagements: dict[JunctionKey, str] = {}

    # ── Influence ──

    def find_castle_key(self, player_id: str) -> JunctionKey | None:
        for key, owner in self.castles.items():
            if owner == player_id:
                return key
        return None

    def influence_sources(self, player_id: str) -> list[tuple[Junction, str]]:
        sources: list[tuple[Junction, str]] = []
        castle_key = self.find_castle_key(player_id)
        if castle_key is not None:
            sources.append((self.board.junctions[castle_key], CASTLE))
        for key, owner in self.outposts.items():
            if owner == player_id:
                sources.append((self.board.junctions[key], OUTPOST))
        return sources

    def player_has_influence(self, player_id: str, junction: Junction) -> bool:
        limit = max(0, self.rules.influence_radius)
        return any(
            self.board.junction_distance(source, junction) <= limit
            for source, _kind in self.influence_sources(player_id)
        )

    def nearest_influence(self, player_id: str, junction: Junction) -> tuple[int, str] | None:
        """(distance, kind) of the player's closest source; castles win ties."""
        best: tuple[int, str] | None = None
        for source, kind in self.influence_sources(player_id):
            dist = self.board.junction_distance(source, junction)
            if best is None or (dist, _TYPE_PRIORITY[kind]) < (best[0], _TYPE_PRIORITY[best[1]]):
                best = (dist, kind)
        return best

    # ── Amenagements ──

    def dominant_color_for_junction(self, junction: Junction) -> int | None:
        """Most common primary colour among the placed tiles; first seen wins ties."""
        counts: dict[int, int] = {}
        for tile_idx in junction.tiles:
            placement = self.board.placements[tile_idx]
            if placement is None:
                continue
            primary = placement.combo.colors[0]
            counts[primary] = counts.get(primary, 0) + 1
        best: int | None = None
        best_count = 0
        for color, count in counts.items():
            if count > best_count:
                best, best_count = color, count
        return best

    def dominant_player_for_junction(self, junction: Junction) -> str | None:
        """The player who placed most of the junction's tiles, or None on a tie."""
        counts: dict[str, int] = {}
        for tile_idx in junction.tiles:
            placement = self.board.placements[tile_idx]
            if placement is None or placement.player_id is None:
                continue
            counts[placement.player_id] = counts.get(placement.player_id, 0) + 1
        if not counts:
            return None
        top = max(counts.values())
        leaders = [pid for pid, count in counts.items() if count == top]
        return leaders[0] if len(leaders) == 1 else None

    def _seat(self, player_id: str | None) -> int:
        if player_id in self.seat_order:
            return self.seat_order.index(player_id)
        return -1

    def infer_amenagement_owner(
        self, junction: Junction, placing_player: str | None = None
    ) -> str | None:
        """Pick who owns the amenagement at ``junction``.

        Closest influencing player first, castles before outposts at equal
        distance. Remaining ties go to the next seat after ``placing_player``.
        Without any influence the sole majority placer is returned.
        """
        details: list[tuple[int, int, int, str]] = []
        for player_id in self.seat_order:
            if not self.player_has_influence(player_id, junction):
                continue
            nearest = self.nearest_influence(player_id, junction)
            if nearest is None:
                continue
            dist, kind = nearest
            details.append((dist, _TYPE_PRIORITY[kind], self._seat(player_id), player_id))

        if not details:
            return self.dominant_player_for_junction(junction)

        details.sort()
        best_dist, best_rank = details[0][0], details[0][1]
        best_players = [d[3] for d in details if d[0] == best_dist and d[1] == best_rank]
        if len(best_players) == 1:
            return best_players[0]

        start = max(0, self._seat(placing_player))
        count = len(self.seat_order)
        for offset in range(1, count + 1):
            candidate = self.seat_order[(start + offset) % count]
            if candidate in best_players:
                return candidate
        return best_players[0]

    def evaluate_amenagements_around(
        self,
        tile_idx: int,
        placing_player: str | None = None,
        allow_creation: bool = True,
    ) -> list[JunctionKey]:
        """Create or hand over amenagements on the ready junctions of a tile.

        Returns the junction keys whose owner changed.
        """
        changed: list[JunctionKey] = []
        for junction in self.board.junctions_around(tile_idx):
            if not self.board.is_junction_ready(junction):
                continue
            owner = self.infer_amenagement_owner(junction, placing_player)
            if owner is None or not self.player_has_influence(owner, junction):
                continue
            current = self.amenagements.get(junction.key)
            if current == owner or (current is None and not allow_creation):
                continue

            key_str = junction_key_to_str(junction.key)
            if current is None:
                if not spend_points(
                    self.ledgers[owner],
                    self.rules.amenagement_cost,
                    "amenagement",
                    self.rules.points_per_crown,
                ):
                    logger.debug(f"Amenagement at {key_str} unpaid by {owner}")
                    continue
            else:
                unregister_amenagement(self.ledgers[current], key_str)

            self.amenagements[junction.key] = owner
            register_amenagement(
                self.ledgers[owner], key_str, self.dominant_color_for_junction(junction)
            )
            changed.append(junction.key)
        return changed

    def cleanup_amenagements_for_player(self, player_id: str) -> list[JunctionKey]:
        """Drop the player's amenagements that are no longer under their influence."""
        removed = [
            key
            for key, owner in self.amenagements.items()
            if owner == player_id
            and not self.player_has_influence(player_id, self.board.junctions[key])
        ]
        for key in removed:
            del self.amenagements[key]
            unregister_amenagement(self.ledgers[player_id], junction_key_to_str(key))
        return removed

    # ── Castles and outposts ──

    def validate_toggle(
        self, player_id: str, key: JunctionKey, colon_tile: int | None
    ) -> str | None:
        """Return an error message, or None if the toggle is allowed."""
        junction = self.board.junctions.get(key)
        if junction is None:
            return f"Unknown junction: {junction_key_to_str(key)}"
        if not self.board.is_junction_ready(junction):
            return "Junction needs three placed tiles"

        for existing in (self.castles, self.outposts):
            if key in existing:
                if existing[key] != player_id:
                    return "Structure belongs to another player"
                return None

        ledger = self.ledgers[player_id]
        if self.find_castle_key(player_id) is None:
            if self.rules.require_castle_adjacency_for_castles and colon_tile not in junction.tiles:
                return "Castle must touch the tile holding your colon"
            if ledger.score < self.rules.castle_cost:
                return f"Castle costs {self.rules.castle_cost} points"
            return None

        if not self.player_has_influence(player_id, junction):
            return "Outpost must be within your influence"
        if ledger.score < self.rules.outpost_cost:
            return f"Outpost costs {self.rules.outpost_cost} points"
        return None

    def apply_toggle(self, player_id: str, key: JunctionKey) -> str:
        """Build or remove the player's structure at ``key``.

        Assumes validate_toggle() passed. Returns the event type.
        """
        if key in self.castles:
            del self.castles[key]
            self.cleanup_amenagements_for_player(player_id)
            return "castle_removed"
        if key in self.outposts:
            del self.outposts[key]
            self.cleanup_amenagements_for_player(player_id)
            return "outpost_removed"

        ledger = self.ledgers[player_id]
        if self.find_castle_key(player_id) is None:
            spend_points(ledger, self.rules.castle_cost, CASTLE, self.rules.points_per_crown)
            self.castles[key] = player_id
            event = "castle_built"
        else:
            spend_points(ledger, self.rules.outpost_cost, OUTPOST, self.rules.points_per_crown)
            self.outposts[key] = player_id
            event = "outpost_built"

        for tile_idx in self.board.junctions[key].tiles:
            self.evaluate_amenagements_around(tile_idx, allow_creation=False)
        logger.debug(f"{event} by {player_id} at {junction_key_to_str(key)}")
        return event

    # ── Serialisation ──

    def to_dict(self) -> dict:
        return {
            "castles": {junction_key_to_str(k): v for k, v in self.castles.items()},
            "outposts": {junction_key_to_str(k): v for k, v in self.outposts.items()},
            "amenagements": {junction_key_to_str(k): v for k, v in self.amenagements.items()},
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        board: Board,
        rules: RuleSettings,
        seat_order: Sequence[str],
        ledgers: dict[str, PlayerLedger],
    ) -> StructureTracker:
        tracker = cls(board, rules, seat_order, ledgers)
        for name in ("castles", "outposts", "amenagements"):
            target = getattr(tracker, name)
            for key_str, owner in data.get(name, {}).items():
                target[junction_key_from_str(key_str)] = owner
        return tracker
