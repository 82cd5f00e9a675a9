"""PairleroyPlugin: implements the GamePlugin protocol for Pairleroy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

from pydantic import ValidationError

from pairleroy.engine.errors import InvalidActionError
from pairleroy.engine.models import (
    Action,
    Event,
    ExpectedAction,
    GameConfig,
    GameResult,
    Phase,
    Player,
    PlayerId,
    TransitionResult,
)
from pairleroy.engine.protocol import DISCONNECT_POLICY_FORFEIT_PLAYER
from pairleroy.games.pairleroy.board import Board
from pairleroy.games.pairleroy.palette import create_palette, sample_combo
from pairleroy.games.pairleroy.rng import Xorshift32, random_seed
from pairleroy.games.pairleroy.rules import RuleSettings
from pairleroy.games.pairleroy.scoring import (
    PlayerLedger,
    adjust_tile_resources,
    award_points,
    points_for_neighbor_count,
)
from pairleroy.games.pairleroy.structures import StructureTracker
from pairleroy.games.pairleroy.types import (
    Combo,
    combo_from_dict,
    junction_key_from_str,
    junction_key_to_str,
    normalize_rotation_step,
    oriented_side_colors,
    rotation_steps_for_combo,
)

logger = logging.getLogger(__name__)

PLAY_PHASE = "play_turn"
CHECK_END_PHASE = "check_end"

PLACE_TILE = "place_tile"
MOVE_COLON = "move_colon"
TOGGLE_STRUCTURE = "toggle_structure"
END_TURN = "end_turn"
ACTION_TYPES = (PLACE_TILE, MOVE_COLON, TOGGLE_STRUCTURE, END_TURN)


@dataclass
class _LoadedGame:
    """Live objects rebuilt from ``game_data`` for one transition."""

    rules: RuleSettings
    board: Board
    ledgers: dict[str, PlayerLedger]
    structures: StructureTracker
    rng: Xorshift32
    palette: list[Combo | None]

    @classmethod
    def load(cls, game_data: dict) -> _LoadedGame:
        rules = RuleSettings.model_validate(game_data["rules"])
        board = Board.from_dict(game_data["board"])
        ledgers = {
            pid: PlayerLedger.model_validate(raw) for pid, raw in game_data["ledgers"].items()
        }
        structures = StructureTracker.from_dict(
            game_data["structures"], board, rules, game_data["seat_order"], ledgers,
        )
        palette = [None if raw is None else combo_from_dict(raw) for raw in game_data["palette"]]
        return cls(
            rules=rules,
            board=board,
            ledgers=ledgers,
            structures=structures,
            rng=Xorshift32.from_state(game_data["rng_state"]),
            palette=palette,
        )

    def dump(self, game_data: dict, **changes) -> dict:
        new_data = {
            **game_data,
            "board": self.board.to_dict(),
            "ledgers": {pid: ledger.model_dump(mode="json") for pid, ledger in self.ledgers.items()},
            "structures": self.structures.to_dict(),
            "rng_state": self.rng.state,
            "palette": [None if c is None else c.model_dump(mode="json") for c in self.palette],
        }
        new_data.update(changes)
        return new_data


class PairleroyPlugin:
    """Pairleroy: hex tiles with edge-matched colours, colons and castles."""

    game_id: ClassVar[str] = "pairleroy"
    display_name: ClassVar[str] = "Pairleroy"
    min_players: ClassVar[int] = 1
    max_players: ClassVar[int] = 6
    description: ClassVar[str] = (
        "Lay colour-matched hex tiles around your colon, raise castles and "
        "outposts and claim the junctions they influence."
    )
    config_schema: ClassVar[dict] = RuleSettings.model_json_schema()
    disconnect_policy: ClassVar[str] = DISCONNECT_POLICY_FORFEIT_PLAYER

    # ------------------------------------------------------------------ #
    #  Lifecycle
    # ------------------------------------------------------------------ #

    def create_initial_state(
        self,
        players: list[Player],
        config: GameConfig,
    ) -> tuple[dict, Phase, list[Event]]:
        rules = RuleSettings(**config.options)
        seed = config.random_seed if config.random_seed is not None else random_seed()
        rng = Xorshift32(seed)

        board = Board(rules.radius)
        seat_order = [p.player_id for p in sorted(players, key=lambda p: p.seat_index)]
        palette = create_palette(rules.types_pct, rules.color_pct, rng, rules.palette_size)

        game_data: dict = {
            "rules": rules.model_dump(mode="json"),
            "board": board.to_dict(),
            "palette": [c.model_dump(mode="json") for c in palette],
            "rng_state": rng.state,
            "seat_order": seat_order,
            "ledgers": {
                pid: PlayerLedger(player_id=pid).model_dump(mode="json") for pid in seat_order
            },
            "structures": StructureTracker(board, rules, seat_order, {}).to_dict(),
            "colons": {pid: board.center_index for pid in seat_order},
            "turn": _fresh_turn(rules),
            "current_player_index": 0,
            "turn_number": 1,
            "forfeited": [],
        }

        events = [
            Event(
                event_type="game_started",
                payload={"players": seat_order, "radius": rules.radius, "seed": seed},
            ),
        ]
        logger.info(f"Pairleroy game created: {len(seat_order)} players, radius {rules.radius}")
        return game_data, _play_phase(seat_order, 0), events

    def validate_config(self, options: dict) -> list[str]:
        try:
            RuleSettings(**options)
        except ValidationError as e:
            return [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
        return []

    # ------------------------------------------------------------------ #
    #  Valid actions
    # ------------------------------------------------------------------ #

    def get_valid_actions(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
    ) -> list[dict]:
        if phase.name != PLAY_PHASE or player_id != _current_player(game_data):
            return []

        game = _LoadedGame.load(game_data)
        turn = game_data["turn"]
        colon_tile = game_data["colons"][player_id]
        actions: list[dict] = []

        for palette_index, combo in enumerate(game.palette):
            if combo is None:
                continue
            for tile_idx, step in game.board.valid_placements(combo):
                if _placement_allowed(turn, game.rules, colon_tile, tile_idx):
                    actions.append(_action(PLACE_TILE, {
                        "palette_index": palette_index,
                        "tile_index": tile_idx,
                        "rotation_step": step,
                    }))

        steps_left = turn["colon_steps_left"]
        if steps_left > 0:
            for tile_idx in range(game.board.tile_count):
                dist = game.board.hex_distance_between(colon_tile, tile_idx)
                if 0 < dist <= steps_left:
                    actions.append(_action(MOVE_COLON, {"tile_index": tile_idx}))

        for junction in game.board.ready_junctions():
            if game.structures.validate_toggle(player_id, junction.key, colon_tile) is None:
                actions.append(_action(
                    TOGGLE_STRUCTURE, {"junction": junction_key_to_str(junction.key)},
                ))

        actions.append(_action(END_TURN, {}))
        return actions

    # ------------------------------------------------------------------ #
    #  Validation
    # ------------------------------------------------------------------ #

    def validate_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
    ) -> str | None:
        if phase.name != PLAY_PHASE:
            return f"No player action expected during {phase.name}"
        if action.player_id != _current_player(game_data):
            return "Not your turn"
        if action.action_type == PLACE_TILE:
            return self._validate_place_tile(game_data, action)
        if action.action_type == MOVE_COLON:
            return self._validate_move_colon(game_data, action)
        if action.action_type == TOGGLE_STRUCTURE:
            return self._validate_toggle(game_data, action)
        if action.action_type == END_TURN:
            return None
        return f"Unknown action type: {action.action_type}"

    def _validate_place_tile(self, game_data: dict, action: Action) -> str | None:
        game = _LoadedGame.load(game_data)
        palette_index = action.payload.get("palette_index")
        tile_idx = action.payload.get("tile_index")

        if not _is_index(palette_index, len(game.palette)) or game.palette[palette_index] is None:
            return f"Invalid palette slot: {palette_index}"
        if not _is_index(tile_idx, game.board.tile_count):
            return f"Invalid tile index: {tile_idx}"
        if game.board.is_placed(tile_idx):
            return "Tile is already occupied"

        colon_tile = game_data["colons"][action.player_id]
        if not _placement_allowed(game_data["turn"], game.rules, colon_tile, tile_idx):
            return "No tile placements left this turn"

        combo = game.palette[palette_index]
        step = normalize_rotation_step(combo, action.payload.get("rotation_step", combo.rotation_step))
        if not game.board.can_place(tile_idx, oriented_side_colors(combo, step)):
            return "Edge colours do not match the neighbouring tiles"
        return None

    def _validate_move_colon(self, game_data: dict, action: Action) -> str | None:
        board = Board(game_data["board"]["radius"])
        tile_idx = action.payload.get("tile_index")
        if not _is_index(tile_idx, board.tile_count):
            return f"Invalid tile index: {tile_idx}"
        dist = board.hex_distance_between(game_data["colons"][action.player_id], tile_idx)
        if dist == 0:
            return "Colon is already on that tile"
        if dist > game_data["turn"]["colon_steps_left"]:
            return f"Colon can move {game_data['turn']['colon_steps_left']} more steps this turn"
        return None

    def _validate_toggle(self, game_data: dict, action: Action) -> str | None:
        raw_key = action.payload.get("junction")
        try:
            key = junction_key_from_str(raw_key)
        except (AttributeError, ValueError):
            return f"Invalid junction: {raw_key}"
        game = _LoadedGame.load(game_data)
        return game.structures.validate_toggle(
            action.player_id, key, game_data["colons"][action.player_id],
        )

    # ------------------------------------------------------------------ #
    #  Apply action: dispatches to phase handlers
    # ------------------------------------------------------------------ #

    def apply_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
        players: list[Player],
    ) -> TransitionResult:
        if phase.name == CHECK_END_PHASE:
            return self._check_end(game_data, phase)
        if phase.name != PLAY_PHASE:
            raise InvalidActionError(f"Unknown phase: {phase.name}", action)

        if action.action_type == PLACE_TILE:
            return self._place_tile(game_data, action)
        if action.action_type == MOVE_COLON:
            return self._move_colon(game_data, action)
        if action.action_type == TOGGLE_STRUCTURE:
            return self._toggle_structure(game_data, action)
        if action.action_type == END_TURN:
            return self._end_turn(game_data, action.player_id, reason="end_turn")
        raise InvalidActionError(f"Unknown action type: {action.action_type}", action)

    # ---- place_tile ----

    def _place_tile(self, game_data: dict, action: Action) -> TransitionResult:
        game = _LoadedGame.load(game_data)
        player_id = action.player_id
        palette_index = action.payload["palette_index"]
        tile_idx = action.payload["tile_index"]
        combo = game.palette[palette_index]
        if combo is None:
            raise InvalidActionError(f"Palette slot {palette_index} is empty", action)

        step = normalize_rotation_step(combo, action.payload.get("rotation_step", combo.rotation_step))
        oriented = oriented_side_colors(combo, step)
        if not game.board.can_place(tile_idx, oriented):
            raise InvalidActionError("Edge colours do not match the neighbouring tiles", action)
        combo.rotation_step = step
        game.board.commit_placement(tile_idx, combo, step, oriented, player_id)

        ledger = game.ledgers[player_id]
        adjust_tile_resources(ledger, combo, 1)

        turn = dict(game_data["turn"])
        free = tile_idx == game_data["colons"][player_id] and not turn["colon_placement_used"]
        points = 0
        if free:
            turn["colon_placement_used"] = True
        else:
            turn["tiles_placed"] += 1
            neighbors = game.board.neighbor_placement_count(tile_idx)
            points = points_for_neighbor_count(neighbors, game.rules.neighbor_points)
            if points > 0:
                award_points(ledger, points, f"neighbor:{neighbors}", game.rules.points_per_crown)

        events = [Event(
            event_type="tile_placed",
            player_id=player_id,
            payload={
                "tile_index": tile_idx,
                "combo": combo.model_dump(mode="json"),
                "rotation_step": step,
                "points": points,
                "colon_placement": free,
            },
        )]

        for key in game.structures.evaluate_amenagements_around(tile_idx, player_id):
            events.append(Event(
                event_type="amenagement_claimed",
                player_id=PlayerId(game.structures.amenagements[key]),
                payload={"junction": junction_key_to_str(key)},
            ))

        replacement = sample_combo(game.rules.types_pct, game.rules.color_pct, game.rng)
        replacement.rotation_step = rotation_steps_for_combo(replacement)[0]
        game.palette[palette_index] = replacement

        new_data = game.dump(game_data, turn=turn)
        return TransitionResult(
            game_data=new_data,
            events=events,
            next_phase=Phase(
                name=CHECK_END_PHASE,
                auto_resolve=True,
                metadata={"player_index": game_data["current_player_index"]},
            ),
            scores=_scores(game.ledgers),
        )

    # ---- move_colon ----

    def _move_colon(self, game_data: dict, action: Action) -> TransitionResult:
        board = Board(game_data["board"]["radius"])
        player_id = action.player_id
        tile_idx = action.payload["tile_index"]
        origin = game_data["colons"][player_id]
        dist = board.hex_distance_between(origin, tile_idx)

        turn = dict(game_data["turn"])
        turn["colon_steps_left"] = max(0, turn["colon_steps_left"] - dist)
        colons = {**game_data["colons"], player_id: tile_idx}

        return TransitionResult(
            game_data={**game_data, "colons": colons, "turn": turn},
            events=[Event(
                event_type="colon_moved",
                player_id=player_id,
                payload={"from": origin, "to": tile_idx, "distance": dist},
            )],
            next_phase=_play_phase(game_data["seat_order"], game_data["current_player_index"]),
            scores=_scores_from_data(game_data),
        )

    # ---- toggle_structure ----

    def _toggle_structure(self, game_data: dict, action: Action) -> TransitionResult:
        game = _LoadedGame.load(game_data)
        key_str = action.payload["junction"]
        event_type = game.structures.apply_toggle(action.player_id, junction_key_from_str(key_str))

        return TransitionResult(
            game_data=game.dump(game_data),
            events=[Event(
                event_type=event_type,
                player_id=action.player_id,
                payload={"junction": key_str},
            )],
            next_phase=_play_phase(game_data["seat_order"], game_data["current_player_index"]),
            scores=_scores(game.ledgers),
        )

    # ---- end_turn ----

    def _end_turn(self, game_data: dict, player_id: str, reason: str) -> TransitionResult:
        seat_order = game_data["seat_order"]
        current = game_data["current_player_index"]
        next_index = _next_player_index(seat_order, current, game_data["forfeited"])
        turn_number = game_data["turn_number"] + (1 if next_index <= current else 0)
        rules = RuleSettings.model_validate(game_data["rules"])

        new_data = {
            **game_data,
            "turn": _fresh_turn(rules),
            "current_player_index": next_index,
            "turn_number": turn_number,
        }
        return TransitionResult(
            game_data=new_data,
            events=[Event(
                event_type="turn_ended",
                player_id=PlayerId(player_id),
                payload={"reason": reason, "next_player": seat_order[next_index]},
            )],
            next_phase=_play_phase(seat_order, next_index),
            scores=_scores_from_data(game_data),
        )

    # ---- check_end (auto-resolve) ----

    def _check_end(self, game_data: dict, phase: Phase) -> TransitionResult:
        board = Board.from_dict(game_data["board"])
        scores = _scores_from_data(game_data)

        if not board.is_full():
            return TransitionResult(
                game_data=game_data,
                events=[],
                next_phase=_play_phase(game_data["seat_order"], game_data["current_player_index"]),
                scores=scores,
            )

        max_score = max(scores.values()) if scores else 0
        winners = [PlayerId(pid) for pid, s in scores.items() if s == max_score]
        logger.info(f"Pairleroy board full after {game_data['turn_number']} rounds, winners {winners}")
        crowns = {pid: raw["crowns"] for pid, raw in game_data["ledgers"].items()}

        return TransitionResult(
            game_data=game_data,
            events=[Event(event_type="board_full", payload={"tiles": board.tile_count})],
            next_phase=Phase(name="game_over"),
            scores=scores,
            game_over=GameResult(
                winners=winners,
                final_scores=scores,
                reason="normal",
                details={"crowns": crowns},
            ),
        )

    # ------------------------------------------------------------------ #
    #  Views
    # ------------------------------------------------------------------ #

    def get_player_view(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId | None,
        players: list[Player],
    ) -> dict:
        return {
            "board": game_data["board"],
            "palette": game_data["palette"],
            "ledgers": game_data["ledgers"],
            "structures": game_data["structures"],
            "colons": game_data["colons"],
            "turn": game_data["turn"],
            "current_player": _current_player(game_data),
            "turn_number": game_data["turn_number"],
            "scores": _scores_from_data(game_data),
        }

    def get_spectator_summary(
        self,
        game_data: dict,
        phase: Phase,
        players: list[Player],
    ) -> dict:
        return self.get_player_view(game_data, phase, None, players)

    def on_player_forfeit(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
        players: list[Player],
    ) -> TransitionResult | None:
        forfeited = list(game_data["forfeited"])
        if player_id not in forfeited:
            forfeited.append(player_id)
        game_data = {**game_data, "forfeited": forfeited}
        if phase.name == PLAY_PHASE and _current_player(game_data) == player_id:
            return self._end_turn(game_data, player_id, reason="forfeit")
        return TransitionResult(
            game_data=game_data,
            events=[Event(event_type="player_forfeited", player_id=player_id)],
            next_phase=phase,
            scores=_scores_from_data(game_data),
        )


# ------------------------------------------------------------------ #
#  Helpers
# ------------------------------------------------------------------ #

def _action(action_type: str, payload: dict) -> dict:
    return {"action_type": action_type, "payload": payload}


def _is_index(value, length: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < length


def _fresh_turn(rules: RuleSettings) -> dict:
    return {
        "tiles_placed": 0,
        "colon_steps_left": rules.colon_steps_per_turn,
        "colon_placement_used": False,
    }


def _placement_allowed(turn: dict, rules: RuleSettings, colon_tile: int, tile_idx: int) -> bool:
    """The first placement on the colon's tile each turn is free."""
    if tile_idx == colon_tile and not turn["colon_placement_used"]:
        return True
    return turn["tiles_placed"] < rules.tile_placements_per_turn


def _current_player(game_data: dict) -> str:
    return game_data["seat_order"][game_data["current_player_index"]]


def _next_player_index(seat_order: list[str], current: int, forfeited: list[str]) -> int:
    count = len(seat_order)
    for offset in range(1, count + 1):
        candidate = (current + offset) % count
        if seat_order[candidate] not in forfeited:
            return candidate
    return (current + 1) % count


def _play_phase(seat_order: list[str], player_index: int) -> Phase:
    return Phase(
        name=PLAY_PHASE,
        expected_actions=[
            ExpectedAction(
                player_id=PlayerId(seat_order[player_index]),
                action_type=PLAY_PHASE,
                constraints={"action_types": list(ACTION_TYPES)},
            ),
        ],
        metadata={"player_index": player_index},
    )


def _scores(ledgers: dict[str, PlayerLedger]) -> dict[str, float]:
    return {pid: float(ledger.score) for pid, ledger in ledgers.items()}


def _scores_from_data(game_data: dict) -> dict[str, float]:
    return {pid: float(raw["score"]) for pid, raw in game_data["ledgers"].items()}
