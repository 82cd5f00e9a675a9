"""Synchronous game driver: advances game state through auto-resolve phases.

Plays complete turns of a plugin in-process, with the game data held in
memory only. The plugin tests drive whole games through it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from pairleroy.engine.errors import InvalidActionError
from pairleroy.engine.models import (
    Action,
    Event,
    GameConfig,
    GameResult,
    Phase,
    Player,
    PlayerId,
)
from pairleroy.engine.protocol import GamePlugin

MAX_AUTO_RESOLVE = 50


@dataclass
class SimulationState:
    """Mutable game state for synchronous simulation."""

    game_data: dict
    phase: Phase
    players: list[Player]
    scores: dict[str, float] = field(default_factory=dict)
    game_over: GameResult | None = None
    events: list[Event] = field(default_factory=list)


def start_game(
    plugin: GamePlugin,
    players: list[Player],
    config: GameConfig | None = None,
) -> SimulationState:
    """Create the initial state and resolve any leading auto-resolve phases."""
    game_data, phase, events = plugin.create_initial_state(players, config or GameConfig())
    state = SimulationState(
        game_data=game_data,
        phase=phase,
        players=players,
        scores={p.player_id: 0.0 for p in players},
        events=list(events),
    )
    _resolve_auto_phases(plugin, state)
    return state


def apply_action_and_resolve(
    plugin: GamePlugin,
    state: SimulationState,
    action: Action,
    validate: bool = True,
) -> None:
    """Apply an action and auto-resolve all subsequent auto-resolve phases.

    Mutates *state* in place.  After return, ``state.phase`` is either a
    non-auto-resolve phase (player needs to act) or ``state.game_over`` is set.
    """
    if validate:
        problem = plugin.validate_action(state.game_data, state.phase, action)
        if problem is not None:
            raise InvalidActionError(problem, action)

    result = plugin.apply_action(
        state.game_data, state.phase, action, state.players
    )
    state.game_data = result.game_data
    state.phase = result.next_phase
    state.scores = result.scores or state.scores
    state.game_over = result.game_over
    state.events.extend(result.events)

    if state.game_over:
        return

    _resolve_auto_phases(plugin, state)


def clone_state(state: SimulationState) -> SimulationState:
    """Deep-copy a simulation state.

    ``players`` is shared (immutable during a game).
    """
    return SimulationState(
        game_data=copy.deepcopy(state.game_data),
        phase=state.phase.model_copy(deep=True),
        players=state.players,  # shared, never mutated
        scores=dict(state.scores),
        game_over=state.game_over,
        events=list(state.events),
    )


def _resolve_auto_phases(plugin: GamePlugin, state: SimulationState) -> None:
    max_auto = MAX_AUTO_RESOLVE  # safety limit
    while state.phase.auto_resolve and not state.game_over and max_auto > 0:
        max_auto -= 1

        pid = _phase_player_id(state.phase, state.players)
        synthetic = Action(action_type=state.phase.name, player_id=pid)

        result = plugin.apply_action(
            state.game_data, state.phase, synthetic, state.players
        )
        state.game_data = result.game_data
        state.phase = result.next_phase
        state.scores = result.scores or state.scores
        state.game_over = result.game_over
        state.events.extend(result.events)


def _phase_player_id(phase: Phase, players: list[Player]) -> PlayerId:
    """Extract the acting player from a phase, falling back to first player."""
    if phase.expected_actions:
        pid = phase.expected_actions[0].player_id
        if pid is not None:
            return pid
    pi = phase.metadata.get("player_index")
    if pi is not None and pi < len(players):
        return players[pi].player_id
    return players[0].player_id if players else PlayerId("system")
