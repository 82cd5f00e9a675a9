from __future__ import annotations

from pairleroy.engine.models import Action, GameConfig, Phase, Player, PlayerId
from pairleroy.engine.protocol import GamePlugin


def validate_plugin(plugin: GamePlugin, seed: int = 42) -> list[str]:
    """Run sanity checks on a plugin. Returns list of errors (empty = OK).

    Checks metadata, builds an initial state with the minimum player count,
    makes sure the advertised valid actions pass the plugin's own validation,
    and confirms that the same seed reproduces the same initial state.
    """
    errors: list[str] = []

    for attr in ("game_id", "display_name", "min_players", "max_players", "config_schema"):
        if not hasattr(plugin, attr):
            errors.append(f"Missing attribute: {attr}")

    if errors:
        return errors  # Can't proceed without metadata

    if plugin.min_players < 1 or plugin.max_players < plugin.min_players:
        errors.append(
            f"Invalid player range: {plugin.min_players}..{plugin.max_players}"
        )

    config_errors = plugin.validate_config({})
    if config_errors:
        errors.append(f"Default options rejected: {'; '.join(config_errors)}")

    try:
        players = [
            Player(
                player_id=PlayerId(f"test-{i}"),
                display_name=f"Test {i}",
                seat_index=i,
            )
            for i in range(plugin.min_players)
        ]
        config = GameConfig(random_seed=seed)
        game_data, phase, _events = plugin.create_initial_state(players, config)

        if not isinstance(game_data, dict):
            errors.append("create_initial_state must return dict as game_data")

        if not isinstance(phase, Phase):
            errors.append("create_initial_state must return Phase as second element")
            return errors

        if not phase.auto_resolve and not phase.expected_actions:
            errors.append(
                "First phase is not auto_resolve but has no expected_actions"
            )

        for p in players:
            plugin.get_player_view(game_data, phase, p.player_id, players)
            for payload in plugin.get_valid_actions(game_data, phase, p.player_id)[:5]:
                action_type = payload.get("action_type", phase.name)
                action = Action(
                    action_type=action_type,
                    player_id=p.player_id,
                    payload=payload.get("payload", {}),
                )
                problem = plugin.validate_action(game_data, phase, action)
                if problem is not None:
                    errors.append(
                        f"Advertised action {action_type} rejected: {problem}"
                    )

        game_data2, _phase2, _events2 = plugin.create_initial_state(players, config)
        if game_data != game_data2:
            errors.append("create_initial_state is not deterministic with same seed")

    except Exception as e:
        errors.append(f"create_initial_state failed: {e}")

    return errors
