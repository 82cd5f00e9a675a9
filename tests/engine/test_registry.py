"""Tests for plugin registry."""

from typing import ClassVar

import pytest

from pairleroy.engine.errors import PluginError
from pairleroy.engine.models import (
    Action,
    Event,
    GameConfig,
    Phase,
    Player,
    PlayerId,
    TransitionResult,
)
from pairleroy.engine.protocol import GamePlugin
from pairleroy.engine.registry import PluginRegistry
from pairleroy.engine.validation import validate_plugin


class MockPlugin:
    """Mock game plugin for testing."""

    game_id: ClassVar[str] = "mock-game"
    display_name: ClassVar[str] = "Mock Game"
    min_players: ClassVar[int] = 2
    max_players: ClassVar[int] = 4
    description: ClassVar[str] = "A mock game for testing"
    config_schema: ClassVar[dict] = {}
    disconnect_policy: ClassVar[str] = "forfeit_player"

    def create_initial_state(
        self,
        players: list[Player],
        config: GameConfig,
    ) -> tuple[dict, Phase, list[Event]]:
        game_data = {"turn": 0, "deck": [1, 2, 3, 4, 5]}
        phase = Phase(
            name="play",
            expected_actions=[
                {"player_id": players[0].player_id, "action_type": "draw"}
            ],
        )
        return game_data, phase, [Event(event_type="game_started")]

    def validate_config(self, options: dict) -> list[str]:
        return []

    def get_valid_actions(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
    ) -> list[dict]:
        return [{"action_type": "draw", "payload": {}}]

    def validate_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
    ) -> str | None:
        return None

    def apply_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
        players: list[Player],
    ) -> TransitionResult:
        new_data = game_data.copy()
        new_data["turn"] = game_data.get("turn", 0) + 1
        return TransitionResult(
            game_data=new_data,
            events=[Event(event_type="action_applied")],
            next_phase=phase,
        )

    def get_player_view(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId | None,
        players: list[Player],
    ) -> dict:
        return {"turn": game_data["turn"]}

    def on_player_forfeit(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
        players: list[Player],
    ) -> TransitionResult | None:
        return None

    def get_spectator_summary(
        self,
        game_data: dict,
        phase: Phase,
        players: list[Player],
    ) -> dict:
        return {"summary": "game in progress"}


class TestPluginRegistry:
    """Tests for PluginRegistry."""

    def test_register_plugin(self):
        registry = PluginRegistry()
        plugin = MockPlugin()

        registry.register(plugin)

        assert registry.get("mock-game") == plugin

    def test_register_duplicate_raises_error(self):
        registry = PluginRegistry()
        registry.register(MockPlugin())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(MockPlugin())

    def test_get_nonexistent_plugin_raises_error(self):
        registry = PluginRegistry()

        with pytest.raises(KeyError, match="Unknown game"):
            registry.get("nonexistent-game")

    def test_list_games(self):
        registry = PluginRegistry()
        assert registry.list_games() == []

        registry.register(MockPlugin())
        games = registry.list_games()

        assert len(games) == 1
        assert games[0]["game_id"] == "mock-game"
        assert games[0]["min_players"] == 2
        assert games[0]["max_players"] == 4
        assert games[0]["description"] == "A mock game for testing"

    def test_register_builtin(self, test_registry):
        plugin = test_registry.get("pairleroy")
        assert plugin.display_name == "Pairleroy"
        assert [g["game_id"] for g in test_registry.list_games()] == ["pairleroy"]

    def test_register_with_validation(self):
        class BrokenPlugin(MockPlugin):
            game_id: ClassVar[str] = "broken"

            def validate_config(self, options: dict) -> list[str]:
                return ["nothing is ever valid"]

        registry = PluginRegistry()
        registry.register(MockPlugin(), validate=True)

        with pytest.raises(PluginError, match="failed validation"):
            registry.register(BrokenPlugin(), validate=True)
        with pytest.raises(KeyError):
            registry.get("broken")


class TestValidatePlugin:
    """Tests for validate_plugin function."""

    def test_validate_valid_plugin(self):
        assert validate_plugin(MockPlugin()) == []

    def test_validate_missing_attributes(self):
        class InvalidPlugin:
            pass

        errors = validate_plugin(InvalidPlugin())

        assert any("Missing attribute: game_id" in e for e in errors)
        assert any("Missing attribute: max_players" in e for e in errors)

    def test_validate_player_range(self):
        class EmptyPlugin(MockPlugin):
            min_players: ClassVar[int] = 3
            max_players: ClassVar[int] = 2

        errors = validate_plugin(EmptyPlugin())
        assert any("Invalid player range" in e for e in errors)

    def test_validate_create_initial_state_returns_wrong_types(self):
        class BadPlugin(MockPlugin):
            def create_initial_state(self, players, config):
                return "not a dict", "not a phase", []

        errors = validate_plugin(BadPlugin())

        assert any("must return dict as game_data" in e for e in errors)
        assert any("must return Phase" in e for e in errors)

    def test_validate_first_phase_no_actions_or_auto_resolve(self):
        class BadPhasePlugin(MockPlugin):
            def create_initial_state(self, players, config):
                return {"turn": 0}, Phase(name="bad_phase", auto_resolve=False), []

        errors = validate_plugin(BadPhasePlugin())
        assert any("not auto_resolve but has no expected_actions" in e for e in errors)

    def test_validate_rejected_advertised_action(self):
        class PickyPlugin(MockPlugin):
            def validate_action(self, game_data, phase, action):
                return "never"

        errors = validate_plugin(PickyPlugin())
        assert errors == ["Advertised action draw rejected: never"] * 2

    def test_validate_determinism(self):
        class NonDeterministicPlugin(MockPlugin):
            _call_count = 0

            def create_initial_state(self, players, config):
                self._call_count += 1
                phase = Phase(
                    name="play",
                    expected_actions=[
                        {"player_id": players[0].player_id, "action_type": "draw"}
                    ],
                )
                return {"turn": self._call_count}, phase, []

        errors = validate_plugin(NonDeterministicPlugin())
        assert any("not deterministic" in e for e in errors)

    def test_validate_create_initial_state_exception(self):
        class CrashingPlugin(MockPlugin):
            def create_initial_state(self, players, config):
                raise RuntimeError("Intentional crash")

        errors = validate_plugin(CrashingPlugin())

        assert any("create_initial_state failed" in e for e in errors)
        assert any("Intentional crash" in e for e in errors)

    def test_plugin_protocol_compliance(self):
        assert isinstance(MockPlugin(), GamePlugin)
