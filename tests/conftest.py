from __future__ import annotations

import pytest

from pairleroy.engine.models import Player, PlayerId
from pairleroy.engine.registry import PluginRegistry
from pairleroy.games.pairleroy.rng import Xorshift32


@pytest.fixture
def rng():
    """A seeded generator so every test run draws the same numbers."""
    return Xorshift32(12345)


@pytest.fixture
def make_players():
    """Factory for players p0..p{n-1} seated in order."""

    def _make(count: int = 2) -> list[Player]:
        return [
            Player(player_id=PlayerId(f"p{i}"), display_name=f"P{i}", seat_index=i)
            for i in range(count)
        ]

    return _make


@pytest.fixture
def test_registry():
    """Create a test plugin registry with the built-in games."""
    registry = PluginRegistry()
    registry.register_builtin()
    return registry
