"""Tests for Board placement validation by edge matching."""

import pytest

from pairleroy.games.pairleroy.board import Board, opposite_direction
from pairleroy.games.pairleroy.errors import InvalidInputError
from pairleroy.games.pairleroy.types import BiCombo, MonoCombo, oriented_side_colors


def _place(board: Board, tile_idx: int, combo, player_id=None):
    return board.commit_placement(
        tile_idx, combo, combo.rotation_step, oriented_side_colors(combo), player_id,
    )


@pytest.fixture
def board():
    """Radius 1: centre is tile 3, ring tiles 0-2 and 4-6."""
    return Board(radius=1)


class TestCanPlace:
    """Tests for can_place."""

    def test_first_tile_goes_anywhere(self, board):
        for idx in range(board.tile_count):
            assert board.can_place(idx, [2] * 6) is True

    def test_occupied_tile_rejected(self, board):
        _place(board, 3, MonoCombo(color=0))
        assert board.can_place(3, [0] * 6) is False

    def test_matching_edge_accepted(self, board):
        _place(board, 3, MonoCombo(color=0))
        assert board.can_place(1, [0] * 6) is True

    def test_mismatched_edge_rejected(self, board):
        _place(board, 3, MonoCombo(color=0))
        assert board.can_place(1, [1] * 6) is False

    def test_only_the_shared_edge_matters(self, board):
        """Tile 6 touches the centre through its direction 1 edge."""
        _place(board, 3, MonoCombo(color=0))
        bi = BiCombo(major=0, minor=1)
        assert board.can_place(6, oriented_side_colors(bi, 0)) is False
        assert board.can_place(6, oriented_side_colors(bi, 1)) is True
        assert board.can_place(6, oriented_side_colors(bi, 2)) is True

    def test_needs_a_placed_neighbour(self):
        board = Board(radius=2)
        _place(board, board.center_index, MonoCombo(color=0))
        far = next(i for i, t in enumerate(board.tiles) if (t.q, t.r) == (2, 0))
        assert board.can_place(far, [0] * 6) is False

    def test_every_placed_neighbour_must_match(self, board):
        _place(board, 3, MonoCombo(color=0))
        _place(board, 5, MonoCombo(color=1))
        # tile 6 touches both the centre (colour 0) and tile 5 (colour 1)
        assert board.can_place(6, [0] * 6) is False
        assert board.can_place(6, [1] * 6) is False

    def test_wrong_side_count(self, board):
        with pytest.raises(InvalidInputError):
            board.can_place(3, [0] * 5)

    def test_out_of_range(self, board):
        with pytest.raises(IndexError):
            board.can_place(7, [0] * 6)


class TestPlacements:
    """Tests for committing, removing and listing placements."""

    def test_commit_records_player_and_rotation(self, board):
        bi = BiCombo(major=2, minor=3, rotation_step=1)
        placement = _place(board, 3, bi, "p1")
        assert placement.player_id == "p1"
        assert placement.rotation_step == 1
        assert placement.side_colors == [3, 2, 2, 2, 2, 3]
        assert board.placed_count == 1
        assert board.is_placed(3)

    def test_try_place_combo(self, board):
        _place(board, 3, MonoCombo(color=0))
        assert board.try_place_combo(1, MonoCombo(color=1)) is None
        assert board.try_place_combo(1, MonoCombo(color=0)) is not None
        assert board.placed_count == 2

    def test_remove_and_clear(self, board):
        _place(board, 3, MonoCombo(color=0))
        removed = board.remove_placement(3)
        assert removed.combo == MonoCombo(color=0)
        assert board.placed_count == 0
        assert board.remove_placement(3) is None

        _place(board, 0, MonoCombo(color=0))
        board.clear()
        assert board.empty_tiles() == set(range(7))

    def test_valid_placements_on_empty_board(self, board):
        assert len(board.valid_placements(MonoCombo(color=0))) == 7
        assert len(board.valid_placements(BiCombo(major=0, minor=1))) == 21

    def test_neighbor_count(self, board):
        _place(board, 3, MonoCombo(color=0))
        _place(board, 1, MonoCombo(color=0))
        assert board.neighbor_placement_count(0) == 2
        assert board.neighbor_placement_count(3) == 1

    def test_full(self, board):
        for idx in range(7):
            _place(board, idx, MonoCombo(color=0))
        assert board.is_full()


class TestJunctionReadiness:
    """Tests for junction readiness and distances."""

    def test_ready_after_three_tiles(self, board):
        junction = next(j for j in board.junctions.values() if sorted(j.tiles) == [3, 5, 6])
        _place(board, 3, MonoCombo(color=0))
        _place(board, 5, MonoCombo(color=0))
        assert not board.is_junction_ready(junction)
        _place(board, 6, MonoCombo(color=0))
        assert board.is_junction_ready(junction)
        assert list(board.ready_junctions()) == [junction]

    def test_junctions_around_center(self, board):
        assert len(board.junctions_around(3)) == 3
        assert len(board.junctions_around(0)) == 1

    def test_junction_distance(self, board):
        a, b, c = board.junctions.values()
        assert board.junction_distance(a, b) == 0  # all share the centre

    def test_unknown_junction(self, board):
        with pytest.raises(KeyError):
            board.junction((0, 0))


def test_opposite_direction():
    assert [opposite_direction(d) for d in range(6)] == [3, 4, 5, 0, 1, 2]


def test_round_trip_keeps_placements():
    board = Board(radius=2)
    _place(board, board.center_index, BiCombo(major=0, minor=2, rotation_step=2), "p0")
    restored = Board.from_dict(board.to_dict())
    assert restored.placed_count == 1
    assert restored.placements[board.center_index] == board.placements[board.center_index]
