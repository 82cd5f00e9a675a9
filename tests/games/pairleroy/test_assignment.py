"""Tests for the three-phase combo assignment engine."""

from collections import Counter

import pytest

from pairleroy.games.pairleroy.assignment import (
    _repair_self_pairs,
    assign_board_combos,
    assign_tile_combos,
    seeded_shuffle,
    tile_types_from_percents,
)
from pairleroy.games.pairleroy.errors import (
    InfeasibleQuotaError,
    InfeasibleTriColorError,
    InvalidInputError,
    InvariantViolationError,
)
from pairleroy.games.pairleroy.quotas import quotas_from_percents
from pairleroy.games.pairleroy.rng import Xorshift32
from pairleroy.games.pairleroy.types import BiCombo, MonoCombo, TriCombo


def _unit_usage(combos) -> list[int]:
    usage = [0, 0, 0, 0]
    for combo in combos:
        for color, units in zip(combo.colors, combo.units):
            usage[color] += units
    return usage


class TestAssignTileCombos:
    """Tests for assign_tile_combos."""

    def test_mixed_board_hits_exact_unit_targets(self, rng):
        """Mono, bi and tri tiles together spend exactly the requested units."""
        types = [1, 1, 2, 2, 3, 3]
        combos = assign_tile_combos(types, [8, 4, 3, 3], rng)

        assert [c.type for c in combos] == types
        assert _unit_usage(combos) == [8, 4, 3, 3]

    def test_mixed_board_quota_breakdown(self, rng):
        types = [1, 1, 2, 2, 3, 3]
        combos = assign_tile_combos(types, [8, 4, 3, 3], rng)

        monos = sorted(c.color for c in combos if isinstance(c, MonoCombo))
        bis = [c for c in combos if isinstance(c, BiCombo)]
        tris = [c for c in combos if isinstance(c, TriCombo)]
        assert monos == [0, 1]
        assert sorted(c.major for c in bis) == [0, 2]
        assert sorted(c.minor for c in bis) == [0, 3]
        assert sorted(sorted(c.colors) for c in tris) == [[0, 1, 3], [0, 2, 3]]

    def test_bi_tiles_never_pair_a_colour_with_itself(self, rng):
        combos = assign_tile_combos([1, 1, 2, 2, 3, 3], [8, 4, 3, 3], rng)
        for combo in combos:
            if isinstance(combo, BiCombo):
                assert combo.major != combo.minor

    def test_tri_tiles_use_three_distinct_colours(self):
        combos = assign_tile_combos([3, 3, 3], [3, 3, 3, 0], Xorshift32(5))
        assert all(isinstance(c, TriCombo) for c in combos)
        assert [sorted(c.colors) for c in combos] == [[0, 1, 2]] * 3

    def test_all_mono_single_colour(self):
        combos = assign_tile_combos([1] * 7, [21, 0, 0, 0], Xorshift32(9))
        assert combos == [MonoCombo(color=0)] * 7

    def test_empty_board(self, rng):
        assert assign_tile_combos([], [0, 0, 0, 0], rng) == []

    def test_same_seed_same_combos(self):
        types = [1, 2, 3, 2, 1, 3, 2]
        targets = [6, 5, 5, 5]
        first = assign_tile_combos(types, targets, Xorshift32(31))
        second = assign_tile_combos(types, targets, Xorshift32(31))
        assert first == second

    @pytest.mark.parametrize("types", [[1, 3], [3, 3]])
    def test_tri_without_three_colours(self, rng, types):
        with pytest.raises(InfeasibleTriColorError):
            assign_tile_combos(types, [3, 3, 0, 0], rng)

    def test_unit_totals_must_match_tile_count(self, rng):
        with pytest.raises(InvariantViolationError):
            assign_tile_combos([1], [3, 0, 0, 1], rng)

    def test_mono_caps_exhausted(self, rng):
        with pytest.raises(InfeasibleQuotaError):
            assign_tile_combos([1, 1], [3, 0, 0, 0], rng)

    def test_wrong_target_length(self, rng):
        with pytest.raises(InvalidInputError):
            assign_tile_combos([1], [3, 0, 0], rng)

    def test_unknown_tile_type(self, rng):
        with pytest.raises(InvalidInputError):
            assign_tile_combos([4], [3, 0, 0, 0], rng)

    def test_negative_target_rejected(self, rng):
        with pytest.raises(InvalidInputError):
            assign_tile_combos([1, 1], [9, -3, 0, 0], rng)

    def test_tri_colour_shortfall_borrows_from_bi_minors(self):
        """A bi-minor unit moves to the tri pool and a tri unit moves back."""
        combos = assign_tile_combos([2, 2, 3], [1, 1, 7, 0], Xorshift32(1))

        assert None not in combos
        assert [c.type for c in combos] == [2, 2, 3]
        assert sorted(combos[2].colors) == [0, 1, 2]
        assert [c.major for c in combos[:2]] == [2, 2]
        assert all(c.minor != c.major for c in combos[:2])


class TestBoardAssignment:
    """Tests for tile type draws and whole-board assignment."""

    def test_tile_types_follow_percentages(self, rng):
        types = tile_types_from_percents(127, [40, 40, 20], rng)
        assert Counter(types) == {1: 51, 2: 51, 3: 25}

    def test_tile_types_need_three_percentages(self, rng):
        with pytest.raises(InvalidInputError):
            tile_types_from_percents(10, [50, 50], rng)

    def test_default_board(self, rng):
        combos = assign_board_combos(127, [40, 40, 20], [25, 25, 25, 25], rng)

        assert len(combos) == 127
        assert Counter(c.type for c in combos) == {1: 51, 2: 51, 3: 25}
        for combo in combos:
            assert len(set(combo.colors)) == len(combo.colors)
        assert _unit_usage(combos) == quotas_from_percents(381, [25, 25, 25, 25])

    @pytest.mark.parametrize("seed", [1, 2, 3, 17, 299])
    def test_default_board_hits_colour_targets(self, seed):
        combos = assign_board_combos(127, [40, 40, 20], [25, 25, 25, 25], Xorshift32(seed))
        assert _unit_usage(combos) == [96, 95, 95, 95]
        assert all(c.major != c.minor for c in combos if isinstance(c, BiCombo))

    def test_single_colour_board(self, rng):
        combos = assign_board_combos(7, [100, 0, 0], [100, 0, 0, 0], rng)
        assert combos == [MonoCombo(color=0)] * 7

    def test_wrong_colour_count(self, rng):
        with pytest.raises(InvalidInputError):
            assign_board_combos(7, [100, 0, 0], [50, 50], rng)


def test_seeded_shuffle_is_a_permutation(rng):
    items = list(range(20))
    shuffled = seeded_shuffle(list(items), rng)
    assert sorted(shuffled) == items
    assert seeded_shuffle(list(items), Xorshift32(3)) == seeded_shuffle(list(items), Xorshift32(3))


def test_repair_self_pairs_keeps_colour_totals():
    majors = [0, 0, 1, 1]
    minors = [0, 1, 2, 3]
    _repair_self_pairs(majors, minors)

    assert minors == [2, 1, 0, 3]
    assert all(maj != mn for maj, mn in zip(majors, minors))


def test_repair_self_pairs_leaves_unfixable_pairs():
    minors = [2, 2]
    _repair_self_pairs([2, 2], minors)
    assert minors == [2, 2]
