"""Tests for hex geometry, neighbours, rings and junctions."""

import pytest

from pairleroy.games.pairleroy.hexgrid import (
    build_neighbor_data,
    compute_junction_map,
    generate_axial_grid,
    hex_distance,
    junction_key,
    rings_by_distance,
    tile_count,
)
from pairleroy.games.pairleroy.types import Tile


class TestGrid:
    """Tests for grid generation."""

    @pytest.mark.parametrize("radius,expected", [(0, 1), (1, 7), (2, 19), (6, 127)])
    def test_tile_count(self, radius, expected):
        assert tile_count(radius) == expected
        assert len(generate_axial_grid(radius)) == expected

    def test_order_is_q_then_r(self):
        tiles = generate_axial_grid(1)
        assert [(t.q, t.r) for t in tiles] == [
            (-1, 0), (-1, 1), (0, -1), (0, 0), (0, 1), (1, -1), (1, 0),
        ]

    def test_cube_constraint_holds(self):
        for t in generate_axial_grid(3):
            assert t.q + t.r + t.s == 0

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            generate_axial_grid(-1)


class TestNeighbors:
    """Tests for the neighbour table."""

    def test_center_neighbors_by_direction(self):
        tiles = generate_axial_grid(1)
        index_map, neighbors = build_neighbor_data(tiles)
        center = index_map[(0, 0)]
        assert neighbors[center] == [1, 0, 2, 5, 6, 4]

    def test_missing_neighbors_are_minus_one(self):
        tiles = generate_axial_grid(1)
        index_map, neighbors = build_neighbor_data(tiles)
        corner = index_map[(-1, 0)]
        assert neighbors[corner].count(-1) == 3

    def test_neighbor_relation_is_symmetric(self):
        """If b is a's neighbour in direction d, a is b's in direction d+3."""
        tiles = generate_axial_grid(2)
        _, neighbors = build_neighbor_data(tiles)
        for a, row in enumerate(neighbors):
            for d, b in enumerate(row):
                if b >= 0:
                    assert neighbors[b][(d + 3) % 6] == a


class TestDistances:
    """Tests for hex distance and rings."""

    def test_hex_distance(self):
        assert hex_distance(Tile(q=0, r=0, s=0), Tile(q=2, r=-1, s=-1)) == 2
        assert hex_distance(Tile(q=1, r=0, s=-1), Tile(q=1, r=0, s=-1)) == 0

    def test_rings_group_by_distance(self):
        tiles = generate_axial_grid(2)
        rings = rings_by_distance(tiles)
        assert [len(r) for r in rings] == [1, 6, 12]
        assert tiles[rings[0][0]] == Tile(q=0, r=0, s=0)


class TestJunctions:
    """Tests for junction detection."""

    def test_radius_one_has_three_junctions_around_center(self):
        tiles = generate_axial_grid(1)
        junctions = compute_junction_map(tiles)
        assert len(junctions) == 3
        assert sorted(sorted(j.tiles) for j in junctions.values()) == [
            [0, 2, 3], [1, 3, 4], [3, 5, 6],
        ]

    def test_every_junction_has_three_distinct_tiles(self):
        junctions = compute_junction_map(generate_axial_grid(3))
        for key, junction in junctions.items():
            assert junction.key == key
            assert len(set(junction.tiles)) == 3

    def test_junction_key_rounds_to_thousandths(self):
        assert junction_key(0.8660254, -0.4999999) == (866, -500)
