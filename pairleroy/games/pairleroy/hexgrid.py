"""Pointy-top axial hex geometry for the Pairleroy board.

Tiles are generated once per radius in a fixed order (q ascending, then r
ascending), and every other structure refers to them by index into that
sequence.
"""

from __future__ import annotations

import math

from pairleroy.games.pairleroy.types import Junction, JunctionKey, Tile

DEFAULT_RADIUS = 6

# Axial offsets indexed by edge direction. Direction d and (d + 3) % 6 face
# each other across a shared edge.
NEIGHBOR_DIRS: list[tuple[int, int]] = [
    (-1, 1),
    (-1, 0),
    (0, -1),
    (1, -1),
    (1, 0),
    (0, 1),
]

# Vertex positions are multiplied by this and rounded to build junction keys;
# two corners closer than 1/JUNCTION_KEY_SCALE of a hex size share a key.
JUNCTION_KEY_SCALE = 1000

# Only every other corner of a hexagon is a 3-way junction in this layout.
JUNCTION_VERTICES = (0, 2, 4)

Point = tuple[float, float]


def tile_count(radius: int) -> int:
    return 3 * radius * (radius + 1) + 1


def generate_axial_grid(radius: int = DEFAULT_RADIUS) -> list[Tile]:
    if radius < 0:
        raise ValueError(f"Invalid radius: {radius}")
    tiles: list[Tile] = []
    for q in range(-radius, radius + 1):
        r1 = max(-radius, -q - radius)
        r2 = min(radius, -q + radius)
        for r in range(r1, r2 + 1):
            tiles.append(Tile(q=q, r=r, s=-q - r))
    return tiles


def axial_to_pixel(q: int, r: int, size: float) -> Point:
    x = size * math.sqrt(3) * (q + r / 2)
    y = size * 1.5 * r
    return x, y


def hex_vertices_at(cx: float, cy: float, size: float) -> list[Point]:
    """The 6 corners of a pointy-top hexagon, starting at -30 degrees."""
    verts: list[Point] = []
    for i in range(6):
        angle = math.radians(60 * i - 30)
        verts.append((cx + size * math.cos(angle), cy + size * math.sin(angle)))
    return verts


def hex_vertex_positions(q: int, r: int, size: float) -> list[Point]:
    cx, cy = axial_to_pixel(q, r, size)
    return hex_vertices_at(cx, cy, size)


def build_neighbor_data(tiles: list[Tile]) -> tuple[dict[tuple[int, int], int], list[list[int]]]:
    """Return (axial -> index map, per-tile neighbour indices by direction).

    Missing neighbours (off-board) are -1.
    """
    index_map = {(t.q, t.r): idx for idx, t in enumerate(tiles)}
    neighbors = [
        [index_map.get((t.q + dq, t.r + dr), -1) for dq, dr in NEIGHBOR_DIRS]
        for t in tiles
    ]
    return index_map, neighbors


def tile_distance(tile: Tile) -> int:
    """Hex distance from the board centre."""
    return max(abs(tile.q), abs(tile.r), abs(tile.s))


def tile_angle(tile: Tile) -> float:
    x, y = axial_to_pixel(tile.q, tile.r, 1)
    return math.atan2(y, x)


def hex_distance(a: Tile, b: Tile) -> int:
    return (abs(a.q - b.q) + abs(a.r - b.r) + abs(a.s - b.s)) // 2


def rings_by_distance(tiles: list[Tile]) -> list[list[int]]:
    """Tile indices grouped by distance from the centre, each ring sorted by angle."""
    rings: list[list[int]] = []
    for idx, t in enumerate(tiles):
        dist = tile_distance(t)
        while len(rings) <= dist:
            rings.append([])
        rings[dist].append(idx)
    angles = [tile_angle(t) for t in tiles]
    for ring in rings:
        ring.sort(key=lambda i: angles[i])
    return rings


def junction_key(x: float, y: float) -> JunctionKey:
    return round(x * JUNCTION_KEY_SCALE), round(y * JUNCTION_KEY_SCALE)


def compute_junction_map(tiles: list[Tile], size: float = 1.0) -> dict[JunctionKey, Junction]:
    """Find every point where three hexagon corners meet.

    Junctions are kept in first-seen order; each stores its first three
    distinct contributing tiles.
    """
    acc: dict[JunctionKey, tuple[Point, list[tuple[int, int]]]] = {}
    for idx, t in enumerate(tiles):
        verts = hex_vertex_positions(t.q, t.r, size)
        for vi in JUNCTION_VERTICES:
            vx, vy = verts[vi]
            key = junction_key(vx, vy)
            if key in acc:
                acc[key][1].append((idx, vi))
            else:
                acc[key] = ((vx, vy), [(idx, vi)])

    junctions: dict[JunctionKey, Junction] = {}
    for key, ((x, y), entries) in acc.items():
        if len(entries) < 3:
            continue
        unique_tiles: list[int] = []
        for tile_idx, _vertex in entries:
            if tile_idx not in unique_tiles:
                unique_tiles.append(tile_idx)
        if len(unique_tiles) >= 3:
            junctions[key] = Junction(
                key=key,
                x=x,
                y=y,
                tiles=unique_tiles[:3],
                entries=entries,
            )
    return junctions
