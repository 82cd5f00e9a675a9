"""Domain models for Pairleroy: tiles, junctions, combos and placements."""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    model_validator,
)

NUM_COLORS = 4
SIDES = 6
UNITS_PER_TILE = 3

ColorIndex = Annotated[int, Field(ge=0, lt=NUM_COLORS)]
JunctionKey = tuple[int, int]


class TileType(IntEnum):
    MONO = 1
    BI = 2
    TRI = 3


class Tile(BaseModel):
    """A board cell in axial coordinates."""

    model_config = ConfigDict(frozen=True)

    q: int
    r: int
    s: int

    @model_validator(mode="after")
    def _check_cube(self) -> Tile:
        if self.q + self.r + self.s != 0:
            raise ValueError(f"Invalid axial coordinate: q+r+s = {self.q + self.r + self.s}")
        return self

    def to_key(self) -> str:
        return f"{self.q},{self.r}"


class Junction(BaseModel):
    """A point where three hexagon corners meet."""

    model_config = ConfigDict(frozen=True)

    key: JunctionKey
    x: float
    y: float
    tiles: list[int]  # up to 3 distinct contributing tile indices
    entries: list[tuple[int, int]]  # (tile_idx, vertex_idx)


def junction_key_to_str(key: JunctionKey) -> str:
    return f"{key[0]},{key[1]}"


def junction_key_from_str(text: str) -> JunctionKey:
    x, y = text.split(",")
    return int(x), int(y)


# --- Combos ---

class _ComboBase(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


class MonoCombo(_ComboBase):
    type: Literal[1] = 1
    color: ColorIndex
    rotation_step: int = Field(default=0, ge=0, le=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def colors(self) -> list[int]:
        return [self.color]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def units(self) -> list[int]:
        return [3]


class BiCombo(_ComboBase):
    type: Literal[2] = 2
    major: ColorIndex
    minor: ColorIndex
    rotation_step: int = Field(default=0, ge=0, le=2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def colors(self) -> list[int]:
        return [self.major, self.minor]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def units(self) -> list[int]:
        return [2, 1]


class TriCombo(_ComboBase):
    type: Literal[3] = 3
    color_a: ColorIndex
    color_b: ColorIndex
    color_c: ColorIndex
    rotation_step: int = Field(default=0, ge=0, le=2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def colors(self) -> list[int]:
        return [self.color_a, self.color_b, self.color_c]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def units(self) -> list[int]:
        return [1, 1, 1]


Combo = Annotated[Union[MonoCombo, BiCombo, TriCombo], Field(discriminator="type")]

COMBO_ADAPTER: TypeAdapter[Combo] = TypeAdapter(Combo)


def make_combo(tile_type: int, colors: list[int], rotation_step: int = 0) -> Combo:
    """Build the combo variant for ``tile_type`` from its colour list."""
    if tile_type == TileType.MONO:
        (c,) = colors
        return MonoCombo(color=c)
    if tile_type == TileType.BI:
        maj, mn = colors
        return BiCombo(major=maj, minor=mn, rotation_step=rotation_step)
    if tile_type == TileType.TRI:
        a, b, c = colors
        return TriCombo(color_a=a, color_b=b, color_c=c, rotation_step=rotation_step)
    raise ValueError(f"Invalid tile type: {tile_type}")


def combo_from_dict(data: dict) -> Combo:
    """Rebuild a combo from ``model_dump()`` output or a {type, colors} record."""
    if "colors" in data and not any(k in data for k in ("color", "major", "color_a")):
        return make_combo(data["type"], list(data["colors"]), data.get("rotation_step", 0))
    return COMBO_ADAPTER.validate_python(data)


# --- Side colours ---

ROTATION_STEPS: dict[int, tuple[int, ...]] = {
    TileType.MONO: (0,),
    TileType.BI: (0, 1, 2),
    TileType.TRI: (0, 1, 2),
}


def combo_to_side_colors(combo: Combo) -> list[int]:
    """Expand a combo into its 6 edge colours before rotation."""
    if isinstance(combo, MonoCombo):
        return [combo.color] * SIDES
    if isinstance(combo, BiCombo):
        maj, mn = combo.major, combo.minor
        return [maj, mn, mn, maj, maj, maj]
    if isinstance(combo, TriCombo):
        a, b, c = combo.color_a, combo.color_b, combo.color_c
        return [a, b, b, c, c, a]
    raise TypeError(f"Unknown combo: {combo!r}")


def rotate_side_colors(colors: list[int], steps: int) -> list[int]:
    """Rotate left by ``steps`` edges."""
    s = steps % SIDES
    return colors[s:] + colors[:s]


def rotation_steps_for_combo(combo: Combo | None) -> tuple[int, ...]:
    if combo is None:
        return ()
    return ROTATION_STEPS[combo.type]


def normalize_rotation_step(combo: Combo | None, raw_step: int | float | None) -> int:
    """Map any requested rotation onto one of the combo's valid steps.

    A valid step is returned as is; an even edge count whose half is a valid
    step is halved; anything else wraps around the available steps.
    """
    steps = rotation_steps_for_combo(combo)
    if not steps:
        return 0
    if raw_step in steps:
        return int(raw_step)  # type: ignore[arg-type]
    if isinstance(raw_step, int) and raw_step % 2 == 0 and raw_step // 2 in steps:
        return raw_step // 2
    count = len(steps)
    idx = round(raw_step) if isinstance(raw_step, (int, float)) else 0
    return steps[idx % count]


def next_rotation_step(combo: Combo | None, current_step: int | None) -> int:
    steps = rotation_steps_for_combo(combo)
    if not steps:
        return 0
    current = normalize_rotation_step(combo, current_step)
    return steps[(steps.index(current) + 1) % len(steps)]


def oriented_side_colors(combo: Combo, step: int | None = None) -> list[int]:
    """Edge colours of ``combo`` rotated by ``step`` (default: its own step).

    Bi and tri patterns repeat under 180 degree turns, so a step advances the
    pattern by two edges.
    """
    base = combo_to_side_colors(combo)
    if isinstance(combo, MonoCombo):
        return base
    if step is None:
        step = combo.rotation_step
    normalized = normalize_rotation_step(combo, step)
    index = rotation_steps_for_combo(combo).index(normalized)
    return rotate_side_colors(base, index * 2)


# --- Placements ---

class Placement(BaseModel):
    player_id: str | None = None
    combo: Combo
    rotation_step: int = 0
    side_colors: list[int]
