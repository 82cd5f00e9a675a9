"""Per-game rule settings, overridable through ``GameConfig.options``."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pairleroy.config import settings

DEFAULT_NEIGHBOR_POINTS = [0, 1, 1, 2, 2, 4, 4]
POINTS_PER_CROWN = 16


class RuleSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    radius: int = Field(default_factory=lambda: settings.radius, ge=1)
    palette_size: int = Field(default_factory=lambda: settings.palette_size, ge=1)
    types_pct: list[float] = Field(default_factory=lambda: list(settings.types_pct))
    color_pct: list[float] = Field(default_factory=lambda: list(settings.color_pct))

    tile_placements_per_turn: int = Field(default=1, ge=0)
    colon_steps_per_turn: int = Field(default=2, ge=0)
    neighbor_points: list[int] = Field(default_factory=lambda: list(DEFAULT_NEIGHBOR_POINTS))
    castle_cost: int = Field(default=5, ge=0)
    outpost_cost: int = Field(default=3, ge=0)
    amenagement_cost: int = Field(default=0, ge=0)
    influence_radius: int = Field(default=1, ge=0)
    require_castle_adjacency_for_castles: bool = True
    points_per_crown: int = Field(default=POINTS_PER_CROWN, ge=1)

    @field_validator("types_pct")
    @classmethod
    def _types_total_100(cls, v: list[float]) -> list[float]:
        if len(v) != 3:
            raise ValueError(f"types_pct needs 3 entries (mono, bi, tri), got {len(v)}")
        if round(sum(v)) != 100:
            raise ValueError(f"types_pct must total 100 (currently {sum(v)})")
        return v

    @field_validator("color_pct")
    @classmethod
    def _colors_total_100(cls, v: list[float]) -> list[float]:
        if len(v) != 4:
            raise ValueError(f"color_pct needs 4 entries, got {len(v)}")
        if round(sum(v)) != 100:
            raise ValueError(f"color_pct must total 100 (currently {sum(v)})")
        return v

    @field_validator("neighbor_points")
    @classmethod
    def _non_empty_table(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("neighbor_points must not be empty")
        return v
