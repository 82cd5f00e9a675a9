from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Board
    radius: int = 6
    palette_size: int = 4

    # Distribution quotas (each list totals 100)
    types_pct: list[float] = [40.0, 40.0, 20.0]  # mono, bi, tri
    color_pct: list[float] = [25.0, 25.0, 25.0, 25.0]

    # Colour labels are opaque to the engine
    color_hex: list[str] = ["#e57373", "#64b5f6", "#81c784", "#ffd54f"]
    color_labels: list[str] = ["Main-d'oeuvre", "Tissu", "Pain", "Bois"]

    # Search limits
    max_backtracks: int = 5000
    autofill_max_attempts: int = 12

    # Seed (None = draw one from the OS)
    random_seed: int | None = None

    # Logging
    log_level: str = "INFO"
    debug_autofill: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PAIRLEROY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
