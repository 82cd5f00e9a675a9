"""Command line tools for generating and auto-filling Pairleroy boards.

Usage::

    python -m pairleroy generate --radius 6 --seed 1234

    # Colour sets from the backtracking search instead of exact unit quotas
    python -m pairleroy generate --strategy backtrack --max-backtracks 2000

    # Fill a board from random palettes, ring by ring
    python -m pairleroy autofill --radius 3 --seed 7 --max-steps 20
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter

from pairleroy.config import settings
from pairleroy.games.pairleroy.assignment import assign_board_combos, tile_types_from_percents
from pairleroy.games.pairleroy.autofill import AutoFiller
from pairleroy.games.pairleroy.backtracking import assign_colors_to_tiles
from pairleroy.games.pairleroy.board import Board
from pairleroy.games.pairleroy.errors import PairleroyError
from pairleroy.games.pairleroy.hexgrid import tile_count
from pairleroy.games.pairleroy.quotas import quotas_from_percents
from pairleroy.games.pairleroy.rng import Xorshift32, random_seed
from pairleroy.games.pairleroy.types import UNITS_PER_TILE

logger = logging.getLogger(__name__)


def _percent_list(text: str) -> list[float]:
    try:
        return [float(part) for part in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma-separated numbers, got {text!r}")


def _color_legend() -> list[dict]:
    return [
        {"index": i, "hex": hex_code, "label": label}
        for i, (hex_code, label) in enumerate(zip(settings.color_hex, settings.color_labels))
    ]


def _generate(args: argparse.Namespace, seed: int) -> dict:
    rng = Xorshift32(seed)
    n = tile_count(args.radius)

    if args.strategy == "backtrack":
        types = tile_types_from_percents(n, args.types, rng)
        counts = quotas_from_percents(sum(types), args.colors)
        color_sets = assign_colors_to_tiles(types, counts, rng, args.max_backtracks)
        usage = Counter(c for cset in color_sets for c in cset)
        return {
            "seed": seed,
            "strategy": "backtrack",
            "tiles": [{"type": len(cset), "colors": cset} for cset in color_sets],
            "color_usage": [usage.get(c, 0) for c in range(len(args.colors))],
        }

    combos = assign_board_combos(n, args.types, args.colors, rng)
    units: Counter[int] = Counter()
    for combo in combos:
        for color, amount in zip(combo.colors, combo.units):
            units[color] += amount
    return {
        "seed": seed,
        "strategy": "quotas",
        "tiles": [combo.model_dump(mode="json") for combo in combos],
        "unit_targets": quotas_from_percents(UNITS_PER_TILE * n, args.colors),
        "unit_usage": [units.get(c, 0) for c in range(len(args.colors))],
    }


def _autofill(args: argparse.Namespace, seed: int) -> dict:
    board = Board(args.radius)
    filler = AutoFiller(
        board,
        args.types,
        args.colors,
        Xorshift32(seed),
        palette_size=settings.palette_size,
        max_attempts=settings.autofill_max_attempts,
    )
    result = filler.run(args.max_steps)
    return {
        "seed": seed,
        "result": result,
        "placed": board.placed_count,
        "tile_count": board.tile_count,
        "board": board.to_dict(),
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Pairleroy board tools")
    parser.add_argument("--radius", type=int, default=settings.radius)
    parser.add_argument("--seed", type=int, default=settings.random_seed)
    parser.add_argument(
        "--types",
        type=_percent_list,
        default=list(settings.types_pct),
        help="Mono,bi,tri tile percentages (total 100)",
    )
    parser.add_argument(
        "--colors",
        type=_percent_list,
        default=list(settings.color_pct),
        help="Per-colour percentages (total 100)",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Assign a combo to every tile of a board")
    gen.add_argument("--strategy", choices=["quotas", "backtrack"], default="quotas")
    gen.add_argument("--max-backtracks", type=int, default=settings.max_backtracks)

    fill = sub.add_parser("autofill", help="Fill a board from palettes")
    fill.add_argument("--max-steps", type=int, default=None)

    args = parser.parse_args(argv)
    level = "DEBUG" if settings.debug_autofill else args.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    seed = args.seed if args.seed is not None else random_seed()
    logger.info(f"{args.command}: radius {args.radius}, seed {seed}")

    try:
        if args.command == "generate":
            output = _generate(args, seed)
        else:
            output = _autofill(args, seed)
    except PairleroyError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    output["colors"] = _color_legend()
    print(json.dumps(output))


if __name__ == "__main__":
    main()
