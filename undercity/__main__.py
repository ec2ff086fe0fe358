"""Command-line entry point: generate or load a map and print it as ASCII.

Usage:
    python -m undercity generate [--seed N]
    python -m undercity prefab [PATH]
"""

from __future__ import annotations

import argparse
import logging
import sys

from undercity import config
from undercity.environment.generators import (
    BaseMapGenerator,
    DungeonGenerator,
    GeneratedMapData,
    GenerationError,
    PrefabMapGenerator,
)
from undercity.environment.map import render_ascii
from undercity.environment.prefab import PrefabError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="undercity", description="Generate Undercity maps and dump them as text"
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging verbosity (default: {config.LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a BSP dungeon")
    generate.add_argument(
        "--seed",
        type=int,
        default=config.RANDOM_SEED,
        help=f"Random seed (default: {config.RANDOM_SEED})",
    )

    prefab = subparsers.add_parser("prefab", help="Load a prefab map file")
    prefab.add_argument(
        "path",
        nargs="?",
        default=str(config.DEFAULT_PREFAB),
        help="Prefab JSON file (default: the bundled test prefab)",
    )
    return parser


def _summarize(data: GeneratedMapData) -> str:
    used = data.grid.used_tiles()
    bounds = "empty" if used is None else f"{used.width}x{used.height} at {used.min}"
    return (
        f"{bounds}; {len(data.grid.chunks)} chunks, {len(data.rooms)} rooms, "
        f"{len(data.doors)} doors, {len(data.spawn_points)} spawn points"
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(levelname)s %(name)s: %(message)s"
    )

    generator: BaseMapGenerator
    match args.command:
        case "generate":
            generator = DungeonGenerator(args.seed)
        case "prefab":
            generator = PrefabMapGenerator(args.path)
        case _:
            raise AssertionError(f"unhandled command {args.command!r}")

    try:
        data = generator.generate()
    except (PrefabError, GenerationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render_ascii(data.grid))
    print(_summarize(data))
    return 0


if __name__ == "__main__":
    sys.exit(main())
