from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from wherex.bus import TraceBus
from wherex.catalog import CityCatalog
from wherex.config import GameConfig
from wherex.engine import PuzzleEngine, max_score
from wherex.images import WikimediaImageSearch
from wherex.models import Difficulty


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily European route-guessing puzzle")
    parser.add_argument("--config", default=None, help="Path to game config JSON")
    parser.add_argument("--data-dir", default=None, help="Directory with cities.json and reference data")
    parser.add_argument("--trace", default=None, help="Append generation events to this JSONL file")
    parser.add_argument("--log-level", default="WARNING")

    sub = parser.add_subparsers(dest="command", required=True)

    difficulties = [d.value for d in Difficulty if d is not Difficulty.FESTIVE]

    generate = sub.add_parser("generate", help="Generate a puzzle and print it as JSON")
    generate.add_argument("--seed", default=None, help="Puzzle seed, usually an ISO date")
    generate.add_argument("--difficulty", default="MEDIUM", type=str.upper, choices=difficulties)
    generate.add_argument("--images", action="store_true", help="Enable Wikimedia image clues")
    generate.add_argument("--reveal", action="store_true", help="Include city names and hint clues")

    route = sub.add_parser("route", help="Print only the route for a seed")
    route.add_argument("--seed", default=None)
    route.add_argument("--difficulty", default="MEDIUM", type=str.upper, choices=difficulties)

    closest = sub.add_parser("closest", help="Closest guessable city to a point")
    closest.add_argument("--lat", type=float, required=True)
    closest.add_argument("--lng", type=float, required=True)
    closest.add_argument("--date", default=None)

    score = sub.add_parser("max-score", help="Maximum score per difficulty")
    score.add_argument("--difficulty", default=None, type=str.upper, choices=difficulties)

    sub.add_parser("festive-dates", help="List dates with a curated festive route")

    return parser


def _load_engine(args: argparse.Namespace, seed: Optional[str], difficulty: str, images: bool = False) -> PuzzleEngine:
    config = GameConfig.load(Path(args.config)) if args.config else GameConfig.default()
    catalog = CityCatalog.load(Path(args.data_dir) if args.data_dir else None)
    bus = TraceBus(Path(args.trace)) if args.trace else None
    return PuzzleEngine(
        seed=seed,
        difficulty=difficulty,
        config=config,
        catalog=catalog,
        image_search=WikimediaImageSearch() if images else None,
        bus=bus,
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "generate":
        engine = _load_engine(args, args.seed, args.difficulty, images=args.images)
        print(json.dumps(engine.to_dict(include_hints=args.reveal, reveal=args.reveal), indent=2, ensure_ascii=False))
        return

    if args.command == "route":
        engine = _load_engine(args, args.seed, args.difficulty)
        locations = engine.generate_puzzle()
        result = {
            "seed": engine.full_seed,
            "difficulty": engine.difficulty.value,
            "route": [loc.city.to_dict() for loc in locations],
            "redHerringStops": sorted(engine.orchestrator.red_herring_stops),
        }
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return

    if args.command == "closest":
        engine = _load_engine(args, args.date, "MEDIUM")
        engine.initialize()
        city = engine.find_closest_city(args.lat, args.lng)
        print(json.dumps({"city": city.to_dict() if city else None}, indent=2, ensure_ascii=False))
        return

    if args.command == "max-score":
        levels = [args.difficulty] if args.difficulty else [Difficulty.EASY.value, Difficulty.MEDIUM.value, Difficulty.HARD.value]
        print(json.dumps({level: max_score(Difficulty(level)) for level in levels}, indent=2))
        return

    if args.command == "festive-dates":
        config = GameConfig.load(Path(args.config)) if args.config else GameConfig.default()
        print(json.dumps(config.festive_dates(), indent=2))
        return

    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
