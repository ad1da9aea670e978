from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from wherex.errors import ConfigurationError
from wherex.models import Difficulty, PortConnection

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_CONFIG_PATH = DATA_DIR / "game_config.json"

CityRef = Tuple[str, str]


def _city_ref(raw: Any, where: str) -> CityRef:
    if not isinstance(raw, dict) or not raw.get("name") or not raw.get("country"):
        raise ConfigurationError(f"Invalid city reference in {where}: {raw!r}")
    return (str(raw["name"]), str(raw["country"]))


@dataclass(frozen=True)
class FestivePuzzle:
    date: str
    final_city: CityRef
    start_city: Optional[CityRef] = None
    route: Tuple[CityRef, ...] = ()

    @staticmethod
    def from_dict(puzzle_date: str, raw: Dict[str, Any]) -> "FestivePuzzle":
        where = f"festive puzzle {puzzle_date}"
        route = tuple(_city_ref(item, where) for item in raw.get("route", []))
        final_raw = raw.get("finalCity")
        if final_raw is None and route:
            final_city = route[-1]
        else:
            final_city = _city_ref(final_raw, where)
        start_raw = raw.get("startCity")
        return FestivePuzzle(
            date=puzzle_date,
            final_city=final_city,
            start_city=_city_ref(start_raw, where) if start_raw else None,
            route=route,
        )


@dataclass(frozen=True)
class GameConfig:
    name: str
    max_hop_km: float = 500.0
    route_length: int = 5
    guess_radius_km: float = 80.5
    difficulty_seed_offsets: Dict[str, int] = field(default_factory=dict)
    home_city: Optional[str] = None
    image_base_url: str = "data/familyImages"
    port_connections: Tuple[PortConnection, ...] = ()
    festive_puzzles: Dict[str, FestivePuzzle] = field(default_factory=dict)

    @staticmethod
    def load(path: Path) -> "GameConfig":
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read game config {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Malformed game config {path}: {exc}") from exc

        ports = []
        for item in raw.get("portConnections", []):
            try:
                ports.append(
                    PortConnection(
                        from_city=str(item["from"]),
                        to_city=str(item["to"]),
                        max_distance_km=float(item["maxDistance"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid port connection in {path}: {item!r}") from exc

        festive = {
            puzzle_date: FestivePuzzle.from_dict(puzzle_date, entry)
            for puzzle_date, entry in raw.get("festivePuzzles", {}).items()
        }

        route_length = int(raw.get("routeLength", 5))
        if route_length < 2:
            raise ConfigurationError(f"routeLength must be at least 2, got {route_length}")

        return GameConfig(
            name=raw.get("name", path.stem),
            max_hop_km=float(raw.get("maxHopKm", 500.0)),
            route_length=route_length,
            guess_radius_km=float(raw.get("guessRadiusKm", 80.5)),
            difficulty_seed_offsets={str(k).upper(): int(v) for k, v in raw.get("difficultySeedOffsets", {}).items()},
            home_city=raw.get("homeCity"),
            image_base_url=raw.get("imageBaseUrl", "data/familyImages"),
            port_connections=tuple(ports),
            festive_puzzles=festive,
        )

    @staticmethod
    def default() -> "GameConfig":
        return GameConfig.load(DEFAULT_CONFIG_PATH)

    def festive_for(self, puzzle_date: str) -> Optional[FestivePuzzle]:
        return self.festive_puzzles.get(puzzle_date)

    def is_festive(self, puzzle_date: str) -> bool:
        return puzzle_date in self.festive_puzzles

    def festive_dates(self) -> List[str]:
        return sorted(self.festive_puzzles)

    def seed_offset(self, difficulty: Difficulty) -> int:
        defaults = {"EASY": 1000, "MEDIUM": 2000, "HARD": 3000}
        level = difficulty.effective.value
        return self.difficulty_seed_offsets.get(level, defaults[level])
