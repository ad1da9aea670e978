from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from wherex.bus import TraceBus
from wherex.catalog import CityCatalog
from wherex.clues.registry import build_registry
from wherex.config import FestivePuzzle, GameConfig
from wherex.distribution import ClueOrchestrator
from wherex.geo import distance_km
from wherex.models import City, Clue, Difficulty, Location
from wherex.routes import RouteSelector

logger = logging.getLogger(__name__)

STATE_UNINITIALIZED = "uninitialized"
STATE_INITIALIZING = "initializing"
STATE_INITIALIZED = "initialized"
STATE_GENERATED = "generated"

FINAL_STOP_POINTS: Dict[Difficulty, int] = {
    Difficulty.EASY: 5,
    Difficulty.MEDIUM: 8,
    Difficulty.HARD: 10,
}

HINT_PENALTY: Dict[Difficulty, int] = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 1,
    Difficulty.HARD: 2,
}


def parse_puzzle_date(seed: str) -> Optional[date]:
    try:
        return date.fromisoformat(seed)
    except (TypeError, ValueError):
        return None


def stop_points(difficulty: Difficulty, stop_index: int, last_index: int) -> int:
    level = difficulty.effective
    if stop_index == 0:
        return 0
    if stop_index == last_index:
        return FINAL_STOP_POINTS[level]
    if level is Difficulty.EASY:
        return stop_index
    if level is Difficulty.MEDIUM:
        return stop_index + 1
    return stop_index * 2


def max_score(difficulty: Difficulty, route_length: int = 5) -> int:
    last = route_length - 1
    return sum(stop_points(difficulty, stop, last) for stop in range(route_length))


@dataclass
class PuzzleEngine:
    """Daily puzzle facade: route, clues, guesses, hints and score.

    The seed is normally an ISO date. Any other string still works as a
    seed; the puzzle is then dated today for visibility purposes.
    """

    seed: Optional[str] = None
    difficulty: Any = Difficulty.MEDIUM
    config: Optional[GameConfig] = None
    catalog: Optional[CityCatalog] = None
    image_search: Optional[Any] = None
    bus: Optional[TraceBus] = None

    def __post_init__(self) -> None:
        self.seed = self.seed or date.today().isoformat()
        self.config = self.config or GameConfig.default()
        self.requested_difficulty = Difficulty.parse(self.difficulty)

        seed_date = parse_puzzle_date(self.seed)
        self.puzzle_date = seed_date or date.today()
        self.festive: Optional[FestivePuzzle] = (
            self.config.festive_for(seed_date.isoformat()) if seed_date is not None else None
        )
        self.difficulty = Difficulty.FESTIVE if self.festive is not None else self.requested_difficulty

        self.state = STATE_UNINITIALIZED
        self.cities: List[City] = []
        self.guessable: List[City] = []
        self.locations: Optional[List[Location]] = None
        self.orchestrator: Optional[ClueOrchestrator] = None
        self._lock = threading.RLock()

    @property
    def is_festive(self) -> bool:
        return self.festive is not None

    @property
    def full_seed(self) -> str:
        return f"{self.seed}{self.config.seed_offset(self.difficulty)}"

    def initialize(self) -> None:
        with self._lock:
            if self.state != STATE_UNINITIALIZED:
                return
            self.state = STATE_INITIALIZING
            try:
                if self.catalog is None:
                    self.catalog = CityCatalog.load()
                self.cities = self.catalog.visible(self.puzzle_date)
                self.guessable = list(self.cities) + self._festive_extras()
            except Exception:
                self.state = STATE_UNINITIALIZED
                raise
            self.state = STATE_INITIALIZED
            logger.debug("Engine initialized for %s with %d visible cities", self.puzzle_date, len(self.cities))

    def _festive_extras(self) -> List[City]:
        if self.festive is None:
            return []
        refs = list(self.festive.route) + [self.festive.final_city]
        if self.festive.start_city is not None:
            refs.append(self.festive.start_city)
        visible = {city.key for city in self.cities}
        extras: List[City] = []
        for ref in refs:
            city = self.catalog.get(*ref)
            if city is not None and city.key not in visible:
                visible.add(city.key)
                extras.append(city)
        return extras

    def generate_puzzle(self) -> List[Location]:
        with self._lock:
            if self.locations is not None:
                return self.locations
            self.initialize()

            rng = random.Random(self.full_seed)
            if self.bus is not None:
                self.bus.emit(
                    "puzzle.generating",
                    {"seed": self.seed, "difficulty": self.difficulty.value, "festive": self.is_festive},
                    source="engine",
                )

            selector = RouteSelector(self.config.port_connections, self.config.max_hop_km, bus=self.bus)
            count = self.config.route_length
            if self.festive is not None:
                route = selector.select_festive_route(rng, self.festive, self.catalog, self.cities, count)
            else:
                route = selector.select_route(rng, self.cities, count)

            registry = build_registry(
                self.difficulty,
                image_search=self.image_search,
                festive=self.is_festive,
                family_image_base=self.config.image_base_url,
                home_city=self.config.home_city,
                festive_dates=self.config.festive_dates(),
            )
            self.orchestrator = ClueOrchestrator(
                rng=rng,
                difficulty=self.difficulty,
                registry=registry,
                city_pool=self.cities,
                reference=self.catalog.reference,
                puzzle_date=self.puzzle_date,
                is_festive=self.is_festive,
                route_length=len(route),
                bus=self.bus,
            )

            final_city = route[-1]
            locations: List[Location] = []
            for stop_index, city in enumerate(route):
                previous = route[stop_index - 1] if stop_index > 0 else None
                clues = self.orchestrator.generate_clues_for_stop(stop_index, city, previous, final_city)
                location = Location(id=stop_index, city=city, clues=clues)
                if stop_index == 0:
                    location.is_guessed = True
                    location.is_correct = True
                    location.guess_position = (city.lat, city.lng)
                    location.closest_city = city
                locations.append(location)

            self.locations = locations
            self.state = STATE_GENERATED
            if self.bus is not None:
                self.bus.emit(
                    "puzzle.generated",
                    {
                        "seed": self.full_seed,
                        "route": [city.name for city in route],
                        "red_herring_stops": sorted(self.orchestrator.red_herring_stops),
                    },
                    source="engine",
                )
            return locations

    def _ready(self) -> bool:
        return self.state in (STATE_INITIALIZED, STATE_GENERATED)

    def find_closest_city(self, lat: float, lng: float) -> Optional[City]:
        if not self._ready() or not self.guessable:
            return None
        closest = min(self.guessable, key=lambda city: distance_km(lat, lng, city.lat, city.lng))
        if distance_km(lat, lng, closest.lat, closest.lng) > self.config.guess_radius_km:
            return None
        return closest

    def check_guess(self, location: Location, lat: float, lng: float) -> bool:
        if not self._ready():
            return False
        target = location.city
        target_distance = distance_km(lat, lng, target.lat, target.lng)
        if target_distance > self.config.guess_radius_km:
            return False
        for city in self.guessable:
            if city.key == target.key:
                continue
            if distance_km(lat, lng, city.lat, city.lng) <= target_distance:
                return False
        return True

    def location(self, stop_index: int) -> Location:
        locations = self.generate_puzzle()
        if stop_index < 0 or stop_index >= len(locations):
            raise ValueError(f"Stop not found: {stop_index}")
        return locations[stop_index]

    def submit_guess(self, stop_index: int, lat: float, lng: float) -> Location:
        location = self.location(stop_index)
        if location.is_correct:
            return location
        correct = self.check_guess(location, lat, lng)
        location.is_guessed = True
        location.guess_position = (lat, lng)
        location.is_correct = correct
        location.closest_city = self.find_closest_city(lat, lng)
        if self.bus is not None:
            self.bus.emit(
                "guess.checked",
                {"stop": stop_index, "correct": correct, "lat": lat, "lng": lng},
                source="engine",
            )
        return location

    def generate_hint_clue(self, stop_index: int, locations: Optional[Sequence[Location]] = None) -> Optional[Clue]:
        """Extra clue of an unused kind about the stop's own city, or None."""
        generated = self.generate_puzzle()
        locations = list(locations) if locations is not None else generated
        if stop_index < 0 or stop_index >= len(locations):
            raise ValueError(f"Stop not found: {stop_index}")
        location = locations[stop_index]
        previous = locations[stop_index - 1].city if stop_index > 0 else None
        return self.orchestrator.generate_hint_clue(location, previous, locations[-1].city)

    def calculate_score(self, locations: Optional[Sequence[Location]] = None, hints_used: int = 0) -> int:
        locations = list(locations) if locations is not None else list(self.locations or [])
        if not locations:
            return 0
        last = (len(self.locations) if self.locations else self.config.route_length) - 1
        score = sum(stop_points(self.difficulty, loc.id, last) for loc in locations if loc.is_correct)
        score -= HINT_PENALTY[self.difficulty.effective] * max(0, hints_used)
        return max(0, score)

    def max_score(self) -> int:
        length = len(self.locations) if self.locations else self.config.route_length
        return max_score(self.difficulty, length)

    def to_dict(self, include_hints: bool = False, reveal: bool = False) -> Dict[str, Any]:
        locations = self.generate_puzzle()
        return {
            "seed": self.seed,
            "date": self.puzzle_date.isoformat(),
            "difficulty": self.difficulty.value,
            "festive": self.is_festive,
            "maxScore": self.max_score(),
            "locations": [
                loc.to_dict(include_hint=include_hints, reveal_city=reveal or bool(loc.is_correct))
                for loc in locations
            ],
        }
