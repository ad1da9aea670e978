from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from wherex.errors import ConfigurationError


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    FESTIVE = "FESTIVE"

    @property
    def effective(self) -> "Difficulty":
        """Level used for clue eligibility, clue content and scoring."""
        if self is Difficulty.FESTIVE:
            return Difficulty.HARD
        return self

    @staticmethod
    def parse(value: Any) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        try:
            return Difficulty(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value}") from None


class ClueKind(str, Enum):
    DIRECTION = "direction"
    ANAGRAM = "anagram"
    COUNTRY_EMOJI = "country-emoji"
    CITY_EMOJI = "city-emoji"
    FLAG = "flag"
    POPULATION = "population"
    GEOGRAPHY = "geography"
    CLIMATE = "climate"
    GREETING = "greeting"
    WEIRD_FACTS = "weirdfacts"
    FAMILY = "family"
    FAMILY_IMAGE = "family-image"
    LANDMARK_IMAGE = "landmark-image"
    ART_IMAGE = "art-image"
    CUISINE_IMAGE = "cuisine-image"
    FESTIVE_FACTS = "festive-facts"
    FESTIVE_IMAGE = "festive-image"


class Role(str, Enum):
    CURRENT = "current"
    FINAL = "final"
    RED_HERRING = "red-herring"
    HINT = "hint"


@dataclass(frozen=True)
class Climate:
    june_temp: float
    dec_temp: float
    june_rainfall: float
    dec_rainfall: float


@dataclass(frozen=True)
class Geography:
    elevation: float
    distance_to_sea: float
    position_in_country: str


@dataclass(frozen=True)
class CityDetails:
    population: int = 0
    founded: Optional[str] = None
    region: Optional[str] = None
    landmarks: Tuple[str, ...] = ()
    cuisine: Tuple[str, ...] = ()
    art: Tuple[str, ...] = ()
    climate: Optional[Climate] = None
    geography: Optional[Geography] = None
    city_emojis: Tuple[str, ...] = ()
    city_flag: Optional[str] = None
    region_flag: Optional[str] = None
    weird_facts: Tuple[str, ...] = ()
    family_clue: Optional[str] = None
    festive_facts: Tuple[str, ...] = ()
    festive_images: Tuple[str, ...] = ()

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "CityDetails":
        climate = raw.get("climate")
        geography = raw.get("geography")
        return CityDetails(
            population=int(raw.get("population", 0) or 0),
            founded=raw.get("founded"),
            region=raw.get("region"),
            landmarks=tuple(raw.get("landmarks", [])),
            cuisine=tuple(raw.get("cuisine", [])),
            art=tuple(raw.get("art", [])),
            climate=Climate(
                june_temp=float(climate["juneTemp"]),
                dec_temp=float(climate["decTemp"]),
                june_rainfall=float(climate["juneRainfall"]),
                dec_rainfall=float(climate["decRainfall"]),
            )
            if climate
            else None,
            geography=Geography(
                elevation=float(geography["elevation"]),
                distance_to_sea=float(geography["distanceToSea"]),
                position_in_country=str(geography["positionInCountry"]),
            )
            if geography
            else None,
            city_emojis=tuple(raw.get("cityEmojis", [])),
            city_flag=raw.get("cityFlag"),
            region_flag=raw.get("regionFlag"),
            weird_facts=tuple(raw.get("weirdFacts", [])),
            family_clue=raw.get("familyClue"),
            festive_facts=tuple(raw.get("festiveFacts", [])),
            festive_images=tuple(raw.get("festiveImages", [])),
        )


@dataclass(frozen=True)
class City:
    """A guessable city. Identity is the (name, country) pair."""

    name: str
    country: str
    lat: float = field(compare=False)
    lng: float = field(compare=False)
    details: CityDetails = field(default_factory=CityDetails, compare=False)
    hidden_until: Optional[str] = field(default=None, compare=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.country)

    @property
    def slug(self) -> str:
        return "".join(ch if ch.isalnum() else "_" for ch in self.name.lower())

    def is_visible_on(self, puzzle_date: date) -> bool:
        if not self.hidden_until:
            return True
        return puzzle_date.isoformat() >= self.hidden_until

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "City":
        name = raw.get("name")
        country = raw.get("country")
        if not name or not country:
            raise ConfigurationError(f"City entry missing name or country: {raw!r}")
        if raw.get("lat") is None or raw.get("lng") is None:
            raise ConfigurationError(f"City {name} ({country}) has no coordinates")
        try:
            details = CityDetails.from_dict(raw.get("details", {}))
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"City {name} ({country}) has malformed details: {exc}") from exc
        return City(
            name=str(name),
            country=str(country),
            lat=float(raw["lat"]),
            lng=float(raw["lng"]),
            details=details,
            hidden_until=raw.get("hiddenUntil"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "country": self.country, "lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Greeting:
    hello: str
    welcome: str
    thank_you: str
    difficulty: str


@dataclass(frozen=True)
class CountryInfo:
    name: str
    flag: Optional[str] = None
    emojis: Tuple[str, ...] = ()
    population: int = 0
    greeting: Optional[Greeting] = None

    @staticmethod
    def from_dict(name: str, raw: Dict[str, Any]) -> "CountryInfo":
        greeting = raw.get("greeting")
        return CountryInfo(
            name=name,
            flag=raw.get("flag"),
            emojis=tuple(raw.get("emojis", [])),
            population=int(raw.get("population", 0) or 0),
            greeting=Greeting(
                hello=greeting["hello"],
                welcome=greeting["welcome"],
                thank_you=greeting["thankYou"],
                difficulty=str(greeting.get("difficulty", "medium")).lower(),
            )
            if greeting
            else None,
        )


@dataclass(frozen=True)
class PortConnection:
    from_city: str
    to_city: str
    max_distance_km: float


@dataclass
class ReferenceData:
    countries: Dict[str, CountryInfo] = field(default_factory=dict)
    family_images: Dict[str, Dict[str, List[int]]] = field(default_factory=dict)

    def country(self, name: str) -> Optional[CountryInfo]:
        return self.countries.get(name)


@dataclass(frozen=True)
class Clue:
    id: str
    text: str
    kind: ClueKind
    difficulty: Difficulty
    is_red_herring: bool
    target_city_name: str
    image_url: Optional[str] = None
    image_urls: Tuple[str, ...] = ()
    payload: Dict[str, Any] = field(default_factory=dict, hash=False)
    is_hint: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "type": self.kind.value,
            "difficulty": self.difficulty.value,
            "isRedHerring": self.is_red_herring,
            "targetCityName": self.target_city_name,
            "imageUrl": self.image_url,
            "imageUrls": list(self.image_urls),
            "payload": self.payload,
            "isHint": self.is_hint,
        }


@dataclass
class Location:
    id: int
    city: City
    clues: List[Clue] = field(default_factory=list)
    is_guessed: bool = False
    guess_position: Optional[Tuple[float, float]] = None
    is_correct: Optional[bool] = None
    closest_city: Optional[City] = None

    def to_dict(self, include_hint: bool = True, reveal_city: bool = True) -> Dict[str, Any]:
        clues = self.clues if include_hint else [clue for clue in self.clues if not clue.is_hint]
        return {
            "id": self.id,
            "city": self.city.to_dict() if reveal_city else None,
            "clues": [clue.to_dict() for clue in clues],
            "isGuessed": self.is_guessed,
            "guessPosition": list(self.guess_position) if self.guess_position else None,
            "isCorrect": self.is_correct,
            "closestCity": self.closest_city.to_dict() if self.closest_city else None,
        }


@dataclass
class ClueContext:
    target_city: City
    previous_city: Optional[City]
    final_city: City
    stop_index: int
    difficulty: Difficulty
    rng: random.Random
    reference: ReferenceData
    puzzle_date: date
    is_festive: bool = False
    is_red_herring: bool = False
    red_herring_city: Optional[City] = None
    role: Role = Role.CURRENT
    slot: int = 0

    @property
    def subject(self) -> City:
        """The city the clue describes."""
        if self.is_red_herring and self.red_herring_city is not None:
            return self.red_herring_city
        return self.target_city

    @property
    def level(self) -> Difficulty:
        return self.difficulty.effective
