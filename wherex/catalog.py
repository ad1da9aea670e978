from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from wherex.errors import ConfigurationError
from wherex.models import City, CountryInfo, ReferenceData

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

CITIES_FILE = "cities.json"
COUNTRIES_FILE = "countries.json"
FAMILY_INDEX_FILE = "family-images-index.json"


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read data file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Malformed data file {path}: {exc}") from exc


def filter_visible(cities: Iterable[City], puzzle_date: date) -> List[City]:
    """Drop cities whose hidden-until date is later than the puzzle date."""
    return [city for city in cities if city.is_visible_on(puzzle_date)]


@dataclass
class CityCatalog:
    """Unfiltered city list plus the reference tables the clue generators read."""

    cities: List[City]
    reference: ReferenceData

    def __post_init__(self) -> None:
        self._by_key: Dict[tuple, City] = {}
        for city in self.cities:
            if city.key in self._by_key:
                raise ConfigurationError(f"Duplicate city in catalog: {city.name} ({city.country})")
            self._by_key[city.key] = city

    @staticmethod
    def load(data_dir: Optional[Path] = None) -> "CityCatalog":
        root = Path(data_dir) if data_dir else DATA_DIR
        raw_cities = _read_json(root / CITIES_FILE)
        if not isinstance(raw_cities, list):
            raise ConfigurationError(f"{root / CITIES_FILE} must contain a list of cities")
        cities = [City.from_dict(item) for item in raw_cities]

        countries: Dict[str, CountryInfo] = {}
        countries_path = root / COUNTRIES_FILE
        if countries_path.exists():
            raw_countries = _read_json(countries_path)
            countries = {name: CountryInfo.from_dict(name, entry) for name, entry in raw_countries.items()}
        else:
            logger.warning("No country reference data at %s; country-based clues disabled", countries_path)

        family_images: Dict[str, Dict[str, List[int]]] = {}
        family_path = root / FAMILY_INDEX_FILE
        if family_path.exists():
            family_images = _read_json(family_path).get("index", {})

        missing = sorted({city.country for city in cities if city.country not in countries})
        if countries and missing:
            logger.warning("Countries without reference data: %s", ", ".join(missing))

        logger.debug("Loaded %d cities from %s", len(cities), root)
        return CityCatalog(cities=cities, reference=ReferenceData(countries=countries, family_images=family_images))

    def visible(self, puzzle_date: date) -> List[City]:
        return filter_visible(self.cities, puzzle_date)

    def get(self, name: str, country: str) -> Optional[City]:
        return self._by_key.get((name, country))

    def find(self, name: str, country: str) -> City:
        city = self.get(name, country)
        if city is None:
            raise ConfigurationError(f"City not found in catalog: {name} ({country})")
        return city

    def __len__(self) -> int:
        return len(self.cities)
