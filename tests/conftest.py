"""
Shared fixtures for the wherex test suite.
"""
import random
from datetime import date

import pytest

from wherex.catalog import CityCatalog
from wherex.config import GameConfig
from wherex.models import (
    City,
    CityDetails,
    Climate,
    ClueContext,
    CountryInfo,
    Difficulty,
    Geography,
    Greeting,
    ReferenceData,
    Role,
)


@pytest.fixture(scope="session")
def catalog():
    """The bundled city catalog, loaded once."""
    return CityCatalog.load()


@pytest.fixture(scope="session")
def config():
    """The bundled game configuration."""
    return GameConfig.default()


@pytest.fixture
def make_city():
    """Factory for small synthetic cities."""
    def _make(name, lat=0.0, lng=0.0, country="Testland", hidden_until=None, **details):
        return City(
            name=name,
            country=country,
            lat=lat,
            lng=lng,
            details=CityDetails(**details),
            hidden_until=hidden_until,
        )
    return _make


@pytest.fixture
def reference():
    """Reference data with one fully described country."""
    return ReferenceData(
        countries={
            "Testland": CountryInfo(
                name="Testland",
                flag="🏳️",
                emojis=("🧀", "🍷", "🥖", "🗼"),
                population=68_000_000,
                greeting=Greeting(hello="Bonjour", welcome="Bienvenue", thank_you="Merci", difficulty="easy"),
            ),
            "Farland": CountryInfo(
                name="Farland",
                flag="🏴",
                emojis=("🦌",),
                population=5_500_000,
                greeting=Greeting(hello="Hei", welcome="Tervetuloa", thank_you="Kiitos", difficulty="hard"),
            ),
        },
        family_images={
            "paris": {"easy": [0], "medium": [0, 1]},
            "dully": {"medium": [0], "xmas": [0, 1, 2, 3]},
        },
    )


@pytest.fixture
def paris(make_city):
    """A richly detailed synthetic city."""
    return make_city(
        "Paris",
        lat=48.8566,
        lng=2.3522,
        population=2_100_000,
        region="Île-de-France",
        landmarks=("Old Town", "Eiffel Tower", "Louvre Museum"),
        cuisine=("local specialties", "Croissant"),
        art=("Mona Lisa",),
        climate=Climate(june_temp=18.7, dec_temp=5.5, june_rainfall=50, dec_rainfall=57),
        geography=Geography(elevation=35, distance_to_sea=180, position_in_country="north"),
        city_emojis=("🗼", "🥐", "🎨"),
        city_flag="flags/cities/paris.svg",
        region_flag="flags/regions/ile-de-france.svg",
        weird_facts=("Only one stop sign", "Trousers law until 2013"),
        family_clue="Far too many pastries",
        festive_facts=("Window displays on Boulevard Haussmann",),
    )


@pytest.fixture
def make_context(reference):
    """Factory for clue contexts around a target city."""
    def _make(target, previous=None, final=None, difficulty=Difficulty.MEDIUM, seed=7, **kwargs):
        params = dict(
            target_city=target,
            previous_city=previous,
            final_city=final or target,
            stop_index=kwargs.pop("stop_index", 1),
            difficulty=difficulty,
            rng=random.Random(seed),
            reference=kwargs.pop("reference", reference),
            puzzle_date=kwargs.pop("puzzle_date", date(2024, 5, 1)),
            role=kwargs.pop("role", Role.CURRENT),
        )
        params.update(kwargs)
        return ClueContext(**params)
    return _make
