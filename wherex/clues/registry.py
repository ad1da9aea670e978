from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from wherex.clues.anagram import AnagramClue
from wherex.clues.base import ClueGenerator
from wherex.clues.direction import DirectionClue
from wherex.clues.facts import (
    ClimateClue,
    FamilyClue,
    FestiveFactsClue,
    GeographyClue,
    GreetingClue,
    PopulationClue,
    WeirdFactsClue,
)
from wherex.clues.pictures import (
    ArtImageClue,
    CuisineImageClue,
    FamilyImageClue,
    FestiveImageClue,
    LandmarkImageClue,
)
from wherex.clues.symbols import CityEmojiClue, CountryEmojiClue, FlagClue
from wherex.models import ClueKind, Difficulty

K = ClueKind

EASY_KINDS = [
    K.DIRECTION,
    K.ANAGRAM,
    K.COUNTRY_EMOJI,
    K.FLAG,
    K.POPULATION,
    K.CLIMATE,
    K.GREETING,
    K.WEIRD_FACTS,
    K.FAMILY,
    K.FAMILY_IMAGE,
    K.LANDMARK_IMAGE,
]

MEDIUM_KINDS = [kind for kind in EASY_KINDS if kind is not K.COUNTRY_EMOJI] + [
    K.CITY_EMOJI,
    K.GEOGRAPHY,
    K.ART_IMAGE,
    K.CUISINE_IMAGE,
]

HARD_KINDS = [
    kind
    for kind in ClueKind
    if kind not in (K.COUNTRY_EMOJI, K.FESTIVE_FACTS, K.FESTIVE_IMAGE)
]

FESTIVE_KINDS = [K.FESTIVE_FACTS, K.FESTIVE_IMAGE]

IMAGE_SEARCH_KINDS = {K.LANDMARK_IMAGE, K.ART_IMAGE, K.CUISINE_IMAGE, K.FESTIVE_IMAGE}

KINDS_BY_DIFFICULTY: Dict[Difficulty, List[ClueKind]] = {
    Difficulty.EASY: EASY_KINDS,
    Difficulty.MEDIUM: MEDIUM_KINDS,
    Difficulty.HARD: HARD_KINDS,
}


def kinds_for_difficulty(difficulty: Difficulty, festive: bool = False) -> List[ClueKind]:
    kinds = list(KINDS_BY_DIFFICULTY[difficulty.effective])
    if festive:
        kinds.extend(kind for kind in FESTIVE_KINDS if kind not in kinds)
    return kinds


def build_registry(
    difficulty: Difficulty,
    image_search: Optional[Any] = None,
    festive: bool = False,
    family_image_base: str = "data/familyImages",
    home_city: Optional[str] = None,
    festive_dates: Sequence[str] = (),
) -> Dict[ClueKind, ClueGenerator]:
    """Generators for one puzzle, keyed by kind, in a stable order.

    Kinds that need an image search are left out when none is supplied.
    """
    factories = {
        K.DIRECTION: DirectionClue,
        K.ANAGRAM: AnagramClue,
        K.COUNTRY_EMOJI: CountryEmojiClue,
        K.CITY_EMOJI: CityEmojiClue,
        K.FLAG: FlagClue,
        K.POPULATION: PopulationClue,
        K.GEOGRAPHY: GeographyClue,
        K.CLIMATE: ClimateClue,
        K.GREETING: GreetingClue,
        K.WEIRD_FACTS: WeirdFactsClue,
        K.FAMILY: FamilyClue,
        K.FAMILY_IMAGE: lambda: FamilyImageClue(family_image_base, home_city, festive_dates),
        K.LANDMARK_IMAGE: lambda: LandmarkImageClue(image_search),
        K.ART_IMAGE: lambda: ArtImageClue(image_search),
        K.CUISINE_IMAGE: lambda: CuisineImageClue(image_search),
        K.FESTIVE_FACTS: FestiveFactsClue,
        K.FESTIVE_IMAGE: lambda: FestiveImageClue(image_search),
    }

    registry: Dict[ClueKind, ClueGenerator] = {}
    for kind in kinds_for_difficulty(difficulty, festive=festive):
        if kind in IMAGE_SEARCH_KINDS and image_search is None:
            continue
        registry[kind] = factories[kind]()
    return registry
