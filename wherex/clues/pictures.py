from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence

from wherex.clues.base import ClueGenerator
from wherex.models import Clue, ClueContext, ClueKind

GENERIC_LANDMARKS = {"old town", "medieval town", "historic center", "historic centre", "city center", "city centre", "downtown"}
GENERIC_CUISINE_WORDS = ("local", "traditional", "regional", "specialties", "specialty", "specialities")

XMAS_BUCKET = "xmas"

_WHITESPACE = re.compile(r"\s+")


def family_image_key(city_name: str) -> str:
    return _WHITESPACE.sub("", city_name.lower())


def distinctive_landmarks(landmarks: Sequence[str]) -> List[str]:
    return [name for name in landmarks if name.strip().lower() not in GENERIC_LANDMARKS]


def specific_dishes(cuisine: Sequence[str]) -> List[str]:
    return [dish for dish in cuisine if not any(word in dish.lower() for word in GENERIC_CUISINE_WORDS)]


class FamilyImageClue(ClueGenerator):
    """Photo from the family album, served from a static directory.

    On festive dates the xmas bucket is preferred. The home city shows a
    fixed photo per festive date so each festive puzzle gets a different one.
    """

    kind = ClueKind.FAMILY_IMAGE
    priority = 10

    def __init__(self, base_url: str = "data/familyImages", home_city: Optional[str] = None, festive_dates: Sequence[str] = ()) -> None:
        self.base_url = base_url.rstrip("/")
        self.home_city = home_city
        self.festive_dates = sorted(festive_dates)

    def _bucket(self, ctx: ClueContext) -> Optional[tuple]:
        entry = ctx.reference.family_images.get(family_image_key(ctx.subject.name), {})
        if ctx.is_festive and entry.get(XMAS_BUCKET):
            return XMAS_BUCKET, entry[XMAS_BUCKET]
        bucket = ctx.level.value.lower()
        if entry.get(bucket):
            return bucket, entry[bucket]
        return None

    def can_generate(self, ctx: ClueContext) -> bool:
        return self._bucket(ctx) is not None

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        bucket, indices = self._bucket(ctx)
        is_home = self.home_city is not None and ctx.subject.name == self.home_city
        if ctx.is_festive and is_home and bucket == XMAS_BUCKET:
            day = ctx.puzzle_date.isoformat()
            rank = self.festive_dates.index(day) if day in self.festive_dates else 0
            index = indices[rank % len(indices)]
        else:
            index = ctx.rng.choice(indices)
        url = f"{self.base_url}/{family_image_key(ctx.subject.name)}-{bucket}{index}.jpg"
        return self.make_clue(ctx, "A family snapshot", image_url=url, bucket=bucket, index=index)


class ImageSearchClue(ClueGenerator):
    """Base for clues backed by an online image search."""

    def __init__(self, search: Any) -> None:
        self.search = search

    def _first_image(self, query: str) -> Optional[str]:
        urls = self.search.search(query, limit=1)
        return urls[0] if urls else None


class LandmarkImageClue(ImageSearchClue):
    """Up to two photos of distinctive landmarks."""

    kind = ClueKind.LANDMARK_IMAGE

    def can_generate(self, ctx: ClueContext) -> bool:
        return bool(distinctive_landmarks(ctx.subject.details.landmarks))

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        city = ctx.subject
        candidates = distinctive_landmarks(city.details.landmarks)
        if len(candidates) >= 2:
            picked = ctx.rng.sample(candidates, 2)
            urls = [url for url in (self._first_image(f"{name} {city.name}") for name in picked) if url]
        else:
            picked = [candidates[0], candidates[0]]
            urls = self.search.search(f"{candidates[0]} {city.name}", limit=2)
        if not urls:
            return None
        return self.make_clue(ctx, "Landmarks", image_url=urls[0], image_urls=urls, landmarks=picked)


class ArtImageClue(ImageSearchClue):
    kind = ClueKind.ART_IMAGE

    def can_generate(self, ctx: ClueContext) -> bool:
        return bool(ctx.subject.details.art)

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        work = ctx.rng.choice(list(ctx.subject.details.art))
        url = self._first_image(work)
        if url is None:
            return None
        return self.make_clue(ctx, "A local work of art", image_url=url, image_urls=[url])


class CuisineImageClue(ImageSearchClue):
    kind = ClueKind.CUISINE_IMAGE

    def can_generate(self, ctx: ClueContext) -> bool:
        return bool(specific_dishes(ctx.subject.details.cuisine))

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        dish = ctx.rng.choice(specific_dishes(ctx.subject.details.cuisine))
        url = self._first_image(f"{dish} food")
        if url is None:
            return None
        return self.make_clue(ctx, "A local dish", image_url=url, image_urls=[url])


class FestiveImageClue(ImageSearchClue):
    kind = ClueKind.FESTIVE_IMAGE
    priority = 20

    def can_generate(self, ctx: ClueContext) -> bool:
        return ctx.is_festive and bool(ctx.subject.details.festive_images)

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        query = ctx.rng.choice(list(ctx.subject.details.festive_images))
        url = self._first_image(query)
        if url is None:
            return None
        return self.make_clue(ctx, "Season's greetings", image_url=url, image_urls=[url])
