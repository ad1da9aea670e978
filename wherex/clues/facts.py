from __future__ import annotations

from typing import Dict, Optional, Tuple

from wherex.clues.base import ClueGenerator
from wherex.models import Clue, ClueContext, ClueKind, Difficulty

CITY_POPULATION_MAX = 15_000_000
COUNTRY_POPULATION_MAX = 150_000_000
RAINFALL_MAX_MM = 800

# Greeting difficulty buckets accepted at each level.
GREETING_BUCKETS: Dict[Difficulty, Tuple[str, ...]] = {
    Difficulty.EASY: ("easy",),
    Difficulty.MEDIUM: ("easy", "medium"),
    Difficulty.HARD: ("medium", "hard"),
}

POSITIONS: Dict[str, Tuple[str, str]] = {
    "central": ("Central", "🎯"),
    "centre": ("Central", "🎯"),
    "center": ("Central", "🎯"),
    "outside": ("Outside", "🚫"),
    "island": ("Island", "🏝️"),
    "n": ("N", "⬆️"),
    "north": ("N", "⬆️"),
    "s": ("S", "⬇️"),
    "south": ("S", "⬇️"),
    "e": ("E", "➡️"),
    "east": ("E", "➡️"),
    "w": ("W", "⬅️"),
    "west": ("W", "⬅️"),
    "ne": ("NE", "↗️"),
    "northeast": ("NE", "↗️"),
    "nw": ("NW", "↖️"),
    "northwest": ("NW", "↖️"),
    "se": ("SE", "↘️"),
    "southeast": ("SE", "↘️"),
    "sw": ("SW", "↙️"),
    "southwest": ("SW", "↙️"),
}


def dot_scale(value: float, maximum: float) -> str:
    intensity = value / maximum if maximum else 0.0
    if intensity >= 0.8:
        return "●●●●●"
    if intensity >= 0.6:
        return "●●●●○"
    if intensity >= 0.4:
        return "●●●○○"
    if intensity >= 0.2:
        return "●●○○○"
    return "●○○○○"


def format_city_population(population: int) -> str:
    if population >= 1_000_000:
        return f"{population / 1_000_000:.1f}M"
    if population >= 1_000:
        return f"{round(population / 1_000)}K"
    return str(population)


def format_country_population(population: int) -> str:
    if population >= 10_000_000:
        return f"{round(population / 10_000_000) * 10}M"
    if population >= 1_000_000:
        return f"{round(population / 1_000_000)}M"
    return "<1M"


def format_elevation(metres: float) -> str:
    if metres >= 1000:
        return f"{metres / 1000:.1f}km"
    return f"{round(metres)}m"


def format_sea_distance(km: float) -> str:
    if km >= 1000:
        return f"{km / 1000:.1f}k km"
    return f"{round(km)}km"


def temperature_icon(temp: float) -> str:
    if temp >= 25:
        return "🔥"
    if temp >= 20:
        return "☀️"
    if temp >= 15:
        return "🌤️"
    if temp >= 10:
        return "🌥️"
    if temp >= 5:
        return "🌨️"
    return "❄️"


def rainfall_icon(rainfall: float) -> str:
    intensity = rainfall / RAINFALL_MAX_MM
    if intensity >= 0.8:
        return "⛈️"
    if intensity >= 0.6:
        return "🌧️"
    if intensity >= 0.4:
        return "🌦️"
    if intensity >= 0.2:
        return "🌤️"
    return "☀️"


class PopulationClue(ClueGenerator):
    """Quantised city and country population. Missing data reads as zero."""

    kind = ClueKind.POPULATION

    def can_generate(self, ctx: ClueContext) -> bool:
        return True

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        city_pop = ctx.subject.details.population or 0
        country = self.country_of(ctx)
        country_pop = country.population if country is not None else 0
        city_dots = dot_scale(city_pop, CITY_POPULATION_MAX)
        country_dots = dot_scale(country_pop, COUNTRY_POPULATION_MAX)
        city_label = format_city_population(city_pop)
        country_label = format_country_population(country_pop)
        return self.make_clue(
            ctx,
            f"City {city_dots} {city_label} · Country {country_dots} {country_label}",
            city={"dots": city_dots, "label": city_label},
            country={"dots": country_dots, "label": country_label},
        )


class GeographyClue(ClueGenerator):
    kind = ClueKind.GEOGRAPHY

    def can_generate(self, ctx: ClueContext) -> bool:
        geography = ctx.subject.details.geography
        return geography is not None and bool(geography.position_in_country)

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        geography = ctx.subject.details.geography
        raw_position = geography.position_in_country
        position, icon = POSITIONS.get(raw_position.strip().lower(), (raw_position, "📍"))
        elevation = format_elevation(geography.elevation)
        sea = format_sea_distance(geography.distance_to_sea)
        return self.make_clue(
            ctx,
            f"⛰️ {elevation} · 🌊 {sea} · {icon} {position}",
            elevation=elevation,
            distance_to_sea=sea,
            position=position,
            position_icon=icon,
        )


class ClimateClue(ClueGenerator):
    """June and December temperature and rainfall."""

    kind = ClueKind.CLIMATE

    def can_generate(self, ctx: ClueContext) -> bool:
        return ctx.subject.details.climate is not None

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        climate = ctx.subject.details.climate
        months = {
            "june": (climate.june_temp, climate.june_rainfall),
            "december": (climate.dec_temp, climate.dec_rainfall),
        }
        payload = {}
        parts = []
        for month, (temp, rain) in months.items():
            temp = round(temp, 1)
            rain = int(round(rain))
            payload[month] = {
                "temp": temp,
                "temp_icon": temperature_icon(temp),
                "rainfall": rain,
                "rain_icon": rainfall_icon(rain),
                "rain_scale": dot_scale(rain, RAINFALL_MAX_MM),
            }
            parts.append(f"{month[:3].title()} {temperature_icon(temp)} {temp}°C {rainfall_icon(rain)} {rain}mm")
        return self.make_clue(ctx, " · ".join(parts), **payload)


class GreetingClue(ClueGenerator):
    """Two local phrases, limited to languages suited to the difficulty."""

    kind = ClueKind.GREETING

    def can_generate(self, ctx: ClueContext) -> bool:
        country = self.country_of(ctx)
        if country is None or country.greeting is None:
            return False
        return country.greeting.difficulty in GREETING_BUCKETS[ctx.level]

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        greeting = self.country_of(ctx).greeting
        phrases = [
            ("hello", greeting.hello),
            ("welcome", greeting.welcome),
            ("thank_you", greeting.thank_you),
        ]
        picked = ctx.rng.sample(phrases, 2)
        return self.make_clue(ctx, " / ".join(text for _, text in picked), phrases=dict(picked))


class WeirdFactsClue(ClueGenerator):
    kind = ClueKind.WEIRD_FACTS

    def can_generate(self, ctx: ClueContext) -> bool:
        return len(ctx.subject.details.weird_facts) >= 2

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        facts = ctx.rng.sample(list(ctx.subject.details.weird_facts), 2)
        return self.make_clue(ctx, " • ".join(facts), facts=facts)


class FamilyClue(ClueGenerator):
    kind = ClueKind.FAMILY

    def can_generate(self, ctx: ClueContext) -> bool:
        return bool(ctx.subject.details.family_clue)

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        return self.make_clue(ctx, ctx.subject.details.family_clue)


class FestiveFactsClue(ClueGenerator):
    kind = ClueKind.FESTIVE_FACTS
    priority = 20

    def can_generate(self, ctx: ClueContext) -> bool:
        return ctx.is_festive and bool(ctx.subject.details.festive_facts)

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        fact = ctx.rng.choice(list(ctx.subject.details.festive_facts))
        return self.make_clue(ctx, fact)
