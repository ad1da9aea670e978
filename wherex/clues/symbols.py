from __future__ import annotations

from typing import List, Optional, Tuple

from wherex.clues.base import ClueGenerator
from wherex.models import Clue, ClueContext, ClueKind, Difficulty

FLAG_ORDER = {"country": 0, "region": 1, "city": 2}


class CountryEmojiClue(ClueGenerator):
    kind = ClueKind.COUNTRY_EMOJI

    def can_generate(self, ctx: ClueContext) -> bool:
        country = self.country_of(ctx)
        return country is not None and len(country.emojis) >= 3

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        picked = ctx.rng.sample(list(self.country_of(ctx).emojis), 3)
        return self.make_clue(ctx, " ".join(picked), emojis=picked)


class CityEmojiClue(ClueGenerator):
    """Two country emojis plus two city emojis."""

    kind = ClueKind.CITY_EMOJI

    def can_generate(self, ctx: ClueContext) -> bool:
        country = self.country_of(ctx)
        if country is None or len(country.emojis) < 2:
            return False
        return len(ctx.subject.details.city_emojis) >= 2

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        country_picks = ctx.rng.sample(list(self.country_of(ctx).emojis), 2)
        city_picks = ctx.rng.sample(list(ctx.subject.details.city_emojis), 2)
        return self.make_clue(
            ctx,
            " ".join(country_picks + city_picks),
            country_emojis=country_picks,
            city_emojis=city_picks,
        )


class FlagClue(ClueGenerator):
    """Two of the country, region and city flags.

    EASY always shows the country flag, HARD never does unless there is
    nothing else to show.
    """

    kind = ClueKind.FLAG

    def _flags(self, ctx: ClueContext) -> List[Tuple[str, str]]:
        flags: List[Tuple[str, str]] = []
        country = self.country_of(ctx)
        if country is not None and country.flag:
            flags.append(("country", country.flag))
        details = ctx.subject.details
        if details.region_flag:
            flags.append(("region", details.region_flag))
        if details.city_flag:
            flags.append(("city", details.city_flag))
        return flags

    def can_generate(self, ctx: ClueContext) -> bool:
        return len(self._flags(ctx)) >= 2

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        flags = self._flags(ctx)
        level = ctx.level
        country_flags = [flag for flag in flags if flag[0] == "country"]
        others = [flag for flag in flags if flag[0] != "country"]

        if level is Difficulty.EASY and country_flags:
            chosen = country_flags + ctx.rng.sample(others, 1)
        elif level is Difficulty.HARD and len(others) >= 2:
            chosen = ctx.rng.sample(others, 2)
        else:
            chosen = ctx.rng.sample(flags, 2)
        chosen.sort(key=lambda flag: FLAG_ORDER[flag[0]])

        return self.make_clue(
            ctx,
            " ".join(flag for _, flag in chosen),
            flags=[{"scope": scope, "flag": flag} for scope, flag in chosen],
        )
