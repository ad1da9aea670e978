from __future__ import annotations

from typing import Optional

from wherex.clues.base import ClueGenerator
from wherex.geo import COMPASS_8, COMPASS_16, bearing_degrees, compass_point
from wherex.models import Clue, ClueContext, ClueKind, Difficulty


def describe_bearing(bearing: float, difficulty: Difficulty) -> str:
    level = difficulty.effective
    if level is Difficulty.EASY:
        return f"{int(round(bearing)) % 360}°"
    if level is Difficulty.MEDIUM:
        return compass_point(bearing, COMPASS_16)
    return compass_point(bearing, COMPASS_8)


class DirectionClue(ClueGenerator):
    """Compass bearing from the previous stop. Precision drops with difficulty."""

    kind = ClueKind.DIRECTION

    def can_generate(self, ctx: ClueContext) -> bool:
        previous = ctx.previous_city
        return previous is not None and previous.key != ctx.subject.key

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        previous = ctx.previous_city
        subject = ctx.subject
        bearing = bearing_degrees(previous.lat, previous.lng, subject.lat, subject.lng)
        label = describe_bearing(bearing, ctx.difficulty)
        return self.make_clue(
            ctx,
            f"{label} of {previous.name}",
            bearing=round(bearing, 1),
            label=label,
            from_city=previous.name,
        )
