from __future__ import annotations

from typing import Any, Optional, Sequence

from wherex.models import City, Clue, ClueContext, ClueKind, CountryInfo, Role


def clue_id(kind: ClueKind, ctx: ClueContext) -> str:
    return f"{kind.value}-{ctx.stop_index}-{ctx.subject.slug}-{ctx.role.value}-{ctx.slot}"


class ClueGenerator:
    """One clue kind.

    ``can_generate`` must not touch the RNG or the network. ``generate``
    re-checks applicability against the context subject (which may be the
    final or a decoy city rather than the stop city) and returns None on a
    soft failure so the caller can move on to another kind.
    """

    kind: ClueKind
    priority: int = 0

    def can_generate(self, ctx: ClueContext) -> bool:
        raise NotImplementedError

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        raise NotImplementedError

    def generate(self, ctx: ClueContext) -> Optional[Clue]:
        if not self.can_generate(ctx):
            return None
        return self.build(ctx)

    def make_clue(
        self,
        ctx: ClueContext,
        text: str,
        image_url: Optional[str] = None,
        image_urls: Sequence[str] = (),
        **payload: Any,
    ) -> Clue:
        return Clue(
            id=clue_id(self.kind, ctx),
            text=text,
            kind=self.kind,
            difficulty=ctx.difficulty,
            is_red_herring=ctx.is_red_herring,
            target_city_name=ctx.subject.name,
            image_url=image_url,
            image_urls=tuple(image_urls),
            payload=payload,
            is_hint=ctx.role is Role.HINT,
        )

    @staticmethod
    def country_of(ctx: ClueContext, city: Optional[City] = None) -> Optional[CountryInfo]:
        subject = city or ctx.subject
        return ctx.reference.country(subject.country)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} priority={self.priority}>"
