from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Set

from wherex.bus import TraceBus
from wherex.clues.base import ClueGenerator
from wherex.errors import IncompletePuzzleError
from wherex.geo import city_distance_km
from wherex.models import City, Clue, ClueContext, ClueKind, Difficulty, Location, ReferenceData, Role

logger = logging.getLogger(__name__)

RED_HERRING_CANDIDATE_STOPS = [0, 1, 2, 3]
RED_HERRING_STOP_COUNT = 2
FAR_DECOY_POOL = 20
NEAR_DECOY_WINDOW = 19

RED_HERRING_ROLES = [Role.CURRENT, Role.FINAL, Role.RED_HERRING, Role.HINT]
PLAIN_ROLES = [Role.CURRENT, Role.CURRENT, Role.FINAL, Role.HINT]


@dataclass
class ClueOrchestrator:
    """Assigns clues to every stop of a route.

    Stops must be processed in order: the set of kinds already used for
    final-destination clues is shared across the whole puzzle.
    """

    rng: random.Random
    difficulty: Difficulty
    registry: Dict[ClueKind, ClueGenerator]
    city_pool: Sequence[City]
    reference: ReferenceData
    puzzle_date: date
    is_festive: bool = False
    route_length: int = 5
    bus: Optional[TraceBus] = None
    used_final_kinds: Set[ClueKind] = field(default_factory=set)

    def __post_init__(self) -> None:
        stops = list(RED_HERRING_CANDIDATE_STOPS)
        self.rng.shuffle(stops)
        self.red_herring_stops: Set[int] = set(stops[:RED_HERRING_STOP_COUNT])

    def roles_for_stop(self, stop_index: int) -> List[Role]:
        if stop_index >= self.route_length - 1:
            return [Role.FINAL]
        flagged = stop_index in self.red_herring_stops
        if stop_index == 0:
            # The start city is revealed, so stop 0 carries a single clue.
            return [Role.RED_HERRING] if flagged else [Role.FINAL]
        return list(RED_HERRING_ROLES if flagged else PLAIN_ROLES)

    def available_kinds(
        self,
        city: City,
        previous_city: Optional[City],
        final_city: City,
        stop_index: int,
    ) -> List[ClueKind]:
        ctx = self._context(stop_index, Role.CURRENT, 0, city, previous_city, final_city)
        return [kind for kind, generator in self.registry.items() if generator.can_generate(ctx)]

    def generate_clues_for_stop(
        self,
        stop_index: int,
        city: City,
        previous_city: Optional[City],
        final_city: City,
    ) -> List[Clue]:
        roles = self.roles_for_stop(stop_index)
        available = self.available_kinds(city, previous_city, final_city, stop_index)
        order = list(available)
        self.rng.shuffle(order)
        self._trace(
            "stop.started",
            {
                "stop": stop_index,
                "city": city.name,
                "roles": [role.value for role in roles],
                "available": [kind.value for kind in order],
            },
        )

        used_in_stop: Set[ClueKind] = set()
        clues: List[Clue] = []
        for slot, role in enumerate(roles):
            decoy = None
            if role is Role.RED_HERRING:
                decoy = self.select_red_herring_city(final_city, stop_index, city)
                if decoy is None:
                    raise IncompletePuzzleError(stop_index, role.value, city.name)
            ctx = self._context(stop_index, role, slot, city, previous_city, final_city, decoy)
            clue = self._fill_slot(ctx, order, pointer=slot, used_in_stop=used_in_stop)
            if clue is None:
                raise IncompletePuzzleError(stop_index, role.value, city.name)
            used_in_stop.add(clue.kind)
            if role is Role.FINAL:
                self.used_final_kinds.add(clue.kind)
            clues.append(clue)

        if len(clues) == 4:
            shown = clues[:3]
            self.rng.shuffle(shown)
            clues = shown + clues[3:]

        self._trace(
            "stop.finished",
            {"stop": stop_index, "city": city.name, "kinds": [clue.kind.value for clue in clues]},
        )
        return clues

    def _fill_slot(
        self,
        ctx: ClueContext,
        order: List[ClueKind],
        pointer: int,
        used_in_stop: Set[ClueKind],
    ) -> Optional[Clue]:
        is_final = ctx.role is Role.FINAL
        attempted: Set[ClueKind] = set()

        def allowed(kind: ClueKind) -> bool:
            if kind in used_in_stop or kind in attempted:
                return False
            return not (is_final and kind in self.used_final_kinds)

        priority = sorted(
            (kind for kind in order if self.registry[kind].priority > 0),
            key=lambda kind: -self.registry[kind].priority,
        )
        rotated = [order[(pointer + offset) % len(order)] for offset in range(len(order))] if order else []

        for kind in priority + rotated:
            if not allowed(kind):
                continue
            attempted.add(kind)
            clue = self._attempt(kind, ctx)
            if clue is not None:
                return clue

        remaining = [kind for kind in rotated if kind not in used_in_stop and kind not in attempted]
        if remaining:
            logger.warning(
                "Stop %d (%s): no fresh kind for %s clue, reusing a final-destination kind",
                ctx.stop_index,
                ctx.target_city.name,
                ctx.role.value,
            )
            self._trace(
                "slot.fallback",
                {"stop": ctx.stop_index, "role": ctx.role.value, "candidates": [kind.value for kind in remaining]},
            )
        for kind in remaining:
            attempted.add(kind)
            clue = self._attempt(kind, ctx)
            if clue is not None:
                return clue
        return None

    def _attempt(self, kind: ClueKind, ctx: ClueContext) -> Optional[Clue]:
        self._trace(
            "clue.attempted",
            {"stop": ctx.stop_index, "slot": ctx.slot, "role": ctx.role.value, "kind": kind.value, "subject": ctx.subject.name},
        )
        clue = self.registry[kind].generate(ctx)
        if clue is None:
            self._trace("clue.failed", {"stop": ctx.stop_index, "slot": ctx.slot, "kind": kind.value})
            return None
        self._trace(
            "clue.generated",
            {"stop": ctx.stop_index, "slot": ctx.slot, "role": ctx.role.value, "kind": kind.value, "id": clue.id},
        )
        return clue

    def select_red_herring_city(
        self,
        final_city: City,
        stop_index: int,
        current_city: Optional[City] = None,
    ) -> Optional[City]:
        """Pick a decoy: far-fetched early in the route, a near miss later on."""
        excluded = {final_city.key}
        if current_city is not None:
            excluded.add(current_city.key)
        candidates = [city for city in self.city_pool if city.key not in excluded]
        if not candidates:
            return None
        candidates.sort(key=lambda city: city_distance_km(city, final_city))

        if stop_index == 0:
            window = candidates[-FAR_DECOY_POOL:]
        else:
            span = min(NEAR_DECOY_WINDOW, len(self.city_pool) - 1)
            size = int(math.floor(span * (1 - stop_index / 4)))
            window = candidates[: max(1, min(size, len(candidates)))]
        return self.rng.choice(window)

    def generate_hint_clue(self, location: Location, previous_city: Optional[City], final_city: City) -> Optional[Clue]:
        used = {clue.kind for clue in location.clues}
        options = [
            kind
            for kind in self.available_kinds(location.city, previous_city, final_city, location.id)
            if kind not in used
        ]
        if not options:
            return None
        self.rng.shuffle(options)
        ctx = self._context(location.id, Role.HINT, len(location.clues), location.city, previous_city, final_city)
        for kind in options:
            clue = self._attempt(kind, ctx)
            if clue is not None:
                self._trace("hint.generated", {"stop": location.id, "kind": kind.value})
                return clue
        return None

    def _context(
        self,
        stop_index: int,
        role: Role,
        slot: int,
        city: City,
        previous_city: Optional[City],
        final_city: City,
        red_herring_city: Optional[City] = None,
    ) -> ClueContext:
        return ClueContext(
            target_city=final_city if role is Role.FINAL else city,
            previous_city=previous_city,
            final_city=final_city,
            stop_index=stop_index,
            difficulty=self.difficulty,
            rng=self.rng,
            reference=self.reference,
            puzzle_date=self.puzzle_date,
            is_festive=self.is_festive,
            is_red_herring=role is Role.RED_HERRING,
            red_herring_city=red_herring_city,
            role=role,
            slot=slot,
        )

    def _trace(self, event_type: str, payload: dict) -> None:
        if self.bus is not None:
            self.bus.emit(event_type, payload, source="distribution")
