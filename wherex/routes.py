from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from wherex.bus import TraceBus
from wherex.catalog import CityCatalog
from wherex.config import CityRef, FestivePuzzle
from wherex.errors import CatalogExhaustedError, ConfigurationError
from wherex.geo import city_distance_km
from wherex.models import City, PortConnection

logger = logging.getLogger(__name__)


@dataclass
class RouteSelector:
    """Builds a chain of cities where each hop stays within a distance bound."""

    port_connections: Sequence[PortConnection] = ()
    max_hop_km: float = 500.0
    bus: Optional[TraceBus] = None

    def select_route(self, rng: random.Random, pool: Sequence[City], count: int = 5) -> List[City]:
        if len(pool) < count:
            raise CatalogExhaustedError(count, len(pool))

        shuffled = list(pool)
        rng.shuffle(shuffled)
        route = [shuffled[0]]
        used: Set[Tuple[str, str]] = {shuffled[0].key}
        while len(route) < count:
            nxt = self._next_stop(rng, route[-1], shuffled, used, needed=count)
            route.append(nxt)
            used.add(nxt.key)

        self._trace("route.selected", {"cities": [city.name for city in route], "festive": False})
        return route

    def select_festive_route(
        self,
        rng: random.Random,
        festive: FestivePuzzle,
        catalog: CityCatalog,
        pool: Sequence[City],
        count: int = 5,
    ) -> List[City]:
        if festive.route:
            if len(festive.route) != count:
                raise ConfigurationError(
                    f"Festive route for {festive.date} has {len(festive.route)} cities, expected {count}"
                )
            route = [self._resolve(catalog, ref, festive.date) for ref in festive.route]
            self._trace(
                "route.selected",
                {"cities": [city.name for city in route], "festive": True, "fixed": True, "date": festive.date},
            )
            return route

        final = self._resolve(catalog, festive.final_city, festive.date)
        shuffled = [city for city in pool if city.key != final.key]
        rng.shuffle(shuffled)
        if festive.start_city is not None:
            start = self._resolve(catalog, festive.start_city, festive.date)
        elif shuffled:
            start = shuffled[0]
        else:
            raise CatalogExhaustedError(count, len(pool))

        route = [start]
        used: Set[Tuple[str, str]] = {start.key, final.key}
        while len(route) < count - 1:
            anchor = final if len(route) == count - 2 else None
            nxt = self._next_stop(rng, route[-1], shuffled, used, needed=count, anchor=anchor)
            route.append(nxt)
            used.add(nxt.key)
        route.append(final)

        self._trace(
            "route.selected",
            {"cities": [city.name for city in route], "festive": True, "fixed": False, "date": festive.date},
        )
        return route

    def _next_stop(
        self,
        rng: random.Random,
        current: City,
        pool: Sequence[City],
        used: Set[Tuple[str, str]],
        needed: int,
        anchor: Optional[City] = None,
    ) -> City:
        unused = [city for city in pool if city.key not in used]
        if not unused:
            raise CatalogExhaustedError(needed, len(used))

        candidates = [city for city in unused if self._reachable(current, city)]
        if anchor is not None:
            candidates = [city for city in candidates if city_distance_km(city, anchor) <= self.max_hop_km]
        if candidates:
            return rng.choice(candidates)

        if anchor is None:
            fallback = min(unused, key=lambda city: city_distance_km(current, city))
            hop = city_distance_km(current, fallback)
        else:
            fallback = min(
                unused,
                key=lambda city: max(city_distance_km(current, city), city_distance_km(city, anchor)),
            )
            hop = max(city_distance_km(current, fallback), city_distance_km(fallback, anchor))

        logger.info("Route dead end at %s; falling back to closest city %s (%.0f km)", current.name, fallback.name, hop)
        self._trace("route.dead_end", {"from": current.name, "to": fallback.name, "distance_km": round(hop, 1)})
        return fallback

    def _reachable(self, current: City, city: City) -> bool:
        distance = city_distance_km(current, city)
        if distance <= self.max_hop_km:
            return True
        return any(
            port.from_city == current.name and port.to_city == city.name and distance <= port.max_distance_km
            for port in self.port_connections
        )

    @staticmethod
    def _resolve(catalog: CityCatalog, ref: CityRef, puzzle_date: str) -> City:
        city = catalog.get(*ref)
        if city is None:
            raise ConfigurationError(f"Festive puzzle {puzzle_date} references unknown city: {ref[0]} ({ref[1]})")
        return city

    def _trace(self, event_type: str, payload: dict) -> None:
        if self.bus is not None:
            self.bus.emit(event_type, payload, source="routes")
