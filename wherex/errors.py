from __future__ import annotations


class ConfigurationError(ValueError):
    """Static game data or configuration is missing or inconsistent."""


class CatalogExhaustedError(ConfigurationError):
    """The city pool ran out of unused cities while building a route."""

    def __init__(self, needed: int, available: int) -> None:
        super().__init__(f"City pool exhausted: need {needed} cities, only {available} available")
        self.needed = needed
        self.available = available


class IncompletePuzzleError(RuntimeError):
    """A clue slot could not be filled by any generator, even on fallback."""

    def __init__(self, stop_index: int, role: str, city_name: str) -> None:
        super().__init__(f"Could not fill {role} clue for stop {stop_index} ({city_name})")
        self.stop_index = stop_index
        self.role = role
        self.city_name = city_name
