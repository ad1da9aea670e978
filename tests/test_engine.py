"""
Tests for the puzzle engine: generation, guesses, hints and scoring.
"""
from datetime import date

import pytest

from wherex.bus import TraceBus
from wherex.engine import STATE_GENERATED, STATE_INITIALIZED, PuzzleEngine, max_score, stop_points
from wherex.models import ClueKind, Difficulty, Location


@pytest.fixture
def make_engine(catalog, config):
    """Factory for engines over the bundled data."""
    def _make(seed="2024-05-01", difficulty=Difficulty.MEDIUM, **kwargs):
        return PuzzleEngine(seed=seed, difficulty=difficulty, config=config, catalog=catalog, **kwargs)
    return _make


def _route(engine):
    return [loc.city.name for loc in engine.generate_puzzle()]


def test_known_seed_layout(make_engine):
    """Test the clue layout for a fixed seed."""
    engine = make_engine(seed="test-seed-123", difficulty=Difficulty.MEDIUM)
    locations = engine.generate_puzzle()
    assert [len(loc.clues) for loc in locations] == [1, 4, 4, 4, 1]
    assert len(engine.orchestrator.red_herring_stops) == 2
    assert engine.full_seed == "test-seed-1232000"
    assert engine.state == STATE_GENERATED


def test_generation_is_deterministic(make_engine):
    """Test two engines with the same seed agree on every clue."""
    first = make_engine().generate_puzzle()
    second = make_engine().generate_puzzle()
    assert [loc.city.key for loc in first] == [loc.city.key for loc in second]
    assert [[c.id for c in loc.clues] for loc in first] == [[c.id for c in loc.clues] for loc in second]
    assert [[c.text for c in loc.clues] for loc in first] == [[c.text for c in loc.clues] for loc in second]


def test_difficulties_use_separate_seeds(make_engine):
    """Test each difficulty seeds its own stream."""
    seeds = {make_engine(difficulty=level).full_seed for level in ("EASY", "MEDIUM", "HARD")}
    assert seeds == {"2024-05-011000", "2024-05-012000", "2024-05-013000"}


def test_generate_is_idempotent(make_engine):
    """Test the puzzle is generated once and then cached."""
    engine = make_engine()
    engine.initialize()
    assert engine.state == STATE_INITIALIZED
    engine.initialize()
    first = engine.generate_puzzle()
    assert engine.generate_puzzle() is first


def test_difficulty_parsing(make_engine):
    """Test difficulty names are case-insensitive and validated."""
    assert make_engine(difficulty="hard").difficulty is Difficulty.HARD
    with pytest.raises(ValueError, match="Unknown difficulty"):
        make_engine(difficulty="impossible")


def test_non_date_seed_uses_today(make_engine):
    """Test arbitrary seeds are accepted and dated today."""
    engine = make_engine(seed="test-seed-123")
    assert engine.puzzle_date == date.today()
    assert not engine.is_festive


def test_hidden_city_never_routed(make_engine):
    """Test the hidden home city does not appear on ordinary days."""
    for day in ("2024-05-01", "2024-05-02", "2024-05-03", "2024-05-04"):
        assert "Dully" not in _route(make_engine(seed=day))


def test_uninitialized_queries(make_engine, catalog):
    """Test guess helpers refuse to answer before initialization."""
    engine = make_engine()
    geneva = catalog.find("Geneva", "Switzerland")
    assert engine.find_closest_city(geneva.lat, geneva.lng) is None
    assert engine.check_guess(Location(id=1, city=geneva), geneva.lat, geneva.lng) is False
    engine.initialize()
    assert engine.find_closest_city(geneva.lat, geneva.lng) == geneva


def test_check_guess_requires_strictly_closest(make_engine, catalog):
    """Test a guess counts only when the target is the unique nearest city."""
    engine = make_engine()
    engine.initialize()
    lausanne = catalog.find("Lausanne", "Switzerland")
    geneva = catalog.find("Geneva", "Switzerland")
    target = Location(id=2, city=lausanne)
    assert engine.check_guess(target, lausanne.lat, lausanne.lng)
    assert engine.check_guess(target, lausanne.lat + 0.05, lausanne.lng + 0.05)
    assert not engine.check_guess(target, geneva.lat, geneva.lng)
    assert not engine.check_guess(target, 0.0, 0.0)


def test_closest_city_round_trip(make_engine):
    """Test every guessable city is its own closest city."""
    engine = make_engine()
    engine.initialize()
    for city in engine.guessable:
        assert engine.find_closest_city(city.lat, city.lng) == city
    assert engine.find_closest_city(0.0, 0.0) is None


def test_festive_fixed_route(make_engine):
    """Test a festive date uses its curated route whatever the difficulty."""
    engine = make_engine(seed="2025-12-03", difficulty=Difficulty.EASY)
    assert engine.is_festive
    assert engine.difficulty is Difficulty.FESTIVE
    assert engine.full_seed == "2025-12-033000"
    assert _route(engine) == ["Dully", "Geneva", "Nice", "Rome", "Bari"]
    geneva_clues = engine.locations[1].clues
    assert any(
        clue.kind is ClueKind.FESTIVE_FACTS and clue.target_city_name == "Geneva" for clue in geneva_clues
    )


def test_festive_start_and_final(make_engine):
    """Test a festive date with only the endpoints fixed."""
    route = _route(make_engine(seed="2025-12-24"))
    assert route[0] == "Dully"
    assert route[-1] == "Strasbourg"
    assert len(set(route)) == 5


def test_festive_hidden_city_is_guessable(make_engine, catalog):
    """Test a hidden festive city can be guessed on its festive date only."""
    rovaniemi = catalog.find("Rovaniemi", "Finland")
    festive = make_engine(seed="2025-12-20")
    festive.initialize()
    assert festive.find_closest_city(rovaniemi.lat, rovaniemi.lng) == rovaniemi

    ordinary = make_engine(seed="2025-12-19")
    ordinary.initialize()
    assert ordinary.find_closest_city(rovaniemi.lat, rovaniemi.lng) is None


def test_stop_points_and_max_score():
    """Test per-stop points and maxima per difficulty."""
    assert [stop_points(Difficulty.EASY, i, 4) for i in range(5)] == [0, 1, 2, 3, 5]
    assert [stop_points(Difficulty.MEDIUM, i, 4) for i in range(5)] == [0, 2, 3, 4, 8]
    assert [stop_points(Difficulty.HARD, i, 4) for i in range(5)] == [0, 2, 4, 6, 10]
    assert max_score(Difficulty.EASY) == 11
    assert max_score(Difficulty.MEDIUM) == 17
    assert max_score(Difficulty.HARD) == 22
    assert max_score(Difficulty.FESTIVE) == 22


def test_calculate_score(make_engine):
    """Test scoring counts correct stops and subtracts hint penalties."""
    engine = make_engine()
    locations = engine.generate_puzzle()
    assert engine.calculate_score() == 0
    for loc in locations:
        loc.is_correct = True
    assert engine.calculate_score() == engine.max_score() == 17
    assert engine.calculate_score(hints_used=2) == 15

    hard = make_engine(difficulty=Difficulty.HARD)
    for loc in hard.generate_puzzle():
        loc.is_correct = True
    assert hard.calculate_score(hints_used=2) == 18


def test_calculate_score_subset_keeps_final_stop_points(make_engine):
    """Test a subset of locations still scores the final stop by its route position."""
    engine = make_engine(difficulty=Difficulty.HARD)
    locs = engine.generate_puzzle()
    locs[4].is_correct = True
    assert engine.calculate_score([locs[0], locs[4]]) == 10
    assert engine.calculate_score() == 10


def test_score_never_negative(make_engine):
    """Test hint penalties cannot push the score below zero."""
    engine = make_engine()
    engine.generate_puzzle()
    assert engine.calculate_score(hints_used=5) == 0
    assert engine.calculate_score(locations=[]) == 0


def test_submit_guess(make_engine):
    """Test submitting guesses updates the location."""
    bus = TraceBus()
    engine = make_engine(bus=bus)
    target = engine.location(1).city

    wrong = engine.submit_guess(1, 0.0, 0.0)
    assert wrong.is_guessed
    assert wrong.is_correct is False
    assert wrong.closest_city is None

    right = engine.submit_guess(1, target.lat, target.lng)
    assert right.is_correct
    assert right.closest_city == target
    assert [e["payload"]["correct"] for e in bus.iter_events("guess.checked")] == [False, True]

    with pytest.raises(ValueError, match="Stop not found"):
        engine.submit_guess(9, 0.0, 0.0)


def test_first_stop_is_pre_solved(make_engine):
    """Test the start city is revealed from the outset."""
    start = make_engine().generate_puzzle()[0]
    assert start.is_guessed and start.is_correct
    assert start.closest_city == start.city


def test_hint_clue(make_engine):
    """Test hint clues describe the stop city with an unused kind."""
    engine = make_engine()
    location = engine.location(2)
    hint = engine.generate_hint_clue(2)
    assert hint is not None
    assert hint.is_hint
    assert hint.target_city_name == location.city.name
    assert hint.kind not in {clue.kind for clue in location.clues}
    with pytest.raises(ValueError):
        engine.generate_hint_clue(7)


def test_to_dict_hides_answers(make_engine):
    """Test unsolved stops hide their city and the reserved hint."""
    engine = make_engine()
    data = engine.to_dict()
    assert data["difficulty"] == "MEDIUM"
    assert data["maxScore"] == 17
    assert data["locations"][0]["city"]["name"] == engine.locations[0].city.name
    assert data["locations"][1]["city"] is None
    assert len(data["locations"][1]["clues"]) == 3

    revealed = engine.to_dict(include_hints=True, reveal=True)
    assert revealed["locations"][1]["city"]["name"] == engine.locations[1].city.name
    assert len(revealed["locations"][1]["clues"]) == 4


def test_generation_trace(make_engine, tmp_path):
    """Test generation events are recorded and mirrored to disk."""
    bus = TraceBus(tmp_path / "trace" / "events.jsonl")
    make_engine(bus=bus).generate_puzzle()
    types = [event["type"] for event in bus.iter_events()]
    assert types[0] == "puzzle.generating"
    assert types[-1] == "puzzle.generated"
    assert "route.selected" in types
    assert types.count("stop.started") == 5
    assert len(bus.read_file()) == len(types)
    assert all(event["event_id"].startswith("EVT-") for event in bus.read_file())
