"""
Tests for the command line interface.
"""
import json

import pytest

from wherex.cli import build_parser, main


def _run(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


def test_generate_hides_answers(capsys):
    """Test generate prints a puzzle without unsolved cities."""
    data = _run(capsys, "generate", "--seed", "2024-05-01", "--difficulty", "easy")
    assert data["difficulty"] == "EASY"
    assert len(data["locations"]) == 5
    assert data["locations"][2]["city"] is None


def test_generate_reveal(capsys):
    """Test --reveal includes city names and reserved hints."""
    data = _run(capsys, "generate", "--seed", "2024-05-01", "--reveal")
    assert all(location["city"] for location in data["locations"])
    assert [len(location["clues"]) for location in data["locations"]] == [1, 4, 4, 4, 1]


def test_route_matches_generate(capsys):
    """Test route and revealed puzzle agree."""
    route = _run(capsys, "route", "--seed", "2024-05-01", "--difficulty", "HARD")
    puzzle = _run(capsys, "generate", "--seed", "2024-05-01", "--difficulty", "HARD", "--reveal")
    assert route["seed"] == "2024-05-013000"
    assert [city["name"] for city in route["route"]] == [loc["city"]["name"] for loc in puzzle["locations"]]
    assert len(route["redHerringStops"]) == 2


def test_closest(capsys):
    """Test closest city lookup from the command line."""
    assert _run(capsys, "closest", "--lat", "48.86", "--lng", "2.35", "--date", "2024-05-01")["city"]["name"] == "Paris"
    assert _run(capsys, "closest", "--lat", "0", "--lng", "0", "--date", "2024-05-01")["city"] is None


def test_max_score(capsys):
    """Test maximum scores per difficulty."""
    assert _run(capsys, "max-score") == {"EASY": 11, "MEDIUM": 17, "HARD": 22}
    assert _run(capsys, "max-score", "--difficulty", "hard") == {"HARD": 22}


def test_festive_dates(capsys):
    """Test festive date listing."""
    dates = _run(capsys, "festive-dates")
    assert "2025-12-24" in dates


def test_trace_file(capsys, tmp_path):
    """Test --trace writes generation events as JSON lines."""
    trace = tmp_path / "events.jsonl"
    main(["--trace", str(trace), "route", "--seed", "2024-05-01"])
    capsys.readouterr()
    lines = trace.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["type"] == "puzzle.generating"
    assert json.loads(lines[-1])["type"] == "puzzle.generated"


def test_parser_rejects_unknown_difficulty():
    """Test argparse validates difficulty names."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["generate", "--difficulty", "FESTIVE"])
