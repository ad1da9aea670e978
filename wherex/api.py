"""Backend API for the daily route-guessing puzzle."""
from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS

from wherex.bus import TraceBus
from wherex.catalog import CityCatalog
from wherex.config import GameConfig
from wherex.engine import PuzzleEngine, parse_puzzle_date
from wherex.errors import ConfigurationError, IncompletePuzzleError
from wherex.images import WikimediaImageSearch
from wherex.models import Difficulty, Location

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# In-memory game state (will reset on server restart)
game_state = {
    "engines": {},
    "hints_used": {},
    "revealed_hints": {},
}

_shared = {
    "config": None,
    "catalog": None,
    "bus": None,
    "image_search": None,
}


def reset_game():
    """Drop all generated puzzles and gameplay progress."""
    global game_state
    game_state = {
        "engines": {},
        "hints_used": {},
        "revealed_hints": {},
    }


def reset_resources():
    """Forget loaded config and catalog so environment changes take effect."""
    for key in _shared:
        _shared[key] = None


def _config() -> GameConfig:
    if _shared["config"] is None:
        path = os.getenv("WHEREX_CONFIG")
        _shared["config"] = GameConfig.load(Path(path)) if path else GameConfig.default()
    return _shared["config"]


def _catalog() -> CityCatalog:
    if _shared["catalog"] is None:
        data_dir = os.getenv("WHEREX_DATA_DIR")
        _shared["catalog"] = CityCatalog.load(Path(data_dir) if data_dir else None)
    return _shared["catalog"]


def _bus() -> Optional[TraceBus]:
    if _shared["bus"] is None:
        trace_path = os.getenv("WHEREX_TRACE_PATH")
        if trace_path:
            _shared["bus"] = TraceBus(Path(trace_path))
    return _shared["bus"]


def _image_search():
    if _shared["image_search"] is None and os.getenv("WHEREX_IMAGE_SEARCH", "").lower() == "wikimedia":
        _shared["image_search"] = WikimediaImageSearch()
    return _shared["image_search"]


def _puzzle_params(source) -> Tuple[str, Difficulty]:
    raw_date = source.get("date") or date.today().isoformat()
    if parse_puzzle_date(raw_date) is None:
        raise ValueError(f"Invalid date: {raw_date}")
    difficulty = Difficulty.parse(source.get("difficulty") or Difficulty.MEDIUM.value)
    return raw_date, difficulty


def get_engine(puzzle_date: str, difficulty: Difficulty) -> PuzzleEngine:
    key = (puzzle_date, difficulty.value)
    engine = game_state["engines"].get(key)
    if engine is None:
        engine = PuzzleEngine(
            seed=puzzle_date,
            difficulty=difficulty,
            config=_config(),
            catalog=_catalog(),
            image_search=_image_search(),
            bus=_bus(),
        )
        game_state["engines"][key] = engine
    return engine


def _score_payload(engine: PuzzleEngine, key) -> dict:
    hints_used = game_state["hints_used"].get(key, 0)
    return {
        "score": engine.calculate_score(hints_used=hints_used),
        "maxScore": engine.max_score(),
        "hintsUsed": hints_used,
    }


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "service": "wherex-backend"})


@app.route('/api/puzzle', methods=['GET'])
def get_puzzle():
    """Generate (or fetch the cached) puzzle for a date and difficulty."""
    try:
        puzzle_date, difficulty = _puzzle_params(request.args)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        engine = get_engine(puzzle_date, difficulty)
        return jsonify(engine.to_dict())
    except (ConfigurationError, IncompletePuzzleError) as exc:
        logger.error("Puzzle generation failed for %s/%s: %s", puzzle_date, difficulty.value, exc)
        return jsonify({"error": f"Error loading puzzle: {exc}"}), 500


@app.route('/api/puzzle/guess', methods=['POST'])
def submit_guess():
    """Check a map guess for one stop."""
    data = request.get_json(silent=True) or {}
    try:
        puzzle_date, difficulty = _puzzle_params(data)
        stop = int(data["stop"])
        lat = float(data["lat"])
        lng = float(data["lng"])
    except KeyError as exc:
        return jsonify({"error": f"Missing field: {exc.args[0]}"}), 400
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        engine = get_engine(puzzle_date, difficulty)
        location = engine.submit_guess(stop, lat, lng)
    except (ConfigurationError, IncompletePuzzleError) as exc:
        logger.error("Puzzle generation failed for %s/%s: %s", puzzle_date, difficulty.value, exc)
        return jsonify({"error": f"Error loading puzzle: {exc}"}), 500
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 404

    key = (puzzle_date, difficulty.value)
    closest = location.closest_city
    return jsonify({
        "correct": bool(location.is_correct),
        "location": location.to_dict(include_hint=False, reveal_city=bool(location.is_correct)),
        "closestCity": closest.to_dict() if closest else None,
        **_score_payload(engine, key),
    })


@app.route('/api/puzzle/hint', methods=['POST'])
def reveal_hint():
    """Reveal the reserved hint for a stop, or generate a fresh one."""
    data = request.get_json(silent=True) or {}
    try:
        puzzle_date, difficulty = _puzzle_params(data)
        stop = int(data["stop"])
    except KeyError as exc:
        return jsonify({"error": f"Missing field: {exc.args[0]}"}), 400
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        engine = get_engine(puzzle_date, difficulty)
        location = engine.location(stop)
    except (ConfigurationError, IncompletePuzzleError) as exc:
        logger.error("Puzzle generation failed for %s/%s: %s", puzzle_date, difficulty.value, exc)
        return jsonify({"error": f"Error loading puzzle: {exc}"}), 500
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 404

    if stop == 0:
        return jsonify({"error": "The starting city is already known"}), 400
    if location.is_correct:
        return jsonify({"error": "Stop already solved"}), 400

    key = (puzzle_date, difficulty.value)
    # Engine clues stay untouched; generated hints only live in game state
    revealed = game_state["revealed_hints"].setdefault(key, {}).setdefault(stop, [])
    revealed_ids = {clue.id for clue in revealed}
    reserved = location.clues[3] if len(location.clues) == 4 else None
    if reserved is not None and reserved.id not in revealed_ids:
        clue = reserved
    else:
        extras = [extra for extra in revealed if extra not in location.clues]
        locations = list(engine.generate_puzzle())
        locations[stop] = Location(id=location.id, city=location.city, clues=list(location.clues) + extras)
        clue = engine.generate_hint_clue(stop, locations=locations)

    if clue is None:
        return jsonify({"error": "No hint available"}), 404

    revealed.append(clue)
    game_state["hints_used"][key] = game_state["hints_used"].get(key, 0) + 1
    return jsonify({"hint": clue.to_dict(), **_score_payload(engine, key)})


@app.route('/api/puzzle/score', methods=['GET'])
def get_score():
    """Current score for a puzzle."""
    try:
        puzzle_date, difficulty = _puzzle_params(request.args)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        engine = get_engine(puzzle_date, difficulty)
        engine.generate_puzzle()
    except (ConfigurationError, IncompletePuzzleError) as exc:
        logger.error("Puzzle generation failed for %s/%s: %s", puzzle_date, difficulty.value, exc)
        return jsonify({"error": f"Error loading puzzle: {exc}"}), 500
    return jsonify(_score_payload(engine, (puzzle_date, difficulty.value)))


@app.route('/api/cities/closest', methods=['GET'])
def closest_city():
    """Nearest guessable city to a point, if any lies within the guess radius."""
    try:
        puzzle_date, difficulty = _puzzle_params(request.args)
        lat = float(request.args["lat"])
        lng = float(request.args["lng"])
    except KeyError as exc:
        return jsonify({"error": f"Missing parameter: {exc.args[0]}"}), 400
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        engine = get_engine(puzzle_date, difficulty)
        engine.initialize()
    except ConfigurationError as exc:
        logger.error("City data failed to load: %s", exc)
        return jsonify({"error": f"Error loading puzzle: {exc}"}), 500
    city = engine.find_closest_city(lat, lng)
    return jsonify({"city": city.to_dict() if city else None})


@app.route('/api/festive-dates', methods=['GET'])
def festive_dates():
    """Dates with a curated festive route."""
    return jsonify({"dates": _config().festive_dates()})


if __name__ == '__main__':
    logging.basicConfig(level=os.getenv("WHEREX_LOG_LEVEL", "INFO"))
    app.run(debug=True, port=int(os.getenv("PORT", "5000")))
