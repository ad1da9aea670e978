from __future__ import annotations

import random
import re
import string
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Tuple

from unidecode import unidecode

from wherex.clues.base import ClueGenerator
from wherex.models import Clue, ClueContext, ClueKind, Difficulty

MAX_ATTEMPTS = 20
MIN_SCRAMBLE = 0.5

# (min extra letters, max extra letters) per level
EXTRA_LETTERS: Dict[Difficulty, Tuple[int, int]] = {
    Difficulty.EASY: (1, 2),
    Difficulty.MEDIUM: (2, 4),
    Difficulty.HARD: (3, 5),
}

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_letters(name: str) -> str:
    """Transliterate accents, lowercase, keep only a-z."""
    return _NON_LETTERS.sub("", unidecode(name).lower())


def scramble_ratio(original: str, scrambled: str) -> float:
    """Share of the original letters that are not at their original position.

    The i-th occurrence of a letter in the original is matched against the
    i-th occurrence of the same letter in the scrambled string.
    """
    if not original:
        return 0.0
    positions: Dict[str, List[int]] = defaultdict(list)
    for idx, ch in enumerate(scrambled):
        positions[ch].append(idx)
    seen: Counter = Counter()
    displaced = 0
    for idx, ch in enumerate(original):
        occurrence = seen[ch]
        seen[ch] += 1
        slots = positions.get(ch, [])
        if occurrence >= len(slots) or slots[occurrence] != idx:
            displaced += 1
    return displaced / len(original)


def _random_swaps(letters: List[str], rng: random.Random, count: int) -> None:
    if len(letters) < 2:
        return
    for _ in range(count):
        i = rng.randrange(len(letters))
        j = rng.randrange(len(letters))
        letters[i], letters[j] = letters[j], letters[i]


def scramble(name: str, difficulty: Difficulty, rng: random.Random) -> str:
    letters = normalize_letters(name)
    level = difficulty.effective
    low, high = EXTRA_LETTERS[level]

    best = ""
    best_ratio = -1.0
    for _ in range(MAX_ATTEMPTS):
        pool = list(letters)
        pool.extend(rng.choice(string.ascii_lowercase) for _ in range(rng.randint(low, high)))
        if level is Difficulty.EASY:
            _random_swaps(pool, rng, rng.randint(5, 9))
        elif level is Difficulty.MEDIUM:
            for _ in range(3):
                rng.shuffle(pool)
        else:
            for _ in range(5):
                rng.shuffle(pool)
            _random_swaps(pool, rng, rng.randint(5, 14))

        candidate = "".join(pool)
        ratio = scramble_ratio(letters, candidate)
        if ratio > best_ratio:
            best, best_ratio = candidate, ratio
        if ratio >= MIN_SCRAMBLE:
            break
    return best


class AnagramClue(ClueGenerator):
    """Scrambled city name padded with decoy letters."""

    kind = ClueKind.ANAGRAM

    def can_generate(self, ctx: ClueContext) -> bool:
        return bool(normalize_letters(ctx.subject.name))

    def build(self, ctx: ClueContext) -> Optional[Clue]:
        letters = normalize_letters(ctx.subject.name)
        anagram = scramble(ctx.subject.name, ctx.difficulty, ctx.rng)
        return self.make_clue(
            ctx,
            anagram.upper(),
            letters=len(anagram),
            extra_letters=len(anagram) - len(letters),
            scramble=round(scramble_ratio(letters, anagram), 2),
        )
