"""Fixed opening lookup table used to seed the first moves of a game.

Lines are keyed by the game's move history in UCI notation joined with
spaces (``""`` is the starting position). Each line lists candidate replies
with a relative frequency used for weighted random selection.
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence


@dataclass(frozen=True)
class BookMove:
    uci: str
    name: str
    frequency: int


OPENING_BOOK: Dict[str, List[BookMove]] = {
    "": [
        BookMove("e2e4", "King's Pawn Opening", 45),
        BookMove("d2d4", "Queen's Pawn Opening", 40),
        BookMove("c2c4", "English Opening", 10),
        BookMove("g1f3", "Reti Opening", 5),
    ],
    "e2e4": [
        BookMove("e7e5", "Open Game", 50),
        BookMove("c7c5", "Sicilian Defense", 35),
        BookMove("e7e6", "French Defense", 10),
        BookMove("c7c6", "Caro-Kann Defense", 5),
    ],
    "d2d4": [
        BookMove("d7d5", "Queen's Gambit", 40),
        BookMove("g8f6", "Indian Defense", 35),
        BookMove("e7e5", "Englund Gambit", 15),
        BookMove("f7f5", "Dutch Defense", 10),
    ],
    "e2e4 e7e5": [
        BookMove("g1f3", "King's Knight Opening", 60),
        BookMove("f1c4", "King's Bishop Opening", 20),
        BookMove("d2d4", "Center Game", 10),
        BookMove("f2f4", "King's Gambit", 10),
    ],
    "e2e4 c7c5": [
        BookMove("g1f3", "Sicilian Defense", 70),
        BookMove("b1c3", "Sicilian, Closed", 20),
        BookMove("d2d4", "Sicilian, Smith-Morra", 10),
    ],
    "d2d4 d7d5": [
        BookMove("c2c4", "Queen's Gambit", 60),
        BookMove("c1f4", "London System", 20),
        BookMove("e2e3", "Stonewall Attack", 10),
        BookMove("b1c3", "Richter-Veresov", 10),
    ],
    "d2d4 g8f6": [
        BookMove("c2c4", "Indian Defense", 50),
        BookMove("c1f4", "London System", 30),
        BookMove("c1g5", "Trompowsky Attack", 15),
        BookMove("g1f3", "Torre Attack", 5),
    ],
}


def _key(history: Sequence[str]) -> str:
    return " ".join(history)


def in_book(history: Sequence[str]) -> bool:
    return _key(history) in OPENING_BOOK


def book_move(history: Sequence[str], rng: Optional[random.Random] = None) -> Optional[BookMove]:
    """Pick a reply for ``history`` weighted by frequency, or None if out of book."""
    responses = OPENING_BOOK.get(_key(history))
    if not responses:
        return None
    rng = rng or random.Random()
    return rng.choices(responses, weights=[m.frequency for m in responses])[0]


def opening_name(history: Sequence[str]) -> str:
    """Name of the deepest book move ``history`` follows, or "Unknown Opening"."""
    name = "Unknown Opening"
    for i, played in enumerate(history):
        responses = OPENING_BOOK.get(_key(history[:i]), [])
        match = next((m for m in responses if m.uci == played), None)
        if match is None:
            break
        name = match.name
    return name
