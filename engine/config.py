# engine/config.py
import logging
import os
import tomllib
from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Defaults (centipawns)
PIECE_VALUES = {
    "PAWN": 100,
    "KNIGHT": 320,
    "BISHOP": 330,
    "ROOK": 500,
    "QUEEN": 900,
    "KING": 20000,
}

# Row 0 is the promotion edge as seen by the piece's owner.
PST_PAWN = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [50, 50, 50, 50, 50, 50, 50, 50],
    [10, 10, 20, 30, 30, 20, 10, 10],
    [5, 5, 10, 25, 25, 10, 5, 5],
    [0, 0, 0, 20, 20, 0, 0, 0],
    [5, -5, -10, 0, 0, -10, -5, 5],
    [5, 10, 10, -20, -20, 10, 10, 5],
    [0, 0, 0, 0, 0, 0, 0, 0],
]

PST_KING = [
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-20, -30, -30, -40, -40, -30, -30, -20],
    [-10, -20, -20, -20, -20, -20, -20, -10],
    [20, 20, 0, 0, 0, 0, 20, 20],
    [20, 30, 10, 0, 0, 10, 30, 20],
]

DIFFICULTIES = ("easy", "medium", "hard", "grandmaster")


@dataclass
class SearchConfig:
    difficulty: str = "medium"
    # Total plies searched, root move included: "hard" = 4 means the
    # computer's move plus three more plies. Each extra ply multiplies the
    # search time; "hard" already takes seconds per move in the opening.
    depth: Dict[str, int] = field(default_factory=lambda: {
        "easy": 2, "medium": 3, "hard": 4, "grandmaster": 5
    })
    randomness: Dict[str, float] = field(default_factory=lambda: {
        "easy": 300.0, "medium": 150.0, "hard": 50.0, "grandmaster": 0.0
    })
    check_priority: Dict[str, bool] = field(default_factory=lambda: {
        "easy": False, "medium": True, "hard": True, "grandmaster": True
    })
    use_quiescence: bool = True
    use_transposition: bool = True
    tt_max_entries: int = 1_000_000
    seed: Optional[int] = None  # None means nondeterministic noise


@dataclass
class EvalConfig:
    piece_values: Dict[str, int] = field(default_factory=lambda: PIECE_VALUES.copy())
    checkmate_score: int = 100000
    check_bonus: int = 500
    pst_pawn: List[List[int]] = field(default_factory=lambda: [row[:] for row in PST_PAWN])
    pst_king: List[List[int]] = field(default_factory=lambda: [row[:] for row in PST_KING])


@dataclass
class BookConfig:
    enabled: bool = True


@dataclass
class UIConfig:
    engine_name: str = "Gambit"
    engine_author: str = "Gambit developers"
    api_title: str = "Gambit chess engine"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    book: BookConfig = field(default_factory=BookConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        # shallow merge; unknown keys are ignored
        for section in ("search", "eval", "book", "ui"):
            if section in raw:
                target = getattr(cfg, section)
                for k, v in raw[section].items():
                    if hasattr(target, k):
                        current = getattr(target, k)
                        if isinstance(current, dict) and isinstance(v, dict):
                            current.update(v)
                        else:
                            setattr(target, k, v)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg


def check_difficulty(difficulty: str) -> str:
    """Return ``difficulty`` unchanged, or raise ValueError for unknown levels."""
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty {difficulty!r}; expected one of {', '.join(DIFFICULTIES)}")
    return difficulty


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for scripts and adapters."""
    logging.basicConfig(
        level=(level or CONFIG.log_level).upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("ENGINE_CONFIG_TOML", "config.toml"))
# env overrides for quick debugging
if os.environ.get("ENGINE_DIFFICULTY"):
    CONFIG.search.difficulty = check_difficulty(os.environ["ENGINE_DIFFICULTY"])
if os.environ.get("ENGINE_LOG_LEVEL"):
    CONFIG.log_level = os.environ["ENGINE_LOG_LEVEL"]
