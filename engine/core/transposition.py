"""Zobrist hashing and a bounded transposition table.

This module provides two main classes:

- Zobrist: builds random zobrist keys once and computes a 64-bit key for a
  ``Board`` plus the side to move. Keys are computed from scratch on every
  call; identical placement and side always produce the identical key.

- TranspositionTable: a small thread-safe wrapper around a dict keyed by
  zobrist keys. Each entry stores the search depth, the score, the bound
  flag and the best move found at that node. A table belongs to one game
  session; nothing about it is shared between sessions.

Usage (example):

    from engine.core.transposition import TranspositionTable, TTEntry, TT_EXACT

    tt = TranspositionTable(max_entries=100_000)
    key = tt.key(board, Color.WHITE)
    tt.store(TTEntry(key, depth=3, score=120, flag=TT_EXACT))
    entry = tt.get(key)

"""
from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from engine.config import CONFIG
from engine.core.model import Board, Color, Move, PieceKind

TT_EXACT = 0
TT_LOWER = 1  # score is at least this (search failed high)
TT_UPPER = 2  # score is at most this (search failed low)

_KIND_INDEX = {kind: i for i, kind in enumerate(PieceKind)}
_COLOR_INDEX = {Color.WHITE: 0, Color.BLACK: 1}


def make_zobrist_table(rng: random.Random) -> Dict[str, object]:
    """Create a fresh zobrist table.

    Structure returned:
      {
        "piece": [64 squares][6 kinds][2 colors] ints,
        "side": int   # xor-ed in when black is to move
      }
    """
    piece_table: List[List[List[int]]] = [
        [[rng.getrandbits(64) for _ in range(2)] for _ in range(6)] for _ in range(64)
    ]
    return {"piece": piece_table, "side": rng.getrandbits(64)}


@dataclass
class TTEntry:
    key: int
    depth: int
    score: int
    flag: int
    best_move: Optional[Move] = None

    def __iter__(self):
        return iter((self.key, self.depth, self.score, self.flag, self.best_move))


class Zobrist:
    """Zobrist hash utilities.

    ``seed`` makes the keys reproducible; without it they come from a fresh
    random source.
    """

    def __init__(self, seed: Optional[int] = None):
        self.table = make_zobrist_table(random.Random(seed))

    def hash(self, board: Board, side_to_move: Color) -> int:
        keys = self.table["piece"]
        h = 0
        for rank, row in enumerate(board.grid):
            base = rank * 8
            for file, piece in enumerate(row):
                if piece is not None:
                    h ^= keys[base + file][_KIND_INDEX[piece.kind]][_COLOR_INDEX[piece.color]]
        if side_to_move is Color.BLACK:
            h ^= self.table["side"]
        return h


# built once per process
DEFAULT_ZOBRIST = Zobrist()


class TranspositionTable:
    """Thread-safe, bounded transposition table keyed by zobrist hash.

    Replacement keeps the deeper result: an entry for a known key is only
    overwritten by one searched at least as deep. New keys are always
    inserted; at capacity the oldest inserted entry is evicted first.

    Methods:
      - get(key) -> Optional[TTEntry]
      - probe(key, depth, alpha, beta) -> (score or None, alpha, beta)
      - store(entry) -> bool
      - clear()
      - key(board, side_to_move) -> int  (zobrist key)
    """

    def __init__(self, max_entries: Optional[int] = None, zobrist: Optional[Zobrist] = None):
        self.max_entries = max_entries or CONFIG.search.tt_max_entries
        if self.max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.z = zobrist or DEFAULT_ZOBRIST
        self._table: Dict[int, TTEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.stores = 0

    def key(self, board: Board, side_to_move: Color) -> int:
        return self.z.hash(board, side_to_move)

    def get(self, key: int) -> Optional[TTEntry]:
        with self._lock:
            entry = self._table.get(key)
            if entry is None:
                self.misses += 1
            else:
                self.hits += 1
            return entry

    def probe(self, key: int, depth: int, alpha: int, beta: int) -> Tuple[Optional[int], int, int]:
        """Use a stored result for a search of ``depth`` in the window ``(alpha, beta)``.

        Returns ``(score, alpha, beta)``. ``score`` is set when the entry
        settles the node: an exact entry, or a bound that closes the window.
        Otherwise it is None and the window comes back tightened by any
        lower or upper bound deep enough to apply.
        """
        entry = self.get(key)
        if entry is None or entry.depth < depth:
            return None, alpha, beta
        if entry.flag == TT_EXACT:
            return entry.score, alpha, beta
        if entry.flag == TT_LOWER:
            alpha = max(alpha, entry.score)
        elif entry.flag == TT_UPPER:
            beta = min(beta, entry.score)
        if alpha >= beta:
            return entry.score, alpha, beta
        return None, alpha, beta

    def store(self, entry: TTEntry) -> bool:
        """Insert or replace; returns False when a deeper entry was kept."""
        with self._lock:
            existing = self._table.get(entry.key)
            if existing is not None:
                if entry.depth < existing.depth:
                    return False
            elif len(self._table) >= self.max_entries:
                # dicts keep insertion order, so the first key is the oldest
                del self._table[next(iter(self._table))]
            self._table[entry.key] = entry
            self.stores += 1
            return True

    def clear(self):
        with self._lock:
            self._table.clear()
            self.hits = self.misses = self.stores = 0

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: int) -> bool:
        return key in self._table
