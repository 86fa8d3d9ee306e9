import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from engine.config import CONFIG, SearchConfig, check_difficulty
from engine.core.book import book_move
from engine.core.evaluator import Evaluator
from engine.core.model import Board, Color, Move, Piece, PieceKind, apply_move
from engine.core.movegen import capture_moves, is_king_in_check, legal_moves
from engine.core.transposition import TT_EXACT, TT_LOWER, TT_UPPER, TranspositionTable, TTEntry
from engine.core.utils import format_info

logger = logging.getLogger(__name__)

INF = 1_000_000_000

# MVV-LVA ordinals
_ORDER_VALUE = {
    PieceKind.PAWN: 1,
    PieceKind.KNIGHT: 2,
    PieceKind.BISHOP: 3,
    PieceKind.ROOK: 4,
    PieceKind.QUEEN: 5,
    PieceKind.KING: 6,
}


@dataclass
class SearchResult:
    move: Move
    score: int
    from_book: bool = False


class SearchEngine:
    """Minimax with alpha-beta pruning, quiescence and a transposition table.

    Scores are always from the computer's color: the recursion maximizes on
    the computer's turns and minimizes on the opponent's. One engine (and its
    table) serves one game session.
    """

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        tt: Optional[TranspositionTable] = None,
        config: Optional[SearchConfig] = None,
        seed: Optional[int] = None,
        use_book: bool = False,
    ):
        self.cfg = config or CONFIG.search
        self.evaluator = evaluator or Evaluator()
        self.tt = tt if tt is not None else TranspositionTable(self.cfg.tt_max_entries)
        self.use_transposition = self.cfg.use_transposition
        self.use_quiescence = self.cfg.use_quiescence
        self.use_book = use_book
        self.rng = random.Random(seed if seed is not None else self.cfg.seed)
        self.checkmate_score = self.evaluator.checkmate_score

        self.nodes = 0
        self.qnodes = 0
        self._color = Color.BLACK
        self._check_priority = False
        self._tt_context = None

    def new_game(self):
        """Forget everything learned in the previous game."""
        self.tt.clear()
        self._tt_context = None

    def get_best_move(
        self,
        board: Board,
        difficulty: Optional[str] = None,
        captured_pieces: Iterable[Piece] = (),
        color: Color = Color.BLACK,
        history: Optional[Sequence[str]] = None,
    ) -> Optional[SearchResult]:
        """Choose a move for ``color`` or return None when it has no legal move.

        ``captured_pieces`` is accepted for callers that track it; scoring
        does not use it. ``history`` (UCI strings from the standard start)
        lets the opening book answer instead of the search.
        """
        difficulty = check_difficulty(difficulty or self.cfg.difficulty)
        depth = self.cfg.depth[difficulty]
        if depth < 1:
            raise ValueError(f"Search depth for {difficulty!r} must be at least 1, got {depth}")
        randomness = self.cfg.randomness[difficulty]

        moves = legal_moves(board, color)
        if not moves:
            logger.info("No legal moves for %s", color.value)
            return None

        if self.use_book and history is not None:
            result = self._book_result(board, color, history, moves, self.cfg.check_priority[difficulty])
            if result is not None:
                return result

        self._set_context(color, self.cfg.check_priority[difficulty])
        self.nodes = 0
        self.qnodes = 0
        hits_before = self.tt.hits
        start = time.perf_counter()

        best_move = None
        best_score = -INF
        best_adjusted = -INF
        for move in self._order_moves(board, moves):
            score = self.minimax(apply_move(board, move), depth - 1, -INF, INF, False)
            adjusted = score + (self.rng.random() - 0.5) * randomness
            if best_move is None or adjusted > best_adjusted:
                best_move = move
                best_score = score
                best_adjusted = adjusted

        elapsed = time.perf_counter() - start
        logger.info(format_info(
            difficulty, depth, best_score, self.nodes, self.qnodes,
            self.tt.hits - hits_before, elapsed, best_move, self.checkmate_score,
        ))
        return SearchResult(best_move, best_score)

    def _book_result(
        self,
        board: Board,
        color: Color,
        history: Sequence[str],
        moves: List[Move],
        check_priority: bool,
    ) -> Optional[SearchResult]:
        entry = book_move(history, self.rng)
        if entry is None:
            return None
        move = Move.from_uci(entry.uci)
        if move not in moves:
            logger.debug("Book move %s is not legal here, searching instead", entry.uci)
            return None
        logger.info("Book move %s (%s)", entry.uci, entry.name)
        score = self.evaluator.evaluate(apply_move(board, move), color, check_priority)
        return SearchResult(move, score, from_book=True)

    def _set_context(self, color: Color, check_priority: bool):
        # Stored scores depend on the perspective and the evaluator settings.
        context = (color, check_priority)
        if self._tt_context is not None and context != self._tt_context and len(self.tt):
            logger.info("Search context changed to %s, clearing transposition table", context)
            self.tt.clear()
        self._tt_context = context
        self._color = color
        self._check_priority = check_priority

    def evaluate(self, board: Board) -> int:
        return self.evaluator.evaluate(board, self._color, self._check_priority)

    def minimax(self, board: Board, depth: int, alpha: int, beta: int, is_maximizing: bool) -> int:
        self.nodes += 1
        side = self._color if is_maximizing else self._color.opponent

        # TT Lookup
        key = None
        if self.use_transposition:
            key = self.tt.key(board, side)
            stored, alpha, beta = self.tt.probe(key, depth, alpha, beta)
            if stored is not None:
                return stored

        if depth <= 0:
            if self.use_quiescence:
                return self.quiescence(board, alpha, beta, is_maximizing)
            return self.evaluate(board)

        moves = legal_moves(board, side)
        if not moves:
            if is_king_in_check(board, side):
                return -self.checkmate_score if is_maximizing else self.checkmate_score
            return 0

        alpha_orig, beta_orig = alpha, beta
        best_move = None
        if is_maximizing:
            best = -INF
            for move in self._order_moves(board, moves):
                score = self.minimax(apply_move(board, move), depth - 1, alpha, beta, False)
                if score > best:
                    best = score
                    best_move = move
                alpha = max(alpha, score)
                if beta <= alpha:
                    break
        else:
            best = INF
            for move in self._order_moves(board, moves):
                score = self.minimax(apply_move(board, move), depth - 1, alpha, beta, True)
                if score < best:
                    best = score
                    best_move = move
                beta = min(beta, score)
                if beta <= alpha:
                    break

        if key is not None:
            if best <= alpha_orig:
                flag = TT_UPPER
            elif best >= beta_orig:
                flag = TT_LOWER
            else:
                flag = TT_EXACT
            self.tt.store(TTEntry(key, depth, best, flag, best_move))
        return best

    def quiescence(self, board: Board, alpha: int, beta: int, is_maximizing: bool) -> int:
        self.qnodes += 1
        side = self._color if is_maximizing else self._color.opponent

        stand_pat = self.evaluate(board)
        best = stand_pat
        if is_maximizing:
            if stand_pat >= beta:
                return stand_pat
            alpha = max(alpha, stand_pat)
            for move in self._order_moves(board, capture_moves(board, side)):
                score = self.quiescence(apply_move(board, move), alpha, beta, False)
                best = max(best, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break
        else:
            if stand_pat <= alpha:
                return stand_pat
            beta = min(beta, stand_pat)
            for move in self._order_moves(board, capture_moves(board, side)):
                score = self.quiescence(apply_move(board, move), alpha, beta, True)
                best = min(best, score)
                beta = min(beta, score)
                if beta <= alpha:
                    break
        return best

    def _order_moves(self, board: Board, moves: List[Move]) -> List[Move]:
        grid = board.grid

        def mvv_lva(move: Move) -> int:
            value = 0
            victim = grid[move.to_pos.rank][move.to_pos.file]
            if victim is not None:
                attacker = grid[move.from_pos.rank][move.from_pos.file]
                value = 100 + _ORDER_VALUE[victim.kind] * 10 - _ORDER_VALUE[attacker.kind]
            if move.promotion is not None:
                value += _ORDER_VALUE[move.promotion]
            return value

        return sorted(moves, key=mvv_lva, reverse=True)
