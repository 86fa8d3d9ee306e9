from typing import Iterable, Optional, Tuple

from engine.config import CONFIG, check_difficulty
from engine.core.board import ChessBoard
from engine.core.evaluator import Evaluator
from engine.core.model import Board, Color, Move, Piece
from engine.core.movegen import get_valid_moves
from engine.core.search import SearchEngine

__all__ = ["Engine", "get_best_move", "get_valid_moves"]


def get_best_move(
    board: Board,
    difficulty: str,
    captured_pieces: Iterable[Piece] = (),
    color: Color = Color.BLACK,
    engine: Optional[SearchEngine] = None,
) -> Optional[Move]:
    """Return the computer's move for ``color``, or None if it has no legal move.

    Pass the session's ``engine`` to reuse its transposition table across
    moves of one game; without it a fresh engine (and table) is used.
    """
    engine = engine or SearchEngine()
    result = engine.get_best_move(board, difficulty, captured_pieces, color=color)
    return result.move if result else None


class Engine:
    """One game against the computer: a session board plus its own search engine."""

    def __init__(self, difficulty: Optional[str] = None, seed: Optional[int] = None, fen: Optional[str] = None):
        self.board = ChessBoard(fen)
        self.difficulty = check_difficulty(difficulty or CONFIG.search.difficulty)
        self.search = SearchEngine(Evaluator(), seed=seed, use_book=CONFIG.book.enabled)

    def get_best_move(self) -> Tuple[Optional[str], int]:
        result = self.search.get_best_move(
            self.board.board,
            self.difficulty,
            self.board.captured_pieces,
            color=self.board.turn,
            history=self.board.book_history(),
        )
        if result is None:
            return None, 0
        return result.move.uci(), result.score

    def play_best_move(self) -> Optional[str]:
        """Search and play the computer's move; returns it, or None if the game is over."""
        move, _score = self.get_best_move()
        if move is not None:
            self.board.make_move(move)
        return move

    def make_move(self, move_uci: str):
        return self.board.make_move(move_uci)

    def new_game(self, fen: Optional[str] = None):
        if fen:
            self.board.set_fen(fen)
        else:
            self.board.reset()
        self.search.new_game()

    def print_board(self):
        self.board.print_board()
