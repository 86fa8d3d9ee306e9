"""Game session wrapper: board, side to move, move history and FEN via python-chess."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import chess

from engine.core.model import Board, Color, Move, Piece, PieceKind, apply_move, get_initial_board
from engine.core.movegen import has_legal_move, is_king_in_check, legal_moves

_INVALID_STATUS = (
    chess.STATUS_NO_WHITE_KING
    | chess.STATUS_NO_BLACK_KING
    | chess.STATUS_TOO_MANY_KINGS
    | chess.STATUS_OPPOSITE_CHECK
)


@dataclass
class GameStatus:
    turn: Color
    in_check: bool
    checkmate: bool
    stalemate: bool
    winner: Optional[Color]

    @property
    def is_game_over(self) -> bool:
        return self.checkmate or self.stalemate


class ChessBoard:
    def __init__(self, fen: str = None):
        """Initialize from FEN or the standard starting position."""
        self.board = get_initial_board()
        self.turn = Color.WHITE
        self.fullmove_number = 1
        self.move_history: List[str] = []
        self.captured_pieces: List[Piece] = []
        self._undo: List[Tuple[Board, Color, int, Optional[Piece]]] = []
        self._from_start = True
        if fen:
            self.set_fen(fen)

    def reset(self):
        """Reset to the initial position."""
        self.board = get_initial_board()
        self.turn = Color.WHITE
        self.fullmove_number = 1
        self.move_history.clear()
        self.captured_pieces.clear()
        self._undo.clear()
        self._from_start = True

    def set_fen(self, fen: str):
        """Set placement and side to move from a FEN string.

        Castling and en-passant fields are accepted but not tracked. Raises
        ValueError for malformed FEN, a position without one king per side, or
        one where the side not to move is in check.
        """
        cb = chess.Board(fen)
        if cb.status() & _INVALID_STATUS:
            raise ValueError(f"FEN needs one king per side and the side not to move out of check: {fen!r}")
        board = Board()
        for sq, piece in cb.piece_map().items():
            board.set_piece((chess.square_file(sq), chess.square_rank(sq)), Piece.from_chess(piece))
        self.board = board
        self.turn = Color.WHITE if cb.turn == chess.WHITE else Color.BLACK
        self.fullmove_number = cb.fullmove_number
        self.move_history.clear()
        self.captured_pieces.clear()
        self._undo.clear()
        self._from_start = board == get_initial_board() and self.turn is Color.WHITE

    def get_fen(self) -> str:
        """Return the current FEN (castling and en-passant fields are always '-')."""
        cb = chess.Board.empty()
        for pos, piece in self.board.pieces():
            cb.set_piece_at(chess.square(pos.file, pos.rank), piece.to_chess())
        cb.turn = self.turn is Color.WHITE
        cb.fullmove_number = self.fullmove_number
        return cb.fen()

    def make_move(self, move_str: str) -> bool:
        """Play a UCI move (e.g. 'e2e4'). Returns True if legal."""
        try:
            move = Move.from_uci(move_str)
        except ValueError:
            return False
        piece = self.board.piece_at(move.from_pos)
        if (
            move.promotion is None
            and piece is not None
            and piece.kind is PieceKind.PAWN
            and move.to_pos.rank in (0, 7)
        ):
            move = move._replace(promotion=PieceKind.QUEEN)
        if move not in legal_moves(self.board, self.turn):
            return False

        captured = self.board.piece_at(move.to_pos)
        self._undo.append((self.board, self.turn, self.fullmove_number, captured))
        if captured is not None:
            self.captured_pieces.append(captured)
        self.board = apply_move(self.board, move)
        if self.turn is Color.BLACK:
            self.fullmove_number += 1
        self.turn = self.turn.opponent
        self.move_history.append(move.uci())
        return True

    def undo_move(self):
        """Take back the last move."""
        if not self._undo:
            return
        self.board, self.turn, self.fullmove_number, captured = self._undo.pop()
        if captured is not None:
            self.captured_pieces.pop()
        self.move_history.pop()

    def get_legal_moves(self) -> List[str]:
        """Return legal moves as UCI strings."""
        return [m.uci() for m in legal_moves(self.board, self.turn)]

    def book_history(self) -> Optional[List[str]]:
        """Move history usable for opening-book lookups, or None off the standard start."""
        return list(self.move_history) if self._from_start else None

    def status(self) -> GameStatus:
        in_check = is_king_in_check(self.board, self.turn)
        no_moves = not has_legal_move(self.board, self.turn)
        checkmate = in_check and no_moves
        return GameStatus(
            turn=self.turn,
            in_check=in_check,
            checkmate=checkmate,
            stalemate=no_moves and not in_check,
            winner=self.turn.opponent if checkmate else None,
        )

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self.status().is_game_over

    def print_board(self):
        """Print ASCII representation."""
        print(self.board)
