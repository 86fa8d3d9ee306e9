"""Static evaluator: material, pawn/king piece-square tables and an endgame king adjustment."""

from typing import Optional

from engine.config import CONFIG, EvalConfig
from engine.core.model import Board, Color, PieceKind
from engine.core.movegen import is_checkmate, is_king_in_check


class Evaluator:
    def __init__(self, cfg: Optional[EvalConfig] = None):
        self.cfg = cfg or CONFIG.eval
        self.checkmate_score = self.cfg.checkmate_score
        self._values = {kind: self.cfg.piece_values[kind.name] for kind in PieceKind}
        self._tables = {PieceKind.PAWN: self.cfg.pst_pawn, PieceKind.KING: self.cfg.pst_king}

    def evaluate(self, board: Board, perspective: Color, check_priority: bool = False) -> int:
        """Return static eval in centipawns, positive favors ``perspective``."""
        opponent = perspective.opponent

        # Decided positions short-circuit material counting.
        if is_checkmate(board, opponent):
            return self.checkmate_score
        if is_checkmate(board, perspective):
            return -self.checkmate_score

        score = 0
        if check_priority:
            if is_king_in_check(board, perspective):
                score -= self.cfg.check_bonus
            if is_king_in_check(board, opponent):
                score += self.cfg.check_bonus

        endgame = self.is_endgame(board)
        for rank, row in enumerate(board.grid):
            for file, piece in enumerate(row):
                if piece is None:
                    continue
                value = self._values[piece.kind]
                table = self._tables.get(piece.kind)
                if table is not None:
                    # Row 0 of a table is the far edge from the owner's side.
                    table_row = 7 - rank if piece.color is Color.WHITE else rank
                    bonus = table[table_row][file]
                    if piece.kind is PieceKind.KING and endgame:
                        bonus //= 2
                    value += bonus
                score += value if piece.color is perspective else -value

        return score

    @staticmethod
    def is_endgame(board: Board) -> bool:
        """No queens, or exactly two queens with at most two minor pieces."""
        queens = 0
        minors = 0
        for row in board.grid:
            for piece in row:
                if piece is None:
                    continue
                if piece.kind is PieceKind.QUEEN:
                    queens += 1
                elif piece.kind is PieceKind.KNIGHT or piece.kind is PieceKind.BISHOP:
                    minors += 1
        return queens == 0 or (queens == 2 and minors <= 2)
