"""Value types for the engine: colors, pieces, squares, moves and the board grid.

Everything here is a plain value. ``Board`` is the only mutable type and it is
never shared between search branches: ``apply_move`` always returns a fresh
copy and leaves its input untouched.

Coordinates are ``(file, rank)`` with ``file`` 0 = a-file and ``rank`` 0 =
rank 1, so square names convert through python-chess's square helpers.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Tuple

import chess


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Rank direction pawns of this color move in."""
        return 1 if self is Color.WHITE else -1


class PieceKind(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    @property
    def symbol(self) -> str:
        return _KIND_SYMBOLS[self]


_KIND_SYMBOLS = {
    PieceKind.PAWN: "p",
    PieceKind.KNIGHT: "n",
    PieceKind.BISHOP: "b",
    PieceKind.ROOK: "r",
    PieceKind.QUEEN: "q",
    PieceKind.KING: "k",
}
_SYMBOL_KINDS = {v: k for k, v in _KIND_SYMBOLS.items()}

# python-chess piece types <-> our kinds
_CHESS_TYPES = {
    PieceKind.PAWN: chess.PAWN,
    PieceKind.KNIGHT: chess.KNIGHT,
    PieceKind.BISHOP: chess.BISHOP,
    PieceKind.ROOK: chess.ROOK,
    PieceKind.QUEEN: chess.QUEEN,
    PieceKind.KING: chess.KING,
}
_KINDS_BY_CHESS_TYPE = {v: k for k, v in _CHESS_TYPES.items()}

PROMOTION_KINDS = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)


def is_in_bounds(file: int, rank: int) -> bool:
    return 0 <= file < 8 and 0 <= rank < 8


class Position(NamedTuple):
    file: int
    rank: int

    @property
    def name(self) -> str:
        return chess.square_name(chess.square(self.file, self.rank))

    @classmethod
    def from_name(cls, name: str) -> "Position":
        """Parse a square name such as ``"e4"``. Raises ValueError if invalid."""
        sq = chess.parse_square(name)
        return cls(chess.square_file(sq), chess.square_rank(sq))

    def __str__(self) -> str:
        return self.name


class Piece(NamedTuple):
    kind: PieceKind
    color: Color

    @property
    def symbol(self) -> str:
        s = self.kind.symbol
        return s.upper() if self.color is Color.WHITE else s

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        kind = _SYMBOL_KINDS.get(symbol.lower())
        if kind is None:
            raise ValueError(f"Unknown piece symbol: {symbol!r}")
        return cls(kind, Color.WHITE if symbol.isupper() else Color.BLACK)

    def to_chess(self) -> chess.Piece:
        return chess.Piece(_CHESS_TYPES[self.kind], self.color is Color.WHITE)

    @classmethod
    def from_chess(cls, piece: chess.Piece) -> "Piece":
        return cls(_KINDS_BY_CHESS_TYPE[piece.piece_type], Color.WHITE if piece.color else Color.BLACK)


class Move(NamedTuple):
    from_pos: Position
    to_pos: Position
    promotion: Optional[PieceKind] = None

    def uci(self) -> str:
        suffix = self.promotion.symbol if self.promotion else ""
        return f"{self.from_pos.name}{self.to_pos.name}{suffix}"

    @classmethod
    def from_uci(cls, uci: str) -> "Move":
        """Parse ``"e2e4"`` / ``"a7a8q"``. Raises ValueError on malformed text."""
        m = chess.Move.from_uci(uci)
        if not m:
            raise ValueError(f"Null move is not a move: {uci!r}")
        promotion = _KINDS_BY_CHESS_TYPE[m.promotion] if m.promotion else None
        return cls(
            Position(chess.square_file(m.from_square), chess.square_rank(m.from_square)),
            Position(chess.square_file(m.to_square), chess.square_rank(m.to_square)),
            promotion,
        )

    def __str__(self) -> str:
        return self.uci()


def _check_bounds(file: int, rank: int) -> None:
    if not is_in_bounds(file, rank):
        raise ValueError(f"Square ({file}, {rank}) is off the board")


class Board:
    """8x8 grid of ``Piece | None`` indexed ``grid[rank][file]``."""

    __slots__ = ("grid",)

    def __init__(self, grid: Optional[List[List[Optional[Piece]]]] = None):
        self.grid = grid if grid is not None else [[None] * 8 for _ in range(8)]

    def piece_at(self, pos: Tuple[int, int]) -> Optional[Piece]:
        file, rank = pos
        _check_bounds(file, rank)
        return self.grid[rank][file]

    def set_piece(self, pos: Tuple[int, int], piece: Optional[Piece]) -> None:
        file, rank = pos
        _check_bounds(file, rank)
        self.grid[rank][file] = piece

    def clone(self) -> "Board":
        # Pieces are immutable, so copying the rows is a full value copy.
        return Board([row[:] for row in self.grid])

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Position, Piece]]:
        for rank, row in enumerate(self.grid):
            for file, piece in enumerate(row):
                if piece is not None and (color is None or piece.color is color):
                    yield Position(file, rank), piece

    def find_king(self, color: Color) -> Optional[Position]:
        for rank, row in enumerate(self.grid):
            for file, piece in enumerate(row):
                if piece is not None and piece.kind is PieceKind.KING and piece.color is color:
                    return Position(file, rank)
        return None

    def mirror(self) -> "Board":
        """Flip ranks and swap colors (white's a1 becomes black's a8)."""
        grid = [
            [Piece(p.kind, p.color.opponent) if p is not None else None for p in row]
            for row in reversed(self.grid)
        ]
        return Board(grid)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.grid == other.grid

    __hash__ = None  # mutable

    def __str__(self) -> str:
        lines = []
        for rank in range(7, -1, -1):
            lines.append(" ".join(p.symbol if p else "." for p in self.grid[rank]))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Board({[[p.symbol if p else '.' for p in row] for row in self.grid]!r})"


def apply_move(board: Board, move: Move) -> Board:
    """Return a new board with ``move`` played. ``board`` is not modified."""
    piece = board.piece_at(move.from_pos)
    if piece is None:
        raise ValueError(f"No piece on {move.from_pos.name} for move {move.uci()}")
    to_file, to_rank = move.to_pos
    _check_bounds(to_file, to_rank)

    promotion = move.promotion
    if promotion is None and piece.kind is PieceKind.PAWN and to_rank in (0, 7):
        promotion = PieceKind.QUEEN
    if promotion is not None:
        piece = Piece(promotion, piece.color)

    new_board = board.clone()
    new_board.grid[move.from_pos.rank][move.from_pos.file] = None
    new_board.grid[to_rank][to_file] = piece
    return new_board


_BACK_RANK = (
    PieceKind.ROOK, PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.QUEEN,
    PieceKind.KING, PieceKind.BISHOP, PieceKind.KNIGHT, PieceKind.ROOK,
)


def get_initial_board() -> Board:
    board = Board()
    for file, kind in enumerate(_BACK_RANK):
        board.grid[0][file] = Piece(kind, Color.WHITE)
        board.grid[1][file] = Piece(PieceKind.PAWN, Color.WHITE)
        board.grid[6][file] = Piece(PieceKind.PAWN, Color.BLACK)
        board.grid[7][file] = Piece(kind, Color.BLACK)
    return board
