"""Move generation and legality checks on top of ``engine.core.model``.

Pseudo-legal generation follows piece geometry and blocking only. Legal
moves are the pseudo-legal ones that do not leave the mover's own king
attacked, which is tested by playing the move on a copy and scanning for
attackers of the king square.
"""

from typing import List, Optional

from engine.core.model import (
    PROMOTION_KINDS,
    Board,
    Color,
    Move,
    Piece,
    PieceKind,
    Position,
    apply_move,
)

KNIGHT_OFFSETS = ((1, 2), (2, 1), (2, -1), (1, -2), (-1, -2), (-2, -1), (-2, 1), (-1, 2))
KING_OFFSETS = ((1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1))
ROOK_DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))
BISHOP_DIRECTIONS = ((1, 1), (1, -1), (-1, 1), (-1, -1))
SLIDING_DIRECTIONS = {
    PieceKind.BISHOP: BISHOP_DIRECTIONS,
    PieceKind.ROOK: ROOK_DIRECTIONS,
    PieceKind.QUEEN: ROOK_DIRECTIONS + BISHOP_DIRECTIONS,
}


def _pawn_start_rank(color: Color) -> int:
    return 1 if color is Color.WHITE else 6


def _promotion_rank(color: Color) -> int:
    return 7 if color is Color.WHITE else 0


def pseudo_legal_destinations(board: Board, pos: Position) -> List[Position]:
    """Squares the piece on ``pos`` could reach ignoring its own king's safety.

    An empty square yields an empty list.
    """
    grid = board.grid
    file, rank = pos
    piece = board.piece_at(pos)
    if piece is None:
        return []
    color = piece.color
    kind = piece.kind
    out: List[Position] = []

    if kind is PieceKind.PAWN:
        step = color.forward
        r1 = rank + step
        if 0 <= r1 < 8:
            if grid[r1][file] is None:
                out.append(Position(file, r1))
                r2 = r1 + step
                if rank == _pawn_start_rank(color) and grid[r2][file] is None:
                    out.append(Position(file, r2))
            for f in (file - 1, file + 1):
                if 0 <= f < 8:
                    target = grid[r1][f]
                    if target is not None and target.color is not color:
                        out.append(Position(f, r1))
        return out

    if kind is PieceKind.KNIGHT or kind is PieceKind.KING:
        offsets = KNIGHT_OFFSETS if kind is PieceKind.KNIGHT else KING_OFFSETS
        for df, dr in offsets:
            f, r = file + df, rank + dr
            if 0 <= f < 8 and 0 <= r < 8:
                target = grid[r][f]
                if target is None or target.color is not color:
                    out.append(Position(f, r))
        return out

    for df, dr in SLIDING_DIRECTIONS[kind]:
        f, r = file + df, rank + dr
        while 0 <= f < 8 and 0 <= r < 8:
            target = grid[r][f]
            if target is None:
                out.append(Position(f, r))
            else:
                if target.color is not color:
                    out.append(Position(f, r))
                break
            f += df
            r += dr
    return out


def is_square_attacked(board: Board, pos: Position, by_color: Color) -> bool:
    """True if any piece of ``by_color`` could move to ``pos`` pseudo-legally."""
    grid = board.grid
    file, rank = pos

    # pawns capture diagonally forward, so look one rank behind the target
    pr = rank - by_color.forward
    if 0 <= pr < 8:
        for f in (file - 1, file + 1):
            if 0 <= f < 8:
                p = grid[pr][f]
                if p is not None and p.color is by_color and p.kind is PieceKind.PAWN:
                    return True

    for offsets, kind in ((KNIGHT_OFFSETS, PieceKind.KNIGHT), (KING_OFFSETS, PieceKind.KING)):
        for df, dr in offsets:
            f, r = file + df, rank + dr
            if 0 <= f < 8 and 0 <= r < 8:
                p = grid[r][f]
                if p is not None and p.color is by_color and p.kind is kind:
                    return True

    for directions, slider in ((ROOK_DIRECTIONS, PieceKind.ROOK), (BISHOP_DIRECTIONS, PieceKind.BISHOP)):
        for df, dr in directions:
            f, r = file + df, rank + dr
            while 0 <= f < 8 and 0 <= r < 8:
                p = grid[r][f]
                if p is not None:
                    if p.color is by_color and (p.kind is slider or p.kind is PieceKind.QUEEN):
                        return True
                    break
                f += df
                r += dr
    return False


def is_king_in_check(board: Board, color: Color) -> bool:
    king = board.find_king(color)
    if king is None:
        return False
    return is_square_attacked(board, king, color.opponent)


def _king_safe_after(board: Board, pos: Position, dest: Position, piece: Piece, king: Optional[Position]) -> bool:
    after = apply_move(board, Move(pos, dest))
    king_sq = dest if piece.kind is PieceKind.KING else king
    return king_sq is None or not is_square_attacked(after, king_sq, piece.color.opponent)


def _legal_destinations(board: Board, pos: Position, piece: Piece, king: Optional[Position]) -> List[Position]:
    """Filter pseudo-legal destinations of ``piece`` down to king-safe ones."""
    return [d for d in pseudo_legal_destinations(board, pos) if _king_safe_after(board, pos, d, piece, king)]


def _expand(moves: List[Move], pos: Position, dest: Position, piece: Piece) -> None:
    if piece.kind is PieceKind.PAWN and dest.rank == _promotion_rank(piece.color):
        moves.extend(Move(pos, dest, kind) for kind in PROMOTION_KINDS)
    else:
        moves.append(Move(pos, dest))


def get_valid_moves(position: Position, piece: Piece, board: Board) -> List[Position]:
    """Legal destination squares for ``piece`` standing on ``position``.

    Returns an empty list when the square is empty.
    """
    occupant = board.piece_at(position)
    if occupant is None:
        return []
    if occupant != piece:
        raise ValueError(f"{position.name} holds {occupant.symbol}, not {piece.symbol}")
    return _legal_destinations(board, position, piece, board.find_king(piece.color))


def legal_moves(board: Board, color: Color) -> List[Move]:
    """Every legal move for ``color``; promotions expand to one move per kind."""
    moves: List[Move] = []
    king = board.find_king(color)
    for pos, piece in list(board.pieces(color)):
        for dest in _legal_destinations(board, pos, piece, king):
            _expand(moves, pos, dest, piece)
    return moves


def capture_moves(board: Board, color: Color) -> List[Move]:
    """Legal moves of ``color`` that take an enemy piece."""
    grid = board.grid
    moves: List[Move] = []
    king = board.find_king(color)
    for pos, piece in list(board.pieces(color)):
        for dest in pseudo_legal_destinations(board, pos):
            if grid[dest.rank][dest.file] is not None and _king_safe_after(board, pos, dest, piece, king):
                _expand(moves, pos, dest, piece)
    return moves


def has_legal_move(board: Board, color: Color) -> bool:
    king = board.find_king(color)
    for pos, piece in list(board.pieces(color)):
        for dest in pseudo_legal_destinations(board, pos):
            if _king_safe_after(board, pos, dest, piece, king):
                return True
    return False


def is_checkmate(board: Board, color: Color) -> bool:
    return is_king_in_check(board, color) and not has_legal_move(board, color)


def is_stalemate(board: Board, color: Color) -> bool:
    return not is_king_in_check(board, color) and not has_legal_move(board, color)
