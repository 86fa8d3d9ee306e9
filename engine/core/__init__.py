"""Core engine components: board model, move generation, evaluator, search, and transposition table."""

from .board import ChessBoard, GameStatus
from .evaluator import Evaluator
from .model import Board, Color, Move, Piece, PieceKind, Position, apply_move, get_initial_board
from .search import SearchEngine, SearchResult
from .transposition import TranspositionTable, Zobrist
