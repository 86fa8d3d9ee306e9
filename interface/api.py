"""FastAPI REST interface for the engine.

One module-level game session backs every endpoint; the session's search
engine keeps its transposition table until ``/reset`` starts a new game.
"""

import logging
import threading
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from engine.config import CONFIG, check_difficulty
from engine.core.book import opening_name
from engine.core.model import Position
from engine.core.movegen import get_valid_moves
from engine.main import Engine

logger = logging.getLogger(__name__)

app = FastAPI(title=CONFIG.ui.api_title, version="1.0.0")

# Shared game session (preserves TT across requests).
game = Engine()
_game_lock = threading.Lock()


class FenRequest(BaseModel):
    fen: str


class MoveRequest(BaseModel):
    move: str  # UCI format e.g. "e2e4"


class SquareRequest(BaseModel):
    square: str  # e.g. "e2"


class SearchRequest(BaseModel):
    difficulty: Optional[str] = None
    play: bool = False


class ValidMovesResponse(BaseModel):
    square: str
    piece: Optional[str]
    destinations: List[str]


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score: int
    from_book: bool
    difficulty: str
    fen: str


@app.get("/board")
def get_board():
    with _game_lock:
        board = game.board
        status = board.status()
        history = board.book_history()
        return {
            "fen": board.get_fen(),
            "turn": status.turn.value,
            "legal_moves": board.get_legal_moves(),
            "in_check": status.in_check,
            "is_checkmate": status.checkmate,
            "is_stalemate": status.stalemate,
            "is_game_over": status.is_game_over,
            "winner": status.winner.value if status.winner else None,
            "captured": [p.symbol for p in board.captured_pieces],
            "opening": opening_name(history) if history is not None else None,
        }


@app.post("/position")
def set_position(req: FenRequest):
    with _game_lock:
        try:
            game.new_game(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid FEN: {e}")
        return {"fen": game.board.get_fen()}


@app.post("/move")
def make_move(req: MoveRequest):
    with _game_lock:
        if not game.make_move(req.move):
            raise HTTPException(status_code=400, detail=f"Illegal or malformed move: {req.move}")
        return {"fen": game.board.get_fen(), "move": game.board.move_history[-1]}


@app.post("/valid-moves", response_model=ValidMovesResponse)
def valid_moves(req: SquareRequest):
    try:
        pos = Position.from_name(req.square)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid square: {req.square}")
    with _game_lock:
        piece = game.board.board.piece_at(pos)
        destinations = get_valid_moves(pos, piece, game.board.board) if piece else []
    return ValidMovesResponse(
        square=pos.name,
        piece=piece.symbol if piece else None,
        destinations=[d.name for d in destinations],
    )


@app.post("/search", response_model=SearchResponse)
def search_move(req: SearchRequest = SearchRequest()):
    try:
        difficulty = check_difficulty(req.difficulty or game.difficulty)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with _game_lock:
        if game.board.is_game_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        board = game.board
        result = game.search.get_best_move(
            board.board,
            difficulty,
            board.captured_pieces,
            color=board.turn,
            history=board.book_history(),
        )
        best = result.move.uci() if result else None
        if best is not None and req.play:
            board.make_move(best)
        logger.debug("search %s -> %s", difficulty, best)
        return SearchResponse(
            best_move=best,
            score=result.score if result else 0,
            from_book=result.from_book if result else False,
            difficulty=difficulty,
            fen=board.get_fen(),
        )


@app.post("/reset")
def reset_board():
    with _game_lock:
        game.new_game()
        return {"fen": game.board.get_fen()}
