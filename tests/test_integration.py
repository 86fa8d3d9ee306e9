"""
Integration tests for the Gambit chess engine.

Tests components working together end-to-end:
- Game session (moves, undo, FEN, promotion, captures, status)
- Engine facade (book, search, new games)
- Short self-play games
- FastAPI REST API
- Typer command-line interface
"""

import chess
import pytest
from typer.testing import CliRunner

from engine.config import CONFIG
from engine.core.board import ChessBoard
from engine.core.book import OPENING_BOOK
from engine.core.model import Color, Piece, PieceKind, Position
from engine.main import Engine, get_best_move, get_valid_moves

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
FIRST_BOOK_MOVES = {m.uci for m in OPENING_BOOK[""]}


# ════════════════════════════════════════════════════════════════════════════
#  GAME SESSION
# ════════════════════════════════════════════════════════════════════════════


class TestChessBoard:
    def test_initial_position(self):
        b = ChessBoard()
        assert b.get_fen() == START_FEN
        assert b.turn is Color.WHITE

    def test_make_legal_move(self):
        b = ChessBoard()
        assert b.make_move("e2e4") is True
        assert b.move_history == ["e2e4"]
        assert b.turn is Color.BLACK
        assert b.get_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - - 0 1"

    def test_fullmove_number_advances_after_black(self):
        b = ChessBoard()
        b.make_move("e2e4")
        b.make_move("e7e5")
        assert b.get_fen().endswith("w - - 0 2")

    def test_make_illegal_move(self):
        b = ChessBoard()
        assert b.make_move("e2e5") is False
        assert b.make_move("e7e5") is False  # not black's turn
        assert b.get_fen() == START_FEN

    def test_make_garbage_input(self):
        b = ChessBoard()
        assert b.make_move("zzzz") is False
        assert b.make_move("") is False
        assert b.make_move("12345") is False
        assert b.make_move("0000") is False

    def test_undo_move(self):
        b = ChessBoard()
        b.make_move("e2e4")
        b.undo_move()
        assert b.get_fen() == START_FEN
        assert b.move_history == []

    def test_undo_empty(self):
        b = ChessBoard()
        b.undo_move()  # Should not crash
        assert b.get_fen() == START_FEN

    def test_multiple_undo(self):
        b = ChessBoard()
        for uci in ("e2e4", "e7e5", "g1f3"):
            b.make_move(uci)
        for _ in range(3):
            b.undo_move()
        assert b.get_fen() == START_FEN

    def test_set_fen_drops_castling_and_en_passant(self):
        b = ChessBoard()
        b.set_fen("rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3")
        assert b.get_fen() == "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w - - 0 3"
        assert "e5d6" not in b.get_legal_moves()

    def test_castling_is_not_generated(self):
        b = ChessBoard("r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1")
        assert "e1g1" not in b.get_legal_moves()
        assert b.make_move("e1g1") is False

    @pytest.mark.parametrize("fen", [
        "invalid",
        "8/8/8/8/8/8/8/4K3 w - - 0 1",
        "4k3/8/8/8/8/8/8/8 b - - 0 1",
        "4k3/8/8/8/8/8/4R3/4K3 w - - 0 1",  # black in check with white to move
    ])
    def test_rejects_bad_fen(self, fen):
        with pytest.raises(ValueError):
            ChessBoard(fen)

    def test_reset(self):
        b = ChessBoard("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
        b.reset()
        assert b.get_fen() == START_FEN
        assert b.book_history() == []

    def test_promotion_defaults_to_queen(self):
        b = ChessBoard("8/P6k/8/8/8/8/8/K7 w - - 0 1")
        assert b.make_move("a7a8") is True
        assert b.move_history == ["a7a8q"]
        assert b.board.piece_at(Position.from_name("a8")) == Piece(PieceKind.QUEEN, Color.WHITE)

    def test_underpromotion(self):
        b = ChessBoard("8/P6k/8/8/8/8/8/K7 w - - 0 1")
        assert b.make_move("a7a8n") is True
        assert b.get_fen().startswith("N7/")

    def test_captures_are_tracked_and_undone(self):
        b = ChessBoard("4k3/8/8/3p4/4P3/8/8/4K3 w - - 0 1")
        b.make_move("e4d5")
        assert b.captured_pieces == [Piece(PieceKind.PAWN, Color.BLACK)]
        b.undo_move()
        assert b.captured_pieces == []

    def test_checkmate_status(self):
        b = ChessBoard(FOOLS_MATE)
        status = b.status()
        assert b.get_legal_moves() == []
        assert status.in_check and status.checkmate
        assert status.winner is Color.BLACK
        assert b.is_game_over()

    def test_stalemate_status(self):
        status = ChessBoard(STALEMATE).status()
        assert status.stalemate
        assert not status.checkmate
        assert status.winner is None
        assert status.is_game_over

    def test_fools_mate_played_out(self):
        b = ChessBoard()
        for uci in ("f2f3", "e7e5", "g2g4", "d8h4"):
            assert b.make_move(uci), uci
        assert b.status().checkmate
        assert b.get_fen().split()[0] == FOOLS_MATE.split()[0]

    def test_book_history(self):
        b = ChessBoard()
        b.make_move("d2d4")
        assert b.book_history() == ["d2d4"]
        b.set_fen(STALEMATE)
        assert b.book_history() is None
        b.set_fen(chess.STARTING_FEN)
        assert b.book_history() == []


# ════════════════════════════════════════════════════════════════════════════
#  ENGINE FACADE
# ════════════════════════════════════════════════════════════════════════════


class TestEngineWrapper:
    def test_opening_move_comes_from_book(self):
        eng = Engine(seed=1)
        move, _score = eng.get_best_move()
        assert move in FIRST_BOOK_MOVES

    def test_no_move_when_mated(self):
        eng = Engine(fen=FOOLS_MATE)
        assert eng.get_best_move() == (None, 0)
        assert eng.play_best_move() is None

    def test_play_best_move_advances_game(self):
        eng = Engine("easy", seed=2, fen="4k3/8/8/3p4/4P3/8/8/4K3 w - - 0 1")
        move = eng.play_best_move()
        assert move is not None
        assert eng.board.move_history == [move]
        assert eng.board.turn is Color.BLACK

    def test_make_illegal_move(self):
        eng = Engine()
        assert eng.make_move("e2e5") is False
        assert eng.make_move("e2e4") is True

    def test_new_game(self):
        eng = Engine("easy", seed=3)
        eng.play_best_move()
        eng.new_game(STALEMATE)
        assert eng.board.get_fen() == STALEMATE
        eng.new_game()
        assert eng.board.get_fen() == START_FEN
        assert len(eng.search.tt) == 0

    def test_unknown_difficulty(self):
        with pytest.raises(ValueError):
            Engine("impossible")

    def test_default_difficulty_from_config(self):
        assert Engine().difficulty == CONFIG.search.difficulty

    def test_module_level_get_best_move(self):
        b = ChessBoard()
        b.make_move("e2e4")
        move = get_best_move(b.board, "easy", b.captured_pieces)
        assert move.uci() in b.get_legal_moves()

    def test_module_level_get_valid_moves(self):
        b = ChessBoard()
        g1 = Position.from_name("g1")
        dests = get_valid_moves(g1, b.board.piece_at(g1), b.board)
        assert sorted(d.name for d in dests) == ["f3", "h3"]


# ════════════════════════════════════════════════════════════════════════════
#  SELF-PLAY
# ════════════════════════════════════════════════════════════════════════════


class TestSelfPlay:
    def test_short_game_stays_legal(self):
        """Engine plays both sides; every move must be legal for python-chess."""
        eng = Engine("easy", seed=11)
        reference = chess.Board()
        reference.castling_rights = chess.BB_EMPTY

        for _ply in range(8):
            if eng.board.is_game_over():
                break
            move = eng.play_best_move()
            assert chess.Move.from_uci(move) in reference.legal_moves
            reference.push_uci(move)

        assert len(eng.board.move_history) == len(reference.move_stack)
        assert eng.board.get_fen().split()[0] == reference.board_fen()

    def test_winning_side_finishes_the_game(self):
        eng = Engine("medium", seed=5, fen="7k/6pp/8/8/8/8/8/R5K1 w - - 0 1")
        eng.play_best_move()
        status = eng.board.status()
        assert status.checkmate
        assert status.winner is Color.WHITE


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, game

        self.client = TestClient(app)
        # Reset state before each test
        game.new_game()

    def test_get_board_initial(self):
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert data["fen"] == START_FEN
        assert data["turn"] == "white"
        assert data["is_game_over"] is False
        assert data["winner"] is None
        assert len(data["legal_moves"]) == 20
        assert data["opening"] == "Unknown Opening"

    def test_post_move_valid(self):
        response = self.client.post("/move", json={"move": "e2e4"})
        assert response.status_code == 200
        data = response.json()
        assert data["move"] == "e2e4"
        assert "4P3" in data["fen"]
        assert self.client.get("/board").json()["opening"] == "King's Pawn Opening"

    def test_post_move_illegal(self):
        response = self.client.post("/move", json={"move": "e2e5"})
        assert response.status_code == 400

    def test_post_move_invalid_format(self):
        response = self.client.post("/move", json={"move": "zzzz"})
        assert response.status_code == 400

    def test_set_position_valid(self):
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - - 0 1"
        response = self.client.post("/position", json={"fen": fen})
        assert response.status_code == 200
        assert response.json()["fen"] == fen
        assert self.client.get("/board").json()["opening"] is None

    def test_set_position_invalid(self):
        response = self.client.post("/position", json={"fen": "invalid"})
        assert response.status_code == 400

    def test_set_position_with_king_capturable(self):
        response = self.client.post("/position", json={"fen": "4k3/8/8/8/8/8/4R3/4K3 w - - 0 1"})
        assert response.status_code == 400
        assert self.client.get("/board").json()["fen"] == START_FEN

    def test_valid_moves(self):
        response = self.client.post("/valid-moves", json={"square": "e2"})
        assert response.status_code == 200
        data = response.json()
        assert data["piece"] == "P"
        assert sorted(data["destinations"]) == ["e3", "e4"]

    def test_valid_moves_empty_square(self):
        data = self.client.post("/valid-moves", json={"square": "e4"}).json()
        assert data["piece"] is None
        assert data["destinations"] == []

    def test_valid_moves_bad_square(self):
        response = self.client.post("/valid-moves", json={"square": "z9"})
        assert response.status_code == 400

    def test_search_returns_move(self):
        response = self.client.post("/search", json={"difficulty": "easy"})
        assert response.status_code == 200
        data = response.json()
        assert data["difficulty"] == "easy"
        assert chess.Move.from_uci(data["best_move"]) in chess.Board().legal_moves
        # search alone does not play the move
        assert data["fen"] == START_FEN

    def test_search_and_play(self):
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/search", json={"difficulty": "easy", "play": True})
        data = response.json()
        board = self.client.get("/board").json()
        assert board["turn"] == "white"
        assert data["fen"] == board["fen"]

    def test_search_off_book_position(self):
        self.client.post("/position", json={"fen": "6k1/8/8/3r4/8/8/8/3Q2K1 w - - 0 1"})
        data = self.client.post("/search", json={"difficulty": "easy"}).json()
        assert data["from_book"] is False
        assert data["score"] > 700

    def test_search_bad_difficulty(self):
        response = self.client.post("/search", json={"difficulty": "impossible"})
        assert response.status_code == 400

    def test_search_game_over_returns_400(self):
        self.client.post("/position", json={"fen": FOOLS_MATE})
        board = self.client.get("/board").json()
        assert board["is_checkmate"] is True
        assert board["winner"] == "black"
        response = self.client.post("/search")
        assert response.status_code == 400

    def test_reset_board(self):
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/reset")
        assert response.status_code == 200
        assert response.json()["fen"] == START_FEN

    def test_full_api_game_flow(self):
        r = self.client.get("/board")
        assert r.json()["turn"] == "white"

        self.client.post("/move", json={"move": "e2e4"})
        r = self.client.get("/board")
        assert r.json()["turn"] == "black"

        r = self.client.post("/search", json={"difficulty": "easy"})
        assert r.json()["best_move"] is not None

        self.client.post("/reset")
        assert self.client.get("/board").json()["fen"] == START_FEN


# ════════════════════════════════════════════════════════════════════════════
#  COMMAND-LINE INTERFACE
# ════════════════════════════════════════════════════════════════════════════


class TestCLI:
    def setup_method(self):
        from interface.cli import app

        self.app = app
        self.runner = CliRunner()

    def test_moves(self):
        result = self.runner.invoke(self.app, ["moves", "e2"])
        assert result.exit_code == 0
        assert "e3 e4" in result.output

    def test_moves_empty_square(self):
        result = self.runner.invoke(self.app, ["moves", "e4"])
        assert result.exit_code == 0
        assert "e4 is empty" in result.output

    def test_moves_bad_square(self):
        result = self.runner.invoke(self.app, ["moves", "z9"])
        assert result.exit_code != 0

    def test_bestmove_from_start(self):
        result = self.runner.invoke(self.app, ["bestmove", "--seed", "1"])
        assert result.exit_code == 0
        assert result.output.split()[1] in FIRST_BOOK_MOVES

    def test_bestmove_when_mated(self):
        result = self.runner.invoke(self.app, ["bestmove", "--fen", FOOLS_MATE])
        assert result.exit_code == 0
        assert "No legal moves" in result.output

    def test_bestmove_bad_difficulty(self):
        result = self.runner.invoke(self.app, ["bestmove", "-d", "impossible"])
        assert result.exit_code != 0

    def test_bestmove_bad_fen(self):
        result = self.runner.invoke(self.app, ["bestmove", "--fen", "invalid"])
        assert result.exit_code != 0

    def test_play_quit(self):
        result = self.runner.invoke(self.app, ["play"], input="quit\n")
        assert result.exit_code == 0
        assert "Bye." in result.output

    def test_play_end_of_input(self):
        result = self.runner.invoke(self.app, ["play"], input="")
        assert result.exit_code == 0
        assert "Bye." in result.output

    def test_play_rejects_illegal_move(self):
        result = self.runner.invoke(self.app, ["play"], input="e2e5\nquit\n")
        assert "Illegal move" in result.output

    def test_play_finished_position(self):
        result = self.runner.invoke(self.app, ["play", "--fen", FOOLS_MATE])
        assert result.exit_code == 0
        assert "Checkmate. Engine wins." in result.output

    def test_play_engine_moves_first_as_white(self):
        result = self.runner.invoke(self.app, ["play", "-c", "black", "--seed", "4"], input="quit\n")
        assert result.exit_code == 0
        assert "Engine plays:" in result.output

    def test_play_bad_color(self):
        result = self.runner.invoke(self.app, ["play", "-c", "green"])
        assert result.exit_code != 0
