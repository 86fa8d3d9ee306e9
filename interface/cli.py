"""Command-line interface: play against the engine in the terminal."""

from typing import Optional

import typer
from rich.console import Console

from engine.config import CONFIG, DIFFICULTIES, check_difficulty, setup_logging
from engine.core.model import Color, Position
from engine.core.movegen import get_valid_moves
from engine.main import Engine

app = typer.Typer(
    name="gambit",
    help="Play chess against the computer.",
    add_completion=False,
)
console = Console()


def _difficulty(value: str) -> str:
    try:
        return check_difficulty(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _color(value: str) -> Color:
    try:
        return Color(value.lower())
    except ValueError:
        raise typer.BadParameter("color must be 'white' or 'black'")


def _engine(difficulty: Optional[str] = None, seed: Optional[int] = None, fen: Optional[str] = None) -> Engine:
    try:
        return Engine(difficulty, seed=seed, fen=fen)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _render(engine: Engine) -> None:
    rows = str(engine.board.board).splitlines()
    for label, row in zip("87654321", rows):
        console.print(f"[dim]{label}[/dim] {row}")
    console.print("[dim]  a b c d e f g h[/dim]")


@app.command()
def play(
    difficulty: str = typer.Option(CONFIG.search.difficulty, "--difficulty", "-d", help=f"One of: {', '.join(DIFFICULTIES)}"),
    color: str = typer.Option("white", "--color", "-c", help="Your color"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the engine's randomness"),
    fen: Optional[str] = typer.Option(None, "--fen", help="Start from this position"),
) -> None:
    """Play a game; enter moves in UCI form (e2e4), or 'moves', 'undo', 'quit'."""
    human = _color(color)
    setup_logging()
    engine = _engine(_difficulty(difficulty), seed, fen)

    console.print(f"[bold blue]{CONFIG.ui.engine_name}[/bold blue] ({engine.difficulty}) - you play {human.value}")
    while True:
        status = engine.board.status()
        if status.is_game_over:
            break
        _render(engine)
        if status.in_check:
            console.print("[yellow]Check![/yellow]")

        if engine.board.turn is not human:
            move = engine.play_best_move()
            console.print(f"Engine plays: [bold]{move}[/bold]")
            continue

        try:
            text = console.input("Your move: ").strip()
        except EOFError:
            console.print("Bye.")
            return
        if text == "quit":
            console.print("Bye.")
            return
        if text == "moves":
            console.print(" ".join(engine.board.get_legal_moves()))
        elif text == "undo":
            # take back the engine's reply and the player's move
            engine.board.undo_move()
            engine.board.undo_move()
        elif not engine.make_move(text):
            console.print(f"[red]Illegal move: {text!r}, try again.[/red]")

    _render(engine)
    if status.checkmate:
        winner = "You win" if status.winner is human else "Engine wins"
        console.print(f"[bold]Checkmate. {winner}.[/bold]")
    else:
        console.print("[bold]Stalemate.[/bold]")


@app.command()
def moves(
    square: str = typer.Argument(..., help="Square to inspect, e.g. e2"),
    fen: Optional[str] = typer.Option(None, "--fen", help="Position (default: start)"),
) -> None:
    """List the legal destinations of the piece on SQUARE."""
    engine = _engine(fen=fen)
    try:
        pos = Position.from_name(square)
    except ValueError:
        raise typer.BadParameter(f"invalid square {square!r}")
    piece = engine.board.board.piece_at(pos)
    if piece is None:
        console.print(f"{pos.name} is empty")
        return
    destinations = get_valid_moves(pos, piece, engine.board.board)
    console.print(f"{piece.symbol}@{pos.name}: {' '.join(d.name for d in destinations) or '-'}")


@app.command()
def bestmove(
    fen: Optional[str] = typer.Option(None, "--fen", help="Position (default: start)"),
    difficulty: str = typer.Option(CONFIG.search.difficulty, "--difficulty", "-d"),
    seed: Optional[int] = typer.Option(None, "--seed"),
) -> None:
    """Print the engine's move for the side to move."""
    engine = _engine(_difficulty(difficulty), seed, fen)
    move, score = engine.get_best_move()
    if move is None:
        console.print("No legal moves")
        return
    console.print(f"bestmove {move} score {score}")


if __name__ == "__main__":
    app()
