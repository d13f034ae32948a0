# MAIN
import argparse
import sys
from dataclasses import replace
from typing import Callable, Optional, TextIO

import chess

import chess_logic
from config import DEPTH_CHOICES, AiSettings, SettingsRegistry
from session import GameSession
from strategies import StrategyKind
from utils import console_logger, info_text, received_text, sending_text

COLOR_NAME = {chess.WHITE: "White", chess.BLACK: "Black"}
COLOR_BY_NAME = {"white": chess.WHITE, "black": chess.BLACK}

HELP_TEXT = (
    "Enter moves in UCI (e2e4, e7e8q). Commands: new, mode, color, "
    f"depth {{{','.join(str(d) for d in DEPTH_CHOICES)}}}, fen, board, history [uci], status, quit"
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play chess against a random, greedy or minimax move picker")
    parser.add_argument(
        "--preset",
        choices=SettingsRegistry.names(),
        default="balanced",
        help="Named AI settings to start from",
    )
    parser.add_argument(
        "--strategy",
        choices=[kind.value for kind in StrategyKind],
        help="Override the move picker",
    )
    parser.add_argument("--depth", type=int, help="Minimax search depth in plies")
    parser.add_argument("--ai-color", choices=sorted(COLOR_BY_NAME), help="Side played by the AI")
    parser.add_argument("--fen", help="Start from this position instead of the initial one")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for the worker before computing in-process")
    parser.add_argument(
        "--no-worker",
        action="store_true",
        help="Compute every move in the foreground thread",
    )
    parser.add_argument(
        "--self-play",
        action="store_true",
        help="Let the AI play both sides",
    )
    parser.add_argument("--max-moves", type=int, default=200, help="Ply limit for self-play")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress debug output from the search coordinator",
    )
    return parser.parse_args(argv)


def build_settings(args) -> AiSettings:
    settings = SettingsRegistry.resolve(args.preset)
    overrides = {}
    if args.strategy:
        overrides["strategy"] = args.strategy
    if args.depth is not None:
        overrides["depth"] = args.depth
    if args.ai_color:
        overrides["ai_color"] = COLOR_BY_NAME[args.ai_color]
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.no_worker:
        overrides["use_worker"] = False
    if args.self_play:
        overrides["play_vs_ai"] = True
    if not overrides:
        return settings
    return replace(settings, **overrides).clamp()


def _report_ai_move(session: GameSession, out: TextIO) -> None:
    outcome = session.coordinator.last_outcome
    if outcome is None:
        return
    played = outcome.move.uci() if outcome.move is not None else "(none)"
    print(received_text(f"{played} [{outcome.source}]"), file=out)


def run_self_play(session: GameSession, max_moves: int, out: TextIO = sys.stdout) -> str:
    plies = 0
    while plies < max_moves and not chess_logic.is_game_over(session.board):
        session.settings = replace(session.settings, ai_color=session.board.turn)
        if not session.maybe_ai_move():
            break
        outcome = session.wait()
        if outcome is None or outcome.move is None:
            break
        plies += 1
        print(info_text(f"{COLOR_NAME[not session.board.turn]}: {outcome.move.uci()}"), file=out)

    result = chess_logic.get_game_result(session.board)
    print(info_text(f"Result: {result}"), file=out)
    print(info_text(f"Moves: {chess_logic.export_move_history_san(session.board)}"), file=out)
    return result


def handle_command(session: GameSession, line: str, out: TextIO = sys.stdout) -> bool:
    """Process one line of interactive input. Returns ``False`` to quit."""
    tokens = line.split()
    if not tokens:
        return True
    name = tokens[0].lower()

    if name in {"quit", "exit"}:
        return False
    if name == "help":
        print(HELP_TEXT, file=out)
    elif name == "new":
        session.reset()
    elif name == "mode":
        print(info_text(f"AI mode: {session.cycle_strategy().value}"), file=out)
    elif name == "color":
        print(info_text(f"AI plays: {COLOR_NAME[session.toggle_ai_color()].lower()}"), file=out)
    elif name == "depth":
        try:
            depth = int(tokens[1])
        except (IndexError, ValueError):
            print(info_text("depth expects an integer"), file=out)
            return True
        print(info_text(f"Depth: {session.set_depth(depth)}"), file=out)
    elif name == "fen":
        if len(tokens) == 1:
            print(chess_logic.export_board_fen(session.board), file=out)
        else:
            try:
                session.reset(" ".join(tokens[1:]))
            except ValueError:
                print(info_text("Invalid FEN string provided."), file=out)
                return True
    elif name == "board":
        print(session.board, file=out)
    elif name == "history":
        if len(tokens) > 1 and tokens[1].lower() == "uci":
            print(chess_logic.export_move_history_uci(session.board), file=out)
        else:
            print(chess_logic.export_move_history_san(session.board), file=out)
    elif name == "status":
        pass
    else:
        print(sending_text(name), file=out)
        if not session.human_move(name):
            print(info_text(f"Illegal move: {name}"), file=out)
            return True

    if session.is_thinking:
        session.wait()
        _report_ai_move(session, out)
    print(info_text(session.status()), file=out)
    return True


def run_interactive(
    session: GameSession,
    read_line: Callable[[], str] = sys.stdin.readline,
    out: TextIO = sys.stdout,
) -> None:
    print(HELP_TEXT, file=out)
    session.maybe_ai_move()
    if session.is_thinking:
        session.wait()
        _report_ai_move(session, out)
    print(info_text(session.status()), file=out)
    while True:
        line = read_line()
        if not line:
            break
        if not handle_command(session, line.strip(), out):
            break


def main(argv=None) -> Optional[str]:
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValueError as exc:
        print(info_text(str(exc)))
        return None

    logger = console_logger(not args.quiet)
    try:
        session = GameSession(settings, fen=args.fen, logger=logger)
    except ValueError:
        print(info_text("Invalid FEN string provided."))
        return None

    try:
        if args.self_play:
            return run_self_play(session, args.max_moves)
        run_interactive(session)
    finally:
        session.close()
    return None


if __name__ == "__main__":
    main()
