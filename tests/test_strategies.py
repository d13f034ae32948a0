import random

import chess
import pytest

import chess_logic
from strategies import (
    EngineMove,
    GreedyStrategy,
    MinimaxStrategy,
    RandomStrategy,
    StrategyKind,
    build_strategy,
    select_move,
)

BACK_RANK_MATE = "6k1/5ppp/8/8/8/8/5PPP/3R2K1 w - - 0 1"
FREE_QUEEN = "4k3/8/8/3q4/4P3/8/8/4K3 w - - 0 1"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"

SAMPLE_POSITIONS = [
    chess.STARTING_FEN,
    "r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3",
    "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2",
    "r2q1rk1/pp2bppp/2n1pn2/2pp4/3P4/2P1PN2/PP1NBPPP/R1BQ1RK1 w - - 0 10",
    "8/5P2/8/8/8/8/8/K5k1 w - - 0 1",
    "4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 1",
    FREE_QUEEN,
    BACK_RANK_MATE,
]


def _all_strategies():
    return [
        RandomStrategy(random.Random(7)),
        GreedyStrategy(random.Random(7)),
        MinimaxStrategy(),
    ]


def test_engine_move_round_trip() -> None:
    move = chess.Move.from_uci("e7e8q")
    short = EngineMove.from_chess(move)
    assert short == EngineMove("e7", "e8", "q")
    assert short.to_chess() == move
    assert short.uci() == "e7e8q"

    quiet = EngineMove.from_chess(chess.Move.from_uci("g1f3"))
    assert quiet.promotion is None
    assert quiet.uci() == "g1f3"


def test_strategy_kind_parse() -> None:
    assert StrategyKind.parse("Minimax") is StrategyKind.MINIMAX
    assert StrategyKind.parse(StrategyKind.GREEDY) is StrategyKind.GREEDY
    with pytest.raises(ValueError):
        StrategyKind.parse("alphazero")


def test_build_strategy_returns_matching_type() -> None:
    assert isinstance(build_strategy("random"), RandomStrategy)
    assert isinstance(build_strategy("greedy"), GreedyStrategy)
    assert isinstance(build_strategy(StrategyKind.MINIMAX), MinimaxStrategy)


@pytest.mark.parametrize("fen", SAMPLE_POSITIONS)
def test_every_strategy_returns_a_legal_move(fen: str) -> None:
    for strategy in _all_strategies():
        board = chess.Board(fen)
        result = strategy.generate_move(board, 2, board.turn)
        assert result.move is not None
        assert result.move.to_chess() in board.legal_moves


@pytest.mark.parametrize("fen", SAMPLE_POSITIONS)
def test_strategies_restore_the_board(fen: str) -> None:
    for strategy in _all_strategies():
        board = chess.Board(fen)
        board.push(next(iter(board.legal_moves)))
        before = chess_logic.serialize(board)
        stack_size = len(board.move_stack)
        strategy.generate_move(board, 2, board.turn)
        assert chess_logic.serialize(board) == before
        assert len(board.move_stack) == stack_size


def test_terminal_positions_yield_no_move() -> None:
    repeated = chess.Board()
    for san in ("Nf3", "Nf6", "Ng1", "Ng8", "Nf3", "Nf6", "Ng1", "Ng8"):
        repeated.push_san(san)
    mated = chess.Board()
    for san in ("f3", "e5", "g4", "Qh4#"):
        mated.push_san(san)

    for board in (chess.Board(STALEMATE), repeated, mated):
        for strategy in _all_strategies():
            result = strategy.generate_move(board, 2, board.turn)
            assert result.move is None


def test_random_strategy_covers_several_moves() -> None:
    strategy = RandomStrategy(random.Random(1234))
    board = chess.Board()
    seen = {strategy.generate_move(board, 1, chess.WHITE).move for _ in range(60)}
    assert len(seen) > 1
    assert all(move.to_chess() in board.legal_moves for move in seen)


def test_greedy_takes_free_queen_with_pawn() -> None:
    board = chess.Board(FREE_QUEEN)
    result = GreedyStrategy().generate_move(board, 1, chess.WHITE)
    assert result.move == EngineMove("e4", "d5")
    assert result.score == 900 - 100 + 1


def test_greedy_prefers_the_only_valuable_capture() -> None:
    board = chess.Board("4k3/8/8/8/8/2r5/8/1N2K3 w - - 0 1")
    result = GreedyStrategy().generate_move(board, 1, chess.WHITE)
    assert result.move == EngineMove("b1", "c3")


def test_greedy_prefers_mate_then_check() -> None:
    board = chess.Board(BACK_RANK_MATE)
    assert GreedyStrategy().generate_move(board, 1, chess.WHITE).move == EngineMove("d1", "d8")

    checking = chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
    result = GreedyStrategy().generate_move(checking, 1, chess.WHITE)
    assert result.move == EngineMove("a1", "a8")
    assert result.score == 5


def test_greedy_ties_keep_first_enumerated_move() -> None:
    board = chess.Board()
    result = GreedyStrategy().generate_move(board, 1, chess.WHITE)
    assert result.move == EngineMove.from_chess(next(iter(board.legal_moves)))
    assert result.score == 0


def test_greedy_score_move_components() -> None:
    board = chess.Board(FREE_QUEEN)
    infos = {info.move.uci(): info for info in chess_logic.legal_moves(board, verbose=True)}
    assert GreedyStrategy.score_move(infos["e4d5"]) == 801
    assert GreedyStrategy.score_move(infos["e1f1"]) == 0


def test_select_move_rejects_bad_depth() -> None:
    with pytest.raises(ValueError):
        select_move(chess.Board(), "minimax", 0, chess.WHITE)
    with pytest.raises(ValueError):
        select_move(chess.Board(), "chaos", 1, chess.WHITE)


def test_select_move_dispatches_by_kind() -> None:
    board = chess.Board(FREE_QUEEN)
    assert select_move(board, "greedy", 1, chess.WHITE).strategy_name == "greedy"
    assert select_move(board, "minimax", 1, chess.WHITE).move == EngineMove("e4", "d5")
    assert select_move(board, "random", 1, chess.WHITE, random.Random(3)).move is not None
