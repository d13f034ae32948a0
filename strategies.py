"""Move pickers: uniform random, one-ply greedy and alpha-beta minimax.

This is the only copy of the decision logic. The background search worker
and the foreground fallback both go through :func:`select_move`, so both
paths always pick the same move for the same inputs.
"""

from __future__ import annotations

import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import chess

import chess_logic
from evaluation import MATE_SCORE, PIECE_VALUES_BY_KIND, evaluate

GREEDY_SENTINEL = -1e15
GREEDY_CHECK_BONUS = 5


@dataclass(frozen=True)
class EngineMove:
    """Move handed across the worker boundary: squares plus optional promotion."""

    from_square: str
    to_square: str
    promotion: Optional[str] = None

    @classmethod
    def from_chess(cls, move: chess.Move) -> "EngineMove":
        promotion = chess.piece_symbol(move.promotion) if move.promotion else None
        return cls(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            promotion=promotion,
        )

    def to_chess(self) -> chess.Move:
        promotion = chess.PIECE_SYMBOLS.index(self.promotion) if self.promotion else None
        return chess.Move(
            chess.parse_square(self.from_square),
            chess.parse_square(self.to_square),
            promotion=promotion,
        )

    def uci(self) -> str:
        return f"{self.from_square}{self.to_square}{self.promotion or ''}"


class StrategyKind(str, Enum):
    RANDOM = "random"
    GREEDY = "greedy"
    MINIMAX = "minimax"

    @classmethod
    def parse(cls, value: Any) -> "StrategyKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown strategy '{value}'") from None


@dataclass
class StrategyResult:
    move: Optional[EngineMove]
    strategy_name: str
    score: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class MoveStrategy(ABC):
    def __init__(self, *, name: Optional[str] = None):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def generate_move(self, board: chess.Board, depth: int, ai_color: chess.Color) -> StrategyResult:
        ...

    def _no_move(self) -> StrategyResult:
        return StrategyResult(move=None, strategy_name=self.name)


class RandomStrategy(MoveStrategy):
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(name=StrategyKind.RANDOM.value)
        self._rng = rng or random.Random()

    def generate_move(self, board: chess.Board, depth: int, ai_color: chess.Color) -> StrategyResult:
        if chess_logic.is_game_over(board):
            return self._no_move()
        moves = chess_logic.legal_moves(board)
        if not moves:
            return self._no_move()
        return StrategyResult(move=EngineMove.from_chess(self._rng.choice(moves)), strategy_name=self.name)


class GreedyStrategy(MoveStrategy):
    """Pick the best one-ply capture/check, first-encountered on ties."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(name=StrategyKind.GREEDY.value)
        self._rng = rng or random.Random()

    @staticmethod
    def score_move(info: chess_logic.MoveInfo) -> float:
        score = 0
        if info.captured:
            score += PIECE_VALUES_BY_KIND.get(info.captured, 0) - PIECE_VALUES_BY_KIND.get(info.piece, 0) + 1
        if "#" in info.san:
            score += MATE_SCORE
        elif "+" in info.san:
            score += GREEDY_CHECK_BONUS
        return score

    def generate_move(self, board: chess.Board, depth: int, ai_color: chess.Color) -> StrategyResult:
        if chess_logic.is_game_over(board):
            return self._no_move()
        moves: List[chess_logic.MoveInfo] = chess_logic.legal_moves(board, verbose=True)
        if not moves:
            return self._no_move()

        best: Optional[chess_logic.MoveInfo] = None
        best_score = GREEDY_SENTINEL
        for info in moves:
            score = self.score_move(info)
            if score > best_score:
                best_score = score
                best = info

        if best is None:
            fallback = self._rng.choice(moves)
            return StrategyResult(move=EngineMove.from_chess(fallback.move), strategy_name=self.name)
        return StrategyResult(move=EngineMove.from_chess(best.move), strategy_name=self.name, score=best_score)


class MinimaxStrategy(MoveStrategy):
    """Depth-limited minimax over :func:`evaluation.evaluate`.

    Parameters
    ----------
    pruning:
        Apply alpha-beta cutoffs. Disabling it walks the full tree in the same
        order, which yields the same move and score, only slower.
    """

    def __init__(self, *, pruning: bool = True) -> None:
        super().__init__(name=StrategyKind.MINIMAX.value)
        self.pruning = pruning
        self.nodes = 0

    def generate_move(self, board: chess.Board, depth: int, ai_color: chess.Color) -> StrategyResult:
        if depth < 1:
            raise ValueError(f"depth must be >= 1, got {depth}")
        self.nodes = 0
        if chess_logic.is_game_over(board):
            return self._no_move()
        root_moves = chess_logic.legal_moves(board)
        if not root_moves:
            return self._no_move()

        ai_is_white = ai_color == chess.WHITE
        best_move: Optional[chess.Move] = None
        best_score = -math.inf if ai_is_white else math.inf

        for move in root_moves:
            chess_logic.make_move(board, move)
            try:
                score = self._search(board, depth - 1, -math.inf, math.inf)
            finally:
                chess_logic.undo_move(board)
            if (score > best_score) if ai_is_white else (score < best_score):
                best_score = score
                best_move = move

        if best_move is None:
            return self._no_move()
        return StrategyResult(
            move=EngineMove.from_chess(best_move),
            strategy_name=self.name,
            score=best_score,
            metadata={"nodes": self.nodes, "depth": depth, "pruning": self.pruning},
        )

    def _search(self, board: chess.Board, depth: int, alpha: float, beta: float) -> float:
        self.nodes += 1
        if depth == 0 or chess_logic.is_game_over(board):
            return evaluate(board)
        moves = chess_logic.legal_moves(board)
        if not moves:
            return evaluate(board)

        if board.turn == chess.WHITE:
            value = -math.inf
            for move in moves:
                chess_logic.make_move(board, move)
                try:
                    child = self._search(board, depth - 1, alpha, beta)
                finally:
                    chess_logic.undo_move(board)
                value = max(value, child)
                alpha = max(alpha, value)
                if self.pruning and alpha >= beta:
                    break
            return value

        value = math.inf
        for move in moves:
            chess_logic.make_move(board, move)
            try:
                child = self._search(board, depth - 1, alpha, beta)
            finally:
                chess_logic.undo_move(board)
            value = min(value, child)
            beta = min(beta, value)
            if self.pruning and alpha >= beta:
                break
        return value


def build_strategy(kind: Any, rng: Optional[random.Random] = None) -> MoveStrategy:
    kind = StrategyKind.parse(kind)
    if kind is StrategyKind.RANDOM:
        return RandomStrategy(rng)
    if kind is StrategyKind.GREEDY:
        return GreedyStrategy(rng)
    return MinimaxStrategy()


def select_move(
    board: chess.Board,
    kind: Any,
    depth: int,
    ai_color: chess.Color,
    rng: Optional[random.Random] = None,
) -> StrategyResult:
    """Run the requested strategy against ``board`` and restore it afterwards."""
    if depth < 1:
        raise ValueError(f"depth must be >= 1, got {depth}")
    strategy = build_strategy(kind, rng)
    return strategy.generate_move(board, depth, ai_color)


__all__ = [
    "EngineMove",
    "GreedyStrategy",
    "MinimaxStrategy",
    "MoveStrategy",
    "RandomStrategy",
    "StrategyKind",
    "StrategyResult",
    "build_strategy",
    "select_move",
]
