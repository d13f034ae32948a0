"""Game session: the authoritative board plus the human-vs-AI turn logic."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

import chess

import chess_logic
from config import AiSettings
from dispatch import DispatchCoordinator, DispatchOutcome, create_worker
from strategies import StrategyKind

STRATEGY_CYCLE = {
    StrategyKind.MINIMAX: StrategyKind.GREEDY,
    StrategyKind.GREEDY: StrategyKind.RANDOM,
    StrategyKind.RANDOM: StrategyKind.MINIMAX,
}


class GameSession:
    """Owns the live game and asks the coordinator for AI replies.

    Only this object mutates :attr:`board`. Human moves are applied directly,
    and AI moves are applied by the coordinator once a result is accepted.
    """

    def __init__(
        self,
        settings: Optional[AiSettings] = None,
        coordinator: Optional[DispatchCoordinator] = None,
        *,
        fen: Optional[str] = None,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.settings = (settings or AiSettings()).clamp()
        self._logger = logger or (lambda *_: None)
        self.board = chess.Board(fen) if fen else chess.Board()
        if coordinator is None:
            worker = create_worker(self._logger) if self.settings.use_worker else None
            coordinator = DispatchCoordinator(worker, timeout=self.settings.timeout, logger=self._logger)
        self.coordinator = coordinator

    @property
    def is_thinking(self) -> bool:
        return self.coordinator.current_id is not None

    def is_ai_turn(self) -> bool:
        return self.settings.play_vs_ai and self.board.turn == self.settings.ai_color

    def maybe_ai_move(self) -> bool:
        if not self.settings.play_vs_ai or chess_logic.is_game_over(self.board):
            return False
        if self.board.turn != self.settings.ai_color or self.is_thinking:
            return False
        self.coordinator.request_move(
            self.board,
            self.settings.strategy_kind,
            self.settings.depth,
            self.settings.ai_color,
        )
        return True

    def human_move(self, uci: str) -> bool:
        if self.is_thinking:
            return False
        try:
            move = chess.Move.from_uci(uci.strip())
        except ValueError:
            return False
        if move.promotion is None and chess_logic.is_pawn_promotion_attempt(self.board, move):
            move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
        if not chess_logic.apply_move(self.board, move):
            return False
        self.maybe_ai_move()
        return True

    def reset(self, fen: Optional[str] = None) -> None:
        self.coordinator.cancel()
        if fen:
            self.board.set_fen(fen)
        else:
            self.board.reset()
        self.maybe_ai_move()

    def _update(self, **changes) -> None:
        self.settings = replace(self.settings, **changes).clamp()
        self.maybe_ai_move()

    def cycle_strategy(self) -> StrategyKind:
        self._update(strategy=STRATEGY_CYCLE[self.settings.strategy_kind].value)
        return self.settings.strategy_kind

    def toggle_ai_color(self) -> chess.Color:
        self._update(ai_color=not self.settings.ai_color)
        return self.settings.ai_color

    def toggle_play_vs_ai(self) -> bool:
        self._update(play_vs_ai=not self.settings.play_vs_ai)
        return self.settings.play_vs_ai

    def set_depth(self, depth: int) -> int:
        self._update(depth=depth)
        return self.settings.depth

    def status(self) -> str:
        if self.is_thinking:
            return "thinking"
        return chess_logic.get_game_result(self.board)

    def poll(self) -> Optional[DispatchOutcome]:
        return self.coordinator.poll()

    def wait(self, timeout: Optional[float] = None) -> Optional[DispatchOutcome]:
        return self.coordinator.wait(timeout)

    def close(self) -> None:
        self.coordinator.cancel()
        worker = self.coordinator.worker
        if worker is not None:
            worker.stop()
