"""AI settings and named presets."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple

import chess

from strategies import StrategyKind

DEFAULT_TIMEOUT = 2.5
DEPTH_CHOICES: Tuple[int, ...] = (2, 3, 4)


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass(slots=True, frozen=True)
class AiSettings:
    strategy: str = StrategyKind.MINIMAX.value
    depth: int = 3
    ai_color: chess.Color = chess.BLACK
    timeout: float = DEFAULT_TIMEOUT
    use_worker: bool = True
    play_vs_ai: bool = True
    min_depth: int = 1
    max_depth: int = 4

    def clamp(self) -> "AiSettings":
        min_depth = max(1, int(self.min_depth))
        max_depth = max(min_depth, int(self.max_depth))
        return replace(
            self,
            strategy=StrategyKind.parse(self.strategy).value,
            depth=int(_clamp(int(self.depth), min_depth, max_depth)),
            ai_color=bool(self.ai_color),
            timeout=max(0.01, float(self.timeout)),
            min_depth=min_depth,
            max_depth=max_depth,
        )

    @property
    def strategy_kind(self) -> StrategyKind:
        return StrategyKind.parse(self.strategy)


class SettingsRegistry:
    PRESETS: Dict[str, AiSettings] = {
        "balanced": AiSettings(),
        "quick": AiSettings(depth=2),
        "deep": AiSettings(depth=4, timeout=5.0),
        "greedy": AiSettings(strategy=StrategyKind.GREEDY.value),
        "random": AiSettings(strategy=StrategyKind.RANDOM.value),
    }

    @classmethod
    def resolve(cls, preset: str) -> AiSettings:
        if preset not in cls.PRESETS:
            raise ValueError(f"Unknown settings preset '{preset}'")
        return cls.PRESETS[preset].clamp()

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(cls.PRESETS)


__all__ = ["AiSettings", "DEFAULT_TIMEOUT", "DEPTH_CHOICES", "SettingsRegistry"]
