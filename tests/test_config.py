import chess
import pytest

from config import DEFAULT_TIMEOUT, DEPTH_CHOICES, AiSettings, SettingsRegistry
from strategies import StrategyKind


def test_defaults_match_presets() -> None:
    settings = SettingsRegistry.resolve("balanced")
    assert settings.strategy_kind is StrategyKind.MINIMAX
    assert settings.depth == 3
    assert settings.ai_color is chess.BLACK
    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.depth in DEPTH_CHOICES


def test_named_presets_resolve() -> None:
    assert SettingsRegistry.resolve("quick").depth == 2
    assert SettingsRegistry.resolve("deep").depth == 4
    assert SettingsRegistry.resolve("greedy").strategy == "greedy"
    assert SettingsRegistry.resolve("random").strategy_kind is StrategyKind.RANDOM
    assert set(SettingsRegistry.names()) == {"balanced", "quick", "deep", "greedy", "random"}


def test_unknown_preset_raises() -> None:
    with pytest.raises(ValueError):
        SettingsRegistry.resolve("grandmaster")


def test_clamp_bounds_depth_and_timeout() -> None:
    settings = AiSettings(depth=12, timeout=-1.0).clamp()
    assert settings.depth == 4
    assert settings.timeout > 0

    shallow = AiSettings(depth=-3).clamp()
    assert shallow.depth == 1

    wide = AiSettings(depth=6, max_depth=6).clamp()
    assert wide.depth == 6


def test_clamp_normalises_strategy_names() -> None:
    assert AiSettings(strategy="GREEDY").clamp().strategy == "greedy"
    with pytest.raises(ValueError):
        AiSettings(strategy="mcts").clamp()
