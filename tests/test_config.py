# tests/test_config.py
import pytest

from arcade_arena.config import CallBreakRules, CarromPhysics, Settings, load_settings


def test_defaults():
    settings = load_settings(env={})
    assert settings == Settings()
    assert settings.call_break.num_rounds == 5
    assert settings.carrom.friction == pytest.approx(0.985)
    assert settings.carrom.striker_y == pytest.approx(340.0)


def test_env_overrides_are_coerced():
    settings = load_settings(
        env={
            "ARCADE_CALL_BREAK_NUM_ROUNDS": "3",
            "ARCADE_CARROM_FRICTION": "0.99",
            "ARCADE_ADVISOR_MODEL": "anthropic:claude-3-5-haiku-latest",
            "ARCADE_ADVISOR_TIMEOUT_SECONDS": "4",
            "UNRELATED": "x",
        }
    )
    assert settings.call_break.num_rounds == 3
    assert settings.carrom.friction == pytest.approx(0.99)
    assert settings.advisor_model == "anthropic:claude-3-5-haiku-latest"
    assert settings.advisor_timeout_seconds == pytest.approx(4.0)


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        load_settings(env={"ARCADE_CARROM_FRICTION": "sticky"})
    with pytest.raises(ValueError):
        load_settings(env={"ARCADE_CARROM_FRICTION": "1.5"})
    with pytest.raises(ValueError):
        CallBreakRules(cards_per_player=12)
    with pytest.raises(ValueError):
        CallBreakRules(min_bid=5, max_bid=4)
    with pytest.raises(ValueError):
        CarromPhysics(striker_min_x=300.0, striker_max_x=100.0)
