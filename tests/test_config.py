"""Tests for environment-driven settings."""

import pytest

from neonxo.config import SPEED_PRESETS, get_speed, load_settings


def test_defaults():
    settings = load_settings({})
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.leaderboard_path is None
    assert settings.cache_capacity == 1000
    assert settings.default_speed == "fast"


def test_overrides():
    settings = load_settings(
        {
            "NEONXO_HOST": "127.0.0.1",
            "NEONXO_PORT": "9000",
            "NEONXO_LOG_LEVEL": "debug",
            "NEONXO_LEADERBOARD_PATH": "/tmp/wins.json",
            "NEONXO_CACHE_CAPACITY": "50",
            "NEONXO_DEFAULT_SPEED": "smooth",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    assert settings.leaderboard_path == "/tmp/wins.json"
    assert settings.cache_capacity == 50
    assert settings.default_speed == "smooth"


@pytest.mark.parametrize(
    "env",
    [
        {"NEONXO_PORT": "eighty"},
        {"NEONXO_CACHE_CAPACITY": "0"},
        {"NEONXO_DEFAULT_SPEED": "warp"},
    ],
)
def test_invalid_values_rejected(env):
    with pytest.raises(ValueError):
        load_settings(env)


def test_speed_presets():
    assert get_speed("fast").ai_delay_ms == 50
    assert get_speed("fast").thinking_threshold_ms == 100
    assert get_speed("normal").ai_delay_ms == 300
    assert get_speed("smooth").ai_delay_ms == 600
    assert set(SPEED_PRESETS) == {"fast", "normal", "smooth"}


def test_cache_capacity_default_matches_engine():
    from neonxo.ai import DEFAULT_CACHE_CAPACITY

    assert load_settings({}).cache_capacity == DEFAULT_CACHE_CAPACITY
