"""
Display Configuration Unit Tests
================================

Tests for DisplayConfig defaults, validation and environment loading.
"""

import pytest

from nokia_gfx.config import DisplayConfig
from nokia_gfx.errors import InvalidDimensionsError
from nokia_gfx.playback import PlaybackMode


ENV_VARS = [
    "NOKIA_GFX_WIDTH",
    "NOKIA_GFX_HEIGHT",
    "NOKIA_GFX_MODE",
    "NOKIA_GFX_DELAY_MS",
    "NOKIA_GFX_PORT",
    "NOKIA_GFX_BAUD",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Test the Nokia 3310/5110 defaults."""

    def test_geometry(self):
        config = DisplayConfig()
        assert (config.width, config.height) == (84, 48)
        assert config.pages == 6
        assert config.buffer_size == 504
        assert config.start_line == 64

    def test_playback(self):
        config = DisplayConfig()
        assert config.mode is PlaybackMode.TARGETED
        assert config.frame_delay_ms == 500

    def test_bridge(self):
        config = DisplayConfig()
        assert config.port is None
        assert config.baud_rate == 115200

    def test_partial_page(self):
        assert DisplayConfig(height=20).pages == 3


class TestValidate:
    """Test configuration validation."""

    def test_defaults_valid(self):
        DisplayConfig().validate()

    def test_bad_width(self):
        with pytest.raises(InvalidDimensionsError):
            DisplayConfig(width=0).validate()

    def test_bad_start_line(self):
        with pytest.raises(ValueError, match="start_line"):
            DisplayConfig(start_line=200).validate()

    def test_bad_delay(self):
        with pytest.raises(ValueError, match="frame_delay_ms"):
            DisplayConfig(frame_delay_ms=-1).validate()


class TestFromEnv:
    """Test environment variable loading."""

    def test_no_variables(self, clean_env):
        assert DisplayConfig.from_env() == DisplayConfig()

    def test_all_variables(self, clean_env):
        clean_env.setenv("NOKIA_GFX_WIDTH", "128")
        clean_env.setenv("NOKIA_GFX_HEIGHT", "64")
        clean_env.setenv("NOKIA_GFX_MODE", "full")
        clean_env.setenv("NOKIA_GFX_DELAY_MS", "100")
        clean_env.setenv("NOKIA_GFX_PORT", "/dev/ttyACM0")
        clean_env.setenv("NOKIA_GFX_BAUD", "57600")

        config = DisplayConfig.from_env()
        assert (config.width, config.height) == (128, 64)
        assert config.mode is PlaybackMode.FULL_REWRITE
        assert config.frame_delay_ms == 100
        assert config.port == "/dev/ttyACM0"
        assert config.baud_rate == 57600

    def test_invalid_values_ignored(self, clean_env):
        clean_env.setenv("NOKIA_GFX_WIDTH", "wide")
        clean_env.setenv("NOKIA_GFX_MODE", "sometimes")
        config = DisplayConfig.from_env()
        assert config.width == 84
        assert config.mode is PlaybackMode.TARGETED
