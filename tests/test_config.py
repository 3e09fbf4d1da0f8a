"""
Unit tests for configuration loading and bounds validation.
"""

import pytest

from crossmix.config import Config, ConfigError


class TestConfigDefaults:
    """Test default handling."""

    def test_default_values(self):
        config = Config.default()

        assert config.get("render", "crossfade_duration_seconds") == 3.0
        assert config.get("render", "mp3_bitrate") == 128
        assert config.get("encode", "block_size") == 1152
        assert config.get("encode", "progress_every_blocks") == 8

    def test_default_is_a_copy(self):
        config = Config.default()
        config["render"]["mp3_bitrate"] = 320

        assert Config.DEFAULT_CONFIG["render"]["mp3_bitrate"] == 128

    def test_missing_section_filled(self):
        config = Config({"render": {"mp3_bitrate": 192}})

        assert config["encode"]["block_size"] == 1152
        assert config.get("render", "mp3_bitrate") == 192
        assert config.get("render", "crossfade_duration_seconds") == 3.0

    def test_get_with_default(self):
        config = Config.default()

        assert config.get("render", "unknown", "x") == "x"
        assert config.get("nosection", "param") is None

    def test_repr(self):
        assert repr(Config.default()) == "Config(version=1.0)"


class TestConfigBounds:
    """Test parameter bounds."""

    @pytest.mark.parametrize(
        "section,param,value",
        [
            ("render", "crossfade_duration_seconds", -1.0),
            ("render", "crossfade_duration_seconds", 31),
            ("render", "mp3_bitrate", 16),
            ("render", "channels", 6),
            ("encode", "block_size", 100),
            ("encode", "progress_every_blocks", 0),
            ("encode", "quality", 10),
        ],
    )
    def test_out_of_bounds(self, section, param, value):
        with pytest.raises(ConfigError, match=param):
            Config({section: {param: value}})

    def test_non_numeric_rejected(self):
        with pytest.raises(ConfigError):
            Config({"render": {"mp3_bitrate": "loud"}})

    def test_bool_rejected(self):
        with pytest.raises(ConfigError):
            Config({"render": {"channels": True}})

    def test_zero_fade_allowed(self):
        config = Config({"render": {"crossfade_duration_seconds": 0}})

        assert config.get("render", "crossfade_duration_seconds") == 0


class TestConfigLoad:
    """Test TOML loading."""

    def test_load_missing_file_uses_defaults(self, tmp_path):
        config = Config.load(str(tmp_path / "missing.toml"))

        assert config.get("encode", "block_size") == 1152

    def test_load_toml(self, tmp_path):
        path = tmp_path / "crossmix.toml"
        path.write_text(
            'config_version = "1.0"\n'
            "[render]\n"
            "crossfade_duration_seconds = 5.5\n"
            "mp3_bitrate = 256\n"
        )

        config = Config.load(str(path))

        assert config.get("render", "crossfade_duration_seconds") == 5.5
        assert config.get("render", "mp3_bitrate") == 256
        assert config.get("encode", "progress_every_blocks") == 8

    def test_load_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "env.toml"
        path.write_text("[render]\nmp3_bitrate = 320\n")
        monkeypatch.setenv("CROSSMIX_CONFIG_PATH", str(path))

        assert Config.load().get("render", "mp3_bitrate") == 320

    def test_load_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[render\nmp3_bitrate = = 1\n")

        with pytest.raises(ConfigError):
            Config.load(str(path))

    def test_load_out_of_bounds(self, tmp_path):
        path = tmp_path / "bounds.toml"
        path.write_text("[encode]\nblock_size = 64\n")

        with pytest.raises(ConfigError, match="block_size"):
            Config.load(str(path))
