"""Unit tests for core.config module."""

import pytest

from compilepad.core.config import ConfigResolver, PlaygroundSettings
from compilepad.core.errors import ConfigError
from compilepad.core.models import CompileMode


@pytest.fixture
def no_files(tmp_path):
    return {
        "user_config_path": tmp_path / "nonexistent-user.yaml",
        "system_config_path": tmp_path / "nonexistent-system.yaml",
    }


class TestConfigResolver:
    """Tests for ConfigResolver."""

    def test_cli_priority(self, tmp_path, monkeypatch):
        """Test that CLI args have highest priority."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("compiler: FromFile\n")
        monkeypatch.setenv("COMPILEPAD_COMPILER", "FromEnv")

        resolver = ConfigResolver(cli_args={"compiler": "FromCli"}, user_config_path=user_config)

        assert resolver.resolve("compiler") == ("FromCli", "cli")

    def test_env_priority(self, tmp_path, monkeypatch):
        """Test that ENV overrides config files."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("compiler: FromFile\n")
        monkeypatch.setenv("COMPILEPAD_COMPILER", "FromEnv")

        resolver = ConfigResolver(user_config_path=user_config)

        assert resolver.resolve("compiler") == ("FromEnv", "env")

    def test_user_config_priority(self, tmp_path, monkeypatch):
        """Test that user config overrides system config."""
        monkeypatch.delenv("COMPILEPAD_AUTO_COMPILE_DELAY_MS", raising=False)
        user_config = tmp_path / "user.yaml"
        user_config.write_text("auto_compile_delay_ms: 300\n")
        system_config = tmp_path / "system.yaml"
        system_config.write_text("auto_compile_delay_ms: 900\n")

        resolver = ConfigResolver(user_config_path=user_config, system_config_path=system_config)

        assert resolver.resolve("auto_compile_delay_ms") == (300, "user_config")

    def test_system_config(self, tmp_path, monkeypatch):
        """Test that system config overrides defaults."""
        monkeypatch.delenv("COMPILEPAD_AUTO_COMPILE_DELAY_MS", raising=False)
        system_config = tmp_path / "system.yaml"
        system_config.write_text("auto_compile_delay_ms: 900\n")

        resolver = ConfigResolver(user_config_path=tmp_path / "missing.yaml", system_config_path=system_config)

        assert resolver.resolve("auto_compile_delay_ms") == (900, "system_config")

    def test_defaults(self, no_files, monkeypatch):
        """Test that defaults are used when nothing else provides value."""
        monkeypatch.delenv("COMPILEPAD_COMPILER", raising=False)
        resolver = ConfigResolver(**no_files)

        assert resolver.resolve("compiler") == ("CPython", "default")

    def test_nested_keys(self, tmp_path, monkeypatch):
        """Test nested keys with dot notation."""
        monkeypatch.delenv("COMPILEPAD_OPTIONS_STDLIB", raising=False)
        user_config = tmp_path / "config.yaml"
        user_config.write_text("options:\n  stdlib: true\n")

        resolver = ConfigResolver(user_config_path=user_config)

        assert resolver.resolve("options.stdlib") == (True, "user_config")

    def test_cli_flat_and_nested_keys(self, no_files):
        """Test both CLI key styles."""
        flat = ConfigResolver(cli_args={"options.optimize": False}, **no_files)
        nested = ConfigResolver(cli_args={"options": {"optimize": False}}, **no_files)

        assert flat.resolve("options.optimize") == (False, "cli")
        assert nested.resolve("options.optimize") == (False, "cli")

    def test_missing_key(self, no_files):
        """Test that unknown keys raise ConfigError."""
        resolver = ConfigResolver(**no_files)
        with pytest.raises(ConfigError, match="not found"):
            resolver.resolve("nonexistent.key")

    def test_invalid_yaml(self, tmp_path):
        """Test that broken YAML surfaces as ConfigError."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("options: [unclosed\n")

        resolver = ConfigResolver(user_config_path=user_config, system_config_path=tmp_path / "none.yaml")

        with pytest.raises(ConfigError, match="Failed to load config"):
            resolver.resolve("nothing.here")

    def test_env_bool_and_int_coercion(self, no_files, monkeypatch):
        """Test that env strings are normalized."""
        monkeypatch.setenv("COMPILEPAD_OPTIONS_VALIDATE", "off")
        monkeypatch.setenv("COMPILEPAD_AUTO_COMPILE_DELAY_MS", " 1200 ")

        resolver = ConfigResolver(**no_files)

        assert resolver.resolve_bool("options.validate") is False
        assert resolver.resolve_int("auto_compile_delay_ms") == 1200

    def test_bad_bool(self, no_files, monkeypatch):
        """Test rejection of non-boolean strings."""
        monkeypatch.setenv("COMPILEPAD_OPTIONS_STDLIB", "maybe")
        resolver = ConfigResolver(**no_files)

        with pytest.raises(ConfigError, match="must be a bool"):
            resolver.resolve_bool("options.stdlib")

    def test_logging_level(self, no_files):
        """Test logging level normalization and validation."""
        assert ConfigResolver(cli_args={"logging.level": " Debug "}, **no_files).resolve_logging_level() == "debug"

        with pytest.raises(ConfigError, match="Invalid 'logging.level'"):
            ConfigResolver(cli_args={"logging.level": "loud"}, **no_files).resolve_logging_level()


class TestPlaygroundSettings:
    """Tests for PlaygroundSettings.from_resolver."""

    def test_from_defaults(self, no_files, isolated_home):
        """Test default settings."""
        settings = PlaygroundSettings.from_resolver(ConfigResolver(**no_files))

        assert settings == PlaygroundSettings()

    def test_overrides(self, no_files, isolated_home, monkeypatch):
        """Test settings assembled from several sources."""
        monkeypatch.setenv("COMPILEPAD_COMPILE_MODE", "MANUAL")
        monkeypatch.setenv("COMPILEPAD_OPTIONS_WIDE_ADDRESS_MODE", "yes")

        resolver = ConfigResolver(cli_args={"max_printing_errors": 3}, **no_files)
        settings = PlaygroundSettings.from_resolver(resolver)

        assert settings.compile_mode == CompileMode.MANUAL
        assert settings.max_printing_errors == 3
        assert settings.options.wide_address_mode is True
        assert settings.options.pointer_size == 8

    def test_invalid_mode(self, no_files, isolated_home):
        """Test rejection of unknown compile modes."""
        resolver = ConfigResolver(cli_args={"compile_mode": "sometimes"}, **no_files)

        with pytest.raises(ConfigError, match="Invalid 'compile_mode'"):
            PlaygroundSettings.from_resolver(resolver)

    def test_invalid_max_errors(self, no_files, isolated_home):
        """Test that the error cap must be positive."""
        resolver = ConfigResolver(cli_args={"max_printing_errors": 0}, **no_files)

        with pytest.raises(ConfigError, match="at least 1"):
            PlaygroundSettings.from_resolver(resolver)
