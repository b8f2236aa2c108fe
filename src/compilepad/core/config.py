"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (COMPILEPAD_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from compilepad.core.errors import ConfigError
from compilepad.core.models import CompileMode, CompileOptions

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigResolver:
    """Resolve configuration with strict priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'compiler': 'CPython'},
            user_config_path=Path('~/.config/compilepad/config.yaml')
        )

        compiler, source = resolver.resolve('compiler')
        # compiler = 'CPython', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority, dot keys or nested dicts)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/compilepad/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/compilepad/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'options.stdlib')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._from_cli(key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        try:
            value, _src = self.resolve("logging.level")
        except ConfigError:
            return DEFAULT_LOGGING_LEVEL

        if not isinstance(value, str):
            raise ConfigError(f"Config key 'logging.level' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid 'logging.level': {value!r}. Allowed values: {allowed}")
        return norm

    def resolve_bool(self, key: str) -> bool:
        """Resolve a boolean key, normalizing env/YAML strings."""
        value, src = self.resolve(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return bool(value)

        s = str(value).strip().lower()
        if s in _TRUE_VALUES:
            return True
        if s in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r} (source: {src})")

    def resolve_int(self, key: str) -> int:
        """Resolve an integer key, accepting numeric strings."""
        value, src = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int, got bool (source: {src})")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ConfigError(f"Config key '{key}' must be an int, got {value!r} (source: {src})")

    def resolve_str(self, key: str) -> str:
        """Resolve a non-empty string key."""
        value, _src = self.resolve(key)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        if value.strip() == "":
            raise ConfigError(f"Config key '{key}' must not be empty")
        return value.strip()

    def _from_cli(self, key: str) -> Any | None:
        """Get value from CLI args (flat dot keys win over nested dicts)."""
        if key in self.cli_args:
            return self.cli_args[key]
        return self._get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: COMPILEPAD_KEY_NAME
        Example: COMPILEPAD_COMPILER, COMPILEPAD_OPTIONS_STDLIB
        """
        env_key = f"COMPILEPAD_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        """Load user config file (cached)."""
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        """Load system config file (cached)."""
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'options': {'stdlib': True}}
            _get_nested(data, 'options.stdlib') -> True
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            # Compiler
            "compiler": "CPython",
            "compile_mode": "auto",
            "auto_compile_delay_ms": 800,
            "max_printing_errors": 8,
            "notification_dismiss_ms": 5000,
            # Compile options (session defaults)
            "options": {
                "stdlib": False,
                "validate": True,
                "optimize": True,
                "wide_address_mode": False,
            },
            # Logging
            "logging": {
                "level": "normal",
                "color": True,
            },
            # Web server
            "web": {
                "host": "127.0.0.1",
                "port": 8080,
            },
        }


@dataclass(frozen=True)
class PlaygroundSettings:
    """Resolved, typed settings for one compile session."""

    compiler: str = "CPython"
    compile_mode: CompileMode = CompileMode.AUTO
    auto_compile_delay_ms: int = 800
    max_printing_errors: int = 8
    notification_dismiss_ms: int = 5000
    options: CompileOptions = CompileOptions()

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> PlaygroundSettings:
        """Build settings from a resolver, coercing string values.

        Raises:
            ConfigError: If any value is invalid.
        """
        mode_value = resolver.resolve_str("compile_mode").lower()
        try:
            compile_mode = CompileMode(mode_value)
        except ValueError as e:
            allowed = ", ".join(m.value for m in CompileMode)
            raise ConfigError(f"Invalid 'compile_mode': {mode_value!r}. Allowed values: {allowed}") from e

        delay = resolver.resolve_int("auto_compile_delay_ms")
        max_errors = resolver.resolve_int("max_printing_errors")
        if max_errors < 1:
            raise ConfigError("Config key 'max_printing_errors' must be at least 1")

        options = CompileOptions(
            stdlib=resolver.resolve_bool("options.stdlib"),
            validate=resolver.resolve_bool("options.validate"),
            optimize=resolver.resolve_bool("options.optimize"),
            wide_address_mode=resolver.resolve_bool("options.wide_address_mode"),
        )

        return cls(
            compiler=resolver.resolve_str("compiler"),
            compile_mode=compile_mode,
            auto_compile_delay_ms=delay,
            max_printing_errors=max_errors,
            notification_dismiss_ms=resolver.resolve_int("notification_dismiss_ms"),
            options=options,
        )
