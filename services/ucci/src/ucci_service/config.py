"""
Configuration for the UCCI bridge.

All configuration can be set via environment variables with sensible defaults.
Engine settings can additionally be read from a TOML file:

    engine_path = "/usr/local/bin/pikafish"
    show_thinking = true
    hash_mb = 256

    [options]
    usebook = true

The file is only ever read; nothing is written back. Every key is type
checked: a quoted ``"false"`` for a boolean or a string for a number is
rejected with ConfigError rather than coerced.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from common import ConfigError


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _get_bool(data: dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _get_int(data: dict[str, Any], key: str, minimum: int = 0) -> int:
    value = data[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(f"{key} must be at least {minimum}, got {value}")
    return value


def _get_seconds(data: dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return float(value)


def _get_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{key} must be a non-empty string, got {value!r}")
    return value


def _get_args(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(arg, str) for arg in value):
        raise ConfigError(f"{key} must be a list of strings, got {value!r}")
    return tuple(value)


def _get_options(data: dict[str, Any], key: str) -> dict[str, str | int | bool]:
    table = data[key]
    if not isinstance(table, dict):
        raise ConfigError(f"[{key}] must be a table, got {table!r}")
    for name, value in table.items():
        if not isinstance(value, (str, int, bool)):
            raise ConfigError(f"option {name} must be a string, integer or boolean")
    return dict(table)


@dataclass
class EngineConfig:
    """Configuration for a single UCCI engine instance."""

    engine_path: Path = field(
        default_factory=lambda: Path(os.environ.get("UCCI_ENGINE_PATH", "pikafish"))
    )
    engine_args: tuple[str, ...] = ()
    hash_mb: int = field(default_factory=lambda: int(os.environ.get("UCCI_HASH", "64")))
    threads: int = field(default_factory=lambda: int(os.environ.get("UCCI_THREADS", "1")))
    options: dict[str, str | int | bool] = field(default_factory=dict)
    startup_timeout: float = 5.0  # seconds to wait for each handshake line
    ready_timeout: float = 5.0  # seconds to wait for readyok after isready
    read_timeout: float | None = None  # seconds per line during searches (None = no limit)
    quit_grace_period: float = 0.1  # seconds between quit and a forced kill
    show_thinking: bool = field(default_factory=lambda: _env_flag("UCCI_SHOW_THINKING"))

    @classmethod
    def from_toml(cls, path: str | Path) -> EngineConfig:
        """Build a config from a TOML file, falling back to defaults per key.

        Raises:
            OSError: If the file cannot be read.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            ConfigError: If a key holds a value of the wrong type.
        """
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)

        config = cls()
        if "engine_path" in data:
            config.engine_path = Path(_get_str(data, "engine_path")).expanduser()
        if "engine_args" in data:
            config.engine_args = _get_args(data, "engine_args")
        if "hash_mb" in data:
            config.hash_mb = _get_int(data, "hash_mb")
        if "threads" in data:
            config.threads = _get_int(data, "threads", minimum=1)
        if "show_thinking" in data:
            config.show_thinking = _get_bool(data, "show_thinking")
        if "startup_timeout" in data:
            config.startup_timeout = _get_seconds(data, "startup_timeout")
        if "ready_timeout" in data:
            config.ready_timeout = _get_seconds(data, "ready_timeout")
        if "read_timeout" in data:
            config.read_timeout = _get_seconds(data, "read_timeout")
        if "options" in data:
            config.options.update(_get_options(data, "options"))
        return config


@dataclass
class PoolConfig:
    """Configuration for the engine pool."""

    size: int = field(default_factory=lambda: int(os.environ.get("UCCI_POOL_SIZE", "2")))
    acquire_timeout: float = 30.0  # seconds to wait for an available engine
    max_retries: int = 3  # spawn attempts when replacing a broken engine
    drain_timeout: float = 5.0  # seconds shutdown waits for checked-out engines


@dataclass
class ServerConfig:
    """Configuration for the gRPC server."""

    port: int = field(default_factory=lambda: int(os.environ.get("GRPC_PORT", "50055")))
    max_workers: int = 10
    max_concurrent_rpcs: int = 100
    grace_period: float = 5.0  # seconds in-flight RPCs get on shutdown


def default_config_path() -> Path:
    """Location of the user's config file (``$XDG_CONFIG_HOME/ucci_bridge``)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / "ucci_bridge" / "config.toml"


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    """Load the engine config from a TOML file if it exists.

    Args:
        path: Explicit config file. Defaults to default_config_path().

    Returns:
        The file's settings, or environment/default settings when no path
        was given and the default file does not exist.

    Raises:
        ConfigError: If the file cannot be read or parsed, holds a
            wrongly typed value, or an explicit path does not exist.
    """
    if path is None:
        path = default_config_path()
        if not path.is_file():
            return EngineConfig()

    try:
        return EngineConfig.from_toml(path)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e.strerror or e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path} is not valid TOML: {e}") from e
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
