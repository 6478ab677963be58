"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from common import ConfigError
from ucci_service.config import (
    EngineConfig,
    PoolConfig,
    ServerConfig,
    default_config_path,
    load_engine_config,
)


@pytest.fixture
def clean_env(monkeypatch) -> None:
    for name in (
        "UCCI_ENGINE_PATH",
        "UCCI_HASH",
        "UCCI_THREADS",
        "UCCI_SHOW_THINKING",
        "UCCI_POOL_SIZE",
        "GRPC_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestEnvironmentDefaults:
    """Tests for environment-variable driven defaults."""

    def test_defaults(self, clean_env) -> None:
        config = EngineConfig()
        assert config.engine_path == Path("pikafish")
        assert config.engine_args == ()
        assert config.hash_mb == 64
        assert config.threads == 1
        assert config.options == {}
        assert config.startup_timeout == 5.0
        assert config.ready_timeout == 5.0
        assert config.read_timeout is None
        assert config.quit_grace_period == 0.1
        assert config.show_thinking is False

    def test_engine_env(self, clean_env, monkeypatch) -> None:
        monkeypatch.setenv("UCCI_ENGINE_PATH", "/opt/eleeye/eleeye")
        monkeypatch.setenv("UCCI_HASH", "256")
        monkeypatch.setenv("UCCI_THREADS", "4")
        monkeypatch.setenv("UCCI_SHOW_THINKING", "yes")

        config = EngineConfig()
        assert config.engine_path == Path("/opt/eleeye/eleeye")
        assert config.hash_mb == 256
        assert config.threads == 4
        assert config.show_thinking is True

    def test_pool_and_server_env(self, clean_env, monkeypatch) -> None:
        monkeypatch.setenv("UCCI_POOL_SIZE", "6")
        monkeypatch.setenv("GRPC_PORT", "6000")
        assert PoolConfig().size == 6
        assert ServerConfig().port == 6000

    def test_pool_and_server_defaults(self, clean_env) -> None:
        assert PoolConfig().size == 2
        assert ServerConfig().port == 50055

    def test_options_not_shared(self) -> None:
        first = EngineConfig()
        first.options["usebook"] = True
        assert EngineConfig().options == {}


class TestTomlConfig:
    """Tests for the TOML config file."""

    def test_from_toml(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            'engine_path = "/usr/local/bin/eleeye"\n'
            "show_thinking = true\n"
            "hash_mb = 128\n"
            "threads = 2\n"
            "\n"
            "[options]\n"
            "usebook = false\n"
            'style = "risky"\n'
        )

        config = EngineConfig.from_toml(path)

        assert config.engine_path == Path("/usr/local/bin/eleeye")
        assert config.show_thinking is True
        assert config.hash_mb == 128
        assert config.threads == 2
        assert config.options == {"usebook": False, "style": "risky"}

    def test_missing_keys_use_defaults(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("hash_mb = 32\n")

        config = EngineConfig.from_toml(path)

        assert config.engine_path == Path("pikafish")
        assert config.hash_mb == 32

    def test_invalid_toml(self, tmp_path: Path) -> None:
        import tomllib

        path = tmp_path / "config.toml"
        path.write_text("engine_path = \n")
        with pytest.raises(tomllib.TOMLDecodeError):
            EngineConfig.from_toml(path)

    def test_timeouts(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("startup_timeout = 2\nready_timeout = 0.5\nread_timeout = 30\n")

        config = EngineConfig.from_toml(path)

        assert config.startup_timeout == 2.0
        assert config.ready_timeout == 0.5
        assert config.read_timeout == 30.0

    def test_engine_args(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('engine_args = ["-u", "engine.py"]\n')
        assert EngineConfig.from_toml(path).engine_args == ("-u", "engine.py")

    def test_file_is_not_written(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("threads = 3\n")
        before = path.read_bytes()
        EngineConfig.from_toml(path)
        assert path.read_bytes() == before


class TestLoadEngineConfig:
    """Tests for config file discovery."""

    def test_default_path_uses_xdg(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_config_path() == tmp_path / "ucci_bridge" / "config.toml"

    def test_default_path_falls_back_to_home(self, monkeypatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert default_config_path() == Path.home() / ".config" / "ucci_bridge" / "config.toml"

    def test_missing_default_file(self, clean_env, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_engine_config() == EngineConfig()

    def test_default_file_loaded(self, clean_env, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        config_dir = tmp_path / "ucci_bridge"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('engine_path = "/opt/pikafish"\n')

        assert load_engine_config().engine_path == Path("/opt/pikafish")

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read") as exc_info:
            load_engine_config(tmp_path / "nope.toml")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_invalid_toml_is_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("engine_path = \n")
        with pytest.raises(ConfigError, match="not valid TOML"):
            load_engine_config(path)

    def test_bad_value_names_the_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('hash_mb = "lots"\n')
        with pytest.raises(ConfigError) as exc_info:
            load_engine_config(path)
        assert str(exc_info.value).startswith(str(path))
        assert "hash_mb must be an integer" in str(exc_info.value)


class TestTomlTypeChecks:
    """Tests that wrongly typed values are rejected, not coerced."""

    @pytest.mark.parametrize(
        ("line", "message"),
        [
            ('show_thinking = "false"', "show_thinking must be true or false"),
            ("show_thinking = 0", "show_thinking must be true or false"),
            ('hash_mb = "lots"', "hash_mb must be an integer"),
            ("hash_mb = 1.5", "hash_mb must be an integer"),
            ("hash_mb = true", "hash_mb must be an integer"),
            ("hash_mb = -1", "hash_mb must be at least 0"),
            ("threads = 0", "threads must be at least 1"),
            ('engine_path = ""', "engine_path must be a non-empty string"),
            ("engine_path = 5", "engine_path must be a non-empty string"),
            ('engine_args = "-u"', "engine_args must be a list of strings"),
            ("engine_args = [1, 2]", "engine_args must be a list of strings"),
            ('ready_timeout = "soon"', "ready_timeout must be a number of seconds"),
            ("read_timeout = 0", "read_timeout must be positive"),
            ("options = 3", "[options] must be a table"),
        ],
    )
    def test_rejected(self, clean_env, tmp_path: Path, line: str, message: str) -> None:
        path = tmp_path / "config.toml"
        path.write_text(line + "\n")
        with pytest.raises(ConfigError) as exc_info:
            EngineConfig.from_toml(path)
        assert message in str(exc_info.value)

    def test_nested_option_rejected(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[options]\nbookfiles = [\"a.dat\", \"b.dat\"]\n")
        with pytest.raises(ConfigError, match="option bookfiles"):
            EngineConfig.from_toml(path)

    def test_integer_timeout_accepted(self, clean_env, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("ready_timeout = 3\n")
        config = EngineConfig.from_toml(path)
        assert config.ready_timeout == 3.0
        assert isinstance(config.ready_timeout, float)
