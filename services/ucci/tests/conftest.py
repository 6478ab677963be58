"""Pytest configuration for UCCI service tests."""

import os
import shutil
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add the service and shared src directories to the Python path
src_path = Path(__file__).parent.parent / "src"
common_path = Path(__file__).parent.parent.parent / "common" / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(common_path))

MOCK_ENGINE = Path(__file__).parent / "mock_engine.py"

# Sample FEN positions for testing
STARTING_FEN = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR w - - 0 1"
ENDGAME_FEN = "3k5/9/9/9/9/9/9/9/9/4K4 w - - 0 1"


@pytest.fixture
def starting_fen() -> str:
    return STARTING_FEN


@pytest.fixture
def engine_available() -> bool:
    """Check if a real UCCI engine binary is available."""
    engine_path = os.environ.get("UCCI_ENGINE_PATH", "pikafish")
    return shutil.which(engine_path) is not None


@pytest.fixture
def mock_engine_command():
    """Build (executable, args) that run the scripted mock engine."""

    def command(*flags: str) -> tuple[str, tuple[str, ...]]:
        return sys.executable, ("-u", str(MOCK_ENGINE), *flags)

    return command


@pytest.fixture
def engine_config(mock_engine_command):
    """Create an engine configuration that runs the mock engine."""
    from ucci_service.config import EngineConfig

    executable, args = mock_engine_command()
    return EngineConfig(
        engine_path=Path(executable),
        engine_args=args,
        hash_mb=16,
        threads=1,
        startup_timeout=10.0,
        read_timeout=10.0,
    )


@pytest.fixture
def pool_config():
    """Create a test pool configuration."""
    from ucci_service.config import PoolConfig

    return PoolConfig(size=2, acquire_timeout=5.0)


@pytest.fixture
def mock_channel() -> MagicMock:
    """A channel double that replays scripted engine lines.

    Queue lines with ``mock_channel.read_line.side_effect = [...]``; sent
    lines are recorded in ``send_line.call_args_list``.
    """
    channel = MagicMock()
    channel.closed = False
    channel.is_running.return_value = True
    return channel


@pytest.fixture
def mock_client(monkeypatch) -> MagicMock:
    """Replace UcciClient.spawn with a client double shared by every engine."""
    from ucci_service.client import UcciClient
    from ucci_service.protocol import EngineInfo, EngineOption, EngineState, Move, OptionType

    client = MagicMock()
    client.engine_info = EngineInfo(name="Pikafish Mock")
    client.options = {
        "hashsize": EngineOption("hashsize", OptionType.SPIN, 0, 1024),
        "threads": EngineOption("threads", OptionType.SPIN, 1, 32),
    }
    client.is_ready.return_value = True
    client.is_running.return_value = True
    client.is_idle.return_value = True
    client.is_thinking.return_value = False
    client.state = EngineState.IDLE
    client.wait.return_value = Move("h2e2")
    client.read_info.return_value = []

    monkeypatch.setattr(UcciClient, "spawn", lambda *args, **kwargs: client)
    return client
