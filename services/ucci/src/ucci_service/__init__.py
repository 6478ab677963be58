"""
UCCI bridge for Chinese chess engines.

Drives UCCI engines (ElephantEye, Pikafish, ...) as subprocesses and exposes
them through a typed client, a thread-safe engine pool and a gRPC service.
"""

from .channel import ProcessChannel
from .client import UcciClient
from .config import EngineConfig, PoolConfig, ServerConfig, load_engine_config
from .engine import AnalysisResult, UcciEngine, validate_fen
from .parser import parse_response
from .pool import EnginePool
from .protocol import (
    Draw,
    EngineInfo,
    EngineOption,
    EngineState,
    Info,
    Move,
    MoveResult,
    NoMove,
    OptionType,
    Resign,
)
from .serializer import serialize_command, serialize_response
from .server import UcciServiceImpl, create_server, serve
from .state import ProtocolStateMachine

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "EngineConfig",
    "PoolConfig",
    "ServerConfig",
    "load_engine_config",
    # Protocol core
    "ProcessChannel",
    "ProtocolStateMachine",
    "UcciClient",
    "parse_response",
    "serialize_command",
    "serialize_response",
    # Protocol model
    "EngineInfo",
    "EngineOption",
    "EngineState",
    "Info",
    "OptionType",
    "MoveResult",
    "Move",
    "NoMove",
    "Draw",
    "Resign",
    # Engine
    "UcciEngine",
    "AnalysisResult",
    "validate_fen",
    # Pool
    "EnginePool",
    # Server
    "UcciServiceImpl",
    "create_server",
    "serve",
]
