"""
Command-line front-end for UCCI engines.

Usage:
    ucci-client -e /usr/local/bin/pikafish info
    ucci-client analyze --fen FEN [--moves h2e2 h9g7] [--depth 12] [--verbose]
    ucci-client play [--time 5000] [--moves 10]
    ucci-client serve [--port 50055]
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from common import ConfigError, UcciBridgeError

from .config import EngineConfig, PoolConfig, ServerConfig, load_engine_config
from .engine import AnalysisResult, UcciEngine
from .protocol import Info

logger = logging.getLogger(__name__)

START_FEN = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR w - - 0 1"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ucci-client",
        description="UCCI (Universal Chinese Chess Protocol) client",
    )
    parser.add_argument(
        "-e",
        "--engine",
        type=Path,
        help="Path to the UCCI engine executable (default: config file or UCCI_ENGINE_PATH)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML config file (default: $XDG_CONFIG_HOME/ucci_bridge/config.toml)",
    )
    parser.add_argument(
        "-v",
        dest="debug",
        action="store_true",
        help="Log every protocol line sent and received",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("info", help="Initialize the engine and show its info")

    analyze = subparsers.add_parser("analyze", help="Analyze a position")
    analyze.add_argument("-f", "--fen", required=True, help="FEN string of the position")
    analyze.add_argument(
        "--moves", nargs="*", default=[], help="ICCS moves played from the position"
    )
    analyze.add_argument("-d", "--depth", type=int, default=10, help="Search depth (default: 10)")
    analyze.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Show thinking output (default: show_thinking from config)",
    )

    play = subparsers.add_parser("play", help="Let the engine play a quick game against itself")
    play.add_argument(
        "-t", "--time", type=int, default=5000, help="Milliseconds per move (default: 5000)"
    )
    play.add_argument(
        "-m", "--moves", type=int, default=10, help="Number of moves to play (default: 10)"
    )

    serve = subparsers.add_parser("serve", help="Run the gRPC analysis server")
    serve.add_argument("--port", type=int, help="Port to listen on (default: GRPC_PORT or 50055)")

    return parser


def format_info(info: Info) -> str:
    """Render one search-progress line for display."""
    parts = []
    if info.depth is not None:
        parts.append(f"depth {info.depth}:")
    if info.score is not None:
        parts.append(f"score: {info.score}")
    if info.time is not None:
        parts.append(f"time: {info.time}ms")
    if info.nodes is not None:
        parts.append(f"nodes: {info.nodes}")
    if info.pv:
        parts.append(f"pv: {' '.join(info.pv)}")
    line = " ".join(parts)
    if info.message is not None:
        line += f"\n  {info.message}"
    return line


def show_engine_info(engine: UcciEngine) -> None:
    info = engine.engine_info
    print("=== UCCI Engine Information ===")
    print(f"Name: {info.name}")
    if info.author is not None:
        print(f"Author: {info.author}")
    if info.copyright is not None:
        print(f"Copyright: {info.copyright}")

    print("\n=== Supported Options ===")
    for name, option in sorted(engine.options.items()):
        print(f"{name}: {option.type.value}")
        if option.default is not None:
            print(f"  Default: {option.default}")
        if option.min is not None or option.max is not None:
            print(f"  Range: {option.min} .. {option.max}")
        if option.vars:
            print(f"  Values: {', '.join(option.vars)}")


def show_result(result: AnalysisResult, indent: str = "") -> None:
    if result.outcome == "move":
        print(f"{indent}Best move: {result.best_move}")
        if result.ponder is not None:
            print(f"{indent}Ponder: {result.ponder}")
    elif result.outcome == "nomove":
        print(f"{indent}No move found")
    elif result.outcome == "draw":
        print(f"{indent}Engine suggests draw")
    else:
        print(f"{indent}Engine resigns")


def analyze_position(
    engine: UcciEngine,
    fen: str,
    moves: Sequence[str],
    depth: int,
    verbose: bool,
) -> None:
    print(f"Analyzing position: {fen}")
    if moves:
        print(f"Moves: {' '.join(moves)}")
    print(f"Depth: {depth}")
    print()

    result = engine.analyze(fen, moves=moves, depth=depth)

    if verbose and result.infos:
        print("=== Thinking Output ===")
        for info in result.infos:
            print(format_info(info))
        print()

    show_result(result)


def play_game(engine: UcciEngine, time_ms: int, num_moves: int) -> list[str]:
    """Let the engine play both sides from the start position.

    Returns:
        The moves played, stopping early on nomove/draw/resign.
    """
    print(f"Playing {num_moves} moves at {time_ms}ms per move")
    print()

    played: list[str] = []
    for i in range(num_moves):
        print(f"Move {i + 1}:")
        result = engine.analyze(START_FEN, moves=played, time_ms=time_ms)
        if result.best_move is None:
            show_result(result, indent="  ")
            break
        print(f"  Engine plays: {result.best_move}")
        if result.ponder is not None:
            print(f"  (Ponder: {result.ponder})")
        played.append(result.best_move)

    return played


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    config = load_engine_config(args.config)
    if args.engine is not None:
        config.engine_path = args.engine
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _engine_config(args)
    except ConfigError as e:
        print(f"Error: cannot load config: {e}", file=sys.stderr)
        return 1

    if args.command == "serve":
        from .server import serve

        logging.getLogger().setLevel(logging.DEBUG if args.debug else logging.INFO)
        server_config = ServerConfig(port=args.port) if args.port is not None else ServerConfig()
        try:
            serve(server_config, PoolConfig(), config)
        except UcciBridgeError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    engine = UcciEngine(config)
    try:
        engine.start()
        if args.command == "info":
            show_engine_info(engine)
        elif args.command == "analyze":
            verbose = config.show_thinking if args.verbose is None else args.verbose
            analyze_position(engine, args.fen, args.moves, args.depth, verbose)
        elif args.command == "play":
            play_game(engine, args.time, args.moves)
    except UcciBridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    finally:
        engine.stop()

    return 0
