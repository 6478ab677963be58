"""
UCCI gRPC Server

Implements the UcciService gRPC interface for Chinese chess position analysis.
"""

from __future__ import annotations

import logging
from concurrent import futures

import grpc

from common import GracefulServer, grpc_error_handler

from .config import EngineConfig, PoolConfig, ServerConfig
from .engine import AnalysisResult
from .generated import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthCheckRequest,
    HealthCheckResponse,
    SearchInfo,
    UcciServiceServicer,
    add_UcciServiceServicer_to_server,
)
from .pool import EnginePool
from .protocol import Info

logger = logging.getLogger(__name__)


def _search_info(info: Info) -> SearchInfo:
    return SearchInfo(
        depth=info.depth or 0,
        score=info.score or 0,
        time_ms=info.time or 0,
        nodes=info.nodes or 0,
        pv=info.pv,
        currmove=info.currmove or "",
        message=info.message or "",
    )


def build_response(result: AnalysisResult) -> AnalyzeResponse:
    """Convert an AnalysisResult to its wire message."""
    return AnalyzeResponse(
        outcome=result.outcome,
        best_move=result.best_move or "",
        ponder_move=result.ponder or "",
        depth=result.depth,
        score=result.score or 0,
        pv=result.pv,
        infos=[_search_info(info) for info in result.infos],
    )


class UcciServiceImpl(UcciServiceServicer):
    """gRPC service implementation for UCCI position analysis."""

    def __init__(self, pool: EnginePool) -> None:
        self._pool = pool

    @grpc_error_handler(default_response=lambda: AnalyzeResponse())
    def Analyze(
        self,
        request: AnalyzeRequest,
        context: grpc.ServicerContext,
    ) -> AnalyzeResponse:
        """Search a position on a pooled engine.

        Args:
            request: FEN, moves played from it, and search limits.
            context: gRPC service context.

        Returns:
            AnalyzeResponse with the engine's decision and search telemetry.
        """
        logger.debug(f"Analyze request: fen={request.fen}, depth={request.depth}")

        with self._pool.engine() as engine:
            result = engine.analyze(
                fen=request.fen,
                moves=list(request.moves),
                depth=request.depth if request.depth > 0 else None,
                time_ms=request.time_limit_ms if request.time_limit_ms > 0 else None,
                nodes=request.nodes if request.nodes > 0 else None,
                ban_moves=list(request.ban_moves),
            )

        return build_response(result)

    def HealthCheck(
        self,
        request: HealthCheckRequest,
        context: grpc.ServicerContext,
    ) -> HealthCheckResponse:
        """Report pool health: healthy while at least one engine process is alive."""
        health = self._pool.health_check()

        return HealthCheckResponse(
            healthy=health["healthy"] > 0,
            version=health["version"],
        )


def create_server(
    server_config: ServerConfig | None = None,
    pool_config: PoolConfig | None = None,
    engine_config: EngineConfig | None = None,
) -> tuple[grpc.Server, EnginePool]:
    """Create and configure the gRPC server with engine pool.

    Returns:
        Tuple of (server, pool). Caller should start pool, then server.
    """
    server_config = server_config or ServerConfig()
    pool_config = pool_config or PoolConfig()
    engine_config = engine_config or EngineConfig()

    pool = EnginePool(pool_config, engine_config)

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=server_config.max_workers),
        maximum_concurrent_rpcs=server_config.max_concurrent_rpcs,
    )

    servicer = UcciServiceImpl(pool)
    add_UcciServiceServicer_to_server(servicer, server)  # type: ignore[no-untyped-call]

    server.add_insecure_port(f"[::]:{server_config.port}")

    return server, pool


def serve(
    server_config: ServerConfig | None = None,
    pool_config: PoolConfig | None = None,
    engine_config: EngineConfig | None = None,
) -> None:
    """Start the UCCI gRPC server and block until SIGTERM/SIGINT."""
    server_config = server_config or ServerConfig()

    server, pool = create_server(server_config, pool_config, engine_config)

    pool.start()

    graceful = GracefulServer(
        server,
        grace_period=server_config.grace_period,
        on_shutdown=pool.shutdown,
    )
    with graceful:
        logger.info(f"UCCI gRPC server started on port {server_config.port}")
        graceful.wait()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    serve()
