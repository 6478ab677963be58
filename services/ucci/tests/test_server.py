"""
Unit tests for the UCCI gRPC server.
"""

from concurrent import futures
from unittest.mock import MagicMock

import grpc
import pytest

from common import (
    EngineError,
    EngineTimeoutError,
    InvalidCommandError,
    InvalidFenError,
    PoolExhaustedError,
    PoolShutdownError,
)
from ucci_service.config import EngineConfig, PoolConfig, ServerConfig
from ucci_service.engine import AnalysisResult
from ucci_service.generated import (
    AnalyzeRequest,
    HealthCheckRequest,
    UcciServiceStub,
    add_UcciServiceServicer_to_server,
)
from ucci_service.pool import EnginePool
from ucci_service.protocol import Draw, Info, Move
from ucci_service.server import UcciServiceImpl, build_response, create_server

FEN = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR w - - 0 1"

SAMPLE_RESULT = AnalysisResult(
    result=Move("h2e2", "h9g7"),
    infos=[
        Info(depth=1, score=12, pv=("h2e2",)),
        Info(depth=9, score=30, time=120, nodes=45000, pv=("h2e2", "h9g7")),
        Info(message="search done"),
    ],
)


@pytest.fixture
def mock_pool() -> MagicMock:
    return MagicMock(spec=EnginePool)


@pytest.fixture
def mock_engine(mock_pool: MagicMock) -> MagicMock:
    """An engine handed out by the mock pool's context manager."""
    engine = MagicMock()
    mock_pool.engine.return_value.__enter__ = MagicMock(return_value=engine)
    mock_pool.engine.return_value.__exit__ = MagicMock(return_value=False)
    return engine


@pytest.fixture
def mock_context() -> MagicMock:
    return MagicMock(spec=grpc.ServicerContext)


@pytest.fixture
def servicer(mock_pool: MagicMock) -> UcciServiceImpl:
    return UcciServiceImpl(mock_pool)


class TestBuildResponse:
    """Tests for result-to-message conversion."""

    def test_move(self) -> None:
        response = build_response(SAMPLE_RESULT)
        assert response.outcome == "move"
        assert response.best_move == "h2e2"
        assert response.ponder_move == "h9g7"
        assert response.depth == 9
        assert response.score == 30
        assert list(response.pv) == ["h2e2", "h9g7"]
        assert len(response.infos) == 3
        assert response.infos[1].nodes == 45000
        assert response.infos[1].time_ms == 120
        assert response.infos[2].message == "search done"

    def test_draw(self) -> None:
        response = build_response(AnalysisResult(result=Draw()))
        assert response.outcome == "draw"
        assert response.best_move == ""
        assert response.depth == 0
        assert len(response.infos) == 0


class TestUcciServiceImpl:
    """Tests for the gRPC service implementation."""

    def test_analyze_success(
        self,
        servicer: UcciServiceImpl,
        mock_engine: MagicMock,
        mock_context: MagicMock,
    ) -> None:
        mock_engine.analyze.return_value = SAMPLE_RESULT

        request = AnalyzeRequest(fen=FEN, moves=["h2e2"], depth=9, ban_moves=["b0c2"])
        response = servicer.Analyze(request, mock_context)

        assert response.best_move == "h2e2"
        assert response.depth == 9
        mock_engine.analyze.assert_called_once_with(
            fen=FEN,
            moves=["h2e2"],
            depth=9,
            time_ms=None,
            nodes=None,
            ban_moves=["b0c2"],
        )
        mock_context.abort.assert_not_called()

    def test_analyze_unset_limits(
        self,
        servicer: UcciServiceImpl,
        mock_engine: MagicMock,
        mock_context: MagicMock,
    ) -> None:
        """Zero-valued limits are passed on as absent."""
        mock_engine.analyze.return_value = SAMPLE_RESULT

        servicer.Analyze(AnalyzeRequest(fen=FEN, time_limit_ms=750), mock_context)

        kwargs = mock_engine.analyze.call_args.kwargs
        assert kwargs["depth"] is None
        assert kwargs["time_ms"] == 750
        assert kwargs["nodes"] is None

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (InvalidFenError("Invalid FEN: bad"), grpc.StatusCode.INVALID_ARGUMENT),
            (EngineTimeoutError("No response"), grpc.StatusCode.DEADLINE_EXCEEDED),
            (InvalidCommandError("wrong state"), grpc.StatusCode.FAILED_PRECONDITION),
            (EngineError("crash"), grpc.StatusCode.INTERNAL),
        ],
    )
    def test_analyze_engine_errors(
        self,
        servicer: UcciServiceImpl,
        mock_engine: MagicMock,
        mock_context: MagicMock,
        error: Exception,
        status: grpc.StatusCode,
    ) -> None:
        mock_engine.analyze.side_effect = error

        servicer.Analyze(AnalyzeRequest(fen=FEN, depth=5), mock_context)

        mock_context.abort.assert_called_once()
        assert mock_context.abort.call_args[0][0] == status

    def test_analyze_line_break_in_move(
        self,
        servicer: UcciServiceImpl,
        mock_engine: MagicMock,
        mock_context: MagicMock,
    ) -> None:
        """A move the command layer refuses to send is the caller's fault."""
        mock_engine.analyze.side_effect = ValueError("move must not contain line breaks")

        servicer.Analyze(AnalyzeRequest(fen=FEN, moves=["h2e2\nquit"]), mock_context)

        mock_context.abort.assert_called_once_with(
            grpc.StatusCode.INVALID_ARGUMENT, "move must not contain line breaks"
        )

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (PoolExhaustedError("timeout"), grpc.StatusCode.RESOURCE_EXHAUSTED),
            (PoolShutdownError("shutdown"), grpc.StatusCode.UNAVAILABLE),
        ],
    )
    def test_analyze_pool_errors(
        self,
        servicer: UcciServiceImpl,
        mock_pool: MagicMock,
        mock_context: MagicMock,
        error: Exception,
        status: grpc.StatusCode,
    ) -> None:
        mock_pool.engine.return_value.__enter__ = MagicMock(side_effect=error)

        servicer.Analyze(AnalyzeRequest(fen=FEN, depth=5), mock_context)

        mock_context.abort.assert_called_once()
        assert mock_context.abort.call_args[0][0] == status

    def test_health_check_healthy(
        self,
        servicer: UcciServiceImpl,
        mock_pool: MagicMock,
        mock_context: MagicMock,
    ) -> None:
        mock_pool.health_check.return_value = {
            "total": 2,
            "available": 2,
            "healthy": 2,
            "version": "Pikafish 2024",
        }

        response = servicer.HealthCheck(HealthCheckRequest(), mock_context)

        assert response.healthy is True
        assert response.version == "Pikafish 2024"

    def test_health_check_unhealthy(
        self,
        servicer: UcciServiceImpl,
        mock_pool: MagicMock,
        mock_context: MagicMock,
    ) -> None:
        mock_pool.health_check.return_value = {
            "total": 2,
            "available": 0,
            "healthy": 0,
            "version": "Pikafish 2024",
        }

        response = servicer.HealthCheck(HealthCheckRequest(), mock_context)

        assert response.healthy is False


class TestOverTheWire:
    """Round trips through a real gRPC server and stub."""

    @pytest.fixture
    def stub(self, mock_pool: MagicMock):
        server = grpc.server(futures.ThreadPoolExecutor(max_workers=2))
        add_UcciServiceServicer_to_server(UcciServiceImpl(mock_pool), server)
        port = server.add_insecure_port("localhost:0")
        server.start()
        channel = grpc.insecure_channel(f"localhost:{port}")
        yield UcciServiceStub(channel)
        channel.close()
        server.stop(grace=None)

    def test_analyze(self, stub, mock_engine: MagicMock) -> None:
        mock_engine.analyze.return_value = SAMPLE_RESULT

        response = stub.Analyze(AnalyzeRequest(fen=FEN, depth=9), timeout=10)

        assert response.outcome == "move"
        assert response.best_move == "h2e2"
        assert [info.depth for info in response.infos] == [1, 9, 0]

    def test_analyze_invalid_fen(self, stub, mock_engine: MagicMock) -> None:
        mock_engine.analyze.side_effect = InvalidFenError("Invalid FEN: bad")

        with pytest.raises(grpc.RpcError) as exc_info:
            stub.Analyze(AnalyzeRequest(fen="bad"), timeout=10)

        assert exc_info.value.code() == grpc.StatusCode.INVALID_ARGUMENT
        assert "Invalid FEN" in exc_info.value.details()

    def test_health_check(self, stub, mock_pool: MagicMock) -> None:
        mock_pool.health_check.return_value = {
            "total": 1,
            "available": 1,
            "healthy": 1,
            "version": "MockEngine 1.0",
        }

        response = stub.HealthCheck(HealthCheckRequest(), timeout=10)

        assert response.healthy
        assert response.version == "MockEngine 1.0"


class TestCreateServer:
    """Tests for server creation."""

    def test_create_server_with_defaults(self) -> None:
        server, pool = create_server(ServerConfig(port=0))

        assert server is not None
        assert not pool.is_started

    def test_create_server_with_custom_config(self) -> None:
        server_config = ServerConfig(port=0, max_workers=5)
        pool_config = PoolConfig(size=3)
        engine_config = EngineConfig(threads=2)

        server, pool = create_server(server_config, pool_config, engine_config)

        assert pool.size == 3


class TestWithMockEnginePool:
    """Round trips through a real server backed by a pool of mock engines."""

    @pytest.fixture
    def stub(self, engine_config: EngineConfig):
        pool = EnginePool(PoolConfig(size=1, acquire_timeout=5.0), engine_config)
        pool.start()
        server = grpc.server(futures.ThreadPoolExecutor(max_workers=2))
        add_UcciServiceServicer_to_server(UcciServiceImpl(pool), server)
        port = server.add_insecure_port("localhost:0")
        server.start()
        channel = grpc.insecure_channel(f"localhost:{port}")
        yield UcciServiceStub(channel)
        channel.close()
        server.stop(grace=None)
        pool.shutdown()

    def test_line_break_in_move_is_invalid_argument(self, stub) -> None:
        """The injected line never reaches the engine and it stays usable."""
        with pytest.raises(grpc.RpcError) as exc_info:
            stub.Analyze(AnalyzeRequest(fen=FEN, moves=["h2e2\nquit"], depth=3), timeout=10)

        assert exc_info.value.code() == grpc.StatusCode.INVALID_ARGUMENT
        assert "line breaks" in exc_info.value.details()

        response = stub.Analyze(AnalyzeRequest(fen=FEN, depth=3), timeout=10)
        assert response.outcome == "move"
        assert stub.HealthCheck(HealthCheckRequest(), timeout=10).healthy

    def test_line_break_in_fen_is_invalid_argument(self, stub) -> None:
        with pytest.raises(grpc.RpcError) as exc_info:
            stub.Analyze(AnalyzeRequest(fen=FEN + "\nquit", depth=3), timeout=10)

        assert exc_info.value.code() == grpc.StatusCode.INVALID_ARGUMENT
