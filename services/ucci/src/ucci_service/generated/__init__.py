"""
gRPC messages and stubs for the UCCI service.

The message classes are built from protos/ucci.proto at import time; see
ucci_pb2 for details. tests/test_protos.py compiles the .proto with
grpc_tools.protoc (the test extra) and fails if the two drift apart.
"""

from .ucci_pb2 import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthCheckRequest,
    HealthCheckResponse,
    SearchInfo,
)
from .ucci_pb2_grpc import (
    UcciServiceServicer,
    UcciServiceStub,
    add_UcciServiceServicer_to_server,
)

__all__ = [
    "AnalyzeRequest",
    "AnalyzeResponse",
    "HealthCheckRequest",
    "HealthCheckResponse",
    "SearchInfo",
    "UcciServiceServicer",
    "UcciServiceStub",
    "add_UcciServiceServicer_to_server",
]
