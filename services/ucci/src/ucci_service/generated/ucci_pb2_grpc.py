"""Client and server classes corresponding to the UcciService in ucci.proto."""

import grpc

from . import ucci_pb2 as ucci__pb2


class UcciServiceStub(object):
    """Search service backed by a pool of UCCI (Chinese chess) engines."""

    def __init__(self, channel):
        """Constructor.

        Args:
            channel: A grpc.Channel.
        """
        self.Analyze = channel.unary_unary(
            '/ucci.UcciService/Analyze',
            request_serializer=ucci__pb2.AnalyzeRequest.SerializeToString,
            response_deserializer=ucci__pb2.AnalyzeResponse.FromString,
        )
        self.HealthCheck = channel.unary_unary(
            '/ucci.UcciService/HealthCheck',
            request_serializer=ucci__pb2.HealthCheckRequest.SerializeToString,
            response_deserializer=ucci__pb2.HealthCheckResponse.FromString,
        )


class UcciServiceServicer(object):
    """Search service backed by a pool of UCCI (Chinese chess) engines."""

    def Analyze(self, request, context):
        """Search a position and return the engine's decision."""
        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details('Method not implemented!')
        raise NotImplementedError('Method not implemented!')

    def HealthCheck(self, request, context):
        """Report whether the engine pool has live engines."""
        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details('Method not implemented!')
        raise NotImplementedError('Method not implemented!')


def add_UcciServiceServicer_to_server(servicer, server):
    rpc_method_handlers = {
        'Analyze': grpc.unary_unary_rpc_method_handler(
            servicer.Analyze,
            request_deserializer=ucci__pb2.AnalyzeRequest.FromString,
            response_serializer=ucci__pb2.AnalyzeResponse.SerializeToString,
        ),
        'HealthCheck': grpc.unary_unary_rpc_method_handler(
            servicer.HealthCheck,
            request_deserializer=ucci__pb2.HealthCheckRequest.FromString,
            response_serializer=ucci__pb2.HealthCheckResponse.SerializeToString,
        ),
    }
    generic_handler = grpc.method_handlers_generic_handler(
        'ucci.UcciService', rpc_method_handlers)
    server.add_generic_rpc_handlers((generic_handler,))
