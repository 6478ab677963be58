"""Protocol buffer messages for ucci.proto.

Mirrors protos/ucci.proto; a change to either must be made to both
(tests/test_protos.py compares them). The file descriptor is assembled with
descriptor_pb2 and registered in the default pool, then the message
classes are built the same way protoc-generated modules build them.
"""

from google.protobuf import descriptor_pb2 as _descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf import symbol_database as _symbol_database
from google.protobuf.internal import builder as _builder

_sym_db = _symbol_database.Default()

_Field = _descriptor_pb2.FieldDescriptorProto
_STRING = _Field.TYPE_STRING
_INT32 = _Field.TYPE_INT32
_INT64 = _Field.TYPE_INT64
_BOOL = _Field.TYPE_BOOL
_MESSAGE = _Field.TYPE_MESSAGE

# (field name, type, repeated, message type name); numbered in order from 1
_MESSAGES = {
    "AnalyzeRequest": [
        ("fen", _STRING, False, None),
        ("moves", _STRING, True, None),
        ("depth", _INT32, False, None),
        ("time_limit_ms", _INT32, False, None),
        ("nodes", _INT64, False, None),
        ("ban_moves", _STRING, True, None),
    ],
    "SearchInfo": [
        ("depth", _INT32, False, None),
        ("score", _INT32, False, None),
        ("time_ms", _INT64, False, None),
        ("nodes", _INT64, False, None),
        ("pv", _STRING, True, None),
        ("currmove", _STRING, False, None),
        ("message", _STRING, False, None),
    ],
    "AnalyzeResponse": [
        ("outcome", _STRING, False, None),
        ("best_move", _STRING, False, None),
        ("ponder_move", _STRING, False, None),
        ("depth", _INT32, False, None),
        ("score", _INT32, False, None),
        ("pv", _STRING, True, None),
        ("infos", _MESSAGE, True, ".ucci.SearchInfo"),
    ],
    "HealthCheckRequest": [],
    "HealthCheckResponse": [
        ("healthy", _BOOL, False, None),
        ("version", _STRING, False, None),
    ],
}

_METHODS = [
    ("Analyze", "AnalyzeRequest", "AnalyzeResponse"),
    ("HealthCheck", "HealthCheckRequest", "HealthCheckResponse"),
]


def _build_file() -> _descriptor_pb2.FileDescriptorProto:
    file_proto = _descriptor_pb2.FileDescriptorProto(
        name="ucci.proto", package="ucci", syntax="proto3"
    )
    for message_name, fields in _MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)
        for number, (name, field_type, repeated, type_name) in enumerate(fields, start=1):
            field = message.field.add(
                name=name,
                number=number,
                type=field_type,
                label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
            )
            if type_name:
                field.type_name = type_name

    service = file_proto.service.add(name="UcciService")
    for name, request, response in _METHODS:
        service.method.add(
            name=name,
            input_type=f".ucci.{request}",
            output_type=f".ucci.{response}",
        )
    return file_proto


DESCRIPTOR = _descriptor_pool.Default().AddSerializedFile(_build_file().SerializeToString())

_globals = globals()
_builder.BuildMessageAndEnumDescriptors(DESCRIPTOR, _globals)
_builder.BuildTopDescriptorsAndMessages(DESCRIPTOR, __name__, _globals)
