"""Protobuf message bootstrap for the etcd v3 KV and Auth subset.

Message classes are built at import time from a ``FileDescriptorProto`` that
mirrors the field numbers of etcd's ``rpc.proto`` and ``kv.proto`` so the
SDK does not depend on checked-in generated stubs. Enum fields are declared
as ``int32``, which is wire compatible.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "etcdserverpb"

KV_PUT_METHOD = f"/{PACKAGE}.KV/Put"
KV_RANGE_METHOD = f"/{PACKAGE}.KV/Range"
AUTH_AUTHENTICATE_METHOD = f"/{PACKAGE}.Auth/Authenticate"

_Field = descriptor_pb2.FieldDescriptorProto

_MESSAGES: dict[str, tuple[tuple[str, int, int, str], ...]] = {
    "ResponseHeader": (
        ("cluster_id", 1, _Field.TYPE_UINT64, ""),
        ("member_id", 2, _Field.TYPE_UINT64, ""),
        ("revision", 3, _Field.TYPE_INT64, ""),
        ("raft_term", 4, _Field.TYPE_UINT64, ""),
    ),
    "KeyValue": (
        ("key", 1, _Field.TYPE_BYTES, ""),
        ("create_revision", 2, _Field.TYPE_INT64, ""),
        ("mod_revision", 3, _Field.TYPE_INT64, ""),
        ("version", 4, _Field.TYPE_INT64, ""),
        ("value", 5, _Field.TYPE_BYTES, ""),
        ("lease", 6, _Field.TYPE_INT64, ""),
    ),
    "RangeRequest": (
        ("key", 1, _Field.TYPE_BYTES, ""),
        ("range_end", 2, _Field.TYPE_BYTES, ""),
        ("limit", 3, _Field.TYPE_INT64, ""),
        ("revision", 4, _Field.TYPE_INT64, ""),
        ("sort_order", 5, _Field.TYPE_INT32, ""),
        ("sort_target", 6, _Field.TYPE_INT32, ""),
        ("serializable", 7, _Field.TYPE_BOOL, ""),
        ("keys_only", 8, _Field.TYPE_BOOL, ""),
        ("count_only", 9, _Field.TYPE_BOOL, ""),
    ),
    "RangeResponse": (
        ("header", 1, _Field.TYPE_MESSAGE, "ResponseHeader"),
        ("kvs", 2, _Field.TYPE_MESSAGE, "KeyValue[]"),
        ("more", 3, _Field.TYPE_BOOL, ""),
        ("count", 4, _Field.TYPE_INT64, ""),
    ),
    "PutRequest": (
        ("key", 1, _Field.TYPE_BYTES, ""),
        ("value", 2, _Field.TYPE_BYTES, ""),
        ("lease", 3, _Field.TYPE_INT64, ""),
        ("prev_kv", 4, _Field.TYPE_BOOL, ""),
        ("ignore_value", 5, _Field.TYPE_BOOL, ""),
        ("ignore_lease", 6, _Field.TYPE_BOOL, ""),
    ),
    "PutResponse": (
        ("header", 1, _Field.TYPE_MESSAGE, "ResponseHeader"),
        ("prev_kv", 2, _Field.TYPE_MESSAGE, "KeyValue"),
    ),
    "AuthenticateRequest": (
        ("name", 1, _Field.TYPE_STRING, ""),
        ("password", 2, _Field.TYPE_STRING, ""),
    ),
    "AuthenticateResponse": (
        ("header", 1, _Field.TYPE_MESSAGE, "ResponseHeader"),
        ("token", 2, _Field.TYPE_STRING, ""),
    ),
}


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Build the descriptor for every message in ``_MESSAGES``."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="etcd_sdk/rpc.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for message_name, fields in _MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)
        for field_name, number, field_type, type_name in fields:
            repeated = type_name.endswith("[]")
            field = message.field.add(
                name=field_name,
                number=number,
                type=field_type,
                label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
            )
            if type_name:
                field.type_name = f".{PACKAGE}.{type_name.removesuffix('[]')}"
    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_file_descriptor().SerializeToString())


def _message_class(name: str) -> type:
    """Return the concrete message class for one message in the SDK pool."""
    return message_factory.GetMessageClass(
        _POOL.FindMessageTypeByName(f"{PACKAGE}.{name}")
    )


ResponseHeader = _message_class("ResponseHeader")
KeyValue = _message_class("KeyValue")
RangeRequest = _message_class("RangeRequest")
RangeResponse = _message_class("RangeResponse")
PutRequest = _message_class("PutRequest")
PutResponse = _message_class("PutResponse")
AuthenticateRequest = _message_class("AuthenticateRequest")
AuthenticateResponse = _message_class("AuthenticateResponse")

__all__ = [
    "AUTH_AUTHENTICATE_METHOD",
    "AuthenticateRequest",
    "AuthenticateResponse",
    "KV_PUT_METHOD",
    "KV_RANGE_METHOD",
    "KeyValue",
    "PutRequest",
    "PutResponse",
    "RangeRequest",
    "RangeResponse",
    "ResponseHeader",
]
