"""Thin typed wrappers for etcd KV and Auth gRPC operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import grpc

from packages.etcd_sdk import _generated as pb
from packages.etcd_sdk.errors import (
    AuthenticationError,
    map_authentication_error,
    map_transport_error,
)


@dataclass(frozen=True, slots=True)
class ResponseHeader:
    """Cluster metadata attached to every etcd response."""

    cluster_id: int
    member_id: int
    revision: int
    raft_term: int


@dataclass(frozen=True, slots=True)
class KeyValue:
    """One stored key-value record."""

    key: bytes
    value: bytes
    create_revision: int = 0
    mod_revision: int = 0
    version: int = 0
    lease: int = 0

    @property
    def key_text(self) -> str:
        """Return the key decoded as UTF-8."""
        return self.key.decode("utf-8")

    @property
    def value_text(self) -> str:
        """Return the value decoded as UTF-8."""
        return self.value.decode("utf-8")


@dataclass(frozen=True, slots=True)
class PutResult:
    """Put response payload."""

    header: ResponseHeader
    prev_kv: KeyValue | None

    @property
    def has_prev_kv(self) -> bool:
        """Return True when the key held a value before this put."""
        return self.prev_kv is not None


@dataclass(frozen=True, slots=True)
class RangeResult:
    """Range response payload."""

    header: ResponseHeader
    kvs: tuple[KeyValue, ...]
    more: bool
    count: int


def call_put(
    *,
    rpc: Callable[..., object],
    key: str | bytes,
    value: str | bytes,
    lease: int,
    prev_kv: bool,
    timeout_seconds: float,
    wait_for_ready: bool,
) -> PutResult:
    """Execute one KV put RPC and map the response."""
    response = _call_rpc(
        operation="kv.put",
        rpc=rpc,
        request=pb.PutRequest(
            key=to_bytes(key),
            value=to_bytes(value),
            lease=lease,
            prev_kv=prev_kv,
        ),
        timeout_seconds=timeout_seconds,
        wait_for_ready=wait_for_ready,
    )
    previous = _key_value(response.prev_kv) if response.HasField("prev_kv") else None
    return PutResult(header=_header(response.header), prev_kv=previous)


def call_range(
    *,
    rpc: Callable[..., object],
    key: str | bytes,
    range_end: str | bytes,
    limit: int,
    revision: int,
    serializable: bool,
    keys_only: bool,
    count_only: bool,
    timeout_seconds: float,
    wait_for_ready: bool,
) -> RangeResult:
    """Execute one KV range RPC and map the response."""
    response = _call_rpc(
        operation="kv.range",
        rpc=rpc,
        request=pb.RangeRequest(
            key=to_bytes(key),
            range_end=to_bytes(range_end),
            limit=limit,
            revision=revision,
            serializable=serializable,
            keys_only=keys_only,
            count_only=count_only,
        ),
        timeout_seconds=timeout_seconds,
        wait_for_ready=wait_for_ready,
    )
    return RangeResult(
        header=_header(response.header),
        kvs=tuple(_key_value(item) for item in response.kvs),
        more=bool(response.more),
        count=int(response.count),
    )


def call_authenticate(
    *,
    rpc: Callable[..., object],
    user: str,
    password: str,
    timeout_seconds: float,
) -> str:
    """Exchange user/password for an auth token.

    :raises AuthenticationError: when the RPC fails or the token is empty.
    """
    try:
        response = rpc(
            pb.AuthenticateRequest(name=user, password=password),
            timeout=timeout_seconds,
        )
    except grpc.RpcError as error:
        raise map_authentication_error(user=user, error=error) from error

    token = str(response.token)
    if token == "":
        raise AuthenticationError(
            message=f"authentication for user {user!r} returned an empty token"
        )
    return token


def prefix_range_end(prefix: str | bytes) -> bytes:
    """Return the ``range_end`` that selects every key starting with ``prefix``."""
    end = bytearray(to_bytes(prefix))
    for index in range(len(end) - 1, -1, -1):
        if end[index] < 0xFF:
            end[index] += 1
            return bytes(end[: index + 1])
    # Every byte is 0xff (or the prefix is empty): select all keys.
    return b"\x00"


def to_bytes(value: str | bytes) -> bytes:
    """Encode ``str`` keys/values as UTF-8; pass ``bytes`` through."""
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def put_rpc(channel: grpc.Channel) -> Callable[..., object]:
    """Return the unary callable for ``KV.Put`` on one channel."""
    return channel.unary_unary(
        pb.KV_PUT_METHOD,
        request_serializer=pb.PutRequest.SerializeToString,
        response_deserializer=pb.PutResponse.FromString,
    )


def range_rpc(channel: grpc.Channel) -> Callable[..., object]:
    """Return the unary callable for ``KV.Range`` on one channel."""
    return channel.unary_unary(
        pb.KV_RANGE_METHOD,
        request_serializer=pb.RangeRequest.SerializeToString,
        response_deserializer=pb.RangeResponse.FromString,
    )


def authenticate_rpc(channel: grpc.Channel) -> Callable[..., object]:
    """Return the unary callable for ``Auth.Authenticate`` on one channel."""
    return channel.unary_unary(
        pb.AUTH_AUTHENTICATE_METHOD,
        request_serializer=pb.AuthenticateRequest.SerializeToString,
        response_deserializer=pb.AuthenticateResponse.FromString,
    )


def _call_rpc(
    *,
    operation: str,
    rpc: Callable[..., object],
    request: object,
    timeout_seconds: float,
    wait_for_ready: bool,
) -> object:
    """Invoke one RPC call and normalize transport failures."""
    try:
        return rpc(
            request,
            timeout=timeout_seconds,
            wait_for_ready=wait_for_ready,
        )
    except grpc.RpcError as error:
        raise map_transport_error(operation=operation, error=error) from error


def _header(value: object) -> ResponseHeader:
    """Convert protobuf ``ResponseHeader`` to SDK dataclass."""
    return ResponseHeader(
        cluster_id=int(value.cluster_id),
        member_id=int(value.member_id),
        revision=int(value.revision),
        raft_term=int(value.raft_term),
    )


def _key_value(value: object) -> KeyValue:
    """Convert protobuf ``KeyValue`` to SDK dataclass."""
    return KeyValue(
        key=bytes(value.key),
        value=bytes(value.value),
        create_revision=int(value.create_revision),
        mod_revision=int(value.mod_revision),
        version=int(value.version),
        lease=int(value.lease),
    )
