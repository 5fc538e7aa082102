"""In-process fake etcd server for SDK tests."""

from __future__ import annotations

import threading
from concurrent import futures
from typing import Any, Iterator

import grpc
import pytest

from packages.etcd_sdk import _generated as pb


class FakeEtcd:
    """Minimal KV + Auth servicer backed by a dict."""

    def __init__(self) -> None:
        self.endpoint = ""
        self.revision = 1
        self.auth_calls = 0
        self.tokens_seen: list[str | None] = []
        self.credentials: tuple[str, str] | None = None
        self.token = "tok-1"
        self._store: dict[bytes, Any] = {}
        self._lock = threading.Lock()

    def require_auth(self, user: str, password: str) -> None:
        self.credentials = (user, password)

    def _check_token(self, context: grpc.ServicerContext) -> None:
        token = dict(context.invocation_metadata()).get("token")
        self.tokens_seen.append(token)
        if self.credentials is not None and token != self.token:
            context.abort(grpc.StatusCode.UNAUTHENTICATED, "invalid auth token")

    def _header(self) -> Any:
        return pb.ResponseHeader(cluster_id=1, member_id=1, revision=self.revision)

    def put(self, request: Any, context: grpc.ServicerContext) -> Any:
        self._check_token(context)
        with self._lock:
            previous = self._store.get(request.key)
            self.revision += 1
            self._store[request.key] = pb.KeyValue(
                key=request.key,
                value=request.value,
                create_revision=(
                    self.revision if previous is None else previous.create_revision
                ),
                mod_revision=self.revision,
                version=1 if previous is None else previous.version + 1,
                lease=request.lease,
            )
            response = pb.PutResponse(header=self._header())
            if request.prev_kv and previous is not None:
                response.prev_kv.CopyFrom(previous)
            return response

    def range(self, request: Any, context: grpc.ServicerContext) -> Any:
        self._check_token(context)
        with self._lock:
            if request.range_end == b"":
                keys = [request.key] if request.key in self._store else []
            else:
                keys = sorted(
                    key
                    for key in self._store
                    if key >= request.key
                    and (request.range_end == b"\x00" or key < request.range_end)
                )
            response = pb.RangeResponse(header=self._header(), count=len(keys))
            if request.count_only:
                return response
            selected = keys[: request.limit] if request.limit > 0 else keys
            response.more = len(selected) < len(keys)
            for key in selected:
                kv = response.kvs.add()
                kv.CopyFrom(self._store[key])
                if request.keys_only:
                    kv.value = b""
            return response

    def authenticate(self, request: Any, context: grpc.ServicerContext) -> Any:
        self.auth_calls += 1
        if self.credentials != (request.name, request.password):
            context.abort(
                grpc.StatusCode.INVALID_ARGUMENT,
                "authentication failed, invalid user ID or password",
            )
        return pb.AuthenticateResponse(header=self._header(), token=self.token)

    def handlers(self) -> tuple[grpc.GenericRpcHandler, ...]:
        kv = grpc.method_handlers_generic_handler(
            f"{pb.PACKAGE}.KV",
            {
                "Put": grpc.unary_unary_rpc_method_handler(
                    self.put,
                    request_deserializer=pb.PutRequest.FromString,
                    response_serializer=pb.PutResponse.SerializeToString,
                ),
                "Range": grpc.unary_unary_rpc_method_handler(
                    self.range,
                    request_deserializer=pb.RangeRequest.FromString,
                    response_serializer=pb.RangeResponse.SerializeToString,
                ),
            },
        )
        auth = grpc.method_handlers_generic_handler(
            f"{pb.PACKAGE}.Auth",
            {
                "Authenticate": grpc.unary_unary_rpc_method_handler(
                    self.authenticate,
                    request_deserializer=pb.AuthenticateRequest.FromString,
                    response_serializer=pb.AuthenticateResponse.SerializeToString,
                ),
            },
        )
        return (kv, auth)


@pytest.fixture
def fake_etcd() -> Iterator[FakeEtcd]:
    """Start one fake etcd server on an ephemeral loopback port."""
    etcd = FakeEtcd()
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
    server.add_generic_rpc_handlers(etcd.handlers())
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    etcd.endpoint = f"127.0.0.1:{port}"
    try:
        yield etcd
    finally:
        server.stop(grace=None)
