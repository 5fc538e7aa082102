"""Unit tests for etcd SDK transport/authentication error mapping."""

from __future__ import annotations

import grpc


class _FakeRpcError(grpc.RpcError):
    def __init__(self, *, status: grpc.StatusCode, details: str) -> None:
        self._status = status
        self._details = details

    def code(self) -> grpc.StatusCode:
        return self._status

    def details(self) -> str:
        return self._details


def test_map_transport_error_marks_retryable_statuses() -> None:
    """UNAVAILABLE transport failures should map to retryable transport errors."""
    from packages.etcd_sdk.errors import EtcdTransportError, map_transport_error

    error = map_transport_error(
        operation="kv.put",
        error=_FakeRpcError(status=grpc.StatusCode.UNAVAILABLE, details="down"),
    )

    assert isinstance(error, EtcdTransportError)
    assert error.retryable is True
    assert error.status_code == grpc.StatusCode.UNAVAILABLE
    assert str(error) == "kv.put transport failure (UNAVAILABLE): down"


def test_map_transport_error_keeps_permission_failures_terminal() -> None:
    from packages.etcd_sdk.errors import map_transport_error

    error = map_transport_error(
        operation="kv.range",
        error=_FakeRpcError(
            status=grpc.StatusCode.PERMISSION_DENIED, details="permission denied"
        ),
    )

    assert error.retryable is False


def test_map_authentication_error_names_user() -> None:
    from packages.etcd_sdk.errors import (
        AuthenticationError,
        EtcdSdkError,
        map_authentication_error,
    )

    error = map_authentication_error(
        user="root",
        error=_FakeRpcError(
            status=grpc.StatusCode.INVALID_ARGUMENT, details="invalid password"
        ),
    )

    assert isinstance(error, AuthenticationError)
    assert isinstance(error, EtcdSdkError)
    assert "'root'" in str(error)
    assert error.retryable is False
