"""Error models and transport mapping for etcd SDK calls."""

from __future__ import annotations

from dataclasses import dataclass

import grpc


@dataclass(frozen=True)
class EtcdSdkError(Exception):
    """Base error type for etcd SDK failures."""

    message: str

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(frozen=True)
class ConfigurationError(EtcdSdkError):
    """Invalid client configuration detected while building a client."""

    value: str = ""


@dataclass(frozen=True)
class ResolutionError(EtcdSdkError):
    """One DNS or DNS-SRV lookup failed."""

    name: str = ""


@dataclass(frozen=True)
class AuthenticationError(EtcdSdkError):
    """Authenticate RPC failed or returned an unusable token."""

    status_code: grpc.StatusCode | None = None
    retryable: bool = False


@dataclass(frozen=True)
class EtcdTransportError(EtcdSdkError):
    """Transport-level gRPC call failure."""

    operation: str
    status_code: grpc.StatusCode
    retryable: bool = False


def map_transport_error(*, operation: str, error: grpc.RpcError) -> EtcdTransportError:
    """Map one grpc ``RpcError`` into a typed SDK transport error."""
    status, detail = _status_and_detail(error)
    return EtcdTransportError(
        message=f"{operation} transport failure ({status.name}): {detail}",
        operation=operation,
        status_code=status,
        retryable=status in _RETRYABLE_TRANSPORT_STATUSES,
    )


def map_authentication_error(*, user: str, error: grpc.RpcError) -> AuthenticationError:
    """Map one failed Authenticate RPC into a typed authentication error."""
    status, detail = _status_and_detail(error)
    return AuthenticationError(
        message=f"authentication failed for user {user!r} ({status.name}): {detail}",
        status_code=status,
        retryable=status in _RETRYABLE_TRANSPORT_STATUSES,
    )


def _status_and_detail(error: grpc.RpcError) -> tuple[grpc.StatusCode, str]:
    """Return status code and detail text from an ``RpcError``-like object."""
    status = error.code() if hasattr(error, "code") else grpc.StatusCode.UNKNOWN
    detail = error.details() if hasattr(error, "details") else str(error)
    return status, detail


_RETRYABLE_TRANSPORT_STATUSES: frozenset[grpc.StatusCode] = frozenset(
    {
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.DEADLINE_EXCEEDED,
        grpc.StatusCode.RESOURCE_EXHAUSTED,
        grpc.StatusCode.ABORTED,
    }
)
