"""Runtime configuration primitives for etcd SDK clients."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable

from packages.etcd_sdk.addresses import DEFAULT_PORT, split_endpoints
from packages.etcd_sdk.auth import (
    DEFAULT_TOKEN_JITTER_SECONDS,
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    Credentials,
)
from packages.etcd_sdk.resolver import DEFAULT_RESOLVER
from packages.etcd_shared.config import EtcdSettings

DEFAULT_ENDPOINT = f"127.0.0.1:{DEFAULT_PORT}"
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class EtcdSdkConfig:
    """Connection, resolver and auth settings for one etcd SDK client."""

    endpoints: frozenset[str] = frozenset({DEFAULT_ENDPOINT})
    resolver: str = DEFAULT_RESOLVER.value
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    token_lifetime_seconds: float = DEFAULT_TOKEN_LIFETIME_SECONDS
    token_jitter_seconds: float = DEFAULT_TOKEN_JITTER_SECONDS
    use_tls: bool = False
    root_certificates_path: str | None = None
    tls_server_name: str | None = None
    wait_for_ready: bool = False
    channel_options: tuple[tuple[str, str | int], ...] = field(default_factory=tuple)

    @property
    def credentials(self) -> Credentials | None:
        """Return credentials when both user and password are configured."""
        return Credentials.from_optional(self.user, self.password)


def resolve_endpoints(value: str | Iterable[str] | None = None) -> frozenset[str]:
    """Resolve endpoints from explicit value, ``ETCD_ENDPOINTS``, or default."""
    if value is not None:
        endpoints = split_endpoints(value)
        if endpoints:
            return endpoints
    from_env = split_endpoints(os.getenv("ETCD_ENDPOINTS", ""))
    return from_env if from_env else frozenset({DEFAULT_ENDPOINT})


def resolve_resolver(value: str | None = None) -> str:
    """Resolve the resolver kind or target from explicit value or environment."""
    if value is not None and value.strip() != "":
        return value.strip()
    env_value = os.getenv("ETCD_RESOLVER", "").strip()
    return env_value if env_value != "" else DEFAULT_RESOLVER.value


def resolve_timeout_seconds(value: float | None = None) -> float:
    """Resolve one timeout value from explicit override or environment."""
    if value is not None:
        return value
    env_value = os.getenv("ETCD_TIMEOUT_SECONDS", "").strip()
    if env_value == "":
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(env_value)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def config_from_settings(settings: EtcdSettings) -> EtcdSdkConfig:
    """Build an SDK config from loaded shared settings."""
    client = settings.client
    return EtcdSdkConfig(
        endpoints=frozenset(client.endpoints),
        resolver=client.resolver,
        user=client.user,
        password=client.password,
        timeout_seconds=client.timeout_seconds,
        token_lifetime_seconds=client.token_lifetime_seconds,
        token_jitter_seconds=client.token_jitter_seconds,
        use_tls=client.use_tls,
        root_certificates_path=client.root_certificates_path,
        tls_server_name=client.tls_server_name,
        wait_for_ready=client.wait_for_ready,
    )
