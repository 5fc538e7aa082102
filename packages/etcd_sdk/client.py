"""Synchronous etcd SDK client for KV operations."""

from __future__ import annotations

from typing import Iterable

import grpc

from packages.etcd_sdk.addresses import SocketAddress
from packages.etcd_sdk.auth import AuthInterceptor, TokenCache
from packages.etcd_sdk.calls import (
    PutResult,
    RangeResult,
    authenticate_rpc,
    call_put,
    call_range,
    prefix_range_end,
    put_rpc,
    range_rpc,
)
from packages.etcd_sdk.channel import new_channel
from packages.etcd_sdk.config import (
    EtcdSdkConfig,
    resolve_endpoints,
    resolve_resolver,
    resolve_timeout_seconds,
)
from packages.etcd_sdk.resolver import Resolver, ResolutionResult, ResolverFactory
from packages.etcd_shared.logging import fields, get_logger, log_context

logger = get_logger(__name__)


class EtcdClient:
    """Thin gRPC client for etcd Put/Range operations.

    Construction selects a resolver from ``config.resolver``, starts it, and
    opens a channel over the delivered addresses. When credentials are
    configured every call passes through an ``AuthInterceptor``. Configuration
    errors surface here, never at call time.
    """

    def __init__(
        self,
        *,
        config: EtcdSdkConfig | None = None,
        channel: grpc.Channel | None = None,
        resolver_factory: ResolverFactory | None = None,
    ) -> None:
        """Create one SDK client with injected channel or config-built channel."""
        self._config = EtcdSdkConfig() if config is None else config
        factory = (
            ResolverFactory(self._config.endpoints)
            if resolver_factory is None
            else resolver_factory
        )
        self._resolver: Resolver = factory.create(self._config.resolver)
        self._addresses: tuple[SocketAddress, ...] = ()
        with log_context({fields.RESOLVER: self._resolver.kind.value}):
            self._resolver.start(self._on_addresses)

        self._owns_channel = channel is None
        self._base_channel: grpc.Channel | None = None
        try:
            self._base_channel = (
                new_channel(self._config, self._addresses)
                if channel is None
                else channel
            )
            self._token_cache = TokenCache(
                rpc=authenticate_rpc(self._base_channel),
                credentials=self._config.credentials,
                lifetime_seconds=self._config.token_lifetime_seconds,
                jitter_seconds=self._config.token_jitter_seconds,
                timeout_seconds=self._config.timeout_seconds,
            )
        except Exception:
            self.close()
            raise
        self._channel = (
            grpc.intercept_channel(self._base_channel, AuthInterceptor(self._token_cache))
            if self._token_cache.enabled
            else self._base_channel
        )
        self._put = put_rpc(self._channel)
        self._range = range_rpc(self._channel)

    @property
    def addresses(self) -> tuple[SocketAddress, ...]:
        """Return the address view the channel was built from."""
        return self._addresses

    @property
    def token_cache(self) -> TokenCache:
        return self._token_cache

    def close(self) -> None:
        """Stop the resolver and close the channel when owned."""
        self._resolver.shutdown()
        if self._base_channel is None:
            return
        close = getattr(self._base_channel, "close", None)
        if self._owns_channel and callable(close):
            close()

    def __enter__(self) -> EtcdClient:
        """Enter context manager scope."""
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context manager scope and close channel resources."""
        self.close()

    def put(
        self,
        key: str | bytes,
        value: str | bytes,
        *,
        lease: int = 0,
        prev_kv: bool = True,
    ) -> PutResult:
        """Store one value; ``has_prev_kv`` reports an overwritten value."""
        return call_put(
            rpc=self._put,
            key=key,
            value=value,
            lease=lease,
            prev_kv=prev_kv,
            timeout_seconds=self._config.timeout_seconds,
            wait_for_ready=self._config.wait_for_ready,
        )

    def get(self, key: str | bytes, *, serializable: bool = False) -> RangeResult:
        """Return the record stored under exactly ``key``."""
        return self.range(key, serializable=serializable)

    def get_prefix(
        self, prefix: str | bytes, *, limit: int = 0, keys_only: bool = False
    ) -> RangeResult:
        """Return every record whose key starts with ``prefix``."""
        return self.range(
            prefix,
            prefix_range_end(prefix),
            limit=limit,
            keys_only=keys_only,
        )

    def range(
        self,
        key: str | bytes,
        range_end: str | bytes = b"",
        *,
        limit: int = 0,
        revision: int = 0,
        serializable: bool = False,
        keys_only: bool = False,
        count_only: bool = False,
    ) -> RangeResult:
        """Return records in ``[key, range_end)``; a single key when ``range_end`` is empty."""
        return call_range(
            rpc=self._range,
            key=key,
            range_end=range_end,
            limit=limit,
            revision=revision,
            serializable=serializable,
            keys_only=keys_only,
            count_only=count_only,
            timeout_seconds=self._config.timeout_seconds,
            wait_for_ready=self._config.wait_for_ready,
        )

    def _on_addresses(self, result: ResolutionResult) -> None:
        """Replace the current address view with one resolver delivery."""
        self._addresses = result.addresses
        if not result.addresses:
            logger.warning("Resolver delivered no addresses; calls will fail")
            return
        logger.info(
            "Resolved %d endpoint address(es): %s",
            len(result.addresses),
            ", ".join(str(item) for item in result.addresses),
        )


class EtcdSdkClient(EtcdClient):
    """CLI-friendly SDK client built from direct constructor fields."""

    def __init__(
        self,
        endpoints: str | Iterable[str] | None = None,
        timeout: float | None = None,
        *,
        resolver: str | None = None,
        user: str | None = None,
        password: str | None = None,
        token_lifetime_seconds: float | None = None,
        token_jitter_seconds: float | None = None,
        use_tls: bool = False,
        root_certificates_path: str | None = None,
        tls_server_name: str | None = None,
        wait_for_ready: bool = False,
        channel_options: tuple[tuple[str, str | int], ...] = (),
        channel: grpc.Channel | None = None,
    ) -> None:
        """Create one SDK client; unset values fall back to env and defaults."""
        defaults = EtcdSdkConfig()
        super().__init__(
            config=EtcdSdkConfig(
                endpoints=resolve_endpoints(endpoints),
                resolver=resolve_resolver(resolver),
                user=user,
                password=password,
                timeout_seconds=resolve_timeout_seconds(timeout),
                token_lifetime_seconds=(
                    defaults.token_lifetime_seconds
                    if token_lifetime_seconds is None
                    else token_lifetime_seconds
                ),
                token_jitter_seconds=(
                    defaults.token_jitter_seconds
                    if token_jitter_seconds is None
                    else token_jitter_seconds
                ),
                use_tls=use_tls,
                root_certificates_path=root_certificates_path,
                tls_server_name=tls_server_name,
                wait_for_ready=wait_for_ready,
                channel_options=channel_options,
            ),
            channel=channel,
        )
