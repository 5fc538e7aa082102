"""Public etcd SDK interface for CLI and library callers."""

from packages.etcd_sdk.addresses import (
    DEFAULT_PORT,
    AddressSet,
    SocketAddress,
    parse_endpoint,
    split_endpoints,
)
from packages.etcd_sdk.auth import (
    AuthInterceptor,
    Credentials,
    TokenCache,
    TokenState,
)
from packages.etcd_sdk.calls import (
    KeyValue,
    PutResult,
    RangeResult,
    ResponseHeader,
    prefix_range_end,
)
from packages.etcd_sdk.client import EtcdClient, EtcdSdkClient
from packages.etcd_sdk.config import EtcdSdkConfig, config_from_settings
from packages.etcd_sdk.errors import (
    AuthenticationError,
    ConfigurationError,
    EtcdSdkError,
    EtcdTransportError,
    ResolutionError,
)
from packages.etcd_sdk.resolver import (
    DnsResolver,
    DnsSrvResolver,
    ResolutionResult,
    Resolver,
    ResolverFactory,
    ResolverKind,
    StaticResolver,
)

TransportError = EtcdTransportError

__all__ = [
    "DEFAULT_PORT",
    "AddressSet",
    "AuthInterceptor",
    "AuthenticationError",
    "ConfigurationError",
    "Credentials",
    "DnsResolver",
    "DnsSrvResolver",
    "EtcdClient",
    "EtcdSdkClient",
    "EtcdSdkConfig",
    "EtcdSdkError",
    "EtcdTransportError",
    "KeyValue",
    "PutResult",
    "RangeResult",
    "ResolutionError",
    "ResolutionResult",
    "Resolver",
    "ResolverFactory",
    "ResolverKind",
    "ResponseHeader",
    "SocketAddress",
    "StaticResolver",
    "TokenCache",
    "TokenState",
    "TransportError",
    "config_from_settings",
    "parse_endpoint",
    "prefix_range_end",
    "split_endpoints",
]
