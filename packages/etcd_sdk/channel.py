"""gRPC channel construction from a resolved address list."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import grpc

from packages.etcd_sdk.addresses import SocketAddress
from packages.etcd_sdk.config import EtcdSdkConfig
from packages.etcd_sdk.errors import ConfigurationError, ResolutionError
from packages.etcd_sdk.resolver import HostLookup, lookup_host
from packages.etcd_shared.logging import get_logger

logger = get_logger(__name__)

ROUND_ROBIN_OPTION = ("grpc.lb_policy_name", "round_robin")


def target_addresses(
    addresses: Sequence[SocketAddress],
    *,
    lookup: HostLookup | None = None,
) -> list[SocketAddress]:
    """Return the IP-literal addresses a channel target will list.

    Hostnames are expanded through ``lookup`` (platform DNS by default); hosts
    that fail to resolve are logged and left out. Mixed-family lists keep the
    IPv4 subset.
    """
    resolve = lookup_host if lookup is None else lookup
    literal: dict[SocketAddress, None] = {}
    for address in addresses:
        if address.is_ip_literal:
            literal[address] = None
            continue
        try:
            literal.update(dict.fromkeys(resolve(address)))
        except ResolutionError as error:
            logger.warning("Dropping unresolvable address %s: %s", address, error)

    ipv4 = [item for item in literal if not item.is_ipv6]
    ipv6 = [item for item in literal if item.is_ipv6]
    if ipv6 and not ipv4:
        return ipv6
    if ipv6:
        logger.debug("Ignoring %d IPv6 address(es) in mixed-family list", len(ipv6))
    return ipv4


def format_target(addresses: Sequence[SocketAddress]) -> str:
    """Render literal addresses as one ``ipv4:``/``ipv6:`` target.

    An empty list yields an empty ``ipv4:`` target, which gRPC rejects at
    call time.
    """
    scheme = "ipv6" if addresses and addresses[0].is_ipv6 else "ipv4"
    return f"{scheme}:" + ",".join(str(item) for item in addresses)


def channel_target(
    addresses: Sequence[SocketAddress],
    *,
    lookup: HostLookup | None = None,
) -> str:
    """Return an ``ipv4:``/``ipv6:`` target listing every resolved address."""
    return format_target(target_addresses(addresses, lookup=lookup))


def channel_options(
    config: EtcdSdkConfig, address_count: int
) -> list[tuple[str, str | int]]:
    """Return gRPC channel options for one client configuration."""
    options: list[tuple[str, str | int]] = list(config.channel_options)
    if address_count > 1:
        options.append(ROUND_ROBIN_OPTION)
    if config.use_tls and config.tls_server_name:
        options.append(("grpc.ssl_target_name_override", config.tls_server_name))
    return options


def _read_root_certificates(path: str | None) -> bytes | None:
    if not path:
        return None
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ConfigurationError(
            message=f"Unable to read root certificates {path}: {exc}", value=path
        ) from exc


def new_channel(
    config: EtcdSdkConfig, addresses: Sequence[SocketAddress]
) -> grpc.Channel:
    """Create one plaintext or TLS gRPC channel for ``addresses``.

    :raises ConfigurationError: when the root certificate file cannot be read.
    """
    expanded = target_addresses(addresses)
    target = format_target(expanded)
    options = channel_options(config, len(expanded))
    logger.debug("Opening channel to %s (tls=%s)", target, config.use_tls)
    if config.use_tls:
        root_certificates = _read_root_certificates(config.root_certificates_path)
        credentials = grpc.ssl_channel_credentials(root_certificates=root_certificates)
        return grpc.secure_channel(target, credentials=credentials, options=options)
    return grpc.insecure_channel(target, options=options)
