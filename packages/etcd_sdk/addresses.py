"""Endpoint parsing and address value types.

An endpoint is a ``host[:port]`` descriptor. IPv6 literals must use bracket
notation (``[::1]:2379``); any other endpoint with more than one ``:`` is a
configuration error. The port defaults to ``DEFAULT_PORT`` when omitted.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterable, Iterator

from packages.etcd_sdk.errors import ConfigurationError

DEFAULT_PORT = 2379


@dataclass(frozen=True, slots=True, order=True)
class SocketAddress:
    """One resolved or configured network address."""

    host: str
    port: int

    @property
    def is_ip_literal(self) -> bool:
        """Return True when ``host`` is an IPv4 or IPv6 literal."""
        return _ip_version(self.host) is not None

    @property
    def is_ipv6(self) -> bool:
        """Return True when ``host`` is an IPv6 literal."""
        return _ip_version(self.host) == 6

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class AddressSet:
    """Immutable de-duplicated set of socket addresses."""

    addresses: frozenset[SocketAddress] = frozenset()

    @classmethod
    def from_endpoints(cls, endpoints: Iterable[str]) -> AddressSet:
        """Parse every endpoint; the first malformed one fails the whole set."""
        return cls(frozenset(parse_endpoint(item) for item in endpoints))

    def __iter__(self) -> Iterator[SocketAddress]:
        return iter(sorted(self.addresses))

    def __len__(self) -> int:
        return len(self.addresses)

    def __contains__(self, item: object) -> bool:
        return item in self.addresses


def parse_endpoint(endpoint: str, *, default_port: int = DEFAULT_PORT) -> SocketAddress:
    """Parse one ``host[:port]`` endpoint into a ``SocketAddress``.

    :raises ConfigurationError: when the endpoint is empty, has more than one
        ``:`` outside IPv6 brackets, or carries an invalid port.
    """
    value = endpoint.strip()
    if value == "":
        raise ConfigurationError(message="Empty endpoint", value=endpoint)

    if value.startswith("["):
        host, port_text = _split_bracketed(value, endpoint)
    else:
        parts = value.split(":")
        if len(parts) > 2:
            raise ConfigurationError(
                message=f"Unable to parse endpoint {endpoint}", value=endpoint
            )
        host = parts[0]
        port_text = parts[1] if len(parts) == 2 else None

    if host == "":
        raise ConfigurationError(
            message=f"Missing host in endpoint {endpoint}", value=endpoint
        )
    port = default_port if port_text is None else _parse_port(port_text, endpoint)
    return SocketAddress(host=host, port=port)


def split_endpoints(values: str | Iterable[str]) -> frozenset[str]:
    """Split comma-separated endpoint strings into a trimmed, de-duplicated set."""
    items = [values] if isinstance(values, str) else list(values)
    return frozenset(
        part.strip()
        for item in items
        for part in str(item).split(",")
        if part.strip() != ""
    )


def _split_bracketed(value: str, endpoint: str) -> tuple[str, str | None]:
    """Split ``[v6]`` or ``[v6]:port`` into host and optional port text."""
    host, bracket, rest = value[1:].partition("]")
    if bracket == "" or _ip_version(host) != 6:
        raise ConfigurationError(
            message=f"Unable to parse endpoint {endpoint}", value=endpoint
        )
    if rest == "":
        return host, None
    if not rest.startswith(":"):
        raise ConfigurationError(
            message=f"Unable to parse endpoint {endpoint}", value=endpoint
        )
    return host, rest[1:]


def _parse_port(text: str, endpoint: str) -> int:
    """Parse a TCP port number, naming the endpoint on failure."""
    try:
        port = int(text)
    except ValueError:
        port = -1
    if not 0 < port < 65536:
        raise ConfigurationError(
            message=f"Invalid port in endpoint {endpoint}", value=endpoint
        )
    return port


def _ip_version(host: str) -> int | None:
    """Return 4 or 6 for IP literals, ``None`` for hostnames."""
    try:
        return ipaddress.ip_address(host).version
    except ValueError:
        return None
