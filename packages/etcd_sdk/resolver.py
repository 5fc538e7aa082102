"""Endpoint resolvers that feed address lists to the gRPC channel.

Three variants share one capability interface (``start``, ``refresh``,
``shutdown``):

- ``StaticResolver`` delivers the configured endpoints as-is.
- ``DnsResolver`` looks up A/AAAA records for each endpoint host through the
  platform resolver.
- ``DnsSrvResolver`` treats endpoints as SRV query names and flattens every
  answer into one address list.

``ResolverFactory`` is the only place that dispatches on the resolver kind.
Each delivery to a listener fully replaces the previous view.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Iterable, Protocol, Sequence
from urllib.parse import urlsplit

import dns.exception
import dns.name
import dns.resolver

from packages.etcd_sdk.addresses import AddressSet, SocketAddress, split_endpoints
from packages.etcd_sdk.errors import ConfigurationError, ResolutionError
from packages.etcd_shared.logging import fields, get_logger, log_context

logger = get_logger(__name__)


class ResolverKind(StrEnum):
    """Registered resolver kinds, addressed by target path."""

    STATIC = "static"
    DNS = "dns"
    DNS_SRV = "dns+srv"


DEFAULT_RESOLVER = ResolverKind.STATIC


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """One complete address view delivered by a resolver."""

    addresses: tuple[SocketAddress, ...]


@dataclass(frozen=True, slots=True)
class SrvRecord:
    """One parsed SRV answer."""

    priority: int
    weight: int
    port: int
    target: str


AddressListener = Callable[[ResolutionResult], None]
HostLookup = Callable[[SocketAddress], Sequence[SocketAddress]]
SrvLookup = Callable[[str], Sequence[SrvRecord]]


class Resolver(Protocol):
    """Capability interface shared by every resolver variant."""

    kind: ResolverKind

    def start(self, listener: AddressListener) -> None:
        """Resolve and deliver the first address view to ``listener``."""

    def refresh(self) -> None:
        """Resolve again and deliver a replacing view to the started listener."""

    def shutdown(self) -> None:
        """Release resolver resources."""


class _ListenerMixin:
    """Listener bookkeeping shared by the resolver variants."""

    kind: ResolverKind
    _listener: AddressListener | None = None

    def start(self, listener: AddressListener) -> None:
        self._listener = listener
        self._deliver()

    def refresh(self) -> None:
        if self._listener is None:
            raise RuntimeError(f"{self.kind} resolver refreshed before start()")
        self._deliver()

    def shutdown(self) -> None:
        self._listener = None

    def _deliver(self) -> None:
        listener = self._listener
        if listener is None:
            return
        with log_context({fields.RESOLVER: self.kind.value}):
            addresses = tuple(self._resolve())
            logger.debug("Resolved %d address(es)", len(addresses))
        listener(ResolutionResult(addresses=addresses))

    def _resolve(self) -> Iterable[SocketAddress]:
        raise NotImplementedError


class StaticResolver(_ListenerMixin):
    """Resolver over a fixed set of endpoints."""

    kind = ResolverKind.STATIC

    def __init__(self, endpoints: Iterable[str]) -> None:
        self._addresses = AddressSet.from_endpoints(endpoints)

    @property
    def addresses(self) -> AddressSet:
        return self._addresses

    def _resolve(self) -> Iterable[SocketAddress]:
        return self._addresses


class DnsResolver(_ListenerMixin):
    """Resolver translating endpoint hostnames into A/AAAA addresses."""

    kind = ResolverKind.DNS

    def __init__(
        self,
        endpoints: Iterable[str],
        *,
        lookup: HostLookup | None = None,
    ) -> None:
        self._addresses = AddressSet.from_endpoints(endpoints)
        self._lookup = lookup_host if lookup is None else lookup

    def _resolve(self) -> Iterable[SocketAddress]:
        resolved: dict[SocketAddress, None] = {}
        for address in self._addresses:
            try:
                found = self._lookup(address)
            except ResolutionError as error:
                logger.warning("Skipping endpoint %s: %s", address, error)
                continue
            resolved.update(dict.fromkeys(found))
        return resolved


class DnsSrvResolver(_ListenerMixin):
    """Resolver that flattens SRV answers for each query name.

    Priority and weight are parsed but not used for ordering; addresses keep
    discovery order.
    """

    kind = ResolverKind.DNS_SRV

    def __init__(
        self,
        names: Iterable[str],
        *,
        lookup: SrvLookup | None = None,
    ) -> None:
        self._names = tuple(sorted(split_endpoints(names)))
        self._lookup = query_srv if lookup is None else lookup

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def _resolve(self) -> Iterable[SocketAddress]:
        addresses: list[SocketAddress] = []
        for name in self._names:
            with log_context({fields.QUERY_NAME: name}):
                try:
                    records = self._lookup(name)
                except ResolutionError as error:
                    logger.warning("SRV lookup failed, omitting name: %s", error)
                    continue
            addresses.extend(
                SocketAddress(host=record.target, port=record.port)
                for record in records
            )
        return addresses


class ResolverFactory:
    """Map a resolver kind or target URI to a resolver instance."""

    def __init__(
        self,
        endpoints: Iterable[str],
        *,
        host_lookup: HostLookup | None = None,
        srv_lookup: SrvLookup | None = None,
    ) -> None:
        self._endpoints = split_endpoints(endpoints)
        self._host_lookup = host_lookup
        self._srv_lookup = srv_lookup

    @property
    def default_kind(self) -> ResolverKind:
        return DEFAULT_RESOLVER

    def create(self, target: str | None = None) -> Resolver:
        """Build the resolver registered for ``target``.

        ``target`` is a bare kind (``dns+srv``), a URI (``etcd:///dns+srv``) or
        ``None`` for the default kind.

        :raises ConfigurationError: for unknown kinds or malformed endpoints.
        """
        kind = resolver_kind(target)
        if kind is ResolverKind.STATIC:
            return StaticResolver(self._endpoints)
        if kind is ResolverKind.DNS:
            return DnsResolver(self._endpoints, lookup=self._host_lookup)
        return DnsSrvResolver(self._endpoints, lookup=self._srv_lookup)


def resolver_kind(target: str | None) -> ResolverKind:
    """Return the resolver kind selected by ``target``."""
    if target is None or target.strip() == "":
        return DEFAULT_RESOLVER
    value = target.strip()
    path = urlsplit(value).path if "://" in value else value
    try:
        return ResolverKind(path.strip("/").lower())
    except ValueError:
        raise ConfigurationError(
            message=f"Unknown resolver: {target}", value=target
        ) from None


def lookup_host(address: SocketAddress) -> list[SocketAddress]:
    """Resolve one address through ``getaddrinfo``; IP literals pass through."""
    if address.is_ip_literal:
        return [address]
    try:
        infos = socket.getaddrinfo(
            address.host,
            address.port,
            family=socket.AF_UNSPEC,
            type=socket.SOCK_STREAM,
        )
    except (OSError, UnicodeError) as exc:
        raise ResolutionError(
            message=f"DNS lookup failed for {address.host}: {exc}",
            name=address.host,
        ) from exc

    found: dict[SocketAddress, None] = {}
    for _family, _type, _proto, _canonname, sockaddr in infos:
        found[SocketAddress(host=str(sockaddr[0]), port=address.port)] = None
    return list(found)


def query_srv(name: str) -> list[SrvRecord]:
    """Query SRV records for one name with dnspython."""
    try:
        answer = dns.resolver.resolve(name, "SRV")
    except dns.exception.DNSException as exc:
        raise ResolutionError(
            message=f"SRV lookup failed for {name}: {exc}", name=name
        ) from exc
    # RFC 2782: a "." target means the service is not offered at this name.
    return [
        SrvRecord(
            priority=int(rdata.priority),
            weight=int(rdata.weight),
            port=int(rdata.port),
            target=rdata.target.to_text(omit_final_dot=True),
        )
        for rdata in answer
        if rdata.target != dns.name.root
    ]
