"""Unit tests for endpoint parsing and address value types."""

from __future__ import annotations

import pytest


def test_parse_endpoint_applies_default_port() -> None:
    """Endpoints without a port should use the etcd client port."""
    from packages.etcd_sdk.addresses import SocketAddress, parse_endpoint

    assert parse_endpoint("etcd1.example.com") == SocketAddress(
        host="etcd1.example.com", port=2379
    )
    assert parse_endpoint(" 10.0.0.1:2380 ") == SocketAddress(host="10.0.0.1", port=2380)


def test_parse_endpoint_accepts_bracketed_ipv6() -> None:
    """Bracketed IPv6 literals should parse with and without a port."""
    from packages.etcd_sdk.addresses import parse_endpoint

    with_port = parse_endpoint("[::1]:2381")
    without_port = parse_endpoint("[fe80::1]")

    assert (with_port.host, with_port.port) == ("::1", 2381)
    assert with_port.is_ipv6 is True
    assert str(with_port) == "[::1]:2381"
    assert (without_port.host, without_port.port) == ("fe80::1", 2379)


@pytest.mark.parametrize(
    "endpoint",
    ["a:b:c", "::1", "", ":2379", "host:0", "host:notaport", "[::1", "[::1]x", "[nothost]:1"],
)
def test_parse_endpoint_rejects_malformed_values(endpoint: str) -> None:
    """Malformed endpoints should raise a configuration error naming the input."""
    from packages.etcd_sdk.addresses import parse_endpoint
    from packages.etcd_sdk.errors import ConfigurationError

    with pytest.raises(ConfigurationError) as exc_info:
        parse_endpoint(endpoint)

    assert exc_info.value.value == endpoint


def test_malformed_endpoint_message_names_endpoint() -> None:
    """Too many colons should produce the canonical parse failure message."""
    from packages.etcd_sdk.addresses import parse_endpoint
    from packages.etcd_sdk.errors import ConfigurationError

    with pytest.raises(ConfigurationError, match="Unable to parse endpoint a:b:c"):
        parse_endpoint("a:b:c")


def test_split_endpoints_trims_and_deduplicates() -> None:
    """Comma lists should drop blanks and duplicates."""
    from packages.etcd_sdk.addresses import split_endpoints

    assert split_endpoints("a:1, ,b:2,a:1") == frozenset({"a:1", "b:2"})
    assert split_endpoints(["a:1,b:2", " c:3 "]) == frozenset({"a:1", "b:2", "c:3"})
    assert split_endpoints("") == frozenset()


def test_address_set_deduplicates_equal_addresses() -> None:
    """Endpoints that parse to the same address should collapse to one entry."""
    from packages.etcd_sdk.addresses import AddressSet, SocketAddress

    addresses = AddressSet.from_endpoints(["10.0.0.2", "10.0.0.1:2379", "10.0.0.2:2379"])

    assert len(addresses) == 2
    assert SocketAddress(host="10.0.0.1", port=2379) in addresses
    assert [str(item) for item in addresses] == ["10.0.0.1:2379", "10.0.0.2:2379"]


def test_socket_address_ip_literal_detection() -> None:
    from packages.etcd_sdk.addresses import SocketAddress

    assert SocketAddress(host="10.0.0.1", port=1).is_ip_literal is True
    assert SocketAddress(host="10.0.0.1", port=1).is_ipv6 is False
    assert SocketAddress(host="etcd.local", port=1).is_ip_literal is False
