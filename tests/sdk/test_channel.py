"""Unit tests for gRPC target and option construction."""

from __future__ import annotations

from typing import Any


def _addr(host: str, port: int = 2379) -> Any:
    from packages.etcd_sdk.addresses import SocketAddress

    return SocketAddress(host=host, port=port)


def test_channel_target_lists_every_ipv4_address() -> None:
    from packages.etcd_sdk.channel import channel_target

    target = channel_target([_addr("10.0.0.1"), _addr("10.0.0.2", 2380)])

    assert target == "ipv4:10.0.0.1:2379,10.0.0.2:2380"


def test_channel_target_uses_ipv6_scheme_for_ipv6_only_lists() -> None:
    from packages.etcd_sdk.channel import channel_target

    assert channel_target([_addr("::1"), _addr("fd00::2")]) == "ipv6:[::1]:2379,[fd00::2]:2379"


def test_channel_target_keeps_ipv4_subset_of_mixed_lists() -> None:
    from packages.etcd_sdk.channel import channel_target

    assert channel_target([_addr("::1"), _addr("10.0.0.1")]) == "ipv4:10.0.0.1:2379"


def test_channel_target_expands_and_drops_hostnames() -> None:
    """Hostnames go through the lookup; unresolvable ones are left out."""
    from packages.etcd_sdk.channel import channel_target
    from packages.etcd_sdk.errors import ResolutionError

    def _lookup(address: Any) -> list[Any]:
        if address.host == "gone.example":
            raise ResolutionError(message="nxdomain", name=address.host)
        return [_addr("10.0.0.5", address.port), _addr("10.0.0.1", address.port)]

    target = channel_target(
        [_addr("10.0.0.1"), _addr("etcd.example"), _addr("gone.example")],
        lookup=_lookup,
    )

    assert target == "ipv4:10.0.0.1:2379,10.0.0.5:2379"


def test_channel_options_enable_round_robin_for_multiple_addresses() -> None:
    from packages.etcd_sdk.channel import ROUND_ROBIN_OPTION, channel_options
    from packages.etcd_sdk.config import EtcdSdkConfig

    config = EtcdSdkConfig(channel_options=(("grpc.max_receive_message_length", 1024),))

    assert channel_options(config, 1) == [("grpc.max_receive_message_length", 1024)]
    assert ROUND_ROBIN_OPTION in channel_options(config, 2)


def test_channel_options_override_tls_server_name() -> None:
    from packages.etcd_sdk.channel import channel_options
    from packages.etcd_sdk.config import EtcdSdkConfig

    config = EtcdSdkConfig(use_tls=True, tls_server_name="etcd.internal")

    assert channel_options(config, 1) == [
        ("grpc.ssl_target_name_override", "etcd.internal")
    ]


def test_new_channel_counts_addresses_after_hostname_expansion(monkeypatch: Any) -> None:
    """One hostname resolving to several IPs should still balance across them."""
    import packages.etcd_sdk.channel as channel_module
    from packages.etcd_sdk.config import EtcdSdkConfig

    opened: list[tuple[str, list[Any]]] = []

    def _lookup(address: Any) -> list[Any]:
        return [_addr("10.0.0.7", address.port), _addr("10.0.0.8", address.port)]

    def _insecure_channel(target: str, options: list[Any]) -> object:
        opened.append((target, options))
        return object()

    monkeypatch.setattr(channel_module, "lookup_host", _lookup)
    monkeypatch.setattr(channel_module.grpc, "insecure_channel", _insecure_channel)

    channel_module.new_channel(EtcdSdkConfig(), [_addr("etcd.example")])

    assert opened == [
        ("ipv4:10.0.0.7:2379,10.0.0.8:2379", [channel_module.ROUND_ROBIN_OPTION])
    ]


def test_new_channel_rejects_unreadable_root_certificates(tmp_path: Any) -> None:
    import pytest

    from packages.etcd_sdk.channel import new_channel
    from packages.etcd_sdk.config import EtcdSdkConfig
    from packages.etcd_sdk.errors import ConfigurationError

    missing = str(tmp_path / "missing-ca.pem")
    config = EtcdSdkConfig(use_tls=True, root_certificates_path=missing)

    with pytest.raises(ConfigurationError) as exc_info:
        new_channel(config, [_addr("10.0.0.1")])

    assert exc_info.value.value == missing
    assert "Unable to read root certificates" in str(exc_info.value)
