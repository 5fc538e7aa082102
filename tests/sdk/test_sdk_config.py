"""Unit tests for SDK config resolution helpers."""

from __future__ import annotations

from typing import Any


def test_resolve_endpoints_prefers_explicit_then_env(monkeypatch: Any) -> None:
    from packages.etcd_sdk.config import DEFAULT_ENDPOINT, resolve_endpoints

    monkeypatch.setenv("ETCD_ENDPOINTS", "10.0.0.7:2379, 10.0.0.8:2379")

    assert resolve_endpoints("a:1,a:1") == frozenset({"a:1"})
    assert resolve_endpoints() == frozenset({"10.0.0.7:2379", "10.0.0.8:2379"})

    monkeypatch.delenv("ETCD_ENDPOINTS")
    assert resolve_endpoints(" , ") == frozenset({DEFAULT_ENDPOINT})


def test_resolve_timeout_ignores_invalid_env(monkeypatch: Any) -> None:
    from packages.etcd_sdk.config import DEFAULT_TIMEOUT_SECONDS, resolve_timeout_seconds

    monkeypatch.setenv("ETCD_TIMEOUT_SECONDS", "soon")
    assert resolve_timeout_seconds() == DEFAULT_TIMEOUT_SECONDS

    monkeypatch.setenv("ETCD_TIMEOUT_SECONDS", "2.5")
    assert resolve_timeout_seconds() == 2.5
    assert resolve_timeout_seconds(0.5) == 0.5


def test_resolve_resolver_defaults_to_static(monkeypatch: Any) -> None:
    from packages.etcd_sdk.config import resolve_resolver

    monkeypatch.delenv("ETCD_RESOLVER", raising=False)
    assert resolve_resolver() == "static"

    monkeypatch.setenv("ETCD_RESOLVER", "dns+srv")
    assert resolve_resolver() == "dns+srv"
    assert resolve_resolver("dns") == "dns"


def test_config_from_settings_carries_client_subtree() -> None:
    """Loaded settings should map field-for-field onto the SDK config."""
    from packages.etcd_sdk.config import config_from_settings
    from packages.etcd_shared.config import EtcdSettings

    settings = EtcdSettings.model_validate(
        {
            "client": {
                "endpoints": "10.0.0.1:2379,10.0.0.2:2379",
                "resolver": "dns",
                "user": "root",
                "password": "secret",
                "timeout_seconds": 3,
            }
        }
    )

    config = config_from_settings(settings)

    assert config.endpoints == frozenset({"10.0.0.1:2379", "10.0.0.2:2379"})
    assert config.resolver == "dns"
    assert config.timeout_seconds == 3.0
    assert config.credentials is not None
    assert config.credentials.user == "root"
    assert "secret" not in repr(config)
