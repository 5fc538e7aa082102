"""Built-in defaults, the last layer of the configuration cascade."""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "WARNING",
        "json_output": False,
        "service": "etcd-sdk",
        "environment": "dev",
    },
    "client": {
        "endpoints": ["127.0.0.1:2379"],
        "resolver": "static",
        "user": None,
        "password": None,
        "timeout_seconds": 10.0,
        "token_lifetime_seconds": 300.0,
        "token_jitter_seconds": 30.0,
        "use_tls": False,
        "root_certificates_path": None,
        "tls_server_name": None,
        "wait_for_ready": False,
    },
}
