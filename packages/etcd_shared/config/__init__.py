"""Public API for shared etcd configuration utilities."""

from .loader import load_config, load_settings
from .models import DEFAULT_CONFIG_PATH, ClientSettings, EtcdSettings, LoggingSettings

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ClientSettings",
    "EtcdSettings",
    "LoggingSettings",
    "load_config",
    "load_settings",
]
