"""Typed configuration models for etcd SDK and CLI settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "etcd-sdk" / "etcd.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_output: bool = False
    service: str = "etcd-sdk"
    environment: str = "dev"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ClientSettings(BaseModel):
    """Connection, resolver and auth settings for one etcd client."""

    endpoints: list[str] = Field(default_factory=lambda: ["127.0.0.1:2379"])
    resolver: str = "static"
    user: str | None = None
    password: str | None = Field(default=None, repr=False)
    timeout_seconds: float = Field(default=10.0, gt=0)
    token_lifetime_seconds: float = Field(default=300.0, gt=0)
    token_jitter_seconds: float = Field(default=30.0, ge=0)
    use_tls: bool = False
    root_certificates_path: str | None = None
    tls_server_name: str | None = None
    wait_for_ready: bool = False

    @field_validator("endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, value: Any) -> Any:
        """Accept a comma-separated string and drop blanks and duplicates."""
        if value is None:
            return []
        items = [value] if isinstance(value, (str, int)) else list(value)
        seen: dict[str, None] = {}
        for item in items:
            for part in str(item).split(","):
                if part.strip():
                    seen[part.strip()] = None
        return list(seen)

    @field_validator("user", "password", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # Env coercion turns numeric secrets into ints.
        return None if value is None else str(value)

    @model_validator(mode="after")
    def _validate_token_window(self) -> ClientSettings:
        if not self.endpoints:
            raise ValueError("client.endpoints must list at least one endpoint")
        if self.token_jitter_seconds >= self.token_lifetime_seconds:
            raise ValueError(
                "client.token_jitter_seconds must be below "
                "client.token_lifetime_seconds"
            )
        return self


class EtcdSettings(BaseModel):
    """Root settings model loaded by ``load_settings``."""

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
