"""etcd key-value CLI actor implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import typer
from packages.etcd_sdk import (
    AuthenticationError,
    ConfigurationError,
    EtcdClient,
    EtcdSdkConfig,
    EtcdTransportError,
    KeyValue,
    PutResult,
    RangeResult,
    ResolutionResult,
    ResolverFactory,
    config_from_settings,
)
from packages.etcd_shared.config import load_settings
from packages.etcd_shared.logging import configure_logging

SUCCESS_EXIT_CODE = 0
CONFIGURATION_ERROR_EXIT_CODE = 2
TRANSPORT_ERROR_EXIT_CODE = 4


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to SDK calls."""

    sdk: EtcdSdkConfig
    as_json: bool


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="backslashreplace")


def _record(kv: KeyValue) -> dict[str, Any]:
    """Return one key-value record as JSON-friendly data."""
    data = dataclasses.asdict(kv)
    data["key"] = _text(kv.key)
    data["value"] = _text(kv.value)
    return data


def _serialize(result: Any) -> Any:
    """Convert SDK results to JSON-serializable structures."""
    if isinstance(result, PutResult):
        return {
            "revision": result.header.revision,
            "prev_kv": None if result.prev_kv is None else _record(result.prev_kv),
        }
    if isinstance(result, RangeResult):
        return {
            "revision": result.header.revision,
            "count": result.count,
            "more": result.more,
            "kvs": [_record(kv) for kv in result.kvs],
        }
    if isinstance(result, ResolutionResult):
        return [str(address) for address in result.addresses]
    return result


def _render_human(result: Any) -> str:
    """Return etcdctl-style text for one SDK result."""
    if isinstance(result, PutResult):
        return "OK"
    if isinstance(result, RangeResult):
        if result.kvs and all(kv.value == b"" for kv in result.kvs):
            return "\n".join(_text(kv.key) for kv in result.kvs)
        lines: list[str] = []
        for kv in result.kvs:
            lines.extend((_text(kv.key), _text(kv.value)))
        if not result.kvs and result.count:
            lines.append(str(result.count))
        return "\n".join(lines)
    if isinstance(result, ResolutionResult):
        if not result.addresses:
            return "No addresses resolved."
        return "\n".join(str(address) for address in result.addresses)
    return str(result)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""
    if as_json:
        typer.echo(json.dumps(_serialize(result), sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(result)
    if rendered:
        typer.echo(rendered)


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render mapped SDK errors to stderr."""
    if as_json:
        typer.echo(json.dumps({"error": str(exc)}), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _run_command(cfg: CliConfig, invoke: Callable[[EtcdClient], Any]) -> None:
    """Execute one SDK call and map outputs/errors to process semantics."""
    try:
        with EtcdClient(config=cfg.sdk) as client:
            result = invoke(client)
    except ConfigurationError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=CONFIGURATION_ERROR_EXIT_CODE) from exc
    except (AuthenticationError, EtcdTransportError) as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=TRANSPORT_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""
    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


app = typer.Typer(no_args_is_help=True, help="etcd key-value command-line interface")


@app.callback()
def main(
    ctx: typer.Context,
    endpoints: str | None = typer.Option(
        None, help="Comma-separated endpoints or SRV names"
    ),
    resolver: str | None = typer.Option(
        None, help="Resolver kind: static, dns or dns+srv"
    ),
    user: str | None = typer.Option(None, help="Auth user name"),
    password: str | None = typer.Option(None, help="Auth password"),
    timeout: float | None = typer.Option(
        None, min=0.001, help="Request timeout in seconds"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML config file path"
    ),
    log_level: str | None = typer.Option(None, help="Log level"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Load settings and store global options for all commands."""
    try:
        settings = load_settings(
            cli_params={
                "logging": {"level": log_level},
                "client": {
                    "endpoints": endpoints,
                    "resolver": resolver,
                    "user": user,
                    "password": password,
                    "timeout_seconds": timeout,
                },
            },
            config_path=config_path,
        )
    except ValueError as exc:
        _emit_error(exc, as_json)
        raise typer.Exit(code=CONFIGURATION_ERROR_EXIT_CODE) from exc

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
    ctx.obj = CliConfig(sdk=config_from_settings(settings), as_json=as_json)


@app.command("put")
def put_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to write"),
    value: str = typer.Argument(..., help="Value to store"),
    lease: int = typer.Option(0, min=0, help="Lease id to attach"),
) -> None:
    """Store one value under a key."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda client: client.put(key, value, lease=lease))


@app.command("get")
def get_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key, or key prefix with --prefix"),
    prefix: bool = typer.Option(False, "--prefix", help="Match every key with this prefix"),
    keys_only: bool = typer.Option(False, "--keys-only", help="Omit values"),
    limit: int = typer.Option(0, min=0, help="Maximum records for --prefix (0 = all)"),
) -> None:
    """Read one key, or every key under a prefix."""
    cfg = _require_config(ctx)
    if prefix:
        _run_command(
            cfg,
            lambda client: client.get_prefix(key, limit=limit, keys_only=keys_only),
        )
        return
    _run_command(cfg, lambda client: client.range(key, keys_only=keys_only))


@app.command("range")
def range_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Range start key"),
    range_end: str = typer.Argument("", help="Exclusive range end key"),
    limit: int = typer.Option(0, min=0, help="Maximum records (0 = all)"),
    revision: int = typer.Option(0, min=0, help="Read at this revision (0 = latest)"),
    count_only: bool = typer.Option(False, "--count-only", help="Return only the count"),
) -> None:
    """Read every key in ``[KEY, RANGE_END)``."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda client: client.range(
            key, range_end, limit=limit, revision=revision, count_only=count_only
        ),
    )


@app.command("resolve")
def resolve_command(ctx: typer.Context) -> None:
    """Print the addresses the configured resolver delivers."""
    cfg = _require_config(ctx)
    delivered: list[ResolutionResult] = []
    try:
        resolver = ResolverFactory(cfg.sdk.endpoints).create(cfg.sdk.resolver)
        resolver.start(delivered.append)
        resolver.shutdown()
    except ConfigurationError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=CONFIGURATION_ERROR_EXIT_CODE) from exc

    _emit_output(delivered[-1] if delivered else ResolutionResult(()), cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


if __name__ == "__main__":
    app()
