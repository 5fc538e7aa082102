"""Structured logging helpers shared by the etcd SDK and CLI."""

from . import fields
from .config import ContextFilter, JsonFormatter, PlainFormatter, configure_logging, get_logger
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "PlainFormatter",
    "bind_context",
    "clear_context",
    "configure_logging",
    "fields",
    "get_context",
    "get_logger",
    "log_context",
]
