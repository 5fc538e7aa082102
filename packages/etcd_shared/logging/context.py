"""``contextvars``-backed logging context shared by SDK and CLI code.

Resolvers and the token cache bind fields such as the resolver kind or the
SRV query name for the duration of one lookup, and every record logged in
that block carries them.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Mapping

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar("etcd_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a shallow copy of current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind values into the current logging context, skipping ``None``."""
    if not values:
        return
    current = _LOG_CONTEXT.get().copy()
    current.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    _LOG_CONTEXT.set(current)


def clear_context(*keys: str) -> None:
    """Clear selected keys, or everything when no keys are given."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = _LOG_CONTEXT.get().copy()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


class log_context:
    """Bind ``values`` for one block and restore the outer context afterwards.

    Exceptions raised inside the block pass through untouched; SDK errors are
    frozen dataclasses and cannot have ``__traceback__`` reassigned.
    """

    def __init__(self, values: Mapping[str, object]) -> None:
        self._values = {str(key): value for key, value in values.items()}
        self._token: Token[dict[str, str]] | None = None

    def __enter__(self) -> None:
        self._token = _LOG_CONTEXT.set(_LOG_CONTEXT.get().copy())
        bind_context(**self._values)

    def __exit__(self, *_: object) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None
