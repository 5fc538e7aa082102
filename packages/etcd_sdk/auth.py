"""Token caching and the authenticating gRPC client interceptor.

``TokenCache`` owns the only shared mutable state in the SDK: the current
token and its ``valid_until`` deadline. Every read and write goes through one
lock, and a refresh holds that lock for the duration of the Authenticate RPC,
so concurrent callers wait for the in-flight result instead of issuing a
second request.

``AuthInterceptor`` attaches the cached token to each unary call and extends
the token's validity after every successful response.
"""

from __future__ import annotations

import collections
import threading
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable

import grpc

from packages.etcd_sdk.calls import call_authenticate
from packages.etcd_sdk.errors import AuthenticationError, ConfigurationError
from packages.etcd_shared.logging import fields, get_logger, log_context

logger = get_logger(__name__)

AUTH_TOKEN_METADATA_KEY = "token"
DEFAULT_TOKEN_LIFETIME_SECONDS = 300.0
DEFAULT_TOKEN_JITTER_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class Credentials:
    """User/password pair used for the Authenticate RPC."""

    user: str
    password: str = field(repr=False)

    @classmethod
    def from_optional(cls, user: str | None, password: str | None) -> Credentials | None:
        """Return credentials only when both parts are present and non-empty."""
        if not user or not password:
            return None
        return cls(user=user, password=password)


class TokenState(StrEnum):
    """Observable lifecycle state of a ``TokenCache``."""

    EMPTY = "empty"
    VALID = "valid"
    EXPIRED = "expired"


class TokenCache:
    """Lazily fetched auth token with expiration and jitter."""

    def __init__(
        self,
        *,
        rpc: Callable[..., object] | None,
        credentials: Credentials | None,
        lifetime_seconds: float = DEFAULT_TOKEN_LIFETIME_SECONDS,
        jitter_seconds: float = DEFAULT_TOKEN_JITTER_SECONDS,
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if jitter_seconds < 0 or jitter_seconds >= lifetime_seconds:
            raise ConfigurationError(
                message=(
                    "token jitter must be >= 0 and below the token lifetime "
                    f"(lifetime={lifetime_seconds}, jitter={jitter_seconds})"
                ),
                value=str(jitter_seconds),
            )
        if credentials is not None and rpc is None:
            raise ConfigurationError(
                message="an Authenticate rpc is required when credentials are set",
                value=credentials.user,
            )
        self._rpc = rpc
        self._credentials = credentials
        self._lifetime = lifetime_seconds
        self._jitter = jitter_seconds
        self._timeout = timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._valid_until = 0.0

    @property
    def enabled(self) -> bool:
        """Return True when credentials are configured."""
        return self._credentials is not None

    @property
    def state(self) -> TokenState:
        with self._lock:
            return self._state_locked()

    @property
    def valid_until(self) -> float | None:
        """Return the validity deadline on the cache clock, ``None`` when empty."""
        with self._lock:
            return None if self._token is None else self._valid_until

    def get_or_refresh(self) -> str | None:
        """Return a valid token, authenticating first when needed.

        Returns ``None`` without network I/O when no credentials are set.

        :raises AuthenticationError: when the Authenticate RPC fails; the cache
            stays in its previous state.
        """
        if self._credentials is None:
            return None
        with self._lock:
            if self._state_locked() is TokenState.VALID:
                return self._token

            previous = self._state_locked()
            with log_context({fields.USER: self._credentials.user}):
                logger.debug("Refreshing auth token (state=%s)", previous)
                token = call_authenticate(
                    rpc=self._rpc,
                    user=self._credentials.user,
                    password=self._credentials.password,
                    timeout_seconds=self._timeout,
                )
            self._token = token
            self._valid_until = self._deadline()
            logger.info("Auth token refreshed")
            return token

    def extend(self) -> None:
        """Push a valid token's deadline out to ``now + lifetime - jitter``."""
        with self._lock:
            if self._state_locked() is TokenState.VALID:
                self._valid_until = self._deadline()

    def _state_locked(self) -> TokenState:
        if self._token is None:
            return TokenState.EMPTY
        if self._clock() >= self._valid_until:
            return TokenState.EXPIRED
        return TokenState.VALID

    def _deadline(self) -> float:
        return self._clock() + self._lifetime - self._jitter


class _CallDetails(
    collections.namedtuple(
        "_CallDetails",
        ("method", "timeout", "metadata", "credentials", "wait_for_ready", "compression"),
    ),
    grpc.ClientCallDetails,
):
    """Concrete ``ClientCallDetails`` carrying rewritten metadata."""


class AuthInterceptor(grpc.UnaryUnaryClientInterceptor):
    """Attach the cached token to outbound calls and extend it on success."""

    def __init__(self, token_cache: TokenCache) -> None:
        self._token_cache = token_cache

    def intercept_unary_unary(self, continuation, client_call_details, request):
        outcome = continuation(self._with_token(client_call_details), request)
        outcome.add_done_callback(self._on_done)
        return outcome

    def _with_token(self, details: grpc.ClientCallDetails) -> grpc.ClientCallDetails:
        try:
            token = self._token_cache.get_or_refresh()
        except AuthenticationError as error:
            with log_context({fields.OPERATION: details.method}):
                logger.warning("Sending call without auth token: %s", error)
            return details
        if token is None:
            return details

        metadata = [
            (key, value)
            for key, value in (details.metadata or ())
            if key != AUTH_TOKEN_METADATA_KEY
        ]
        metadata.append((AUTH_TOKEN_METADATA_KEY, token))
        return _CallDetails(
            method=details.method,
            timeout=details.timeout,
            metadata=metadata,
            credentials=details.credentials,
            wait_for_ready=details.wait_for_ready,
            compression=getattr(details, "compression", None),
        )

    def _on_done(self, call: grpc.Future) -> None:
        if call.cancelled():
            return
        if call.exception() is None:
            self._token_cache.extend()
