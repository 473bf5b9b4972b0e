# This file defines the auth collaborator contract consumed by the gateways.
# Authentication policy itself lives elsewhere; the console only needs a bearer token and a sign-out hook.
# StaticCredentialProvider covers scripts and tests that run with a pre-issued token.
# Gateway calls run in worker threads, so providers are called off the event loop thread.

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

LOGGER = logging.getLogger("admin_console.auth")


class CredentialProvider(Protocol):
    """Bearer credential source.

    Both methods are invoked from gateway worker threads and must be thread-safe.
    A sign-out hook that touches view state has to hop back to its own loop,
    e.g. with `loop.call_soon_threadsafe`.
    """

    def get_credential(self) -> str | None: ...

    def on_unauthorized(self) -> None: ...


class StaticCredentialProvider:
    def __init__(
        self,
        token: str | None,
        *,
        on_sign_out: Callable[[], None] | None = None,
    ) -> None:
        self._token = token or None
        self._on_sign_out = on_sign_out
        self._lock = threading.Lock()
        self.sign_out_count = 0

    def get_credential(self) -> str | None:
        with self._lock:
            return self._token

    def on_unauthorized(self) -> None:
        with self._lock:
            self.sign_out_count += 1
            self._token = None
        LOGGER.warning("credential rejected; signing out")
        if self._on_sign_out is not None:
            self._on_sign_out()
