# This file decouples raw search keystrokes from the filter updates that trigger a refetch.
# It exists so a burst of typing collapses into one propagation after a quiet period.
# Timers are explicit cancellable handles so disposing a view can never leave a late callback behind.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

LOGGER = logging.getLogger("admin_console.debounce")


class CancellableTimer:
    """One-shot timer on the running event loop with an explicit `cancel()`."""

    def __init__(
        self,
        delay_seconds: float,
        callback: Callable[[], None],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self._fired = False
        self._loop = loop or asyncio.get_running_loop()
        self._handle: asyncio.TimerHandle | None = self._loop.call_later(
            max(0.0, delay_seconds), self._fire
        )

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._fired

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._fired = True
        self._handle = None
        self._callback()


class DebouncedSearch:
    """Trailing-edge debounce: only the last text of a burst reaches `on_settle`."""

    def __init__(
        self,
        *,
        delay_seconds: float,
        on_settle: Callable[[str], None],
    ) -> None:
        self.delay_seconds = delay_seconds
        self._on_settle = on_settle
        self._timer: CancellableTimer | None = None
        self.typed_text = ""

    @property
    def pending(self) -> bool:
        return self._timer is not None and self._timer.pending

    def on_input(self, raw_text: str) -> None:
        self.typed_text = raw_text
        self.cancel()
        self._timer = CancellableTimer(self.delay_seconds, self._settle)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        self.cancel()
        self.typed_text = ""

    def _settle(self) -> None:
        self._timer = None
        LOGGER.debug("search settled text=%r", self.typed_text)
        self._on_settle(self.typed_text)
