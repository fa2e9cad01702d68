import asyncio
from typing import Any, Callable, Optional


class CancellationToken:
    """Marks the lifetime of one detection session; late work checks it before delivering."""

    __slots__ = ("_cancelled",)

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class CancellableTimer:
    """
    Single-shot timer on an asyncio event loop.

    Starting it again while a call is pending replaces that call, which is
    what debouncing needs. Without an explicit loop it binds to the running
    loop the first time it is started.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        self.cancel()
        self._handle = self.loop.call_later(delay, self._fire, callback, args)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[..., Any], args) -> None:
        self._handle = None
        callback(*args)
