from __future__ import annotations

import asyncio
import threading
from typing import Callable, List, Optional

from .errors import OperationCanceledError


def _resolve(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CancellationRegistration:
    """handle returned by CancellationToken.register(); call unregister() to detach."""

    def __init__(self, source: 'CancellationTokenSource', callback: Callable[[], None]):
        self._source = source
        self._callback = callback

    def unregister(self) -> None:
        self._source._remove(self._callback)


class CancellationToken:
    """
    a read-only view of a CancellationTokenSource, passed down through enumerators.
    CancellationToken.NONE can never be canceled.
    """
    NONE: 'CancellationToken'

    def __init__(self, source: Optional['CancellationTokenSource'] = None):
        self._source = source

    @property
    def can_be_canceled(self) -> bool:
        return self._source is not None

    @property
    def is_cancellation_requested(self) -> bool:
        return self._source is not None and self._source.is_cancellation_requested

    def throw_if_cancellation_requested(self) -> None:
        if self.is_cancellation_requested:
            raise OperationCanceledError(self)

    def register(self, callback: Callable[[], None]) -> CancellationRegistration:
        """run callback on cancellation (immediately if already canceled)."""
        if self._source is None:
            return CancellationRegistration(CancellationTokenSource(), callback)
        return self._source._add(callback)

    async def wait(self) -> None:
        """suspend until cancellation is requested. never returns for NONE."""
        waiter = asyncio.get_running_loop().create_future()
        registration = self.register(lambda: self._wake(waiter))
        try:
            await waiter
        finally:
            registration.unregister()

    @staticmethod
    def _wake(waiter: asyncio.Future) -> None:
        loop = waiter.get_loop()
        if _running_loop() is loop:
            _resolve(waiter)
        elif not loop.is_closed():
            loop.call_soon_threadsafe(_resolve, waiter)

    def __repr__(self) -> str:
        return f"CancellationToken(canceled={self.is_cancellation_requested})"


CancellationToken.NONE = CancellationToken()


class CancellationTokenSource:
    """owns cancellation state; cancel() may be called from any thread."""

    def __init__(self):
        self._canceled = False
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.token = CancellationToken(self)

    @property
    def is_cancellation_requested(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        with self._lock:
            if self._canceled:
                return
            self._canceled = True
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def cancel_after(self, delay: float) -> None:
        """schedule cancel() on the running loop after delay seconds."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(delay, self.cancel)

    def _add(self, callback: Callable[[], None]) -> CancellationRegistration:
        with self._lock:
            run_now = self._canceled
            if not run_now:
                self._callbacks.append(callback)
        if run_now:
            callback()
        return CancellationRegistration(self, callback)

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
