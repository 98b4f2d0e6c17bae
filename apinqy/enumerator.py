"""
the pull cursor behind every AsyncEnumerable.

operators are written as async generators; AsyncEnumerator drives one of them
through advance/current/dispose and owns the state machine the generator
itself cannot express (terminal faults, cancellation, idempotent disposal).
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum

from .types import *
from .types import _MISSING
from .errors import EnumeratorStateError, InvalidOperationError, OperationCanceledError
from .cancellation import CancellationToken

logger = logging.getLogger("apinqy.enumerator")

IteratorFactory = Callable[[CancellationToken], AsyncIterator[T]]


class EnumeratorState(Enum):
    NOT_STARTED = "not_started"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAULTED = "faulted"
    CANCELED = "canceled"
    DISPOSED = "disposed"


_TERMINAL = frozenset({
    EnumeratorState.COMPLETED,
    EnumeratorState.FAULTED,
    EnumeratorState.CANCELED,
    EnumeratorState.DISPOSED,
})


async def _next_of(iterator: AsyncIterator[T]) -> T:
    return await iterator.__anext__()


class AsyncEnumerator(Generic[T]):
    """one enumeration of an AsyncEnumerable. use once, then dispose."""

    def __init__(self, factory: IteratorFactory[T], token: Optional[CancellationToken] = None):
        self._factory = factory
        self._token = token or CancellationToken.NONE
        self._iterator: Optional[AsyncIterator[T]] = None
        self._state = EnumeratorState.NOT_STARTED
        self._current: Any = _MISSING
        self._advancing = False

    @property
    def state(self) -> EnumeratorState:
        return self._state

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def current(self) -> T:
        """the element produced by the last successful advance()."""
        if self._current is _MISSING:
            raise EnumeratorStateError("current is only valid after advance() returned True")
        return self._current

    async def advance(self, token: Optional[CancellationToken] = None) -> bool:
        """
        move to the next element. returns False once the sequence is exhausted.
        a fault or cancellation is raised once; the enumerator is terminal afterwards.
        """
        self._current = _MISSING
        if self._state in _TERMINAL:
            return False
        if self._advancing:
            raise InvalidOperationError("advance() called while a previous advance() is pending")

        token = token or self._token
        self._advancing = True
        try:
            token.throw_if_cancellation_requested()
            if self._iterator is None:
                self._iterator = self._factory(self._token).__aiter__()
            value = await self._step(token)
        except StopAsyncIteration:
            await self._finish(EnumeratorState.COMPLETED)
            return False
        except asyncio.CancelledError:
            logger.debug("enumeration canceled")
            await self._finish(EnumeratorState.CANCELED)
            raise
        except Exception as exc:
            logger.debug("enumeration faulted: %r", exc)
            await self._finish(EnumeratorState.FAULTED)
            raise
        finally:
            self._advancing = False

        if self._state is EnumeratorState.DISPOSED:
            # dispose() arrived while this advance was in flight
            await self._close_iterator()
            return False
        self._state = EnumeratorState.SUSPENDED
        self._current = value
        return True

    async def _step(self, token: CancellationToken) -> T:
        if not token.can_be_canceled:
            return await self._iterator.__anext__()

        step = asyncio.ensure_future(_next_of(self._iterator))
        canceled = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({step, canceled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            step.cancel()
            await asyncio.gather(step, return_exceptions=True)
            raise
        finally:
            canceled.cancel()

        # a step that raised CancelledError is reported by asyncio as a plain cancellation
        if step.done() and not step.cancelled():
            return step.result()
        if not step.done():
            step.cancel()
            await asyncio.gather(step, return_exceptions=True)
        raise OperationCanceledError(token)

    async def _finish(self, state: EnumeratorState) -> None:
        if self._state is not EnumeratorState.DISPOSED:
            self._state = state
        await self._close_iterator()

    async def _close_iterator(self) -> None:
        iterator, self._iterator = self._iterator, None
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()

    async def dispose(self) -> None:
        """release the enumeration and everything upstream of it. safe to call repeatedly."""
        if self._state is EnumeratorState.DISPOSED:
            return
        self._state = EnumeratorState.DISPOSED
        self._current = _MISSING
        if not self._advancing:
            await self._close_iterator()

    # --- python protocol support ---

    def __aiter__(self) -> 'AsyncEnumerator[T]':
        return self

    async def __anext__(self) -> T:
        if await self.advance():
            return self._current
        raise StopAsyncIteration

    async def __aenter__(self) -> 'AsyncEnumerator[T]':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()

    def __repr__(self) -> str:
        return f"AsyncEnumerator(state={self._state.value})"
