from __future__ import annotations
import asyncio
import inspect
import logging
import typing
from ..types import *
from ..errors import require, require_non_negative
from ..cancellation import CancellationToken
from .utility import _invoke

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable

logger = logging.getLogger("apinqy.recovery")

class RecoveryAccessor(Generic[T]):
    """
    operators that decide what gets pulled after a fault.
    cancellation is an asyncio.CancelledError and is never intercepted here.
    """
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    def catch(self, handler: Callable[[BaseException], Any],
              exception_type: Union[Type[BaseException], Tuple[Type[BaseException], ...]] = Exception) -> 'AsyncEnumerable[T]':
        """
        on a fault matching exception_type, continue with the sequence handler(exc) returns.
        the switch happens once: faults of the fallback propagate, and so does anything
        the handler itself raises. the handler may be a coroutine function.
        """
        from ..enumerable import AsyncEnumerable
        from ..factories import as_async_enumerable
        require(handler, "handler")
        require(exception_type, "exception_type")
        async def catch_data(token: CancellationToken):
            error = None
            async with self._enumerable.get_async_enumerator(token) as e:
                while True:
                    try:
                        if not await e.advance():
                            break
                    except exception_type as exc:
                        if isinstance(exc, asyncio.CancelledError):
                            raise
                        error = exc
                        break
                    yield e.current
            if error is None:
                return

            logger.debug("catch switching to handler sequence after %r", error)
            fallback = handler(error)
            if inspect.isawaitable(fallback):
                fallback = await fallback
            async with as_async_enumerable(fallback).get_async_enumerator(token) as e:
                while await e.advance():
                    yield e.current
        return AsyncEnumerable(catch_data)

    def catch_with(self, *fallbacks: Any) -> 'AsyncEnumerable[T]':
        """on a fault, continue with the next fallback; a normal completion ends the sequence."""
        from ..factories import catch
        return catch(self._enumerable, *fallbacks)

    def on_error_resume_next(self, *others: Any) -> 'AsyncEnumerable[T]':
        """continue with each of 'others' in turn, whether the previous one completed or faulted."""
        from ..factories import on_error_resume_next
        return on_error_resume_next(self._enumerable, *others)

    def retry(self, count: Optional[int] = None) -> 'AsyncEnumerable[T]':
        """
        re-enumerate the source after a fault. retries forever when count is None, otherwise
        makes at most 'count' attempts in total and raises the last fault. retry(0) is empty.
        elements yielded by a failed attempt are not taken back.
        """
        from ..enumerable import AsyncEnumerable
        if count is not None:
            require_non_negative(count, "count")
        async def retry_data(token: CancellationToken):
            attempt = 0
            while count is None or attempt < count:
                attempt += 1
                async with self._enumerable.get_async_enumerator(token) as e:
                    while True:
                        try:
                            if not await e.advance():
                                return
                        except Exception as exc:
                            if count is not None and attempt >= count:
                                logger.warning("retry gave up after %d attempts: %r", attempt, exc)
                                raise
                            logger.debug("attempt %d faulted with %r, retrying", attempt, exc)
                            break
                        yield e.current
        return AsyncEnumerable(retry_data)

    def finally_(self, action: Callable[[], Any]) -> 'AsyncEnumerable[T]':
        """
        run action once when an enumeration ends: on exhaustion, on a fault, or when the
        consumer disposes early. coroutine functions are awaited.
        """
        from ..enumerable import AsyncEnumerable
        require(action, "action")
        async def finally_data(token: CancellationToken):
            try:
                async with self._enumerable.get_async_enumerator(token) as e:
                    while await e.advance():
                        yield e.current
            finally:
                await _invoke(action)
        return AsyncEnumerable(finally_data)
