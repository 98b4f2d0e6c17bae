from __future__ import annotations
import inspect
import typing
from collections import deque
from ..types import *
from ..types import _MISSING
from ..errors import require, require_non_negative
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable


async def _invoke(action: Callable[..., Any], *args: Any) -> None:
    result = action(*args)
    if inspect.isawaitable(result):
        await result


class UtilityAccessor(Generic[T]):
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    def do(self, on_next: Action[T],
           on_error: Optional[Callable[[BaseException], Any]] = None,
           on_completed: Optional[Callable[[], Any]] = None) -> 'AsyncEnumerable[T]':
        """
        observe the sequence for side-effects without changing it. on_next runs before
        the element is passed on, on_error sees a fault before it propagates, and
        on_completed runs on exhaustion. actions may be coroutine functions.
        """
        from ..enumerable import AsyncEnumerable
        require(on_next, "on_next")
        async def do_data(token: CancellationToken):
            async with self._enumerable.get_async_enumerator(token) as e:
                while True:
                    try:
                        if not await e.advance():
                            break
                    except Exception as exc:
                        if on_error is not None:
                            await _invoke(on_error, exc)
                        raise
                    await _invoke(on_next, e.current)
                    yield e.current
            if on_completed is not None:
                await _invoke(on_completed)
        return AsyncEnumerable(do_data)

    def scan(self, accumulator: Accumulator[U, T], seed: Any = _MISSING) -> 'AsyncEnumerable[U]':
        """
        running accumulation. the seed itself is never emitted; without one, the first
        element seeds the accumulation and only later states are yielded.
        scan(add, seed=8) over [1, 2, 3] -> 9, 11, 14
        """
        from ..enumerable import AsyncEnumerable
        require(accumulator, "accumulator")
        async def scan_data(token: CancellationToken):
            acc = seed
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if acc is _MISSING:
                        acc = e.current
                        continue
                    acc = accumulator(acc, e.current)
                    yield acc
        return AsyncEnumerable(scan_data)

    def expand(self, selector: Callable[[T], Any]) -> 'AsyncEnumerable[T]':
        """
        breadth-first expansion: yields the source, then the sequences the selector
        produced for each of its elements (in yield order), then their expansions, and
        so on. the selector runs as each element is pulled; a result that is not a
        sequence faults once its turn in the queue comes.
        """
        from ..enumerable import AsyncEnumerable
        from ..factories import as_async_enumerable
        require(selector, "selector")
        async def expand_data(token: CancellationToken):
            queue = deque([self._enumerable])
            while queue:
                source = as_async_enumerable(queue.popleft())
                async with source.get_async_enumerator(token) as e:
                    while await e.advance():
                        item = e.current
                        queue.append(selector(item))
                        yield item
        return AsyncEnumerable(expand_data)

    def ignore_elements(self) -> 'AsyncEnumerable[T]':
        """drain the source, keeping only its completion or fault"""
        from ..enumerable import AsyncEnumerable
        async def ignore_data(token: CancellationToken):
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    pass
            return
            yield  # pragma: no cover
        return AsyncEnumerable(ignore_data)

    def repeat(self, count: Optional[int] = None) -> 'AsyncEnumerable[T]':
        """re-enumerate the source 'count' times, or forever when count is None"""
        from ..enumerable import AsyncEnumerable
        if count is not None:
            require_non_negative(count, "count")
        async def repeat_data(token: CancellationToken):
            rounds = 0
            while count is None or rounds < count:
                rounds += 1
                async with self._enumerable.get_async_enumerator(token) as e:
                    while await e.advance():
                        yield e.current
        return AsyncEnumerable(repeat_data)

    def pipe(self, func: Callable[..., U], *args, **kwargs) -> U:
        """
        pipes the enumerable object into a function that takes it as its first argument.
        allows custom, reusable operators to sit inside a fluent chain.
        """
        require(func, "func")
        return func(self._enumerable, *args, **kwargs)
