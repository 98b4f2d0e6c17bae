import inspect
import logging
import typing
from .types import *
from .errors import require, require_non_negative
from .cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from .enumerable import AsyncEnumerable

logger = logging.getLogger("apinqy.recovery")

def from_iterable(data: Union[Iterable[T], AsyncIterable[T]]) -> 'AsyncEnumerable[T]':
    """create an async sequence from a plain or async iterable"""
    from .enumerable import AsyncEnumerable
    require(data, "data")
    if isinstance(data, AsyncEnumerable):
        return data
    if hasattr(data, "__aiter__"):
        async def async_iterable_data(token: CancellationToken):
            async for item in data:
                yield item
        return AsyncEnumerable(async_iterable_data)

    async def iterable_data(token: CancellationToken):
        for item in data:
            yield item
    return AsyncEnumerable(iterable_data)

def as_async_enumerable(source: Any) -> 'AsyncEnumerable[Any]':
    """coerce anything iterable into an AsyncEnumerable (used for inner and 'other' sequences)"""
    from .enumerable import AsyncEnumerable
    if isinstance(source, AsyncEnumerable):
        return source
    if source is None:
        raise TypeError("expected a sequence, got None")
    return from_iterable(source)

def from_range(start: int, count: int) -> 'AsyncEnumerable[int]':
    """create async sequence of 'count' consecutive integers"""
    require_non_negative(count, "count")
    return from_iterable(range(start, start + count))

def repeat(element: T, count: Optional[int] = None) -> 'AsyncEnumerable[T]':
    """create sequence with repeated item; repeats forever when count is None"""
    from .enumerable import AsyncEnumerable
    if count is not None:
        require_non_negative(count, "count")
    async def repeat_data(token: CancellationToken):
        produced = 0
        while count is None or produced < count:
            produced += 1
            yield element
    return AsyncEnumerable(repeat_data)

def empty() -> 'AsyncEnumerable[Any]':
    """create empty sequence"""
    return from_iterable(())

def return_value(value: T) -> 'AsyncEnumerable[T]':
    """create a single-element sequence"""
    return from_iterable((value,))

def throw(error: BaseException) -> 'AsyncEnumerable[Any]':
    """create a sequence that faults with 'error' on its first advance"""
    from .enumerable import AsyncEnumerable
    require(error, "error")
    async def throw_data(token: CancellationToken):
        raise error
        yield  # pragma: no cover
    return AsyncEnumerable(throw_data)

def generate(initial_state: U, condition: Predicate[U], iterate: Callable[[U], U],
             result_selector: Selector[U, T]) -> 'AsyncEnumerable[T]':
    """unfold a sequence from a state: yield result_selector(state) while condition(state)"""
    from .enumerable import AsyncEnumerable
    require(condition, "condition")
    require(iterate, "iterate")
    require(result_selector, "result_selector")
    async def generate_data(token: CancellationToken):
        state = initial_state
        while condition(state):
            yield result_selector(state)
            state = iterate(state)
    return AsyncEnumerable(generate_data)

def create(factory: Callable[[CancellationToken], AsyncIterator[T]]) -> 'AsyncEnumerable[T]':
    """
    create a sequence from an async generator function taking the enumeration's token.
    the function is called once per enumeration.
    """
    from .enumerable import AsyncEnumerable
    require(factory, "factory")
    return AsyncEnumerable(factory)

def defer(factory: Callable[[], Any]) -> 'AsyncEnumerable[T]':
    """build the real sequence when enumeration starts. factory may be a coroutine function"""
    from .enumerable import AsyncEnumerable
    require(factory, "factory")
    async def defer_data(token: CancellationToken):
        source = factory()
        if inspect.isawaitable(source):
            source = await source
        async with as_async_enumerable(source).get_async_enumerator(token) as e:
            while await e.advance():
                yield e.current
    return AsyncEnumerable(defer_data)

def from_future(source: Union[Awaitable[T], Callable[[], Awaitable[T]]]) -> 'AsyncEnumerable[T]':
    """
    wrap an awaitable as a one-element sequence. pass a callable to get a fresh
    awaitable per enumeration; a bare coroutine can only be enumerated once.
    """
    from .enumerable import AsyncEnumerable
    require(source, "source")
    async def future_data(token: CancellationToken):
        awaitable = source() if callable(source) else source
        yield await awaitable
    return AsyncEnumerable(future_data)

def concat(*sources: Any) -> 'AsyncEnumerable[T]':
    """enumerate each source to exhaustion, in order"""
    from .enumerable import AsyncEnumerable
    chain = [as_async_enumerable(require(s, f"sources[{i}]")) for i, s in enumerate(sources)]
    async def concat_data(token: CancellationToken):
        for source in chain:
            async with source.get_async_enumerator(token) as e:
                while await e.advance():
                    yield e.current
    return AsyncEnumerable(concat_data)

def catch(*sources: Any) -> 'AsyncEnumerable[T]':
    """
    enumerate the first source; on a fault, continue with the next one.
    a source that completes normally ends the sequence. if every source
    faults, the last fault surfaces.
    """
    from .enumerable import AsyncEnumerable
    chain = [as_async_enumerable(require(s, f"sources[{i}]")) for i, s in enumerate(sources)]
    async def catch_data(token: CancellationToken):
        error = None
        for position, source in enumerate(chain):
            error = None
            async with source.get_async_enumerator(token) as e:
                while True:
                    try:
                        if not await e.advance():
                            break
                    except Exception as exc:
                        error = exc
                        break
                    yield e.current
            if error is None:
                return
            logger.debug("source %d faulted with %r, trying next source", position, error)
        if error is not None:
            raise error
    return AsyncEnumerable(catch_data)

def on_error_resume_next(*sources: Any) -> 'AsyncEnumerable[T]':
    """enumerate every source in turn, moving on whether it completed or faulted"""
    from .enumerable import AsyncEnumerable
    chain = [as_async_enumerable(require(s, f"sources[{i}]")) for i, s in enumerate(sources)]
    async def resume_data(token: CancellationToken):
        for position, source in enumerate(chain):
            async with source.get_async_enumerator(token) as e:
                while True:
                    try:
                        if not await e.advance():
                            break
                    except Exception as exc:
                        logger.debug("source %d faulted with %r, resuming with next source", position, exc)
                        break
                    yield e.current
    return AsyncEnumerable(resume_data)

def from_observable(observable: Any) -> 'AsyncEnumerable[T]':
    """
    pull adapter over a push source. see observable.observable_to_enumerable.
    values pushed faster than they are pulled queue up without limit unless the
    observer_buffer_limit option is set, in which case overflow faults the
    sequence with BufferOverflowError.
    """
    from .observable import observable_to_enumerable
    return observable_to_enumerable(observable)

# --- aliases ---
apinqy = from_iterable
P = from_iterable
p = from_iterable
