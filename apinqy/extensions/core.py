from __future__ import annotations
import typing
from collections import deque
from ..types import *
from ..errors import require, require_non_negative
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable, OrderedAsyncEnumerable

class _CoreOperations(Generic[T]):
    def where(self: 'AsyncEnumerable[T]', predicate: Predicate[T]) -> 'AsyncEnumerable[T]':
        """filter elements based on a predicate"""
        from ..enumerable import AsyncEnumerable
        require(predicate, "predicate")
        async def filter_data(token: CancellationToken):
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    if predicate(item):
                        yield item
        return AsyncEnumerable(filter_data)

    def where_with_index(self: 'AsyncEnumerable[T]', predicate: IndexedPredicate[T]) -> 'AsyncEnumerable[T]':
        """filter elements, passing each pulled element's zero-based index"""
        from ..enumerable import AsyncEnumerable
        require(predicate, "predicate")
        async def filter_data(token: CancellationToken):
            index = 0
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    if predicate(item, index):
                        yield item
                    index += 1
        return AsyncEnumerable(filter_data)

    def select(self: 'AsyncEnumerable[T]', selector: Selector[T, U]) -> 'AsyncEnumerable[U]':
        """project each element to a new form"""
        from ..enumerable import AsyncEnumerable
        require(selector, "selector")
        async def map_data(token: CancellationToken):
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    yield selector(e.current)
        return AsyncEnumerable(map_data)

    def select_with_index(self: 'AsyncEnumerable[T]', selector: IndexedSelector[T, U]) -> 'AsyncEnumerable[U]':
        """project each element to a new form, using the element's index"""
        from ..enumerable import AsyncEnumerable
        require(selector, "selector")
        async def map_with_index_data(token: CancellationToken):
            index = 0
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    yield selector(e.current, index)
                    index += 1
        return AsyncEnumerable(map_with_index_data)

    def select_async(self: 'AsyncEnumerable[T]', selector: Callable[[T], Awaitable[U]]) -> 'AsyncEnumerable[U]':
        """project each element through an async selector, awaiting one result at a time"""
        from ..enumerable import AsyncEnumerable
        require(selector, "selector")
        async def map_async_data(token: CancellationToken):
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    yield await selector(e.current)
        return AsyncEnumerable(map_async_data)

    def select_async_with_index(self: 'AsyncEnumerable[T]',
                                selector: Callable[[T, int], Awaitable[U]]) -> 'AsyncEnumerable[U]':
        from ..enumerable import AsyncEnumerable
        require(selector, "selector")
        async def map_async_with_index_data(token: CancellationToken):
            index = 0
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    yield await selector(e.current, index)
                    index += 1
        return AsyncEnumerable(map_async_with_index_data)

    def select_many(self: 'AsyncEnumerable[T]', selector: Selector[T, Any],
                    result_selector: Optional[Callable[[T, U], V]] = None) -> 'AsyncEnumerable[Any]':
        """
        project and flatten sequences. each inner sequence is drained before the
        next outer element is pulled. inner results may be async or plain iterables.
        """
        require(selector, "selector")
        return self.select_many_with_index(lambda item, _: selector(item), result_selector)

    def select_many_with_index(self: 'AsyncEnumerable[T]', selector: Callable[[T, int], Any],
                               result_selector: Optional[Callable[[T, U], V]] = None) -> 'AsyncEnumerable[Any]':
        """project and flatten sequences, passing the outer element's index"""
        from ..enumerable import AsyncEnumerable
        from ..factories import as_async_enumerable
        require(selector, "selector")
        async def flat_map_data(token: CancellationToken):
            index = 0
            async with self.get_async_enumerator(token) as outer:
                while await outer.advance():
                    item = outer.current
                    inner_source = as_async_enumerable(selector(item, index))
                    index += 1
                    async with inner_source.get_async_enumerator(token) as inner:
                        while await inner.advance():
                            if result_selector is None:
                                yield inner.current
                            else:
                                yield result_selector(item, inner.current)
        return AsyncEnumerable(flat_map_data)

    def cast(self: 'AsyncEnumerable[T]', type_filter: Type[U]) -> 'AsyncEnumerable[U]':
        """yields every element, faulting with TypeError on the first one that is not a type_filter"""
        from ..enumerable import AsyncEnumerable
        require(type_filter, "type_filter")
        async def cast_data(token: CancellationToken):
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    if not isinstance(item, type_filter):
                        raise TypeError(f"cannot cast {type(item).__name__} to {type_filter!r}")
                    yield item
        return AsyncEnumerable(cast_data)

    def of_type(self: 'AsyncEnumerable[T]', type_filter: Type[U]) -> 'AsyncEnumerable[U]':
        """filters the elements of a sequence based on a specified type"""
        require(type_filter, "type_filter")
        return self.where(lambda item: isinstance(item, type_filter))

    # --- take / skip family ---

    def take(self: 'AsyncEnumerable[T]', count: int) -> 'AsyncEnumerable[T]':
        """take the first 'count' elements. upstream is not touched when count <= 0"""
        from ..enumerable import AsyncEnumerable
        require(count, "count")
        async def take_data(token: CancellationToken):
            if count <= 0:
                return
            remaining = count
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    yield e.current
                    remaining -= 1
                    if remaining == 0:
                        break
        return AsyncEnumerable(take_data)

    def skip(self: 'AsyncEnumerable[T]', count: int) -> 'AsyncEnumerable[T]':
        """skip the first 'count' elements"""
        from ..enumerable import AsyncEnumerable
        require(count, "count")
        async def skip_data(token: CancellationToken):
            skipped = 0
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    if skipped < count:
                        skipped += 1
                        continue
                    yield e.current
        return AsyncEnumerable(skip_data)

    def take_while(self: 'AsyncEnumerable[T]', predicate: Predicate[T]) -> 'AsyncEnumerable[T]':
        """take elements while predicate is true"""
        require(predicate, "predicate")
        return self.take_while_with_index(lambda item, _: predicate(item))

    def take_while_with_index(self: 'AsyncEnumerable[T]', predicate: IndexedPredicate[T]) -> 'AsyncEnumerable[T]':
        """take elements while predicate(item, index) is true"""
        from ..enumerable import AsyncEnumerable
        require(predicate, "predicate")
        async def take_while_data(token: CancellationToken):
            index = 0
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    if not predicate(item, index):
                        break
                    index += 1
                    yield item
        return AsyncEnumerable(take_while_data)

    def skip_while(self: 'AsyncEnumerable[T]', predicate: Predicate[T]) -> 'AsyncEnumerable[T]':
        """skip elements while predicate is true"""
        require(predicate, "predicate")
        return self.skip_while_with_index(lambda item, _: predicate(item))

    def skip_while_with_index(self: 'AsyncEnumerable[T]', predicate: IndexedPredicate[T]) -> 'AsyncEnumerable[T]':
        """skip elements while predicate(item, index) is true, then yield the rest"""
        from ..enumerable import AsyncEnumerable
        require(predicate, "predicate")
        async def skip_while_data(token: CancellationToken):
            index = 0
            skipping = True
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    if skipping:
                        if predicate(item, index):
                            index += 1
                            continue
                        skipping = False
                    yield item
        return AsyncEnumerable(skip_while_data)

    def take_last(self: 'AsyncEnumerable[T]', count: int) -> 'AsyncEnumerable[T]':
        """
        yields the last 'count' elements once upstream is exhausted.
        take_last(0) never enumerates upstream.
        """
        from ..enumerable import AsyncEnumerable
        require_non_negative(count, "count")
        async def take_last_data(token: CancellationToken):
            if count == 0:
                return
            ring = deque(maxlen=count)
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    ring.append(e.current)
            for item in ring:
                yield item
        return AsyncEnumerable(take_last_data)

    def skip_last(self: 'AsyncEnumerable[T]', count: int) -> 'AsyncEnumerable[T]':
        """yields each element once 'count' further elements have arrived behind it"""
        from ..enumerable import AsyncEnumerable
        require_non_negative(count, "count")
        async def skip_last_data(token: CancellationToken):
            pending = deque()
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    pending.append(e.current)
                    if len(pending) > count:
                        yield pending.popleft()
        return AsyncEnumerable(skip_last_data)

    # --- ordering ---

    def order_by(self: 'AsyncEnumerable[T]', key_selector: KeySelector[T, K],
                 comparer: Optional[Comparer] = None) -> 'OrderedAsyncEnumerable[T]':
        """sort elements by a key (stable)"""
        from ..enumerable import OrderedAsyncEnumerable
        require(key_selector, "key_selector")
        return OrderedAsyncEnumerable(self, [(key_selector, comparer, False)])

    def order_by_descending(self: 'AsyncEnumerable[T]', key_selector: KeySelector[T, K],
                            comparer: Optional[Comparer] = None) -> 'OrderedAsyncEnumerable[T]':
        """sort elements by a key in descending order (stable)"""
        from ..enumerable import OrderedAsyncEnumerable
        require(key_selector, "key_selector")
        return OrderedAsyncEnumerable(self, [(key_selector, comparer, True)])

    def reverse(self: 'AsyncEnumerable[T]') -> 'AsyncEnumerable[T]':
        """inverts the order of the elements in a sequence"""
        from ..enumerable import AsyncEnumerable
        async def reverse_data(token: CancellationToken):
            data = []
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    data.append(e.current)
            for item in reversed(data):
                yield item
        return AsyncEnumerable(reverse_data)

    # --- composition ---

    def append(self: 'AsyncEnumerable[T]', element: T) -> 'AsyncEnumerable[T]':
        """appends a value to the end of the sequence"""
        from ..factories import return_value
        return self.concat(return_value(element))

    def prepend(self: 'AsyncEnumerable[T]', element: T) -> 'AsyncEnumerable[T]':
        """adds a value to the beginning of the sequence"""
        return self.start_with(element)

    def start_with(self: 'AsyncEnumerable[T]', *values: T) -> 'AsyncEnumerable[T]':
        """yields the given values, then the sequence"""
        from ..factories import from_iterable
        return from_iterable(values).concat(self)

    def concat(self: 'AsyncEnumerable[T]', *others: Any) -> 'AsyncEnumerable[T]':
        """concatenate with other sequences, preserving all elements and order"""
        from ..factories import concat
        for i, other in enumerate(others):
            require(other, f"others[{i}]")
        return concat(self, *others)

    def default_if_empty(self: 'AsyncEnumerable[T]', default_value: Optional[T] = None) -> 'AsyncEnumerable[T]':
        """returns the elements of a sequence, or a default value in a singleton collection if the sequence is empty"""
        from ..enumerable import AsyncEnumerable
        async def default_data(token: CancellationToken):
            empty = True
            async with self.get_async_enumerator(token) as e:
                while await e.advance():
                    empty = False
                    yield e.current
            if empty:
                yield default_value
        return AsyncEnumerable(default_data)

    def zip(self: 'AsyncEnumerable[T]', other: Any,
            result_selector: Optional[Callable[[T, U], V]] = None) -> 'AsyncEnumerable[Any]':
        """pairs elements positionally, stopping at the shorter sequence"""
        from ..enumerable import AsyncEnumerable
        from ..factories import as_async_enumerable
        require(other, "other")
        second = as_async_enumerable(other)
        async def zip_data(token: CancellationToken):
            async with self.get_async_enumerator(token) as left:
                async with second.get_async_enumerator(token) as right:
                    while await left.advance() and await right.advance():
                        if result_selector is None:
                            yield (left.current, right.current)
                        else:
                            yield result_selector(left.current, right.current)
        return AsyncEnumerable(zip_data)
