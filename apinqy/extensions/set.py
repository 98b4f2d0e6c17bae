from __future__ import annotations
import typing
from ..types import *
from ..types import _MISSING
from ..errors import require
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable

class SetAccessor(Generic[T]):
    """
    distinct family and set-theoretic operators over async sequences.
    every set is owned by a single enumeration, so re-enumerating starts clean.
    equality is == / hash() unless an EqualityComparer is given.
    """
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    def distinct(self, key_selector: Optional[KeySelector[T, K]] = None,
                 comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[T]':
        """return distinct elements (by key when given). preserves order of first appearance."""
        from ..enumerable import AsyncEnumerable
        wrap = key_wrapper(comparer)
        async def distinct_data(token: CancellationToken):
            seen = set()
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    key = wrap(key_selector(item) if key_selector else item)
                    if key not in seen:
                        seen.add(key)
                        yield item
        return AsyncEnumerable(distinct_data)

    def distinct_until_changed(self, key_selector: Optional[KeySelector[T, K]] = None,
                               comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[T]':
        """suppress consecutive duplicates only; a value may reappear after a different one."""
        from ..enumerable import AsyncEnumerable
        equals = comparer.equals if comparer is not None else (lambda x, y: x == y)
        async def until_changed_data(token: CancellationToken):
            previous = _MISSING
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    key = key_selector(item) if key_selector else item
                    if previous is _MISSING or not equals(previous, key):
                        previous = key
                        yield item
        return AsyncEnumerable(until_changed_data)

    def union(self, other: Any, comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[T]':
        """return the order-preserving union of two sequences (distinct elements)."""
        require(other, "other")
        return self._enumerable.concat(other).set.distinct(comparer=comparer)

    def intersect(self, other: Any, comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[T]':
        """distinct elements of this sequence that also appear in 'other', in this sequence's order."""
        from ..enumerable import AsyncEnumerable
        require(other, "other")
        wrap = key_wrapper(comparer)
        async def intersect_data(token: CancellationToken):
            # the second sequence is fully buffered before the first is pulled
            remaining = await _key_set(other, wrap, token)
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    key = wrap(e.current)
                    if key in remaining:
                        remaining.discard(key)
                        yield e.current
        return AsyncEnumerable(intersect_data)

    def except_(self, other: Any, comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[T]':
        """distinct elements of this sequence that do not appear in 'other' (set difference)."""
        from ..enumerable import AsyncEnumerable
        require(other, "other")
        wrap = key_wrapper(comparer)
        async def except_data(token: CancellationToken):
            excluded = await _key_set(other, wrap, token)
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    key = wrap(e.current)
                    if key not in excluded:
                        excluded.add(key)
                        yield e.current
        return AsyncEnumerable(except_data)


async def _key_set(source: Any, wrap: Callable[[Any], Hashable], token: CancellationToken) -> set:
    from ..factories import as_async_enumerable
    keys = set()
    async with as_async_enumerable(source).get_async_enumerator(token) as e:
        while await e.advance():
            keys.add(wrap(e.current))
    return keys
