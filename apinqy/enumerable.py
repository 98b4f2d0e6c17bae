from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cmp_to_key
from .types import *
from .cancellation import CancellationToken
from .enumerator import AsyncEnumerator, IteratorFactory
from .errors import require

# --- core functionality ---
from .extensions.core import _CoreOperations

# --- accessors ---
from .extensions.set import SetAccessor
from .extensions.join import JoinAccessor
from .extensions.grouping import GroupingAccessor
from .extensions.stats import StatsAccessor
from .extensions.utility import UtilityAccessor
from .extensions.recovery import RecoveryAccessor
from .extensions.terminal import TerminalAccessor

# --- abstract base class ---

class IAsyncEnumerable(ABC, Generic[T]):
    @abstractmethod
    def get_async_enumerator(self, token: Optional[CancellationToken] = None) -> AsyncEnumerator[T]:
        """start a fresh enumeration"""
        pass

# --- base enumerable implementation ---

class _BaseAsyncEnumerable(IAsyncEnumerable[T]):
    def __init__(self, factory: IteratorFactory[T]):
        """init with a factory that builds the element stream when enumeration starts"""
        self._factory = factory

    def get_async_enumerator(self, token: Optional[CancellationToken] = None) -> AsyncEnumerator[T]:
        """each call is independent: nothing is shared or cached between enumerations"""
        return AsyncEnumerator(self._factory, token)

    def __aiter__(self) -> AsyncEnumerator[T]:
        return self.get_async_enumerator()

# --- main enumerable class ---

class AsyncEnumerable(
    _BaseAsyncEnumerable[T],
    _CoreOperations[T]
):
    """a cold, lazy, linq-inspired async sequence."""
    def __init__(self, factory: IteratorFactory[T]):
        super().__init__(factory)
        # --- initialize accessors ---
        self.set = SetAccessor(self)
        self.join = JoinAccessor(self)
        self.group = GroupingAccessor(self)
        self.stats = StatsAccessor(self)
        self.util = UtilityAccessor(self)
        self.recover = RecoveryAccessor(self)
        self.to = TerminalAccessor(self)

# --- ordered enumerable class ---

SortKey = Tuple[KeySelector, Optional[Comparer], bool]


class OrderedAsyncEnumerable(AsyncEnumerable[T]):
    """represents a sorted sequence, allowing for subsequent orderings."""

    def __init__(self, source: AsyncEnumerable[T], sort_keys: List[SortKey]):
        self._source = source
        self._sort_keys = sort_keys
        super().__init__(self._sorted_data)

    async def _sorted_data(self, token: CancellationToken) -> AsyncIterator[T]:
        """drains upstream on the first advance, then applies every sort step at once."""
        data = []
        async with self._source.get_async_enumerator(token) as e:
            while await e.advance():
                data.append(e.current)

        # python's sort is stable, so we sort from the last key to the first
        for key_selector, comparer, is_descending in reversed(self._sort_keys):
            if comparer is None:
                data.sort(key=key_selector, reverse=is_descending)
            else:
                wrap = cmp_to_key(comparer)
                data.sort(key=lambda item, k=key_selector, w=wrap: w(k(item)), reverse=is_descending)

        for item in data:
            yield item

    def _then(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer], descending: bool) -> 'OrderedAsyncEnumerable[T]':
        require(key_selector, "key_selector")
        return OrderedAsyncEnumerable(self._source, self._sort_keys + [(key_selector, comparer, descending)])

    def then_by(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer] = None) -> 'OrderedAsyncEnumerable[T]':
        """secondary sort ascending"""
        return self._then(key_selector, comparer, False)

    def then_by_descending(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer] = None) -> 'OrderedAsyncEnumerable[T]':
        """secondary sort descending"""
        return self._then(key_selector, comparer, True)

# --- grouping class ---

class Grouping(AsyncEnumerable[T], Generic[K, T]):
    """a key plus the async sequence of elements that share it."""

    def __init__(self, key: K, factory: IteratorFactory[T]):
        super().__init__(factory)
        self._key = key

    @property
    def key(self) -> K:
        return self._key

    def __repr__(self) -> str:
        return f"Grouping(key={self._key!r})"
