from __future__ import annotations
import inspect
import typing
import numpy as np
import pandas as pd
from ..types import *
from ..types import _MISSING
from ..errors import (
    ArgumentError, NoElementsError, MoreThanOneElementError,
    require, require_non_negative,
)
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable
    from ..observable import AsyncObservable

class TerminalAccessor(Generic[T]):
    """
    operations that consume the sequence and produce a single awaitable result.
    arguments are validated when the method is called; the returned coroutine does
    the enumeration. every method accepts an optional cancellation token.
    """
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    async def _items(self, token: Optional[CancellationToken]) -> List[T]:
        data = []
        async with self._enumerable.get_async_enumerator(token) as e:
            while await e.advance():
                data.append(e.current)
        return data

    # --- materialization ---

    def list(self, token: Optional[CancellationToken] = None) -> Awaitable[List[T]]:
        """convert to list"""
        return self._items(token)

    def array(self, token: Optional[CancellationToken] = None) -> Awaitable[np.ndarray]:
        """convert to numpy array"""
        async def array_data():
            return np.array(await self._items(token))
        return array_data()

    def set(self, token: Optional[CancellationToken] = None) -> Awaitable[Set[T]]:
        """convert to set"""
        async def set_data():
            return set(await self._items(token))
        return set_data()

    def dict(self, key_selector: KeySelector[T, K],
             value_selector: Optional[Selector[T, V]] = None,
             comparer: Optional[EqualityComparer] = None,
             token: Optional[CancellationToken] = None) -> Awaitable[Dict[K, V]]:
        """
        convert to dictionary. a key repeated under the comparer faults with ArgumentError;
        the returned dict is keyed by the keys as selected.
        """
        require(key_selector, "key_selector")
        val_sel = value_selector if value_selector else lambda item: item
        wrap = key_wrapper(comparer)
        async def dict_data():
            result, seen = {}, set()
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    key = key_selector(item)
                    wrapped = wrap(key)
                    if wrapped in seen:
                        raise ArgumentError(f"an element with the key {key!r} has already been added", "key_selector")
                    seen.add(wrapped)
                    result[key] = val_sel(item)
            return result
        return dict_data()

    def lookup(self, key_selector: KeySelector[T, K],
               element_selector: Optional[Selector[T, V]] = None,
               comparer: Optional[EqualityComparer] = None,
               token: Optional[CancellationToken] = None) -> Awaitable[Lookup[K, V]]:
        """convert to a one-to-many Lookup, keys in first-occurrence order"""
        require(key_selector, "key_selector")
        element_of = element_selector if element_selector else lambda item: item
        async def lookup_data():
            result = Lookup(comparer)
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    item = e.current
                    result._add(key_selector(item), element_of(item))
            return result
        return lookup_data()

    def pandas(self, token: Optional[CancellationToken] = None) -> Awaitable[pd.Series]:
        """convert to pandas series"""
        async def series_data():
            return pd.Series(await self._items(token))
        return series_data()

    def df(self, token: Optional[CancellationToken] = None) -> Awaitable[pd.DataFrame]:
        """convert to pandas dataframe"""
        async def frame_data():
            return pd.DataFrame(await self._items(token))
        return frame_data()

    # --- quantifiers ---

    def count(self, predicate: Optional[Predicate[T]] = None,
              token: Optional[CancellationToken] = None) -> Awaitable[int]:
        """count elements (matching predicate, when given)"""
        async def count_data():
            total = 0
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if predicate is None or predicate(e.current):
                        total += 1
            return total
        return count_data()

    def any(self, predicate: Optional[Predicate[T]] = None,
            token: Optional[CancellationToken] = None) -> Awaitable[bool]:
        """check if any element satisfies condition; stops at the first hit"""
        async def any_data():
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if predicate is None or predicate(e.current):
                        return True
            return False
        return any_data()

    def all(self, predicate: Predicate[T], token: Optional[CancellationToken] = None) -> Awaitable[bool]:
        """check if all elements satisfy condition; stops at the first miss"""
        require(predicate, "predicate")
        async def all_data():
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if not predicate(e.current):
                        return False
            return True
        return all_data()

    def contains(self, value: T, comparer: Optional[EqualityComparer] = None,
                 token: Optional[CancellationToken] = None) -> Awaitable[bool]:
        """check whether the sequence holds value"""
        equals = comparer.equals if comparer is not None else (lambda x, y: x == y)
        return self.any(lambda item: equals(item, value), token)

    def is_empty(self, token: Optional[CancellationToken] = None) -> Awaitable[bool]:
        """true when the sequence has no elements; pulls at most one"""
        async def is_empty_data():
            return not await self.any(token=token)
        return is_empty_data()

    # --- element operators ---

    def first(self, predicate: Optional[Predicate[T]] = None,
              token: Optional[CancellationToken] = None) -> Awaitable[T]:
        """get first element (matching predicate); NoElementsError when there is none"""
        async def first_data():
            found = await self._first(predicate, token)
            if found is _MISSING:
                raise NoElementsError() if predicate is None else NoElementsError("no element satisfies the condition")
            return found
        return first_data()

    def first_or_default(self, predicate: Optional[Predicate[T]] = None, default: Optional[T] = None,
                         token: Optional[CancellationToken] = None) -> Awaitable[Optional[T]]:
        """get first element or default"""
        async def first_or_default_data():
            found = await self._first(predicate, token)
            return default if found is _MISSING else found
        return first_or_default_data()

    async def _first(self, predicate: Optional[Predicate[T]], token: Optional[CancellationToken]) -> Any:
        async with self._enumerable.get_async_enumerator(token) as e:
            while await e.advance():
                if predicate is None or predicate(e.current):
                    return e.current
        return _MISSING

    def last(self, predicate: Optional[Predicate[T]] = None,
             token: Optional[CancellationToken] = None) -> Awaitable[T]:
        """get last element (matching predicate); NoElementsError when there is none"""
        async def last_data():
            found = await self._last(predicate, token)
            if found is _MISSING:
                raise NoElementsError() if predicate is None else NoElementsError("no element satisfies the condition")
            return found
        return last_data()

    def last_or_default(self, predicate: Optional[Predicate[T]] = None, default: Optional[T] = None,
                        token: Optional[CancellationToken] = None) -> Awaitable[Optional[T]]:
        """get last element or default"""
        async def last_or_default_data():
            found = await self._last(predicate, token)
            return default if found is _MISSING else found
        return last_or_default_data()

    async def _last(self, predicate: Optional[Predicate[T]], token: Optional[CancellationToken]) -> Any:
        found = _MISSING
        async with self._enumerable.get_async_enumerator(token) as e:
            while await e.advance():
                if predicate is None or predicate(e.current):
                    found = e.current
        return found

    def single(self, predicate: Optional[Predicate[T]] = None,
               token: Optional[CancellationToken] = None) -> Awaitable[T]:
        """get single element, erroring if not exactly one"""
        async def single_data():
            found = await self._single(predicate, token)
            if found is _MISSING:
                raise NoElementsError("sequence contains no matching elements")
            return found
        return single_data()

    def single_or_default(self, predicate: Optional[Predicate[T]] = None, default: Optional[T] = None,
                          token: Optional[CancellationToken] = None) -> Awaitable[Optional[T]]:
        """get the single element or default when there is none; more than one still errors"""
        async def single_or_default_data():
            found = await self._single(predicate, token)
            return default if found is _MISSING else found
        return single_or_default_data()

    async def _single(self, predicate: Optional[Predicate[T]], token: Optional[CancellationToken]) -> Any:
        found = _MISSING
        async with self._enumerable.get_async_enumerator(token) as e:
            while await e.advance():
                if predicate is None or predicate(e.current):
                    if found is not _MISSING:
                        raise MoreThanOneElementError()
                    found = e.current
        return found

    def element_at(self, index: int, token: Optional[CancellationToken] = None) -> Awaitable[T]:
        """get the element at a zero-based position"""
        require_non_negative(index, "index")
        async def element_at_data():
            found = await self.element_at_or_default(index, _MISSING, token)
            if found is _MISSING:
                raise NoElementsError(f"sequence has no element at index {index}")
            return found
        return element_at_data()

    def element_at_or_default(self, index: int, default: Optional[T] = None,
                              token: Optional[CancellationToken] = None) -> Awaitable[Optional[T]]:
        """get the element at a zero-based position, or default when the sequence is shorter"""
        require(index, "index")
        async def element_at_or_default_data():
            if index < 0:
                return default
            position = 0
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if position == index:
                        return e.current
                    position += 1
            return default
        return element_at_or_default_data()

    # --- folds ---

    def aggregate(self, accumulator: Accumulator[U, T], seed: Any = _MISSING,
                  result_selector: Optional[Selector[U, V]] = None,
                  token: Optional[CancellationToken] = None) -> Awaitable[Any]:
        """
        applies accumulator over the sequence. without a seed the first element seeds
        the fold and an empty sequence raises NoElementsError; with a seed, an empty
        sequence returns the seed (through result_selector, when given).
        """
        require(accumulator, "accumulator")
        async def aggregate_data():
            acc = seed
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    acc = e.current if acc is _MISSING else accumulator(acc, e.current)
            if acc is _MISSING:
                raise NoElementsError("cannot aggregate empty sequence without seed")
            return result_selector(acc) if result_selector else acc
        return aggregate_data()

    def sequence_equal(self, other: Any, comparer: Optional[EqualityComparer] = None,
                       token: Optional[CancellationToken] = None) -> Awaitable[bool]:
        """pairwise equality of two sequences, including their lengths"""
        from ..factories import as_async_enumerable
        require(other, "other")
        second = as_async_enumerable(other)
        equals = comparer.equals if comparer is not None else (lambda x, y: x == y)
        async def sequence_equal_data():
            async with self._enumerable.get_async_enumerator(token) as left:
                async with second.get_async_enumerator(token) as right:
                    while await left.advance():
                        if not await right.advance() or not equals(left.current, right.current):
                            return False
                    return not await right.advance()
        return sequence_equal_data()

    def for_each(self, action: Callable[[T], Any], token: Optional[CancellationToken] = None) -> Awaitable[None]:
        """
        performs the action on each element for side-effects. coroutine actions are awaited
        before the next element is pulled.
        """
        require(action, "action")
        async def for_each_data():
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    result = action(e.current)
                    if inspect.isawaitable(result):
                        await result
        return for_each_data()

    # --- bridging ---

    def observable(self) -> 'AsyncObservable[T]':
        """expose the sequence as a push source; each subscription runs its own pull loop"""
        from ..observable import AsyncObservable
        return AsyncObservable(self._enumerable)
