from __future__ import annotations
import typing
import numpy as np
from ..types import *
from ..types import _MISSING
from ..errors import NoElementsError, require
from ..cancellation import CancellationToken
from ..config import get_options

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable

class StatsAccessor(Generic[T]):
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    async def _get_values(self, selector: Optional[Selector[T, Any]], token: Optional[CancellationToken]) -> List[Any]:
        """helper to pull (projected) values for statistical operations."""
        source = self._enumerable.select(selector) if selector else self._enumerable
        return await source.to.list(token)

    def sum(self, selector: Optional[Selector[T, Union[int, float]]] = None,
            token: Optional[CancellationToken] = None) -> Awaitable[Union[int, float]]:
        """
        calc sum; an empty sequence sums to 0. float data is reduced with numpy when
        numpy_reductions is on; ints and decimals keep exact python arithmetic.
        """
        async def sum_data():
            values = await self._get_values(selector, token)
            if get_options().numpy_reductions and values and all(isinstance(x, (float, np.floating)) for x in values):
                return np.sum(values).item()
            return sum(values)
        return sum_data()

    def average(self, selector: Optional[Selector[T, Union[int, float]]] = None,
                token: Optional[CancellationToken] = None) -> Awaitable[float]:
        """calc average in a single streaming pass; decimals stay decimals"""
        async def average_data():
            count, total = 0, 0
            source = self._enumerable.select(selector) if selector else self._enumerable
            async with source.get_async_enumerator(token) as e:
                while await e.advance():
                    count += 1
                    total += e.current
            if count == 0: raise NoElementsError("cannot calculate average of empty sequence")
            return total / count
        return average_data()

    def min(self, selector: Optional[Selector[T, Any]] = None, comparer: Optional[Comparer] = None,
            token: Optional[CancellationToken] = None) -> Awaitable[Any]:
        """find minimum (of the projected values, when a selector is given)"""
        return self._extreme(selector, comparer, -1, "minimum", token)

    def max(self, selector: Optional[Selector[T, Any]] = None, comparer: Optional[Comparer] = None,
            token: Optional[CancellationToken] = None) -> Awaitable[Any]:
        """find maximum (of the projected values, when a selector is given)"""
        return self._extreme(selector, comparer, 1, "maximum", token)

    async def _extreme(self, selector: Optional[Selector[T, Any]], comparer: Optional[Comparer],
                       sign: int, name: str, token: Optional[CancellationToken]) -> Any:
        compare = comparer if comparer else default_compare
        best = _MISSING
        for value in await self._get_values(selector, token):
            if best is _MISSING or compare(value, best) * sign > 0:
                best = value
        if best is _MISSING: raise NoElementsError(f"cannot find {name} of empty sequence")
        return best

    def min_by(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer] = None,
               token: Optional[CancellationToken] = None) -> Awaitable[List[T]]:
        """all elements sharing the smallest key, in source order"""
        require(key_selector, "key_selector")
        return self._extreme_by(key_selector, comparer, -1, token)

    def max_by(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer] = None,
               token: Optional[CancellationToken] = None) -> Awaitable[List[T]]:
        """all elements sharing the largest key, in source order"""
        require(key_selector, "key_selector")
        return self._extreme_by(key_selector, comparer, 1, token)

    async def _extreme_by(self, key_selector: KeySelector[T, K], comparer: Optional[Comparer],
                          sign: int, token: Optional[CancellationToken]) -> List[T]:
        compare = comparer if comparer else default_compare
        best_key, ties = _MISSING, []
        async with self._enumerable.get_async_enumerator(token) as e:
            while await e.advance():
                item = e.current
                key = key_selector(item)
                # first element, a strictly better key, or a tie
                order = 1 if best_key is _MISSING else compare(key, best_key) * sign
                if order > 0:
                    best_key, ties = key, [item]
                elif order == 0:
                    ties.append(item)
        if best_key is _MISSING: raise NoElementsError("cannot find extremes of empty sequence")
        return ties
