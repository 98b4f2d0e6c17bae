from __future__ import annotations
import typing
from ..types import *
from ..errors import require
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable

class JoinAccessor(Generic[T]):
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    def join(self, inner: Any, outer_key_selector: KeySelector[T, K],
             inner_key_selector: KeySelector[U, K],
             result_selector: Callable[[T, U], V],
             comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[V]':
        """inner join two sequences based on matching keys, in outer order"""
        from ..enumerable import AsyncEnumerable
        require(inner, "inner")
        require(outer_key_selector, "outer_key_selector")
        require(inner_key_selector, "inner_key_selector")
        require(result_selector, "result_selector")
        async def join_data(token: CancellationToken):
            inner_lookup = await _build_lookup(inner, inner_key_selector, comparer, token)
            if len(inner_lookup) == 0:
                return
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    outer_item = e.current
                    for inner_item in inner_lookup[outer_key_selector(outer_item)]:
                        yield result_selector(outer_item, inner_item)
        return AsyncEnumerable(join_data)

    def group_join(self, inner: Any, outer_key_selector: KeySelector[T, K],
                   inner_key_selector: KeySelector[U, K],
                   result_selector: Callable[[T, List[U]], V],
                   comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[V]':
        """correlates each outer element with the (possibly empty) list of matching inner elements"""
        from ..enumerable import AsyncEnumerable
        require(inner, "inner")
        require(outer_key_selector, "outer_key_selector")
        require(inner_key_selector, "inner_key_selector")
        require(result_selector, "result_selector")
        async def group_join_data(token: CancellationToken):
            inner_lookup = await _build_lookup(inner, inner_key_selector, comparer, token)
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    outer_item = e.current
                    yield result_selector(outer_item, inner_lookup[outer_key_selector(outer_item)])
        return AsyncEnumerable(group_join_data)


async def _build_lookup(source: Any, key_selector: KeySelector, comparer: Optional[EqualityComparer],
                        token: CancellationToken) -> Lookup:
    from ..factories import as_async_enumerable
    lookup = Lookup(comparer)
    async with as_async_enumerable(source).get_async_enumerator(token) as e:
        while await e.advance():
            item = e.current
            lookup._add(key_selector(item), item)
    return lookup
