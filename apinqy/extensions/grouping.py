from __future__ import annotations
import asyncio
import logging
import typing
from collections import deque
from ..types import *
from ..errors import require, require_positive
from ..cancellation import CancellationToken

if typing.TYPE_CHECKING:
    from ..enumerable import AsyncEnumerable, Grouping

logger = logging.getLogger("apinqy.grouping")


class _GroupByState:
    """
    the upstream cursor and per-key buffers shared by one group_by enumeration
    and every Grouping it hands out. pulls are serialized by a lock, and each
    pulled element is appended to its group's buffer before anyone sees it.
    """

    def __init__(self, source: 'AsyncEnumerable', key_selector: KeySelector, element_selector: Selector,
                 comparer: Optional[EqualityComparer], token: CancellationToken):
        self._enumerator = source.get_async_enumerator(token)
        self._key_selector = key_selector
        self._element_selector = element_selector
        self._wrap = key_wrapper(comparer)
        self._buffers: Dict[Hashable, List[Any]] = {}
        self._lock = asyncio.Lock()
        self._closed = False
        self.error: Optional[BaseException] = None
        self.groups: List['Grouping'] = []

    async def pull(self) -> bool:
        """route one upstream element into its group. False once no more pulls can happen."""
        async with self._lock:
            if self._closed:
                if self.error is not None:
                    raise self.error
                return False
            try:
                if not await self._enumerator.advance():
                    await self._close()
                    return False
                item = self._enumerator.current
                key = self._key_selector(item)
                element = self._element_selector(item)
            except (Exception, asyncio.CancelledError) as exc:
                self.error = exc
                await self._close()
                raise

            wrapped = self._wrap(key)
            buffer = self._buffers.get(wrapped)
            if buffer is None:
                buffer = self._buffers[wrapped] = []
                self.groups.append(self._make_group(key, buffer))
            buffer.append(element)
            return True

    async def stop(self) -> None:
        """no further upstream pulls; buffered groups stay enumerable."""
        async with self._lock:
            if not self._closed:
                logger.debug("group_by disposed before upstream was exhausted (%d groups buffered)", len(self.groups))
                await self._close()

    async def _close(self) -> None:
        self._closed = True
        await self._enumerator.dispose()

    def _make_group(self, key: Any, buffer: List[Any]) -> 'Grouping':
        from ..enumerable import Grouping
        async def group_data(token: CancellationToken):
            index = 0
            while True:
                if index < len(buffer):
                    yield buffer[index]
                    index += 1
                elif not await self.pull():
                    return
        return Grouping(key, group_data)


class GroupingAccessor(Generic[T]):
    def __init__(self, enumerable_instance: 'AsyncEnumerable[T]'):
        self._enumerable = enumerable_instance

    def group_by(self, key_selector: KeySelector[T, K],
                 element_selector: Optional[Selector[T, U]] = None,
                 result_selector: Optional[Callable[[K, 'Grouping[K, U]'], V]] = None,
                 comparer: Optional[EqualityComparer] = None) -> 'AsyncEnumerable[Any]':
        """
        group elements by a key, lazily. groups are yielded in first-occurrence order
        and fill up as upstream is pulled, whether by the parent or by a group.
        with a result_selector, yields result_selector(key, group) instead of groupings.
        """
        from ..enumerable import AsyncEnumerable
        require(key_selector, "key_selector")
        element_of = element_selector if element_selector is not None else (lambda item: item)

        async def group_by_data(token: CancellationToken):
            state = _GroupByState(self._enumerable, key_selector, element_of, comparer, token)
            yielded = 0
            try:
                while True:
                    if yielded < len(state.groups):
                        yield state.groups[yielded]
                        yielded += 1
                    elif not await state.pull():
                        return
            finally:
                await state.stop()

        grouped = AsyncEnumerable(group_by_data)
        if result_selector is None:
            return grouped
        return grouped.select(lambda group: result_selector(group.key, group))

    def buffer(self, count: int, skip: Optional[int] = None) -> 'AsyncEnumerable[List[T]]':
        """
        split into lists of 'count' elements, starting a new one every 'skip' elements.
        skip < count overlaps windows, skip > count drops the elements in between,
        and the trailing windows may be short. buffer(n) == buffer(n, n).
        """
        from ..enumerable import AsyncEnumerable
        require_positive(count, "count")
        step = count if skip is None else require_positive(skip, "skip")

        async def buffer_data(token: CancellationToken):
            windows = deque()
            index = 0
            async with self._enumerable.get_async_enumerator(token) as e:
                while await e.advance():
                    if index % step == 0:
                        windows.append([])
                    index += 1
                    for window in windows:
                        window.append(e.current)
                    if windows and len(windows[0]) == count:
                        yield windows.popleft()
            while windows:
                yield windows.popleft()
        return AsyncEnumerable(buffer_data)
