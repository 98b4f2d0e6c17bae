"""
bridging between pull (AsyncEnumerable) and push (observer) sources.

AsyncObservable runs a pull loop per subscription and pushes what it pulls.
observable_to_enumerable goes the other way: it subscribes on the first
advance and queues pushed values until the consumer asks for them.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import typing
from abc import ABC, abstractmethod
from collections import deque

from .types import *
from .errors import BufferOverflowError, require
from .cancellation import CancellationToken, CancellationTokenSource
from .config import get_options

if typing.TYPE_CHECKING:
    from .enumerable import AsyncEnumerable

logger = logging.getLogger("apinqy.observable")


# --- observers ---

class Observer(ABC, Generic[T]):
    @abstractmethod
    def on_next(self, value: T) -> None:
        pass

    @abstractmethod
    def on_error(self, error: BaseException) -> None:
        pass

    @abstractmethod
    def on_completed(self) -> None:
        pass


def _raise(error: BaseException) -> None:
    raise error


class AnonymousObserver(Observer[T]):
    """an observer built from callbacks. without on_error, a pushed error is raised."""

    def __init__(self, on_next: Optional[Action[T]] = None,
                 on_error: Optional[Callable[[BaseException], Any]] = None,
                 on_completed: Optional[Callable[[], Any]] = None):
        self._on_next = on_next or (lambda value: None)
        self._on_error = on_error or _raise
        self._on_completed = on_completed or (lambda: None)

    def on_next(self, value: T) -> None:
        self._on_next(value)

    def on_error(self, error: BaseException) -> None:
        self._on_error(error)

    def on_completed(self) -> None:
        self._on_completed()


def _as_observer(observer: Any, on_error: Optional[Callable], on_completed: Optional[Callable]) -> Observer:
    if isinstance(observer, Observer):
        return observer
    return AnonymousObserver(observer, on_error, on_completed)


# --- subscriptions ---

class Subscription:
    """handle returned by subscribe(). dispose() is idempotent and thread-safe."""

    def __init__(self, dispose_action: Optional[Callable[[], None]] = None):
        self._dispose_action = dispose_action
        self._lock = threading.RLock()
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            action, self._dispose_action = self._dispose_action, None
        if action is not None:
            action()


class _PullSubscription(Subscription):
    """
    subscription of an AsyncObservable. every notification is delivered under the
    same lock dispose() takes, so nothing reaches the observer once dispose() returns.
    """

    def __init__(self, source: CancellationTokenSource):
        super().__init__(source.cancel)
        self.source = source
        self.task: Optional[asyncio.Task] = None

    def notify(self, kind: str, callback: Callable[..., None], *args: Any) -> bool:
        with self._lock:
            if self._disposed:
                logger.debug("dropped %s notification after unsubscribe", kind)
                return False
            callback(*args)
            return True

    async def wait(self) -> None:
        """wait for the pull loop to finish. errors raised by observer callbacks surface here."""
        if self.task is not None:
            await self.task


# --- pull -> push ---

class AsyncObservable(Generic[T]):
    """
    a cold push view of an AsyncEnumerable. each subscribe() starts an independent
    pull loop task on the running event loop.
    """

    def __init__(self, source: 'AsyncIterable[T]'):
        self._source = require(source, "source")

    def subscribe(self, observer: Union[Observer[T], Action[T], None] = None,
                  on_error: Optional[Callable[[BaseException], Any]] = None,
                  on_completed: Optional[Callable[[], Any]] = None) -> _PullSubscription:
        """subscribe an Observer, or on_next/on_error/on_completed callbacks. needs a running loop."""
        target = _as_observer(observer, on_error, on_completed)
        loop = asyncio.get_running_loop()
        subscription = _PullSubscription(CancellationTokenSource())
        subscription.task = loop.create_task(self._pull(target, subscription))
        logger.debug("subscription started")
        return subscription

    async def _pull(self, observer: Observer[T], subscription: _PullSubscription) -> None:
        enumerator = self._source.get_async_enumerator(subscription.source.token)
        try:
            while not subscription.is_disposed:
                try:
                    has_value = await enumerator.advance()
                except asyncio.CancelledError:
                    if subscription.is_disposed:
                        return
                    raise
                except Exception as exc:
                    subscription.notify("error", observer.on_error, exc)
                    return
                if not has_value:
                    subscription.notify("completion", observer.on_completed)
                    return
                subscription.notify("value", observer.on_next, enumerator.current)
        finally:
            await enumerator.dispose()
            logger.debug("subscription stopped")


# --- hot source ---

class Subject(Observer[T]):
    """
    a hot push source: whatever is pushed into it is broadcast to the current
    subscribers. subscribers that arrive after a terminal notification receive it
    immediately.
    """

    def __init__(self):
        self._observers: List[Observer[T]] = []
        self._lock = threading.Lock()
        self._terminal: Optional[Tuple[str, Optional[BaseException]]] = None

    def subscribe(self, observer: Union[Observer[T], Action[T], None] = None,
                  on_error: Optional[Callable[[BaseException], Any]] = None,
                  on_completed: Optional[Callable[[], Any]] = None) -> Subscription:
        target = _as_observer(observer, on_error, on_completed)
        with self._lock:
            terminal = self._terminal
            if terminal is None:
                self._observers.append(target)
        if terminal is not None:
            kind, error = terminal
            if kind == "error":
                target.on_error(error)
            else:
                target.on_completed()
            return Subscription()
        return Subscription(lambda: self._unsubscribe(target))

    def _unsubscribe(self, observer: Observer[T]) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def _snapshot(self, terminal: Optional[Tuple[str, Optional[BaseException]]] = None) -> List[Observer[T]]:
        with self._lock:
            if self._terminal is not None:
                return []
            observers = list(self._observers)
            if terminal is not None:
                self._terminal = terminal
                self._observers.clear()
            return observers

    @property
    def has_observers(self) -> bool:
        return bool(self._observers)

    def on_next(self, value: T) -> None:
        for observer in self._snapshot():
            observer.on_next(value)

    def on_error(self, error: BaseException) -> None:
        for observer in self._snapshot(("error", error)):
            observer.on_error(error)

    def on_completed(self) -> None:
        for observer in self._snapshot(("completed", None)):
            observer.on_completed()


# --- push -> pull ---

class _PushBuffer(Observer[T]):
    """
    the observer handed to a wrapped source. pushes from other threads are
    marshalled onto the enumerating loop before they touch the queue.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, limit: Optional[int]):
        self._loop = loop
        self._limit = limit
        self.items: deque = deque()
        self.error: Optional[BaseException] = None
        self.completed = False
        self.signal = asyncio.Event()

    def _deliver(self, handler: Callable[..., None], *args: Any) -> None:
        try:
            on_loop = asyncio.get_running_loop() is self._loop
        except RuntimeError:
            on_loop = False
        if on_loop:
            handler(*args)
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(handler, *args)

    @property
    def _stopped(self) -> bool:
        return self.completed or self.error is not None

    def _push_value(self, value: T) -> None:
        if self._stopped:
            return
        if self._limit is not None and len(self.items) >= self._limit:
            self.error = BufferOverflowError(f"more than {self._limit} values were pushed between advances")
        else:
            self.items.append(value)
        self.signal.set()

    def _push_error(self, error: BaseException) -> None:
        if not self._stopped:
            self.error = error
            self.signal.set()

    def _push_completed(self) -> None:
        if not self._stopped:
            self.completed = True
            self.signal.set()

    def on_next(self, value: T) -> None:
        self._deliver(self._push_value, value)

    def on_error(self, error: BaseException) -> None:
        self._deliver(self._push_error, error)

    def on_completed(self) -> None:
        self._deliver(self._push_completed)


def _unsubscribe(subscription: Any) -> None:
    if subscription is None:
        return
    if hasattr(subscription, "dispose"):
        subscription.dispose()
    elif callable(subscription):
        subscription()


def observable_to_enumerable(observable: Any) -> 'AsyncEnumerable[T]':
    """
    wrap anything with subscribe(observer) as a cold AsyncEnumerable. the subscription
    is made on the first advance and disposed with the enumerator. values pushed
    between advances are queued. the queue is unbounded by default; set the
    observer_buffer_limit option to fault with BufferOverflowError past that many values.
    """
    from .enumerable import AsyncEnumerable
    require(observable, "observable")

    async def observable_data(token: CancellationToken):
        buffer = _PushBuffer(asyncio.get_running_loop(), get_options().observer_buffer_limit)
        subscription = observable.subscribe(buffer)
        try:
            while True:
                if buffer.items:
                    yield buffer.items.popleft()
                elif buffer.error is not None:
                    raise buffer.error
                elif buffer.completed:
                    return
                else:
                    buffer.signal.clear()
                    await buffer.signal.wait()
        finally:
            _unsubscribe(subscription)

    return AsyncEnumerable(observable_data)

