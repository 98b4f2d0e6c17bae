from typing import (
    TypeVar, Generic, Callable, Iterator, Iterable, Any, Optional, Union,
    Dict, List, Tuple, Set, Type, Awaitable, AsyncIterable, AsyncIterator,
    Hashable
)

T = TypeVar('T')
U = TypeVar('U')
K = TypeVar('K')
V = TypeVar('V')

Predicate = Callable[[T], bool]
IndexedPredicate = Callable[[T, int], bool]
Selector = Callable[[T], U]
IndexedSelector = Callable[[T, int], U]
KeySelector = Callable[[T], K]
Comparer = Callable[[T, T], int]
Accumulator = Callable[[U, T], U]
Action = Callable[[T], Any]

# marks "argument not supplied" where None is a legal value (seeds, defaults)
_MISSING: Any = object()


class EqualityComparer(Generic[T]):
    """
    pluggable equality for distinct/group/join/set operators.
    subclass and override equals/hash; the base class uses == and hash().
    """

    def equals(self, x: T, y: T) -> bool:
        return x == y

    def hash(self, obj: T) -> int:
        return hash(obj)


class _ComparerKey:
    """wraps a value so dicts and sets honour a custom equality comparer."""
    __slots__ = ('value', '_comparer', '_hash')

    def __init__(self, value, comparer: EqualityComparer):
        self.value = value
        self._comparer = comparer
        self._hash = comparer.hash(value)

    def __hash__(self):
        return self._hash

    def __eq__(self, other):
        return self._comparer.equals(self.value, other.value)


def key_wrapper(comparer: Optional[EqualityComparer]) -> Callable[[Any], Hashable]:
    """returns a function mapping values to dict keys under the given comparer."""
    if comparer is None:
        return lambda value: value
    return lambda value: _ComparerKey(value, comparer)


def default_compare(x: Any, y: Any) -> int:
    """three-way comparison built on < only, like python's own sort."""
    if x < y: return -1
    if y < x: return 1
    return 0


class Lookup(Generic[K, V]):
    """
    an ordered, read-only one-to-many mapping produced by to.lookup().
    missing keys index to an empty list, the way a linq lookup does.
    """

    def __init__(self, comparer: Optional[EqualityComparer] = None):
        self._wrap = key_wrapper(comparer)
        self._groups: Dict[Hashable, Tuple[K, List[V]]] = {}

    def _add(self, key: K, value: V) -> None:
        wrapped = self._wrap(key)
        entry = self._groups.get(wrapped)
        if entry is None:
            self._groups[wrapped] = (key, [value])
        else:
            entry[1].append(value)

    def __getitem__(self, key: K) -> List[V]:
        entry = self._groups.get(self._wrap(key))
        return list(entry[1]) if entry else []

    def __contains__(self, key: K) -> bool:
        return self._wrap(key) in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[K]:
        return (key for key, _ in self._groups.values())

    def keys(self) -> List[K]:
        return list(self)

    def items(self) -> List[Tuple[K, List[V]]]:
        return [(key, list(values)) for key, values in self._groups.values()]

    def __repr__(self) -> str:
        return f"Lookup(keys={len(self)})"
