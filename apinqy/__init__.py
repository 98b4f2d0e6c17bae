"""
'       _____ __________.___ _______   ________ _____.___.
'      /  _  \\______   \   |\      \  \_____  \\__  |   |
'     /  /_\  \|     ___/   |/   |   \  /  / \  \/   |   |
'    /    |    \    |   |   /    |    \/   \_/.  \____   |
'    \____|__  /____|   |___\____|__  /\_____\ \_/ ______|
'            \/                     \/        \__>/
"""
import logging

# expose the main classes
from .enumerable import AsyncEnumerable, OrderedAsyncEnumerable, Grouping
from .enumerator import AsyncEnumerator, EnumeratorState
from .cancellation import CancellationToken, CancellationTokenSource

# expose the factory functions
from .factories import (
    from_iterable,
    from_range,
    repeat,
    empty,
    return_value,
    throw,
    generate,
    create,
    defer,
    from_future,
    from_observable,
    concat,
    catch,
    on_error_resume_next,
    apinqy,
    P,
    p
)

# expose push-side helpers
from .observable import Observer, AnonymousObserver, Subscription, Subject, AsyncObservable

# expose supporting types and errors
from .types import EqualityComparer, Lookup
from .errors import (
    ArgumentError,
    ArgumentNullError,
    ArgumentOutOfRangeError,
    InvalidOperationError,
    NoElementsError,
    MoreThanOneElementError,
    EnumeratorStateError,
    BufferOverflowError,
    OperationCanceledError
)
from .config import Options, configure, get_options

logging.getLogger("apinqy").addHandler(logging.NullHandler())

# define what `import *` does
__all__ = [
    "AsyncEnumerable",
    "OrderedAsyncEnumerable",
    "Grouping",
    "AsyncEnumerator",
    "EnumeratorState",
    "CancellationToken",
    "CancellationTokenSource",
    "from_iterable",
    "from_range",
    "repeat",
    "empty",
    "return_value",
    "throw",
    "generate",
    "create",
    "defer",
    "from_future",
    "from_observable",
    "concat",
    "catch",
    "on_error_resume_next",
    "apinqy",
    "P",
    "p",
    "Observer",
    "AnonymousObserver",
    "Subscription",
    "Subject",
    "AsyncObservable",
    "EqualityComparer",
    "Lookup",
    "ArgumentError",
    "ArgumentNullError",
    "ArgumentOutOfRangeError",
    "InvalidOperationError",
    "NoElementsError",
    "MoreThanOneElementError",
    "EnumeratorStateError",
    "BufferOverflowError",
    "OperationCanceledError",
    "Options",
    "configure",
    "get_options"
]
