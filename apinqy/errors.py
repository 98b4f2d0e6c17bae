"""
error taxonomy for apinqy.

argument and range errors are raised synchronously, at operator call time.
sequence faults surface from advance() and pass through operators untouched.
cancellation is an asyncio.CancelledError, so `except Exception` never sees it.
"""
import asyncio
from typing import Any, Optional


class ArgumentError(ValueError):
    """an operator was called with an invalid argument."""

    def __init__(self, message: str, param_name: Optional[str] = None):
        super().__init__(message)
        self.param_name = param_name


class ArgumentNullError(ArgumentError):
    """a required argument was None."""

    def __init__(self, param_name: str):
        super().__init__(f"value cannot be None (parameter '{param_name}')", param_name)


class ArgumentOutOfRangeError(ArgumentError):
    """a numeric argument was outside its accepted range."""

    def __init__(self, param_name: str, value: Any, requirement: str = "must be non-negative"):
        super().__init__(f"'{param_name}' {requirement}, got {value!r}", param_name)
        self.value = value


class InvalidOperationError(ValueError):
    """the sequence does not satisfy what the operation requires."""


class NoElementsError(InvalidOperationError):
    def __init__(self, message: str = "sequence contains no elements"):
        super().__init__(message)


class MoreThanOneElementError(InvalidOperationError):
    def __init__(self, message: str = "sequence contains more than one matching element"):
        super().__init__(message)


class EnumeratorStateError(InvalidOperationError):
    """current was read without a preceding successful advance."""


class BufferOverflowError(InvalidOperationError):
    """a push source outran the configured observer buffer limit."""


class OperationCanceledError(asyncio.CancelledError):
    """raised from advance() when its cancellation token is signalled."""

    def __init__(self, token: Any = None, message: str = "the operation was canceled"):
        super().__init__(message)
        self.token = token


# --- guards ---

def require(value: Any, param_name: str) -> Any:
    """raise ArgumentNullError when a required argument is None."""
    if value is None:
        raise ArgumentNullError(param_name)
    return value


def require_non_negative(value: int, param_name: str) -> int:
    require(value, param_name)
    if value < 0:
        raise ArgumentOutOfRangeError(param_name, value)
    return value


def require_positive(value: int, param_name: str) -> int:
    require(value, param_name)
    if value <= 0:
        raise ArgumentOutOfRangeError(param_name, value, "must be positive")
    return value
