import asyncio
import inspect
import time
import traceback
from functools import wraps
from typing import List, Dict, Any, Callable, Type, Tuple, Union

_suite_state: Dict[str, List[Dict[str, Any]]] = {
    'tests': [],
    'results': []
}

PASS_FACE = '(^ ω ^)'
FAIL_FACE = '(ﾉಥДಥ)ﾉ'
SUMMARY_FACE = '☆*:.｡.o(≧▽≦)o.｡.:*☆'

# an async test that has not finished by then is reported as hung
DEFAULT_TIMEOUT = 5.0


class _c:
    """a tiny, silent class for holding color codes."""
    ok = '\033[92m'
    fail = '\033[91m'
    warn = '\033[93m'
    info = '\033[94m'
    grey = '\033[90m'
    reset = '\033[0m'


# --- custom exception for assertions ---

class TestAssertionError(AssertionError):
    """custom error to distinguish assertion failures from other exceptions."""
    pass

# --- public api ---

def test(description: str, timeout: float = DEFAULT_TIMEOUT) -> Callable:
    """
    decorator to register a function as a test case. coroutine functions get their
    own event loop per call and fail when they run longer than 'timeout' seconds.
    the wrapper is a plain function, so pytest can collect it as-is.
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                return asyncio.run(asyncio.wait_for(func(*args, **kwargs), timeout))
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                return func(*args, **kwargs)

        _suite_state['tests'].append({'func': wrapper, 'description': description})
        return wrapper

    return decorator


def assert_that(condition: Any, message: str = "assertion failed") -> None:
    """custom assertion that raises a specific, catchable error type."""
    if not condition:
        raise TestAssertionError(message)


ExpectedError = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


def assert_raises(expected: ExpectedError, func: Callable, *args, **kwargs) -> BaseException:
    """call func and require it to raise 'expected'. returns the caught exception."""
    try:
        func(*args, **kwargs)
    except expected as e:
        return e
    raise TestAssertionError(f"expected {_names(expected)} to be raised")


async def assert_raises_async(expected: ExpectedError, awaitable: Any) -> BaseException:
    """await and require 'expected' to be raised. cancellation errors count when expected."""
    try:
        await awaitable
    except expected as e:
        return e
    raise TestAssertionError(f"expected {_names(expected)} to be raised")


def _names(expected: ExpectedError) -> str:
    if isinstance(expected, tuple):
        return " or ".join(e.__name__ for e in expected)
    return expected.__name__


def run(title: str = "test run", verbose: bool = False) -> None:
    """executes all registered tests and prints a report."""
    print(f"\n{_c.info}--- starting: {title} ---{_c.reset}")
    start_time = time.perf_counter()

    _suite_state['results'] = []

    for test_item in _suite_state['tests']:
        description = test_item['description']
        passed, error = _run_one(test_item['func'], verbose)
        _suite_state['results'].append({'passed': passed, 'description': description, 'error': error})

        if passed:
            print(f"  {_c.ok}✔ pass{_c.reset}  {PASS_FACE}  {description}")
        else:
            print(f"  {_c.fail}✖ fail{_c.reset}  {FAIL_FACE}  {description}")
            print(f"    {_c.grey}└─> {error}{_c.reset}")

    _print_summary(start_time)

    # clear tests after run to allow for multiple, separate suite runs in a single script
    _suite_state['tests'] = []


def _run_one(func: Callable, verbose: bool) -> Tuple[bool, Any]:
    try:
        func()
        return True, None
    except TestAssertionError as e:
        return False, f"assertion failed: {e}"
    except asyncio.TimeoutError:
        return False, "timed out (hung?)"
    except (Exception, asyncio.CancelledError) as e:
        if verbose:
            traceback.print_exc()
        return False, f"{type(e).__name__}: {e}"


def _print_summary(start_time: float) -> None:
    """prints the final summary of the test run."""
    duration = (time.perf_counter() - start_time) * 1000
    results = _suite_state['results']

    total = len(results)
    passed_count = sum(1 for r in results if r['passed'])
    failed_count = total - passed_count

    summary_color = _c.ok if failed_count == 0 else _c.fail

    print(f"\n{summary_color}--- summary ---{_c.reset}")
    print(f"  {SUMMARY_FACE}  ran {_c.info}{total}{_c.reset} tests in {_c.warn}{duration:.2f}ms{_c.reset}")
    print(f"  {_c.ok}passed: {passed_count}{_c.reset}, {_c.fail}failed: {failed_count}{_c.reset}")
    print(f"{summary_color}---------------{_c.reset}\n")
