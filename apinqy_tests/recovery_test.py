import asyncio
import suite
from dgen import faulting, never, Probe
from apinqy import (
    P, throw, catch, on_error_resume_next, empty, create,
    CancellationTokenSource, OperationCanceledError, ArgumentNullError, ArgumentOutOfRangeError,
)

test = suite.test
assert_that = suite.assert_that
assert_raises = suite.assert_raises
assert_raises_async = suite.assert_raises_async


def counting_failure(error: BaseException, data=(1, 2)):
    """a source that yields data then faults, counting how often it was started"""
    state = {'attempts': 0}

    async def failing_data(token):
        state['attempts'] += 1
        for item in data:
            yield item
        raise error
    return create(failing_data), state


@test("catch switches to the handler's sequence once")
async def test_catch_handler():
    seen_errors = []

    def handler(exc):
        seen_errors.append(exc)
        return [9, 10]
    result = await faulting([1, 2], ValueError("x")).recover.catch(handler).to.list()
    assert_that(result == [1, 2, 9, 10], f"catch failed: {result}")
    assert_that(len(seen_errors) == 1 and isinstance(seen_errors[0], ValueError), "handler should see the fault")


@test("catch does not re-catch faults of the fallback")
async def test_catch_fallback_fault():
    fallback_error = KeyError("fallback")
    query = faulting([1], ValueError("primary")).recover.catch(lambda e: faulting([2], fallback_error))
    seen = []
    error = await assert_raises_async(KeyError, query.to.for_each(seen.append))
    assert_that(error is fallback_error and seen == [1, 2], f"fallback fault should surface: {seen}")


@test("catch lets non-matching faults and handler errors through")
async def test_catch_filters():
    query = faulting([1], KeyError("k")).recover.catch(lambda e: [0], ValueError)
    await assert_raises_async(KeyError, query.to.list())

    def broken_handler(exc):
        raise RuntimeError("handler broke")
    await assert_raises_async(RuntimeError, throw(ValueError("v")).recover.catch(broken_handler).to.list())


@test("catch accepts an async handler")
async def test_catch_async_handler():
    async def handler(exc):
        await asyncio.sleep(0)
        return P([str(exc)])
    result = await throw(ValueError("late")).recover.catch(handler).to.list()
    assert_that(result == ['late'], f"async handler failed: {result}")


@test("catch never intercepts cancellation")
async def test_catch_ignores_cancellation():
    cts = CancellationTokenSource()
    query = never().recover.catch(lambda e: [1], BaseException)
    enumerator = query.get_async_enumerator(cts.token)
    asyncio.get_running_loop().call_later(0.01, cts.cancel)
    await assert_raises_async(OperationCanceledError, enumerator.advance())
    await enumerator.dispose()


@test("catch over fixed sources moves on only after a fault")
async def test_catch_sources():
    result = await catch(faulting([1], ValueError()), faulting([2], KeyError()), [3], [4]).to.list()
    assert_that(result == [1, 2, 3], f"catch chain failed: {result}")
    probe = Probe([9])
    completed = await catch([1], probe.source()).to.list()
    assert_that(completed == [1] and probe.starts == 0, "a normal completion should end the chain")
    last_error = KeyError("last")
    await assert_raises_async(KeyError, catch(throw(ValueError()), throw(last_error)).to.list())
    assert_that(await P([1]).recover.catch_with([2]).to.list() == [1], "catch_with on success")
    assert_that(await throw(ValueError()).recover.catch_with([2]).to.list() == [2], "catch_with on fault")


@test("on_error_resume_next always proceeds")
async def test_on_error_resume_next():
    result = await on_error_resume_next([1], faulting([2], ValueError()), empty(), [3]).to.list()
    assert_that(result == [1, 2, 3], f"on_error_resume_next failed: {result}")
    chained = await faulting([0], KeyError()).recover.on_error_resume_next([1], [2]).to.list()
    assert_that(chained == [0, 1, 2], f"chained on_error_resume_next failed: {chained}")


@test("retry(n) surfaces the fault after exactly n attempts")
async def test_retry_count():
    boom = RuntimeError("always")
    source, state = counting_failure(boom)
    seen = []
    error = await assert_raises_async(RuntimeError, source.recover.retry(3).to.for_each(seen.append))
    assert_that(error is boom, "the final fault should surface")
    assert_that(state['attempts'] == 3, f"expected 3 attempts, got {state['attempts']}")
    assert_that(seen == [1, 2] * 3, f"each attempt re-yields its elements: {seen}")


@test("retry recovers once the source succeeds")
async def test_retry_recovers():
    attempts = {'n': 0}

    async def flaky(token):
        attempts['n'] += 1
        if attempts['n'] < 3:
            raise ConnectionError("flaky")
        yield 'ok'
    result = await create(flaky).recover.retry().to.list()
    assert_that(result == ['ok'] and attempts['n'] == 3, f"retry() failed: {result} after {attempts['n']}")


@test("retry(0) is empty and negative counts are rejected")
async def test_retry_edges():
    source, state = counting_failure(ValueError())
    assert_that(await source.recover.retry(0).to.list() == [], "retry(0) should be empty")
    assert_that(state['attempts'] == 0, "retry(0) should not start the source")
    assert_raises(ArgumentOutOfRangeError, lambda: source.recover.retry(-1))


@test("finally_ runs once on completion, fault and early disposal")
async def test_finally():
    calls = []
    await P([1, 2]).recover.finally_(lambda: calls.append('done')).to.list()
    assert_that(calls == ['done'], f"finally on completion: {calls}")

    calls.clear()
    await assert_raises_async(ValueError, faulting([1], ValueError()).recover.finally_(lambda: calls.append('fault')).to.list())
    assert_that(calls == ['fault'], f"finally on fault: {calls}")

    calls.clear()
    assert_that(await P([1, 2, 3]).recover.finally_(lambda: calls.append('early')).take(1).to.list() == [1], "take failed")
    assert_that(calls == ['early'], f"finally on early disposal: {calls}")

    async def async_action():
        calls.append('async')
    calls.clear()
    await P([1]).recover.finally_(async_action).to.list()
    assert_that(calls == ['async'], f"async finally failed: {calls}")


@test("recovery operators validate arguments")
def test_recovery_argument_null():
    source = P([1])
    for call, name in [
        (lambda: source.recover.catch(None), "handler"),
        (lambda: source.recover.finally_(None), "action"),
        (lambda: source.recover.catch_with(None), "sources[1]"),
        (lambda: catch(None), "sources[0]"),
    ]:
        error = assert_raises(ArgumentNullError, call)
        assert_that(error.param_name == name, f"expected '{name}', got '{error.param_name}'")


if __name__ == "__main__":
    suite.run(title="apinqy recovery operators test")
