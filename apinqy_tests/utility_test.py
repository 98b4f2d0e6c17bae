import suite
from dgen import numbers, faulting, slow, Probe
from apinqy import P, from_iterable, repeat, empty, ArgumentNullError, ArgumentOutOfRangeError

test = suite.test
assert_that = suite.assert_that
assert_raises = suite.assert_raises
assert_raises_async = suite.assert_raises_async


@test("scan never emits the seed")
async def test_scan_seeded():
    result = await P([1, 2, 3]).util.scan(lambda acc, x: acc + x, 8).to.list()
    assert_that(result == [9, 11, 14], f"seeded scan failed: {result}")


@test("unseeded scan starts from the first element without emitting it")
async def test_scan_unseeded():
    result = await P([1, 2, 3, 4]).util.scan(lambda acc, x: acc + x).to.list()
    assert_that(result == [3, 6, 10], f"unseeded scan failed: {result}")
    assert_that(await empty().util.scan(lambda acc, x: acc + x, 0).to.list() == [], "empty scan should be empty")


@test("scan matches a running total over generated data")
async def test_scan_generated():
    data = numbers(50, seed=13)
    result = await P(data).util.scan(lambda acc, x: acc + x, 0).to.list()
    running, expected = 0, []
    for x in data:
        running += x
        expected.append(running)
    assert_that(result == expected, "running totals disagree")


@test("expand walks breadth-first")
async def test_expand():
    result = await P([2, 3]).util.expand(lambda x: repeat(x - 1, x - 1)).to.list()
    assert_that(result == [2, 3, 1, 2, 2, 1, 1], f"expand failed: {result}")


@test("expand faults only when a missing expansion is reached")
async def test_expand_none_result():
    seen = []
    query = P([1, 2]).util.expand(lambda x: None if x == 2 else [])
    await assert_raises_async(TypeError, query.to.for_each(seen.append))
    assert_that(seen == [1, 2], f"source elements should come out before the fault: {seen}")


@test("a raising expand selector faults the advance that pulled the element")
async def test_expand_selector_raises():
    seen = []
    query = P([1, 0, 2]).util.expand(lambda x: [10 // x])
    await assert_raises_async(ZeroDivisionError, query.to.for_each(seen.append))
    assert_that(seen == [1], f"only the element before the failing pull: {seen}")


@test("do observes values, completion and faults without changing them")
async def test_do():
    log = []
    result = await (P([1, 2])
                    .util.do(lambda x: log.append(('next', x)), on_completed=lambda: log.append(('done',)))
                    .to.list())
    assert_that(result == [1, 2], "do should not change values")
    assert_that(log == [('next', 1), ('next', 2), ('done',)], f"do log failed: {log}")

    errors = []
    boom = RuntimeError("boom")
    await assert_raises_async(RuntimeError, faulting([1], boom).util.do(lambda x: None, errors.append).to.list())
    assert_that(errors == [boom], f"on_error should see the fault: {errors}")
    assert_raises(ArgumentNullError, lambda: P([1]).util.do(None))


@test("do awaits coroutine actions")
async def test_do_async_action():
    log = []

    async def record(x):
        log.append(x)
    await slow([1, 2, 3]).util.do(record).to.list()
    assert_that(log == [1, 2, 3], f"async do failed: {log}")


@test("ignore_elements keeps only completion or fault")
async def test_ignore_elements():
    probe = Probe([1, 2, 3])
    assert_that(await probe.source().util.ignore_elements().to.list() == [], "should be empty")
    assert_that(probe.pulled == 3, "source should still be drained")
    await assert_raises_async(KeyError, faulting([1], KeyError('k')).util.ignore_elements().to.list())


@test("repeat re-enumerates the source")
async def test_repeat():
    probe = Probe([1, 2])
    result = await probe.source().util.repeat(3).to.list()
    assert_that(result == [1, 2, 1, 2, 1, 2], f"repeat failed: {result}")
    assert_that(probe.starts == 3, f"expected 3 enumerations, got {probe.starts}")
    assert_that(await P([1]).util.repeat(0).to.list() == [], "repeat(0) should be empty")
    forever = await P([7]).util.repeat().take(4).to.list()
    assert_that(forever == [7, 7, 7, 7], f"infinite repeat failed: {forever}")
    assert_raises(ArgumentOutOfRangeError, lambda: P([1]).util.repeat(-1))


@test("pipe hands the sequence to a reusable operator")
async def test_pipe():
    def evens_times(source, factor):
        return source.where(lambda x: x % 2 == 0).select(lambda x: x * factor)
    result = await from_iterable(range(7)).util.pipe(evens_times, factor=3).to.list()
    assert_that(result == [0, 6, 12, 18], f"pipe failed: {result}")


if __name__ == "__main__":
    suite.run(title="apinqy utility methods test")
