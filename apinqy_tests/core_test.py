import asyncio
import suite
from collections import namedtuple
from dgen import from_schema, slow, faulting, Probe
from apinqy import (
    P, from_iterable, from_range, empty, repeat,
    ArgumentNullError, ArgumentOutOfRangeError,
)

test = suite.test
assert_that = suite.assert_that
assert_raises = suite.assert_raises
assert_raises_async = suite.assert_raises_async

Person = namedtuple('Person', ['name', 'age', 'dept'])
people = [
    Person('alice', 25, 'eng'),
    Person('bob', 30, 'ops'),
    Person('charlie', 25, 'eng'),
    Person('diana', 35, 'ops'),
    Person('eve', 28, 'eng')
]

sample_numbers = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]

people_schema = {
    'name': 'first_name',
    'age': {'_qen_provider': 'int', 'min': 18, 'max': 70},
    'dept': {'_qen_provider': 'choice', 'from': ['eng', 'ops', 'sales']}
}


@test("where filters elements")
async def test_where():
    result = await P(sample_numbers).where(lambda x: x % 2 == 0).to.list()
    assert_that(result == [2, 4, 6, 8, 10], f"where failed: {result}")


@test("where_with_index passes pulled positions")
async def test_where_with_index():
    result = await P(['a', 'b', 'c', 'd']).where_with_index(lambda x, i: i % 2 == 1).to.list()
    assert_that(result == ['b', 'd'], f"where_with_index failed: {result}")


@test("count of where matches count with predicate")
async def test_where_count_property():
    rows = from_schema(people_schema, seed=7).rows(50)
    source = P(rows)
    filtered = await source.where(lambda r: r['age'] > 40).to.count()
    counted = await source.to.count(lambda r: r['age'] > 40)
    assert_that(filtered == counted, f"{filtered} != {counted}")


@test("select and select_with_index project")
async def test_select():
    squares = await P([1, 2, 3]).select(lambda x: x * x).to.list()
    assert_that(squares == [1, 4, 9], f"select failed: {squares}")
    labelled = await P(['a', 'b']).select_with_index(lambda x, i: f"{i}:{x}").to.list()
    assert_that(labelled == ['0:a', '1:b'], f"select_with_index failed: {labelled}")


@test("select over an asynchronous upstream keeps order")
async def test_select_async_upstream():
    result = await slow([3, 1, 2]).select(lambda x: x * 10).to.list()
    assert_that(result == [30, 10, 20], f"async upstream order failed: {result}")


@test("select_async awaits each selector result in order")
async def test_select_async():
    running = []

    async def lookup(x):
        running.append(x)
        assert_that(len(running) == 1, "selectors should run one at a time")
        await asyncio.sleep(0.001 * x)
        running.remove(x)
        return x * 10
    result = await slow([3, 1, 2]).select_async(lookup).to.list()
    assert_that(result == [30, 10, 20], f"select_async failed: {result}")

    async def label(x, i):
        await asyncio.sleep(0)
        return f"{i}:{x}"
    labelled = await slow(['a', 'b']).select_async_with_index(label).to.list()
    assert_that(labelled == ['0:a', '1:b'], f"select_async_with_index failed: {labelled}")


@test("select_async faults and argument checks")
async def test_select_async_errors():
    async def explode(x):
        raise KeyError(x)
    await assert_raises_async(KeyError, slow([1]).select_async(explode).to.list())
    assert_raises(ArgumentNullError, lambda: P([1]).select_async(None))
    assert_raises(ArgumentNullError, lambda: P([1]).select_async_with_index(None))


@test("select_many flattens depth-first with mixed inner sources")
async def test_select_many():
    def inner(x):
        if x == 1:
            return [1, 1]
        if x == 2:
            return from_iterable([2, 2])
        return slow([3, 3])
    result = await P([1, 2, 3]).select_many(inner).to.list()
    assert_that(result == [1, 1, 2, 2, 3, 3], f"select_many failed: {result}")


@test("select_many with result selector and index")
async def test_select_many_result_selector():
    pairs = await P(['ab', 'c']).select_many(list, lambda word, ch: f"{word}>{ch}").to.list()
    assert_that(pairs == ['ab>a', 'ab>b', 'c>c'], f"result selector failed: {pairs}")
    indexed = await P([10, 20]).select_many_with_index(lambda x, i: [i] * 2).to.list()
    assert_that(indexed == [0, 0, 1, 1], f"indexed select_many failed: {indexed}")


@test("cast faults on the first mismatching element, of_type filters")
async def test_cast_and_of_type():
    mixed = [1, 'two', 3, 4.0]
    ints = await P(mixed).of_type(int).to.list()
    assert_that(ints == [1, 3], f"of_type failed: {ints}")
    seen = []
    await assert_raises_async(TypeError, P(mixed).cast(int).to.for_each(seen.append))
    assert_that(seen == [1], f"cast should yield until the mismatch: {seen}")


@test("take and skip partition the sequence")
async def test_take_skip_partition():
    source = P(sample_numbers)
    for k in range(0, len(sample_numbers) + 1):
        head = await source.take(k).to.list()
        tail = await source.skip(k).to.list()
        assert_that(head + tail == sample_numbers, f"partition failed at k={k}")


@test("take(0) and negative take never touch upstream")
async def test_take_zero_lazy():
    probe = Probe([1, 2, 3])
    assert_that(await probe.source().take(0).to.list() == [], "take(0) should be empty")
    assert_that(await probe.source().take(-3).to.list() == [], "take(-3) should be empty")
    assert_that(probe.starts == 0, f"upstream started {probe.starts} times")


@test("take stops pulling and disposes upstream early")
async def test_take_disposes_upstream():
    probe = Probe(sample_numbers)
    result = await probe.source().take(3).to.list()
    assert_that(result == [1, 2, 3], f"take failed: {result}")
    assert_that(probe.pulled == 3, f"pulled {probe.pulled} elements")
    assert_that(probe.closed == 1, "upstream should be closed")


@test("take_while and skip_while split at the first miss")
async def test_take_skip_while():
    data = [1, 2, 5, 1, 7]
    taken = await P(data).take_while(lambda x: x < 3).to.list()
    skipped = await P(data).skip_while(lambda x: x < 3).to.list()
    assert_that(taken == [1, 2], f"take_while failed: {taken}")
    assert_that(skipped == [5, 1, 7], f"skip_while failed: {skipped}")
    by_index = await P(data).take_while_with_index(lambda x, i: i < 4).to.list()
    assert_that(by_index == [1, 2, 5, 1], f"take_while_with_index failed: {by_index}")
    after_index = await P(data).skip_while_with_index(lambda x, i: i < 2).to.list()
    assert_that(after_index == [5, 1, 7], f"skip_while_with_index failed: {after_index}")


@test("take_last and skip_last")
async def test_take_last_skip_last():
    assert_that(await P(sample_numbers).take_last(3).to.list() == [8, 9, 10], "take_last failed")
    assert_that(await P([1, 2]).take_last(5).to.list() == [1, 2], "take_last longer than source")
    assert_that(await P(sample_numbers).skip_last(7).to.list() == [1, 2, 3], "skip_last failed")
    assert_that(await P([1, 2]).skip_last(5).to.list() == [], "skip_last longer than source")


@test("take_last(0) never enumerates upstream")
async def test_take_last_zero():
    probe = Probe(sample_numbers)
    assert_that(await probe.source().take_last(0).to.list() == [], "should be empty")
    assert_that(probe.starts == 0, "upstream should not be enumerated")


@test("negative counts are range errors at call time")
def test_negative_counts():
    assert_raises(ArgumentOutOfRangeError, P([1]).take_last, -1)
    assert_raises(ArgumentOutOfRangeError, P([1]).skip_last, -1)
    assert_raises(ArgumentOutOfRangeError, from_range, 0, -1)
    assert_raises(ArgumentOutOfRangeError, repeat, 'x', -1)


@test("missing arguments fail synchronously and name the parameter")
def test_argument_null():
    source = P([1, 2, 3])
    for call, name in [
        (lambda: source.where(None), "predicate"),
        (lambda: source.select(None), "selector"),
        (lambda: source.select_many(None), "selector"),
        (lambda: source.take_while(None), "predicate"),
        (lambda: source.order_by(None), "key_selector"),
        (lambda: source.order_by(lambda x: x).then_by(None), "key_selector"),
        (lambda: source.cast(None), "type_filter"),
        (lambda: source.zip(None), "other"),
        (lambda: source.take(None), "count"),
        (lambda: P(None), "data"),
    ]:
        error = assert_raises(ArgumentNullError, call)
        assert_that(error.param_name == name, f"expected '{name}', got '{error.param_name}'")


@test("operators are lazy until enumerated")
async def test_laziness():
    calls = []
    query = P([1, 2, 3]).select(lambda x: calls.append(x) or x).where(lambda x: x > 1)
    assert_that(calls == [], "nothing should run at construction")
    await query.to.list()
    assert_that(calls == [1, 2, 3], f"enumeration should run selectors: {calls}")


@test("each enumeration restarts the work")
async def test_cold_replay():
    probe = Probe([1, 2])
    query = probe.source().select(lambda x: x + 1)
    first = await query.to.list()
    second = await query.to.list()
    assert_that(first == second == [2, 3], f"replay failed: {first} {second}")
    assert_that(probe.starts == 2, f"expected two upstream starts, got {probe.starts}")


@test("order_by is stable and then_by breaks ties in chain order")
async def test_order_by_stable():
    by_age = await P(people).order_by(lambda p: p.age).select(lambda p: p.name).to.list()
    assert_that(by_age == ['alice', 'charlie', 'eve', 'bob', 'diana'], f"stable sort failed: {by_age}")

    chained = await (P(people)
                     .order_by(lambda p: p.dept)
                     .then_by_descending(lambda p: p.age)
                     .select(lambda p: p.name)
                     .to.list())
    assert_that(chained == ['eve', 'alice', 'charlie', 'diana', 'bob'], f"then_by failed: {chained}")


@test("order_by_descending with a custom comparer")
async def test_order_by_comparer():
    by_length = lambda a, b: len(a) - len(b)
    result = await P(['ccc', 'a', 'bb', 'dd']).order_by_descending(lambda s: s, by_length).to.list()
    assert_that(result == ['ccc', 'bb', 'dd', 'a'], f"descending comparer failed: {result}")


@test("order_by is idempotent on sorted input")
async def test_order_by_idempotent():
    ages = [p['age'] for p in from_schema(people_schema, seed=3).rows(40)]
    once = await P(ages).order_by(lambda x: x).to.list()
    twice = await P(once).order_by(lambda x: x).to.list()
    assert_that(once == sorted(ages) and twice == once, "sorting sorted data should not change it")


@test("key selector faults surface at the first advance")
async def test_order_by_fault():
    query = P([1, 0, 2]).order_by(lambda x: 1 / x)
    await assert_raises_async(ZeroDivisionError, query.to.list())


@test("reverse, append, prepend, start_with")
async def test_reverse_and_edges():
    assert_that(await P([1, 2, 3]).reverse().to.list() == [3, 2, 1], "reverse failed")
    assert_that(await P([1, 2]).append(3).to.list() == [1, 2, 3], "append failed")
    assert_that(await P([2, 3]).prepend(1).to.list() == [1, 2, 3], "prepend failed")
    assert_that(await P([3]).start_with(1, 2).to.list() == [1, 2, 3], "start_with failed")


@test("concat, default_if_empty and zip")
async def test_concat_default_zip():
    joined = await P([1]).concat([2], slow([3]), empty()).to.list()
    assert_that(joined == [1, 2, 3], f"concat failed: {joined}")
    assert_that(await empty().default_if_empty(0).to.list() == [0], "default_if_empty on empty")
    assert_that(await P([5]).default_if_empty(0).to.list() == [5], "default_if_empty on non-empty")
    zipped = await P([1, 2, 3]).zip(['a', 'b']).to.list()
    assert_that(zipped == [(1, 'a'), (2, 'b')], f"zip failed: {zipped}")
    summed = await P([1, 2]).zip([10, 20], lambda a, b: a + b).to.list()
    assert_that(summed == [11, 22], f"zip with selector failed: {summed}")


@test("faults propagate unchanged through operators")
async def test_fault_passthrough():
    boom = RuntimeError("boom")
    error = await assert_raises_async(RuntimeError, faulting([1, 2], boom).select(lambda x: x).where(lambda x: True).to.list())
    assert_that(error is boom, "the original exception object should surface")


if __name__ == "__main__":
    suite.run(title="apinqy core operations test")
