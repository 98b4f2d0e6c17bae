'''
.------..------..------..------.
|d.--. ||g.--. ||e.--. ||n.--. |
| :/\: || :/\: || (\/) || :(): |
| (__) || :\/: || :\/: || ()() |
| '--'d|| '--'g|| '--'e|| '--'n|
`------'`------'`------'`------'
'''

import asyncio
import numpy as np
from faker import Faker
from apinqy import AsyncEnumerable, CancellationToken, from_iterable
from typing import Any, Dict, List, Optional


class Generator:
    """schema interpreter backed by faker and a seeded numpy rng."""

    def __init__(self, seed: Optional[int] = None):
        self._fake = Faker()
        if seed is not None:
            self._fake.seed_instance(seed)
        self._rng = np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def _resolve_faker_method(self, method_name: str, kwargs: Optional[Dict] = None) -> Any:
        method = getattr(self._fake, method_name, None)
        if method is None:
            raise ValueError(f"faker has no provider '{method_name}'")
        return method(**(kwargs or {}))

    def _resolve_provider(self, config: Dict, context: Dict) -> Any:
        provider = config["_qen_provider"]
        if provider == "ref":
            key = config["key"]
            if key not in context:
                raise ValueError(f"reference to '{key}' not found in current context.")
            value = context[key]
            return config["format"].format(value) if "format" in config else value

        if provider == "choice":
            # convert numpy's choice result to a native python type
            picked = self._rng.choice(config["from"])
            return picked.item() if hasattr(picked, 'item') else picked

        if provider == "int":
            return int(self._rng.integers(config.get("min", 0), config.get("max", 100), endpoint=True))

        if provider == "lambda":
            return config["func"](context)

        if provider == "literal":
            if "value" not in config:
                raise ValueError("_qen_provider 'literal' requires a 'value' key.")
            return config["value"]

        raise ValueError(f"unknown _qen_provider: '{provider}'")

    def create(self, schema: Any, context: Optional[Dict] = None) -> Any:
        current_context = context or {}

        if isinstance(schema, dict):
            if "_qen_provider" in schema:
                return self._resolve_provider(schema, current_context)
            # fields can refer to their parent's fields and to earlier siblings
            generated_obj = {}
            for k, v in schema.items():
                generated_obj[k] = self.create(v, {**current_context, **generated_obj})
            return generated_obj

        if isinstance(schema, list):
            if not schema: return []
            item_schema = schema[0]
            count = self._get_count(item_schema)
            actual_item_schema = item_schema.get('_qen_items', item_schema) if isinstance(item_schema, dict) else item_schema
            return [self.create(actual_item_schema, current_context) for _ in range(count)]

        if isinstance(schema, str):
            if hasattr(self._fake, schema):
                return self._resolve_faker_method(schema)
            return schema

        if isinstance(schema, tuple) and len(schema) == 2 and isinstance(schema[1], dict):
            return self._resolve_faker_method(schema[0], schema[1])

        return schema

    def _get_count(self, item_schema: Any) -> int:
        count = 5
        if isinstance(item_schema, dict) and "_qen_count" in item_schema:
            count_config = item_schema["_qen_count"]
            if isinstance(count_config, int):
                count = count_config
            elif isinstance(count_config, (list, tuple)) and len(count_config) == 2:
                low, high = count_config
                count = int(self._rng.integers(low, high, endpoint=True))
        return count


class _SchemaProvider:
    def __init__(self, schema: Any, seed: Optional[int] = None):
        self._schema = schema
        self._generator = Generator(seed)

    def rows(self, count: int) -> List[Any]:
        """materialize 'count' records up front, for computing expected results"""
        return [self._generator.create(self._schema) for _ in range(count)]

    def take(self, count: int) -> AsyncEnumerable:
        """'count' fixed records served as a replayable async sequence"""
        return from_iterable(self.rows(count))

    def stream(self, count: int, delay: float = 0.0) -> AsyncEnumerable:
        """
        fixed records delivered with a real suspension before each one, so consumers
        exercise genuinely asynchronous upstreams. replays the same records every time.
        """
        rows = self.rows(count)
        async def stream_data(token: CancellationToken):
            for row in rows:
                await asyncio.sleep(delay)
                yield row
        return AsyncEnumerable(stream_data)


def from_schema(schema: Any, seed: Optional[int] = None) -> _SchemaProvider:
    return _SchemaProvider(schema, seed)


# --- plain async sources ---

def numbers(count: int, low: int = 0, high: int = 100, seed: Optional[int] = None) -> List[int]:
    """seeded random integers in [low, high]"""
    rng = np.random.default_rng(seed)
    return [int(x) for x in rng.integers(low, high, size=count, endpoint=True)]


def slow(data: List[Any], delay: float = 0.0) -> AsyncEnumerable:
    """the given items, each behind an asyncio.sleep"""
    async def slow_data(token: CancellationToken):
        for item in data:
            await asyncio.sleep(delay)
            yield item
    return AsyncEnumerable(slow_data)


def faulting(data: List[Any], error: BaseException) -> AsyncEnumerable:
    """yields data, then raises 'error'"""
    async def faulting_data(token: CancellationToken):
        for item in data:
            yield item
        raise error
    return AsyncEnumerable(faulting_data)


def never() -> AsyncEnumerable:
    """a sequence whose first advance never completes on its own"""
    async def never_data(token: CancellationToken):
        await asyncio.Event().wait()
        yield None
    return AsyncEnumerable(never_data)


class Probe:
    """wraps a list and records how the consumer drove it"""

    def __init__(self, data: List[Any]):
        self._data = data
        self.starts = 0
        self.pulled = 0
        self.closed = 0

    def source(self) -> AsyncEnumerable:
        async def probe_data(token: CancellationToken):
            self.starts += 1
            try:
                for item in self._data:
                    self.pulled += 1
                    yield item
            finally:
                self.closed += 1
        return AsyncEnumerable(probe_data)
