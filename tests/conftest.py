"""Shared fixtures: in-memory ledger, controllable clock and random source."""

from __future__ import annotations

import random

import pytest

from memer.database.ledger import MemoryLedger
from memer.database.seed import default_items
from memer.utils.config import Config

START_MS = 1_700_000_000_000


class Clock:
    """Callable epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedRandom(random.Random):
    """Replays queued values for random(), randint() and choice().

    Once a queue runs dry the seeded generator takes over, so tests only
    script the draws they care about.
    """

    def __init__(self, floats=(), ints=(), choices=(), seed: int = 1234):
        super().__init__(seed)
        self.floats = list(floats)
        self.ints = list(ints)
        self.choices = list(choices)

    # Defining getrandbits keeps the inherited randint/choice fallbacks off
    # the scripted random() queue.
    def getrandbits(self, k):
        return super().getrandbits(k)

    def random(self):
        if self.floats:
            return self.floats.pop(0)
        return super().random()

    def randint(self, a, b):
        if self.ints:
            value = self.ints.pop(0)
            assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
            return value
        return super().randint(a, b)

    def choice(self, seq):
        if self.choices:
            value = self.choices.pop(0)
            assert value in seq, f"scripted {value!r} not among choices"
            return value
        return super().choice(seq)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture
def config() -> Config:
    return Config(cooldown_overrides={}, admin_token="s3cret")


@pytest.fixture
async def ledger(clock) -> MemoryLedger:
    store = MemoryLedger(clock)
    await store.seed_catalog(default_items())
    return store


@pytest.fixture
def make_user(ledger):
    """Create a ledger user and overwrite selected fields."""

    async def _make(username: str, **fields):
        await ledger.create_user(username)
        if fields:
            async with ledger.session(username, touch=False) as s:
                user = s.user(username)
                for key, value in fields.items():
                    setattr(user, key, value)
        return await ledger.get_user(username)

    return _make


@pytest.fixture
def scripted():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom
