"""Shared fixtures: scripted providers and a recording sleep."""

import asyncio

import pytest

from council.core.types import Tier
from council.providers.base import Provider


class ScriptedInvoke:
    """Async ``prompt -> text`` replaying a script; the last item repeats."""

    def __init__(self, *script, delay: float = 0.0):
        self.script = list(script) or ["ok"]
        self.delay = delay
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.script[min(self.calls, len(self.script)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_provider():
    """Factory returning (Provider, ScriptedInvoke)."""

    def _make(name: str, tier: Tier, *script, paid: bool = False, delay: float = 0.0):
        invoke = ScriptedInvoke(*script, delay=delay)
        return Provider(name=name, tier=tier, invoke=invoke, paid=paid), invoke

    return _make


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def clock():
    return FakeClock()
