# tests/opsmith/conftest.py
import asyncio
import textwrap

import pytest

from opsmith.compiler import InProcessCompiler
from opsmith.engine import ExecutionEngine
from opsmith.synthesis import SynthesisError

ADD_SOURCE = textwrap.dedent(
    """
    import math

    class Adder:
        def add(self, a: int, b: int) -> int:
            return a + b
    """
)

TWO_CLASS_SOURCE = textwrap.dedent(
    """
    class First:
        def add(self, a: int, b: int) -> int:
            return a + b

    class Second:
        def add(self, a: int, b: int) -> int:
            return a + b
    """
)


class FakeSynthesizer:
    """Hands out canned sources in order; the last one repeats.

    A source that is an Exception instance is raised instead of returned.
    """

    def __init__(self, *sources, delay: float = 0.0):
        self.sources = list(sources) or [ADD_SOURCE]
        self.delay = delay
        self.requests = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def asynthesize(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        index = min(len(self.requests), len(self.sources)) - 1
        source = self.sources[index]
        if isinstance(source, Exception):
            raise source
        return source


@pytest.fixture
def add_source():
    return ADD_SOURCE


@pytest.fixture
def two_class_source():
    return TWO_CLASS_SOURCE


@pytest.fixture
def synthesizer():
    return FakeSynthesizer(ADD_SOURCE)


@pytest.fixture
def compiler():
    return InProcessCompiler()


@pytest.fixture
def engine(synthesizer, compiler):
    return ExecutionEngine(synthesizer, compiler)


@pytest.fixture
def make_engine(compiler):
    def _make(*sources, delay: float = 0.0):
        synth = FakeSynthesizer(*sources, delay=delay)
        return ExecutionEngine(synth, compiler), synth

    return _make


@pytest.fixture
def synthesis_timeout():
    return SynthesisError("code generation timed out after 0.01s", timed_out=True)
