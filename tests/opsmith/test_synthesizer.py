import asyncio

import pytest

from opsmith.operations import SynthesisRequest
from opsmith.providers import ProviderCallError
from opsmith.synthesis import CodeSynthesizer, SynthesisError, build_prompt, strip_code_fences
from opsmith.types import CompletionResponse


class FakeClient:
    def __init__(self, text=None, *, exc=None, delay=0.0):
        self.text = text
        self.exc = exc
        self.delay = delay
        self.requests = []

    async def send_request(self, req, *, timeout=None):
        self.requests.append(req)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return CompletionResponse(text=self.text, model="fake")


REQUEST = SynthesisRequest(category="math", name="add", arity=2, examples=[("3", "4"), ("10", "20")])


def test_prompt_encodes_the_request():
    system, user = build_prompt(REQUEST, ["math", "decimal"])

    assert system.role == "system"
    assert "math operations" in system.content
    assert "decimal, math" in system.content
    assert "without explanation" in system.content
    assert user.role == "user"
    assert "non-static add method" in user.content
    assert "accepts 2 arguments like (3, 4) or (10, 20)" in user.content


def test_prompt_is_deterministic():
    assert build_prompt(REQUEST, {"math", "re"}) == build_prompt(REQUEST, ["re", "math"])


@pytest.mark.parametrize(
    "text, expected",
    [
        ("```python\nclass A:\n    pass\n```", "class A:\n    pass"),
        ("```\nclass A:\n    pass\n```\n", "class A:\n    pass"),
        ("class A:\n    pass\n", "class A:\n    pass"),
    ],
)
def test_strip_code_fences(text, expected):
    assert strip_code_fences(text) == expected


@pytest.mark.asyncio
async def test_asynthesize_returns_unfenced_source():
    client = FakeClient("```python\nclass Adder:\n    def add(self, a: int, b: int) -> int:\n        return a + b\n```")
    synth = CodeSynthesizer(client, references=["math"], temperature=0.5)

    source = await synth.asynthesize(REQUEST)

    assert source.startswith("class Adder:")
    [req] = client.requests
    assert req.temperature == 0.5
    assert [m.role for m in req.messages] == ["system", "user"]
    assert req.context == {"operation": "math.add"}


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "   \n", "```python\n```"])
async def test_empty_content_is_a_synthesis_error(text):
    synth = CodeSynthesizer(FakeClient(text))

    with pytest.raises(SynthesisError) as info:
        await synth.asynthesize(REQUEST)
    assert info.value.key.as_str == "math.add"


@pytest.mark.asyncio
async def test_provider_failure_is_chained():
    cause = ProviderCallError("Provider call failed after 3 attempt(s): boom")
    synth = CodeSynthesizer(FakeClient(exc=cause))

    with pytest.raises(SynthesisError) as info:
        await synth.asynthesize(REQUEST)
    assert info.value.__cause__ is cause
    assert info.value.phase == "synthesis"


@pytest.mark.asyncio
async def test_timeout_is_a_synthesis_error():
    synth = CodeSynthesizer(FakeClient("class A: ...", delay=1.0), timeout_s=0.05)

    with pytest.raises(SynthesisError) as info:
        await synth.asynthesize(REQUEST)
    assert info.value.timed_out is True


def test_sync_wrapper():
    synth = CodeSynthesizer(FakeClient("class A:\n    def go(self) -> int:\n        return 1"))
    assert synth.synthesize(REQUEST).startswith("class A:")
