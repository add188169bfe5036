import asyncio

import pytest

from opsmith.coercion import ArityMismatchError, CoercionError
from opsmith.compiler import InvocationError, ResolutionError
from opsmith.engine import ExecutionEngine
from opsmith.operations import OperationKeyError
from opsmith.registry import OperationRegistry, RegistryLookupError
from opsmith.synthesis import SynthesisError

DIV_SOURCE = "class Divider:\n    def div(self, a: int, b: int) -> float:\n        return a / b\n"
PI_SOURCE = "import math\n\nclass Pi:\n    def pi(self) -> float:\n        return math.pi\n"
QUITTER_SOURCE = "class Quitter:\n    def add(self, a: int, b: int) -> int:\n        raise SystemExit(3)\n"


@pytest.mark.asyncio
async def test_math_add_is_synthesized_once(engine, synthesizer):
    assert await engine.aexecute("math", "add", ["3", "4"]) == 7
    assert await engine.aexecute("math", "add", ["10", "20"]) == 30

    assert synthesizer.calls == 1
    [request] = synthesizer.requests
    assert (request.category, request.name, request.arity) == ("math", "add", 2)
    assert request.examples == [("3", "4")]


@pytest.mark.asyncio
async def test_is_implemented_is_monotonic(engine):
    assert engine.is_implemented("math", "add") is False

    record = await engine.aimplement("math", "add", 2, [("3", "4")])

    assert engine.is_implemented("math", "add") is True
    assert record.arity == 2
    assert await engine.aimplement("math", "add", 2) is record
    assert engine.is_implemented("math", "add") is True


@pytest.mark.asyncio
async def test_concurrent_first_use_runs_one_synthesis(make_engine, add_source):
    engine, synth = make_engine(add_source, delay=0.05)

    results = await asyncio.gather(*(engine.aexecute("math", "add", [str(i), "1"]) for i in range(12)))

    assert results == [i + 1 for i in range(12)]
    assert synth.calls == 1


@pytest.mark.asyncio
async def test_resolution_failure_leaves_key_unimplemented(make_engine, two_class_source, add_source):
    engine, synth = make_engine(two_class_source, add_source)

    with pytest.raises(ResolutionError) as info:
        await engine.aexecute("math", "add", ["3", "4"])

    assert info.value.operation == "math.add"
    assert engine.is_implemented("math", "add") is False
    assert engine.registry.count() == 0

    assert await engine.aexecute("math", "add", ["3", "4"]) == 7
    assert synth.calls == 2


@pytest.mark.asyncio
async def test_synthesis_timeout_reverts_the_key(make_engine, synthesis_timeout, add_source):
    engine, synth = make_engine(synthesis_timeout, add_source)

    with pytest.raises(SynthesisError) as info:
        await engine.arun("math", "add", ["1", "2"])
    assert info.value.timed_out is True
    assert not engine.is_implemented("math", "add")

    assert await engine.arun("math", "add", ["1", "2"]) == 3


@pytest.mark.asyncio
async def test_invocation_errors_are_not_retried(make_engine):
    engine, synth = make_engine(DIV_SOURCE)

    assert await engine.aexecute("math", "div", ["9", "3"]) == 3.0
    with pytest.raises(InvocationError) as info:
        await engine.aexecute("math", "div", ["1", "0"])

    assert info.value.exc_type == "ZeroDivisionError"
    assert info.value.operation == "math.div"
    assert synth.calls == 1
    assert engine.is_implemented("math", "div")


@pytest.mark.asyncio
async def test_system_exit_in_generated_code_is_contained(make_engine):
    engine, _ = make_engine(QUITTER_SOURCE)

    with pytest.raises(InvocationError) as info:
        await engine.arun("math", "add", ["1", "2"])

    assert info.value.exc_type == "SystemExit"
    assert info.value.operation == "math.add"


@pytest.mark.asyncio
async def test_arity_contract_after_implementation(engine):
    await engine.aexecute("math", "add", ["3", "4"])

    with pytest.raises(ArityMismatchError) as info:
        await engine.aexecute("math", "add", ["1", "2", "3"])

    assert (info.value.expected, info.value.actual) == (2, 3)
    assert info.value.as_dict()["operation"] == "math.add"


@pytest.mark.asyncio
async def test_coercion_error_is_tagged_with_the_operation(engine):
    await engine.aexecute("math", "add", ["3", "4"])

    with pytest.raises(CoercionError) as info:
        await engine.aexecute("math", "add", ["three", "4"])

    assert info.value.index == 0
    assert info.value.operation == "math.add"


@pytest.mark.asyncio
async def test_first_use_with_bad_values_still_implements(engine, synthesizer):
    # arity comes from the request; the value itself fails coercion
    with pytest.raises(CoercionError):
        await engine.arun("math", "add", ["x", "4"])

    assert engine.is_implemented("math", "add")
    assert synthesizer.calls == 1


@pytest.mark.asyncio
async def test_zero_argument_operation(make_engine):
    engine, _ = make_engine(PI_SOURCE)
    assert round(await engine.arun("math", "pi", []), 5) == 3.14159


@pytest.mark.asyncio
async def test_invalid_names_are_rejected(engine, synthesizer):
    with pytest.raises(OperationKeyError):
        await engine.arun("math", "add me", ["1"])
    assert synthesizer.calls == 0


@pytest.mark.asyncio
async def test_introspection(engine):
    with pytest.raises(RegistryLookupError):
        engine.describe("math", "add")

    await engine.aexecute("math", "add", ["3", "4"])

    info = engine.describe("math", "add")
    assert info["class"] == "Adder"
    assert info["method"] == "add"
    assert info["parameters"] == ["int", "int"]
    assert [op["name"] for op in engine.operations()] == ["add"]


def test_sync_api(engine, synthesizer):
    assert engine.execute("math", "add", ["1", "2"]) == 3
    assert engine.run("math", "add", ["5", "5"]) == 10
    record = engine.implement("math", "add", 2)
    assert record.key.as_str == "math.add"
    assert synthesizer.calls == 1


def test_injected_registry_is_used(synthesizer, compiler):
    registry = OperationRegistry()
    engine = ExecutionEngine(synthesizer, compiler, registry=registry)

    engine.execute("math", "add", ["1", "1"])
    assert registry.lookup(("math", "add")) is not None
