import asyncio
import threading
import time

import pytest

from opsmith.compiler import LocalOperation
from opsmith.operations import OperationKey, OperationRecord
from opsmith.registry import (
    ImplementationAbortedError,
    OperationRegistry,
    RegistryCollisionError,
    RegistryLookupError,
)
from opsmith.synthesis import SynthesisError

ADD = OperationKey("math", "add")


def make_record(key=ADD):
    op = LocalOperation(class_name="Adder", method_name="add", parameter_types=(int, int),
                        method=lambda a, b: a + b)
    return OperationRecord(key=key, operation=op, parameter_types=(int, int), source="...")


def test_lookup_is_read_only():
    registry = OperationRegistry()

    assert registry.lookup(ADD) is None
    assert ("math", "add") not in registry
    assert registry.count() == 0
    with pytest.raises(RegistryLookupError):
        registry.get(ADD)


def test_get_or_implement_inserts_once():
    registry = OperationRegistry()
    calls = []

    def implement():
        calls.append(1)
        return make_record()

    first = registry.get_or_implement(ADD, implement)
    second = registry.get_or_implement(("math", "add"), implement)

    assert first is second
    assert len(calls) == 1
    assert registry.get(ADD) is first
    assert registry.keys() == (ADD,)
    assert registry.records() == (first,)


def test_concurrent_threads_share_one_implementation():
    registry = OperationRegistry()
    calls = []
    barrier = threading.Barrier(8)
    results = []

    def implement():
        calls.append(1)
        time.sleep(0.1)
        return make_record()

    def worker():
        barrier.wait()
        results.append(registry.get_or_implement(ADD, implement))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_concurrent_tasks_share_one_implementation():
    registry = OperationRegistry()
    calls = []

    async def implement():
        calls.append(1)
        await asyncio.sleep(0.05)
        return make_record()

    results = await asyncio.gather(*(registry.aget_or_implement(ADD, implement) for _ in range(10)))

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_failure_reaches_every_waiter_and_key_stays_unimplemented():
    registry = OperationRegistry()
    calls = []

    async def failing():
        calls.append(1)
        await asyncio.sleep(0.05)
        raise SynthesisError("no content")

    results = await asyncio.gather(
        *(registry.aget_or_implement(ADD, failing) for _ in range(5)),
        return_exceptions=True,
    )

    assert len(calls) == 1
    assert all(isinstance(r, SynthesisError) for r in results)
    assert registry.lookup(ADD) is None
    assert not registry.is_pending(ADD)

    async def working():
        return make_record()

    record = await registry.aget_or_implement(ADD, working)
    assert registry.lookup(ADD) is record


def test_collision_inserts_nothing():
    registry = OperationRegistry()

    with pytest.raises(RegistryCollisionError):
        registry.get_or_implement(ADD, lambda: make_record(OperationKey("math", "sub")))

    assert registry.count() == 0
    assert not registry.is_pending(ADD)


@pytest.mark.asyncio
async def test_cancelled_leader_aborts_waiters():
    registry = OperationRegistry()
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.sleep(10)
        return make_record()

    leader = asyncio.create_task(registry.aget_or_implement(ADD, slow))
    await started.wait()
    waiter = asyncio.create_task(registry.aget_or_implement(ADD, slow))
    await asyncio.sleep(0)

    leader.cancel()
    with pytest.raises(asyncio.CancelledError):
        await leader
    with pytest.raises(ImplementationAbortedError):
        await waiter

    assert registry.lookup(ADD) is None
    assert not registry.is_pending(ADD)


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_leader():
    registry = OperationRegistry()
    started = asyncio.Event()
    release = asyncio.Event()

    async def gated():
        started.set()
        await release.wait()
        return make_record()

    leader = asyncio.create_task(registry.aget_or_implement(ADD, gated))
    await started.wait()
    waiter = asyncio.create_task(registry.aget_or_implement(ADD, gated))
    await asyncio.sleep(0)

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    release.set()
    record = await leader
    assert registry.lookup(ADD) is record


def test_different_keys_do_not_block_each_other():
    registry = OperationRegistry()
    started = threading.Event()
    release = threading.Event()
    sub = OperationKey("math", "sub")

    def blocked():
        started.set()
        release.wait(timeout=5)
        return make_record()

    t = threading.Thread(target=registry.get_or_implement, args=(ADD, blocked))
    t.start()
    assert started.wait(timeout=5)
    try:
        # completes while ``math.add`` is still being implemented
        record = registry.get_or_implement(sub, lambda: make_record(sub))
        assert registry.is_pending(ADD)
        assert registry.lookup(sub) is record
    finally:
        release.set()
        t.join()

    assert registry.count() == 2


@pytest.mark.asyncio
async def test_sync_and_async_callers_share_a_slot():
    registry = OperationRegistry()
    calls = []

    async def implement():
        calls.append(1)
        await asyncio.sleep(0.1)
        return make_record()

    leader = asyncio.create_task(registry.aget_or_implement(ADD, implement))
    await asyncio.sleep(0.01)
    # a thread waiting on the same key gets the same record
    record = await asyncio.to_thread(registry.get_or_implement, ADD, lambda: pytest.fail("second implement"))

    assert record is await leader
    assert len(calls) == 1
