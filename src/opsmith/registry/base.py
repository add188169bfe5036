# opsmith/registry/base.py
"""
Append-only store of implemented operations with single-flight insertion.

Concurrent first requests for the same key share one pending slot (a
``concurrent.futures.Future``): the first caller becomes the leader and runs
the implement function, everyone else waits on the slot. Plain futures work
for threads and for coroutines on any event loop (via
``asyncio.wrap_future``), so sync and async callers can share a slot.
"""

import asyncio
import logging
from concurrent.futures import Future
from threading import RLock
from typing import Awaitable, Callable

from .exceptions import ImplementationAbortedError, RegistryCollisionError, RegistryLookupError
from ..operations import OperationKey, OperationKeyError, OperationKeyLike, OperationRecord

logger = logging.getLogger(__name__)

__all__ = ["OperationRegistry"]


def _consume(fut: "asyncio.Future") -> None:
    # keeps "exception was never retrieved" quiet when every waiter went away
    if not fut.cancelled():
        fut.exception()


class OperationRegistry:
    """Thread-safe, append-only mapping of OperationKey -> OperationRecord.

    The lock guards only the two dictionaries; it is never held while an
    implement function runs, so different keys never wait on each other.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._store: dict[OperationKey, OperationRecord] = {}
        self._pending: dict[OperationKey, Future] = {}

    # --- retrieval ---

    def lookup(self, key: OperationKeyLike) -> OperationRecord | None:
        """Return the record for ``key`` or None. Never triggers synthesis."""
        k = OperationKey.get(key)
        with self._lock:
            return self._store.get(k)

    def get(self, key: OperationKeyLike) -> OperationRecord:
        """
        Return the record for ``key``.

        :raises RegistryLookupError: If the operation is not implemented.
        """
        k = OperationKey.get(key)
        with self._lock:
            try:
                return self._store[k]
            except KeyError as err:
                raise RegistryLookupError(f"Operation {k.as_str!r} is not implemented") from err

    def __contains__(self, key: object) -> bool:
        try:
            k = OperationKey.get(key)  # type: ignore[arg-type]
        except OperationKeyError:
            return False
        with self._lock:
            return k in self._store

    def is_pending(self, key: OperationKeyLike) -> bool:
        k = OperationKey.get(key)
        with self._lock:
            return k in self._pending

    # --- enumerate ---

    def count(self) -> int:
        with self._lock:
            return len(self._store)

    def __len__(self) -> int:
        return self.count()

    def keys(self) -> tuple[OperationKey, ...]:
        with self._lock:
            return tuple(self._store.keys())

    def records(self) -> tuple[OperationRecord, ...]:
        with self._lock:
            return tuple(self._store.values())

    # --- single-flight insertion ---

    def _claim(self, key: OperationKey) -> tuple[OperationRecord | None, Future | None, bool]:
        """Return (record, slot, is_leader) for ``key`` under one lock acquisition."""
        with self._lock:
            record = self._store.get(key)
            if record is not None:
                return record, None, False
            slot = self._pending.get(key)
            if slot is not None:
                return None, slot, False
            slot = Future()
            # a running future cannot be cancelled by a waiter
            slot.set_running_or_notify_cancel()
            self._pending[key] = slot
            return None, slot, True

    def _complete(self, key: OperationKey, slot: Future, record: OperationRecord) -> OperationRecord:
        if not isinstance(record, OperationRecord) or record.key != key:
            got = getattr(getattr(record, "key", None), "as_str", repr(record))
            err = RegistryCollisionError(f"implement function for {key.as_str!r} returned a record for {got!r}")
            self._fail(key, slot, err)
            raise err

        with self._lock:
            self._store[key] = record
            self._pending.pop(key, None)
        slot.set_result(record)
        logger.info("operation %s implemented (%s.%s)", key.as_str, record.operation.class_name,
                    record.operation.method_name)
        return record

    def _fail(self, key: OperationKey, slot: Future, exc: BaseException) -> None:
        with self._lock:
            self._pending.pop(key, None)
        if not slot.done():
            slot.set_exception(exc)

    def _abort(self, key: OperationKey, slot: Future) -> None:
        self._fail(key, slot, ImplementationAbortedError(
            f"implementation of {key.as_str!r} was abandoned", key=key
        ))

    def get_or_implement(
            self,
            key: OperationKeyLike,
            implement_fn: Callable[[], OperationRecord],
    ) -> OperationRecord:
        """
        Return the record for ``key``, implementing it at most once.

        If another caller is already implementing the key this call blocks
        until it finishes and shares its outcome, success or failure.
        """
        k = OperationKey.get(key)
        record, slot, leader = self._claim(k)
        if record is not None:
            return record
        if not leader:
            logger.debug("waiting on in-flight implementation of %s", k.as_str)
            return slot.result()

        try:
            record = implement_fn()
        except Exception as exc:
            self._fail(k, slot, exc)
            raise
        except BaseException:
            self._abort(k, slot)
            raise
        return self._complete(k, slot, record)

    async def aget_or_implement(
            self,
            key: OperationKeyLike,
            implement_fn: Callable[[], Awaitable[OperationRecord]],
    ) -> OperationRecord:
        """
        Async variant of :meth:`get_or_implement`.

        Cancelling a waiter only stops that waiter. Cancelling the leader
        reverts the key and wakes waiters with ImplementationAbortedError.
        """
        k = OperationKey.get(key)
        record, slot, leader = self._claim(k)
        if record is not None:
            return record
        if not leader:
            logger.debug("waiting on in-flight implementation of %s", k.as_str)
            waiter = asyncio.wrap_future(slot)
            waiter.add_done_callback(_consume)
            return await asyncio.shield(waiter)

        try:
            record = await implement_fn()
        except Exception as exc:
            self._fail(k, slot, exc)
            raise
        except BaseException:
            self._abort(k, slot)
            raise
        return self._complete(k, slot, record)
