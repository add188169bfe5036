# opsmith/coercion/coercer.py
"""
Argument coercion for synthesized operations.

Requests arrive as an ordered list of raw strings (URL path segments); the
compiled operation declares a parameter type per position. Conversion uses
pydantic's lax validation so every type pydantic understands gets its
canonical string parse (``"3"`` → ``3``, ``"true"`` → ``True``,
``"2024-01-31"`` → ``date``, ``"1.50"`` → ``Decimal``...).
"""
from __future__ import annotations

import inspect
import logging
from functools import lru_cache
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError

from .exceptions import ArityMismatchError, CoercionError

logger = logging.getLogger(__name__)

__all__ = ["ArgumentCoercer", "coerce"]

_PASSTHROUGH: tuple[Any, ...] = (str, Any, inspect.Parameter.empty, None)


@lru_cache(maxsize=256)
def _adapter_for(target: Any) -> TypeAdapter | None:
    try:
        return TypeAdapter(target)
    except (PydanticSchemaGenerationError, TypeError):
        logger.debug("No pydantic schema for %r; falling back to direct construction", target)
        return None


class ArgumentCoercer:
    """Converts raw string arguments into a typed argument list."""

    def coerce(self, raw_values: Sequence[str], target_types: Sequence[Any]) -> list[Any]:
        """Convert ``raw_values`` positionally into ``target_types``.

        :raises ArityMismatchError: if the two sequences differ in length;
            nothing is converted in that case.
        :raises CoercionError: on the first value that does not parse into its
            target type. No partial result is returned.
        """
        if len(raw_values) != len(target_types):
            raise ArityMismatchError(expected=len(target_types), actual=len(raw_values))

        return [self.coerce_one(index, raw, target) for index, (raw, target) in enumerate(zip(raw_values, target_types))]

    def coerce_one(self, index: int, raw: str, target: Any) -> Any:
        if any(target is p for p in _PASSTHROUGH):
            return raw

        try:
            adapter = _adapter_for(target)
        except TypeError:
            # unhashable annotation; skip the cache
            adapter = _adapter_for.__wrapped__(target)
        try:
            if adapter is not None:
                return adapter.validate_python(raw)
            return target(raw)
        except ValidationError as err:
            raise CoercionError(index=index, target_type=target, value=raw) from err
        except (TypeError, ValueError, ArithmeticError) as err:
            raise CoercionError(index=index, target_type=target, value=raw) from err


_default = ArgumentCoercer()


def coerce(raw_values: Sequence[str], target_types: Sequence[Any]) -> list[Any]:
    """Module-level shortcut around a shared :class:`ArgumentCoercer`."""
    return _default.coerce(raw_values, target_types)
