from typing import Any


def operation_attributes(key: Any, **extra: Any) -> dict[str, Any]:
    """Span attributes for an operation key as ``opsmith.*`` entries.

    ``key`` may be an OperationKey or anything with ``category``/``name``;
    extra keyword values are added under ``opsmith.<name>``.
    """
    out: dict[str, Any] = {
        "opsmith.category": getattr(key, "category", None),
        "opsmith.operation": getattr(key, "as_str", None) or str(key),
    }
    for k, v in extra.items():
        out[f"opsmith.{k}"] = v
    return out
