# opsmith/tracing/__init__.py
from .tracing import get_tracer, noop_span, service_span, service_span_sync
from .helpers import operation_attributes

__all__ = [
    "get_tracer",
    "noop_span",
    "service_span",
    "service_span_sync",
    "operation_attributes",
]
