import logging
from collections.abc import Mapping, Sequence
from contextlib import contextmanager, asynccontextmanager
from typing import Any, Iterator, AsyncIterator

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

_TRACER_NAME = "opsmith"

# attribute value types OpenTelemetry accepts (alone or in homogeneous sequences)
_SCALARS = (bool, str, bytes, int, float)


def get_tracer(name: str | None = None) -> Tracer:
    """Return the package tracer so engine, compiler and client spans nest together."""
    return trace.get_tracer(name or _TRACER_NAME)


def _set_attributes(span: Span, attrs: Mapping[str, Any] | None) -> None:
    for k, v in (attrs or {}).items():
        if v is None:
            continue
        try:
            if isinstance(v, _SCALARS):
                span.set_attribute(k, v)
            elif isinstance(v, Sequence) and not isinstance(v, (str, bytes)):
                kept = [x for x in v if isinstance(x, _SCALARS)]
                if kept:
                    span.set_attribute(k, kept)
            else:
                span.set_attribute(k, str(v))
        except Exception:
            logger.debug("could not set span attribute %s", k, exc_info=True)


def _mark_failed(span: Span, err: BaseException) -> None:
    span.set_attribute("ok", False)
    try:
        span.record_exception(err)
        span.set_status(Status(StatusCode.ERROR, description=str(err)))
        span.set_attribute("exception.type", type(err).__name__)
    except Exception:
        logger.exception("could not record exception on span")


@contextmanager
def service_span_sync(name: str, *, attributes: Mapping[str, Any] | None = None) -> Iterator[Span]:
    """Synchronous span context.

    Usage:
        with service_span_sync("opsmith.compiler.compile", attributes={"opsmith.operation": "math.add"}):
            ...
    """
    with get_tracer().start_as_current_span(name, kind=SpanKind.INTERNAL) as span:
        _set_attributes(span, attributes)
        try:
            yield span
        except Exception as e:
            _mark_failed(span, e)
            raise
        span.set_attribute("ok", True)


@asynccontextmanager
async def service_span(name: str, *, attributes: Mapping[str, Any] | None = None) -> AsyncIterator[Span]:
    """Async counterpart of :func:`service_span_sync`."""
    with get_tracer().start_as_current_span(name, kind=SpanKind.INTERNAL) as span:
        _set_attributes(span, attributes)
        try:
            yield span
        except Exception as e:
            _mark_failed(span, e)
            raise
        span.set_attribute("ok", True)


@asynccontextmanager
async def noop_span(*args: Any, **kwargs: Any) -> AsyncIterator[None]:
    yield


__all__ = [
    "get_tracer",
    "noop_span",
    "service_span",
    "service_span_sync",
]
