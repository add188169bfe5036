# opsmith_django/views.py
import logging
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from opsmith.coercion import ArityMismatchError, CoercionError
from opsmith.compiler import InvocationError
from opsmith.exceptions import ImplementError, OperationError, OpsmithError
from opsmith.operations import OperationKeyError
from opsmith.registry import RegistryLookupError
from opsmith.synthesis import SynthesisError

from .apps import get_engine

logger = logging.getLogger(__name__)


class OpsmithJSONEncoder(DjangoJSONEncoder):
    """DjangoJSONEncoder plus sets and a str() fallback for anything else."""

    def default(self, o: Any) -> Any:
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=repr)
        if isinstance(o, complex):
            return str(o)
        try:
            return super().default(o)
        except TypeError:
            return str(o)


def _status_for(err: OpsmithError) -> int:
    if isinstance(err, (ArityMismatchError, CoercionError, OperationKeyError)):
        return 400
    if isinstance(err, RegistryLookupError):
        return 404
    if isinstance(err, InvocationError):
        return 422
    if isinstance(err, SynthesisError):
        return 504 if err.timed_out else 502
    if isinstance(err, ImplementError):
        return 502
    return 500


def error_response(err: OpsmithError) -> JsonResponse:
    if isinstance(err, OperationError):
        body = err.as_dict()
    else:
        body = {"error": type(err).__name__, "detail": str(err), "operation": None, "phase": None}
    return JsonResponse(body, status=_status_for(err), encoder=OpsmithJSONEncoder)


def split_values(values: str) -> list[str]:
    """``"3/4"`` -> ``["3", "4"]``; an empty path means no arguments."""
    values = values.strip("/")
    return values.split("/") if values else []


@require_GET
async def run_operation(request, category: str, operation: str, values: str = ""):
    args = split_values(values)
    try:
        result = await get_engine().arun(category, operation, args)
    except OpsmithError as err:
        logger.info("%s/%s%s -> %s", category, operation, args, type(err).__name__)
        return error_response(err)
    return JsonResponse(result, safe=False, encoder=OpsmithJSONEncoder)


@require_GET
def list_operations(request):
    return JsonResponse({"operations": get_engine().operations()}, encoder=OpsmithJSONEncoder)


@require_GET
def describe_operation(request, category: str, operation: str):
    try:
        return JsonResponse(get_engine().describe(category, operation), encoder=OpsmithJSONEncoder)
    except OpsmithError as err:
        return error_response(err)
