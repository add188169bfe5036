from decimal import Decimal
from fractions import Fraction

import pytest

from opsmith.synthesis import SynthesisError
from opsmith_django.views import OpsmithJSONEncoder, split_values

PI_SOURCE = "import math\n\nclass Pi:\n    def pi(self) -> float:\n        return math.pi\n"
DIV_SOURCE = "class Divider:\n    def div(self, a: int, b: int) -> float:\n        return a / b\n"
UPPER_SOURCE = "class Upper:\n    def upper(self, s: str) -> str:\n        return s.upper()\n"
ADD_SOURCE = "class Adder:\n    def add(self, a: int, b: int) -> int:\n        return a + b\n"
TWO_CLASSES = "class A:\n    def add(self, a: int) -> int:\n        return a\n\nclass B:\n    def add(self, a: int) -> int:\n        return a\n"


@pytest.mark.parametrize("raw, expected", [("3/4", ["3", "4"]), ("3/4/", ["3", "4"]), ("", []), ("7", ["7"])])
def test_split_values(raw, expected):
    assert split_values(raw) == expected


def test_encoder_falls_back_to_strings():
    encoder = OpsmithJSONEncoder()
    assert encoder.encode(Decimal("1.5")) == '"1.5"'
    assert encoder.encode(Fraction(1, 3)) == '"1/3"'
    assert encoder.encode({1, 2}) == "[1, 2]"


def test_math_add_end_to_end(client, install_engine):
    engine, synth = install_engine()

    first = client.get("/math/add/3/4")
    second = client.get("/math/add/10/20")

    assert first.status_code == 200
    assert first.json() == 7
    assert second.json() == 30
    assert len(synth.requests) == 1
    assert synth.requests[0].examples == [("3", "4")]


def test_zero_argument_route(client, install_engine):
    install_engine({"pi": PI_SOURCE})

    resp = client.get("/math/pi/")

    assert resp.status_code == 200
    assert round(resp.json(), 4) == 3.1416

    # no APPEND_SLASH middleware in play
    bare = client.get("/math/pi")
    assert bare.status_code == 200
    assert bare.json() == resp.json()


def test_every_configured_category_is_routed(client, install_engine):
    install_engine({"upper": UPPER_SOURCE})

    resp = client.get("/text/upper/hello")

    assert resp.json() == "HELLO"


def test_unconfigured_category_is_not_routed(client, install_engine):
    install_engine()
    assert client.get("/geo/add/1/2").status_code == 404


def test_only_get_is_allowed(client, install_engine):
    install_engine()
    assert client.post("/math/add/3/4").status_code == 405


def test_caller_errors_are_400(client, install_engine):
    install_engine()
    client.get("/math/add/3/4")

    bad_value = client.get("/math/add/3/four")
    bad_arity = client.get("/math/add/1/2/3")
    bad_name = client.get("/math/add!/1/2")

    assert bad_value.status_code == 400
    assert bad_value.json()["error"] == "CoercionError"
    assert bad_value.json()["operation"] == "math.add"
    assert bad_value.json()["phase"] == "coercion"
    assert bad_value.json()["index"] == 1
    assert bad_arity.status_code == 400
    assert bad_arity.json()["error"] == "ArityMismatchError"
    assert bad_name.status_code == 400
    assert bad_name.json()["error"] == "OperationKeyError"


def test_invocation_error_is_422(client, install_engine):
    install_engine({"div": DIV_SOURCE})

    resp = client.get("/math/div/1/0")

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "InvocationError"
    assert body["exc_type"] == "ZeroDivisionError"


def test_implement_errors_are_502_and_retryable(client, install_engine):
    install_engine({"add": [TWO_CLASSES, ADD_SOURCE]})

    failed = client.get("/math/add/1/2")
    retried = client.get("/math/add/1/2")

    assert failed.status_code == 502
    assert failed.json()["error"] == "ResolutionError"
    assert retried.status_code == 200
    assert retried.json() == 3


def test_synthesis_timeout_is_504(client, install_engine):
    install_engine({"add": SynthesisError("code generation timed out after 90s", timed_out=True)})

    resp = client.get("/math/add/1/2")

    assert resp.status_code == 504
    assert resp.json()["phase"] == "synthesis"


def test_operation_listing_and_description(client, install_engine):
    install_engine()
    assert client.get("/operations/").json() == {"operations": []}

    client.get("/math/add/3/4")

    listing = client.get("/operations/").json()["operations"]
    assert [(op["category"], op["name"]) for op in listing] == [("math", "add")]
    described = client.get("/operations/math/add/")
    assert described.json()["parameters"] == ["int", "int"]
    assert client.get("/operations/math/sub/").status_code == 404
