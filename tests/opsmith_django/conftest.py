# tests/opsmith_django/conftest.py
import asyncio
import textwrap

import pytest

from opsmith.compiler import InProcessCompiler
from opsmith.engine import ExecutionEngine

ADD_SOURCE = textwrap.dedent(
    """
    class Adder:
        def add(self, a: int, b: int) -> int:
            return a + b
    """
)


class CannedSynthesizer:
    """Returns (or raises) canned sources per operation name."""

    def __init__(self, sources=None):
        self.sources = dict(sources or {})
        self.requests = []

    async def asynthesize(self, request):
        self.requests.append(request)
        await asyncio.sleep(0)
        outcome = self.sources.get(request.name, ADD_SOURCE)
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(scope="session", autouse=True)
def django_setup():
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=False,
            ALLOWED_HOSTS=["testserver"],
            INSTALLED_APPS=["opsmith_django"],
            ROOT_URLCONF="opsmith_django.urls",
            MIDDLEWARE=[],
            SECRET_KEY="test",  # nosec - test only
            USE_TZ=True,
            OPSMITH={
                "AUTOSTART": False,
                "COMPILER_BACKEND": "inprocess",
                "CATEGORIES": ("math", "text"),
            },
        )
    django.setup()
    yield


@pytest.fixture
def app_config(django_setup):
    from django.apps import apps

    config = apps.get_app_config("opsmith_django")
    yield config
    config.set_engine(None)


@pytest.fixture
def install_engine(app_config):
    def _install(sources=None, synthesizer=None):
        synth = synthesizer or CannedSynthesizer(sources)
        engine = ExecutionEngine(synth, InProcessCompiler())
        app_config.set_engine(engine)
        return engine, synth

    return _install


@pytest.fixture
def client(django_setup):
    from django.test import Client

    return Client()
