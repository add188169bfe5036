import io
import json

import pytest
from django.core.management import call_command

from opsmith.client import ProviderClient
from opsmith.providers import BaseProvider
from opsmith.synthesis import CodeSynthesizer


class StaticProvider(BaseProvider):
    def __init__(self, healthy: bool):
        super().__init__(alias="static", provider="static", api_key="sk-test")
        self.healthy = healthy

    async def call(self, req, timeout=None):  # pragma: no cover - never called here
        raise AssertionError("healthcheck must not synthesize")

    async def healthcheck(self, *, timeout=None):
        return self.healthy, "reachable" if self.healthy else "401 unauthorized"


def run_healthcheck(*args):
    out = io.StringIO()
    with pytest.raises(SystemExit) as info:
        call_command("opsmith_healthcheck", *args, stdout=out)
    return info.value.code, out.getvalue()


@pytest.mark.parametrize("healthy, code, status", [(True, 0, 200), (False, 1, 503)])
def test_json_report(install_engine, healthy, code, status):
    install_engine(synthesizer=CodeSynthesizer(ProviderClient(StaticProvider(healthy))))

    exit_code, output = run_healthcheck("--json")
    payload = json.loads(output.strip().splitlines()[-1])

    assert exit_code == code
    assert payload["ok"] is healthy
    assert payload["http_status"] == status
    assert payload["provider"] == "static-static"
    assert payload["compiler"] == "inprocess"


def test_human_report(install_engine):
    install_engine(synthesizer=CodeSynthesizer(ProviderClient(StaticProvider(False))))

    exit_code, output = run_healthcheck()

    assert exit_code == 1
    assert "FAIL: 401 unauthorized" in output


def test_crash_exits_with_2(install_engine):
    # the canned synthesizer has no provider client
    install_engine()

    exit_code, output = run_healthcheck("--json")

    assert exit_code == 2
    assert json.loads(output.strip().splitlines()[-1])["ok"] is False
