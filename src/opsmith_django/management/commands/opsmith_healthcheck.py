# opsmith_django/management/commands/opsmith_healthcheck.py
"""
Django management command to check the code-generation provider.

Usage:
    python manage.py opsmith_healthcheck
    python manage.py opsmith_healthcheck --json     # CI-friendly JSON output (includes http_status)

Exits non-zero when the provider is not healthy. Intended for CI/CD and
container boot probes.
"""
import json
import logging
import sys

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from opsmith_django.apps import get_engine

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run the opsmith provider healthcheck and report the result."

    def add_arguments(self, parser):
        parser.add_argument(
            "--json",
            action="store_true",
            help="Output results as JSON for CI consumption.",
        )

    def handle(self, *args, **options):
        as_json = bool(options.get("json"))
        if not as_json:
            self.stdout.write("Running opsmith healthcheck...")

        try:
            engine = get_engine()
            provider = engine.synthesizer.client.provider
            ok, detail = async_to_sync(provider.healthcheck)()
        except Exception as exc:
            logger.exception("opsmith healthcheck failed unexpectedly: %s", exc)
            if as_json:
                payload = {"ok": False, "http_status": 500, "provider": None, "detail": repr(exc)}
                self.stdout.write(json.dumps(payload))
                sys.exit(2)
            self.stdout.write(self.style.ERROR(f"Healthcheck crashed: {exc!r}"))
            sys.exit(2)

        report = {
            "provider": provider.slug,
            "compiler": engine.compiler.backend,
            "operations": engine.registry.count(),
        }
        if as_json:
            payload = {"ok": bool(ok), "http_status": 200 if ok else 503, "detail": str(detail), **report}
            self.stdout.write(json.dumps(payload))
            sys.exit(0 if ok else 1)

        line = f"[{provider.slug}] {'healthy' if ok else 'FAIL'}: {detail}"
        if ok:
            logger.info(line)
            self.stdout.write(self.style.SUCCESS(line))
            sys.exit(0)
        logger.warning(line)
        self.stdout.write(self.style.ERROR(line))
        sys.exit(1)
