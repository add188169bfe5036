# opsmith_django/apps.py
"""
opsmith_django.apps
===================

Owns the process-wide :class:`~opsmith.engine.ExecutionEngine`.

The engine is built lazily from Django settings on first use (or eagerly in
``ready()`` when ``AUTOSTART`` is on). Building is idempotent and guarded by
a lock; tests swap it out with :meth:`OpsmithConfig.set_engine`.
"""
import logging
import os
import sys
import threading

from django.apps import AppConfig, apps

from opsmith.engine import ExecutionEngine
from opsmith.factory import build_engine
from opsmith.tracing import service_span_sync

from .conf import get_settings

logger = logging.getLogger(__name__)

__all__ = ["OpsmithConfig", "get_engine"]

DEFAULT_SKIP_READY_COMMANDS = {"migrate", "makemigrations", "collectstatic", "shell", "test"}


def _active_management_command(argv: list[str]) -> str | None:
    if len(argv) < 2:
        return None
    runner = argv[0]
    if not runner.endswith("manage.py") and "django-admin" not in runner:
        return None
    command = argv[1]
    if command.startswith("-"):
        return None
    return command


class OpsmithConfig(AppConfig):
    name = "opsmith_django"
    label = "opsmith_django"
    verbose_name = "opsmith"

    _lock = threading.RLock()
    _engine: ExecutionEngine | None = None

    def ready(self) -> None:
        if os.environ.get("DJANGO_SKIP_READY") == "1":
            return
        if not get_settings()["AUTOSTART"]:
            return
        command = _active_management_command(sys.argv)
        if command and command in DEFAULT_SKIP_READY_COMMANDS:
            logger.debug("Skipping opsmith autostart for management command %s", command)
            return

        with service_span_sync("opsmith.django.autostart"):
            self.get_engine()

    def get_engine(self) -> ExecutionEngine:
        with self._lock:
            if self._engine is None:
                type(self)._engine = build_engine(get_settings())
                logger.info("opsmith engine ready (%r)", self._engine)
            return self._engine

    def set_engine(self, engine: ExecutionEngine | None) -> None:
        """Replace the engine; the previous one is not closed."""
        with self._lock:
            type(self)._engine = engine

    def shutdown(self) -> None:
        with self._lock:
            engine, type(self)._engine = self._engine, None
        if engine is not None:
            engine.close()
            logger.info("opsmith engine shut down")


def get_engine() -> ExecutionEngine:
    config: OpsmithConfig = apps.get_app_config("opsmith_django")
    return config.get_engine()
