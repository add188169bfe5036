# opsmith_django/conf.py
"""
Read opsmith settings from Django.

Precedence (highest first):
    settings.OPSMITH = {...}
    settings.OPSMITH_<KEY>
    OPSMITH_<KEY> environment variables / OPSMITH_CONFIG_MODULE
    opsmith.conf.DEFAULTS
"""
from django.conf import settings as dj_settings

from opsmith.conf import DEFAULTS, Settings

__all__ = ["get_settings"]

_PREFIX = "OPSMITH_"


def get_settings() -> Settings:
    s = Settings()
    s.update_from_envvar()
    s.update_from_environ(prefix=_PREFIX)

    attrs = {}
    for key in DEFAULTS:
        name = f"{_PREFIX}{key}"
        if hasattr(dj_settings, name):
            attrs[key] = getattr(dj_settings, name)
    s.update_from_mapping(attrs)

    s.update_from_mapping(getattr(dj_settings, "OPSMITH", None) or {})
    return s
