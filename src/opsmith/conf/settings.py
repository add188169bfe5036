"""Layered, mapping-like settings: defaults, env overlays and explicit overrides."""


import importlib
import os
from collections import ChainMap
from typing import Any, Iterator, Mapping, MutableMapping

from .defaults import DEFAULTS
from ..exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


class Settings(MutableMapping[str, Any]):
    """Layered settings with defaults and optional overlays."""

    def __init__(self, *layers: Mapping[str, Any]) -> None:
        self._storage = ChainMap({}, *(dict(layer) for layer in layers), dict(DEFAULTS))

    # Mapping protocol -------------------------------------------------
    def __getitem__(self, key: str) -> Any:
        return self._storage[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._storage.maps[0][key] = value

    def __delitem__(self, key: str) -> None:
        del self._storage.maps[0][key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    # Helpers ----------------------------------------------------------
    def update_from_object(self, obj: str, *, namespace: str | None = None) -> None:
        module = importlib.import_module(obj)
        self.update_from_mapping(_filter_by_namespace(vars(module), namespace))

    def update_from_envvar(self, envvar: str = "OPSMITH_CONFIG_MODULE", *, namespace: str | None = None) -> None:
        module_name = os.environ.get(envvar)
        if not module_name:
            return
        self.update_from_object(module_name, namespace=namespace)

    def update_from_mapping(self, mapping: Mapping[str, Any], *, namespace: str | None = None) -> None:
        self._storage.maps[0].update(_filter_by_namespace(mapping, namespace))

    def update_from_environ(self, prefix: str = "OPSMITH_", environ: Mapping[str, str] | None = None) -> None:
        """Overlay ``<prefix><KEY>`` environment variables for known keys.

        Raw strings are converted to the type of the current value, so
        ``OPSMITH_SANDBOX_MAX_WORKERS=4`` lands as an ``int``.
        """
        env = os.environ if environ is None else environ
        for key in list(self._storage.keys()):
            raw = env.get(f"{prefix}{key}")
            if raw is None:
                continue
            self[key] = _coerce_env_value(key, raw, self._storage.get(key))

    def as_dict(self) -> dict[str, Any]:
        return dict(self._storage)


def _coerce_env_value(key: str, raw: str, current: Any) -> Any:
    value = raw.strip()
    if isinstance(current, bool):
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigurationError(f"{key} expects a boolean, got {raw!r}")
    if isinstance(current, (int, float)):
        try:
            return type(current)(value)
        except ValueError as err:
            raise ConfigurationError(f"{key} expects {type(current).__name__}, got {raw!r}") from err
    if isinstance(current, tuple):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if value == "" and current is None:
        return None
    return value


def _filter_by_namespace(mapping: Mapping[str, Any], namespace: str | None) -> dict[str, Any]:
    if namespace is None:
        return {k: v for k, v in mapping.items() if k.isupper()}

    prefix = f"{namespace}_"
    output: dict[str, Any] = {}
    for key, value in mapping.items():
        if not key.startswith(prefix):
            continue
        short_key = key[len(prefix) :]
        output[short_key] = value
    return output
