"""Flat function set for embedders that pass nullable strings and expect int results.

Strings returned by ``dotenv_get`` and ``dotenv_get_last_error`` live in a
per-thread buffer that the next call to the same function replaces. Callers
that need the value later should copy it right away.
"""

from __future__ import annotations

import threading
import warnings

from envfile import registry

_buffers = threading.local()


def _hold(slot: str, value: str) -> str:
    setattr(_buffers, slot, value)
    return getattr(_buffers, slot)


def dotenv_load(filename: str | None) -> int:
    path = registry.DEFAULT_PATH if filename is None else filename
    return int(registry.load(path))


def dotenv_get(key: str | None, default: str | None) -> str:
    if key is None:
        return _hold("get", "")
    return _hold("get", registry.get(key, "" if default is None else default))


def dotenv_has(key: str | None) -> int:
    if key is None:
        return 0
    return 1 if registry.has(key) else 0


def dotenv_clear() -> None:
    registry.clear()


def dotenv_is_loaded() -> int:
    return 1 if registry.is_loaded() else 0


def dotenv_get_last_error() -> str:
    return _hold("last_error", registry.get_last_error())


def call_dotenv_load(filename: str | None) -> None:
    """Deprecated: use ``dotenv_load`` or ``envfile.registry.load``."""
    warnings.warn(
        "call_dotenv_load is deprecated; use dotenv_load instead",
        DeprecationWarning,
        stacklevel=2,
    )
    registry.load(registry.DEFAULT_PATH if filename is None else filename)
