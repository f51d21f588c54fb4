from __future__ import annotations

import logging
import os
import threading
from enum import IntEnum
from pathlib import Path
from typing import MutableMapping

from envfile.parser import DEFAULT_OPTIONS, ParseOptions, iter_entries

log = logging.getLogger(__name__)

DEFAULT_PATH = ".env"


class DotenvError(IntEnum):
    SUCCESS = 0
    FILE_NOT_FOUND = 1
    # Reserved; malformed lines are skipped rather than reported.
    PARSE_ERROR = 2
    INVALID_KEY = 3


class Registry:
    """Loads .env files into an environment and remembers which keys it set.

    One lock serializes load, clear and the state readers. ``get`` and
    ``has`` read the environment directly.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self._lock = threading.Lock()
        # dict as an insertion-ordered set
        self._loaded_keys: dict[str, None] = {}
        self._is_loaded = False
        self._last_error = ""

    def load(self, path: Path | str = DEFAULT_PATH, options: ParseOptions | None = None) -> DotenvError:
        opts = DEFAULT_OPTIONS if options is None else options
        with self._lock:
            try:
                handle = open(path, "r", encoding="utf-8", errors="replace")
            except (OSError, ValueError):
                # ValueError: embedded NUL in the path
                self._last_error = f"Could not open the .env file: {path}"
                log.error(self._last_error)
                return DotenvError.FILE_NOT_FOUND

            self._last_error = ""
            log.info("loading %s", path)
            accepted = 0
            with handle:
                for entry in iter_entries(handle, opts):
                    if not opts.overwrite and entry.key in self.environ:
                        log.debug("keeping existing %s (line %d)", entry.key, entry.line_number)
                        continue
                    try:
                        self.environ[entry.key] = entry.value
                    except ValueError as exc:
                        log.warning("cannot set %s from line %d: %s", entry.key, entry.line_number, exc)
                        continue
                    self._loaded_keys.setdefault(entry.key, None)
                    accepted += 1

            self._is_loaded = True
            log.info("loaded %d entries from %s", accepted, path)
            return DotenvError.SUCCESS

    def get(self, key: str, default: str = "") -> str:
        return self.environ.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.environ

    def loaded_keys(self) -> list[str]:
        with self._lock:
            return list(self._loaded_keys)

    def clear(self) -> None:
        with self._lock:
            for key in self._loaded_keys:
                self.environ.pop(key, None)
            log.info("cleared %d loaded keys", len(self._loaded_keys))
            self._loaded_keys.clear()
            self._is_loaded = False

    def is_loaded(self) -> bool:
        with self._lock:
            return self._is_loaded

    def last_error(self) -> str:
        with self._lock:
            return self._last_error


_default = Registry()


def load(path: Path | str = DEFAULT_PATH, options: ParseOptions | None = None) -> DotenvError:
    return _default.load(path, options)


def get(key: str, default: str = "") -> str:
    return _default.get(key, default)


def has(key: str) -> bool:
    return _default.has(key)


def get_loaded_keys() -> list[str]:
    return _default.loaded_keys()


def clear() -> None:
    _default.clear()


def is_loaded() -> bool:
    return _default.is_loaded()


def get_last_error() -> str:
    return _default.last_error()
