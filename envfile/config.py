from __future__ import annotations

from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from envfile.parser import DEFAULT_OPTIONS, ParseOptions

_OPTION_NAMES = tuple(f.name for f in fields(ParseOptions))


def options_from_mapping(data: Mapping[str, Any] | None) -> ParseOptions:
    if data is None:
        return DEFAULT_OPTIONS
    if not isinstance(data, Mapping):
        raise ValueError(f"option profile must be a mapping, got {type(data).__name__}")

    values: dict[str, bool] = {}
    for name, value in data.items():
        if name not in _OPTION_NAMES:
            raise ValueError(f"unknown option {name!r}; expected one of {', '.join(_OPTION_NAMES)}")
        if not isinstance(value, bool):
            raise ValueError(f"option {name!r} must be true or false, got {value!r}")
        values[name] = value
    return replace(DEFAULT_OPTIONS, **values)


def load_options(path: Path) -> ParseOptions:
    return options_from_mapping(yaml.safe_load(path.read_text(encoding="utf-8")))
