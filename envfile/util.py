from __future__ import annotations

import json
from pathlib import Path

_SECRET_PARTS = {"key", "apikey", "token", "secret", "password"}


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding=encoding)
    tmp.replace(path)


def dump_json(obj: object) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"


def redact_value(key: str, value: str) -> str:
    """Hide values whose key name looks like a credential (e.g., API_KEY)."""
    if _SECRET_PARTS & set(key.lower().split("_")):
        return "REDACTED"
    return value
