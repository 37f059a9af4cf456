from __future__ import annotations

import json
from typing import Any


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number: {name}")


def parse_payload(raw: str) -> Any:
    """Text that parses as JSON is stored structured; anything else is kept as a string.

    NaN and Infinity are not valid JSON and stay strings, as does input nested too
    deeply to decode.
    """
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return raw


def render_payload(value: Any) -> str:
    if isinstance(value, str):
        return value
    return stable_json_dumps(value)
