"""Framework-neutral data aliases."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeAlias

JSONValue: TypeAlias = Any
JSONObject: TypeAlias = dict[str, JSONValue]


def as_object(value: object) -> JSONObject:
    """Return a shallow dict copy of mapping-like values, else an empty dict."""

    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    return {}
