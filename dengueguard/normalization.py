"""Coalesce differently-named backend fields into canonical names.

Backend deployments return overlapping payloads with no version marker. Each
canonical field is described by an ordered tuple of candidate names (newer or
more specific names first) plus a default.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class FieldMapping:
    target: str
    sources: Tuple[str, ...]
    default: Any
    convert: Optional[Callable[[str, Any], Any]] = None

    def resolve(self, payload: Mapping[str, Any]) -> Any:
        for name in self.sources:
            value = lookup(payload, name)
            if value is None or value == "":
                continue
            if self.convert is None:
                return value
            converted = self.convert(name, value)
            if converted is not None:
                return converted
        return self.default


def lookup(payload: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted ``path`` in nested mappings, ``None`` when absent."""
    current: Any = payload
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def first_block(payload: Mapping[str, Any], names: Sequence[str], default: Any = None) -> Any:
    """Return the first nested mapping found under ``names``."""
    for name in names:
        block = lookup(payload, name)
        if isinstance(block, Mapping):
            return block
    return default


def normalize(payload: Mapping[str, Any], mappings: Sequence[FieldMapping]) -> Dict[str, Any]:
    return {mapping.target: mapping.resolve(payload) for mapping in mappings}


def as_float(_: str, value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # NaN and infinities count as missing.
    if not math.isfinite(number):
        return None
    return number


def as_int(name: str, value: Any) -> Optional[int]:
    number = as_float(name, value)
    if number is None:
        return None
    return int(number)


def as_str_tuple(_: str, value: Any) -> Optional[Tuple[str, ...]]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        items = tuple(str(item) for item in value if item)
        return items or None
    return None


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


__all__ = [
    "FieldMapping",
    "as_float",
    "as_int",
    "as_str_tuple",
    "clamp_unit",
    "first_block",
    "lookup",
    "normalize",
]
