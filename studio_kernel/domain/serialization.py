"""
Plain-primitive serialization for exporters and dashboards.

``to_primitive`` walks dataclasses, mappings and sequences and yields a
structure made only of ``dict``, ``list``, ``str``, ``int``, ``bool`` and
``None``:

* enums -> their value
* ``date`` / ``datetime`` -> ISO-8601 string
* ``Decimal`` -> string (no float rounding)
* ``UUID`` -> string
* tuples -> lists
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def to_primitive(value: Any) -> Any:
    """Convert a record (or any nested value) to JSON-safe primitives."""
    if isinstance(value, Enum):
        return to_primitive(value.value)
    if value is None or isinstance(value, (bool, int, str, float)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_primitive(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, dict):
        return {str(to_primitive(k)): to_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(v) for v in value]
    raise TypeError(f"Cannot serialize {type(value).__name__}")
