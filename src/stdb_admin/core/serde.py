"""
JSON rendering for values without a scalar display form.

Structs, enums, arrays and unknown/complex columns are shown as compact JSON
with sorted keys so the same value always renders the same way. Non-ASCII text
is kept as-is. Zero-IO, stdlib only.
"""

from __future__ import annotations

import json
from typing import Any

__all__ = [
    "json_dumps_canonical",
    "display_value",
]


def json_dumps_canonical(obj: Any) -> str:
    """Compact, key-sorted JSON without ASCII escaping."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def display_value(value: Any) -> Any:
    """
    Return scalars unchanged and nested values as canonical JSON.

    Examples:
        >>> display_value(7), display_value({"b": 1, "a": [2]})
        (7, '{"a":[2],"b":1}')
    """
    if isinstance(value, (list, dict)):
        return json_dumps_canonical(value)
    return value
