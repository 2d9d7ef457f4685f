"""
Value coercions with the loose semantics flow configurations are written
against: numbers parsed from strings, truthiness where empty containers are
still truthy, and type-coercing equality.
"""

import json
import math
from typing import Any

NAN = float('nan')


def to_number(value: Any) -> float:
    """Numeric coercion; anything unparseable becomes NaN."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text == '':
            return 0.0
        if text in ('Infinity', '+Infinity'):
            return math.inf
        if text == '-Infinity':
            return -math.inf
        lowered = text.lower()
        if lowered in ('inf', '+inf', '-inf', 'nan', 'infinity', '-infinity', '+infinity'):
            return NAN
        if '_' in text:
            return NAN
        try:
            if lowered.startswith(('0x', '0o', '0b')):
                return float(int(text, 0))
            return float(text)
        except ValueError:
            return NAN
    if isinstance(value, list):
        if not value:
            return 0.0
        if len(value) == 1:
            return to_number(value[0])
    return NAN


def is_numeric_literal(text: str) -> bool:
    return not math.isnan(to_number(text))


def to_display_string(value: Any) -> str:
    """String coercion used by 'contains' and by message formatting."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ','.join('' if v is None else to_display_string(v) for v in value)
    if isinstance(value, dict):
        return '[object Object]'
    return str(value)


def is_truthy(value: Any) -> bool:
    """Truthiness where only None, False, 0, NaN and '' are falsy."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    if isinstance(value, str):
        return value != ''
    return True


def loose_equals(left: Any, right: Any) -> bool:
    """Type-coercing equality: '10' == 10, true == 1, null == null."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool):
        left = 1.0 if left else 0.0
    if isinstance(right, bool):
        right = 1.0 if right else 0.0
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return float(left) == float(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, (int, float)) and isinstance(right, str):
        return float(left) == to_number(right)
    if isinstance(left, str) and isinstance(right, (int, float)):
        return to_number(left) == float(right)
    if isinstance(left, (dict, list)) and isinstance(right, (dict, list)):
        return left is right
    if isinstance(left, (dict, list)):
        return loose_equals(to_display_string(left), right)
    if isinstance(right, (dict, list)):
        return loose_equals(left, to_display_string(right))
    return left == right


def to_json(value: Any) -> str:
    """Compact JSON for console lines; non-serializable values fall back to str()."""
    return json.dumps(value, default=str, ensure_ascii=False, separators=(',', ':'))
