"""
Structural data transformations used by the Data Transformation and
Data Transformer handlers. All functions are pure and return new objects.
"""

from typing import Any, Optional


def flatten(data: Any, prefix: str = '') -> dict:
    """{'a': {'b': 1}} -> {'a.b': 1}. Lists are kept as leaf values."""
    if not isinstance(data, (dict, list)):
        return {prefix: data}
    if isinstance(data, list):
        data = {str(i): v for i, v in enumerate(data)}

    flat = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


def uppercase(data: Any) -> Any:
    if isinstance(data, str):
        return data.upper()
    if isinstance(data, list):
        return [uppercase(v) for v in data]
    if isinstance(data, dict):
        return {k: uppercase(v) for k, v in data.items()}
    return data


def lowercase(data: Any) -> Any:
    if isinstance(data, str):
        return data.lower()
    if isinstance(data, list):
        return [lowercase(v) for v in data]
    if isinstance(data, dict):
        return {k: lowercase(v) for k, v in data.items()}
    return data


def filter_by_key(data: Any, filter_key: Optional[str]) -> Any:
    """
    Keep only entries carrying filter_key.

    Lists keep the dict items where filter_key is set; dicts keep the key
    itself plus any nested container that still has a match after filtering.
    """
    if not filter_key:
        return data
    if isinstance(data, list):
        return [item for item in data
                if isinstance(item, dict) and item.get(filter_key) is not None]
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            if key == filter_key:
                result[key] = value
            elif isinstance(value, (dict, list)):
                filtered = filter_by_key(value, filter_key)
                if filtered:
                    result[key] = filtered
        return result
    return {}


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if value is None:
        return 'object'
    return type(value).__name__


def add_metadata(data: Any, timestamp: str) -> dict:
    if isinstance(data, list):
        return {
            'values': list(data),
            'metadata': {'type': 'array', 'length': len(data), 'transformed': True, 'timestamp': timestamp},
        }
    if isinstance(data, dict):
        return {
            **data,
            'metadata': {'type': 'object', 'keys': list(data.keys()), 'transformed': True, 'timestamp': timestamp},
        }
    return {
        'value': data,
        'metadata': {'type': _type_name(data), 'transformed': True, 'timestamp': timestamp},
    }


TRANSFORMATIONS = ('flatten', 'uppercase', 'lowercase', 'filter', 'default')


def apply_transformation(kind: str, data: Any, timestamp: str, filter_key: Optional[str] = None) -> Any:
    if kind == 'flatten':
        return flatten(data)
    if kind == 'uppercase':
        return uppercase(data)
    if kind == 'lowercase':
        return lowercase(data)
    if kind == 'filter':
        return filter_by_key(data, filter_key)
    return add_metadata(data, timestamp)
