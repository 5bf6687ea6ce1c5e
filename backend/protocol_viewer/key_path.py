"""
Immutable updates addressed by key paths.

A key path is a list of dict keys and list indexes, e.g. ["Arms", 0, "Name"].
set_in() and remove_in() copy only the containers along the path; every
untouched sibling is shared with the input.
"""

from typing import Any, List, Sequence, Union

Key = Union[str, int]
KeyPath = Sequence[Key]


def _step(container: Any, key: Key) -> Any:
    if isinstance(container, dict):
        return container[key]
    if isinstance(container, list) and isinstance(key, int):
        return container[key]
    raise KeyError(key)


def get_in(value: Any, path: KeyPath) -> Any:
    """Value at ``path``. Raises KeyError/IndexError when the path is absent."""
    current = value
    for key in path:
        current = _step(current, key)
    return current


def set_in(value: Any, path: KeyPath, new_value: Any) -> Any:
    """Return a copy of ``value`` with ``new_value`` stored at ``path``."""
    if not path:
        return new_value
    head, rest = path[0], path[1:]
    if isinstance(value, dict):
        out = dict(value)
        out[head] = set_in(value.get(head, {}) if rest else None, rest, new_value)
        return out
    if isinstance(value, list) and isinstance(head, int):
        out = list(value)
        out[head] = set_in(value[head], rest, new_value)
        return out
    raise KeyError(head)


def remove_in(value: Any, path: KeyPath) -> Any:
    """Return a copy of ``value`` without the item at ``path``."""
    if not path:
        raise KeyError("Cannot remove the root value")
    parent_path, last = list(path[:-1]), path[-1]
    parent = get_in(value, parent_path)
    if isinstance(parent, dict):
        new_parent = {k: v for k, v in parent.items() if k != last}
    elif isinstance(parent, list) and isinstance(last, int):
        new_parent = list(parent)
        del new_parent[last]
    else:
        raise KeyError(last)
    return set_in(value, parent_path, new_parent)


def format_path(path: KeyPath) -> str:
    """Human-readable form used in log messages, e.g. ``Arms[0].Name``."""
    parts: List[str] = []
    for key in path:
        if isinstance(key, int):
            parts.append(f"[{key}]")
        else:
            parts.append(f".{key}" if parts else str(key))
    return "".join(parts) or "<root>"
