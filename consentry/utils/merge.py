"""
Context merging.

Patches coming from hooks, plugins and middlewares are plain mappings.
They are merged into mappings with ``deep_merge`` and applied onto
dataclass contexts with ``apply_patch``. In both cases the patch wins,
nested mappings merge recursively and ``None`` never clears a value.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, MutableMapping
from typing import Any


def deep_merge(base: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in patch.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def apply_patch(target: Any, patch: Mapping[str, Any]) -> Any:
    """
    Apply ``patch`` onto ``target`` in place and return it.

    ``target`` may be a mutable mapping or an object with attributes
    (typically a dataclass). Nested mappings are merged into fresh
    dicts, nested dataclasses are patched in place. Keys an object does
    not declare go into its ``extras`` mapping when it has one.
    """
    for key, value in patch.items():
        if value is None:
            continue

        if isinstance(target, MutableMapping):
            target[key] = _merge_value(target.get(key), value)
            continue

        if _declares(target, key):
            current = getattr(target, key)
            if isinstance(value, Mapping) and _is_dataclass_instance(current):
                apply_patch(current, value)
            else:
                setattr(target, key, _merge_value(current, value))
        elif isinstance(getattr(target, "extras", None), MutableMapping):
            target.extras[key] = _merge_value(target.extras.get(key), value)
        else:
            raise AttributeError(f"{type(target).__name__} has no field {key!r}")
    return target


def _merge_value(current: Any, value: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return deep_merge(current, value)
    return value


def _declares(target: Any, key: str) -> bool:
    if _is_dataclass_instance(target):
        return any(f.name == key for f in dataclasses.fields(target))
    return hasattr(target, key)


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)
