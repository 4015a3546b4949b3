"""Cascading merge of configuration layers.

System, user, project and environment layers are merged in that order, each
later layer overriding the earlier ones.
"""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` onto ``base`` without mutating either.

    - Nested dicts merge key by key (e.g. ``aider.env`` accumulates variables)
    - Lists replace entirely, so a project ``ignore_files`` list is authoritative
    - None never overrides, so an empty YAML key leaves the lower layer intact
    """
    result = base.copy()

    for key, value in override.items():
        if value is None:
            continue

        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value

    return result


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers in order (later overrides earlier)."""
    result: dict[str, Any] = {}
    for layer in layers:
        if layer:
            result = deep_merge(result, layer)
    return result
