"""
Deep merge of settings documents.

Rules, per key over the union of both mappings:
- key missing from the update: base value kept (updates never delete keys)
- both values are mappings: merged recursively
- both values are lists: concatenated per MergeOptions
- anything else: the update value wins

Inputs are never mutated; the result shares no containers with them.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MergeOptions:
    """Options for deep_merge and merge_file."""

    deduplicate_arrays: bool = True
    # When False, update-derived list elements go before base elements.
    preserve_order: bool = True
    create_backup: bool = False


def json_equal(a: Any, b: Any) -> bool:
    """Structural equality where true and 1 (or false and 0) differ."""
    if type(a) is not type(b):
        if isinstance(a, bool) or isinstance(b, bool):
            return False
        return a == b  # 1 and 1.0
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return a == b


def merge_lists(
    base: list[Any], update: list[Any], options: MergeOptions | None = None
) -> list[Any]:
    """Concatenate two lists, dropping None update elements and optionally duplicates."""
    options = options or MergeOptions()
    result = copy.deepcopy(base)
    added: list[Any] = []

    for item in update:
        if item is None:
            continue
        if options.deduplicate_arrays and any(json_equal(item, seen) for seen in (*result, *added)):
            continue
        added.append(copy.deepcopy(item))

    if options.preserve_order:
        return result + added
    return added + result


def deep_merge(
    base: dict[str, Any], update: dict[str, Any], options: MergeOptions | None = None
) -> dict[str, Any]:
    """Return a new document combining base and update."""
    options = options or MergeOptions()
    merged: dict[str, Any] = {}

    for key, base_value in base.items():
        if key not in update:
            merged[key] = copy.deepcopy(base_value)
            continue
        merged[key] = _merge_values(base_value, update[key], options)

    for key, update_value in update.items():
        if key not in base:
            merged[key] = copy.deepcopy(update_value)

    return merged


def _merge_values(base_value: Any, update_value: Any, options: MergeOptions) -> Any:
    if isinstance(base_value, dict) and isinstance(update_value, dict):
        return deep_merge(base_value, update_value, options)
    if isinstance(base_value, list) and isinstance(update_value, list):
        return merge_lists(base_value, update_value, options)
    return copy.deepcopy(update_value)
