"""
Claude Code settings.json hook command management.

Hook categories live under the "hooks" object as lists of command strings:

    {"hooks": {"notification": ["/path/show-toast.py --notification-hook"]}}

Adding a command is expressed as a deep merge, so installing twice gives the
same document as installing once. Removal cleans up empty categories and an
empty "hooks" object.
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cctoast_wsl.errors import SettingsValidationError
from cctoast_wsl.merge import MergeOptions, deep_merge
from cctoast_wsl.writer import MergeResult, expand_path, read_document, rewrite_file

HOOKS_KEY = "hooks"


@dataclass(frozen=True)
class HookSpec:
    """A command to register under a hook category."""

    category: str  # notification, stop, ...
    command: str  # Command to run


def load_settings(path: str | Path) -> dict[str, Any]:
    """Load a settings file, returning empty dict if it does not exist."""
    document, _ = read_document(expand_path(path))
    return document


def _category_list(doc: dict[str, Any], category: str) -> list[Any] | None:
    hooks = doc.get(HOOKS_KEY)
    if not isinstance(hooks, dict):
        return None
    entries = hooks.get(category)
    return entries if isinstance(entries, list) else None


def merge_hook_commands(
    existing: dict[str, Any], hook_commands: dict[str, str]
) -> dict[str, Any]:
    """
    Ensure each category's list contains its command, appended after existing entries.

    Raises SettingsValidationError if a category is present but is not a list,
    rather than replacing what the user put there.
    """
    hooks = existing.get(HOOKS_KEY)
    if hooks is not None and not isinstance(hooks, dict):
        raise SettingsValidationError(f'"{HOOKS_KEY}" must be an object')

    for category in hook_commands:
        if isinstance(hooks, dict) and category in hooks and not isinstance(hooks[category], list):
            raise SettingsValidationError(f'hook category "{category}" must be a list')

    updates = {HOOKS_KEY: {category: [command] for category, command in hook_commands.items()}}
    return deep_merge(existing, updates, MergeOptions(deduplicate_arrays=True, preserve_order=True))


def has_hook_command(doc: dict[str, Any], category: str, command: str) -> bool:
    """Check if a command is registered; missing hooks or category is just False."""
    entries = _category_list(doc, category)
    return entries is not None and command in entries


def remove_hook_command(doc: dict[str, Any], category: str, command: str) -> dict[str, Any]:
    """
    Return a copy of doc with the first exact match of command removed.

    An emptied category is deleted, and so is an emptied "hooks" object.
    """
    result = copy.deepcopy(doc)
    entries = _category_list(result, category)
    if entries is None or command not in entries:
        return result

    entries.remove(command)
    hooks = result[HOOKS_KEY]
    if not entries:
        del hooks[category]
    if not hooks:
        del result[HOOKS_KEY]
    return result


def register_hooks(
    path: str | Path, specs: list[HookSpec], create_backup: bool = False
) -> MergeResult:
    """Register hook commands in the settings file at path."""
    hook_commands = {spec.category: spec.command for spec in specs}
    return rewrite_file(
        path,
        lambda doc: merge_hook_commands(doc, hook_commands),
        MergeOptions(create_backup=create_backup),
    )


def unregister_hooks(
    path: str | Path, specs: list[HookSpec], create_backup: bool = False
) -> tuple[MergeResult, list[str]]:
    """
    Remove hook commands from the settings file at path.

    Every occurrence is removed, including duplicates left by manual edits.
    Returns the write result and the categories that had something removed.
    """
    removed: list[str] = []

    def strip(doc: dict[str, Any]) -> dict[str, Any]:
        removed.clear()
        for spec in specs:
            if not has_hook_command(doc, spec.category, spec.command):
                continue
            while has_hook_command(doc, spec.category, spec.command):
                doc = remove_hook_command(doc, spec.category, spec.command)
            if spec.category not in removed:
                removed.append(spec.category)
        return doc

    result = rewrite_file(path, strip, MergeOptions(create_backup=create_backup))
    return result, removed


def is_hook_registered(path: str | Path, spec: HookSpec) -> bool:
    """Check if a hook is registered in the settings file at path."""
    return has_hook_command(load_settings(path), spec.category, spec.command)
