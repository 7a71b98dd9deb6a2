"""
Tests for hook command management in settings documents and files.
"""

import copy
import json
import stat
from pathlib import Path

import pytest

from cctoast_wsl.errors import JsoncParseError, SettingsValidationError
from cctoast_wsl.settings import (
    HookSpec,
    has_hook_command,
    is_hook_registered,
    load_settings,
    merge_hook_commands,
    register_hooks,
    remove_hook_command,
    unregister_hooks,
)

NOTIFY = "/home/u/.claude/cctoast-wsl/show-toast.py --notification-hook"
STOP = "/home/u/.claude/cctoast-wsl/show-toast.py --stop-hook"


class TestMergeHookCommands:
    def test_into_empty_document(self) -> None:
        assert merge_hook_commands({}, {"notification": NOTIFY}) == {"hooks": {"notification": [NOTIFY]}}

    def test_appends_after_existing_entries(self) -> None:
        doc = {
            "hooks": {"notification": ["existing-command-1", "existing-command-2"], "stop": ["existing-stop-hook"]},
            "theme": "dark",
        }

        merged = merge_hook_commands(doc, {"notification": NOTIFY, "stop": STOP})

        assert merged["hooks"]["notification"] == ["existing-command-1", "existing-command-2", NOTIFY]
        assert merged["hooks"]["stop"] == ["existing-stop-hook", STOP]
        assert merged["theme"] == "dark"

    def test_other_categories_untouched(self) -> None:
        doc = {"hooks": {"preToolUse": ["lint"]}}

        merged = merge_hook_commands(doc, {"stop": STOP})

        assert merged["hooks"] == {"preToolUse": ["lint"], "stop": [STOP]}

    def test_idempotent(self) -> None:
        doc = {"hooks": {"notification": ["other"]}, "x": 1}
        commands = {"notification": NOTIFY, "stop": STOP}

        once = merge_hook_commands(doc, commands)
        twice = merge_hook_commands(once, commands)

        assert twice == once
        assert once["hooks"]["notification"].count(NOTIFY) == 1

    def test_preexisting_duplicates_tolerated(self) -> None:
        doc = {"hooks": {"notification": [NOTIFY, NOTIFY]}}

        assert merge_hook_commands(doc, {"notification": NOTIFY}) == doc

    def test_non_list_category_rejected(self) -> None:
        with pytest.raises(SettingsValidationError):
            merge_hook_commands({"hooks": {"notification": "x"}}, {"notification": NOTIFY})

    def test_non_object_hooks_rejected(self) -> None:
        with pytest.raises(SettingsValidationError):
            merge_hook_commands({"hooks": []}, {"notification": NOTIFY})


class TestHasHookCommand:
    def test_present(self) -> None:
        assert has_hook_command({"hooks": {"stop": [STOP]}}, "stop", STOP)

    def test_missing_hooks_category_or_command(self) -> None:
        assert not has_hook_command({}, "stop", STOP)
        assert not has_hook_command({"hooks": {}}, "stop", STOP)
        assert not has_hook_command({"hooks": {"stop": ["other"]}}, "stop", STOP)

    def test_malformed_shapes_do_not_raise(self) -> None:
        assert not has_hook_command({"hooks": "nope"}, "stop", STOP)
        assert not has_hook_command({"hooks": {"stop": "nope"}}, "stop", STOP)


class TestRemoveHookCommand:
    def test_removes_first_match_only(self) -> None:
        doc = {"hooks": {"notification": [NOTIFY, "other", NOTIFY]}}

        assert remove_hook_command(doc, "notification", NOTIFY) == {"hooks": {"notification": ["other", NOTIFY]}}

    def test_empty_category_and_hooks_removed(self) -> None:
        doc = {"hooks": {"stop": [STOP]}, "theme": "dark"}

        assert remove_hook_command(doc, "stop", STOP) == {"theme": "dark"}

    def test_other_categories_keep_hooks_key(self) -> None:
        doc = {"hooks": {"stop": [STOP], "notification": ["x"]}}

        assert remove_hook_command(doc, "stop", STOP) == {"hooks": {"notification": ["x"]}}

    def test_absent_command_is_noop(self) -> None:
        doc = {"hooks": {"stop": ["x"]}}

        assert remove_hook_command(doc, "stop", STOP) == doc
        assert remove_hook_command({}, "stop", STOP) == {}

    def test_input_not_mutated(self) -> None:
        doc = {"hooks": {"stop": [STOP]}}
        before = copy.deepcopy(doc)

        remove_hook_command(doc, "stop", STOP)

        assert doc == before

    @pytest.mark.parametrize(
        "doc",
        [
            {},
            {"theme": "dark"},
            {"hooks": {}},
            {"hooks": {"stop": ["existing"]}},
            {"hooks": {"preToolUse": ["lint"]}, "env": {"A": "1"}},
        ],
    )
    def test_round_trip_restores_document(self, doc: dict) -> None:
        installed = merge_hook_commands(doc, {"stop": STOP})
        restored = remove_hook_command(installed, "stop", STOP)

        expected = {k: v for k, v in doc.items() if not (k == "hooks" and v == {})}
        assert restored == expected


class TestSettingsFile:
    def test_register_and_unregister(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text('{\n  // mine\n  "hooks": {"stop": ["keep-me"]}\n}')
        specs = [HookSpec("notification", NOTIFY), HookSpec("stop", STOP)]

        result = register_hooks(path, specs, create_backup=True)

        assert result.changed
        assert result.backup_path is not None
        assert json.loads(path.read_text())["hooks"] == {"stop": ["keep-me", STOP], "notification": [NOTIFY]}
        assert is_hook_registered(path, specs[0])

        again = register_hooks(path, specs)
        assert again.changed is False

        result, removed = unregister_hooks(path, specs)

        assert result.changed
        assert removed == ["notification", "stop"]
        assert json.loads(path.read_text()) == {"hooks": {"stop": ["keep-me"]}}
        assert not is_hook_registered(path, specs[1])

    def test_unregister_removes_duplicates(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"hooks": {"stop": [STOP, "x", STOP]}}))

        _, removed = unregister_hooks(path, [HookSpec("stop", STOP)])

        assert removed == ["stop"]
        assert json.loads(path.read_text()) == {"hooks": {"stop": ["x"]}}

    def test_private_settings_stay_private(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text('{"env": {"ANTHROPIC_API_KEY": "sk-test"}}')
        path.chmod(0o600)
        spec = HookSpec("stop", STOP)

        register_hooks(path, [spec])
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

        unregister_hooks(path, [spec])
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_unregister_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"

        result, removed = unregister_hooks(path, [HookSpec("stop", STOP)])

        assert result.changed is False
        assert removed == []
        assert not path.exists()

    def test_load_settings(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path / "missing.json") == {}

        bad = tmp_path / "bad.json"
        bad.write_text("{")
        with pytest.raises(JsoncParseError):
            load_settings(bad)
