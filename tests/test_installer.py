"""
Tests for the installation engine.

Tests cover:
- Path resolution for global/local scope and --sync
- Installation: fresh install, idempotent re-install, manifest, permissions
- Dry run: no filesystem changes
- Uninstallation: removal with and without manifest, preserving other hooks
- Failures: malformed settings produce failure results, never overwrites
"""

import json
import stat
from pathlib import Path

import pytest

from cctoast_wsl import __version__
from cctoast_wsl.installer import (
    InstallManifest,
    Installer,
    InstallerConfig,
    get_bundled_script,
    hook_command,
)
from cctoast_wsl.paths import resolve_paths
from cctoast_wsl.types import HookCategory, Scope


@pytest.fixture
def project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return project_dir


def global_installer(**overrides) -> Installer:
    return Installer(InstallerConfig(scope=Scope.GLOBAL, **overrides))


class TestPaths:
    def test_global_paths(self) -> None:
        paths = resolve_paths(Scope.GLOBAL)

        assert paths.install_dir == Path.home() / ".claude" / "cctoast-wsl"
        assert paths.settings_path == Path.home() / ".claude" / "settings.json"
        assert paths.script_path == paths.install_dir / "show-toast.py"

    def test_local_paths_use_settings_local(self, project: Path) -> None:
        paths = resolve_paths(Scope.LOCAL, cwd=project)

        assert paths.install_dir == project / ".claude" / "cctoast-wsl"
        assert paths.settings_path == project / ".claude" / "settings.local.json"

    def test_local_sync_uses_tracked_settings(self, project: Path) -> None:
        paths = resolve_paths(Scope.LOCAL, sync=True, cwd=project)

        assert paths.settings_path == project / ".claude" / "settings.json"

    def test_hook_commands(self) -> None:
        installer = global_installer(stop_hook=False)
        script = Path.home() / ".claude" / "cctoast-wsl" / "show-toast.py"

        assert installer.hook_commands() == {"notification": f"{script} --notification-hook"}
        assert hook_command(script, HookCategory.STOP.value) == f"{script} --stop-hook"


class TestInstall:
    def test_fresh_global_install(self) -> None:
        installer = global_installer()

        result = installer.install()

        assert result.success, result.message
        assert result.hooks_added == ["notification", "stop"]
        paths = installer.paths
        settings = json.loads(paths.settings_path.read_text())
        assert settings == {
            "hooks": {
                "notification": [hook_command(paths.script_path, "notification")],
                "stop": [hook_command(paths.script_path, "stop")],
            }
        }
        assert installer.is_installed()

    def test_script_copied_read_execute_only(self) -> None:
        installer = global_installer()
        installer.install()

        script = installer.paths.script_path
        assert script.read_bytes() == get_bundled_script().read_bytes()
        assert stat.S_IMODE(script.stat().st_mode) == 0o500

    def test_manifest_written(self) -> None:
        installer = global_installer(stop_hook=False)
        installer.install()

        data = json.loads(installer.paths.manifest_path.read_text())
        assert data["version"] == __version__
        assert data["files"] == ["show-toast.py"]
        assert data["hooksInstalled"] == ["notification"]
        assert data["config"]["scope"] == "global"
        assert data["settingsPath"] == str(installer.paths.settings_path)

        manifest = installer.read_manifest()
        assert isinstance(manifest, InstallManifest)
        assert manifest.hooks_installed == ["notification"]

    def test_reinstall_is_idempotent(self) -> None:
        installer = global_installer()
        assert installer.install().success
        first = installer.paths.settings_path.read_text()

        second = installer.install()

        assert second.success, second.message
        assert second.backup_path is None
        assert installer.paths.settings_path.read_text() == first

    def test_existing_settings_preserved_and_backed_up(self) -> None:
        installer = global_installer()
        settings_path = installer.paths.settings_path
        settings_path.parent.mkdir(parents=True)
        original = '{\n  // personal\n  "model": "opus",\n  "hooks": {"notification": ["other-tool"]}\n}\n'
        settings_path.write_text(original)

        result = installer.install()

        assert result.success
        settings = json.loads(settings_path.read_text())
        assert settings["model"] == "opus"
        assert settings["hooks"]["notification"][0] == "other-tool"
        assert result.backup_path is not None
        assert Path(result.backup_path).read_text() == original

    def test_local_install(self, project: Path) -> None:
        installer = Installer(InstallerConfig(scope=Scope.LOCAL), cwd=project)

        result = installer.install()

        assert result.success
        assert result.settings_path == str(project / ".claude" / "settings.local.json")
        assert (project / ".claude" / "cctoast-wsl" / "show-toast.py").exists()
        assert not (Path.home() / ".claude").exists()

    def test_malformed_settings_fail_without_overwrite(self) -> None:
        installer = global_installer()
        settings_path = installer.paths.settings_path
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text('{ "hooks": { "notification": ["x" } ')

        result = installer.install()

        assert not result.success
        assert result.message.startswith("Installation failed:")
        assert "JSONC parsing failed" in result.message
        assert settings_path.read_text() == '{ "hooks": { "notification": ["x" } '

    def test_manifest_failure_does_not_fail_install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from cctoast_wsl import installer as installer_module

        def fail_write(path, content):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(installer_module, "atomic_write", fail_write)
        installer = global_installer()

        result = installer.install()

        assert result.success
        assert not installer.paths.manifest_path.exists()


class TestDryRun:
    def test_no_filesystem_changes(self) -> None:
        installer = global_installer(dry_run=True)

        result = installer.install()

        assert result.success
        assert not (Path.home() / ".claude").exists()
        assert result.message.startswith("DRY RUN")
        assert "Hooks to add: notification, stop" in result.message
        assert "--notification-hook" in result.message

    def test_only_enabled_hooks_listed(self) -> None:
        result = global_installer(dry_run=True, notification_hook=False).install()

        hooks_line = next(line for line in result.message.splitlines() if line.startswith("Hooks to add:"))
        assert hooks_line == "Hooks to add: stop"
        assert result.hooks_added == ["stop"]


class TestUninstall:
    def test_removes_hooks_and_directory(self) -> None:
        installer = global_installer()
        installer.install()

        result = installer.uninstall()

        assert result.success, result.message
        assert result.hooks_removed == ["notification", "stop"]
        assert not installer.paths.install_dir.exists()
        assert json.loads(installer.paths.settings_path.read_text()) == {}
        assert not installer.is_installed()

    def test_preserves_other_hooks(self) -> None:
        installer = global_installer()
        settings_path = installer.paths.settings_path
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(json.dumps({"hooks": {"stop": ["other-stop"]}, "theme": "dark"}))
        installer.install()

        installer.uninstall()

        assert json.loads(settings_path.read_text()) == {"hooks": {"stop": ["other-stop"]}, "theme": "dark"}

    def test_works_without_manifest(self) -> None:
        installer = global_installer()
        installer.install()
        installer.paths.manifest_path.unlink()

        result = installer.uninstall()

        assert result.success
        assert result.hooks_removed == ["notification", "stop"]

    def test_manifest_categories_included(self) -> None:
        installer = global_installer()
        paths = installer.paths
        installer.install()
        custom = hook_command(paths.script_path, "preToolUse")
        settings = json.loads(paths.settings_path.read_text())
        settings["hooks"]["preToolUse"] = [custom]
        paths.settings_path.write_text(json.dumps(settings))
        manifest = json.loads(paths.manifest_path.read_text())
        manifest["hooksInstalled"].append("preToolUse")
        paths.manifest_path.chmod(0o600)
        paths.manifest_path.write_text(json.dumps(manifest))

        result = installer.uninstall()

        assert "preToolUse" in result.hooks_removed
        assert json.loads(paths.settings_path.read_text()) == {}

    def test_nothing_installed(self) -> None:
        result = global_installer().uninstall()

        assert result.success
        assert result.hooks_removed == []
        assert not (Path.home() / ".claude" / "settings.json").exists()

    def test_malformed_settings_reported(self) -> None:
        installer = global_installer()
        installer.install()
        installer.paths.settings_path.write_text("{ not json")

        result = installer.uninstall()

        assert not result.success
        assert result.message.startswith("Uninstall failed:")
        assert installer.paths.settings_path.read_text() == "{ not json"
        assert installer.paths.install_dir.exists()


class TestIsInstalled:
    def test_requires_directory_and_script(self) -> None:
        installer = global_installer()
        assert not installer.is_installed()

        installer.paths.install_dir.mkdir(parents=True)
        assert not installer.is_installed()

        installer.paths.script_path.write_text("#!/bin/sh\n")
        assert installer.is_installed()
