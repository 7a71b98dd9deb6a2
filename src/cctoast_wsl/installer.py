"""
Installation engine - copies the notification script and registers its hooks.

Install steps:
- Create the install directory and copy show-toast.py into it (mode 0o500)
- Register one command per enabled hook category in the settings file
- Write install-manifest.json for uninstall

Failures are returned as InstallationResult(success=False) with a readable
message. Partially completed steps are left in place; running install again is
safe because hook registration is idempotent.
"""

import json
import logging
import shutil
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cctoast_wsl import __version__
from cctoast_wsl.errors import CctoastError
from cctoast_wsl.paths import SCRIPT_NAME, InstallPaths, resolve_paths
from cctoast_wsl.settings import HookSpec, register_hooks, unregister_hooks
from cctoast_wsl.types import HookCategory, Scope
from cctoast_wsl.writer import atomic_write

logger = logging.getLogger(__name__)

SCRIPT_MODE = 0o500


@dataclass(frozen=True)
class InstallerConfig:
    """What to install and where."""

    scope: Scope = Scope.GLOBAL
    notification_hook: bool = True
    stop_hook: bool = True
    sync: bool = False  # local only: write tracked settings.json
    dry_run: bool = False

    @property
    def categories(self) -> list[HookCategory]:
        enabled = []
        if self.notification_hook:
            enabled.append(HookCategory.NOTIFICATION)
        if self.stop_hook:
            enabled.append(HookCategory.STOP)
        return enabled

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["scope"] = self.scope.value
        return data


@dataclass
class InstallationResult:
    success: bool
    installed_to: str
    settings_path: str
    message: str
    hooks_added: list[str] = field(default_factory=list)
    hooks_removed: list[str] = field(default_factory=list)
    backup_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class InstallManifest:
    """Record of a completed install, stored as install-manifest.json."""

    version: str
    installed_at: str
    config: dict[str, Any]
    files: list[str]
    settings_path: str
    hooks_installed: list[str]

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "installedAt": self.installed_at,
            "config": self.config,
            "files": self.files,
            "settingsPath": self.settings_path,
            "hooksInstalled": self.hooks_installed,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "InstallManifest":
        return cls(
            version=str(data.get("version", "")),
            installed_at=str(data.get("installedAt", "")),
            config=dict(data.get("config") or {}),
            files=[str(f) for f in data.get("files") or []],
            settings_path=str(data.get("settingsPath", "")),
            hooks_installed=[str(h) for h in data.get("hooksInstalled") or []],
        )


def get_bundled_script() -> Path:
    """Get path to the notification script bundled in the package."""
    import cctoast_wsl.scripts as scripts_module

    return Path(scripts_module.__file__).parent / SCRIPT_NAME


def hook_command(script_path: Path, category: str) -> str:
    """Command string registered for a category, e.g. '/x/show-toast.py --stop-hook'."""
    return f"{script_path} --{category}-hook"


class Installer:
    """Installs and uninstalls cctoast-wsl for one InstallerConfig."""

    def __init__(self, config: InstallerConfig, cwd: Path | None = None) -> None:
        self.config = config
        self.cwd = cwd

    @property
    def paths(self) -> InstallPaths:
        return resolve_paths(self.config.scope, sync=self.config.sync, cwd=self.cwd)

    def hook_commands(self) -> dict[str, str]:
        """Map each enabled category to its command string."""
        script = self.paths.script_path
        return {c.value: hook_command(script, c.value) for c in self.config.categories}

    def install(self) -> InstallationResult:
        if self.config.dry_run:
            return self._dry_run()

        paths = self.paths
        try:
            files = self._copy_files(paths)
            specs = [HookSpec(category, command) for category, command in self.hook_commands().items()]
            result = register_hooks(paths.settings_path, specs, create_backup=True)
            hooks_added = [spec.category for spec in specs]
            logger.info(
                "Registered hooks %s in %s (changed=%s)",
                ", ".join(hooks_added),
                paths.settings_path,
                result.changed,
            )
            self._write_manifest(paths, files, hooks_added)
        except (CctoastError, OSError) as e:
            logger.info("Installation failed: %s", e)
            return InstallationResult(
                success=False,
                installed_to="",
                settings_path="",
                message=f"Installation failed: {e}",
            )

        return InstallationResult(
            success=True,
            installed_to=str(paths.install_dir),
            settings_path=str(paths.settings_path),
            message=f"Successfully installed cctoast-wsl to {paths.install_dir}",
            hooks_added=hooks_added,
            backup_path=str(result.backup_path) if result.backup_path else None,
        )

    def _dry_run(self) -> InstallationResult:
        """Report what install would do, touching nothing."""
        paths = self.paths
        commands = self.hook_commands()
        lines = [
            "DRY RUN - No changes would be made:",
            f"Install directory: {paths.install_dir}",
            f"Settings file: {paths.settings_path}",
            f"Hooks to add: {', '.join(commands)}",
            "Hook commands:",
            *(f"  {category}: {command}" for category, command in commands.items()),
        ]
        return InstallationResult(
            success=True,
            installed_to=str(paths.install_dir),
            settings_path=str(paths.settings_path),
            message="\n".join(lines),
            hooks_added=list(commands),
        )

    def _copy_files(self, paths: InstallPaths) -> list[str]:
        """Copy runtime files into the install directory. Returns relative names."""
        paths.install_dir.mkdir(parents=True, exist_ok=True)

        dest = paths.script_path
        # A previous install left it read-only; replace rather than overwrite.
        if dest.exists():
            dest.unlink()
        shutil.copy2(get_bundled_script(), dest)
        dest.chmod(SCRIPT_MODE)
        logger.info("Copied %s to %s", SCRIPT_NAME, dest)
        return [SCRIPT_NAME]

    def _write_manifest(self, paths: InstallPaths, files: list[str], hooks: list[str]) -> None:
        manifest = InstallManifest(
            version=__version__,
            installed_at=datetime.now(timezone.utc).isoformat(),
            config=self.config.to_dict(),
            files=files,
            settings_path=str(paths.settings_path),
            hooks_installed=hooks,
        )
        try:
            atomic_write(paths.manifest_path, json.dumps(manifest.to_json(), indent=2) + "\n")
        except OSError as e:
            logger.warning("Could not write install manifest %s: %s", paths.manifest_path, e)

    def read_manifest(self) -> InstallManifest | None:
        """Load the install manifest, or None when it is missing or unreadable."""
        manifest_path = self.paths.manifest_path
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.info("No usable manifest at %s: %s", manifest_path, e)
            return None
        if not isinstance(data, dict):
            return None
        return InstallManifest.from_json(data)

    def uninstall(self) -> InstallationResult:
        paths = self.paths
        try:
            manifest = self.read_manifest()
            categories = [c.value for c in HookCategory]
            if manifest is not None:
                categories += [h for h in manifest.hooks_installed if h not in categories]

            specs = [HookSpec(c, hook_command(paths.script_path, c)) for c in categories]
            result, removed = unregister_hooks(paths.settings_path, specs, create_backup=True)
            logger.info("Removed hooks %s from %s", ", ".join(removed) or "none", paths.settings_path)

            if paths.install_dir.exists():
                shutil.rmtree(paths.install_dir)
                logger.info("Removed %s", paths.install_dir)
        except (CctoastError, OSError) as e:
            logger.info("Uninstall failed: %s", e)
            return InstallationResult(
                success=False,
                installed_to="",
                settings_path="",
                message=f"Uninstall failed: {e}",
            )

        return InstallationResult(
            success=True,
            installed_to=str(paths.install_dir),
            settings_path=str(paths.settings_path),
            message=(
                f"Successfully uninstalled cctoast-wsl from {paths.install_dir}. "
                f"Removed hooks: {', '.join(removed) or 'none'}"
            ),
            hooks_removed=removed,
            backup_path=str(result.backup_path) if result.backup_path else None,
        )

    def is_installed(self) -> bool:
        """Check that both the install directory and the script exist."""
        paths = self.paths
        return paths.install_dir.is_dir() and paths.script_path.is_file()
