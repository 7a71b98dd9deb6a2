"""
Path constants and utilities for cctoast-wsl.

Paths follow Claude Code's conventions: ~/.claude/ for global installs and
./.claude/ for project installs. Everything is computed at call time so HOME
and the working directory can change between calls (tests rely on this).
"""

from dataclasses import dataclass
from pathlib import Path

from cctoast_wsl.types import Scope

APP_NAME = "cctoast-wsl"
SCRIPT_NAME = "show-toast.py"
MANIFEST_NAME = "install-manifest.json"

SETTINGS_FILE = "settings.json"
SETTINGS_LOCAL_FILE = "settings.local.json"


@dataclass(frozen=True)
class InstallPaths:
    """Resolved locations for one installation."""

    scope: Scope
    install_dir: Path
    settings_path: Path

    @property
    def script_path(self) -> Path:
        return self.install_dir / SCRIPT_NAME

    @property
    def manifest_path(self) -> Path:
        return self.install_dir / MANIFEST_NAME


def claude_home() -> Path:
    return Path.home() / ".claude"


def cache_dir() -> Path:
    """Directory for the dependency check cache."""
    return Path.home() / ".cache" / APP_NAME


def resolve_paths(scope: Scope, sync: bool = False, cwd: Path | None = None) -> InstallPaths:
    """
    Resolve install directory and settings file for a scope.

    Local installs write settings.local.json unless sync is set, in which case
    the tracked settings.json is used.
    """
    if scope is Scope.GLOBAL:
        base = claude_home()
        return InstallPaths(scope=scope, install_dir=base / APP_NAME, settings_path=base / SETTINGS_FILE)

    base = (cwd or Path.cwd()) / ".claude"
    settings_name = SETTINGS_FILE if sync else SETTINGS_LOCAL_FILE
    return InstallPaths(scope=scope, install_dir=base / APP_NAME, settings_path=base / settings_name)
