"""
Dependency checks - WSL, PowerShell and the BurntToast module.

Each check produces a CheckResult. Fatal failures block installation unless
--force is given; BurntToast stays fatal even then, since nothing can be shown
without it. Passed results are cached for 24 hours so repeated runs skip the
slow PowerShell round trips.
"""

import json
import logging
import os
import shutil
import subprocess
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path

from cctoast_wsl.paths import cache_dir
from cctoast_wsl.writer import atomic_write

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 24 * 60 * 60
POWERSHELL_TIMEOUT = 15
PROC_VERSION = Path("/proc/version")

WSL = "wsl-environment"
POWERSHELL = "powershell"
BURNTTOAST = "burnttoast-module"
EXECUTION_POLICY = "execution-policy"
WSLPATH = "wslpath"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single dependency check."""

    name: str
    passed: bool
    fatal: bool
    message: str
    remedy: str | None = None
    timestamp: float = field(default_factory=time.time)


def cache_file() -> Path:
    return cache_dir() / "deps.json"


def run_powershell(command: str) -> subprocess.CompletedProcess:
    """Run a PowerShell command from WSL, capturing text output."""
    return subprocess.run(
        ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", command],
        capture_output=True,
        text=True,
        timeout=POWERSHELL_TIMEOUT,
    )


class DependencyChecker:
    """Runs all checks, consulting and refreshing the result cache."""

    def __init__(self, force: bool = False, use_cache: bool = True) -> None:
        self.force = force
        self.use_cache = use_cache

    def check_all(self) -> list[CheckResult]:
        cached = self._load_cache() if self.use_cache else {}
        checks = [
            (WSL, self.check_wsl),
            (POWERSHELL, self.check_powershell),
            (BURNTTOAST, self.check_burnttoast),
            (EXECUTION_POLICY, self.check_execution_policy),
            (WSLPATH, self.check_wslpath),
        ]

        results = []
        for name, check in checks:
            result = cached.get(name) or check()
            results.append(self._apply_force(result))

        if self.use_cache:
            self._save_cache(results)
        return results

    def _apply_force(self, result: CheckResult) -> CheckResult:
        if self.force and result.fatal and not result.passed and result.name != BURNTTOAST:
            return CheckResult(
                name=result.name,
                passed=result.passed,
                fatal=False,
                message=result.message,
                remedy=result.remedy,
                timestamp=result.timestamp,
            )
        return result

    def check_wsl(self) -> CheckResult:
        in_wsl = bool(os.environ.get("WSL_DISTRO_NAME") or os.environ.get("WSL_INTEROP"))
        if not in_wsl:
            try:
                in_wsl = "microsoft" in PROC_VERSION.read_text().lower()
            except OSError:
                in_wsl = False

        if in_wsl:
            return CheckResult(WSL, passed=True, fatal=True, message="Running inside WSL")
        return CheckResult(
            WSL,
            passed=False,
            fatal=True,
            message="Not running inside WSL",
            remedy="cctoast-wsl only works from a WSL distribution on Windows",
        )

    def check_powershell(self) -> CheckResult:
        if shutil.which("powershell.exe"):
            return CheckResult(POWERSHELL, passed=True, fatal=True, message="powershell.exe found in PATH")
        return CheckResult(
            POWERSHELL,
            passed=False,
            fatal=True,
            message="powershell.exe not found in PATH",
            remedy="Enable Windows interop and make sure the Windows PATH is appended in /etc/wsl.conf",
        )

    def check_burnttoast(self) -> CheckResult:
        remedy = "Install-Module BurntToast -Scope CurrentUser -Force"
        try:
            completed = run_powershell(
                "Get-Module -ListAvailable -Name BurntToast | Select-Object -First 1 -ExpandProperty Version"
            )
        except (OSError, subprocess.SubprocessError) as e:
            return CheckResult(
                BURNTTOAST, passed=False, fatal=True, message=f"Could not query BurntToast: {e}", remedy=remedy
            )

        version = completed.stdout.strip()
        if completed.returncode == 0 and version:
            return CheckResult(BURNTTOAST, passed=True, fatal=True, message=f"BurntToast {version} installed")
        return CheckResult(
            BURNTTOAST, passed=False, fatal=True, message="BurntToast PowerShell module not installed", remedy=remedy
        )

    def check_execution_policy(self) -> CheckResult:
        try:
            completed = run_powershell("Get-ExecutionPolicy -Scope CurrentUser")
        except (OSError, subprocess.SubprocessError) as e:
            return CheckResult(
                EXECUTION_POLICY, passed=False, fatal=False, message=f"Could not read execution policy: {e}"
            )

        policy = completed.stdout.strip()
        if policy.lower() in ("restricted", "allsigned"):
            return CheckResult(
                EXECUTION_POLICY,
                passed=False,
                fatal=False,
                message=f"Execution policy is {policy}",
                remedy="Set-ExecutionPolicy -Scope CurrentUser RemoteSigned",
            )
        return CheckResult(
            EXECUTION_POLICY, passed=True, fatal=False, message=f"Execution policy is {policy or 'Undefined'}"
        )

    def check_wslpath(self) -> CheckResult:
        if shutil.which("wslpath"):
            return CheckResult(WSLPATH, passed=True, fatal=False, message="wslpath available")
        return CheckResult(
            WSLPATH,
            passed=False,
            fatal=False,
            message="wslpath not found; custom notification icons will not be converted",
        )

    def _load_cache(self) -> dict[str, CheckResult]:
        """Passed results younger than the TTL, keyed by check name."""
        try:
            data = json.loads(cache_file().read_text(encoding="utf-8"))
            entries = [CheckResult(**entry) for entry in data.get("results", [])]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.debug("Ignoring dependency cache: %s", e)
            return {}

        now = time.time()
        return {
            entry.name: entry
            for entry in entries
            if entry.passed and now - entry.timestamp < CACHE_TTL_SECONDS
        }

    def _save_cache(self, results: list[CheckResult]) -> None:
        payload = {"results": [asdict(r) for r in results]}
        try:
            atomic_write(cache_file(), json.dumps(payload, indent=2) + "\n")
        except OSError as e:
            logger.warning("Could not write dependency cache: %s", e)


class BurntToastAutoInstaller:
    """Installs the BurntToast module for the current Windows user."""

    def install(self) -> None:
        completed = run_powershell(
            "Set-PSRepository -Name PSGallery -InstallationPolicy Trusted; "
            "Install-Module BurntToast -Scope CurrentUser -Force -AllowClobber"
        )
        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"exit code {completed.returncode}"
            raise RuntimeError(f"Install-Module BurntToast failed: {detail}")

    def verify(self) -> bool:
        return DependencyChecker(use_cache=False).check_burnttoast().passed
