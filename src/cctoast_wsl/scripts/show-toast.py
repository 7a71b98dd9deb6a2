#!/usr/bin/env python3
"""
Toast notification hook for Claude Code in WSL.

Shows a Windows toast through powershell.exe and the BurntToast module.
Registered as "<install dir>/show-toast.py --notification-hook" or
"--stop-hook"; can also be run by hand with --title/--message.

Hook mode never fails loudly: errors go to toast-error.log and the script
exits 0 so Claude Code is not disrupted.

Architecture: Functional core, imperative shell
"""

import argparse
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


# =============================================================================
# CONFIGURATION (Data)
# =============================================================================

INSTALL_DIR = Path(__file__).resolve().parent
LOG_FILE = INSTALL_DIR / "toast-error.log"
POWERSHELL_TIMEOUT = 10

HOOK_DEFAULTS = {
    "notification": ("Claude Code", "Waiting for your response"),
    "stop": ("Claude Code", "Task completed"),
}

WINDOWS_PATH = re.compile(r"^[A-Za-z]:")


# =============================================================================
# DOMAIN TYPES (Data)
# =============================================================================

@dataclass(frozen=True)
class Toast:
    title: str
    message: str
    icon: str  # Windows path or ""


# =============================================================================
# PURE FUNCTIONS (Logic)
# =============================================================================

def escape_ps(value: str) -> str:
    """Escape a value for a single-quoted PowerShell string."""
    return value.replace("'", "''")


def build_ps_script(toast: Toast, log_path: str) -> str:
    """PowerShell snippet that shows the toast and logs failures."""
    logo = f" -AppLogo '{escape_ps(toast.icon)}'" if toast.icon else ""
    return (
        "try {\n"
        "    Import-Module BurntToast -ErrorAction Stop\n"
        f"    New-BurntToastNotification -Text '{escape_ps(toast.title)}', "
        f"'{escape_ps(toast.message)}'{logo}\n"
        "} catch {\n"
        f"    $_ | Out-File -Append -FilePath '{escape_ps(log_path)}'\n"
        "    exit 1\n"
        "}\n"
    )


def resolve_text(hook_mode: str | None, title: str | None, message: str | None) -> tuple[str, str]:
    default_title, default_message = HOOK_DEFAULTS.get(hook_mode or "", ("Claude Code", "Notification"))
    return title or default_title, message or default_message


# =============================================================================
# I/O (Shell)
# =============================================================================

def log_error(message: str) -> None:
    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(f"[{datetime.now().isoformat(timespec='seconds')}] ERROR: {message}\n")
    except OSError:
        pass


def to_windows_path(path: str) -> str:
    """Convert a WSL path with wslpath; Windows paths pass through."""
    if WINDOWS_PATH.match(path):
        return path
    try:
        completed = subprocess.run(
            ["wslpath", "-w", path], capture_output=True, text=True, check=True, timeout=5
        )
        return completed.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        log_error(f"Failed to convert path: {path}")
        return path


def resolve_icon(image: str | None) -> str:
    """Windows path of the --image icon, or "" for the BurntToast default."""
    if not image:
        return ""
    if Path(image).is_file() or WINDOWS_PATH.match(image):
        return to_windows_path(image)
    print(f"WARNING: Image file not found: {image}, using default icon", file=sys.stderr)
    log_error(f"Custom image file not found: {image}")
    return ""


def show_toast(toast: Toast) -> bool:
    script = build_ps_script(toast, to_windows_path(str(LOG_FILE)))
    powershell = shutil.which("powershell.exe") or "powershell.exe"
    try:
        completed = subprocess.run(
            [powershell, "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", script],
            capture_output=True,
            timeout=POWERSHELL_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        log_error("PowerShell execution timed out")
        return False
    except OSError as e:
        log_error(f"PowerShell execution failed: {e}")
        return False
    if completed.returncode != 0:
        log_error("PowerShell execution failed")
        return False
    return True


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show a Windows toast notification from WSL")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--notification-hook", dest="hook_mode", action="store_const", const="notification")
    mode.add_argument("--stop-hook", dest="hook_mode", action="store_const", const="stop")
    parser.add_argument("--title", "-t")
    parser.add_argument("--message", "-m")
    parser.add_argument("--image", "-i")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    # Hook payload arrives on stdin; drain it so Claude Code never blocks on us.
    if args.hook_mode and not sys.stdin.isatty():
        sys.stdin.read()

    title, message = resolve_text(args.hook_mode, args.title, args.message)
    toast = Toast(title=title, message=message, icon=resolve_icon(args.image))

    if show_toast(toast):
        return 0
    return 0 if args.hook_mode else 1


if __name__ == "__main__":
    sys.exit(main())
