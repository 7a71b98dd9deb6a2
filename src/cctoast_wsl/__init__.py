"""
cctoast-wsl - Windows toast notifications for Claude Code running in WSL.

Components:
- Settings merge engine: JSONC parsing, deep merge and atomic writes
- Installer: copies the notification script and registers its hook commands
- Dependency checks: WSL, PowerShell and the BurntToast module
"""

__version__ = "0.1.0"
