"""
Shared domain types for cctoast-wsl.

Enums shared by the installer and the CLI.
"""

from enum import Enum, IntEnum


class HookCategory(Enum):
    """Claude Code hook categories that can show a toast."""

    NOTIFICATION = "notification"
    STOP = "stop"


class Scope(Enum):
    """Where an installation lives."""

    GLOBAL = "global"  # ~/.claude/
    LOCAL = "local"  # ./.claude/ of the current project


class ExitCode(IntEnum):
    """Process exit codes of the CLI."""

    SUCCESS = 0
    USER_ABORT = 1
    DEPENDENCY_FAILURE = 2
    IO_ERROR = 3
