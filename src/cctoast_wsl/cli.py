"""
Main CLI entry point for cctoast-wsl.

Usage:
    cctoast-wsl install [--global | --local] [--no-notification] [--no-stop] [--sync] [--dry-run]
    cctoast-wsl uninstall [--global | --local] [--sync]
    cctoast-wsl status [--global | --local]
    cctoast-wsl doctor [--force] [--json]
    cctoast-wsl instructions
"""

import json
import logging
import os
import sys
from dataclasses import asdict

import typer
from rich.console import Console

from cctoast_wsl import __version__
from cctoast_wsl.installer import InstallerConfig
from cctoast_wsl.types import ExitCode, Scope

app = typer.Typer(
    name="cctoast-wsl",
    help="Windows toast notifications for Claude Code hooks in WSL",
    no_args_is_help=True,
)
console = Console()

INSTRUCTIONS = """\
[bold]cctoast-wsl v{version} - Usage Instructions[/bold]

[bold]INSTALLATION:[/bold]
  cctoast-wsl install                     # Global install with defaults
  cctoast-wsl install --local             # Local project install
  cctoast-wsl install --dry-run           # Preview changes

[bold]EXAMPLES:[/bold]
  cctoast-wsl install --global --no-stop
  cctoast-wsl install --local --sync
  cctoast-wsl uninstall --global

[bold]HOOK USAGE:[/bold]
  After installation, Claude Code triggers toast notifications:
  - Notification hook: shows when Claude is waiting for input
  - Stop hook: shows when Claude completes a task

[bold]MANUAL TESTING:[/bold]
  ~/.claude/cctoast-wsl/show-toast.py --notification-hook
  ~/.claude/cctoast-wsl/show-toast.py --stop-hook
"""


def configure_logging(verbose: bool) -> None:
    debug = verbose or os.environ.get("CCTOAST_DEBUG") == "1"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def resolve_scope(global_scope: bool, local_scope: bool) -> Scope:
    """Scope from mutually exclusive flags; global when neither is given."""
    if global_scope and local_scope:
        console.print("[red]Error:[/red] --global and --local flags cannot be used together")
        raise typer.Exit(ExitCode.USER_ABORT)
    return Scope.LOCAL if local_scope else Scope.GLOBAL


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging on stderr"),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Install Claude Code hooks that show Windows toast notifications from WSL."""
    configure_logging(verbose)


@app.command()
def install(
    global_scope: bool = typer.Option(False, "--global", "-g", help="Install for user to ~/.claude/ (default)"),
    local_scope: bool = typer.Option(False, "--local", "-l", help="Install for project to ./.claude/"),
    notification: bool = typer.Option(True, "--notification/--no-notification", help="Include Notification hook"),
    stop: bool = typer.Option(True, "--stop/--no-stop", help="Include Stop hook"),
    sync: bool = typer.Option(
        False, "--sync", help="With --local, modify tracked settings.json instead of settings.local.json"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Preview changes without writing files"),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass failed dependency checks (except BurntToast)"),
    json_output: bool = typer.Option(False, "--json", help="Machine-readable JSON output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress interactive prompts"),
) -> None:
    """Install the notification script and register its hooks."""
    from cctoast_wsl.commands.install import run_install

    explicit = any(
        [global_scope, local_scope, not notification, not stop, sync, dry_run, force, json_output, quiet]
    )
    interactive = not explicit and sys.stdin.isatty() and sys.stdout.isatty()

    scope = resolve_scope(global_scope, local_scope)
    if not notification and not stop:
        console.print("[red]Error:[/red] At least one hook (--notification or --stop) must be enabled")
        raise typer.Exit(ExitCode.USER_ABORT)
    if sync and scope is not Scope.LOCAL:
        console.print("[yellow]Warning:[/yellow] --sync only applies to local installations")

    config = InstallerConfig(
        scope=scope,
        notification_hook=notification,
        stop_hook=stop,
        sync=sync and scope is Scope.LOCAL,
        dry_run=dry_run,
    )
    run_install(config, interactive=interactive, force=force, quiet=quiet, json_output=json_output)


@app.command()
def uninstall(
    global_scope: bool = typer.Option(False, "--global", "-g", help="Uninstall from ~/.claude/ (default)"),
    local_scope: bool = typer.Option(False, "--local", "-l", help="Uninstall from ./.claude/"),
    sync: bool = typer.Option(False, "--sync", help="With --local, clean tracked settings.json"),
    json_output: bool = typer.Option(False, "--json", help="Machine-readable JSON output"),
) -> None:
    """Remove registered hooks and the installed script."""
    from cctoast_wsl.commands.install import run_uninstall

    scope = resolve_scope(global_scope, local_scope)
    run_uninstall(InstallerConfig(scope=scope, sync=sync and scope is Scope.LOCAL), json_output=json_output)


@app.command()
def status(
    global_scope: bool = typer.Option(False, "--global", "-g", help="Show global installation (default)"),
    local_scope: bool = typer.Option(False, "--local", "-l", help="Show project installation"),
    sync: bool = typer.Option(False, "--sync", help="With --local, inspect tracked settings.json"),
) -> None:
    """Show installation and hook status."""
    from cctoast_wsl.commands.install import show_status

    scope = resolve_scope(global_scope, local_scope)
    show_status(InstallerConfig(scope=scope, sync=sync and scope is Scope.LOCAL))


@app.command()
def doctor(
    force: bool = typer.Option(False, "--force", "-f", help="Treat non-BurntToast failures as warnings"),
    json_output: bool = typer.Option(False, "--json", help="Machine-readable JSON output"),
) -> None:
    """Check WSL, PowerShell and BurntToast."""
    from cctoast_wsl.commands.doctor import results_table, summarize
    from cctoast_wsl.dependencies import DependencyChecker

    results = DependencyChecker(force=force).check_all()
    failed = any(not r.passed and r.fatal for r in results)

    if json_output:
        payload = {"results": [asdict(r) for r in results], "summary": summarize(results)}
        typer.echo(json.dumps(payload, indent=2))
    else:
        console.print()
        console.print(results_table(results))
        console.print()

    if failed:
        raise typer.Exit(ExitCode.DEPENDENCY_FAILURE)


@app.command()
def instructions() -> None:
    """Show usage instructions."""
    console.print(INSTRUCTIONS.format(version=__version__))


if __name__ == "__main__":
    app()
