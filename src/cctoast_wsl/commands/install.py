"""
Install, uninstall and status commands.

Interactive flow (terminal, no flags): scope -> hooks -> sync -> confirm.
With any flag given, the flags are used as-is.
"""

import json
from dataclasses import replace

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from cctoast_wsl.commands.doctor import run_dependency_checks, summarize
from cctoast_wsl.errors import CctoastError
from cctoast_wsl.installer import InstallationResult, Installer, InstallerConfig, hook_command
from cctoast_wsl.settings import HookSpec, is_hook_registered
from cctoast_wsl.types import ExitCode, HookCategory, Scope

console = Console()

HOOK_DESCRIPTIONS = {
    HookCategory.NOTIFICATION: "Shows a toast when Claude is waiting for input",
    HookCategory.STOP: "Shows a toast when Claude completes a task",
}


def prompt_config() -> InstallerConfig:
    """Ask for scope, hooks and sync, then confirm."""
    console.print("\n[bold]cctoast-wsl installation[/bold]\n")

    scope = Scope(
        Prompt.ask(
            "Installation scope ([cyan]global[/cyan] = ~/.claude/, [cyan]local[/cyan] = ./.claude/)",
            choices=[s.value for s in Scope],
            default=Scope.GLOBAL.value,
        )
    )

    enabled = {}
    for category, description in HOOK_DESCRIPTIONS.items():
        enabled[category] = Confirm.ask(f"Enable {category.value} hook? [dim]({description})[/dim]", default=True)
    if not any(enabled.values()):
        console.print("[red]Error:[/red] At least one hook must be enabled")
        raise typer.Exit(ExitCode.USER_ABORT)

    sync = False
    if scope is Scope.LOCAL:
        sync = Confirm.ask("Modify tracked settings.json instead of settings.local.json?", default=False)

    config = InstallerConfig(
        scope=scope,
        notification_hook=enabled[HookCategory.NOTIFICATION],
        stop_hook=enabled[HookCategory.STOP],
        sync=sync,
    )

    console.print("\nConfiguration summary:")
    console.print(f"  • Scope: {scope.value}")
    console.print(f"  • Hooks: {', '.join(c.value for c in config.categories)}")
    if scope is Scope.LOCAL:
        console.print(f"  • Sync: {'yes' if sync else 'no'}")
    console.print(f"  • Settings file: [dim]{Installer(config).paths.settings_path}[/dim]\n")

    if not Confirm.ask("Proceed with installation?", default=True):
        console.print("[dim]Operation cancelled by user[/dim]")
        raise typer.Exit(ExitCode.USER_ABORT)
    return config


def _json_payload(action: str, config: InstallerConfig, force: bool, quiet: bool) -> dict:
    return {
        "action": action,
        "scope": config.scope.value,
        "hooks": {
            "notification": config.notification_hook,
            "stop": config.stop_hook,
        },
        "settings": {
            "sync": config.sync,
            "dryRun": config.dry_run,
            "force": force,
            "quiet": quiet,
        },
    }


def _print_result(result: InstallationResult) -> None:
    if not result.success:
        console.print(f"\n[red]✗[/red] {result.message}")
        raise typer.Exit(ExitCode.IO_ERROR)

    console.print(f"\n[green]✓[/green] {result.message}")
    if result.backup_path:
        console.print(f"  Backup created: [dim]{result.backup_path}[/dim]")
    if result.hooks_added:
        console.print(f"  Hooks added: {', '.join(result.hooks_added)}")


def run_install(
    config: InstallerConfig,
    interactive: bool = False,
    force: bool = False,
    quiet: bool = False,
    json_output: bool = False,
) -> None:
    """Main install routine."""
    if interactive:
        config = replace(prompt_config(), dry_run=config.dry_run)

    checks = run_dependency_checks(force=force, quiet=quiet or json_output)

    if config.dry_run and not json_output:
        console.print("\n[bold]DRY RUN MODE[/bold] - no files will be modified")

    result = Installer(config).install()

    if json_output:
        payload = _json_payload("install", config, force, quiet)
        payload["dependencies"] = {
            "results": [
                {"name": r.name, "passed": r.passed, "fatal": r.fatal, "message": r.message, "remedy": r.remedy}
                for r in checks
            ],
            "summary": summarize(checks),
        }
        payload["installation"] = result.to_dict()
        typer.echo(json.dumps(payload, indent=2))
        if not result.success:
            raise typer.Exit(ExitCode.IO_ERROR)
        return

    _print_result(result)


def run_uninstall(config: InstallerConfig, json_output: bool = False) -> None:
    """Remove hooks and the install directory."""
    result = Installer(config).uninstall()

    if json_output:
        payload = _json_payload("uninstall", config, force=False, quiet=False)
        payload["installation"] = result.to_dict()
        typer.echo(json.dumps(payload, indent=2))
        if not result.success:
            raise typer.Exit(ExitCode.IO_ERROR)
        return

    _print_result(result)


def show_status(config: InstallerConfig) -> None:
    """Show install and hook registration status."""
    installer = Installer(config)
    paths = installer.paths

    table = Table(title=f"cctoast-wsl Status ({config.scope.value})")
    table.add_column("Item", style="cyan")
    table.add_column("State", style="bold")
    table.add_column("Location", style="dim")

    installed = installer.is_installed()
    table.add_row(
        "Notification script",
        "[green]Installed[/green]" if installed else "[red]Not installed[/red]",
        str(paths.script_path),
    )

    for category in HookCategory:
        spec = HookSpec(category.value, hook_command(paths.script_path, category.value))
        try:
            enabled = is_hook_registered(paths.settings_path, spec)
            state = "[green]Enabled[/green]" if enabled else "[dim]Disabled[/dim]"
        except CctoastError as e:
            state = f"[red]Unreadable settings: {escape(str(e))}[/red]"
        table.add_row(f"{category.value.capitalize()} hook", state, str(paths.settings_path))

    manifest = installer.read_manifest()
    if manifest is not None:
        table.add_row("Installed version", manifest.version, manifest.installed_at)

    console.print()
    console.print(table)
    console.print()
