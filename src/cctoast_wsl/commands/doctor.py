"""
Dependency check presentation - shared by `doctor` and `install`.
"""

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from cctoast_wsl.dependencies import BURNTTOAST, BurntToastAutoInstaller, CheckResult, DependencyChecker
from cctoast_wsl.types import ExitCode

console = Console()


def summarize(results: list[CheckResult]) -> dict[str, int]:
    return {
        "total": len(results),
        "passed": sum(1 for r in results if r.passed),
        "failed": sum(1 for r in results if not r.passed),
        "fatal": sum(1 for r in results if not r.passed and r.fatal),
        "warnings": sum(1 for r in results if not r.passed and not r.fatal),
    }


def results_table(results: list[CheckResult]) -> Table:
    table = Table(title="Dependency Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    table.add_column("Fix", style="dim")

    for r in results:
        if r.passed:
            status = "[green]pass[/green]"
        elif r.fatal:
            status = "[red]FAIL[/red]"
        else:
            status = "[yellow]warn[/yellow]"
        table.add_row(r.name, status, r.message, r.remedy or "")
    return table


def offer_burnttoast_install() -> bool:
    """Ask to install BurntToast. Returns True once it is verified installed."""
    console.print("\n[bold]Auto-installation available for the BurntToast module[/bold]")
    if not Confirm.ask("Install BurntToast PowerShell module now?", default=True):
        return False

    installer = BurntToastAutoInstaller()
    try:
        installer.install()
    except (OSError, RuntimeError) as e:
        console.print(f"[red]✗[/red] Auto-installation failed: {e}")
        return False

    if installer.verify():
        console.print("[green]✓[/green] BurntToast module installed and verified")
        return True
    console.print("[red]✗[/red] BurntToast installation could not be verified")
    return False


def run_dependency_checks(force: bool = False, quiet: bool = False) -> list[CheckResult]:
    """
    Run checks and print them. Raises typer.Exit when fatal checks fail.

    Under --force only a missing BurntToast module blocks installation.
    """
    results = DependencyChecker(force=force).check_all()
    fatal = [r for r in results if not r.passed and r.fatal]

    if not quiet:
        console.print()
        console.print(results_table(results))

    if any(r.name == BURNTTOAST for r in fatal) and not quiet:
        if offer_burnttoast_install():
            fatal = [r for r in fatal if r.name != BURNTTOAST]

    if fatal:
        if not quiet:
            console.print("\n[red]Fatal dependency checks failed:[/red]")
            for r in fatal:
                console.print(f"  • {r.message}")
                if r.remedy:
                    console.print(f"    Fix: [dim]{r.remedy}[/dim]")
            console.print("\n[dim]Use --force to bypass non-fatal checks, but BurntToast is required[/dim]")
        raise typer.Exit(ExitCode.DEPENDENCY_FAILURE)

    if not quiet and all(r.passed for r in results):
        console.print("[green]✓[/green] All dependency checks passed")
    return results
