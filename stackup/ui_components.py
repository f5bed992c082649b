"""
stackup - UI Components & Branding
Standardized headers and UI elements
"""

from rich.console import Console
from rich.table import Table

from stackup.models.results import CheckResult, ResultStatus

LOGO = "stackup"

# Color scheme
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_LABELS = {
    ResultStatus.SUCCESS: f"[{SUCCESS_COLOR}]PASS[/{SUCCESS_COLOR}]",
    ResultStatus.WARNING: f"[{WARNING_COLOR}]WARN[/{WARNING_COLOR}]",
    ResultStatus.FAILURE: f"[{ERROR_COLOR}]FAIL[/{ERROR_COLOR}]",
}


def show_header(
    title: str,
    subtitle: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized stackup command header.

    Args:
        title: Main title (e.g., "Provision WordPress")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Provision WordPress",
            details={"Domain": "example.com", "Network": "wp_net"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()


def checks_table(title: str, results: list[CheckResult]) -> Table:
    """Build a table of check results with hints for failures."""
    table = Table(title=title, title_justify="left", padding=(0, 1))
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for result in results:
        detail = result.detail
        if result.hint and not result.passed:
            detail = f"{detail}\n{result.hint}" if detail else result.hint
        table.add_row(result.name, STATUS_LABELS[result.status], detail)

    return table
