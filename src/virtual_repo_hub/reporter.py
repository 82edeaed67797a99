"""Rich console output formatting."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from virtual_repo_hub.models import (
    CheckResult,
    LocalBranch,
    RepoCheck,
    RepoStatus,
    Severity,
    TrackingBranch,
    TrackingStatus,
)

TRACKING_STYLES = {
    TrackingStatus.CURRENT: ("green", "current"),
    TrackingStatus.BEHIND: ("magenta", "behind"),
    TrackingStatus.AHEAD: ("cyan", "ahead"),
    TrackingStatus.DIVERGED: ("red bold", "diverged"),
}

SEVERITY_MARKERS = {
    Severity.ERROR: "[red]x[/]",
    Severity.ADVISORY: "[yellow]![/]",
    Severity.INFO: "[dim]-[/]",
}


class Reporter:
    """Formats and displays repository status and backup verdicts using Rich."""

    def __init__(self, console: Console) -> None:
        """Initialize reporter.

        Args:
            console: Rich console for output.
        """
        self.console = console

    def display_status(self, path: Path, status: RepoStatus) -> None:
        """Display a single status snapshot.

        Args:
            path: Repository the snapshot was taken from.
            status: Snapshot to display.
        """
        self.console.print(f"\n[bold]{self.shorten_path(path)}[/]")
        if status.bare:
            self.console.print("  bare repository")

        remotes = ", ".join(r.name for r in status.remotes) or "[red]none[/]"
        self.console.print(f"  Working tree: {self.format_flag(status.clean_status, 'clean', 'dirty')}")
        self.console.print(f"  State:        {self.format_flag(status.clean_state, 'clean', 'in progress')}")
        self.console.print(f"  Stashes:      {status.stashes}")
        self.console.print(f"  Remotes:      {remotes}\n")

        if status.branches:
            self.display_branch_table(status)

    def display_branch_table(self, status: RepoStatus) -> None:
        """Display the branch classifications of a snapshot."""
        table = Table(title="Branches", expand=True)
        table.add_column("Branch", style="cyan", no_wrap=True)
        table.add_column("Kind")
        table.add_column("Status")

        for name in sorted(status.branches):
            branch = status.branches[name]
            kind, text = self.format_branch(branch)
            table.add_row(name, kind, text)

        self.console.print(table)

    def format_branch(self, branch: TrackingBranch | LocalBranch) -> tuple[str, str]:
        """Return (kind, styled status) for a branch classification."""
        if isinstance(branch, TrackingBranch):
            style, text = TRACKING_STYLES[branch.status]
            return "tracking", f"[{style}]{text}[/]"
        if branch.merged_in_remote:
            return "local", "[green]merged in remote[/]"
        return "local", "[red]local only[/]"

    def display_check_result(self, result: CheckResult) -> None:
        """Display verdicts, diagnostics and a summary for checked repositories.

        Args:
            result: Check result to display.
        """
        if result.repos:
            self.display_verdict_table(result.repos)

        with_diagnostics = [r for r in result.repos if r.diagnostics or r.error_message]
        if with_diagnostics:
            self.display_diagnostics(with_diagnostics)

        self.display_summary(result)

    def display_verdict_table(self, repos: list[RepoCheck]) -> None:
        """Display one row per repository with its backup verdict."""
        table = Table(title="Backup status", expand=True)
        table.add_column("Path", style="blue", no_wrap=True)
        table.add_column("Verdict")
        table.add_column("Branches", justify="right")
        table.add_column("Stashes", justify="right")

        for repo in repos:
            branches = str(len(repo.status.branches)) if repo.status else "-"
            stashes = str(repo.status.stashes) if repo.status else "-"
            table.add_row(self.shorten_path(repo.path), self.format_verdict(repo), branches, stashes)

        self.console.print(table)

    def format_verdict(self, repo: RepoCheck) -> str:
        """Format the verdict of a single repository."""
        if repo.error_message is not None:
            return "[red bold]error[/]"
        if not repo.evaluated:
            return "[dim]skipped[/]"
        if repo.backed_up:
            return "[green]backed up[/]"
        return "[red]at risk[/]"

    def display_diagnostics(self, repos: list[RepoCheck]) -> None:
        """Display a panel listing every diagnostic and error."""
        lines: list[str] = []

        for repo in repos:
            path_str = self.shorten_path(repo.path)
            if repo.error_message is not None:
                lines.append(f"[red]x[/] {path_str}: {repo.error_message}")
            for diagnostic in repo.diagnostics:
                marker = SEVERITY_MARKERS[diagnostic.severity]
                lines.append(f"{marker} {path_str}: {diagnostic.message}")

        panel = Panel(
            "\n".join(lines),
            title="[bold yellow]Diagnostics[/]",
            border_style="yellow",
        )
        self.console.print(panel)

    def display_summary(self, result: CheckResult) -> None:
        """Display summary statistics."""
        self.console.print(f"\nChecked [bold]{result.total_checked}[/] repositories")
        self.console.print(
            f"  [green]{result.passed}[/] backed up, [red]{result.failed}[/] at risk, "
            f"[dim]{result.skipped}[/] skipped, [red]{result.errors}[/] errors\n"
        )

    def format_flag(self, value: bool, good: str, bad: str) -> str:
        """Format a boolean as a colored word."""
        return f"[green]{good}[/]" if value else f"[red]{bad}[/]"

    def shorten_path(self, path: Path) -> str:
        """Shorten path for display using home directory.

        Args:
            path: Absolute path.

        Returns:
            Shortened path string.
        """
        try:
            return "~/" + str(path.relative_to(Path.home()))
        except ValueError:
            return str(path)
