"""Console rendering and operator prompts for the depbump CLI."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from core.errors import DepbumpError, OperatorAbort
from core.models import Comparison, RemoteVersionInfo, UpdateOutcome, UpdatePlan
from core.planner import CHOICE_ABORT, CHOICE_CUSTOM, CHOICE_LATEST

_CHOICE_ALIASES = {
    "1": CHOICE_LATEST, "l": CHOICE_LATEST, CHOICE_LATEST: CHOICE_LATEST,
    "2": CHOICE_CUSTOM, "c": CHOICE_CUSTOM, CHOICE_CUSTOM: CHOICE_CUSTOM,
    "3": CHOICE_ABORT, "a": CHOICE_ABORT, CHOICE_ABORT: CHOICE_ABORT,
}

_BACKUP_ALIASES = {
    "r": "restore", "restore": "restore",
    "d": "discard", "discard": "discard",
    "a": "abort", "abort": "abort",
}

_COMPARISON_STYLE = {
    Comparison.NEWER: "green",
    Comparison.SAME: "cyan",
    Comparison.OLDER: "yellow",
    Comparison.UNKNOWN: "yellow",
}


class ReportPresenter:
    """Human-facing summaries plus the few questions depbump asks."""

    def __init__(self, console: Console, notes_lines: int = 15):
        self.console = console
        self.notes_lines = notes_lines

    def show_summary(
        self,
        package_id: str,
        manifest: Path | None,
        current: str | None,
        latest: RemoteVersionInfo,
        comparison: Comparison,
    ) -> None:
        table = Table(show_header=False, box=None)
        table.add_row("Package", package_id)
        table.add_row("Manifest", str(manifest) if manifest else "[yellow]not found[/yellow]")
        table.add_row("Current", current or "[yellow]unknown[/yellow]")
        table.add_row("Latest", f"{latest.version} ({latest.source_name})")
        table.add_row("Published", latest.published_at)
        if latest.info_url:
            table.add_row("Info", latest.info_url)
        style = _COMPARISON_STYLE[comparison]
        table.add_row("Status", f"[{style}]{_status_text(comparison)}[/{style}]")
        self.console.print(table)

        excerpt = self.notes_excerpt(latest.notes)
        if excerpt:
            self.console.print(Panel(excerpt, title="Release notes", expand=False))

    def notes_excerpt(self, notes: str) -> str:
        lines = [line.rstrip() for line in notes.strip().splitlines()]
        if len(lines) <= self.notes_lines:
            return "\n".join(lines)
        return "\n".join(lines[: self.notes_lines] + ["..."])

    def show_plan(self, plan: UpdatePlan) -> None:
        for warning in plan.warnings:
            self.console.print(f"Warning: {warning}", style="yellow")
        self.console.print(plan.reason, style="bold" if plan.proceed else None)

    def show_check_guidance(self, plan: UpdatePlan) -> None:
        if plan.comparison is Comparison.NEWER:
            self.console.print("Run with --update-to-latest to apply the update")

    def show_outcome(self, outcome: UpdateOutcome) -> None:
        for warning in outcome.warnings:
            self.console.print(f"Warning: {warning}", style="yellow")
        self.console.print(
            f"Updated {outcome.manifest.name}: {outcome.previous_version or 'unknown'} -> "
            f"{outcome.new_version} ({outcome.method})",
            style="green",
        )
        self.console.print("Next steps: review the manifest diff, test the build on a server, commit")

    def show_error(self, error: Exception) -> None:
        self.console.print(f"Error: {error}", style="red")
        if isinstance(error, DepbumpError):
            output = error.details.get("output")
            if output:
                self.console.print(output, markup=False, highlight=False)
            rollback_error = error.details.get("rollback_error")
            if rollback_error:
                self.console.print(f"Rollback also failed: {rollback_error}", style="red")

    def show_stale_backup(self, backup: Path) -> None:
        self.console.print(
            f"Warning: found backup {backup} from an interrupted run", style="yellow"
        )

    # Operator prompts

    def choose_action(self, current: str | None, latest: str) -> str:
        self.console.print(f"1) update to latest ({latest})")
        self.console.print("2) enter a custom version")
        self.console.print("3) abort")
        answer = self._ask("Choose an action [1/2/3]").strip().lower()
        return _CHOICE_ALIASES.get(answer, answer)

    def ask_version(self) -> str:
        return self._ask("Version to apply").strip()

    def confirm(self, message: str) -> bool:
        try:
            return Confirm.ask(message, console=self.console, default=False)
        except EOFError:
            raise OperatorAbort("No operator input available")

    def choose_stale_backup_action(self, backup: Path) -> str:
        answer = self._ask(f"Restore {backup.name}, discard it, or abort? [r/d/a]")
        return _BACKUP_ALIASES.get(answer.strip().lower(), answer)

    def _ask(self, message: str) -> str:
        try:
            return Prompt.ask(message, console=self.console)
        except EOFError:
            raise OperatorAbort("No operator input available")


def _status_text(comparison: Comparison) -> str:
    return {
        Comparison.NEWER: "update available",
        Comparison.SAME: "up to date",
        Comparison.OLDER: "ahead of latest release",
        Comparison.UNKNOWN: "unknown",
    }[comparison]
