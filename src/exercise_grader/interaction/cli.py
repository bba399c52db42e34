"""
CLI rendering for the exercise grader.

Handles everything printed to the terminal with rich:
- Work view (submission table with selection marker)
- Grading result (score, steps, solution, competencies, tips)
- History view
- Confirmations and messages
"""

from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from exercise_grader.config.constants import SCORE_COLORS, STATUS_COLORS
from exercise_grader.core.models import GradingResult, Submission, SubmissionStatus
from exercise_grader.core.orchestrator import BatchReport
from exercise_grader.core.store import StoreSnapshot
from exercise_grader.prompts.translations import get_message


STATUS_ICONS = {
    SubmissionStatus.IDLE: "○",
    SubmissionStatus.GRADING: "⚙",
    SubmissionStatus.SUCCESS: "✓",
    SubmissionStatus.ERROR: "✗",
}


def score_color(result: GradingResult) -> str:
    return SCORE_COLORS[result.band.value]


def format_status(submission: Submission) -> str:
    color = STATUS_COLORS[submission.status.value]
    icon = STATUS_ICONS[submission.status]
    return f"[{color}]{icon} {submission.status.value}[/{color}]"


def format_score(submission: Submission) -> str:
    result = submission.result or submission.previous_result
    if result is None:
        return "[dim]-[/dim]"
    color = score_color(result)
    text = f"[{color}]{result.score:g}/10[/{color}]"
    if submission.previous_result is not None:
        text += " [dim](stale)[/dim]"
    return text


class CLI:
    """
    Terminal presentation of the workspace.

    Usage:
        cli = CLI()
        cli.show_submissions(workspace.store.snapshot)
        cli.show_result(submission)
    """

    def __init__(self, console: Console = None, language: str = "vi"):
        self.console = console or Console()
        self.language = language

    # ==================== MESSAGES ====================

    def show_info(self, message: str):
        """Display an info message."""
        self.console.print(f"[cyan]{message}[/cyan]")

    def show_success(self, message: str):
        """Display a success message."""
        self.console.print(f"[green]✓ {message}[/green]")

    def show_warning(self, message: str):
        """Display a warning message."""
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def show_error(self, message: str, solution: str = None):
        """
        Display an error message with optional solution guidance.

        Args:
            message: Error message
            solution: Optional guidance
        """
        if solution:
            self.console.print(Panel(
                f"[red]✗ {message}[/red]\n\n[bold]Solution:[/bold] {solution}",
                title="[bold red]Error[/bold red]",
                border_style="red",
                padding=(0, 1)
            ))
        else:
            self.console.print(f"[red]✗ {message}[/red]")

    def confirm_reset(self) -> bool:
        """Ask before the irreversible reset."""
        return Confirm.ask(
            f"[bold red]{get_message('reset_confirm', self.language)}[/bold red]",
            console=self.console,
            default=False
        )

    # ==================== WORK VIEW ====================

    def show_submissions(self, snapshot: StoreSnapshot):
        """Display the current collection with the selection marker."""
        if not snapshot.submissions:
            self.console.print("[yellow]No submissions yet. Add images with 'add' or 'paste'.[/yellow]")
            return

        table = Table(title="Submissions", header_style="bold")
        table.add_column("", width=1)
        table.add_column("#", justify="right", style="dim")
        table.add_column("ID", style="cyan")
        table.add_column("File")
        table.add_column("Status")
        table.add_column("Score", justify="right")
        table.add_column("Rot.", justify="right", style="dim")
        table.add_column("Uploaded", style="dim")

        for index, submission in enumerate(snapshot.submissions, 1):
            marker = "[bold cyan]▶[/bold cyan]" if submission.id == snapshot.selected_id else ""
            table.add_row(
                marker,
                str(index),
                submission.id[:8],
                escape(submission.file_name),
                format_status(submission),
                format_score(submission),
                f"{submission.display_rotation}°",
                submission.uploaded_datetime.strftime("%Y-%m-%d %H:%M:%S"),
            )

        self.console.print(table)

    def show_result(self, submission: Submission):
        """Display one submission and its grading outcome."""
        header = (
            f"[bold]{escape(submission.file_name)}[/bold]  [dim]{submission.id[:8]}[/dim]\n"
            f"{format_status(submission)}  [dim]{submission.mime_type}, "
            f"{submission.display_rotation}°[/dim]"
        )
        self.console.print(Panel(header, border_style="cyan", padding=(0, 1)))

        if submission.status == SubmissionStatus.ERROR:
            self.show_error(submission.error_message)
            return

        if submission.status == SubmissionStatus.IDLE:
            self.console.print("[dim]Not graded yet. Run 'grade' to grade this submission.[/dim]")
            return

        result = submission.result or submission.previous_result
        if result is None:
            self.console.print("[cyan]⚙ Grading in progress...[/cyan]")
            return
        if submission.previous_result is not None:
            self.console.print("[dim]Re-grading in progress, showing the previous result.[/dim]")

        self._render_grading_result(result)

    def _render_grading_result(self, result: GradingResult):
        color = score_color(result)
        points = get_message("points", self.language)

        self.console.print(Panel(
            result.problem_statement,
            title="[bold]Problem[/bold]",
            border_style="dim",
            padding=(0, 1)
        ))
        self.console.print(
            f"\n  [bold]Score:[/bold] [{color}]{result.score:g}/10 {points}[/{color}]"
        )
        self.console.print(f"  {result.summary}\n")

        if result.steps:
            steps = Table(title="Steps", header_style="bold", show_lines=True)
            steps.add_column("#", justify="right", style="dim")
            steps.add_column("", width=1)
            steps.add_column("Work")
            steps.add_column("Feedback")
            for step in result.steps:
                mark = "[green]✓[/green]" if step.is_correct else "[red]✗[/red]"
                feedback = step.feedback
                if step.correction:
                    feedback += f"\n[yellow]→ {step.correction}[/yellow]"
                steps.add_row(str(step.step_number), mark, step.content, feedback)
            self.console.print(steps)

        if not result.is_perfect and result.correct_solution:
            self.console.print(Panel(
                result.correct_solution,
                title="[bold green]Correct solution[/bold green]",
                border_style="green",
                padding=(0, 1)
            ))

        competencies = Table(show_header=False, box=None, padding=(0, 2))
        competencies.add_column("Competency", style="cyan")
        competencies.add_column("Assessment")
        competencies.add_row("Logic", result.competencies.logic or "[dim]-[/dim]")
        competencies.add_row("Calculation", result.competencies.calculation or "[dim]-[/dim]")
        competencies.add_row("Presentation", result.competencies.presentation or "[dim]-[/dim]")
        self.console.print("\n[bold]Competencies[/bold]")
        self.console.print(competencies)

        if result.tips:
            self.console.print("\n[bold]Tips[/bold]")
            for tip in result.tips:
                self.console.print(f"  • {tip}")

    # ==================== HISTORY ====================

    def show_history(self, submissions: List[Submission], search: str = ""):
        """Display graded and failed submissions, newest first."""
        if not submissions:
            if search:
                self.console.print(f"[yellow]No history entry matches '{search}'.[/yellow]")
            else:
                self.console.print("[yellow]History is empty.[/yellow]")
            return

        title = "History" + (f" [dim](filter: {search})[/dim]" if search else "")
        table = Table(title=title, header_style="bold")
        table.add_column("ID", style="cyan")
        table.add_column("File")
        table.add_column("Date", style="dim")
        table.add_column("Result", justify="right")
        table.add_column("Summary", max_width=50)

        for submission in submissions:
            if submission.result is not None:
                outcome = format_score(submission)
                summary = submission.result.summary
            else:
                outcome = "[red]✗ error[/red]"
                summary = submission.error_message or ""
            if len(summary) > 60:
                summary = summary[:60] + "..."
            table.add_row(
                submission.id[:8],
                escape(submission.file_name),
                submission.uploaded_datetime.strftime("%Y-%m-%d %H:%M"),
                outcome,
                summary,
            )

        self.console.print(table)

    # ==================== BATCH ====================

    def show_ingested(self, submissions: Iterable[Submission], failed: List[str], skipped: List[str]):
        submissions = list(submissions)
        if submissions:
            self.show_success(f"Added {len(submissions)} submission(s)")
            for submission in submissions:
                self.console.print(f"  [cyan]{submission.id[:8]}[/cyan] {escape(submission.file_name)}")
        for name in failed:
            self.show_warning(f"Could not decode {name}, skipped")
        for name in skipped:
            self.console.print(f"[dim]Ignored non-image input: {name}[/dim]")

    def show_batch_report(self, report: BatchReport):
        if report.total == 0:
            self.show_info("Nothing to grade.")
            return
        parts = [f"[green]{len(report.succeeded)} graded[/green]"]
        if report.failed:
            parts.append(f"[red]{len(report.failed)} failed[/red]")
        if report.skipped:
            parts.append(f"[dim]{len(report.skipped)} skipped[/dim]")
        self.console.print("Batch complete: " + ", ".join(parts))


def resolve_submission(snapshot: StoreSnapshot, ref: str) -> Optional[Submission]:
    """
    Find a submission by full id, id prefix or 1-based position.

    Returns None when nothing (or more than one id prefix) matches.
    """
    exact = snapshot.get(ref)
    if exact is not None:
        return exact

    if ref.isdigit():
        index = int(ref)
        if 1 <= index <= len(snapshot.submissions):
            return snapshot.submissions[index - 1]
        return None

    matches = [s for s in snapshot.submissions if s.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
