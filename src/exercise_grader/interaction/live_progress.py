"""
Real-time progress display for grade-all.

A Rich Live panel listing every submission of the batch with its
current state and score, plus an ETA computed from settled items.
"""

import asyncio
from dataclasses import dataclass
from time import time
from typing import Dict, List, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel


@dataclass
class ItemStatus:
    """Status of one submission in the batch."""
    file_name: str = "???"
    status: str = "pending"  # pending, grading, success, error, skipped
    score: Optional[float] = None


class BatchProgressDisplay:
    """
    Live dashboard for sequential batch grading.

    Usage:
        display = BatchProgressDisplay(console)
        with display:
            callbacks = OrchestratorCallbacks(
                on_progress=create_batch_progress_callback(display)
            )
    """

    STATUS_ICONS = {
        "pending": "[dim]⏳ waiting[/dim]",
        "grading": "[yellow]⚙ grading[/yellow]",
        "success": "[green]✓ done[/green]",
        "error": "[red]✗ failed[/red]",
        "skipped": "[dim]- deleted[/dim]",
    }

    def __init__(self, console: Console, max_rows: int = 10):
        self.console = console
        self.max_rows = max_rows
        self.total = 0
        self.items: Dict[str, ItemStatus] = {}
        self.order: List[str] = []
        self.start_time = time()
        self._live: Optional[Live] = None

    @property
    def settled(self) -> int:
        return sum(1 for item in self.items.values() if item.status in ("success", "error", "skipped"))

    def start_batch(self, total: int) -> None:
        self.total = total
        self.start_time = time()
        self._refresh()

    def update_item(self, submission_id: str, **kwargs) -> None:
        """Update one row; unknown ids are added in arrival order."""
        if submission_id not in self.items:
            self.items[submission_id] = ItemStatus()
            self.order.append(submission_id)
        item = self.items[submission_id]
        for key, value in kwargs.items():
            if hasattr(item, key):
                setattr(item, key, value)
        self._refresh()

    def _get_eta(self) -> str:
        done = self.settled
        if done == 0:
            return "..."
        elapsed = time() - self.start_time
        remaining = max(self.total - done, 0) * (elapsed / done)
        if remaining < 60:
            return f"{int(remaining)}s"
        return f"{int(remaining / 60)}m {int(remaining % 60)}s"

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._render())

    def _render(self) -> Panel:
        lines = [
            f"[bold cyan]{self.settled}/{self.total} submissions[/bold cyan] │ "
            f"[dim]~{self._get_eta()} remaining[/dim]",
            "",
        ]

        # Newest rows last; the grading row is always among them
        for submission_id in self.order[-self.max_rows:]:
            item = self.items[submission_id]
            icon = self.STATUS_ICONS.get(item.status, "?")
            score = f"{item.score:g}/10" if item.score is not None else ""
            lines.append(f"  {escape(item.file_name[:30]):30s} {icon:28s} {score}")

        hidden = len(self.order) - self.max_rows
        if hidden > 0:
            lines.append(f"  [dim]... and {hidden} earlier[/dim]")

        return Panel(
            "\n".join(lines),
            title="[bold cyan]Grading progress[/bold cyan]",
            border_style="cyan",
            padding=(0, 1)
        )

    def get_summary(self) -> Dict[str, int]:
        counts = {"total": self.total}
        for status in ("success", "error", "skipped"):
            counts[status] = sum(1 for item in self.items.values() if item.status == status)
        return counts

    def __enter__(self):
        """Start the live display."""
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=4,
            transient=False  # Keep the final table visible
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args):
        """Stop the live display."""
        if self._live:
            live, self._live = self._live, None
            return live.__exit__(*args)


def create_batch_progress_callback(display: BatchProgressDisplay, original_callback=None):
    """
    Create a progress callback that updates the live display.

    Args:
        display: BatchProgressDisplay instance to update
        original_callback: Optional callback to also call

    Returns:
        Async callback function
    """
    async def live_callback(event_type: str, data: dict):
        if event_type == "batch_started":
            display.start_batch(data.get("total", 0))

        elif event_type == "grading_started":
            display.update_item(
                data["submission_id"],
                file_name=data.get("file_name", "???"),
                status="grading",
            )

        elif event_type == "grading_succeeded":
            display.update_item(data["submission_id"], status="success", score=data.get("score"))

        elif event_type == "grading_failed":
            display.update_item(data["submission_id"], status="error")

        elif event_type == "batch_item" and data.get("outcome") == "skipped":
            display.update_item(data["submission_id"], status="skipped")

        if original_callback:
            result = original_callback(event_type, data)
            if asyncio.iscoroutine(result):
                await result

    return live_callback
