"""
Main CLI entry point for the exercise grader.

Usage:
    exercise-grader add sheets/*.jpg
    cat photo.png | exercise-grader paste --type image/png
    exercise-grader list
    exercise-grader grade 3
    exercise-grader grade-all
    exercise-grader show 3
    exercise-grader history --search bai
    exercise-grader reset --yes
    exercise-grader shell

Submissions are referenced by position in 'list', full id or id prefix.
"""

import argparse
import asyncio
import inspect
import shlex
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.prompt import Prompt

from exercise_grader.ai import create_ai_provider
from exercise_grader.config.logging_config import setup_logging
from exercise_grader.config.settings import Settings, get_settings
from exercise_grader.core.exceptions import ExerciseGraderError
from exercise_grader.core.models import Submission
from exercise_grader.core.orchestrator import OrchestratorCallbacks
from exercise_grader.core.workspace import ViewMode, Workspace
from exercise_grader.ingestion.sources import RawInput
from exercise_grader.interaction.cli import CLI, resolve_submission
from exercise_grader.interaction.live_progress import BatchProgressDisplay, create_batch_progress_callback


def build_settings(args) -> Settings:
    """Settings with command-line overrides applied."""
    settings = get_settings()
    overrides = {}
    if getattr(args, "language", None):
        overrides["language"] = args.language.lower()
    if getattr(args, "data_dir", None):
        overrides["data_dir"] = args.data_dir
    if getattr(args, "provider", None):
        overrides["ai_provider"] = args.provider.lower()
    if overrides:
        settings = Settings(**{**settings.model_dump(), **overrides})
    return settings


def open_workspace(args, cli: CLI, with_provider: bool = False, callbacks: OrchestratorCallbacks = None) -> Workspace:
    settings = build_settings(args)
    provider = None
    if with_provider:
        provider = create_ai_provider(
            provider_type=settings.ai_provider,
            model=getattr(args, "model", None),
            mock_mode=getattr(args, "mock", False),
        )
    return Workspace.open(
        settings,
        ai_provider=provider,
        callbacks=callbacks,
        on_storage_warning=cli.show_warning,
    )


def require_submission(workspace: Workspace, ref: str) -> Submission:
    submission = resolve_submission(workspace.store.snapshot, ref)
    if submission is None:
        raise ExerciseGraderError(f"No submission matches '{ref}'. Use 'list' to see submissions.")
    return submission


def collect_paths(paths: List[str], cli: CLI) -> List[RawInput]:
    """Turn command-line paths into raw inputs, reporting missing ones."""
    inputs = []
    for path_str in paths:
        path = Path(path_str)
        if not path.is_file():
            cli.show_warning(f"File not found: {path_str}")
            continue
        inputs.append(RawInput.from_path(path))
    return inputs


# ==================== COMMANDS ====================

async def command_add(args, cli: CLI) -> int:
    """Ingest image files (picker / drag-drop)."""
    inputs = collect_paths(args.paths, cli)
    if not inputs:
        cli.show_error("No readable file given.")
        return 1

    workspace = open_workspace(args, cli)
    report = await workspace.pipeline.ingest(inputs)
    cli.show_ingested(report.submissions, report.failed_names, report.skipped_names)
    return 0 if report.submissions else 1


async def command_paste(args, cli: CLI) -> int:
    """Ingest image bytes from stdin (clipboard)."""
    data = sys.stdin.buffer.read()
    if not data:
        cli.show_error("Nothing on stdin.", "Pipe an image: cat photo.png | exercise-grader paste")
        return 1

    workspace = open_workspace(args, cli)
    report = await workspace.pipeline.ingest([
        RawInput.from_bytes(data, media_type=args.type, name=args.name)
    ])
    cli.show_ingested(report.submissions, report.failed_names, report.skipped_names)
    return 0 if report.submissions else 1


def command_list(args, cli: CLI) -> int:
    """Show the current work view."""
    workspace = open_workspace(args, cli)
    cli.show_submissions(workspace.store.snapshot)
    return 0


def command_show(args, cli: CLI) -> int:
    """Render one submission's result."""
    workspace = open_workspace(args, cli)
    cli.show_result(require_submission(workspace, args.submission))
    return 0


async def command_grade(args, cli: CLI) -> int:
    """Grade one submission."""
    workspace = open_workspace(args, cli, with_provider=True)
    submission = require_submission(workspace, args.submission)
    workspace.store.select(submission.id)

    with cli.console.status(f"[cyan]Grading {submission.file_name}...[/cyan]"):
        settled = await workspace.orchestrator.grade_submission(submission.id)

    if settled is None:
        cli.show_warning("Submission was deleted during grading.")
        return 1
    cli.show_result(settled)
    return 0 if settled.result is not None else 1


async def command_grade_all(args, cli: CLI) -> int:
    """Grade every pending submission sequentially with live progress."""
    display = BatchProgressDisplay(cli.console)
    callbacks = OrchestratorCallbacks(on_progress=create_batch_progress_callback(display))
    workspace = open_workspace(args, cli, with_provider=True, callbacks=callbacks)

    if not workspace.store.find_pending():
        cli.show_info("Nothing to grade.")
        return 0

    with display:
        report = await workspace.orchestrator.grade_all_pending()

    cli.show_batch_report(report)
    return 0 if not report.failed else 1


def command_delete(args, cli: CLI) -> int:
    workspace = open_workspace(args, cli)
    submission = require_submission(workspace, args.submission)
    workspace.delete(submission.id)
    cli.show_success(f"Deleted {submission.file_name}")
    return 0


def command_rotate(args, cli: CLI) -> int:
    workspace = open_workspace(args, cli)
    submission = require_submission(workspace, args.submission)
    rotated = workspace.rotate(submission.id)
    cli.show_success(f"{rotated.file_name} rotated to {rotated.display_rotation}°")
    return 0


def command_history(args, cli: CLI) -> int:
    workspace = open_workspace(args, cli)
    search = args.search or ""
    cli.show_history(workspace.history(search), search)
    return 0


def command_reset(args, cli: CLI) -> int:
    """Delete everything after confirmation."""
    workspace = open_workspace(args, cli)
    if not args.yes and not cli.confirm_reset():
        cli.show_info("Reset cancelled.")
        return 0
    workspace.reset_all()
    cli.show_success("All submissions deleted.")
    return 0


# ==================== SHELL ====================

SHELL_HELP = """[bold]Commands[/bold]
  add PATH...        add image files
  list               show submissions
  select REF         select a submission
  show [REF]         show a result (default: selected)
  grade [REF]        grade a submission (default: selected)
  grade-all          grade every pending submission
  rotate [REF]       rotate 90° clockwise
  delete REF         delete a submission
  history [TEXT]     switch to history, optionally filtered
  open REF           open a history entry in the workspace
  reset              delete everything
  quit               leave the shell"""


class Shell:
    """
    Interactive session where selection and view mode persist between commands.
    """

    def __init__(self, workspace: Workspace, cli: CLI):
        self.workspace = workspace
        self.cli = cli

    def _target(self, words: List[str]) -> Submission:
        if words:
            return require_submission(self.workspace, words[0])
        selected = self.workspace.selected
        if selected is None:
            raise ExerciseGraderError("No submission selected.")
        return selected

    async def run(self) -> int:
        self.cli.console.print(SHELL_HELP)
        while True:
            prompt = "history" if self.workspace.view_mode == ViewMode.HISTORY else "grader"
            line = await asyncio.to_thread(Prompt.ask, f"[bold cyan]{prompt}[/bold cyan]", console=self.cli.console)
            try:
                words = shlex.split(line)
            except ValueError as e:
                self.cli.show_error(str(e))
                continue
            if not words:
                continue
            if words[0] in ("quit", "exit"):
                return 0
            try:
                await self.dispatch(words[0], words[1:])
            except ExerciseGraderError as e:
                self.cli.show_error(e.message)

    async def dispatch(self, command: str, words: List[str]) -> None:
        workspace = self.workspace

        if command == "add":
            inputs = collect_paths(words, self.cli)
            if inputs:
                report = await workspace.pipeline.ingest(inputs)
                self.cli.show_ingested(report.submissions, report.failed_names, report.skipped_names)
        elif command == "list":
            workspace.show_workspace()
            self.cli.show_submissions(workspace.store.snapshot)
        elif command == "select":
            workspace.store.select(self._target(words).id)
        elif command == "show":
            self.cli.show_result(self._target(words))
        elif command == "grade":
            self._require_orchestrator()
            target = self._target(words)
            workspace.store.select(target.id)
            with self.cli.console.status(f"[cyan]Grading {target.file_name}...[/cyan]"):
                settled = await workspace.orchestrator.grade_submission(target.id)
            if settled is not None:
                self.cli.show_result(settled)
        elif command == "grade-all":
            self._require_orchestrator()
            report = await workspace.orchestrator.grade_all_pending()
            self.cli.show_batch_report(report)
        elif command == "rotate":
            rotated = workspace.rotate(self._target(words).id)
            self.cli.show_success(f"{rotated.file_name} rotated to {rotated.display_rotation}°")
        elif command == "delete":
            if not words:
                raise ExerciseGraderError("delete needs a submission reference.")
            workspace.delete(self._target(words).id)
        elif command == "history":
            workspace.show_history()
            search = " ".join(words)
            self.cli.show_history(workspace.history(search), search)
        elif command == "open":
            if not words:
                raise ExerciseGraderError("open needs a submission reference.")
            self.cli.show_result(workspace.open_from_history(self._target(words).id))
        elif command == "reset":
            if await asyncio.to_thread(self.cli.confirm_reset):
                workspace.reset_all()
                self.cli.show_success("All submissions deleted.")
        elif command == "help":
            self.cli.console.print(SHELL_HELP)
        else:
            self.cli.show_error(f"Unknown command: {command}. Type 'help'.")

    def _require_orchestrator(self) -> None:
        if self.workspace.orchestrator is None:
            raise ExerciseGraderError(
                "Grading unavailable: no API key configured.",
                {"hint": "Set EXERCISE_GRADER_GEMINI_API_KEY or run the shell with --mock"},
            )


async def command_shell(args, cli: CLI) -> int:
    try:
        workspace = open_workspace(args, cli, with_provider=True)
    except ExerciseGraderError as e:
        cli.show_warning(f"{e.message} Grading is disabled for this session.")
        workspace = open_workspace(args, cli)
    return await Shell(workspace, cli).run()


# ==================== ENTRY POINT ====================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exercise-grader",
        description="Exercise grader - AI grading of photographed exercise sheets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add sheets/*.jpg
  cat photo.png | %(prog)s paste
  %(prog)s list
  %(prog)s grade 1
  %(prog)s grade-all
  %(prog)s history --search bai
  %(prog)s shell --mock
        """
    )
    parser.add_argument("--language", choices=["vi", "en", "fr"], help="Grading and message language")
    parser.add_argument("--data-dir", help="Directory holding the saved submissions")
    parser.add_argument("--provider", choices=["gemini", "openai", "openrouter"], help="Grading provider")
    parser.add_argument("--model", help="Override the provider's model")
    parser.add_argument("--mock", action="store_true", help="Return canned results without calling an API")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Add image files")
    add_parser.add_argument("paths", nargs="+", help="Image files")

    paste_parser = subparsers.add_parser("paste", help="Add an image read from stdin")
    paste_parser.add_argument("--name", help="File name (default: time-derived)")
    paste_parser.add_argument("--type", default="image/png", help="Media type (default: image/png)")

    subparsers.add_parser("list", help="List submissions")

    for name, help_text in (
        ("show", "Show a grading result"),
        ("grade", "Grade one submission"),
        ("delete", "Delete a submission"),
        ("rotate", "Rotate a submission 90° clockwise"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("submission", help="Position, id or id prefix")

    subparsers.add_parser("grade-all", help="Grade every pending submission")

    history_parser = subparsers.add_parser("history", help="Show graded submissions")
    history_parser.add_argument("--search", help="Filter by file name")

    reset_parser = subparsers.add_parser("reset", help="Delete all submissions")
    reset_parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    subparsers.add_parser("shell", help="Interactive session")

    return parser


COMMANDS = {
    "add": command_add,
    "paste": command_paste,
    "list": command_list,
    "show": command_show,
    "grade": command_grade,
    "grade-all": command_grade_all,
    "delete": command_delete,
    "rotate": command_rotate,
    "history": command_history,
    "reset": command_reset,
    "shell": command_shell,
}


def main(argv: Optional[List[str]] = None, console: Console = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level, settings.log_file)

    cli = CLI(console=console, language=args.language or settings.language)
    handler = COMMANDS[args.command]

    try:
        if inspect.iscoroutinefunction(handler):
            return asyncio.run(handler(args, cli))
        return handler(args, cli)
    except ExerciseGraderError as e:
        logger.debug(f"Command {args.command} failed: {e}")
        cli.show_error(e.message, e.details.get("hint"))
        return 1
    except KeyboardInterrupt:
        cli.show_warning("Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
