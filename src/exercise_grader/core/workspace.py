"""
Workspace coordination.

Thin layer between the core components and whatever renders them: it
owns the view mode, reacts to ingestion events, answers the history query
and wires startup (load, hydrate, attach persistence).
"""

from enum import Enum
from typing import List, Optional

from loguru import logger

from exercise_grader.config.settings import Settings, get_settings
from exercise_grader.core.models import Submission
from exercise_grader.core.orchestrator import GradingOrchestrator, OrchestratorCallbacks
from exercise_grader.core.store import SubmissionStore
from exercise_grader.ingestion.pipeline import BatchIngested, IngestionPipeline
from exercise_grader.storage.file_store import KeyValueFileStore
from exercise_grader.storage.persistence import SubmissionPersistence


class ViewMode(str, Enum):
    """Which view the user is looking at."""
    WORKSPACE = "workspace"  # Upload and grade
    HISTORY = "history"      # Past results


def filter_history(submissions, search: str = "") -> List[Submission]:
    """
    Settled submissions matching a name filter, newest first.

    The filter is a case-insensitive substring match on the file name.
    """
    needle = search.strip().lower()
    matches = [
        s for s in submissions
        if s.is_settled and needle in s.file_name.lower()
    ]
    return sorted(matches, key=lambda s: s.uploaded_at, reverse=True)


class Workspace:
    """
    One user session: store, persistence, ingestion and grading.

    Usage:
        workspace = Workspace.open(settings, ai_provider=provider)
        await workspace.pipeline.ingest(inputs)
        await workspace.orchestrator.grade_all_pending()
    """

    def __init__(
        self,
        store: SubmissionStore,
        persistence: SubmissionPersistence,
        pipeline: IngestionPipeline,
        orchestrator: Optional[GradingOrchestrator] = None
    ):
        self.store = store
        self.persistence = persistence
        self.pipeline = pipeline
        self.orchestrator = orchestrator
        self.view_mode = ViewMode.WORKSPACE

        self.pipeline.subscribe(self._on_batch_ingested)

    @classmethod
    def open(
        cls,
        settings: Settings = None,
        ai_provider=None,
        callbacks: OrchestratorCallbacks = None,
        on_storage_warning=None
    ) -> "Workspace":
        """
        Build and start a workspace from settings.

        Loads persisted submissions before anything else can touch the
        store, then starts saving on every change.
        """
        settings = settings or get_settings()

        store = SubmissionStore()
        backend = KeyValueFileStore(settings.data_dir, quota_bytes=settings.storage_quota_bytes)
        persistence = SubmissionPersistence(
            backend,
            key=settings.storage_key,
            language=settings.language,
            on_warning=on_storage_warning,
        )
        pipeline = IngestionPipeline(store, language=settings.language)
        orchestrator = None
        if ai_provider is not None:
            orchestrator = GradingOrchestrator(store, ai_provider, settings.language, callbacks)

        workspace = cls(store, persistence, pipeline, orchestrator)
        workspace.start()
        return workspace

    def start(self) -> None:
        """Load, hydrate and attach persistence (once)."""
        if self.persistence.is_loaded:
            return
        self.store.hydrate(self.persistence.load())
        self.persistence.attach(self.store)

    # ==================== EVENTS ====================

    def _on_batch_ingested(self, event: BatchIngested) -> None:
        if event.last_id is None:
            return
        self.store.select(event.last_id)
        self.view_mode = ViewMode.WORKSPACE

    # ==================== VIEW ====================

    @property
    def selected(self) -> Optional[Submission]:
        return self.store.snapshot.selected

    def show_history(self) -> None:
        self.view_mode = ViewMode.HISTORY

    def show_workspace(self) -> None:
        self.view_mode = ViewMode.WORKSPACE

    def open_from_history(self, submission_id: str) -> Submission:
        """Select a past submission and go back to the workspace view."""
        self.store.select(submission_id)
        self.view_mode = ViewMode.WORKSPACE
        return self.store.get(submission_id)

    def history(self, search: str = "") -> List[Submission]:
        return filter_history(self.store.submissions, search)

    # ==================== ACTIONS ====================

    def delete(self, submission_id: str) -> bool:
        return self.store.delete(submission_id)

    def rotate(self, submission_id: str) -> Optional[Submission]:
        return self.store.rotate(submission_id)

    def reset_all(self) -> None:
        """
        Delete every submission and the persisted record.

        Confirmation is the caller's job; this cannot be undone.
        """
        self.store.reset_all()
        self.persistence.clear()
        self.view_mode = ViewMode.WORKSPACE
        logger.info("Workspace reset")
