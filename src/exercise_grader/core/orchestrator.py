"""
Grading orchestration.

Drives submissions through the grading lifecycle by calling the external
grading service, one submission at a time or as a sequential batch.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from exercise_grader.core.lifecycle import begin_grading, settle_failure, settle_success
from exercise_grader.core.models import GradingResult, Submission, SubmissionStatus
from exercise_grader.core.store import SubmissionStore
from exercise_grader.prompts.translations import get_message


@dataclass
class OrchestratorCallbacks:
    """Callbacks for grading events (sync or async)."""
    on_progress: Optional[Callable] = None


@dataclass
class BatchReport:
    """Outcome of one grade_all_pending() run."""
    attempted: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # Deleted before or during their turn

    @property
    def total(self) -> int:
        return len(self.attempted) + len(self.skipped)


class GradingOrchestrator:
    """
    Runs grading calls and applies their outcome to the store.

    No timeout, retry or de-duplication happens here: the provider owns
    timeouts and retries, and two concurrent calls for the same id both
    run with the last one to settle winning.

    Usage:
        orchestrator = GradingOrchestrator(store, provider, language="vi")
        await orchestrator.grade_submission(submission_id)
        report = await orchestrator.grade_all_pending()
    """

    def __init__(
        self,
        store: SubmissionStore,
        ai_provider,
        language: str = "vi",
        callbacks: OrchestratorCallbacks = None
    ):
        self.store = store
        self.ai = ai_provider
        self.language = language
        self.callbacks = callbacks or OrchestratorCallbacks()
        self._grading_all = False

    @property
    def is_grading_all(self) -> bool:
        return self._grading_all

    async def _notify_progress(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.callbacks.on_progress:
            result = self.callbacks.on_progress(event_type, data)
            if asyncio.iscoroutine(result):
                await result

    async def _call_service(self, submission: Submission) -> GradingResult:
        image_bytes = submission.image_bytes
        grade = self.ai.grade_exercise
        if inspect.iscoroutinefunction(grade):
            return await grade(image_bytes, submission.mime_type, self.language)
        return await asyncio.to_thread(grade, image_bytes, submission.mime_type, self.language)

    # ==================== SINGLE ====================

    async def grade_submission(self, submission_id: str) -> Optional[Submission]:
        """
        Grade one submission.

        Returns:
            The settled submission, or None if it does not exist (before
            the call or after it, when deleted meanwhile)
        """
        started = self.store.update(submission_id, begin_grading)
        if started is None:
            logger.debug(f"Grade ignored, submission {submission_id} not found")
            return None

        logger.info(f"Grading {started.file_name} ({submission_id[:8]})")
        await self._notify_progress("grading_started", {
            "submission_id": submission_id,
            "file_name": started.file_name,
        })

        try:
            result = await self._call_service(started)
        except Exception as e:
            logger.exception(f"Grading failed for {started.file_name} ({submission_id[:8]}): {e}")
            message = get_message("grading_failed", self.language)
            settled = self.store.update(
                submission_id,
                lambda s: settle_failure(self._regrading(s), message)
            )
            await self._notify_progress("grading_failed", {
                "submission_id": submission_id,
                "file_name": started.file_name,
                "error": message,
            })
            return settled

        settled = self.store.update(
            submission_id,
            lambda s: settle_success(self._regrading(s), result)
        )
        if settled is None:
            logger.info(f"Submission {submission_id[:8]} was deleted during grading, result dropped")
        else:
            logger.info(f"Graded {settled.file_name}: {result.score:g}/10")

        await self._notify_progress("grading_succeeded", {
            "submission_id": submission_id,
            "file_name": started.file_name,
            "score": result.score,
        })
        return settled

    @staticmethod
    def _regrading(submission: Submission) -> Submission:
        # A concurrent call for the same id may have settled it first
        if submission.status != SubmissionStatus.GRADING:
            return begin_grading(submission)
        return submission

    # ==================== BATCH ====================

    async def grade_all_pending(self) -> BatchReport:
        """
        Grade every idle or errored submission, strictly one after another.

        The eligible set is captured when the call starts; item failures
        never stop the batch.
        """
        report = BatchReport()
        if self._grading_all:
            logger.warning("Batch grading already running, request ignored")
            return report

        self._grading_all = True
        try:
            pending_ids = [s.id for s in self.store.find_pending()]
            logger.info(f"Batch grading {len(pending_ids)} pending submission(s)")
            await self._notify_progress("batch_started", {"total": len(pending_ids)})

            for index, submission_id in enumerate(pending_ids, 1):
                settled = await self.grade_submission(submission_id)

                if settled is None:
                    report.skipped.append(submission_id)
                    outcome = "skipped"
                else:
                    report.attempted.append(submission_id)
                    if settled.status == SubmissionStatus.SUCCESS:
                        report.succeeded.append(submission_id)
                        outcome = "success"
                    else:
                        report.failed.append(submission_id)
                        outcome = "error"

                await self._notify_progress("batch_item", {
                    "index": index,
                    "total": len(pending_ids),
                    "submission_id": submission_id,
                    "outcome": outcome,
                })

            await self._notify_progress("batch_completed", {
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
                "skipped": len(report.skipped),
            })
        finally:
            self._grading_all = False

        logger.info(
            f"Batch done: {len(report.succeeded)} graded, "
            f"{len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report
