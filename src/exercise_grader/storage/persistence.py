"""
Submission persistence adapter.

Loads the whole collection once at startup and saves the whole collection
after every change. Durability degrades gracefully: a corrupt record is
discarded, a full disk is a warning, and the in-memory store stays the
source of truth for the session either way.
"""

from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from exercise_grader.core.exceptions import SerializationError, StorageCapacityError, StorageError
from exercise_grader.core.models import Submission, SubmissionStatus
from exercise_grader.core.store import StoreSnapshot, SubmissionStore
from exercise_grader.prompts.translations import get_message
from exercise_grader.storage.file_store import KeyValueFileStore


def normalize_record(record: Dict[str, Any], language: str) -> Dict[str, Any]:
    """
    Repair a persisted record so it satisfies the status invariants.

    - grading: the call died with the previous process; fall back to the
      stale result if one was parked, otherwise idle
    - success without result: idle
    - error without message: generic grading failure
    - stray result/errorMessage on other statuses: dropped
    """
    data = dict(record)
    status = data.get("status") or SubmissionStatus.IDLE.value
    previous = data.pop("previousResult", None) or data.pop("previous_result", None)

    if status == SubmissionStatus.GRADING.value:
        status = SubmissionStatus.SUCCESS.value if previous else SubmissionStatus.IDLE.value
        if previous:
            data["result"] = previous

    if status == SubmissionStatus.SUCCESS.value and not data.get("result"):
        status = SubmissionStatus.IDLE.value
    if status == SubmissionStatus.ERROR.value and not data.get("errorMessage"):
        data["errorMessage"] = get_message("grading_failed", language)

    if status != SubmissionStatus.SUCCESS.value:
        data["result"] = None
    if status != SubmissionStatus.ERROR.value:
        data["errorMessage"] = None

    data.pop("error_message", None)
    data["status"] = status
    if data.get("rotation") is None:
        data["rotation"] = 0
    return data


class SubmissionPersistence:
    """
    Bridges the SubmissionStore and the key-value file store.

    Usage:
        persistence = SubmissionPersistence(KeyValueFileStore("data"))
        store.hydrate(persistence.load())
        persistence.attach(store)
    """

    def __init__(
        self,
        backend: KeyValueFileStore,
        key: str = "math_app_submissions",
        language: str = "vi",
        on_warning: Optional[Callable[[str], None]] = None
    ):
        self.backend = backend
        self.key = key
        self.language = language
        self.on_warning = on_warning
        self.is_loaded = False
        self.last_save_failed = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ==================== LOAD ====================

    def load(self) -> List[Submission]:
        """
        Load the persisted collection.

        Never raises for bad data: a corrupt value is discarded and an
        empty collection is returned.
        """
        try:
            data = self.backend.get(self.key)
        except SerializationError as e:
            logger.warning(f"Discarding corrupt submission history: {e}")
            self._discard_corrupt()
            data = None
        except OSError as e:
            logger.warning(f"Could not read submission history: {e}")
            data = None

        if data is None:
            submissions: List[Submission] = []
        elif not isinstance(data, list):
            logger.warning(f"Discarding submission history with unexpected type {type(data).__name__}")
            self._discard_corrupt()
            submissions = []
        else:
            submissions = self._parse_records(data)

        self.is_loaded = True
        logger.info(f"Loaded {len(submissions)} submission(s) from storage")
        return submissions

    def _parse_records(self, records: List[Any]) -> List[Submission]:
        submissions: List[Submission] = []
        seen_ids = set()

        for index, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning(f"Skipping persisted record #{index}: not an object")
                continue
            try:
                submission = Submission.model_validate(normalize_record(record, self.language))
            except ValidationError as e:
                logger.warning(f"Skipping persisted record #{index}: {e.error_count()} validation error(s)")
                continue
            if submission.id in seen_ids:
                logger.warning(f"Skipping persisted record #{index}: duplicate id {submission.id}")
                continue
            seen_ids.add(submission.id)
            submissions.append(submission)

        return submissions

    def _discard_corrupt(self) -> None:
        try:
            self.backend.remove(self.key)
        except (OSError, StorageError) as e:
            logger.warning(f"Could not remove corrupt submission history: {e}")

    # ==================== SAVE ====================

    def save(self, submissions) -> bool:
        """
        Save the full collection.

        Returns:
            True if saved, False if skipped (not loaded yet) or failed
        """
        if not self.is_loaded:
            logger.debug("Save skipped, initial load not completed")
            return False

        payload = [s.model_dump(mode="json", by_alias=True) for s in submissions]
        try:
            self.backend.set(self.key, payload)
        except StorageCapacityError as e:
            self._warn(f"Storage quota exceeded. Could not save history. ({e})")
            return False
        except (OSError, StorageError) as e:
            self._warn(f"Could not save history: {e}")
            return False

        self.last_save_failed = False
        return True

    def _warn(self, message: str) -> None:
        self.last_save_failed = True
        logger.warning(message)
        if self.on_warning:
            self.on_warning(get_message("storage_full", self.language))

    def clear(self) -> bool:
        """
        Remove the persisted record (reset all).

        Returns:
            True if removed or absent, False if removal failed
        """
        try:
            self.backend.remove(self.key)
        except (OSError, StorageError) as e:
            logger.warning(f"Could not clear submission history: {e}")
            if self.on_warning:
                self.on_warning(get_message("storage_clear_failed", self.language))
            return False

        logger.info("Cleared persisted submission history")
        return True

    # ==================== STORE BINDING ====================

    def attach(self, store: SubmissionStore) -> None:
        """Save after every change of the collection."""
        self.detach()
        self._unsubscribe = store.subscribe(self._on_change)

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, previous: StoreSnapshot, current: StoreSnapshot) -> None:
        # Selection-only changes are not persisted
        if previous.submissions is current.submissions:
            return
        self.save(current.submissions)
