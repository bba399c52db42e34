"""
In-memory submission store.

Holds one immutable, versioned snapshot of the ordered submission
collection plus the selected id. Every mutation derives a new snapshot
from the current one and notifies subscribers; readers never observe a
partial update.

Mutations addressed by id are total: an unknown id is a silent no-op,
since async settlements routinely race with user deletions.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Set, Tuple

from loguru import logger

from exercise_grader.core.exceptions import SubmissionNotFoundError
from exercise_grader.core.lifecycle import rotate as rotate_submission
from exercise_grader.core.models import Submission


@dataclass(frozen=True)
class StoreSnapshot:
    """
    Immutable view of the store.

    Usage:
        snapshot = store.snapshot
        for submission in snapshot.submissions: ...
    """
    submissions: Tuple[Submission, ...] = ()
    selected_id: Optional[str] = None
    version: int = 0

    def get(self, submission_id: Optional[str]) -> Optional[Submission]:
        if submission_id is None:
            return None
        for submission in self.submissions:
            if submission.id == submission_id:
                return submission
        return None

    @property
    def selected(self) -> Optional[Submission]:
        return self.get(self.selected_id)

    @property
    def ids(self) -> List[str]:
        return [s.id for s in self.submissions]

    def __len__(self) -> int:
        return len(self.submissions)


Listener = Callable[[StoreSnapshot, StoreSnapshot], None]
Updater = Callable[[Submission], Submission]


class SubmissionStore:
    """Owner of the submission collection and the current selection."""

    def __init__(self, submissions: Iterable[Submission] = ()):
        initial = tuple(submissions)
        self._snapshot = StoreSnapshot(submissions=initial)
        self._issued_ids: Set[str] = {s.id for s in initial}
        self._listeners: List[Listener] = []

    # ==================== READ ====================

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @property
    def submissions(self) -> Tuple[Submission, ...]:
        return self._snapshot.submissions

    @property
    def selected_id(self) -> Optional[str]:
        return self._snapshot.selected_id

    def get(self, submission_id: str) -> Optional[Submission]:
        return self._snapshot.get(submission_id)

    def find_pending(self) -> List[Submission]:
        """Submissions eligible for grade-all (idle or error), in order."""
        return [s for s in self._snapshot.submissions if s.is_pending]

    def is_known_id(self, submission_id: str) -> bool:
        """True if the id was ever issued in this store, deleted or not."""
        return submission_id in self._issued_ids

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with (previous, current) after every change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, submissions: Tuple[Submission, ...], selected_id: Optional[str]) -> StoreSnapshot:
        previous = self._snapshot
        self._snapshot = StoreSnapshot(
            submissions=submissions,
            selected_id=selected_id,
            version=previous.version + 1,
        )
        for listener in list(self._listeners):
            listener(previous, self._snapshot)
        return self._snapshot

    # ==================== MUTATIONS ====================

    def hydrate(self, submissions: Iterable[Submission]) -> StoreSnapshot:
        """
        Replace the collection with loaded data (startup only).

        Selects the most recent submission if nothing is selected yet.
        """
        loaded = tuple(submissions)
        self._issued_ids.update(s.id for s in loaded)
        selected = self._snapshot.selected_id
        if selected is None or all(s.id != selected for s in loaded):
            selected = loaded[-1].id if loaded else None
        return self._commit(loaded, selected)

    def append_batch(self, new_submissions: Iterable[Submission]) -> StoreSnapshot:
        """Append a batch of submissions in one update."""
        batch = tuple(new_submissions)
        if not batch:
            return self._snapshot

        seen: Set[str] = set()
        for submission in batch:
            if submission.id in self._issued_ids or submission.id in seen:
                raise ValueError(f"Duplicate submission id: {submission.id}")
            seen.add(submission.id)

        self._issued_ids.update(seen)
        logger.debug(f"Appending {len(batch)} submission(s) to store")
        return self._commit(self._snapshot.submissions + batch, self._snapshot.selected_id)

    def update(self, submission_id: str, updater: Updater) -> Optional[Submission]:
        """
        Apply a transition to one submission.

        Args:
            submission_id: Target id
            updater: Pure function returning the new submission

        Returns:
            The updated submission, or None if the id is absent
        """
        current = self._snapshot.get(submission_id)
        if current is None:
            logger.debug(f"Update ignored, submission {submission_id} no longer exists")
            return None

        updated = updater(current)
        if updated is current:
            return current

        submissions = tuple(
            updated if s.id == submission_id else s
            for s in self._snapshot.submissions
        )
        self._commit(submissions, self._snapshot.selected_id)
        return updated

    def rotate(self, submission_id: str, degrees: int = 90) -> Optional[Submission]:
        return self.update(submission_id, lambda s: rotate_submission(s, degrees))

    def delete(self, submission_id: str) -> bool:
        """
        Delete one submission.

        Clears the selection if it pointed at the deleted item; never
        moves the selection elsewhere.
        """
        if self._snapshot.get(submission_id) is None:
            return False

        submissions = tuple(s for s in self._snapshot.submissions if s.id != submission_id)
        selected = self._snapshot.selected_id
        if selected == submission_id:
            selected = None
        self._commit(submissions, selected)
        return True

    def select(self, submission_id: Optional[str]) -> StoreSnapshot:
        """Select a submission, or clear the selection with None."""
        if submission_id is not None and self._snapshot.get(submission_id) is None:
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        if submission_id == self._snapshot.selected_id:
            return self._snapshot
        return self._commit(self._snapshot.submissions, submission_id)

    def reset_all(self) -> StoreSnapshot:
        """Drop every submission and the selection. Issued ids stay reserved."""
        return self._commit((), None)
