"""
Submission state machine.

    idle ──grade──▶ grading ──ok──▶ success
    error ─retry─▶    │    ──fail─▶ error
    success ─regrade─▶┘

Every transition is a pure function returning a new Submission.
"""

from typing import Dict, FrozenSet

from exercise_grader.core.exceptions import InvalidTransitionError
from exercise_grader.core.models import GradingResult, Submission, SubmissionStatus


ALLOWED_TRANSITIONS: Dict[SubmissionStatus, FrozenSet[SubmissionStatus]] = {
    SubmissionStatus.IDLE: frozenset({SubmissionStatus.GRADING}),
    SubmissionStatus.ERROR: frozenset({SubmissionStatus.GRADING}),
    SubmissionStatus.SUCCESS: frozenset({SubmissionStatus.GRADING}),
    SubmissionStatus.GRADING: frozenset({
        SubmissionStatus.GRADING,
        SubmissionStatus.SUCCESS,
        SubmissionStatus.ERROR,
    }),
}


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _check(submission: Submission, target: SubmissionStatus) -> None:
    if not can_transition(submission.status, target):
        raise InvalidTransitionError(
            f"Cannot move submission from {submission.status.value} to {target.value}",
            {"submission_id": submission.id},
        )


def begin_grading(submission: Submission) -> Submission:
    """
    Enter the grading state.

    A former success keeps its result in previous_result until the new
    attempt settles. Re-entering while already grading changes nothing.
    """
    _check(submission, SubmissionStatus.GRADING)

    if submission.status == SubmissionStatus.GRADING:
        return submission

    previous = submission.result if submission.status == SubmissionStatus.SUCCESS else None
    return submission.evolve(
        status=SubmissionStatus.GRADING,
        result=None,
        error_message=None,
        previous_result=previous,
    )


def settle_success(submission: Submission, result: GradingResult) -> Submission:
    """Record a successful grading call."""
    _check(submission, SubmissionStatus.SUCCESS)
    return submission.evolve(
        status=SubmissionStatus.SUCCESS,
        result=result,
        error_message=None,
        previous_result=None,
    )


def settle_failure(submission: Submission, message: str) -> Submission:
    """Record a failed grading call with a user-facing message."""
    _check(submission, SubmissionStatus.ERROR)
    return submission.evolve(
        status=SubmissionStatus.ERROR,
        result=None,
        error_message=message,
        previous_result=None,
    )


def rotate(submission: Submission, degrees: int = 90) -> Submission:
    """Rotate the display clockwise. Allowed in every status."""
    return submission.evolve(rotation=submission.rotation + degrees)
