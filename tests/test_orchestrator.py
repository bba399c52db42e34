"""
Tests for the grading orchestrator.
"""

import asyncio

import pytest

from conftest import FakeProvider, make_png, make_result, make_submission
from exercise_grader.core.exceptions import APIConnectionError
from exercise_grader.core.lifecycle import begin_grading, settle_failure, settle_success
from exercise_grader.core.models import SubmissionStatus, build_data_uri
from exercise_grader.core.orchestrator import GradingOrchestrator, OrchestratorCallbacks
from exercise_grader.core.store import SubmissionStore

GRADING_FAILED_VI = "Không thể chấm bài. Vui lòng thử lại."


@pytest.fixture
def store():
    return SubmissionStore()


def test_grade_success(store):
    submission = make_submission()
    store.append_batch([submission])
    provider = FakeProvider([make_result(9)])

    settled = asyncio.run(GradingOrchestrator(store, provider).grade_submission(submission.id))

    assert settled.status == SubmissionStatus.SUCCESS
    assert store.get(submission.id).result.score == 9
    assert provider.calls[0]["mime_type"] == "image/png"
    assert provider.calls[0]["language"] == "vi"
    assert provider.calls[0]["bytes"] == submission.image_bytes


def test_grade_failure_stores_translated_message(store, failing_provider):
    submission = make_submission()
    store.append_batch([submission])

    asyncio.run(GradingOrchestrator(store, failing_provider).grade_submission(submission.id))

    failed = store.get(submission.id)
    assert failed.status == SubmissionStatus.ERROR
    assert failed.error_message == GRADING_FAILED_VI
    assert failed.result is None


def test_grade_failure_language(store, failing_provider):
    submission = make_submission()
    store.append_batch([submission])

    asyncio.run(GradingOrchestrator(store, failing_provider, language="en").grade_submission(submission.id))

    assert store.get(submission.id).error_message == "Could not grade this sheet. Please try again."


def test_grade_unknown_id_is_noop(store):
    provider = FakeProvider()

    assert asyncio.run(GradingOrchestrator(store, provider).grade_submission("missing")) is None
    assert provider.calls == []


def test_corrupt_payload_becomes_grading_error(store):
    submission = make_submission(image_url="data:image/png;base64,@@@")
    store.append_batch([submission])
    provider = FakeProvider()

    asyncio.run(GradingOrchestrator(store, provider).grade_submission(submission.id))

    assert store.get(submission.id).status == SubmissionStatus.ERROR
    assert provider.calls == []


def test_submission_is_grading_during_call(store):
    submission = make_submission()
    store.append_batch([submission])
    seen = []

    class ObservingProvider:
        async def grade_exercise(self, image_bytes, mime_type, language):
            seen.append(store.get(submission.id).status)
            return make_result()

    asyncio.run(GradingOrchestrator(store, ObservingProvider()).grade_submission(submission.id))

    assert seen == [SubmissionStatus.GRADING]


def test_regrade_never_stuck(store):
    graded = settle_success(begin_grading(make_submission("a.png")), make_result(4))
    failed = settle_failure(begin_grading(make_submission("b.png")), "failed")
    store.append_batch([graded, failed])
    orchestrator = GradingOrchestrator(store, FakeProvider([make_result(9), APIConnectionError("down")]))

    asyncio.run(orchestrator.grade_submission(graded.id))
    asyncio.run(orchestrator.grade_submission(failed.id))

    assert store.get(graded.id).status == SubmissionStatus.SUCCESS
    assert store.get(graded.id).result.score == 9
    assert store.get(graded.id).previous_result is None
    assert store.get(failed.id).status == SubmissionStatus.ERROR


def test_deleted_during_call_is_noop(store):
    submission = make_submission()
    store.append_batch([submission])

    class DeletingProvider:
        async def grade_exercise(self, image_bytes, mime_type, language):
            store.delete(submission.id)
            return make_result()

    settled = asyncio.run(GradingOrchestrator(store, DeletingProvider()).grade_submission(submission.id))

    assert settled is None
    assert store.get(submission.id) is None
    assert len(store.submissions) == 0


def test_concurrent_grades_last_settle_wins(store):
    submission = make_submission()
    store.append_batch([submission])

    class TwoSpeedProvider:
        def __init__(self):
            self.count = 0

        async def grade_exercise(self, image_bytes, mime_type, language):
            self.count += 1
            if self.count == 1:
                await asyncio.sleep(0.05)
                return make_result(3)
            return make_result(9)

    orchestrator = GradingOrchestrator(store, TwoSpeedProvider())

    async def run_both():
        await asyncio.gather(
            orchestrator.grade_submission(submission.id),
            orchestrator.grade_submission(submission.id),
        )

    asyncio.run(run_both())

    final = store.get(submission.id)
    assert final.status == SubmissionStatus.SUCCESS
    assert final.result.score == 3


def test_batch_grades_only_pending_in_order(store):
    a = make_submission("a.png", image_url=build_data_uri(make_png("red"), "image/png"))
    b = settle_failure(
        begin_grading(make_submission("b.png", image_url=build_data_uri(make_png("blue"), "image/png"))),
        "failed",
    )
    c = settle_success(begin_grading(make_submission("c.png")), make_result(7))
    store.append_batch([a, b, c])
    calls = []

    class SequenceProvider:
        async def grade_exercise(self, image_bytes, mime_type, language):
            current = "a" if image_bytes == a.image_bytes else "b"
            if current == "b":
                calls.append(("a settled", store.get(a.id).status))
            calls.append(current)
            await asyncio.sleep(0)
            return make_result()

    report = asyncio.run(GradingOrchestrator(store, SequenceProvider()).grade_all_pending())

    assert calls == ["a", ("a settled", SubmissionStatus.SUCCESS), "b"]
    assert report.attempted == [a.id, b.id]
    assert report.succeeded == [a.id, b.id]
    assert store.get(c.id).result.score == 7


def test_batch_continues_after_failure(store):
    a, b = make_submission("a.png"), make_submission("b.png")
    store.append_batch([a, b])
    provider = FakeProvider([APIConnectionError("down"), make_result(8)])

    report = asyncio.run(GradingOrchestrator(store, provider).grade_all_pending())

    assert report.failed == [a.id]
    assert report.succeeded == [b.id]
    assert len(provider.calls) == 2


def test_batch_skips_deleted_items(store):
    a, b = make_submission("a.png"), make_submission("b.png")
    store.append_batch([a, b])

    class DeleteNextProvider:
        async def grade_exercise(self, image_bytes, mime_type, language):
            store.delete(b.id)
            return make_result()

    report = asyncio.run(GradingOrchestrator(store, DeleteNextProvider()).grade_all_pending())

    assert report.succeeded == [a.id]
    assert report.skipped == [b.id]


def test_empty_batch_toggles_flag(store):
    flags = []
    orchestrator = None

    def on_progress(event_type, data):
        flags.append((event_type, orchestrator.is_grading_all))

    provider = FakeProvider()
    orchestrator = GradingOrchestrator(store, provider, callbacks=OrchestratorCallbacks(on_progress=on_progress))

    report = asyncio.run(orchestrator.grade_all_pending())

    assert flags == [("batch_started", True), ("batch_completed", True)]
    assert not orchestrator.is_grading_all
    assert report.total == 0
    assert provider.calls == []


def test_flag_cleared_when_callback_fails(store):
    store.append_batch([make_submission()])

    def on_progress(event_type, data):
        if event_type == "batch_item":
            raise RuntimeError("display crashed")

    orchestrator = GradingOrchestrator(store, FakeProvider(), callbacks=OrchestratorCallbacks(on_progress=on_progress))

    with pytest.raises(RuntimeError):
        asyncio.run(orchestrator.grade_all_pending())

    assert not orchestrator.is_grading_all


def test_progress_events(store):
    store.append_batch([make_submission()])
    events = []

    async def on_progress(event_type, data):
        events.append(event_type)

    orchestrator = GradingOrchestrator(store, FakeProvider(), callbacks=OrchestratorCallbacks(on_progress=on_progress))
    asyncio.run(orchestrator.grade_all_pending())

    assert events == ["batch_started", "grading_started", "grading_succeeded", "batch_item", "batch_completed"]
