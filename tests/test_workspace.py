"""
Tests for the workspace coordinator (startup, selection, history, reset).
"""

import asyncio

from conftest import FakeProvider, make_png, make_result, make_submission
from exercise_grader.core.lifecycle import begin_grading, settle_failure, settle_success
from exercise_grader.core.workspace import ViewMode, Workspace, filter_history
from exercise_grader.ingestion.sources import RawInput


def test_open_empty_workspace(settings):
    workspace = Workspace.open(settings)

    assert workspace.store.submissions == ()
    assert workspace.selected is None
    assert workspace.view_mode == ViewMode.WORKSPACE
    assert workspace.orchestrator is None


def test_ingest_selects_last_decoded_and_switches_view(settings):
    workspace = Workspace.open(settings)
    workspace.show_history()

    report = asyncio.run(workspace.pipeline.ingest([
        RawInput.from_bytes(make_png(), name="a.png"),
        RawInput.from_bytes(make_png(), name="b.png"),
    ]))

    assert workspace.selected.id == report.ids[-1]
    assert workspace.view_mode == ViewMode.WORKSPACE


def test_restart_restores_and_selects_last(settings):
    first = Workspace.open(settings)
    asyncio.run(first.pipeline.ingest([
        RawInput.from_bytes(make_png(), name="a.png"),
        RawInput.from_bytes(make_png(), name="b.png"),
    ]))
    first.store.select(first.store.submissions[0].id)

    second = Workspace.open(settings)

    assert second.store.snapshot.ids == first.store.snapshot.ids
    assert second.selected.id == first.store.submissions[-1].id


def test_grading_result_survives_restart(settings):
    workspace = Workspace.open(settings, ai_provider=FakeProvider([make_result(9)]))
    report = asyncio.run(workspace.pipeline.ingest([RawInput.from_bytes(make_png(), name="a.png")]))
    asyncio.run(workspace.orchestrator.grade_submission(report.ids[0]))

    reopened = Workspace.open(settings)

    assert reopened.store.get(report.ids[0]).result.score == 9


def test_delete_selected_with_others_remaining(settings):
    workspace = Workspace.open(settings)
    report = asyncio.run(workspace.pipeline.ingest([
        RawInput.from_bytes(make_png(), name=f"{name}.png") for name in "abc"
    ]))

    workspace.delete(workspace.selected.id)

    assert workspace.selected is None
    assert len(workspace.store.submissions) == 2
    assert workspace.store.snapshot.ids == report.ids[:2]


def test_history_filters_and_sorts():
    old = settle_success(begin_grading(make_submission("Bai_lam_1.png", uploaded_at=1000)), make_result(5))
    new = settle_failure(begin_grading(make_submission("bai_lam_2.png", uploaded_at=2000)), "failed")
    idle = make_submission("bai_lam_3.png", uploaded_at=3000)
    other = settle_success(begin_grading(make_submission("hw.png", uploaded_at=4000)), make_result(9))

    history = filter_history([old, new, idle, other], "BAI")

    assert [s.file_name for s in history] == ["bai_lam_2.png", "Bai_lam_1.png"]
    assert [s.file_name for s in filter_history([old, new, idle, other])] == [
        "hw.png", "bai_lam_2.png", "Bai_lam_1.png",
    ]


def test_open_from_history(settings):
    workspace = Workspace.open(settings)
    report = asyncio.run(workspace.pipeline.ingest([
        RawInput.from_bytes(make_png(), name="a.png"),
        RawInput.from_bytes(make_png(), name="b.png"),
    ]))
    workspace.show_history()

    opened = workspace.open_from_history(report.ids[0])

    assert opened.id == report.ids[0]
    assert workspace.selected.id == report.ids[0]
    assert workspace.view_mode == ViewMode.WORKSPACE


def test_reset_all_clears_store_and_storage(settings):
    workspace = Workspace.open(settings)
    asyncio.run(workspace.pipeline.ingest([RawInput.from_bytes(make_png(), name="a.png")]))

    workspace.reset_all()

    assert workspace.store.submissions == ()
    assert not workspace.persistence.backend.exists(settings.storage_key)
    assert Workspace.open(settings).store.submissions == ()


def test_reset_all_survives_storage_failure(settings, monkeypatch):
    warnings = []
    workspace = Workspace.open(settings, on_storage_warning=warnings.append)
    asyncio.run(workspace.pipeline.ingest([RawInput.from_bytes(make_png(), name="a.png")]))

    def failing_remove(key):
        raise OSError("read-only file system")

    monkeypatch.setattr(workspace.persistence.backend, "remove", failing_remove)

    workspace.reset_all()

    assert workspace.store.submissions == ()
    assert workspace.view_mode == ViewMode.WORKSPACE
    assert len(warnings) == 1


def test_ids_unique_after_delete_then_ingest(settings):
    workspace = Workspace.open(settings)
    first = asyncio.run(workspace.pipeline.ingest([RawInput.from_bytes(make_png(), name="a.png")]))
    workspace.delete(first.ids[0])

    second = asyncio.run(workspace.pipeline.ingest([RawInput.from_bytes(make_png(), name="a.png")]))

    assert second.ids[0] != first.ids[0]
