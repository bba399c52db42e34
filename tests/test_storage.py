"""
Tests for the file store and the submission persistence adapter.
"""

import pytest

from conftest import make_result, make_submission
from exercise_grader.core.exceptions import SerializationError, StorageCapacityError, StorageError
from exercise_grader.core.lifecycle import begin_grading, settle_success
from exercise_grader.core.models import SubmissionStatus
from exercise_grader.core.store import SubmissionStore
from exercise_grader.storage.file_store import KeyValueFileStore
from exercise_grader.storage.persistence import SubmissionPersistence, normalize_record

KEY = "math_app_submissions"


@pytest.fixture
def backend(tmp_path):
    return KeyValueFileStore(str(tmp_path))


@pytest.fixture
def persistence(backend):
    return SubmissionPersistence(backend, key=KEY, language="vi")


# ==================== FILE STORE ====================

def test_file_store_round_trip(backend, tmp_path):
    written = backend.set("k", {"a": [1, 2]})

    assert backend.get("k") == {"a": [1, 2]}
    assert written == (tmp_path / "k.json").stat().st_size
    assert not (tmp_path / "k.tmp").exists()


def test_file_store_missing_key(backend):
    assert backend.get("missing") is None
    assert backend.remove("missing") is False


def test_file_store_rejects_bad_keys(backend):
    with pytest.raises(StorageError):
        backend.set("../escape", 1)


def test_file_store_invalid_json(backend, tmp_path):
    (tmp_path / "k.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(SerializationError):
        backend.get("k")


def test_file_store_invalid_utf8(backend, tmp_path):
    (tmp_path / "k.json").write_bytes(b"\xff\xfe[garbage")

    with pytest.raises(SerializationError):
        backend.get("k")


def test_file_store_quota(tmp_path):
    small = KeyValueFileStore(str(tmp_path), quota_bytes=10)

    with pytest.raises(StorageCapacityError):
        small.set("k", "x" * 100)
    assert not small.exists("k")


# ==================== PERSISTENCE ====================

def test_load_missing_file_is_empty(persistence):
    assert persistence.load() == []
    assert persistence.is_loaded


def test_save_then_load_round_trip(backend, persistence):
    graded = settle_success(begin_grading(make_submission("b.png")), make_result(7))
    originals = [make_submission("a.png", rotation=270), graded]
    persistence.load()
    assert persistence.save(originals)

    reloaded = SubmissionPersistence(backend, key=KEY).load()

    assert reloaded == originals


def test_persisted_shape_is_camel_case(backend, persistence):
    persistence.load()
    persistence.save([make_submission("a.png")])

    record = backend.get(KEY)[0]
    assert {"id", "fileName", "imageUrl", "status", "uploadedAt", "rotation"} <= set(record)


def test_save_before_load_is_skipped(backend, persistence):
    assert persistence.save([make_submission()]) is False
    assert not backend.exists(KEY)


def test_corrupt_json_is_discarded(backend, persistence, tmp_path):
    (tmp_path / f"{KEY}.json").write_text("[{broken", encoding="utf-8")

    assert persistence.load() == []
    assert not backend.exists(KEY)


def test_invalid_utf8_history_is_discarded(backend, persistence, tmp_path):
    (tmp_path / f"{KEY}.json").write_bytes(b"\xff\xfe[garbage")

    assert persistence.load() == []
    assert not backend.exists(KEY)


def test_non_list_payload_is_discarded(backend, persistence):
    backend.set(KEY, {"not": "a list"})

    assert persistence.load() == []
    assert not backend.exists(KEY)


def test_invalid_and_duplicate_records_are_skipped(backend, persistence):
    good = make_submission("good.png").model_dump(mode="json", by_alias=True)
    backend.set(KEY, [good, {"fileName": "no-image.png"}, "junk", dict(good, fileName="dup.png")])

    loaded = persistence.load()

    assert [s.file_name for s in loaded] == ["good.png"]


def test_grading_record_restored_as_idle(backend, persistence):
    grading = begin_grading(make_submission("a.png"))
    backend.set(KEY, [grading.model_dump(mode="json", by_alias=True)])

    loaded = persistence.load()

    assert loaded[0].status == SubmissionStatus.IDLE


def test_grading_record_with_previous_result_restored_as_success(backend, persistence):
    graded = settle_success(begin_grading(make_submission("a.png")), make_result(6))
    backend.set(KEY, [begin_grading(graded).model_dump(mode="json", by_alias=True)])

    loaded = persistence.load()

    assert loaded[0].status == SubmissionStatus.SUCCESS
    assert loaded[0].result.score == 6


def test_normalize_error_without_message():
    record = normalize_record({"status": "error", "imageUrl": "data:image/png;base64,AA=="}, "vi")

    assert record["errorMessage"] == "Không thể chấm bài. Vui lòng thử lại."


def test_attach_saves_on_change_only(backend, persistence):
    store = SubmissionStore()
    store.hydrate(persistence.load())
    persistence.attach(store)

    a = make_submission("a.png")
    store.append_batch([a])
    assert [r["id"] for r in backend.get(KEY)] == [a.id]

    backend.remove(KEY)
    store.select(a.id)
    assert not backend.exists(KEY)


def test_deleting_last_submission_persists_empty_list(backend, persistence):
    store = SubmissionStore()
    store.hydrate(persistence.load())
    persistence.attach(store)
    a = make_submission()
    store.append_batch([a])

    store.delete(a.id)

    assert backend.get(KEY) == []


def test_capacity_failure_is_a_warning(tmp_path):
    warnings = []
    backend = KeyValueFileStore(str(tmp_path), quota_bytes=50)
    persistence = SubmissionPersistence(backend, key=KEY, language="en", on_warning=warnings.append)
    store = SubmissionStore()
    store.hydrate(persistence.load())
    persistence.attach(store)

    store.append_batch([make_submission()])

    assert persistence.last_save_failed
    assert len(store.submissions) == 1
    assert warnings and "full" in warnings[0].lower()


def test_clear_removes_record(backend, persistence):
    persistence.load()
    persistence.save([make_submission()])

    persistence.clear()

    assert not backend.exists(KEY)
    assert persistence.load() == []


def test_clear_failure_is_a_warning(backend, monkeypatch):
    warnings = []
    persistence = SubmissionPersistence(backend, key=KEY, language="en", on_warning=warnings.append)

    def failing_remove(key):
        raise OSError("read-only file system")

    monkeypatch.setattr(backend, "remove", failing_remove)

    assert persistence.clear() is False
    assert warnings == ["Saved history could not be deleted."]
