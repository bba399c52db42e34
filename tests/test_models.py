"""
Tests for core models.
"""

import pytest
from pydantic import ValidationError

from conftest import make_png, make_result, make_submission
from exercise_grader.core.models import (
    GradingResult,
    GradingStep,
    ScoreBand,
    Submission,
    SubmissionStatus,
    build_data_uri,
    generate_id,
)


def test_generate_id():
    """Test ID generation."""
    id1 = generate_id()
    id2 = generate_id()

    assert id1 != id2
    assert len(id1) == 36


def test_new_submission_defaults():
    submission = make_submission()

    assert submission.status == SubmissionStatus.IDLE
    assert submission.result is None
    assert submission.error_message is None
    assert submission.rotation == 0
    assert submission.uploaded_at > 0


def test_submission_is_frozen():
    submission = make_submission()

    with pytest.raises(ValidationError):
        submission.file_name = "other.png"


def test_success_requires_result():
    with pytest.raises(ValidationError):
        make_submission(status=SubmissionStatus.SUCCESS)


def test_result_requires_success():
    with pytest.raises(ValidationError):
        make_submission(result=make_result())


def test_error_requires_message():
    with pytest.raises(ValidationError):
        make_submission(status=SubmissionStatus.ERROR)

    errored = make_submission(status=SubmissionStatus.ERROR, error_message="failed")
    assert errored.error_message == "failed"


def test_previous_result_only_while_grading():
    with pytest.raises(ValidationError):
        make_submission(previous_result=make_result())

    grading = make_submission(status=SubmissionStatus.GRADING, previous_result=make_result())
    assert grading.previous_result.score == 8.0


def test_rotation_must_be_quarter_turns():
    with pytest.raises(ValidationError):
        make_submission(rotation=45)

    submission = make_submission(rotation=450)
    assert submission.display_rotation == 90


def test_image_url_must_be_data_uri():
    with pytest.raises(ValidationError):
        Submission(file_name="x.png", image_url="https://example.com/x.png")


def test_evolve_validates():
    submission = make_submission()

    with pytest.raises(ValidationError):
        submission.evolve(status=SubmissionStatus.SUCCESS)

    rotated = submission.evolve(rotation=90)
    assert rotated.rotation == 90
    assert rotated.id == submission.id
    assert submission.rotation == 0


def test_image_payload_helpers():
    data = make_png()
    submission = Submission(file_name="a.png", image_url=build_data_uri(data, "image/png"))

    assert submission.mime_type == "image/png"
    assert submission.image_bytes == data


def test_corrupt_payload_raises_value_error():
    submission = Submission(file_name="a.png", image_url="data:image/png;base64,@@not-base64@@")

    with pytest.raises(ValueError):
        submission.image_bytes


def test_camel_case_serialization():
    submission = make_submission(status=SubmissionStatus.SUCCESS, result=make_result())
    data = submission.model_dump(mode="json", by_alias=True)

    assert "fileName" in data
    assert "imageUrl" in data
    assert "uploadedAt" in data
    assert data["result"]["problemStatement"] == "Solve 2x + 3 = 7"
    assert data["result"]["steps"][0]["isCorrect"] is True

    restored = Submission.model_validate(data)
    assert restored == submission


def test_unknown_fields_ignored():
    data = make_submission().model_dump(mode="json", by_alias=True)
    data["legacyFlag"] = True

    assert Submission.model_validate(data).file_name == "hw1.png"


def test_score_is_clamped():
    assert make_result(score=12).score == 10.0
    assert make_result(score=-1).score == 0.0


def test_score_band():
    assert make_result(score=8).band == ScoreBand.GOOD
    assert make_result(score=5).band == ScoreBand.AVERAGE
    assert make_result(score=4.5).band == ScoreBand.WEAK
    assert make_result(score=10).is_perfect


def test_correction_dropped_on_correct_step():
    step = GradingStep(step_number=1, content="ok", is_correct=True, feedback="fine", correction="ignored")
    assert step.correction is None

    blank = GradingStep(step_number=2, content="ko", is_correct=False, feedback="wrong", correction="  ")
    assert blank.correction is None


def test_grading_result_defaults():
    result = GradingResult(problem_statement="p", score=6, summary="s")

    assert result.steps == []
    assert result.tips == []
    assert result.competencies.logic == ""
