"""
Shared fixtures for the exercise grader tests.
"""

import io
from typing import List, Optional

import pytest
from PIL import Image

from exercise_grader.ai.base_provider import BaseProvider
from exercise_grader.config.settings import Settings
from exercise_grader.core.exceptions import APIConnectionError
from exercise_grader.core.models import GradingResult, GradingStep, Submission, build_data_uri


def make_png(color: str = "white", size=(4, 4), image_format: str = "PNG") -> bytes:
    """Tiny real image encoded with Pillow."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_result(score: float = 8.0, summary: str = "Good work") -> GradingResult:
    return GradingResult(
        problem_statement="Solve 2x + 3 = 7",
        score=score,
        summary=summary,
        steps=[
            GradingStep(step_number=1, content="2x = 4", is_correct=True, feedback="Correct"),
            GradingStep(step_number=2, content="x = 3", is_correct=False, feedback="Division error", correction="x = 2"),
        ],
        correct_solution="2x = 4, so x = 2",
        tips=["Check the division"],
    )


def make_submission(file_name: str = "hw1.png", **kwargs) -> Submission:
    kwargs.setdefault("image_url", build_data_uri(make_png(), "image/png"))
    return Submission(file_name=file_name, **kwargs)


class FakeProvider(BaseProvider):
    """
    Scripted grading provider.

    Each call pops the next outcome: a GradingResult is returned, an
    exception is raised. When the script is empty a default result is used.
    """

    def __init__(self, outcomes: Optional[List] = None):
        super().__init__(mock_mode=False)
        self.outcomes = list(outcomes or [])
        self.calls: List[dict] = []

    @property
    def name(self) -> str:
        return "fake/test"

    def _grade(self, image_bytes: bytes, mime_type: str, language: str) -> GradingResult:
        self.calls.append({"bytes": image_bytes, "mime_type": mime_type, "language": language})
        outcome = self.outcomes.pop(0) if self.outcomes else make_result()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        data_dir=str(tmp_path / "data"),
        language="vi",
        gemini_api_key="",
    )


@pytest.fixture
def failing_provider():
    return FakeProvider([APIConnectionError("Network unreachable")])
