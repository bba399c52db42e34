"""
Core data models for the exercise grader.

This module defines the Pydantic models shared by every layer: the
structured grading result returned by the grading service and the
Submission record tracked by the store.

Models serialize with camelCase aliases so the persisted collection keeps
its historical on-disk shape (fileName, imageUrl, uploadedAt...).
"""

from __future__ import annotations

import base64
import binascii
import time
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from exercise_grader.config.constants import (
    MAX_SCORE,
    SCORE_AVERAGE_THRESHOLD,
    SCORE_GOOD_THRESHOLD,
)


class SubmissionStatus(str, Enum):
    """Lifecycle status of a submission."""
    IDLE = "idle"
    GRADING = "grading"
    SUCCESS = "success"
    ERROR = "error"


class ScoreBand(str, Enum):
    """Coarse score category used for history display."""
    GOOD = "good"        # >= 8
    AVERAGE = "average"  # 5 - 8
    WEAK = "weak"        # < 5


def generate_id() -> str:
    """
    Generate a unique submission ID.

    Uses full UUID to avoid collision risks.
    For display purposes, callers can truncate to first 8 characters.
    """
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    """Base model with camelCase aliases; unknown fields are ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# GRADING RESULT
# ═══════════════════════════════════════════════════════════════════════════════

class GradingStep(CamelModel):
    """One step of the student's work, as judged by the grader."""
    step_number: int
    content: str  # What the student did in this step
    is_correct: bool
    feedback: str
    correction: Optional[str] = None  # Only meaningful when is_correct is False

    @model_validator(mode="after")
    def drop_correction_on_correct_step(self) -> "GradingStep":
        if self.is_correct and self.correction is not None:
            self.correction = None
        elif self.correction is not None and not self.correction.strip():
            self.correction = None
        return self


class Competencies(CamelModel):
    """Three-part competency assessment."""
    logic: str = ""         # Logical reasoning
    calculation: str = ""   # Computation accuracy
    presentation: str = ""  # Notation / presentation quality


class GradingResult(CamelModel):
    """
    Structured grading result returned by the grading service.

    Text fields may embed inline math notation; rendering is left to
    the presentation layer.
    """
    problem_statement: str
    score: float
    summary: str
    steps: List[GradingStep] = Field(default_factory=list)
    correct_solution: str = ""  # Shown only when score < 10
    competencies: Competencies = Field(default_factory=Competencies)
    tips: List[str] = Field(default_factory=list)

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        """Keep the score on the 0-10 scale."""
        return max(0.0, min(MAX_SCORE, float(v)))

    @property
    def is_perfect(self) -> bool:
        return self.score >= MAX_SCORE

    @property
    def band(self) -> ScoreBand:
        if self.score >= SCORE_GOOD_THRESHOLD:
            return ScoreBand.GOOD
        if self.score >= SCORE_AVERAGE_THRESHOLD:
            return ScoreBand.AVERAGE
        return ScoreBand.WEAK


# ═══════════════════════════════════════════════════════════════════════════════
# SUBMISSION
# ═══════════════════════════════════════════════════════════════════════════════

class Submission(CamelModel):
    """
    One uploaded exercise sheet and its grading outcome.

    Submissions inside the store are frozen: every change goes through
    evolve(), which builds a validated copy. The status/result invariants
    are checked on every construction.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    file_name: str = "untitled"
    image_url: str  # data:<mime>;base64,<payload>
    status: SubmissionStatus = SubmissionStatus.IDLE
    result: Optional[GradingResult] = None
    error_message: Optional[str] = None
    previous_result: Optional[GradingResult] = None  # Stale result kept during re-grade
    uploaded_at: int = Field(default_factory=now_ms)  # Epoch milliseconds
    rotation: int = 0

    @field_validator("rotation")
    @classmethod
    def validate_rotation(cls, v: int) -> int:
        if v % 90 != 0:
            raise ValueError(f"rotation must be a multiple of 90, got {v}")
        return v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        if not v.startswith("data:") or "," not in v:
            raise ValueError("image_url must be a data URI")
        return v

    @model_validator(mode="after")
    def check_status_invariants(self) -> "Submission":
        if (self.result is not None) != (self.status == SubmissionStatus.SUCCESS):
            raise ValueError(
                f"result must be set if and only if status is success (status={self.status.value})"
            )
        if (self.error_message is not None) != (self.status == SubmissionStatus.ERROR):
            raise ValueError(
                f"error_message must be set if and only if status is error (status={self.status.value})"
            )
        if self.previous_result is not None and self.status != SubmissionStatus.GRADING:
            raise ValueError("previous_result is only kept while grading")
        return self

    def evolve(self, **changes) -> "Submission":
        """Return a validated copy with the given fields replaced."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)

    # ==================== PAYLOAD HELPERS ====================

    def _split_data_uri(self) -> Tuple[str, str]:
        header, payload = self.image_url.split(",", 1)
        mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
        return mime_type, payload

    @property
    def mime_type(self) -> str:
        return self._split_data_uri()[0]

    @property
    def image_bytes(self) -> bytes:
        """Decoded image payload."""
        _, payload = self._split_data_uri()
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Corrupt image payload for submission {self.id}: {e}") from e

    # ==================== DISPLAY HELPERS ====================

    @property
    def display_rotation(self) -> int:
        """Rotation normalized to 0, 90, 180 or 270."""
        return self.rotation % 360

    @property
    def uploaded_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.uploaded_at / 1000)

    @property
    def is_pending(self) -> bool:
        """Eligible for grade-all."""
        return self.status in (SubmissionStatus.IDLE, SubmissionStatus.ERROR)

    @property
    def is_settled(self) -> bool:
        """Has been graded or attempted (shown in history)."""
        return self.status in (SubmissionStatus.SUCCESS, SubmissionStatus.ERROR)


def build_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a self-describing data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
