"""
Base provider class for grading service interactions.

Provides shared functionality for every backend: error translation,
call history with token tracking, and a mock mode for offline use.
"""

import functools
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from exercise_grader.config.logging_config import sanitize_for_logging
from exercise_grader.core.exceptions import (
    ProviderError,
    APIConnectionError,
    APITimeoutError,
    APIResponseError,
    ParsingError,
)
from exercise_grader.core.models import GradingResult


@dataclass
class ProviderCall:
    """Audit record of one grading call."""
    model: str
    duration_ms: float
    success: bool
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)


class APIErrorContext:
    """
    Context manager for consistent API error handling.

    Wraps API calls with proper error translation and logging.

    Usage:
        with APIErrorContext("grading call", "gemini"):
            response = client.call(...)
    """

    def __init__(self, operation: str, provider_name: str = "unknown"):
        """
        Initialize error context.

        Args:
            operation: Description of the operation being performed
            provider_name: Name of the provider (for error messages)
        """
        self.operation = operation
        self.provider_name = provider_name

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False

        # Already translated
        if isinstance(exc_val, ProviderError):
            return False

        detail = sanitize_for_logging(str(exc_val))
        logger.error(f"{self.provider_name} API error during {self.operation}: {detail}")

        exc_name = exc_type.__name__

        # Connection errors
        if any(name in exc_name for name in ['Connection', 'Connect', 'Network']):
            raise APIConnectionError(
                f"Failed to connect during {self.operation}: {detail}"
            ) from exc_val

        # Timeout errors
        if any(name in exc_name for name in ['Timeout', 'TimedOut']):
            raise APITimeoutError(
                f"Timeout during {self.operation}: {detail}"
            ) from exc_val

        # Rate limiting
        if 'Rate' in exc_name or '429' in detail:
            raise APIResponseError(
                f"Rate limited during {self.operation}: {detail}"
            ) from exc_val

        # JSON/parsing errors
        if any(name in exc_name for name in ['JSON', 'Parse', 'Decode']):
            raise ParsingError(
                f"Failed to parse response during {self.operation}: {detail}"
            ) from exc_val

        # Generic API error
        raise ProviderError(
            f"API error during {self.operation}: {detail}"
        ) from exc_val


def handle_api_errors(operation: str):
    """
    Decorator for consistent API error handling.

    Usage:
        @handle_api_errors("grading call")
        def grade_exercise(self, ...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            with APIErrorContext(operation, self.name):
                return func(self, *args, **kwargs)
        return wrapper
    return decorator


class BaseProvider(ABC):
    """
    Abstract base class for grading providers.

    Subclasses must implement:
    - name
    - _grade() (the actual remote call)
    """

    def __init__(self, mock_mode: bool = False):
        """Initialize base provider."""
        self.mock_mode = mock_mode
        self.call_history: List[ProviderCall] = []
        self._pending_usage: tuple = (None, None)

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider display name."""

    # ==================== GRADING ====================

    def grade_exercise(
        self,
        image_bytes: bytes,
        mime_type: str = "image/png",
        language: str = "vi"
    ) -> GradingResult:
        """
        Grade one exercise sheet.

        Args:
            image_bytes: Encoded image
            mime_type: Image MIME type
            language: Language of the prompt and feedback

        Returns:
            Structured grading result

        Raises:
            ProviderError: Any failure of the call
        """
        if self.mock_mode:
            return self._mock_result(language)

        start_time = time.time()
        success = False
        self._pending_usage = (None, None)
        try:
            result = self._grade(image_bytes, mime_type, language)
            success = True
            return result
        finally:
            prompt_tokens, completion_tokens = self._pending_usage
            self._log_call(
                duration_ms=(time.time() - start_time) * 1000,
                success=success,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
            )

    @abstractmethod
    def _grade(self, image_bytes: bytes, mime_type: str, language: str) -> GradingResult:
        """Perform the remote grading call."""

    def _mock_result(self, language: str) -> GradingResult:
        """Canned result for mock mode."""
        return GradingResult(
            problem_statement="Mock problem",
            score=7.5,
            summary=f"Mock grading ({language})",
            steps=[],
            correct_solution="",
            tips=[],
        )

    # ==================== TOKEN TRACKING ====================

    def _log_call(
        self,
        duration_ms: float,
        success: bool,
        prompt_tokens: int = None,
        completion_tokens: int = None
    ) -> None:
        """Append a call to the audit trail."""
        self.call_history.append(ProviderCall(
            model=self.name,
            duration_ms=duration_ms,
            success=success,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        ))
        logger.debug(
            f"{self.name} grading call finished in {duration_ms:.0f} ms "
            f"({'ok' if success else 'failed'})"
        )

    def _record_usage(self, prompt_tokens: Optional[int], completion_tokens: Optional[int]) -> None:
        """Stash token usage until the call is logged."""
        self._pending_usage = (prompt_tokens, completion_tokens)

    def get_token_usage(self) -> Dict[str, int]:
        """Get total token usage from all calls."""
        prompt_tokens = sum(c.prompt_tokens or 0 for c in self.call_history)
        completion_tokens = sum(c.completion_tokens or 0 for c in self.call_history)
        return {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
            "calls": len(self.call_history)
        }
