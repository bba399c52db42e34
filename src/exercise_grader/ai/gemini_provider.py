"""
Google Gemini API provider.

Sends the sheet image with the grading prompt and asks for structured JSON
output matching the grading result schema.
"""

from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from loguru import logger
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from exercise_grader.ai.base_provider import BaseProvider, handle_api_errors
from exercise_grader.ai.response_parser import parse_grading_result
from exercise_grader.config.constants import MAX_RETRIES
from exercise_grader.config.settings import get_settings
from exercise_grader.core.exceptions import MissingAPIKeyError
from exercise_grader.core.models import GradingResult
from exercise_grader.prompts.grading import build_grading_prompt, build_response_schema


def _is_retryable(error: BaseException) -> bool:
    """Transient errors worth another attempt: 5xx, 429, network."""
    if isinstance(error, genai_errors.ServerError):
        return True
    if isinstance(error, genai_errors.ClientError):
        return getattr(error, "code", None) == 429
    return isinstance(error, (ConnectionError, TimeoutError))


class GeminiProvider(BaseProvider):
    """
    Provider for Google Gemini API interactions.

    Inherits from BaseProvider for shared functionality.
    """

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        thinking_budget: Optional[int] = None,
        mock_mode: bool = False
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google API key (default: from settings)
            model: Model name (default: from settings)
            thinking_budget: Thinking tokens allowed per call (0 disables)
            mock_mode: If True, skip API key check and return canned results
        """
        super().__init__(mock_mode=mock_mode)

        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.thinking_budget = (
            thinking_budget if thinking_budget is not None else settings.thinking_budget
        )

        if not self.api_key and not mock_mode:
            raise MissingAPIKeyError(
                "Gemini API key is required. "
                "Set EXERCISE_GRADER_GEMINI_API_KEY in .env"
            )

        self.client = None if mock_mode else genai.Client(api_key=self.api_key)

    @property
    def name(self) -> str:
        return f"gemini/{self.model}"

    def _build_config(self, language: str) -> genai_types.GenerateContentConfig:
        config_kwargs = {
            "response_mime_type": "application/json",
            "response_json_schema": build_response_schema(language),
        }
        if self.thinking_budget:
            config_kwargs["thinking_config"] = genai_types.ThinkingConfig(
                thinking_budget=self.thinking_budget
            )
        return genai_types.GenerateContentConfig(**config_kwargs)

    @handle_api_errors("grading call")
    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(_is_retryable),
        reraise=True
    )
    def _grade(self, image_bytes: bytes, mime_type: str, language: str) -> GradingResult:
        response = self.client.models.generate_content(
            model=self.model,
            contents=[
                genai_types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                build_grading_prompt(language),
            ],
            config=self._build_config(language),
        )

        usage = getattr(response, "usage_metadata", None)
        if usage:
            self._record_usage(
                getattr(usage, "prompt_token_count", None),
                getattr(usage, "candidates_token_count", None),
            )

        text = response.text or ""
        logger.debug(f"Gemini returned {len(text)} characters")
        return parse_grading_result(text)
