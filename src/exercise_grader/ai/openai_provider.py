"""
OpenAI-compatible API provider.

Works with any OpenAI-compatible API (OpenAI, OpenRouter, etc.)
"""

import base64
from typing import Dict

import httpx
from openai import APIConnectionError as OpenAIConnectionError
from openai import APITimeoutError as OpenAITimeoutError
from openai import InternalServerError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from exercise_grader.ai.base_provider import BaseProvider, handle_api_errors
from exercise_grader.ai.response_parser import parse_grading_result
from exercise_grader.config.constants import (
    API_CONNECT_TIMEOUT,
    API_READ_TIMEOUT,
    MAX_RETRIES,
    MAX_TOKENS,
    TEMPERATURE,
)
from exercise_grader.core.exceptions import MissingAPIKeyError
from exercise_grader.core.models import GradingResult
from exercise_grader.prompts.grading import build_grading_prompt


RETRYABLE_EXCEPTIONS = (
    RateLimitError,
    InternalServerError,
    OpenAIConnectionError,
    OpenAITimeoutError,
)


class OpenAIProvider(BaseProvider):
    """
    Provider for OpenAI-compatible APIs.

    Configuration is handled by the factory using config/providers.py registry.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = None,
        name: str = None,
        mock_mode: bool = False,
        extra_headers: Dict[str, str] = None
    ):
        super().__init__(mock_mode=mock_mode)

        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._name = name or model or "openai"

        if not api_key and not mock_mode:
            raise MissingAPIKeyError(f"API key required for {self._name}")

        self.client = None if mock_mode else self._create_client(extra_headers)

    def _create_client(self, extra_headers: Dict[str, str]) -> OpenAI:
        """Create OpenAI client."""
        timeout = httpx.Timeout(
            connect=API_CONNECT_TIMEOUT,
            read=API_READ_TIMEOUT,
            write=API_CONNECT_TIMEOUT,
            pool=API_CONNECT_TIMEOUT
        )

        client_kwargs = {
            "api_key": self.api_key,
            "timeout": timeout
        }

        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        if extra_headers:
            client_kwargs["default_headers"] = extra_headers

        return OpenAI(**client_kwargs)

    @property
    def name(self) -> str:
        return self._name

    @handle_api_errors("grading call")
    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        reraise=True
    )
    def _grade(self, image_bytes: bytes, mime_type: str, language: str) -> GradingResult:
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        content = [
            {"type": "text", "text": build_grading_prompt(language, include_schema=True)},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{b64}", "detail": "high"}
            },
        ]

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": content}],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            response_format={"type": "json_object"},
        )

        if response.usage:
            self._record_usage(response.usage.prompt_tokens, response.usage.completion_tokens)

        result = response.choices[0].message.content if response.choices else ""
        return parse_grading_result(result or "")
