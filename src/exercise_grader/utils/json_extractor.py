"""
JSON extraction utilities for LLM responses.

Handles markdown code blocks, raw JSON, and common formatting slips.
"""

import json
import re
from typing import Any, Dict, Optional

from loguru import logger


def _strip_code_fence(text: str) -> str:
    """Return the content of the first ``` block, or the text unchanged."""
    if '```json' in text:
        start = text.find('```json') + 7
        end = text.find('```', start)
        if end > start:
            return text[start:end].strip()

    elif '```' in text:
        start = text.find('```') + 3
        # Skip language identifier if present (e.g., ```javascript)
        while start < len(text) and text[start] not in '\n\r{':
            start += 1
        if start < len(text) and text[start] in '\n\r':
            start += 1
        end = text.find('```', start)
        if end > start:
            return text[start:end].strip()

    return text


def extract_json_from_response(raw_response: str) -> Optional[Dict[str, Any]]:
    """
    Extract a JSON object from an LLM response.

    Handles multiple formats:
    - ```json code blocks
    - ``` code blocks (without language specifier)
    - Raw JSON objects embedded in text

    Args:
        raw_response: The raw text response from an LLM

    Returns:
        Parsed JSON dictionary, or None if extraction/parsing fails
    """
    if not raw_response:
        return None

    text = _strip_code_fence(raw_response.strip())

    # Find JSON object bounds (first { to last })
    brace_start = text.find('{')
    brace_end = text.rfind('}')
    if brace_start < 0 or brace_end <= brace_start:
        return None

    json_str = text[brace_start:brace_end + 1]
    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON parse error: {e}")
        parsed = _try_repair_and_parse(json_str)

    return parsed if isinstance(parsed, dict) else None


def _try_repair_and_parse(json_str: str) -> Optional[Any]:
    """
    Attempt to repair common JSON issues and parse.

    Args:
        json_str: JSON string that failed to parse

    Returns:
        Parsed JSON value, or None if repair fails
    """
    # Remove trailing commas before } or ]
    repaired = re.sub(r',\s*([}\]])', r'\1', json_str)

    # Replace smart quotes with regular quotes
    repaired = repaired.replace('“', '"').replace('”', '"')
    repaired = repaired.replace('‘', "'").replace('’', "'")

    # Remove control characters except newline and tab
    repaired = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f]', '', repaired)

    try:
        return json.loads(repaired)
    except json.JSONDecodeError:
        return None
