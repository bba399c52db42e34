"""
Shared response parser for grading providers.

Turns the raw text of a grading call into a validated GradingResult in a
provider-independent way.
"""

from pydantic import ValidationError

from exercise_grader.core.exceptions import APIResponseError, ParsingError
from exercise_grader.core.models import GradingResult
from exercise_grader.utils.json_extractor import extract_json_from_response


def parse_grading_result(response: str) -> GradingResult:
    """
    Parse a grading response.

    Args:
        response: Raw text response from the model

    Returns:
        Validated GradingResult

    Raises:
        APIResponseError: The response is empty
        ParsingError: The response is not a valid grading result
    """
    if not response or not response.strip():
        raise APIResponseError("No response from grading service")

    data = extract_json_from_response(response)
    if data is None:
        raise ParsingError(
            "Grading response is not a JSON object",
            {"preview": response[:200]},
        )

    try:
        return GradingResult.model_validate(data)
    except ValidationError as e:
        raise ParsingError(
            f"Grading response does not match the expected structure: {e.error_count()} error(s)",
            {"errors": [err["loc"] for err in e.errors()]},
        ) from e
