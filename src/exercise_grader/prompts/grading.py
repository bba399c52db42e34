"""
Grading prompt and response schema.

The schema is expressed once as a JSON-schema dict; Gemini receives it as
response_schema, OpenAI-compatible providers receive it inside the prompt.
"""

import json
from typing import Any, Dict

from exercise_grader.prompts.translations import get_translations


def build_response_schema(language: str) -> Dict[str, Any]:
    """
    Build the JSON schema of a grading result.

    Field descriptions are translated so the model answers in the same
    language as the prompt.
    """
    d = get_translations(language)["schema"]

    return {
        "type": "object",
        "properties": {
            "problemStatement": {"type": "string", "description": d["problem_statement"]},
            "score": {"type": "number", "description": d["score"]},
            "summary": {"type": "string", "description": d["summary"]},
            "steps": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "stepNumber": {"type": "integer"},
                        "content": {"type": "string", "description": d["step_content"]},
                        "isCorrect": {"type": "boolean"},
                        "correction": {"type": "string", "description": d["step_correction"]},
                        "feedback": {"type": "string", "description": d["step_feedback"]},
                    },
                    "required": ["stepNumber", "content", "isCorrect", "feedback"],
                },
            },
            "correctSolution": {"type": "string", "description": d["correct_solution"]},
            "competencies": {
                "type": "object",
                "properties": {
                    "logic": {"type": "string", "description": d["logic"]},
                    "calculation": {"type": "string", "description": d["calculation"]},
                    "presentation": {"type": "string", "description": d["presentation"]},
                },
                "required": ["logic", "calculation", "presentation"],
            },
            "tips": {
                "type": "array",
                "items": {"type": "string"},
                "description": d["tips"],
            },
        },
        "required": [
            "problemStatement", "score", "summary", "steps",
            "correctSolution", "competencies", "tips",
        ],
    }


def build_grading_prompt(language: str, include_schema: bool = False) -> str:
    """
    Build the grading instruction sent alongside the image.

    Args:
        language: Prompt language (vi, en, fr)
        include_schema: Append the JSON schema to the text (for providers
            without native structured output)

    Returns:
        Prompt text
    """
    t = get_translations(language)["grading"]

    lines = [t["role"], "", t["task"], "", t["steps_title"]]
    lines.extend(f"{i}. {step}" for i, step in enumerate(t["steps"], 1))
    lines.extend(["", t["requirements_title"]])
    lines.extend(f"- {req}" for req in t["requirements"])

    if include_schema:
        schema = build_response_schema(language)
        lines.extend([
            "",
            t["json_instruction"],
            json.dumps(schema, ensure_ascii=False, indent=2),
        ])

    return "\n".join(lines)
