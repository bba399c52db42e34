"""
Prompt templates and translations for the exercise grader.
"""

from exercise_grader.prompts.grading import build_grading_prompt, build_response_schema
from exercise_grader.prompts.translations import get_message, get_translations

__all__ = [
    'build_grading_prompt',
    'build_response_schema',
    'get_message',
    'get_translations',
]
