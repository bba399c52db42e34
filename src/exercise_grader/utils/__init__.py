"""Utility helpers."""

from exercise_grader.utils.json_extractor import extract_json_from_response

__all__ = ['extract_json_from_response']
