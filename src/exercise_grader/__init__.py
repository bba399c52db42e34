"""
Exercise grader: photograph exercise sheets, grade them with an AI model,
keep the history.
"""

__version__ = "1.0.0"
