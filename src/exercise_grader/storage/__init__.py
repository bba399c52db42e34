"""
Storage module for persisting submissions.

- KeyValueFileStore: durable JSON documents with atomic writes and a quota
- SubmissionPersistence: loads and saves the submission collection
"""

from exercise_grader.storage.file_store import KeyValueFileStore
from exercise_grader.storage.persistence import SubmissionPersistence, normalize_record

__all__ = [
    'KeyValueFileStore',
    'SubmissionPersistence',
    'normalize_record',
]
