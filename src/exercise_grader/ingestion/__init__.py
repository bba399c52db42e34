"""
Ingestion of picked, dropped and pasted images.
"""

from exercise_grader.ingestion.pipeline import (
    BatchIngested,
    IngestionPipeline,
    IngestionReport,
    decode_image,
)
from exercise_grader.ingestion.sources import RawInput

__all__ = [
    'BatchIngested',
    'IngestionPipeline',
    'IngestionReport',
    'RawInput',
    'decode_image',
]
