"""
Core module for the exercise grader.

Exports models, lifecycle transitions, the store and the orchestrator.
The Workspace lives in exercise_grader.core.workspace (it depends on the
storage and ingestion packages, which depend on this one).
"""

from exercise_grader.core.models import (
    Submission,
    SubmissionStatus,
    GradingResult,
    GradingStep,
    Competencies,
    ScoreBand,
    build_data_uri,
    generate_id,
)

from exercise_grader.core.lifecycle import (
    begin_grading,
    settle_success,
    settle_failure,
    rotate,
)

from exercise_grader.core.store import (
    StoreSnapshot,
    SubmissionStore,
)

from exercise_grader.core.orchestrator import (
    BatchReport,
    GradingOrchestrator,
    OrchestratorCallbacks,
)

from exercise_grader.core.exceptions import (
    ExerciseGraderError,
    ConfigurationError,
    MissingAPIKeyError,
    ProviderError,
    APIConnectionError,
    APITimeoutError,
    APIResponseError,
    ParsingError,
    IngestionError,
    NoImageInputError,
    DecodeError,
    SubmissionError,
    SubmissionNotFoundError,
    InvalidTransitionError,
    StorageError,
    StorageCapacityError,
    SerializationError,
)

__all__ = [
    # Models
    'Submission',
    'SubmissionStatus',
    'GradingResult',
    'GradingStep',
    'Competencies',
    'ScoreBand',
    'build_data_uri',
    'generate_id',
    # Lifecycle
    'begin_grading',
    'settle_success',
    'settle_failure',
    'rotate',
    # Store
    'StoreSnapshot',
    'SubmissionStore',
    # Orchestrator
    'BatchReport',
    'GradingOrchestrator',
    'OrchestratorCallbacks',
    # Exceptions
    'ExerciseGraderError',
    'ConfigurationError',
    'MissingAPIKeyError',
    'ProviderError',
    'APIConnectionError',
    'APITimeoutError',
    'APIResponseError',
    'ParsingError',
    'IngestionError',
    'NoImageInputError',
    'DecodeError',
    'SubmissionError',
    'SubmissionNotFoundError',
    'InvalidTransitionError',
    'StorageError',
    'StorageCapacityError',
    'SerializationError',
]
