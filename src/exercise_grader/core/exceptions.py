"""
Custom exception hierarchy for the exercise grader.

Provides a consistent error handling approach across all modules.
"""


class ExerciseGraderError(Exception):
    """
    Base exception for all exercise grader errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ==================== Configuration Errors ====================

class ConfigurationError(ExerciseGraderError):
    """
    Error in system configuration.

    Raised when required configuration is missing or invalid.
    """
    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is not configured."""
    pass


# ==================== Provider Errors ====================

class ProviderError(ExerciseGraderError):
    """
    Base error for grading service issues.

    Any failure of the external grading call ends up as one of these.
    """
    pass


class APIConnectionError(ProviderError):
    """Raised when connection to the AI API fails."""
    pass


class APITimeoutError(ProviderError):
    """Raised when an AI API call times out."""
    pass


class APIResponseError(ProviderError):
    """Raised when the API returns an empty or unexpected response."""
    pass


class ParsingError(ProviderError):
    """Raised when the grading response cannot be parsed."""
    pass


# ==================== Ingestion Errors ====================

class IngestionError(ExerciseGraderError):
    """
    Base error for ingestion issues.
    """
    pass


class NoImageInputError(IngestionError):
    """Raised when an ingestion batch contains no image input at all."""
    pass


class DecodeError(IngestionError):
    """Raised when a single input cannot be decoded as an image."""
    pass


# ==================== Submission Errors ====================

class SubmissionError(ExerciseGraderError):
    """
    Base error for submission-related issues.
    """
    pass


class SubmissionNotFoundError(SubmissionError):
    """Raised when a requested submission doesn't exist."""
    pass


class InvalidTransitionError(SubmissionError):
    """Raised when a status transition is not allowed by the lifecycle."""
    pass


# ==================== Storage Errors ====================

class StorageError(ExerciseGraderError):
    """
    Base error for storage-related issues.
    """
    pass


class StorageCapacityError(StorageError):
    """Raised when a write exceeds the storage quota or the disk is full."""
    pass


class SerializationError(StorageError):
    """Raised when serialization/deserialization fails."""
    pass
