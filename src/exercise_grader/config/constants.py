"""
Constants and configuration values for the exercise grader.

Defines defaults and system-wide constants.
"""

from typing import Dict, Final

# AI Model Configuration
GEMINI_DEFAULT_MODEL: Final[str] = "gemini-3-pro-preview"
DEFAULT_THINKING_BUDGET: Final[int] = 8192
MAX_TOKENS: Final[int] = 8192
TEMPERATURE: Final[float] = 0.2  # Low temperature for consistent grading

# Score scale
MAX_SCORE: Final[float] = 10.0
SCORE_GOOD_THRESHOLD: Final[float] = 8.0
SCORE_AVERAGE_THRESHOLD: Final[float] = 5.0

# Retry Configuration (transient provider errors only)
MAX_RETRIES: Final[int] = 3

# API Timeouts (in seconds)
API_CONNECT_TIMEOUT: Final[float] = 30.0
API_READ_TIMEOUT: Final[float] = 180.0

# Languages
DEFAULT_LANGUAGE: Final[str] = "vi"
SUPPORTED_LANGUAGES: Final[tuple] = ("vi", "en", "fr")

# Storage
DATA_DIR: Final[str] = "data"
STORAGE_KEY: Final[str] = "math_app_submissions"
DEFAULT_STORAGE_QUOTA_BYTES: Final[int] = 5 * 1024 * 1024  # Browser-like local storage quota

# Ingestion
IMAGE_MEDIA_PREFIX: Final[str] = "image/"
CLIPBOARD_PLACEHOLDER_NAME: Final[str] = "image.png"
GENERIC_PLACEHOLDER_NAMES: Final[frozenset] = frozenset({
    "image.png",
    "image.jpg",
    "image.jpeg",
    "image.gif",
    "image.webp",
    "blob",
})
PIL_FORMAT_MIME_TYPES: Final[Dict[str, str]] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
    "HEIF": "image/heif",
}

# UI/CLI
SCORE_COLORS: Final[Dict[str, str]] = {
    "good": "green",
    "average": "yellow",
    "weak": "red",
}
STATUS_COLORS: Final[Dict[str, str]] = {
    "idle": "white",
    "grading": "cyan",
    "success": "green",
    "error": "red",
}
