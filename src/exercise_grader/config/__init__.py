"""
Configuration module for the exercise grader.

Provides settings, constants, provider registry and logging configuration.
"""

from exercise_grader.config.settings import get_settings, reload_settings, Settings
from exercise_grader.config.logging_config import setup_logging, sanitize_for_logging
from exercise_grader.config.providers import ProviderConfig, PROVIDER_REGISTRY, get_provider_config

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings',
    'setup_logging',
    'sanitize_for_logging',
    'ProviderConfig',
    'PROVIDER_REGISTRY',
    'get_provider_config',
]
