"""
Interaction module for the terminal interface.

Provides rich rendering and the live batch progress display.
"""

from .cli import CLI, resolve_submission
from .live_progress import BatchProgressDisplay, ItemStatus, create_batch_progress_callback

__all__ = [
    "CLI",
    "resolve_submission",
    "BatchProgressDisplay",
    "ItemStatus",
    "create_batch_progress_callback",
]
