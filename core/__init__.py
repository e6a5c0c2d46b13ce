"""
Core module for the Keyword Cluster Processor.
Contains exceptions and progress tracking; the session and processing
service live in core.session and core.processor.
"""
from core.exceptions import (
    KeywordProcessorError,
    InputError,
    ValidationError,
    MutationError,
    BoundaryError,
    DatabaseError,
    NotificationError,
    ConfigurationError,
    ProcessingError,
)
from core.progress_tracker import ProgressTracker, ProcessingPhase

__all__ = [
    "KeywordProcessorError",
    "InputError",
    "ValidationError",
    "MutationError",
    "BoundaryError",
    "DatabaseError",
    "NotificationError",
    "ConfigurationError",
    "ProcessingError",
    "ProgressTracker",
    "ProcessingPhase",
]
