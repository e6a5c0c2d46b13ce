"""
Processing session state.
One session owns at most one payload; it is passed explicitly to the
processing service instead of living in module globals.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from clustering.models import ProcessedPayload
from core.exceptions import ProcessingError
from core.progress_tracker import ProgressTracker


class SessionStatus(Enum):
    """Session status enumeration."""

    EMPTY = "empty"
    PROCESSED = "processed"
    SAVED = "saved"
    NOTIFIED = "notified"
    FAILED = "failed"


@dataclass
class ProcessingSession:
    """Holds the current payload and the outcome of the last phase."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: SessionStatus = SessionStatus.EMPTY
    payload: Optional[ProcessedPayload] = None

    # Set once the payload has been stored
    project_id: Optional[str] = None

    progress: ProgressTracker = field(default_factory=ProgressTracker)

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    last_error: Optional[str] = None
    last_warnings: list = field(default_factory=list)

    @property
    def has_payload(self) -> bool:
        return self.payload is not None

    def require_payload(self, phase: str) -> ProcessedPayload:
        """
        Get the payload, failing when nothing has been processed yet.

        Raises:
            ProcessingError: If the session holds no payload
        """
        if self.payload is None:
            raise ProcessingError(
                "No processed data available. Process a CSV file first.",
                phase=phase
            )
        return self.payload

    def replace_payload(
        self,
        payload: ProcessedPayload,
        project_id: Optional[str] = None
    ):
        """Swap in a new payload."""
        self.payload = payload
        self.project_id = project_id
        self.status = SessionStatus.SAVED if project_id else SessionStatus.PROCESSED
        self.last_error = None
        self.touch()

    def mark(self, status: SessionStatus):
        """Record the outcome of a successful phase."""
        self.status = status
        self.last_error = None
        self.touch()

    def record_error(self, error: str):
        """Record a failure; the payload is kept."""
        self.last_error = error
        if self.payload is None:
            self.status = SessionStatus.FAILED
        self.touch()

    def touch(self):
        self.updated_at = datetime.now()

    def reset(self):
        """Drop the payload and start over."""
        self.payload = None
        self.project_id = None
        self.status = SessionStatus.EMPTY
        self.last_error = None
        self.last_warnings = []
        self.progress = ProgressTracker()
        self.touch()
