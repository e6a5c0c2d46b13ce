"""
Progress tracking for the process / save / notify phases.
"""
import logging
import streamlit as st
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Callable, List
from enum import Enum

logger = logging.getLogger(__name__)


class ProcessingPhase(Enum):
    """Processing phases."""

    PARSE = "parse"
    AGGREGATE = "aggregate"
    SAVE = "save"
    NOTIFY = "notify"


PHASE_LABELS = {
    ProcessingPhase.PARSE: "📄 Parse",
    ProcessingPhase.AGGREGATE: "🎯 Aggregate",
    ProcessingPhase.SAVE: "💾 Save",
    ProcessingPhase.NOTIFY: "📤 Notify",
}


@dataclass
class PhaseProgress:
    """Progress state for a single phase."""

    phase: ProcessingPhase
    status: str = "pending"  # pending, running, completed, failed
    message: str = ""
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def start(self, message: str = ""):
        """Mark phase as started."""
        self.status = "running"
        self.message = message
        self.started_at = datetime.now()
        self.completed_at = None
        self.error = None

    def complete(self, message: str = ""):
        """Mark phase as completed."""
        self.status = "completed"
        self.completed_at = datetime.now()
        if message:
            self.message = message

    def fail(self, error: str):
        """Mark phase as failed."""
        self.status = "failed"
        self.error = error
        self.completed_at = datetime.now()

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        if not self.started_at:
            return 0.0
        end = self.completed_at or datetime.now()
        return (end - self.started_at).total_seconds()


@dataclass
class ProgressTracker:
    """
    Tracks the phases of a processing session.
    Callbacks receive the tracker after every change.
    """

    phases: dict = field(default_factory=dict)
    current_phase: Optional[ProcessingPhase] = None
    _callbacks: List[Callable] = field(default_factory=list)

    def __post_init__(self):
        """Initialize progress for all phases."""
        for phase in ProcessingPhase:
            self.phases[phase] = PhaseProgress(phase=phase)

    def start_phase(self, phase: ProcessingPhase, message: str = ""):
        """Start a phase."""
        self.current_phase = phase
        self.phases[phase].start(message)
        self._notify()

    def complete_phase(self, message: str = ""):
        """Complete current phase."""
        if self.current_phase:
            self.phases[self.current_phase].complete(message)
            self._notify()

    def fail_phase(self, error: str):
        """Mark current phase as failed."""
        if self.current_phase:
            self.phases[self.current_phase].fail(error)
            self._notify()

    def add_callback(self, callback: Callable):
        """Add callback for progress updates."""
        self._callbacks.append(callback)

    def _notify(self):
        """Notify all callbacks of progress update."""
        for callback in self._callbacks:
            try:
                callback(self)
            except Exception as e:
                # A broken display must not abort processing
                logger.warning("Progress callback failed: %s", e)

    def status_of(self, phase: ProcessingPhase) -> str:
        """Get the status of a phase."""
        return self.phases[phase].status

    @property
    def is_failed(self) -> bool:
        """Check if any phase has failed."""
        return any(p.status == "failed" for p in self.phases.values())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "current_phase": self.current_phase.value if self.current_phase else None,
            "phases": {
                phase.value: {
                    "status": p.status,
                    "message": p.message,
                    "elapsed_seconds": p.elapsed_seconds,
                    "error": p.error
                }
                for phase, p in self.phases.items()
            }
        }

    def render_streamlit_progress(self, container=None):
        """
        Render phase status in Streamlit.

        Args:
            container: Streamlit container to render in (default: main)
        """
        target = container or st
        cols = target.columns(len(PHASE_LABELS))

        for i, (phase, name) in enumerate(PHASE_LABELS.items()):
            p = self.phases[phase]
            with cols[i]:
                if p.status == "completed":
                    st.success(f"{name}\n✅ Done")
                elif p.status == "running":
                    st.info(f"{name}\n⏳ Running")
                elif p.status == "failed":
                    st.error(f"{name}\n❌ Failed")
                else:
                    st.write(f"{name}\n⏸️ Pending")

        if self.current_phase:
            p = self.phases[self.current_phase]
            if p.message:
                target.caption(p.message)
