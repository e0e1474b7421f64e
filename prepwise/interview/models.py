"""
Data models for the interview lifecycle.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CallStatus(str, Enum):
    """Where a session is in its lifecycle."""
    INACTIVE = "INACTIVE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


@dataclass(frozen=True)
class TranscriptMessage:
    """One finalized utterance of the interview."""
    role: str  # user | system | assistant
    content: str


@dataclass
class FeedbackOutcome:
    """Result of a feedback generation attempt."""
    success: bool
    feedback_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, feedback_id: str) -> 'FeedbackOutcome':
        return cls(success=True, feedback_id=feedback_id)

    @classmethod
    def failed(cls, error: str, feedback_id: Optional[str] = None) -> 'FeedbackOutcome':
        return cls(success=False, feedback_id=feedback_id, error=error)
