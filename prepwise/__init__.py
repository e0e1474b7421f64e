"""
PrepWise: AI-powered mock interview practice.

Runs voice interview calls, captures the transcript, and turns it into
scored, structured feedback stored alongside the interview.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.controller import InterviewLifecycleController
from .interview.feedback import FeedbackGenerator
from .interview.models import CallStatus, TranscriptMessage, FeedbackOutcome

__all__ = [
    "InterviewLifecycleController", "FeedbackGenerator",
    "CallStatus", "TranscriptMessage", "FeedbackOutcome",
]
