"""Interview lifecycle components.

This module contains the business logic for running a mock interview call,
capturing its transcript, and turning it into scored feedback.
"""

# Core controller class
from .controller import InterviewLifecycleController

# Data models
from .models import CallStatus, TranscriptMessage, FeedbackOutcome

# Structured schemas and state management
from .schemas import (
    FEEDBACK_CATEGORIES, FEEDBACK_RESPONSE_SCHEMA, FeedbackAssessment,
    CategoryAssessment, CallState, parse_feedback_assessment
)

# Feedback generation
from .feedback import FeedbackGenerator
from .prompts import FeedbackPrompts, PromptFormatter

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewCreatedEvent, StatusChangedEvent,
    CallFailedEvent, TranscriptCapturedEvent, NoContentEvent,
    FeedbackSavedEvent, FeedbackFailedEvent, ErrorOccurredEvent
)

__all__ = [
    # Controller
    "InterviewLifecycleController",

    # Data models
    "CallStatus", "TranscriptMessage", "FeedbackOutcome",

    # Schemas and state
    "FEEDBACK_CATEGORIES", "FEEDBACK_RESPONSE_SCHEMA", "FeedbackAssessment",
    "CategoryAssessment", "CallState", "parse_feedback_assessment",

    # Feedback
    "FeedbackGenerator", "FeedbackPrompts", "PromptFormatter",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewCreatedEvent", "StatusChangedEvent",
    "CallFailedEvent", "TranscriptCapturedEvent", "NoContentEvent",
    "FeedbackSavedEvent", "FeedbackFailedEvent", "ErrorOccurredEvent",
]
