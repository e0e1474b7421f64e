"""
Event-driven notifications for the interview lifecycle.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview lifecycle events."""
    INTERVIEW_CREATED = "interview_created"
    STATUS_CHANGED = "status_changed"
    CALL_FAILED = "call_failed"
    TRANSCRIPT_CAPTURED = "transcript_captured"
    NO_CONTENT = "no_content"
    FEEDBACK_SAVED = "feedback_saved"
    FEEDBACK_FAILED = "feedback_failed"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class InterviewCreatedEvent(InterviewEvent):
    """Event fired when a call creates its own interview record."""
    def __init__(self, session_id: str, timestamp: float, interview_id: str):
        super().__init__(
            event_type=EventType.INTERVIEW_CREATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"interview_id": interview_id}
        )


@dataclass
class StatusChangedEvent(InterviewEvent):
    """Event fired on every call status transition."""
    def __init__(self, session_id: str, timestamp: float, previous: str, current: str):
        super().__init__(
            event_type=EventType.STATUS_CHANGED,
            session_id=session_id,
            timestamp=timestamp,
            data={"previous": previous, "current": current}
        )


@dataclass
class CallFailedEvent(InterviewEvent):
    """Event fired when a call could not be started."""
    def __init__(self, session_id: str, timestamp: float, reason: str, toast: str):
        super().__init__(
            event_type=EventType.CALL_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"reason": reason, "toast": toast}
        )


@dataclass
class TranscriptCapturedEvent(InterviewEvent):
    """Event fired when a final transcript line is recorded."""
    def __init__(self, session_id: str, timestamp: float, role: str, message_count: int):
        super().__init__(
            event_type=EventType.TRANSCRIPT_CAPTURED,
            session_id=session_id,
            timestamp=timestamp,
            data={"role": role, "message_count": message_count}
        )


@dataclass
class NoContentEvent(InterviewEvent):
    """Event fired when a call ends without any transcript."""
    def __init__(self, session_id: str, timestamp: float, interview_id: Optional[str]):
        super().__init__(
            event_type=EventType.NO_CONTENT,
            session_id=session_id,
            timestamp=timestamp,
            data={"interview_id": interview_id}
        )


@dataclass
class FeedbackSavedEvent(InterviewEvent):
    """Event fired when feedback for the session was stored."""
    def __init__(self, session_id: str, timestamp: float, interview_id: str, feedback_id: str):
        super().__init__(
            event_type=EventType.FEEDBACK_SAVED,
            session_id=session_id,
            timestamp=timestamp,
            data={"interview_id": interview_id, "feedback_id": feedback_id}
        )


@dataclass
class FeedbackFailedEvent(InterviewEvent):
    """Event fired when feedback could not be generated or stored."""
    def __init__(self, session_id: str, timestamp: float, interview_id: Optional[str],
                 reason: str, toast: str):
        super().__init__(
            event_type=EventType.FEEDBACK_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"interview_id": interview_id, "reason": reason, "toast": toast}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview lifecycle communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and does not stop delivery to the rest.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.STATUS_CHANGED and event.data.get("current") == "ACTIVE":
            self.calls_started += 1
        elif event.event_type == EventType.INTERVIEW_CREATED:
            self.interviews_created += 1
        elif event.event_type == EventType.CALL_FAILED:
            self.calls_failed += 1
        elif event.event_type == EventType.TRANSCRIPT_CAPTURED:
            self.messages_captured += 1
        elif event.event_type == EventType.NO_CONTENT:
            self.empty_sessions += 1
        elif event.event_type == EventType.FEEDBACK_SAVED:
            self.feedback_saved += 1
        elif event.event_type == EventType.FEEDBACK_FAILED:
            self.feedback_failed += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "calls_started": self.calls_started,
            "interviews_created": self.interviews_created,
            "calls_failed": self.calls_failed,
            "messages_captured": self.messages_captured,
            "empty_sessions": self.empty_sessions,
            "feedback_saved": self.feedback_saved,
            "feedback_failed": self.feedback_failed,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.calls_started = 0
        self.interviews_created = 0
        self.calls_failed = 0
        self.messages_captured = 0
        self.empty_sessions = 0
        self.feedback_saved = 0
        self.feedback_failed = 0
        self.errors_occurred = 0
