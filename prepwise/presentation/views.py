"""
Presentation data shaping: feedback reports, interview cards and the call view.

Stored feedback keeps some fields as text; everything here parses them
defensively and falls back to empty collections instead of raising.
"""
import json
import logging
import threading
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import HOME_PATH
from ..infrastructure.data import Interview, Feedback, CategoryScore
from ..interview import InterviewLifecycleController, CallStatus
from ..interview.events import InterviewEvent, InterviewEventBus, EventType

logger = logging.getLogger("presentation")


# =============================================================================
# Stored text parsing
# =============================================================================

def parse_category_scores(text: Optional[str]) -> List[CategoryScore]:
    """Decode the stored ``categoryScores`` JSON; bad input yields []."""
    if not text:
        return []
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.error("Failed to parse categoryScores: %s", e)
        return []
    if not isinstance(raw, list):
        logger.error("categoryScores is not a list: %r", type(raw).__name__)
        return []

    scores = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        scores.append(CategoryScore(
            name=str(item.get("name") or ""),
            score=item.get("score") if isinstance(item.get("score"), (int, float)) else 0,
            comment=str(item.get("comment") or ""),
        ))
    return scores


def parse_bullet_list(text: Optional[str]) -> List[str]:
    """Split stored ``- item`` lines into plain items."""
    if not text or not isinstance(text, str):
        return []
    return [line[2:] if line.startswith("- ") else line for line in text.splitlines()]


def format_timestamp(value: Optional[str], with_time: bool = True) -> str:
    """Render an ISO timestamp like ``Oct 19, 2026 3:05 PM``."""
    if not value:
        return "N/A"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "N/A"
    text = f"{moment.strftime('%b')} {moment.day}, {moment.year}"
    if with_time:
        hour = moment.hour % 12 or 12
        text += f" {hour}:{moment.minute:02d} {'AM' if moment.hour < 12 else 'PM'}"
    return text


# =============================================================================
# Report and card shapes
# =============================================================================

@dataclass
class FeedbackReport:
    """Everything the feedback page shows."""
    interview_id: str
    role: str
    total_score: float
    created_at: str
    final_assessment: str
    category_scores: List[CategoryScore] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_feedback_report(interview: Interview, feedback: Feedback) -> FeedbackReport:
    return FeedbackReport(
        interview_id=interview.id,
        role=interview.role,
        total_score=feedback.total_score,
        created_at=format_timestamp(feedback.created_at),
        final_assessment=feedback.final_assessment,
        category_scores=parse_category_scores(feedback.category_scores),
        strengths=parse_bullet_list(feedback.strengths),
        areas_for_improvement=parse_bullet_list(feedback.areas_for_improvement),
    )


def interview_card(interview: Interview) -> Dict[str, Any]:
    return {
        "interviewId": interview.id,
        "role": interview.role,
        "type": interview.type,
        "techstack": list(interview.techstack),
        "createdAt": format_timestamp(interview.created_at, with_time=False),
        "finalized": interview.finalized,
    }


# =============================================================================
# Live call view and notices
# =============================================================================

@dataclass
class Notice:
    """Toast text and/or a redirect the client should follow."""
    toast: Optional[str] = None
    redirect: Optional[str] = None


class NoticeBoard:
    """Collects the latest user-facing notice from controller events."""

    EVENT_TYPES = (EventType.FEEDBACK_SAVED, EventType.FEEDBACK_FAILED, EventType.NO_CONTENT, EventType.CALL_FAILED)

    def __init__(self):
        self._notice: Optional[Notice] = None
        self._lock = threading.Lock()

    def handle_event(self, event: InterviewEvent) -> None:
        notice = None
        if event.event_type == EventType.FEEDBACK_SAVED:
            notice = Notice(redirect=f"/interview/{event.data['interview_id']}/feedback")
        elif event.event_type == EventType.FEEDBACK_FAILED:
            notice = Notice(toast=event.data.get("toast"), redirect=HOME_PATH)
        elif event.event_type == EventType.NO_CONTENT:
            notice = Notice(redirect=HOME_PATH)
        elif event.event_type == EventType.CALL_FAILED:
            notice = Notice(toast=event.data.get("toast"))

        if notice is not None:
            with self._lock:
                self._notice = notice

    def attach(self, event_bus: InterviewEventBus) -> None:
        """Listen for the events that produce notices."""
        for event_type in self.EVENT_TYPES:
            event_bus.subscribe(event_type, self.handle_event)

    def pop(self) -> Optional[Notice]:
        """Return the pending notice once."""
        with self._lock:
            notice, self._notice = self._notice, None
        return notice


def call_button_label(status: CallStatus) -> str:
    if status == CallStatus.ACTIVE:
        return "End"
    if status == CallStatus.CONNECTING:
        return ". . ."
    return "Call"


def call_view(controller: InterviewLifecycleController, notice: Optional[Notice] = None) -> Dict[str, Any]:
    """State the call screen renders."""
    return {
        "sessionId": controller.session_id,
        "interviewId": controller.interview_id,
        "userName": controller.user_name,
        "status": controller.status.value,
        "button": call_button_label(controller.status),
        "isSpeaking": controller.state.is_speaking,
        "lastMessage": controller.state.last_message,
        "messageCount": len(controller.state.messages),
        "notice": asdict(notice) if notice else None,
    }
