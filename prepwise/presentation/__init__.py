"""Presentation layer: data shaping for pages and the FastAPI app."""

from .views import (
    parse_category_scores, parse_bullet_list, format_timestamp,
    FeedbackReport, build_feedback_report, interview_card,
    Notice, NoticeBoard, call_button_label, call_view
)
from .web import create_app, SessionRegistry, CallRequest

__all__ = [
    "parse_category_scores", "parse_bullet_list", "format_timestamp",
    "FeedbackReport", "build_feedback_report", "interview_card",
    "Notice", "NoticeBoard", "call_button_label", "call_view",
    "create_app", "SessionRegistry", "CallRequest",
]
