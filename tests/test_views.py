"""Tests for presentation data shaping."""
from prepwise.infrastructure.data import Feedback, Interview
from prepwise.interview import (
    CallStatus, FeedbackSavedEvent, FeedbackFailedEvent, NoContentEvent, CallFailedEvent,
    InterviewEventBus, StatusChangedEvent
)
from prepwise.presentation.views import (
    NoticeBoard, build_feedback_report, call_button_label, format_timestamp,
    interview_card, parse_bullet_list, parse_category_scores
)


def test_category_scores_tolerate_bad_text():
    assert parse_category_scores("") == []
    assert parse_category_scores(None) == []
    assert parse_category_scores("not json") == []
    assert parse_category_scores('{"name": "x"}') == []


def test_category_scores_parse_stored_json():
    scores = parse_category_scores('[{"name":"Communication Skills","score":80,"comment":"Clear."}]')
    assert len(scores) == 1
    assert (scores[0].name, scores[0].score, scores[0].comment) == ("Communication Skills", 80, "Clear.")


def test_bullet_list_parsing():
    assert parse_bullet_list("- A\n- B") == ["A", "B"]
    assert parse_bullet_list("") == []
    assert parse_bullet_list(None) == []
    assert parse_bullet_list("plain line") == ["plain line"]


def test_format_timestamp():
    assert format_timestamp("2026-10-19T15:05:00.000Z") == "Oct 19, 2026 3:05 PM"
    assert format_timestamp("2026-01-02T00:30:00.000Z", with_time=False) == "Jan 2, 2026"
    assert format_timestamp("") == "N/A"
    assert format_timestamp("yesterday") == "N/A"


def test_feedback_report_survives_malformed_fields():
    interview = Interview(id="i1", role="Frontend Developer", level="Junior")
    feedback = Feedback(
        interview_id="i1", user_id="u1", total_score=72,
        category_scores="{broken", strengths="- Calm\n- Precise", areas_for_improvement="",
        final_assessment="Good.", created_at="2026-10-19T15:05:00.000Z",
    )
    report = build_feedback_report(interview, feedback)

    assert report.category_scores == []
    assert report.strengths == ["Calm", "Precise"]
    assert report.areas_for_improvement == []
    assert report.created_at == "Oct 19, 2026 3:05 PM"
    assert report.to_dict()["role"] == "Frontend Developer"


def test_interview_card():
    card = interview_card(Interview(id="i1", role="R", level="L", techstack=["Go"], created_at="2026-10-19T15:05:00.000Z"))
    assert card["interviewId"] == "i1"
    assert card["createdAt"] == "Oct 19, 2026"


def test_button_labels():
    assert call_button_label(CallStatus.INACTIVE) == "Call"
    assert call_button_label(CallStatus.CONNECTING) == ". . ."
    assert call_button_label(CallStatus.ACTIVE) == "End"
    assert call_button_label(CallStatus.FINISHED) == "Call"


def test_notice_board_maps_outcomes():
    board = NoticeBoard()
    assert board.pop() is None

    board.handle_event(FeedbackSavedEvent("s1", 0.0, "i1", "f1"))
    assert board.pop().redirect == "/interview/i1/feedback"
    assert board.pop() is None

    board.handle_event(FeedbackFailedEvent("s1", 0.0, "i1", "write failed", "Sorry, we couldn't save your feedback."))
    notice = board.pop()
    assert (notice.toast, notice.redirect) == ("Sorry, we couldn't save your feedback.", "/")

    board.handle_event(NoContentEvent("s1", 0.0, "i1"))
    assert board.pop().redirect == "/"

    board.handle_event(CallFailedEvent("s1", 0.0, "boom", "Could not start the interview call. Please try again."))
    notice = board.pop()
    assert notice.redirect is None
    assert notice.toast.startswith("Could not start")


def test_notice_board_attached_to_bus():
    bus = InterviewEventBus()
    board = NoticeBoard()
    board.attach(bus)

    bus.emit(StatusChangedEvent("s1", 0.0, "ACTIVE", "FINISHED"))
    assert board.pop() is None

    bus.emit(FeedbackSavedEvent("s1", 0.0, "i1", "f1"))
    assert board.pop().redirect == "/interview/i1/feedback"
