"""Tests for the interview lifecycle controller."""
import pytest

from prepwise.infrastructure.session import (
    MessageRole, SessionTarget, TranscriptType, TranscriptUpdate, TransportEvent, FunctionCall
)
from prepwise.interview import CallStatus, EventType, InterviewLifecycleController
from prepwise.interview.controller import CALL_FAILED_TOAST, CREATE_FAILED_TOAST, GENERATION_ERROR_TOAST
from prepwise.interview.testing import ScriptedTransport, create_mock_generator_setup


def final(role, text):
    return TransportEvent.message_received(TranscriptUpdate(MessageRole(role), TranscriptType.FINAL, text))


def partial(role, text):
    return TransportEvent.message_received(TranscriptUpdate(MessageRole(role), TranscriptType.PARTIAL, text))


def make_controller(setup, transport=None, **kwargs):
    kwargs.setdefault("workflow_id", "wf_1")
    kwargs.setdefault("interviewer_id", "asst_1")
    controller = InterviewLifecycleController(
        transport=transport or ScriptedTransport(),
        repository=setup["repository"],
        feedback_generator=setup["generator"],
        user_id="u1",
        user_name="Ada",
        **kwargs
    )
    events = []
    controller.event_bus.subscribe_all(events.append)
    return controller, events


def event_types(events):
    return [e.event_type for e in events]


def test_generate_call_creates_interview_and_starts_workflow(setup):
    controller, events = make_controller(setup)

    assert controller.handle_call()
    assert controller.status == CallStatus.CONNECTING
    assert controller.interview_id is not None
    assert controller.transport.started == [
        ("wf_1", {"username": "Ada", "userid": "u1"}, SessionTarget.WORKFLOW)
    ]
    assert EventType.INTERVIEW_CREATED in event_types(events)

    controller.transport.push(TransportEvent.call_started())
    controller.drain()
    assert controller.status == CallStatus.ACTIVE


def test_interview_call_passes_formatted_questions(setup):
    interview_id = setup["repository"].create_interview("u1", "R", "L", [], "interview")
    controller, _ = make_controller(
        setup, kind="interview", interview_id=interview_id,
        questions=["What is a closure?", "Explain the event loop."],
    )

    assert controller.handle_call()
    target, variables, kind = controller.transport.started[0]
    assert target == "asst_1"
    assert kind == SessionTarget.ASSISTANT
    assert variables == {"questions": "- What is a closure?\n- Explain the event loop."}
    assert controller.interview_id == interview_id


def test_create_failure_never_starts_call():
    setup = create_mock_generator_setup(fail_on={("set", "interviews")})
    controller, events = make_controller(setup)

    assert controller.handle_call() is False
    assert controller.transport.started == []
    assert controller.status == CallStatus.INACTIVE
    failed = [e for e in events if e.event_type == EventType.CALL_FAILED]
    assert failed[0].data["toast"] == CREATE_FAILED_TOAST


def test_transport_start_failure_returns_to_inactive(setup):
    controller, events = make_controller(setup, transport=ScriptedTransport(fail_start=True))

    assert controller.handle_call() is False
    assert controller.status == CallStatus.INACTIVE
    assert [e.data["toast"] for e in events if e.event_type == EventType.CALL_FAILED] == [CALL_FAILED_TOAST]


def test_second_call_request_is_ignored(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    assert controller.handle_call() is False
    assert len(controller.transport.started) == 1


def test_only_final_transcripts_are_recorded(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(
        TransportEvent.call_started(),
        partial("assistant", "Tell me"),
        final("assistant", "Tell me about yourself."),
        partial("user", "I am"),
    )
    controller.drain()

    assert [(m.role, m.content) for m in controller.messages] == [("assistant", "Tell me about yourself.")]
    assert controller.state.last_message == "I am"


def test_non_transcript_messages_are_ignored(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(TransportEvent.message_received(FunctionCall(name="lookup")))
    controller.drain()
    assert controller.messages == ()


def test_speech_events_toggle_speaking(setup):
    controller, _ = make_controller(setup)
    controller.dispatch(TransportEvent.speech_started())
    assert controller.state.is_speaking is True
    controller.dispatch(TransportEvent.speech_ended())
    assert controller.state.is_speaking is False


def test_call_end_without_messages_skips_feedback(setup):
    controller, events = make_controller(setup)
    controller.handle_call()
    controller.transport.push(TransportEvent.call_started(), TransportEvent.call_ended())
    controller.drain()

    assert controller.status == CallStatus.FINISHED
    assert setup["llm_client"].request_history == []
    assert EventType.NO_CONTENT in event_types(events)


def test_call_end_generates_feedback_once(setup):
    controller, events = make_controller(setup)
    controller.handle_call()
    controller.transport.push(
        TransportEvent.call_started(),
        final("assistant", "Why this role?"),
        final("user", "I enjoy building interfaces."),
        TransportEvent.call_ended(),
        TransportEvent.call_ended(),
    )
    controller.drain()

    assert len(setup["llm_client"].request_history) == 1
    saved = [e for e in events if e.event_type == EventType.FEEDBACK_SAVED]
    assert len(saved) == 1
    assert saved[0].data["interview_id"] == controller.interview_id
    assert setup["repository"].get_interview_by_id(controller.interview_id).finalized is True


def test_disconnect_then_remote_hangup_generates_once(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(TransportEvent.call_started(), final("user", "Hello there."))
    controller.drain()

    controller.handle_disconnect()
    controller.drain()

    assert controller.transport.stop_count == 1
    assert controller.status == CallStatus.FINISHED
    assert len(setup["llm_client"].request_history) == 1


def test_transcripts_after_finish_are_ignored(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(TransportEvent.call_started(), final("user", "One."), TransportEvent.call_ended())
    controller.drain()

    controller.dispatch(final("user", "Too late."))
    assert [m.content for m in controller.messages] == ["One."]


def test_save_failure_emits_feedback_failed():
    setup = create_mock_generator_setup(fail_on={("set", "feedback")})
    controller, events = make_controller(setup)
    controller.handle_call()
    controller.transport.push(final("user", "Hi."), TransportEvent.call_ended())
    controller.drain()

    failed = [e for e in events if e.event_type == EventType.FEEDBACK_FAILED]
    assert failed[0].data["toast"] == "Sorry, we couldn't save your feedback."


def test_unexpected_generator_error_is_contained(setup):
    class ExplodingGenerator:
        def generate(self, *args, **kwargs):
            raise RuntimeError("boom")

    setup["generator"] = ExplodingGenerator()
    controller, events = make_controller(setup)
    controller.handle_call()
    controller.transport.push(final("user", "Hi."), TransportEvent.call_ended())
    controller.drain()

    failed = [e for e in events if e.event_type == EventType.FEEDBACK_FAILED]
    assert failed[0].data["toast"] == GENERATION_ERROR_TOAST
    assert EventType.ERROR_OCCURRED in event_types(events)


def test_run_loops_until_finished(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(
        TransportEvent.call_started(), final("user", "Hello."), TransportEvent.call_ended()
    )
    assert controller.run(timeout=0.1) == CallStatus.FINISHED


def test_run_stops_on_timeout(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    assert controller.run(timeout=0.01) == CallStatus.CONNECTING


def test_metrics_track_session(setup):
    controller, _ = make_controller(setup)
    controller.handle_call()
    controller.transport.push(
        TransportEvent.call_started(), final("user", "Hello."), TransportEvent.call_ended()
    )
    controller.drain()

    metrics = controller.get_metrics()
    assert metrics["calls_started"] == 1
    assert metrics["interviews_created"] == 1
    assert metrics["messages_captured"] == 1
    assert metrics["feedback_saved"] == 1


@pytest.mark.parametrize("status", list(CallStatus))
def test_call_status_values_are_uppercase(status):
    assert status.value == status.name


def test_credential_failure_on_create_returns_to_inactive(setup, unauthorized_repository):
    setup["repository"] = unauthorized_repository
    controller, events = make_controller(setup)

    assert controller.handle_call() is False
    assert controller.status == CallStatus.INACTIVE
    assert controller.transport.started == []
    assert [e.data["toast"] for e in events if e.event_type == EventType.CALL_FAILED] == [CREATE_FAILED_TOAST]


@pytest.mark.parametrize("status", [CallStatus.CONNECTING, CallStatus.ACTIVE])
def test_transport_error_keeps_status(setup, status):
    controller, events = make_controller(setup)
    controller.handle_call()
    if status == CallStatus.ACTIVE:
        controller.dispatch(TransportEvent.call_started())

    controller.dispatch(TransportEvent.failed("Assistant stopped responding"))

    assert controller.status == status
    errors = [e for e in events if e.event_type == EventType.ERROR_OCCURRED]
    assert errors[-1].data["error_message"] == "Assistant stopped responding"
    assert errors[-1].data["component"] == "transport"
