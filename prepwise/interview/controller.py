"""
Interview lifecycle controller: drives one voice session from call to feedback.
"""
import logging
import time
import uuid
from typing import Optional, Sequence, List, Dict, Tuple

from .models import CallStatus, TranscriptMessage
from .schemas import CallState
from .prompts import PromptFormatter
from .feedback import FeedbackGenerator
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    InterviewCreatedEvent, StatusChangedEvent, CallFailedEvent,
    TranscriptCapturedEvent, NoContentEvent, FeedbackSavedEvent,
    FeedbackFailedEvent, ErrorOccurredEvent
)
from ..errors import PrepWiseError
from ..infrastructure.data import InterviewRepository, InterviewKind
from ..infrastructure.session import (
    SessionTransport, SessionTarget, TransportEvent, TransportEventType, TranscriptUpdate
)
from ..config import DEFAULT_ROLE, DEFAULT_LEVEL, DEFAULT_TECHSTACK

logger = logging.getLogger("controller")

CREATE_FAILED_TOAST = "Could not create interview. Please try again."
CALL_FAILED_TOAST = "Could not start the interview call. Please try again."
SAVE_FAILED_TOAST = "Sorry, we couldn't save your feedback."
GENERATION_ERROR_TOAST = "An error occurred while generating feedback."


class InterviewLifecycleController:
    """
    Runs a single interview session.

    The controller moves through INACTIVE -> CONNECTING -> ACTIVE -> FINISHED.
    Transport events arrive on the transport's channel and are handled one at
    a time by ``dispatch``; when the call ends, the captured transcript is
    handed to the feedback generator exactly once.
    """

    def __init__(self,
                 transport: SessionTransport,
                 repository: InterviewRepository,
                 feedback_generator: FeedbackGenerator,
                 user_id: str,
                 user_name: str,
                 kind: str = InterviewKind.GENERATE.value,
                 interview_id: Optional[str] = None,
                 feedback_id: Optional[str] = None,
                 questions: Optional[Sequence[str]] = None,
                 role: str = DEFAULT_ROLE,
                 level: str = DEFAULT_LEVEL,
                 techstack: Sequence[str] = DEFAULT_TECHSTACK,
                 workflow_id: Optional[str] = None,
                 interviewer_id: Optional[str] = None,
                 event_bus: Optional[InterviewEventBus] = None,
                 session_id: Optional[str] = None):

        self.transport = transport
        self.repository = repository
        self.feedback_generator = feedback_generator

        self.session_id = session_id or uuid.uuid4().hex
        self.user_id = user_id
        self.user_name = user_name
        self.kind = InterviewKind(kind)
        self.feedback_id = feedback_id
        self.questions = list(questions or [])
        self.role = role
        self.level = level
        self.techstack = list(techstack)
        self.workflow_id = workflow_id
        self.interviewer_id = interviewer_id

        self.state = CallState(interview_id=interview_id)

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

    # ------------------------------------------------------------- properties

    @property
    def status(self) -> CallStatus:
        return self.state.status

    @property
    def interview_id(self) -> Optional[str]:
        return self.state.interview_id

    @property
    def messages(self) -> Tuple[TranscriptMessage, ...]:
        return tuple(self.state.messages)

    # ---------------------------------------------------------- user actions

    def handle_call(self) -> bool:
        """
        Start the interview call.

        For "generate" interviews without an id, the interview record is
        created first; if that fails no call is started.

        Returns:
            True if the transport accepted the call
        """
        if self.state.status != CallStatus.INACTIVE:
            logger.warning("Ignoring call request in state %s", self.state.status.value)
            return False

        self._set_status(CallStatus.CONNECTING)

        if self.kind == InterviewKind.GENERATE and not self.state.interview_id:
            try:
                self.state.interview_id = self.repository.create_interview(
                    user_id=self.user_id,
                    role=self.role,
                    level=self.level,
                    techstack=self.techstack,
                    type=InterviewKind.GENERATE.value,
                )
            except PrepWiseError as e:
                logger.error("Error creating interview: %s", e)
                self._fail_call(str(e), CREATE_FAILED_TOAST)
                return False
            self.event_bus.emit(InterviewCreatedEvent(self.session_id, time.time(), self.state.interview_id))

        target, variables, target_kind = self._session_parameters()
        try:
            self.state.call_id = self.transport.start(target, variables, target_kind)
        except PrepWiseError as e:
            logger.error("Error starting call: %s", e)
            self._fail_call(str(e), CALL_FAILED_TOAST)
            return False

        logger.info("Call requested for interview %s (%s)", self.state.interview_id, self.kind.value)
        return True

    def handle_disconnect(self) -> None:
        """End the call from our side; handled exactly like a remote hang-up."""
        try:
            self.transport.stop()
        except PrepWiseError as e:
            logger.error("Error stopping call: %s", e)
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), "transport"
            ))
        self._finish()

    # ------------------------------------------------------- event handling

    def dispatch(self, event: TransportEvent) -> None:
        """Handle one transport event."""
        event_type = event.event_type

        if event_type == TransportEventType.CALL_START:
            if self.state.status == CallStatus.CONNECTING:
                self._set_status(CallStatus.ACTIVE)
            else:
                logger.debug("call-start in state %s ignored", self.state.status.value)
        elif event_type == TransportEventType.CALL_END:
            logger.info("Call ended for session %s", self.session_id)
            self._finish()
        elif event_type == TransportEventType.MESSAGE:
            self._handle_message(event)
        elif event_type == TransportEventType.SPEECH_START:
            self.state.is_speaking = True
        elif event_type == TransportEventType.SPEECH_END:
            self.state.is_speaking = False
        elif event_type == TransportEventType.ERROR:
            logger.error("Transport error: %s", event.error)
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), "TransportError", event.error or "", "transport"
            ))
        else:
            logger.warning("Unhandled transport event: %s", event_type)

    def run(self, timeout: Optional[float] = None) -> CallStatus:
        """
        Consume transport events until the session is finished.

        Args:
            timeout: Seconds to wait for each event; None waits forever

        Returns:
            The status when the loop stopped
        """
        while self.state.status != CallStatus.FINISHED:
            event = self.transport.next_event(timeout=timeout)
            if event is None:
                logger.warning("No transport event within %ss, leaving event loop", timeout)
                break
            self.dispatch(event)
        return self.state.status

    def drain(self) -> int:
        """Handle every event already queued; returns how many were handled."""
        events = self.transport.pending_events()
        for event in events:
            self.dispatch(event)
        return len(events)

    def get_metrics(self) -> Dict[str, int]:
        """Get current session metrics."""
        return self.metrics.get_metrics()

    # -------------------------------------------------------------- helpers

    def _session_parameters(self):
        if self.kind == InterviewKind.GENERATE:
            variables = {"username": self.user_name, "userid": self.user_id}
            return self.workflow_id, variables, SessionTarget.WORKFLOW

        variables = {"questions": PromptFormatter.format_questions(self.questions)}
        return self.interviewer_id, variables, SessionTarget.ASSISTANT

    def _handle_message(self, event: TransportEvent) -> None:
        message = event.message
        if not isinstance(message, TranscriptUpdate):
            logger.debug("Ignoring %s message", getattr(message, "type", None))
            return
        if self.state.status == CallStatus.FINISHED:
            logger.debug("Transcript after call end ignored")
            return

        if message.is_final:
            self.state.append_message(TranscriptMessage(role=message.role.value, content=message.transcript))
            self.event_bus.emit(TranscriptCapturedEvent(
                self.session_id, time.time(), message.role.value, len(self.state.messages)
            ))
        else:
            self.state.last_message = message.transcript

    def _set_status(self, status: CallStatus) -> None:
        previous = self.state.transition(status)
        if previous != status:
            self.event_bus.emit(StatusChangedEvent(self.session_id, time.time(), previous.value, status.value))

    def _fail_call(self, reason: str, toast: str) -> None:
        self._set_status(CallStatus.INACTIVE)
        self.event_bus.emit(CallFailedEvent(self.session_id, time.time(), reason, toast))

    def _finish(self) -> None:
        """Move to FINISHED and request feedback once per session."""
        self._set_status(CallStatus.FINISHED)
        if self.state.feedback_requested:
            return
        self.state.feedback_requested = True

        if not self.state.has_content:
            logger.info("No messages recorded for session %s", self.session_id)
            self.event_bus.emit(NoContentEvent(self.session_id, time.time(), self.state.interview_id))
            return

        self._generate_feedback(list(self.state.messages))

    def _generate_feedback(self, transcript: List[TranscriptMessage]) -> None:
        logger.info("Generating feedback from %d messages", len(transcript))
        interview_id = self.state.interview_id

        try:
            outcome = self.feedback_generator.generate(
                interview_id or "", self.user_id, transcript, self.feedback_id
            )
        except Exception as e:
            logger.exception("Error in feedback generation: %s", e)
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), "feedback"
            ))
            self.event_bus.emit(FeedbackFailedEvent(
                self.session_id, time.time(), interview_id, str(e), GENERATION_ERROR_TOAST
            ))
            return

        if outcome.success and outcome.feedback_id:
            self.event_bus.emit(FeedbackSavedEvent(
                self.session_id, time.time(), interview_id or "", outcome.feedback_id
            ))
        else:
            self.event_bus.emit(FeedbackFailedEvent(
                self.session_id, time.time(), interview_id, outcome.error or "unknown error", SAVE_FAILED_TOAST
            ))
