"""
FastAPI application: dashboard, feedback page, live call sessions and the Vapi webhook.

Every interview call is owned by an ``InterviewLifecycleController`` kept in a
process-wide ``SessionRegistry``. Webhook messages are routed to the owning
session by call id, queued on its transport, and handled after the response
under that session's lock. Finished sessions leave the registry once their
notice has been collected.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from .views import NoticeBoard, build_feedback_report, call_view, interview_card
from ..bootstrap import AppServices
from ..config import HOME_PATH, SIGN_IN_PATH, SESSION_COOKIE_NAME, SESSION_MAX_AGE, DEFAULT_ROLE, DEFAULT_LEVEL, DEFAULT_TECHSTACK
from ..errors import AuthError, PrepWiseError
from ..infrastructure.auth import User
from ..infrastructure.data import InterviewKind
from ..infrastructure.session import VapiTransport
from ..interview import CallStatus, InterviewLifecycleController
from ..interview.controller import CALL_FAILED_TOAST

logger = logging.getLogger("web")

SERVICE_ERROR_TOAST = "Something went wrong. Please try again."


# =============================================================================
# Session registry
# =============================================================================

@dataclass
class SessionEntry:
    controller: InterviewLifecycleController
    notices: NoticeBoard
    lock: threading.Lock = field(default_factory=threading.Lock)
    created_at: float = field(default_factory=time.time)


class SessionRegistry:
    """Live interview sessions, by session id and by transport call id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionEntry] = {}
        self._calls: Dict[str, str] = {}

    def add(self, entry: SessionEntry) -> None:
        controller = entry.controller
        self.sweep()
        with self._lock:
            self._sessions[controller.session_id] = entry
            if controller.state.call_id:
                self._calls[controller.state.call_id] = controller.session_id

    def get(self, session_id: str) -> Optional[SessionEntry]:
        with self._lock:
            return self._sessions.get(session_id)

    def by_call(self, call_id: Optional[str]) -> Optional[SessionEntry]:
        if not call_id:
            return None
        with self._lock:
            session_id = self._calls.get(call_id)
            return self._sessions.get(session_id) if session_id else None

    def discard(self, session_id: str) -> None:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
            if entry is not None and entry.controller.state.call_id:
                self._calls.pop(entry.controller.state.call_id, None)
        if entry is not None:
            logger.debug("Dropped session %s", session_id)

    def sweep(self, max_age: float = SESSION_MAX_AGE) -> int:
        """Drop sessions older than ``max_age`` seconds whose notice was never collected."""
        cutoff = time.time() - max_age
        with self._lock:
            stale = [sid for sid, entry in self._sessions.items() if entry.created_at < cutoff]
        for session_id in stale:
            self.discard(session_id)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# =============================================================================
# Request bodies
# =============================================================================

class CallRequest(BaseModel):
    """Body of ``POST /interview/call``."""
    model_config = ConfigDict(populate_by_name=True)

    type: InterviewKind = InterviewKind.GENERATE
    interview_id: Optional[str] = Field(default=None, alias="interviewId")
    feedback_id: Optional[str] = Field(default=None, alias="feedbackId")
    questions: List[str] = Field(default_factory=list)
    role: str = DEFAULT_ROLE
    level: str = DEFAULT_LEVEL
    techstack: List[str] = Field(default_factory=lambda: list(DEFAULT_TECHSTACK))


# =============================================================================
# Application
# =============================================================================

def create_app(services: AppServices) -> FastAPI:
    """Build the web app around already-constructed services."""
    app = FastAPI(title="PrepWise")
    app.state.services = services
    app.state.sessions = SessionRegistry()

    def current_user(request: Request) -> Optional[User]:
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if not token:
            return None
        try:
            return services.token_verifier.verify(token)
        except AuthError as e:
            logger.info("Rejected session cookie: %s", e)
            return None

    def require_user(user: Optional[User] = Depends(current_user)) -> User:
        if user is None:
            raise HTTPException(status_code=401, detail="Not signed in")
        return user

    def session_for(session_id: str, user: User) -> SessionEntry:
        entry = app.state.sessions.get(session_id)
        if entry is None or entry.controller.user_id != user.id:
            raise HTTPException(status_code=404, detail="Unknown session")
        return entry

    def collect_view(entry: SessionEntry) -> Dict[str, Any]:
        """Call view plus pending notice; a finished session is dropped once its notice is out."""
        view = call_view(entry.controller, entry.notices.pop())
        if entry.controller.status == CallStatus.FINISHED:
            app.state.sessions.discard(entry.controller.session_id)
        return view

    def drain_session(entry: SessionEntry) -> None:
        with entry.lock:
            entry.controller.drain()

    @app.exception_handler(PrepWiseError)
    async def service_error_handler(request: Request, exc: PrepWiseError):
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(status_code=503, content={"toast": SERVICE_ERROR_TOAST, "redirect": HOME_PATH})

    @app.get("/")
    def home(user: Optional[User] = Depends(current_user)):
        if user is None:
            return RedirectResponse(SIGN_IN_PATH, status_code=303)

        repository = services.repository
        user_interviews = repository.get_interviews_by_user_id(user.id)
        latest_interviews = repository.get_latest_interviews(user.id)
        return {
            "user": {"id": user.id, "name": user.name},
            "userInterviews": [interview_card(i) for i in user_interviews],
            "latestInterviews": [interview_card(i) for i in latest_interviews],
            "hasPastInterviews": len(user_interviews) > 0,
            "hasUpcomingInterviews": len(latest_interviews) > 0,
        }

    @app.get("/interview/{interview_id}/feedback")
    def feedback_page(interview_id: str, user: Optional[User] = Depends(current_user)):
        if user is None:
            return RedirectResponse(SIGN_IN_PATH, status_code=303)

        interview = services.repository.get_interview_by_id(interview_id)
        if interview is None:
            return RedirectResponse(HOME_PATH, status_code=303)
        feedback = services.repository.get_feedback_by_interview_id(interview_id, user.id)
        if feedback is None:
            return RedirectResponse(HOME_PATH, status_code=303)

        report = build_feedback_report(interview, feedback).to_dict()
        report["links"] = {"home": HOME_PATH, "retake": f"/interview/{interview_id}"}
        return report

    @app.post("/interview/call")
    def start_call(body: CallRequest, user: User = Depends(require_user)):
        config = services.config
        try:
            transport = services.transport_factory()
        except PrepWiseError as e:
            logger.error("Could not open a session transport: %s", e)
            return JSONResponse(status_code=503, content={"toast": CALL_FAILED_TOAST, "redirect": None})

        notices = NoticeBoard()
        controller = InterviewLifecycleController(
            transport=transport,
            repository=services.repository,
            feedback_generator=services.feedback_generator,
            user_id=user.id,
            user_name=user.name,
            kind=body.type.value,
            interview_id=body.interview_id,
            feedback_id=body.feedback_id,
            questions=body.questions,
            role=body.role,
            level=body.level,
            techstack=body.techstack,
            workflow_id=config.vapi_workflow_id,
            interviewer_id=config.vapi_interviewer_id,
        )
        notices.attach(controller.event_bus)
        entry = SessionEntry(controller=controller, notices=notices)

        with entry.lock:
            if controller.handle_call():
                app.state.sessions.add(entry)
            controller.drain()
            view = call_view(controller, notices.pop())

        view["webCallUrl"] = getattr(transport, "web_call_url", None)
        return view

    @app.get("/interview/session/{session_id}")
    def session_view(session_id: str, user: User = Depends(require_user)):
        entry = session_for(session_id, user)
        if not entry.lock.acquire(blocking=False):
            # Session busy: answer from the current state without draining
            return call_view(entry.controller)
        try:
            entry.controller.drain()
            return collect_view(entry)
        finally:
            entry.lock.release()

    @app.post("/interview/session/{session_id}/disconnect")
    def disconnect(session_id: str, user: User = Depends(require_user)):
        entry = session_for(session_id, user)
        with entry.lock:
            entry.controller.handle_disconnect()
            entry.controller.drain()
            return collect_view(entry)

    @app.post("/vapi/webhook")
    def vapi_webhook(payload: Dict[str, Any], background_tasks: BackgroundTasks,
                     x_vapi_secret: Optional[str] = Header(default=None)):
        secret = services.config.vapi_webhook_secret
        if secret and x_vapi_secret != secret:
            raise HTTPException(status_code=401, detail="Bad webhook secret")

        call_id = VapiTransport.call_id_of(payload)
        entry = app.state.sessions.by_call(call_id)
        if entry is None:
            logger.debug("Webhook for unknown call %s", call_id)
            return {"handled": False}

        transport = entry.controller.transport
        if not isinstance(transport, VapiTransport):
            logger.warning("Session %s does not take Vapi server messages", entry.controller.session_id)
            return {"handled": False}

        event = transport.handle_server_message(payload)
        if event is not None:
            # Drained once the response is sent
            background_tasks.add_task(drain_session, entry)
        return {"handled": event is not None}

    return app
