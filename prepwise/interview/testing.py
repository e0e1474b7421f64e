"""
Testing infrastructure with mock services for the interview lifecycle.
"""
import copy
from typing import Dict, Any, List, Optional, Set, Tuple

from .models import TranscriptMessage
from .schemas import FEEDBACK_CATEGORIES
from ..errors import StoreError, TransportError
from ..infrastructure.auth import AccessTokenProvider
from ..infrastructure.data import InMemoryDocumentStore
from ..infrastructure.session import SessionTransport, SessionTarget, TransportEvent


class MockLLMClient:
    """Mock structured-generation client; replies are returned in order."""

    def __init__(self, mock_responses: Optional[List[Any]] = None):
        self.mock_responses = list(mock_responses or [])
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def generate_structured(self, prompt: str, schema: Dict[str, Any],
                            system_instruction: Optional[str] = None) -> Dict[str, Any]:
        self.request_history.append({
            "prompt": prompt,
            "schema": schema,
            "system_instruction": system_instruction,
        })

        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
        else:
            response = create_feedback_response()

        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)


class ScriptedTransport(SessionTransport):
    """Transport double that records calls and lets tests push events."""

    def __init__(self, call_id: str = "call_test_1", fail_start: bool = False,
                 end_on_stop: bool = True):
        super().__init__()
        self.call_id = call_id
        self.fail_start = fail_start
        self.end_on_stop = end_on_stop
        self.started: List[Tuple[str, Dict[str, Any], SessionTarget]] = []
        self.stop_count = 0

    def start(self, target: str, variables: Dict[str, Any],
              target_kind: SessionTarget = SessionTarget.ASSISTANT) -> Optional[str]:
        if self.fail_start:
            raise TransportError("scripted start failure")
        self.started.append((target, dict(variables), target_kind))
        return self.call_id

    def stop(self) -> None:
        self.stop_count += 1
        if self.end_on_stop:
            self.emit(TransportEvent.call_ended(self.call_id))

    def push(self, *events: TransportEvent) -> None:
        for event in events:
            self.emit(event)


class FailingDocumentStore(InMemoryDocumentStore):
    """In-memory store that raises StoreError for chosen operations."""

    def __init__(self, fail_on: Optional[Set[Tuple[str, str]]] = None):
        super().__init__()
        # (operation, collection) pairs, e.g. ("update", "interviews")
        self.fail_on: Set[Tuple[str, str]] = set(fail_on or ())
        self.calls: List[Tuple[str, str]] = []

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.fail_on:
            raise StoreError(f"simulated {operation} failure on {collection}")

    def get(self, collection, doc_id):
        self._check("get", collection)
        return super().get(collection, doc_id)

    def set(self, collection, doc_id, data):
        self._check("set", collection)
        super().set(collection, doc_id, data)

    def update(self, collection, doc_id, fields):
        self._check("update", collection)
        super().update(collection, doc_id, fields)

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        self._check("query", collection)
        return super().query(collection, filters, order_by, descending, limit)


class ExpiredCredentials:
    """Google credentials whose refresh is always rejected."""
    valid = False
    token = None

    def refresh(self, request):
        from google.auth.exceptions import RefreshError
        raise RefreshError("invalid_grant: token has been revoked")


class RevokedTokenProvider(AccessTokenProvider):
    """Token provider whose credentials cannot be refreshed or cannot be found."""

    def __init__(self, missing: bool = False):
        super().__init__()
        self.missing = missing

    def _load_credentials(self):
        if self.missing:
            from google.auth.exceptions import DefaultCredentialsError
            raise DefaultCredentialsError("Could not automatically determine credentials")
        return ExpiredCredentials()


def create_feedback_response(scores: Tuple[float, ...] = (80, 70, 75, 90, 85)) -> Dict[str, Any]:
    """A well-formed model reply for the five scoring categories."""
    return {
        "totalScore": sum(scores) / len(scores),
        "categoryScores": [
            {"name": name, "score": score, "comment": f"{name} comment."}
            for name, score in zip(FEEDBACK_CATEGORIES, scores)
        ],
        "strengths": ["Clear explanations", "Good examples"],
        "areasForImprovement": ["Go deeper on trade-offs"],
        "finalAssessment": "Solid interview with room to grow.",
    }


def create_test_transcript() -> List[TranscriptMessage]:
    """Short finalized transcript."""
    return [
        TranscriptMessage(role="assistant", content="Tell me about a project you are proud of."),
        TranscriptMessage(role="user", content="I built a caching layer that cut latency in half."),
        TranscriptMessage(role="assistant", content="How did you handle invalidation?"),
        TranscriptMessage(role="user", content="We used write-through with short TTLs."),
    ]


def create_mock_generator_setup(responses: Optional[List[Any]] = None,
                                fail_on: Optional[Set[Tuple[str, str]]] = None) -> Dict[str, Any]:
    """Store, repository, LLM client and generator wired together."""
    from ..infrastructure.data import InterviewRepository
    from .feedback import FeedbackGenerator

    store = FailingDocumentStore(fail_on)
    repository = InterviewRepository(store)
    llm_client = MockLLMClient(responses)
    generator = FeedbackGenerator(llm_client, repository)
    return {
        "store": store,
        "repository": repository,
        "llm_client": llm_client,
        "generator": generator,
    }
