"""
Interview and feedback data access on top of a ``DocumentStore``.

Lookups with a missing key return an empty result without touching the store,
since the store rejects queries on absent values.
"""
import logging
from typing import List, Optional, Sequence

from .records import Interview, Feedback, utc_now_iso
from .store import DocumentStore
from ...config import INTERVIEWS_COLLECTION, FEEDBACK_COLLECTION, LATEST_INTERVIEWS_LIMIT

logger = logging.getLogger("repository")


def _missing(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class InterviewRepository:
    """Reads and writes interview and feedback records."""

    def __init__(self,
                 store: DocumentStore,
                 interviews_collection: str = INTERVIEWS_COLLECTION,
                 feedback_collection: str = FEEDBACK_COLLECTION):
        self.store = store
        self.interviews_collection = interviews_collection
        self.feedback_collection = feedback_collection

    # ------------------------------------------------------------------ writes

    def create_interview(self,
                         user_id: str,
                         role: str,
                         level: str,
                         techstack: Sequence[str],
                         type: str) -> str:
        """
        Create a new, not yet finalized interview with no questions.

        Returns:
            The new interview id

        Raises:
            StoreError: If the write fails
        """
        interview_id = self.store.new_id(self.interviews_collection)
        interview = Interview(
            id=interview_id,
            user_id=user_id,
            role=role,
            level=level,
            techstack=list(techstack),
            type=type,
            questions=[],
            finalized=False,
            created_at=utc_now_iso(),
        )
        self.store.set(self.interviews_collection, interview_id, interview.to_document())
        logger.info("Created interview %s for user %s (%s, %s)", interview_id, user_id, role, level)
        return interview_id

    def save_feedback(self, feedback: Feedback, feedback_id: Optional[str] = None) -> str:
        """Write a feedback record, replacing ``feedback_id`` if given."""
        doc_id = feedback_id or self.store.new_id(self.feedback_collection)
        self.store.set(self.feedback_collection, doc_id, feedback.to_document())
        logger.info("Saved feedback %s for interview %s", doc_id, feedback.interview_id)
        return doc_id

    def finalize_interview(self, interview_id: str) -> None:
        """Mark an interview as having feedback."""
        self.store.update(self.interviews_collection, interview_id, {"finalized": True})
        logger.info("Finalized interview %s", interview_id)

    # ------------------------------------------------------------------- reads

    def get_interview_by_id(self, interview_id: str) -> Optional[Interview]:
        if _missing(interview_id):
            return None
        snapshot = self.store.get(self.interviews_collection, interview_id)
        if snapshot is None:
            return None
        return Interview.from_document(snapshot.id, snapshot.data)

    def get_feedback_by_interview_id(self, interview_id: str, user_id: str) -> Optional[Feedback]:
        if _missing(interview_id) or _missing(user_id):
            return None
        snapshots = self.store.query(
            self.feedback_collection,
            filters={"interviewId": interview_id, "userId": user_id},
            limit=1,
        )
        if not snapshots:
            return None
        return Feedback.from_document(snapshots[0].id, snapshots[0].data)

    def get_interviews_by_user_id(self, user_id: str) -> List[Interview]:
        if _missing(user_id):
            return []
        snapshots = self.store.query(
            self.interviews_collection,
            filters={"userId": user_id},
            order_by="createdAt",
            descending=True,
        )
        return [Interview.from_document(s.id, s.data) for s in snapshots]

    def get_latest_interviews(self, user_id: str, limit: int = LATEST_INTERVIEWS_LIMIT) -> List[Interview]:
        """
        Newest finalized interviews across all users.

        ``user_id`` only gates the lookup; the caller's own interviews are
        included in the result.
        """
        if _missing(user_id):
            return []
        snapshots = self.store.query(
            self.interviews_collection,
            filters={"finalized": True},
            order_by="createdAt",
            descending=True,
            limit=limit,
        )
        return [Interview.from_document(s.id, s.data) for s in snapshots]
