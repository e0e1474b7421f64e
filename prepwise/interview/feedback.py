"""
Feedback generation: score a transcript with the model and store the result.
"""
import logging
from typing import Optional, Sequence

from .models import TranscriptMessage, FeedbackOutcome
from .prompts import FeedbackPrompts, PromptFormatter
from .schemas import FEEDBACK_RESPONSE_SCHEMA, FeedbackAssessment, parse_feedback_assessment
from ..errors import PrepWiseError
from ..infrastructure.data import (
    InterviewRepository, Feedback, CategoryScore,
    encode_category_scores, encode_bullet_list, utc_now_iso
)
from ..infrastructure.llm import VertexRestClient

logger = logging.getLogger("feedback")


def _plain_number(value: float):
    """80.0 -> 80, keep real fractions."""
    return int(value) if float(value).is_integer() else value


class FeedbackGenerator:
    """Turns a finished transcript into a stored, finalized feedback record."""

    def __init__(self, llm_client: VertexRestClient, repository: InterviewRepository):
        self.llm_client = llm_client
        self.repository = repository

    def generate(self,
                 interview_id: str,
                 user_id: str,
                 transcript: Sequence[TranscriptMessage],
                 existing_feedback_id: Optional[str] = None) -> FeedbackOutcome:
        """
        Score ``transcript`` and persist the feedback.

        The feedback write happens first; the interview is only marked
        finalized once that write succeeded. A failed finalize leaves the
        feedback in place and reports failure.

        Args:
            interview_id: Interview the transcript belongs to
            user_id: Candidate the feedback is for
            transcript: Finalized messages in spoken order
            existing_feedback_id: Replace this feedback record instead of creating one

        Returns:
            FeedbackOutcome with the stored feedback id on success
        """
        if not interview_id or not interview_id.strip():
            logger.error("Error saving feedback: interview id is missing")
            return FeedbackOutcome.failed("interview id is required")

        logger.info("Generating feedback for interview %s from %d messages", interview_id, len(transcript))
        formatted_transcript = PromptFormatter.format_transcript(transcript)

        try:
            assessment = self._assess(formatted_transcript)
        except (PrepWiseError, ValueError) as e:
            logger.error("Feedback generation failed for interview %s: %s", interview_id, e)
            return FeedbackOutcome.failed(f"generation failed: {e}")

        feedback = self._build_feedback(interview_id, user_id, assessment)

        try:
            feedback_id = self.repository.save_feedback(feedback, existing_feedback_id)
        except PrepWiseError as e:
            logger.error("Error saving feedback for interview %s: %s", interview_id, e)
            return FeedbackOutcome.failed(f"feedback write failed: {e}")

        try:
            self.repository.finalize_interview(interview_id)
        except PrepWiseError as e:
            # Feedback stays stored; the interview remains unfinalized
            logger.error("Feedback %s saved but interview %s could not be finalized: %s",
                         feedback_id, interview_id, e)
            return FeedbackOutcome.failed(f"finalize failed: {e}", feedback_id=feedback_id)

        return FeedbackOutcome.ok(feedback_id)

    def _assess(self, formatted_transcript: str) -> FeedbackAssessment:
        raw = self.llm_client.generate_structured(
            FeedbackPrompts.feedback_prompt(formatted_transcript),
            FEEDBACK_RESPONSE_SCHEMA,
            system_instruction=FeedbackPrompts.system_instruction(),
        )
        assessment = parse_feedback_assessment(raw)

        if assessment.total_score is not None and abs(assessment.total_score - assessment.mean_score) > 1:
            logger.warning("Model total score %s disagrees with category mean %s; using the mean",
                           assessment.total_score, assessment.mean_score)
        return assessment

    def _build_feedback(self, interview_id: str, user_id: str, assessment: FeedbackAssessment) -> Feedback:
        scores = [
            CategoryScore(name=c.name, score=_plain_number(c.score), comment=c.comment)
            for c in assessment.category_scores
        ]
        return Feedback(
            interview_id=interview_id,
            user_id=user_id,
            total_score=assessment.mean_score,
            category_scores=encode_category_scores(scores),
            strengths=encode_bullet_list(assessment.strengths),
            areas_for_improvement=encode_bullet_list(assessment.areas_for_improvement),
            final_assessment=assessment.final_assessment,
            created_at=utc_now_iso(),
        )
