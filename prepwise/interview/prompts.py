"""
Interview prompt templates and formatting.

This module contains the prompt used to score interviews, keeping it separate
from the business logic for easier maintenance and editing.
"""

from typing import Iterable, Optional, Sequence

from .models import TranscriptMessage
from .schemas import FEEDBACK_CATEGORIES


class FeedbackPrompts:
    """Prompts for scoring a finished interview."""

    @staticmethod
    def system_instruction() -> str:
        return (
            "You are a professional interviewer analyzing a mock interview. "
            "Your task is to evaluate the candidate based on structured categories"
        )

    @staticmethod
    def feedback_prompt(formatted_transcript: str) -> str:
        """Main scoring prompt for a rendered transcript."""
        return f"""
You are an AI interviewer analyzing a mock interview. Your task is to evaluate the candidate based on structured categories. Be thorough and detailed in your analysis. Don't be lenient. If there are mistakes, point them out.

Transcript:
{formatted_transcript}

Please score the candidate from 0 to 100 in the following 5 areas:
- **Communication Skills**: Clarity, articulation, structured responses.
- **Technical Knowledge**: Understanding of key concepts for the role.
- **Problem-Solving**: Ability to analyze problems and propose solutions.
- **Cultural & Role Fit**: Alignment with company values and job role.
- **Confidence & Clarity**: Confidence in responses, engagement, and clarity.

Output rules:
1. 'categoryScores' must contain exactly these five entries, using these exact names: {", ".join(FEEDBACK_CATEGORIES)}. Each has a 'score' from 0 to 100 and a short 'comment'.
2. 'strengths' and 'areasForImprovement' are lists of short statements, one point per item.
3. 'totalScore' is the average of the 5 category scores.
4. 'finalAssessment' is a short paragraph summarizing the candidate's performance.
        """.strip()


class PromptFormatter:
    """Helper class for rendering session data into prompt and call text."""

    @staticmethod
    def format_transcript(transcript: Iterable[TranscriptMessage]) -> str:
        """One ``- role: content`` line per message, in order."""
        return "".join(f"- {message.role}: {message.content}\n" for message in transcript)

    @staticmethod
    def format_questions(questions: Optional[Sequence[str]]) -> str:
        """Bulleted question list passed to the interviewer as a call variable."""
        if not questions:
            return ""
        return "\n".join(f"- {question}" for question in questions)
