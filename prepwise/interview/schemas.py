"""
Structured schemas and state management for interviews and feedback scoring.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import CallStatus, TranscriptMessage


FEEDBACK_CATEGORIES = (
    "Communication Skills",
    "Technical Knowledge",
    "Problem-Solving",
    "Cultural & Role Fit",
    "Confidence & Clarity",
)


# Vertex responseSchema (OpenAPI subset) for feedback scoring
FEEDBACK_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "totalScore": {"type": "NUMBER", "minimum": 0, "maximum": 100},
        "categoryScores": {
            "type": "ARRAY",
            "minItems": len(FEEDBACK_CATEGORIES),
            "maxItems": len(FEEDBACK_CATEGORIES),
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING", "enum": list(FEEDBACK_CATEGORIES)},
                    "score": {"type": "NUMBER", "minimum": 0, "maximum": 100},
                    "comment": {"type": "STRING"},
                },
                "required": ["name", "score", "comment"],
                "propertyOrdering": ["name", "score", "comment"],
            },
        },
        "strengths": {"type": "ARRAY", "items": {"type": "STRING"}},
        "areasForImprovement": {"type": "ARRAY", "items": {"type": "STRING"}},
        "finalAssessment": {"type": "STRING"},
    },
    "required": ["totalScore", "categoryScores", "strengths", "areasForImprovement", "finalAssessment"],
    "propertyOrdering": ["totalScore", "categoryScores", "strengths", "areasForImprovement", "finalAssessment"],
}


class CategoryAssessment(BaseModel):
    name: str
    score: float = Field(ge=0, le=100)
    comment: str = ""


class FeedbackAssessment(BaseModel):
    """Model output for one transcript, validated against the scoring rubric."""
    model_config = ConfigDict(populate_by_name=True)

    total_score: Optional[float] = Field(default=None, alias="totalScore")
    category_scores: List[CategoryAssessment] = Field(alias="categoryScores")
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list, alias="areasForImprovement")
    final_assessment: str = Field(alias="finalAssessment")

    @field_validator("category_scores")
    @classmethod
    def _exactly_the_rubric(cls, scores: List[CategoryAssessment]) -> List[CategoryAssessment]:
        canonical = {name.lower(): name for name in FEEDBACK_CATEGORIES}
        by_name: Dict[str, CategoryAssessment] = {}
        for score in scores:
            name = canonical.get(score.name.strip().lower())
            if name is None:
                raise ValueError(f"unknown category {score.name!r}")
            if name in by_name:
                raise ValueError(f"duplicate category {name!r}")
            by_name[name] = score.model_copy(update={"name": name})
        missing = [name for name in FEEDBACK_CATEGORIES if name not in by_name]
        if missing:
            raise ValueError(f"missing categories: {', '.join(missing)}")
        return [by_name[name] for name in FEEDBACK_CATEGORIES]

    @field_validator("strengths", "areas_for_improvement", mode="before")
    @classmethod
    def _accept_bulleted_text(cls, value: Any) -> Any:
        # Some replies still come back as one "- a\n- b" string
        if isinstance(value, str):
            return [line for line in value.splitlines() if line.strip()]
        return value

    @property
    def mean_score(self) -> int:
        """Rounded arithmetic mean of the category scores."""
        scores = [c.score for c in self.category_scores]
        return int(round(sum(scores) / len(scores)))


def parse_feedback_assessment(raw: Dict[str, Any]) -> FeedbackAssessment:
    """
    Validate a decoded model reply.

    Raises:
        ValueError: If the reply does not match the rubric
    """
    try:
        return FeedbackAssessment.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid feedback structure: {e}") from e


@dataclass
class CallState:
    """Mutable state of one interview session."""
    status: CallStatus = CallStatus.INACTIVE
    interview_id: Optional[str] = None
    call_id: Optional[str] = None
    messages: List[TranscriptMessage] = field(default_factory=list)
    last_message: str = ""
    is_speaking: bool = False
    feedback_requested: bool = False

    def transition(self, status: CallStatus) -> CallStatus:
        """Set a new status and return the previous one."""
        previous = self.status
        self.status = status
        return previous

    def append_message(self, message: TranscriptMessage):
        self.messages.append(message)
        self.last_message = message.content

    @property
    def has_content(self) -> bool:
        return bool(self.messages)
