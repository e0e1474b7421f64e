"""
Persisted record shapes for interviews and feedback.
Field names on the wire are camelCase and must stay compatible with stored documents.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class InterviewKind(str, Enum):
    """How an interview was set up."""
    GENERATE = "generate"  # questions produced during the call
    INTERVIEW = "interview"  # pre-authored questions


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Interview:
    """Metadata describing one interview."""
    id: str
    role: str
    level: str
    techstack: List[str] = field(default_factory=list)
    type: str = InterviewKind.GENERATE.value
    user_id: str = ""
    finalized: bool = False
    created_at: str = ""
    questions: List[str] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "role": self.role,
            "level": self.level,
            "techstack": list(self.techstack),
            "type": self.type,
            "questions": list(self.questions),
            "finalized": self.finalized,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> 'Interview':
        return cls(
            id=data.get("id") or doc_id,
            role=data.get("role") or "",
            level=data.get("level") or "",
            techstack=list(data.get("techstack") or []),
            type=data.get("type") or InterviewKind.GENERATE.value,
            user_id=data.get("userId") or "",
            finalized=bool(data.get("finalized", False)),
            created_at=data.get("createdAt") or "",
            questions=list(data.get("questions") or []),
        )


@dataclass
class CategoryScore:
    """Score for one assessment category."""
    name: str
    score: float
    comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score, "comment": self.comment}


@dataclass
class Feedback:
    """
    Structured evaluation of one interview transcript.

    ``category_scores``, ``strengths`` and ``areas_for_improvement`` hold the
    stored text encodings; see ``encode_category_scores`` and
    ``encode_bullet_list``.
    """
    interview_id: str
    user_id: str
    total_score: float
    category_scores: str = ""
    strengths: str = ""
    areas_for_improvement: str = ""
    final_assessment: str = ""
    created_at: str = ""
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "interviewId": self.interview_id,
            "userId": self.user_id,
            "totalScore": self.total_score,
            "categoryScores": self.category_scores,
            "strengths": self.strengths,
            "areasForImprovement": self.areas_for_improvement,
            "finalAssessment": self.final_assessment,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> 'Feedback':
        total = data.get("totalScore")
        return cls(
            id=doc_id,
            interview_id=data.get("interviewId") or "",
            user_id=data.get("userId") or "",
            total_score=total if isinstance(total, (int, float)) and not isinstance(total, bool) else 0,
            category_scores=data.get("categoryScores") or "",
            strengths=data.get("strengths") or "",
            areas_for_improvement=data.get("areasForImprovement") or "",
            final_assessment=data.get("finalAssessment") or "",
            created_at=data.get("createdAt") or "",
        )


def encode_category_scores(scores: Sequence[CategoryScore]) -> str:
    """Minified JSON array of ``{"name","score","comment"}`` objects."""
    return json.dumps([s.to_dict() for s in scores], separators=(",", ":"), ensure_ascii=False)


def encode_bullet_list(items: Sequence[str]) -> str:
    """Newline-joined lines, each prefixed with ``"- "``."""
    lines = []
    for item in items:
        text = (item or "").strip()
        if text.startswith("- "):
            text = text[2:].strip()
        if text:
            lines.append(f"- {text}")
    return "\n".join(lines)
