"""
Data management infrastructure for interviews and feedback.
"""

from .records import (
    Interview, Feedback, CategoryScore, InterviewKind,
    encode_category_scores, encode_bullet_list, utc_now_iso
)
from .store import (
    DocumentStore, DocumentSnapshot, FirestoreRestStore, InMemoryDocumentStore
)
from .repository import InterviewRepository

__all__ = [
    'Interview',
    'Feedback',
    'CategoryScore',
    'InterviewKind',
    'encode_category_scores',
    'encode_bullet_list',
    'utc_now_iso',
    'DocumentStore',
    'DocumentSnapshot',
    'FirestoreRestStore',
    'InMemoryDocumentStore',
    'InterviewRepository',
]
