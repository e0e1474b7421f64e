"""Infrastructure components for the PrepWise app.

This module contains the clients for the external services the interview
flow depends on: the document store, the generative model, the voice
session transport and Google auth.
"""

# Data infrastructure
from .data import (
    DocumentStore, FirestoreRestStore, InMemoryDocumentStore, InterviewRepository
)

# LLM infrastructure
from .llm import VertexRestClient

# Session infrastructure
from .session import SessionTransport, VapiTransport

# Auth
from .auth import AccessTokenProvider, FirebaseTokenVerifier, User

__all__ = [
    # Storage
    "DocumentStore", "FirestoreRestStore", "InMemoryDocumentStore", "InterviewRepository",

    # LLM client
    "VertexRestClient",

    # Voice sessions
    "SessionTransport", "VapiTransport",

    # Auth
    "AccessTokenProvider", "FirebaseTokenVerifier", "User",
]
