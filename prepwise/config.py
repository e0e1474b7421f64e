"""
PrepWise Configuration System
=============================

This file contains ALL configuration for the PrepWise interview app.
- User settings at the top (things deployments usually change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these or override them from the environment
# =============================================================================

# REQUIRED: Google Cloud project hosting Vertex AI
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to service account JSON

# Firebase project holding Firestore and Auth (defaults to the Cloud project)
FIREBASE_PROJECT_ID = None

# Document store: "firestore" for production, "memory" for local runs
STORE_BACKEND = "firestore"

# Voice sessions
VAPI_API_KEY = None
VAPI_WORKFLOW_ID = None  # used for "generate" interviews
VAPI_INTERVIEWER_ID = None  # assistant used for "interview" interviews
VAPI_WEBHOOK_SECRET = None  # checked against the x-vapi-secret header when set

# Web server
HOST = "0.0.0.0"
PORT = 8000

# Logging
LOG_FILE = "./_logs/prepwise.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048

# Firestore
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
FIRESTORE_DATABASE = "(default)"
STORE_TIMEOUT = 30
INTERVIEWS_COLLECTION = "interviews"
FEEDBACK_COLLECTION = "feedback"

# Vapi
VAPI_BASE_URL = "https://api.vapi.ai"
VAPI_TIMEOUT = 30

# Presentation
LATEST_INTERVIEWS_LIMIT = 20
SESSION_COOKIE_NAME = "session"
HOME_PATH = "/"
SIGN_IN_PATH = "/sign-in"
SESSION_MAX_AGE = 2 * 60 * 60  # seconds a live call session is kept in memory

# Defaults applied when a "generate" call does not say what to practise
DEFAULT_ROLE = "Frontend Developer"
DEFAULT_LEVEL = "Junior"
DEFAULT_TECHSTACK = ("React", "Next.js")


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: str
    google_application_credentials: Optional[str] = None
    firebase_project_id: Optional[str] = None
    store_backend: str = STORE_BACKEND
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    llm_timeout: int = LLM_TIMEOUT
    store_timeout: int = STORE_TIMEOUT
    vapi_api_key: Optional[str] = VAPI_API_KEY
    vapi_workflow_id: Optional[str] = VAPI_WORKFLOW_ID
    vapi_interviewer_id: Optional[str] = VAPI_INTERVIEWER_ID
    vapi_webhook_secret: Optional[str] = VAPI_WEBHOOK_SECRET
    host: str = HOST
    port: int = PORT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def store_project(self) -> str:
        """Project that owns Firestore and Firebase Auth."""
        return self.firebase_project_id or self.google_cloud_project


def get_config() -> Config:
    """Load configuration."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if project == "your-project-id":
        raise ValueError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")

    store_backend = (os.getenv("STORE_BACKEND") or STORE_BACKEND).strip().lower()
    if store_backend not in ("firestore", "memory"):
        raise ValueError(f"Unknown STORE_BACKEND: {store_backend!r} (use 'firestore' or 'memory')")

    try:
        port = int(os.getenv("PORT") or PORT)
    except ValueError:
        raise ValueError("PORT must be an integer")

    return Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or FIREBASE_PROJECT_ID,
        store_backend=store_backend,
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("MODEL_NAME") or MODEL_NAME,
        vapi_api_key=os.getenv("VAPI_API_KEY") or VAPI_API_KEY,
        vapi_workflow_id=os.getenv("VAPI_WORKFLOW_ID") or VAPI_WORKFLOW_ID,
        vapi_interviewer_id=os.getenv("VAPI_INTERVIEWER_ID") or VAPI_INTERVIEWER_ID,
        vapi_webhook_secret=os.getenv("VAPI_WEBHOOK_SECRET") or VAPI_WEBHOOK_SECRET,
        host=os.getenv("HOST") or HOST,
        port=port,
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
        log_level=os.getenv("LOG_LEVEL") or LOG_LEVEL,
    )
