"""
Application bootstrap: build every client once and hand them to the app.
"""
import logging
from dataclasses import dataclass
from typing import Callable

from .config import Config
from .errors import TransportError
from .infrastructure.auth import AccessTokenProvider, FirebaseTokenVerifier, DATASTORE_SCOPE, CLOUD_PLATFORM_SCOPE
from .infrastructure.data import DocumentStore, FirestoreRestStore, InMemoryDocumentStore, InterviewRepository
from .infrastructure.llm import VertexRestClient
from .infrastructure.session import SessionTransport, VapiTransport
from .interview import FeedbackGenerator

logger = logging.getLogger("bootstrap")


@dataclass
class AppServices:
    """Process-wide clients shared by every request."""
    config: Config
    store: DocumentStore
    repository: InterviewRepository
    llm_client: VertexRestClient
    feedback_generator: FeedbackGenerator
    token_verifier: FirebaseTokenVerifier
    transport_factory: Callable[[], SessionTransport]


def build_store(config: Config) -> DocumentStore:
    if config.store_backend == "memory":
        logger.warning("Using in-memory document store; data is lost on restart")
        return InMemoryDocumentStore()
    return FirestoreRestStore(
        project=config.store_project,
        timeout=config.store_timeout,
        token_provider=AccessTokenProvider(
            config.google_application_credentials, scopes=(DATASTORE_SCOPE, CLOUD_PLATFORM_SCOPE)
        ),
    )


def build_services(config: Config) -> AppServices:
    """Construct the clients described by ``config``."""
    store = build_store(config)
    repository = InterviewRepository(store)

    llm_client = VertexRestClient(
        project=config.google_cloud_project,
        location=config.vertex_location,
        model=config.model_name,
        credentials_json=config.google_application_credentials,
        timeout=config.llm_timeout,
    )

    def transport_factory() -> SessionTransport:
        if not config.vapi_api_key:
            raise TransportError("VAPI_API_KEY is not configured")
        return VapiTransport(api_key=config.vapi_api_key)

    logger.info("Services ready (store=%s, model=%s)", config.store_backend, config.model_name)
    return AppServices(
        config=config,
        store=store,
        repository=repository,
        llm_client=llm_client,
        feedback_generator=FeedbackGenerator(llm_client, repository),
        token_verifier=FirebaseTokenVerifier(config.store_project),
        transport_factory=transport_factory,
    )
