import pytest

from prepwise.infrastructure.data import FirestoreRestStore, InMemoryDocumentStore, InterviewRepository
from prepwise.interview.testing import RevokedTokenProvider, create_mock_generator_setup, create_test_transcript


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store):
    return InterviewRepository(store)


@pytest.fixture
def setup():
    return create_mock_generator_setup()


@pytest.fixture
def transcript():
    return create_test_transcript()


@pytest.fixture
def unauthorized_repository():
    """Repository over Firestore whose Google credentials cannot be refreshed."""
    return InterviewRepository(FirestoreRestStore("demo", token_provider=RevokedTokenProvider()))
