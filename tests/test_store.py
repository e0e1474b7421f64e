"""Tests for the document stores and the Firestore value codec."""
import pytest

from prepwise.errors import StoreError
from prepwise.infrastructure.data import FirestoreRestStore, InMemoryDocumentStore
from prepwise.infrastructure.data.store import decode_fields, encode_fields, generate_document_id


class FakeTokens:
    def token(self):
        return "test-token"


def test_generated_ids_look_like_firestore_auto_ids():
    doc_id = generate_document_id()
    assert len(doc_id) == 20
    assert doc_id.isalnum()
    assert generate_document_id() != doc_id


def test_memory_store_set_replaces_and_update_merges(store):
    store.set("interviews", "a", {"role": "Backend", "finalized": False})
    store.set("interviews", "a", {"role": "Frontend"})
    assert store.get("interviews", "a").data == {"role": "Frontend"}

    store.update("interviews", "a", {"finalized": True})
    assert store.get("interviews", "a").data == {"role": "Frontend", "finalized": True}


def test_memory_store_update_requires_existing_document(store):
    with pytest.raises(StoreError):
        store.update("interviews", "missing", {"finalized": True})


def test_memory_store_returns_copies(store):
    store.set("interviews", "a", {"techstack": ["React"]})
    snapshot = store.get("interviews", "a")
    snapshot.data["techstack"].append("Vue")
    assert store.get("interviews", "a").data["techstack"] == ["React"]


def test_memory_store_query_filters_orders_and_limits(store):
    store.set("interviews", "old", {"userId": "u1", "createdAt": "2026-01-01T00:00:00.000Z"})
    store.set("interviews", "new", {"userId": "u1", "createdAt": "2026-03-01T00:00:00.000Z"})
    store.set("interviews", "mid", {"userId": "u1", "createdAt": "2026-02-01T00:00:00.000Z"})
    store.set("interviews", "other", {"userId": "u2", "createdAt": "2026-04-01T00:00:00.000Z"})
    store.set("interviews", "undated", {"userId": "u1"})

    results = store.query("interviews", {"userId": "u1"}, order_by="createdAt", descending=True, limit=2)
    assert [r.id for r in results] == ["new", "mid"]


def test_firestore_codec_handles_nested_values():
    data = {
        "role": "Frontend",
        "finalized": True,
        "totalScore": 80,
        "ratio": 0.5,
        "techstack": ["React", "Next.js"],
        "meta": {"source": None},
    }
    encoded = encode_fields(data)
    assert encoded["totalScore"] == {"integerValue": "80"}
    assert encoded["finalized"] == {"booleanValue": True}
    assert encoded["techstack"]["arrayValue"]["values"][0] == {"stringValue": "React"}
    assert decode_fields(encoded) == data


def test_structured_query_uses_composite_filter_for_several_fields():
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    query = client.build_structured_query(
        "feedback", {"interviewId": "i1", "userId": "u1"}, limit=1
    )
    assert query["from"] == [{"collectionId": "feedback"}]
    assert query["where"]["compositeFilter"]["op"] == "AND"
    assert len(query["where"]["compositeFilter"]["filters"]) == 2
    assert query["limit"] == 1


def test_structured_query_single_filter_with_order():
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    query = client.build_structured_query("interviews", {"finalized": True}, order_by="createdAt", descending=True)
    assert query["where"]["fieldFilter"]["value"] == {"booleanValue": True}
    assert query["orderBy"] == [{"field": {"fieldPath": "createdAt"}, "direction": "DESCENDING"}]
    assert "limit" not in query


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


def test_firestore_get_missing_document_returns_none(monkeypatch):
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    monkeypatch.setattr("requests.request", lambda *a, **kw: FakeResponse(404))
    assert client.get("interviews", "nope") is None


def test_firestore_query_reads_streamed_documents(monkeypatch):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return FakeResponse(200, [
            {"readTime": "2026-10-19T00:00:00Z"},
            {"document": {
                "name": "projects/demo/databases/(default)/documents/feedback/f1",
                "fields": {"interviewId": {"stringValue": "i1"}, "totalScore": {"integerValue": "80"}},
            }},
        ])

    monkeypatch.setattr("requests.request", fake_request)
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    results = client.query("feedback", {"interviewId": "i1"}, limit=1)

    assert [(r.id, r.data) for r in results] == [("f1", {"interviewId": "i1", "totalScore": 80})]
    method, url, kwargs = calls[0]
    assert method == "POST"
    assert url.endswith("/projects/demo/databases/(default)/documents:runQuery")
    assert kwargs["headers"]["Authorization"] == "Bearer test-token"


def test_firestore_update_sends_field_mask(monkeypatch):
    calls = []
    monkeypatch.setattr("requests.request", lambda method, url, **kw: calls.append((method, kw)) or FakeResponse(200, {}))
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    client.update("interviews", "i1", {"finalized": True})

    method, kwargs = calls[0]
    assert method == "PATCH"
    assert ("updateMask.fieldPaths", "finalized") in kwargs["params"]
    assert ("currentDocument.exists", "true") in kwargs["params"]


def test_firestore_errors_raise_store_error(monkeypatch):
    monkeypatch.setattr("requests.request", lambda *a, **kw: FakeResponse(500, text="boom"))
    client = FirestoreRestStore("demo", token_provider=FakeTokens())
    with pytest.raises(StoreError):
        client.set("interviews", "i1", {"role": "x"})


def test_in_memory_store_is_a_document_store():
    from prepwise.infrastructure.data import DocumentStore
    assert isinstance(InMemoryDocumentStore(), DocumentStore)
