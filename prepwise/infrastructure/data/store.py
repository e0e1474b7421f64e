"""
Document store clients.

``DocumentStore`` is the narrow contract the rest of the app uses: get, replace
and partially update a document by key, and run equality-filtered queries with
ordering and a limit. ``FirestoreRestStore`` speaks the Firestore v1 REST API;
``InMemoryDocumentStore`` keeps everything in process for local runs and tests.
"""
import copy
import logging
import secrets
import string
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from ..auth import AccessTokenProvider, DATASTORE_SCOPE
from ...errors import StoreError
from ...config import FIRESTORE_BASE_URL, FIRESTORE_DATABASE, STORE_TIMEOUT

logger = logging.getLogger("store")

AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20


def generate_document_id() -> str:
    """Random 20-character key in the same shape Firestore auto-IDs use."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


@dataclass
class DocumentSnapshot:
    """A document key together with its field data."""
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """Collection-oriented document storage keyed by opaque string ids."""

    def new_id(self, collection: str) -> str:
        """Allocate a fresh key for ``collection``."""
        return generate_document_id()

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Fetch one document, or None if it does not exist."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Write ``data`` as the full content of the document (replace)."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite only ``fields`` of an existing document."""

    @abstractmethod
    def query(self,
              collection: str,
              filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None,
              descending: bool = False,
              limit: Optional[int] = None) -> List[DocumentSnapshot]:
        """Return documents whose fields equal every value in ``filters``."""


# =============================================================================
# Firestore value codec
# =============================================================================

def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a Python value as a Firestore REST ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(val) for key, val in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a Firestore REST ``Value`` into a plain Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    logger.warning("Unsupported Firestore value: %s", value)
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(val) for key, val in fields.items()}


class FirestoreRestStore(DocumentStore):
    """Firestore client over the v1 REST API."""

    def __init__(self,
                 project: str,
                 database: str = FIRESTORE_DATABASE,
                 credentials_json: Optional[str] = None,
                 timeout: int = STORE_TIMEOUT,
                 base_url: str = FIRESTORE_BASE_URL,
                 token_provider: Optional[AccessTokenProvider] = None):
        self.project = project
        self.database = database
        self.timeout = timeout
        self.documents_path = f"projects/{project}/databases/{database}/documents"
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or AccessTokenProvider(
            credentials_json, scopes=(DATASTORE_SCOPE,)
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token_provider.token()}",
            "Content-Type": "application/json",
        }

    def _document_url(self, collection: str, doc_id: str) -> str:
        return f"{self.base_url}/{self.documents_path}/{collection}/{doc_id}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return requests.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Firestore %s %s failed: %s", method, url, e)
            raise StoreError(f"Firestore request failed: {e}") from e

    @staticmethod
    def _raise_for_status(resp: requests.Response, action: str) -> None:
        if resp.status_code >= 400:
            raise StoreError(f"Firestore {action} error {resp.status_code}: {resp.text}")

    @staticmethod
    def _snapshot(document: Dict[str, Any]) -> DocumentSnapshot:
        doc_id = document["name"].rsplit("/", 1)[-1]
        return DocumentSnapshot(id=doc_id, data=decode_fields(document.get("fields", {})))

    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        resp = self._request("GET", self._document_url(collection, doc_id))
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp, "get")
        return self._snapshot(resp.json())

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        # PATCH without an update mask replaces the whole document
        resp = self._request(
            "PATCH", self._document_url(collection, doc_id),
            json={"fields": encode_fields(data)},
        )
        self._raise_for_status(resp, "set")
        logger.debug("Wrote %s/%s", collection, doc_id)

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        params = [("updateMask.fieldPaths", name) for name in fields]
        params.append(("currentDocument.exists", "true"))
        resp = self._request(
            "PATCH", self._document_url(collection, doc_id),
            params=params,
            json={"fields": encode_fields(fields)},
        )
        self._raise_for_status(resp, "update")
        logger.debug("Updated %s/%s fields %s", collection, doc_id, list(fields))

    def build_structured_query(self,
                               collection: str,
                               filters: Optional[Dict[str, Any]] = None,
                               order_by: Optional[str] = None,
                               descending: bool = False,
                               limit: Optional[int] = None) -> Dict[str, Any]:
        """Build a ``StructuredQuery`` body for ``:runQuery``."""
        query: Dict[str, Any] = {"from": [{"collectionId": collection}]}

        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": name},
                    "op": "EQUAL",
                    "value": encode_value(value),
                }
            }
            for name, value in (filters or {}).items()
        ]
        if len(field_filters) == 1:
            query["where"] = field_filters[0]
        elif field_filters:
            query["where"] = {"compositeFilter": {"op": "AND", "filters": field_filters}}

        if order_by:
            query["orderBy"] = [{
                "field": {"fieldPath": order_by},
                "direction": "DESCENDING" if descending else "ASCENDING",
            }]
        if limit is not None:
            query["limit"] = int(limit)
        return query

    def query(self,
              collection: str,
              filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None,
              descending: bool = False,
              limit: Optional[int] = None) -> List[DocumentSnapshot]:
        body = {"structuredQuery": self.build_structured_query(collection, filters, order_by, descending, limit)}
        resp = self._request("POST", f"{self.base_url}/{self.documents_path}:runQuery", json=body)
        self._raise_for_status(resp, "query")

        # runQuery streams one result per document plus bookkeeping entries
        return [self._snapshot(item["document"]) for item in resp.json() if item.get("document")]


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with the same semantics as the Firestore client."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(data))

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise StoreError(f"No document to update: {collection}/{doc_id}")
            docs[doc_id].update(copy.deepcopy(fields))

    def query(self,
              collection: str,
              filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None,
              descending: bool = False,
              limit: Optional[int] = None) -> List[DocumentSnapshot]:
        filters = filters or {}
        with self._lock:
            matches = [
                DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in self._collections.get(collection, {}).items()
                if all(name in data and data[name] == value for name, value in filters.items())
            ]

        if order_by:
            # Firestore drops documents missing the ordering field
            matches = [snap for snap in matches if snap.data.get(order_by) is not None]
            matches.sort(key=lambda snap: snap.data[order_by], reverse=descending)
        if limit is not None:
            matches = matches[:limit]
        return matches
