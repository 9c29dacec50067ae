"""
Content Store Module
====================

Document storage for the profile, content items and feedback.

Backends:
- FirestoreContentStore: Cloud Firestore via firebase-admin
- InMemoryContentStore: process-local dictionaries for development and tests

Layout (both backends):
    profile/main                  single profile document, merged on write
    opinions/<id>                 opinion items
    publications/<id>             publication items
    ongoing/<id>                  ongoing research items
    feedback/<id>                 feedback submissions
"""

import copy
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Protocol

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

logger = logging.getLogger("portfolio.content.store")


PROFILE_COLLECTION = "profile"
PROFILE_DOCUMENT = "main"
FEEDBACK_COLLECTION = "feedback"


class ContentStoreError(Exception):
    """Raised when the document store rejects a request or cannot be reached"""
    pass


class ContentStore(Protocol):
    def get_profile(self) -> Optional[Dict[str, Any]]:
        ...

    def set_profile(self, data: Dict[str, Any]) -> None:
        ...

    def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        ...

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        ...

    def delete(self, collection: str, document_id: str) -> None:
        ...

    def list(self, collection: str) -> List[Dict[str, Any]]:
        ...


# =============================================================================
# Firestore
# =============================================================================

class FirestoreContentStore:
    """
    Content store backed by Cloud Firestore.

    Args:
        client: google.cloud.firestore.Client
    """

    def __init__(self, client):
        self._client = client

    @classmethod
    def from_app(cls, app: firebase_admin.App) -> "FirestoreContentStore":
        client = firestore.client(app=app)
        logger.info("Firestore client created", extra={"project_id": client.project})
        return cls(client)

    def get_profile(self) -> Optional[Dict[str, Any]]:
        try:
            snapshot = self._client.collection(PROFILE_COLLECTION).document(PROFILE_DOCUMENT).get()
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to read profile: {e}") from e
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def set_profile(self, data: Dict[str, Any]) -> None:
        try:
            self._client.collection(PROFILE_COLLECTION).document(PROFILE_DOCUMENT).set(data, merge=True)
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to update profile: {e}") from e

    def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = self._client.collection(collection).document(document_id).get()
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to read {collection}/{document_id}: {e}") from e
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            _, reference = self._client.collection(collection).add(data)
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to add document to {collection}: {e}") from e
        return reference.id

    def delete(self, collection: str, document_id: str) -> None:
        try:
            self._client.collection(collection).document(document_id).delete()
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to delete {collection}/{document_id}: {e}") from e

    def list(self, collection: str) -> List[Dict[str, Any]]:
        try:
            snapshots = self._client.collection(collection).stream()
            return [{**snapshot.to_dict(), "id": snapshot.id} for snapshot in snapshots]
        except google_exceptions.GoogleAPIError as e:
            raise ContentStoreError(f"Failed to list {collection}: {e}") from e


# =============================================================================
# In-Memory
# =============================================================================

class InMemoryContentStore:
    """Thread-safe, process-local content store."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get_profile(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            profile = self._collections.get(PROFILE_COLLECTION, {}).get(PROFILE_DOCUMENT)
            return copy.deepcopy(profile) if profile is not None else None

    def set_profile(self, data: Dict[str, Any]) -> None:
        with self._lock:
            documents = self._collections.setdefault(PROFILE_COLLECTION, {})
            merged = documents.get(PROFILE_DOCUMENT, {})
            merged.update(copy.deepcopy(data))
            documents[PROFILE_DOCUMENT] = merged

    def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._collections.get(collection, {}).get(document_id)
            return {**copy.deepcopy(data), "id": document_id} if data is not None else None

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        document_id = uuid.uuid4().hex
        with self._lock:
            self._collections.setdefault(collection, {})[document_id] = copy.deepcopy(data)
        return document_id

    def delete(self, collection: str, document_id: str) -> None:
        # Deleting a missing document is not an error, matching Firestore
        with self._lock:
            self._collections.get(collection, {}).pop(document_id, None)

    def list(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            documents = self._collections.get(collection, {})
            return [{**copy.deepcopy(data), "id": document_id} for document_id, data in documents.items()]
