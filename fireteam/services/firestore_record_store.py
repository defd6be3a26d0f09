"""
Firestore-backed record store - one document per user
"""
import logging
import os
from typing import Any, Dict

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import ValidationError

from fireteam.core.config import settings
from fireteam.core.exceptions import StoreReadFailure, StoreWriteFailure
from fireteam.schemas.relationship import RelationshipRecord
from fireteam.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def _ensure_firebase_initialized():
    """
    Ensure Firebase Admin SDK is initialized before use
    Raises RuntimeError if credentials are missing or invalid
    """
    if firebase_admin._apps:
        return

    if not os.path.exists(settings.GOOGLE_APPLICATION_CREDENTIALS):
        raise RuntimeError(
            f"Firebase Admin SDK not initialized and credentials file not found: "
            f"{settings.GOOGLE_APPLICATION_CREDENTIALS}"
        )

    try:
        cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
        firebase_admin.initialize_app(cred, {"projectId": settings.FIREBASE_PROJECT_ID})
        logger.info("Firebase Admin SDK initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize Firebase Admin SDK: {e}")
        raise RuntimeError(f"Firebase Admin SDK initialization failed: {e}") from e


class FirestoreRecordStore(RecordStore):
    """Stores each record as a document keyed by user id"""

    backend_name = "firestore"

    def __init__(self, client=None, collection: str = "relationship_records"):
        self._client = client
        self.collection = collection

    @property
    def client(self):
        if self._client is None:
            _ensure_firebase_initialized()
            self._client = firestore.client()
        return self._client

    def prepare(self) -> None:
        # Fail at startup rather than on the first request
        self.client

    def load(self, user_id: str) -> RelationshipRecord:
        try:
            snapshot = self.client.collection(self.collection).document(user_id).get()
            if not snapshot.exists:
                return RelationshipRecord()
            return RelationshipRecord.from_document(snapshot.to_dict())
        except ValidationError as e:
            logger.error(f"Malformed relationship document {self.collection}/{user_id}: {e}")
            raise StoreReadFailure(user_id, str(e)) from e
        except Exception as e:
            logger.error(f"Failed to load relationship document {self.collection}/{user_id}: {e}")
            raise StoreReadFailure(user_id, str(e)) from e

    def save(self, user_id: str, record: RelationshipRecord) -> None:
        try:
            self.client.collection(self.collection).document(user_id).set(record.to_document())
        except Exception as e:
            logger.error(f"Failed to save relationship document {self.collection}/{user_id}: {e}")
            raise StoreWriteFailure(user_id, str(e)) from e

    def status(self) -> Dict[str, Any]:
        return {
            "backend": self.backend_name,
            "collection": self.collection,
            "project_id": settings.FIREBASE_PROJECT_ID,
        }
