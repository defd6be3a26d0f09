"""
Record store interface and the file-backed implementation

A record store maps a user id to that user's RelationshipRecord. Loading a
key that was never written returns an empty record. I/O problems raise
StoreReadFailure / StoreWriteFailure carrying the key. Writes to different
keys are independent; the engine compensates for that.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from fireteam.core.config import Settings
from fireteam.core.exceptions import StoreReadFailure, StoreWriteFailure
from fireteam.schemas.relationship import RelationshipRecord

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Keyed storage of relationship records"""

    backend_name = "abstract"

    @abstractmethod
    def load(self, user_id: str) -> RelationshipRecord:
        """Return the user's record, or an empty one if none exists."""

    @abstractmethod
    def save(self, user_id: str, record: RelationshipRecord) -> None:
        """Persist the user's record, raising StoreWriteFailure on failure."""

    def prepare(self) -> None:
        """Create whatever the backend needs before serving requests."""

    def status(self) -> Dict[str, Any]:
        return {"backend": self.backend_name}


class FileRecordStore(RecordStore):
    """One pretty-printed JSON file per user"""

    backend_name = "file"

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path_for(self, user_id: str) -> Path:
        return self.directory / f"{user_id}.json"

    def prepare(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def load(self, user_id: str) -> RelationshipRecord:
        path = self._path_for(user_id)
        if not path.exists():
            return RelationshipRecord()

        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            return RelationshipRecord.from_document(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load relationship record {user_id} from {path}: {e}")
            raise StoreReadFailure(user_id, str(e)) from e

    def save(self, user_id: str, record: RelationshipRecord) -> None:
        path = self._path_for(user_id)
        tmp_name: Optional[str] = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{user_id}.", suffix=".tmp")
            os.close(fd)
            with open(tmp_name, "w", encoding="utf-8") as fh:
                json.dump(record.to_document(), fh, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error(f"Failed to save relationship record {user_id} to {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteFailure(user_id, str(e)) from e

    def status(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "directory": str(self.directory)}


def build_record_store(config: Settings) -> RecordStore:
    """Create the record store selected by RECORD_STORE_BACKEND"""
    backend = config.RECORD_STORE_BACKEND.lower()

    if backend == "file":
        return FileRecordStore(config.FRIENDS_DATA_DIR)

    if backend == "database":
        from fireteam.services.sql_record_store import SqlRecordStore
        from fireteam.database import SessionLocal

        return SqlRecordStore(SessionLocal)

    if backend == "firestore":
        from fireteam.services.firestore_record_store import FirestoreRecordStore

        return FirestoreRecordStore(collection=config.FIRESTORE_COLLECTION)

    raise ValueError(f"Unknown RECORD_STORE_BACKEND: {config.RECORD_STORE_BACKEND}")
