"""
Database-backed record store - one row per user
"""
import logging
from typing import Any, Dict

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fireteam.core.exceptions import StoreReadFailure, StoreWriteFailure
from fireteam.models.record_row import RelationshipRecordRow
from fireteam.schemas.relationship import RelationshipRecord
from fireteam.services.record_store import RecordStore
from fireteam.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """Stores each record as a JSON document in relationship_records"""

    backend_name = "database"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def prepare(self) -> None:
        from fireteam.database import init_db

        init_db(bind=self.session_factory.kw.get("bind"))

    def load(self, user_id: str) -> RelationshipRecord:
        db: Session = self.session_factory()
        try:
            row = db.get(RelationshipRecordRow, user_id)
            if row is None:
                return RelationshipRecord()
            return RelationshipRecord.from_document(row.data)
        except (SQLAlchemyError, ValidationError) as e:
            logger.error(f"Failed to load relationship record {user_id}: {e}")
            raise StoreReadFailure(user_id, str(e)) from e
        finally:
            db.close()

    def save(self, user_id: str, record: RelationshipRecord) -> None:
        db: Session = self.session_factory()
        try:
            row = db.get(RelationshipRecordRow, user_id)
            if row is None:
                row = RelationshipRecordRow(user_id=user_id)
                db.add(row)
            row.data = record.to_document()
            row.updated_at = utc_now()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save relationship record {user_id}: {e}")
            raise StoreWriteFailure(user_id, str(e)) from e
        finally:
            db.close()

    def status(self) -> Dict[str, Any]:
        bind = self.session_factory.kw.get("bind")
        return {
            "backend": self.backend_name,
            "dialect": bind.dialect.name if bind is not None else None,
        }
