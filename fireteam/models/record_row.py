"""
Relationship record table - one row per user
"""
from sqlalchemy import Column, String, DateTime, JSON
from fireteam.database import Base
from fireteam.utils.time_utils import utc_now


class RelationshipRecordRow(Base):
    """Stored friends/requests document for a single user"""
    __tablename__ = "relationship_records"

    user_id = Column(String(64), primary_key=True)

    # camelCase document: friends, outgoingRequests, incomingRequests
    data = Column(JSON, nullable=False, default=dict)

    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
