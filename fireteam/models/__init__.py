"""
Database models for Fireteam Friends Backend

All models should be imported here so init_db can create their tables.
"""
from fireteam.models.record_row import RelationshipRecordRow

__all__ = [
    "RelationshipRecordRow",
]
