"""
Relationship record schemas

One RelationshipRecord is persisted per user. Field aliases are the camelCase
names used in the stored JSON documents.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RecordModel(BaseModel):
    """Base for persisted shapes: camelCase on disk, snake_case in code"""

    model_config = ConfigDict(populate_by_name=True)


class CallerContext(BaseModel):
    """Authenticated caller identity supplied by the session layer"""
    user_id: str
    display_name: str


class FriendEntry(RecordModel):
    id: str
    display_name: str = Field(alias="displayName")
    added_at: datetime = Field(alias="addedAt")


class OutgoingRequest(RecordModel):
    id: str
    target_id: str = Field(alias="targetId")
    target_display_name: str = Field(alias="targetDisplayName")
    sent_at: datetime = Field(alias="sentAt")


class IncomingRequest(RecordModel):
    id: str
    requester_id: str = Field(alias="requesterId")
    requester_display_name: str = Field(alias="requesterDisplayName")
    created_at: datetime = Field(alias="createdAt")


class RelationshipRecord(RecordModel):
    """A single user's friends and pending requests"""

    friends: List[FriendEntry] = Field(default_factory=list)
    outgoing_requests: List[OutgoingRequest] = Field(default_factory=list, alias="outgoingRequests")
    incoming_requests: List[IncomingRequest] = Field(default_factory=list, alias="incomingRequests")

    def find_friend(self, user_id: str) -> Optional[FriendEntry]:
        return next((f for f in self.friends if f.id == user_id), None)

    def find_outgoing(self, target_id: str) -> Optional[OutgoingRequest]:
        return next((r for r in self.outgoing_requests if r.target_id == target_id), None)

    def find_incoming(self, request_id: str) -> Optional[IncomingRequest]:
        return next((r for r in self.incoming_requests if r.id == request_id), None)

    def find_incoming_from(self, requester_id: str) -> Optional[IncomingRequest]:
        return next((r for r in self.incoming_requests if r.requester_id == requester_id), None)

    def remove_friend(self, user_id: str) -> None:
        self.friends = [f for f in self.friends if f.id != user_id]

    def remove_outgoing(self, target_id: str) -> None:
        self.outgoing_requests = [r for r in self.outgoing_requests if r.target_id != target_id]

    def remove_incoming_from(self, requester_id: str) -> None:
        self.incoming_requests = [r for r in self.incoming_requests if r.requester_id != requester_id]

    def to_document(self) -> dict:
        """JSON-ready dict in the persisted camelCase format"""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, data: Optional[dict]) -> "RelationshipRecord":
        return cls.model_validate(data or {})


class FriendAction(str, Enum):
    """Outcome markers for mutating operations"""

    SENT = "sent"
    ACCEPTED = "accepted"
    AUTO_ACCEPTED = "auto_accepted"
    DECLINED = "declined"
    REMOVED = "removed"


class ActionOutcome(BaseModel):
    """Success payload of a mutating operation"""
    action: FriendAction
    message: str
    request_id: Optional[str] = None
    friend: Optional[FriendEntry] = None
    sent_request: Optional[OutgoingRequest] = None


class CandidateUser(RecordModel):
    """User returned by the external player directory"""
    id: str
    display_name: str = Field(alias="displayName")


class AnnotatedCandidate(CandidateUser):
    is_friend: bool = Field(False, alias="isFriend")
    request_sent: bool = Field(False, alias="requestSent")
    request_received: bool = Field(False, alias="requestReceived")
