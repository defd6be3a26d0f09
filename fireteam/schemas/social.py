"""
Social and friends API schemas
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from fireteam.schemas.relationship import (
    AnnotatedCandidate,
    CandidateUser,
    FriendAction,
    FriendEntry,
    IncomingRequest,
    OutgoingRequest,
)


class ApiModel(BaseModel):
    """Accepts and emits camelCase field names"""

    model_config = ConfigDict(populate_by_name=True)


class FriendRequestCreate(ApiModel):
    """Send friend request"""
    target_user_id: str = Field(alias="targetUserId")
    target_display_name: str = Field(alias="targetDisplayName")


class FriendRequestRespond(ApiModel):
    """Accept or decline a friend request"""
    request_id: Optional[str] = Field(None, alias="requestId")
    requester_id: Optional[str] = Field(None, alias="requesterId")
    accept: bool


class CandidateLookupRequest(ApiModel):
    """Directory search results to annotate"""
    candidates: List[CandidateUser]
    exclude_self: bool = Field(True, alias="excludeSelf")


class FriendActionResponse(ApiModel):
    """Response after friend action (send/accept/decline/remove)"""
    success: bool = True
    message: str
    action: FriendAction
    request_id: Optional[str] = Field(None, alias="requestId")
    new_friend: Optional[FriendEntry] = Field(None, alias="newFriend")
    sent_request: Optional[OutgoingRequest] = Field(None, alias="sentRequest")
    removed_friend: Optional[FriendEntry] = Field(None, alias="removedFriend")


class FriendListResponse(ApiModel):
    """Response with list of friends"""
    friends: List[FriendEntry]
    total_count: int = Field(alias="totalCount")


class PendingRequestsResponse(ApiModel):
    """Response with pending friend requests"""
    incoming: List[IncomingRequest]
    outgoing: List[OutgoingRequest]
    incoming_count: int = Field(alias="incomingCount")
    outgoing_count: int = Field(alias="outgoingCount")


class CandidateLookupResponse(ApiModel):
    success: bool = True
    users: List[AnnotatedCandidate]


class ErrorResponse(BaseModel):
    """Structured failure body"""
    success: bool = False
    kind: str
    message: str
    error_id: Optional[str] = None
