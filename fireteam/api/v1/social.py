"""
Social/Friends API endpoints

Failures raised by the social service are RelationshipError subclasses and are
rendered as ``{success, kind, message}`` by the handler registered in main.
"""
from fastapi import APIRouter, Depends, Request

from fireteam.core.config import settings
from fireteam.core.dependencies import get_current_caller, get_social_service
from fireteam.core.exceptions import InvalidArgument
from fireteam.core.rate_limit import limiter
from fireteam.schemas.relationship import ActionOutcome, CallerContext, FriendAction
from fireteam.schemas.social import (
    CandidateLookupRequest,
    CandidateLookupResponse,
    FriendActionResponse,
    FriendListResponse,
    FriendRequestCreate,
    FriendRequestRespond,
    PendingRequestsResponse,
)
from fireteam.services.social_service import SocialService

router = APIRouter(prefix="/social", tags=["social"])


def _action_response(outcome: ActionOutcome) -> FriendActionResponse:
    removed = outcome.action == FriendAction.REMOVED
    return FriendActionResponse(
        message=outcome.message,
        action=outcome.action,
        request_id=outcome.request_id,
        sent_request=outcome.sent_request,
        new_friend=None if removed else outcome.friend,
        removed_friend=outcome.friend if removed else None,
    )


@router.get("/friends", response_model=FriendListResponse)
async def get_friends(
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Get current user's friends list"""
    friends = service.get_friends(caller.user_id)
    return FriendListResponse(friends=friends, total_count=len(friends))


@router.get("/requests", response_model=PendingRequestsResponse)
async def get_pending_requests(
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Get pending friend requests (incoming and outgoing)"""
    incoming, outgoing = service.get_pending_requests(caller.user_id)
    return PendingRequestsResponse(
        incoming=incoming,
        outgoing=outgoing,
        incoming_count=len(incoming),
        outgoing_count=len(outgoing)
    )


@router.post("/friends/request", response_model=FriendActionResponse)
@limiter.limit(settings.FRIEND_REQUEST_RATE_LIMIT)
async def send_friend_request(
    request: Request,
    payload: FriendRequestCreate,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Send a friend request to another user"""
    outcome = service.send_friend_request(
        caller,
        target_id=payload.target_user_id,
        target_display_name=payload.target_display_name
    )
    return _action_response(outcome)


@router.post("/friends/respond", response_model=FriendActionResponse)
async def respond_to_friend_request(
    payload: FriendRequestRespond,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Accept or decline a friend request by request ID or requester ID"""
    outcome = service.respond_to_request(
        caller,
        accept=payload.accept,
        request_id=payload.request_id,
        requester_id=payload.requester_id
    )
    return _action_response(outcome)


@router.post("/friends/accept/{request_id}", response_model=FriendActionResponse)
async def accept_friend_request(
    request_id: str,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Accept a friend request"""
    return _action_response(service.respond_to_request(caller, accept=True, request_id=request_id))


@router.post("/friends/decline/{request_id}", response_model=FriendActionResponse)
async def decline_friend_request(
    request_id: str,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Decline a friend request"""
    return _action_response(service.respond_to_request(caller, accept=False, request_id=request_id))


@router.delete("/friends/{friend_id}", response_model=FriendActionResponse)
async def remove_friend(
    friend_id: str,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Remove a friend"""
    return _action_response(service.remove_friend(caller.user_id, friend_id))


@router.post("/candidates", response_model=CandidateLookupResponse)
@limiter.limit(settings.CANDIDATE_LOOKUP_RATE_LIMIT)
async def lookup_candidates(
    request: Request,
    payload: CandidateLookupRequest,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Annotate player search results with friend/request flags"""
    if len(payload.candidates) > settings.MAX_CANDIDATES:
        raise InvalidArgument(f"At most {settings.MAX_CANDIDATES} candidates can be checked at once")

    users = service.lookup_candidates(
        caller.user_id,
        payload.candidates,
        exclude_self=payload.exclude_self
    )
    return CandidateLookupResponse(users=users)


@router.get("/friends/check/{user_id}")
async def check_friendship(
    user_id: str,
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Check if you are friends with another user"""
    is_friend = service.are_friends(caller.user_id, user_id)
    return {"is_friend": is_friend, "user_id": user_id}


@router.get("/friends/count")
async def get_friend_count(
    caller: CallerContext = Depends(get_current_caller),
    service: SocialService = Depends(get_social_service)
):
    """Get friend count for current user"""
    return {"count": service.get_friend_count(caller.user_id)}
