"""
Social service for managing friends and friend requests

Each friendship or pending request is stored twice, once in each user's
record. The two records are written one after the other with no shared
transaction, so every mutating operation loads both records, validates the
pair, and only then writes. Send and remove compensate for a failed second
write by restoring the caller's record; respond instead writes the caller last
so that a retry converges.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from fireteam.core.exceptions import (
    AlreadyFriends,
    DuplicateRequest,
    InvalidArgument,
    NotFriends,
    PartialWriteInconsistency,
    RequestNotFound,
    StoreWriteFailure,
)
from fireteam.schemas.relationship import (
    ActionOutcome,
    AnnotatedCandidate,
    CallerContext,
    CandidateUser,
    FriendAction,
    FriendEntry,
    IncomingRequest,
    OutgoingRequest,
    RelationshipRecord,
)
from fireteam.services.record_store import RecordStore
from fireteam.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
MAX_DISPLAY_NAME_LENGTH = 100


def validate_user_id(value: Optional[str], field: str = "user id") -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgument(f"A {field} is required")
    if not USER_ID_PATTERN.match(value):
        raise InvalidArgument(f"Malformed {field}: {value!r}")
    return value


def validate_display_name(value: Optional[str], field: str = "display name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"A {field} is required")
    value = value.strip()
    if len(value) > MAX_DISPLAY_NAME_LENGTH:
        raise InvalidArgument(f"The {field} must be at most {MAX_DISPLAY_NAME_LENGTH} characters")
    return value


class SocialService:
    """Friend graph operations over a pluggable record store"""

    def __init__(self, store: RecordStore):
        self.store = store

    def _validate_caller(self, caller: CallerContext) -> CallerContext:
        return CallerContext(
            user_id=validate_user_id(caller.user_id, "caller id"),
            display_name=validate_display_name(caller.display_name, "caller display name"),
        )

    def send_friend_request(
        self,
        caller: CallerContext,
        target_id: str,
        target_display_name: str
    ) -> ActionOutcome:
        """
        Send a friend request.

        If the target already asked the caller, the pending request is accepted
        instead of creating a crossed one.
        """
        caller = self._validate_caller(caller)
        target_id = validate_user_id(target_id, "target user id")
        target_display_name = validate_display_name(target_display_name, "target display name")

        if target_id == caller.user_id:
            raise InvalidArgument("Cannot send friend request to yourself")

        caller_record = self.store.load(caller.user_id)

        if caller_record.find_friend(target_id):
            raise AlreadyFriends("User is already your friend")
        if caller_record.find_outgoing(target_id):
            raise DuplicateRequest("Friend request already sent to this user")

        pending = caller_record.find_incoming_from(target_id)
        target_record = self.store.load(target_id)

        if pending is None:
            # Half of a crossed request that never reached the caller's record
            crossed = target_record.find_outgoing(caller.user_id)
            if crossed is not None:
                pending = IncomingRequest(
                    id=crossed.id,
                    requester_id=target_id,
                    requester_display_name=target_display_name,
                    created_at=crossed.sent_at,
                )

        if pending is not None:
            logger.info(f"Auto-accepting friend request {pending.id}: {target_id} -> {caller.user_id}")
            return self._resolve_request(
                caller, caller_record, pending, target_record, accept=True, auto=True
            )

        if target_record.find_friend(caller.user_id):
            raise AlreadyFriends("User is already your friend")
        if target_record.find_incoming_from(caller.user_id):
            raise DuplicateRequest("Friend request already sent to this user")

        now = utc_now()
        request_id = str(uuid4())
        sent_request = OutgoingRequest(
            id=request_id,
            target_id=target_id,
            target_display_name=target_display_name,
            sent_at=now,
        )

        snapshot = caller_record.model_copy(deep=True)
        caller_record.outgoing_requests.append(sent_request)
        self.store.save(caller.user_id, caller_record)

        target_record.incoming_requests.append(IncomingRequest(
            id=request_id,
            requester_id=caller.user_id,
            requester_display_name=caller.display_name,
            created_at=now,
        ))
        self._save_counterpart_or_rollback(
            caller.user_id, snapshot, target_id, target_record, operation="send friend request"
        )

        logger.info(f"Friend request sent: {caller.user_id} -> {target_id} ({request_id})")
        return ActionOutcome(
            action=FriendAction.SENT,
            message="Friend request sent successfully",
            request_id=request_id,
            sent_request=sent_request,
        )

    def respond_to_request(
        self,
        caller: CallerContext,
        accept: bool,
        request_id: Optional[str] = None,
        requester_id: Optional[str] = None
    ) -> ActionOutcome:
        """Accept or decline an incoming friend request"""
        caller = self._validate_caller(caller)
        if not request_id and not requester_id:
            raise InvalidArgument("Request ID or requester ID required")
        if requester_id:
            requester_id = validate_user_id(requester_id, "requester id")

        caller_record = self.store.load(caller.user_id)

        if request_id:
            pending = caller_record.find_incoming(request_id)
            if pending is not None and requester_id and pending.requester_id != requester_id:
                raise RequestNotFound("Friend request not found")
        else:
            pending = caller_record.find_incoming_from(requester_id)

        if pending is None:
            raise RequestNotFound("Friend request not found")
        if pending.requester_id == caller.user_id:
            raise InvalidArgument("Cannot respond to a friend request from yourself")

        requester_record = self.store.load(pending.requester_id)
        return self._resolve_request(caller, caller_record, pending, requester_record, accept=accept)

    def _resolve_request(
        self,
        caller: CallerContext,
        caller_record: RelationshipRecord,
        pending: IncomingRequest,
        requester_record: RelationshipRecord,
        accept: bool,
        auto: bool = False
    ) -> ActionOutcome:
        requester_id = pending.requester_id

        sent = requester_record.find_outgoing(caller.user_id)
        if sent is not None and sent.id != pending.id:
            logger.warning(
                f"Friend request id mismatch between {requester_id} ({sent.id}) "
                f"and {caller.user_id} ({pending.id})"
            )
            raise RequestNotFound("Friend request no longer matches the sender's records")

        friend: Optional[FriendEntry] = None
        if accept:
            now = utc_now()

            # Clear pending entries in both directions
            caller_record.remove_incoming_from(requester_id)
            caller_record.remove_outgoing(requester_id)
            requester_record.remove_outgoing(caller.user_id)
            requester_record.remove_incoming_from(caller.user_id)

            friend = caller_record.find_friend(requester_id)
            if friend is None:
                friend = FriendEntry(
                    id=requester_id,
                    display_name=pending.requester_display_name,
                    added_at=now,
                )
                caller_record.friends.append(friend)
            if requester_record.find_friend(caller.user_id) is None:
                requester_record.friends.append(FriendEntry(
                    id=caller.user_id,
                    display_name=caller.display_name,
                    added_at=now,
                ))
        else:
            caller_record.remove_incoming_from(requester_id)
            requester_record.remove_outgoing(caller.user_id)

        # Caller last: its incoming entry is what a retry looks up
        self.store.save(requester_id, requester_record)
        try:
            self.store.save(caller.user_id, caller_record)
        except StoreWriteFailure:
            logger.error(
                f"Friend request {pending.id} applied to {requester_id} but not to "
                f"{caller.user_id}; a retry will complete it"
            )
            raise

        if not accept:
            logger.info(f"Friend request declined: {requester_id} -> {caller.user_id}")
            return ActionOutcome(
                action=FriendAction.DECLINED,
                message="Friend request declined",
                request_id=pending.id,
            )

        logger.info(f"Friend request accepted: {requester_id} and {caller.user_id} are now friends")
        return ActionOutcome(
            action=FriendAction.AUTO_ACCEPTED if auto else FriendAction.ACCEPTED,
            message="Friend request accepted automatically" if auto else "Friend request accepted",
            request_id=pending.id,
            friend=friend,
        )

    def remove_friend(self, caller_id: str, friend_id: str) -> ActionOutcome:
        """Remove a friend from both users' lists"""
        caller_id = validate_user_id(caller_id, "caller id")
        friend_id = validate_user_id(friend_id, "friend id")

        if caller_id == friend_id:
            raise InvalidArgument("Cannot remove yourself as a friend")

        caller_record = self.store.load(caller_id)
        friend = caller_record.find_friend(friend_id)
        if friend is None:
            raise NotFriends("User is not in your friends list")

        friend_record = self.store.load(friend_id)

        snapshot = caller_record.model_copy(deep=True)
        caller_record.remove_friend(friend_id)
        self.store.save(caller_id, caller_record)

        friend_record.remove_friend(caller_id)
        self._save_counterpart_or_rollback(
            caller_id, snapshot, friend_id, friend_record, operation="remove friend"
        )

        logger.info(f"Friendship removed: {caller_id} and {friend_id}")
        return ActionOutcome(
            action=FriendAction.REMOVED,
            message="Friend removed successfully",
            friend=friend,
        )

    def _save_counterpart_or_rollback(
        self,
        caller_id: str,
        snapshot: RelationshipRecord,
        counterpart_id: str,
        counterpart_record: RelationshipRecord,
        operation: str
    ) -> None:
        """
        Write the counterpart record after the caller's was saved.

        On failure the caller's pre-operation record is written back once.
        Raises StoreWriteFailure when that rollback succeeds and
        PartialWriteInconsistency when it does not.
        """
        try:
            self.store.save(counterpart_id, counterpart_record)
        except StoreWriteFailure as e:
            logger.warning(
                f"{operation}: save of {counterpart_id} failed, rolling back {caller_id}"
            )
            try:
                self.store.save(caller_id, snapshot)
            except StoreWriteFailure as rollback_error:
                logger.critical(
                    f"{operation}: rollback of {caller_id} failed after {counterpart_id} "
                    f"could not be saved; records for the pair are inconsistent"
                )
                raise PartialWriteInconsistency(caller_id, counterpart_id, operation) from rollback_error
            raise StoreWriteFailure(counterpart_id, e.reason, rolled_back=True) from e

    def lookup_candidates(
        self,
        caller_id: str,
        candidates: Iterable[CandidateUser],
        exclude_self: bool = True
    ) -> List[AnnotatedCandidate]:
        """Flag directory search results with the caller's relationship to each"""
        caller_id = validate_user_id(caller_id, "caller id")
        record = self.store.load(caller_id)

        friend_ids = {f.id for f in record.friends}
        sent_ids = {r.target_id for r in record.outgoing_requests}
        received_ids = {r.requester_id for r in record.incoming_requests}

        seen = set()
        annotated = []
        for candidate in candidates:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            if exclude_self and candidate.id == caller_id:
                continue
            annotated.append(AnnotatedCandidate(
                id=candidate.id,
                display_name=candidate.display_name,
                is_friend=candidate.id in friend_ids,
                request_sent=candidate.id in sent_ids,
                request_received=candidate.id in received_ids,
            ))

        return annotated

    def get_friends(self, user_id: str) -> List[FriendEntry]:
        """Get list of friends"""
        user_id = validate_user_id(user_id)
        return list(self.store.load(user_id).friends)

    def get_pending_requests(
        self,
        user_id: str
    ) -> Tuple[List[IncomingRequest], List[OutgoingRequest]]:
        """Get pending friend requests (incoming, outgoing)"""
        user_id = validate_user_id(user_id)
        record = self.store.load(user_id)
        return list(record.incoming_requests), list(record.outgoing_requests)

    def are_friends(self, user_id: str, other_user_id: str) -> bool:
        """Check if two users are friends"""
        user_id = validate_user_id(user_id)
        other_user_id = validate_user_id(other_user_id)
        return self.store.load(user_id).find_friend(other_user_id) is not None

    def get_friend_count(self, user_id: str) -> int:
        """Get count of friends"""
        return len(self.get_friends(user_id))

    def audit_pair(self, user_id: str, other_user_id: str) -> List[str]:
        """
        List invariant violations between two users' records.

        Read-only; used to find pairs needing repair after a
        PartialWriteInconsistency.
        """
        user_id = validate_user_id(user_id)
        other_user_id = validate_user_id(other_user_id)

        records: Dict[str, RelationshipRecord] = {
            user_id: self.store.load(user_id),
            other_user_id: self.store.load(other_user_id),
        }
        problems = []

        for owner, record in records.items():
            if (record.find_friend(owner) or record.find_outgoing(owner)
                    or record.find_incoming_from(owner)):
                problems.append(f"{owner} has a self-edge")

        if user_id == other_user_id:
            return problems

        for owner, other in ((user_id, other_user_id), (other_user_id, user_id)):
            mine, theirs = records[owner], records[other]

            if mine.find_friend(other) and not theirs.find_friend(owner):
                problems.append(f"{owner} lists {other} as a friend but not vice versa")
            if mine.find_friend(other) and (mine.find_outgoing(other) or mine.find_incoming_from(other)):
                problems.append(f"{owner} has both a friendship and a pending request with {other}")

            sent = mine.find_outgoing(other)
            received = theirs.find_incoming_from(owner)
            if sent and not received:
                problems.append(f"{owner} has an outgoing request to {other} with no matching incoming entry")
            elif received and not sent:
                problems.append(f"{other} has an incoming request from {owner} with no matching outgoing entry")
            elif sent and received and sent.id != received.id:
                problems.append(f"request ids disagree for {owner} -> {other}: {sent.id} != {received.id}")

        return problems
