import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.core.config import Settings, settings as default_settings
from respawn.core.errors import (
    AlreadyFriends,
    FriendshipNotFound,
    InvalidCooldown,
    InvalidState,
    RequestAlreadyReceived,
    RequestAlreadySent,
    RequestNotFound,
    RequestPreviouslyRejected,
    SelfRequest,
    TargetNotFound,
    Unauthorized,
    UserNotFound,
)
from respawn.db.models import Friendship, FriendshipStatus
from respawn.relationship import repo
from respawn.relationship.roles import (
    Slot,
    own_settings,
    peer_of,
    peer_settings,
    resolve_peer_cooldown,
    set_own_cooldown,
    set_own_mute,
)
from respawn.services import users
from respawn.services.cooldowns import CooldownLedger

log = logging.getLogger(__name__)


@dataclass
class FriendInfo:
    user_id: str
    username: str
    is_muted: bool
    is_muted_by: bool
    cooldown_minutes: int
    my_cooldown_minutes: int
    cooldown_remaining: int
    can_trigger: bool


@dataclass
class PendingRequest:
    request_id: str
    user_id: str
    username: str
    requested_at: datetime


@dataclass
class UserMatch:
    user_id: str
    username: str


def _conflict_for(existing: Friendship, sender_id: str) -> Exception | None:
    """The error an existing record raises against a new request, if any."""
    if existing.status == FriendshipStatus.ACCEPTED.value:
        return AlreadyFriends()
    if existing.status == FriendshipStatus.PENDING.value:
        if existing.slot_a_user_id == sender_id:
            return RequestAlreadySent(details={"request_id": existing.id})
        return RequestAlreadyReceived(details={"request_id": existing.id})
    return None


class FriendService:
    """Friend request lifecycle and per-relationship settings.

    absent -> pending -> accepted | rejected. Accepted and rejected are
    terminal; ``remove`` deletes the record in any status.
    """

    def __init__(self, ledger: CooldownLedger, settings: Settings = default_settings):
        self.ledger = ledger
        self.settings = settings

    async def send_request(self, db: AsyncSession, sender_id: str, target_id: str) -> Friendship:
        if sender_id == target_id:
            raise SelfRequest()

        if await users.get_user(db, target_id) is None:
            raise TargetNotFound(details={"user_id": target_id})

        existing = await repo.find_between(db, sender_id, target_id)
        if existing is not None:
            conflict = _conflict_for(existing, sender_id)
            if conflict is not None:
                raise conflict
            # rejected
            if not self.settings.ALLOW_REREQUEST_AFTER_REJECTION:
                raise RequestPreviouslyRejected(details={"request_id": existing.id})
            await repo.delete_friendship(db, existing.id)

        request = repo.new_request(sender_id, target_id, self.settings.DEFAULT_COOLDOWN_MINUTES)
        db.add(request)
        try:
            await db.commit()
        except IntegrityError:
            # lost the race against a concurrent request for the same pair
            await db.rollback()
            existing = await repo.find_between(db, sender_id, target_id)
            if existing is not None:
                raise _conflict_for(existing, sender_id) or RequestPreviouslyRejected(
                    details={"request_id": existing.id}
                )
            raise
        except Exception:
            await db.rollback()
            raise

        await db.refresh(request)
        log.info("Friend request %s: %s -> %s", request.id, sender_id, target_id)
        return request

    async def _pending_for_recipient(self, db: AsyncSession, user_id: str, request_id: str) -> Friendship:
        friendship = await repo.get_friendship(db, request_id)
        if friendship is None:
            raise RequestNotFound(details={"request_id": request_id})
        if friendship.slot_b_user_id != user_id:
            raise Unauthorized(details={"request_id": request_id})
        if friendship.status != FriendshipStatus.PENDING.value:
            raise InvalidState(details={"request_id": request_id, "status": friendship.status})
        return friendship

    async def accept(self, db: AsyncSession, user_id: str, request_id: str) -> Friendship:
        friendship = await self._pending_for_recipient(db, user_id, request_id)
        friendship.status = FriendshipStatus.ACCEPTED.value
        friendship.accepted_at = datetime.now(timezone.utc)
        await db.commit()
        log.info("Friend request %s accepted by %s", request_id, user_id)
        return friendship

    async def reject(self, db: AsyncSession, user_id: str, request_id: str) -> Friendship:
        friendship = await self._pending_for_recipient(db, user_id, request_id)
        friendship.status = FriendshipStatus.REJECTED.value
        await db.commit()
        log.info("Friend request %s rejected by %s", request_id, user_id)
        return friendship

    async def remove(self, db: AsyncSession, user_id: str, friend_user_id: str) -> None:
        existing = await repo.find_between(db, user_id, friend_user_id)
        if existing is None:
            raise FriendshipNotFound()
        await repo.delete_friendship(db, existing.id)
        await db.commit()
        log.info("Friendship %s removed by %s", existing.id, user_id)

    async def set_mute(self, db: AsyncSession, user_id: str, friend_user_id: str, muted: bool) -> None:
        existing = await repo.find_between(db, user_id, friend_user_id)
        if existing is None:
            raise FriendshipNotFound()
        set_own_mute(existing, user_id, muted)
        await db.commit()

    async def mute_all(self, db: AsyncSession, user_id: str, muted_all: bool) -> None:
        if not await users.set_muted_all(db, user_id, muted_all):
            raise UserNotFound(details={"user_id": user_id})

    async def set_cooldown(self, db: AsyncSession, user_id: str, friend_user_id: str, minutes: int) -> None:
        low, high = self.settings.MIN_COOLDOWN_MINUTES, self.settings.MAX_COOLDOWN_MINUTES
        if minutes < low or minutes > high:
            raise InvalidCooldown(
                f"Cooldown must be between {low} and {high} minutes",
                details={"cooldown_minutes": minutes},
            )

        existing = await repo.find_between(db, user_id, friend_user_id)
        if existing is None:
            raise FriendshipNotFound()
        if existing.status != FriendshipStatus.ACCEPTED.value:
            raise InvalidState("Can only set cooldown for accepted friends")

        set_own_cooldown(existing, user_id, minutes)
        await db.commit()

        # Re-time friend -> user, not user -> friend: the caller's own slot throttles the friend's triggers.
        try:
            await self.ledger.reconfigure_active(db, friend_user_id, user_id, minutes)
        except Exception:
            log.warning(
                "Could not reconfigure active cooldown %s -> %s",
                friend_user_id, user_id, exc_info=True,
            )

    async def list_friends(self, db: AsyncSession, user_id: str) -> list[FriendInfo]:
        friendships = await repo.list_accepted(db, user_id)
        now = self.ledger.clock()

        friends: list[FriendInfo] = []
        heals: list[tuple[str, Slot]] = []
        for friendship in friendships:
            friend_id = peer_of(friendship, user_id)
            mine = own_settings(friendship, user_id)
            theirs = peer_settings(friendship, user_id)
            peer_cooldown = resolve_peer_cooldown(
                friendship, user_id, self.settings.DEFAULT_COOLDOWN_MINUTES
            )
            if peer_cooldown.heal_slot is not None:
                heals.append((friendship.id, peer_cooldown.heal_slot))

            friend = await users.get_user(db, friend_id)
            if friend is None:
                continue

            cooldown = await self.ledger.check_active(db, user_id, friend_id)
            remaining = 0
            if cooldown is not None:
                remaining = max(int((cooldown.expires_at - now).total_seconds()), 0)

            friends.append(
                FriendInfo(
                    user_id=friend_id,
                    username=friend.username,
                    is_muted=mine.muted_peer,
                    is_muted_by=theirs.muted_peer,
                    cooldown_minutes=peer_cooldown.minutes,
                    my_cooldown_minutes=(
                        mine.cooldown_minutes if mine.cooldown_minutes > 0
                        else self.settings.DEFAULT_COOLDOWN_MINUTES
                    ),
                    cooldown_remaining=remaining,
                    can_trigger=remaining == 0,
                )
            )

        for friendship_id, slot in heals:
            await repo.heal_cooldown(db, friendship_id, slot, self.settings.DEFAULT_COOLDOWN_MINUTES)

        return friends

    async def pending_requests(self, db: AsyncSession, user_id: str) -> list[PendingRequest]:
        requests = []
        for friendship in await repo.list_incoming_pending(db, user_id):
            requester = await users.get_user(db, friendship.slot_a_user_id)
            if requester is None:
                continue
            requests.append(
                PendingRequest(
                    request_id=friendship.id,
                    user_id=requester.id,
                    username=requester.username,
                    requested_at=friendship.requested_at,
                )
            )
        return requests

    async def search_users(self, db: AsyncSession, user_id: str, query: str) -> list[UserMatch]:
        matches = await users.search_users(
            db,
            query,
            limit=self.settings.SEARCH_RESULT_LIMIT + 1,
            min_chars=self.settings.SEARCH_MIN_CHARS,
        )
        results = [UserMatch(user_id=u.id, username=u.username) for u in matches if u.id != user_id]
        return results[: self.settings.SEARCH_RESULT_LIMIT]
