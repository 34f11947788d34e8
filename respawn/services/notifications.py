"""Notification trigger engine.

``trigger`` decides whether ``sender`` may ping ``target`` right now and, if
so, opens a cooldown window, records history and dispatches the push. The
cooldown is the commit point: history and push are best-effort and their
outcomes are reported on the result instead of failing the call.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.core.config import Settings, settings as default_settings
from respawn.core.errors import (
    CooldownActive,
    NotFriends,
    TargetMutedAll,
    TargetMutedYou,
    UserNotFound,
)
from respawn.db.models import FriendshipStatus
from respawn.relationship import repo
from respawn.relationship.roles import peer_mute_of, resolve_peer_cooldown
from respawn.services import history, users
from respawn.services.cooldowns import CooldownLedger
from respawn.utils.messaging.push import PushDeliveryError, PushDispatcher

log = logging.getLogger(__name__)

TRIGGER_TYPE = "respawn_trigger"


class DispatchStatus(str, enum.Enum):
    SENT = "sent"
    SKIPPED_NO_SUBSCRIPTION = "skipped_no_subscription"
    STALE_SUBSCRIPTION = "stale_subscription"
    FAILED = "failed"


@dataclass
class DispatchOutcome:
    status: DispatchStatus
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status is DispatchStatus.SENT


@dataclass
class TriggerResult:
    next_available_at: datetime
    history_recorded: bool = True
    history_error: str | None = None
    dispatch: DispatchOutcome = field(
        default_factory=lambda: DispatchOutcome(DispatchStatus.SKIPPED_NO_SUBSCRIPTION)
    )


@dataclass
class CooldownStatus:
    on_cooldown: bool
    available_at: datetime | None = None


class NotificationService:

    def __init__(
        self,
        ledger: CooldownLedger,
        dispatcher: PushDispatcher,
        settings: Settings = default_settings,
    ):
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.settings = settings

    async def trigger(self, db: AsyncSession, sender_id: str, target_id: str) -> TriggerResult:
        sender = await users.get_user(db, sender_id)
        if sender is None:
            raise UserNotFound("Sender not found", details={"user_id": sender_id})
        target = await users.get_user(db, target_id)
        if target is None:
            raise UserNotFound("Target user not found", details={"user_id": target_id})

        # plain values only past this point; later rollbacks expire ORM state
        sender_username = sender.username
        target_muted_all = target.muted_all
        target_subscription = target.push_subscription

        friendship = await repo.find_between(db, sender_id, target_id)
        if friendship is None or friendship.status != FriendshipStatus.ACCEPTED.value:
            raise NotFriends()

        if peer_mute_of(friendship, sender_id):
            raise TargetMutedYou()

        if target_muted_all:
            raise TargetMutedAll()

        friendship_id = friendship.id
        peer_cooldown = resolve_peer_cooldown(
            friendship, sender_id, self.settings.DEFAULT_COOLDOWN_MINUTES
        )

        async with self.ledger.exclusive(sender_id, target_id):
            active = await self.ledger.check_active(db, sender_id, target_id)
            if active is not None:
                raise CooldownActive(active.expires_at)
            cooldown = await self.ledger.create(db, sender_id, target_id, peer_cooldown.minutes)
            triggered_at = cooldown.triggered_at
            next_available_at = cooldown.expires_at

        log.info(
            "Trigger %s -> %s (cooldown %d min, next at %s)",
            sender_id, target_id, peer_cooldown.minutes, next_available_at.isoformat(),
        )

        if peer_cooldown.heal_slot is not None:
            await repo.heal_cooldown(
                db, friendship_id, peer_cooldown.heal_slot, self.settings.DEFAULT_COOLDOWN_MINUTES
            )

        result = TriggerResult(next_available_at=next_available_at)

        try:
            await history.record_trigger(db, sender_id, target_id, sender_username, triggered_at)
        except SQLAlchemyError as e:
            log.error("Failed to record history %s -> %s: %s", sender_id, target_id, e)
            result.history_recorded = False
            result.history_error = str(e)

        result.dispatch = await self._dispatch(target_id, target_subscription, sender_id, sender_username)
        return result

    async def _dispatch(
        self,
        target_id: str,
        subscription: dict | None,
        sender_id: str,
        sender_username: str,
    ) -> DispatchOutcome:
        if not subscription:
            log.warning("Target user %s has no push subscription", target_id)
            return DispatchOutcome(DispatchStatus.SKIPPED_NO_SUBSCRIPTION)

        try:
            await self.dispatcher.send(
                subscription,
                self.settings.PUSH_TITLE,
                f"{sender_username} has called you back from death!",
                {
                    "type": TRIGGER_TYPE,
                    "sender_id": sender_id,
                    "sender_username": sender_username,
                },
            )
        except PushDeliveryError as e:
            status = DispatchStatus.STALE_SUBSCRIPTION if e.stale else DispatchStatus.FAILED
            log.warning("Failed to push to %s (%s): %s", target_id, status.value, e)
            return DispatchOutcome(status, str(e))
        except Exception as e:
            log.exception("Unexpected push failure for %s: %s", target_id, e)
            return DispatchOutcome(DispatchStatus.FAILED, str(e))

        return DispatchOutcome(DispatchStatus.SENT)

    async def check_cooldown(self, db: AsyncSession, sender_id: str, target_id: str) -> CooldownStatus:
        cooldown = await self.ledger.check_active(db, sender_id, target_id)
        if cooldown is None:
            return CooldownStatus(on_cooldown=False)
        return CooldownStatus(on_cooldown=True, available_at=cooldown.expires_at)
