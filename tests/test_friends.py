import asyncio

import pytest
from sqlalchemy import func, select, update

from respawn.core.config import Settings
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
)
from respawn.db.models import Friendship, FriendshipStatus
from respawn.relationship import repo
from respawn.services.friends import FriendService


async def _count_friendships(db) -> int:
    return (await db.execute(select(func.count()).select_from(Friendship))).scalar_one()


async def test_send_request_puts_requester_in_slot_a(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)

    assert request.slot_a_user_id == alice.id
    assert request.slot_b_user_id == bob.id
    assert request.status == FriendshipStatus.PENDING.value
    assert request.slot_a_cooldown_minutes == 60
    assert request.slot_b_cooldown_minutes == 60
    assert request.slot_a_muted_peer is False
    assert request.slot_b_muted_peer is False


async def test_send_request_to_self(db, friend_service, alice):
    with pytest.raises(SelfRequest):
        await friend_service.send_request(db, alice.id, alice.id)


async def test_send_request_to_unknown_user(db, friend_service, alice):
    with pytest.raises(TargetNotFound):
        await friend_service.send_request(db, alice.id, "does-not-exist")


async def test_duplicate_request_same_direction(db, friend_service, alice, bob):
    await friend_service.send_request(db, alice.id, bob.id)
    with pytest.raises(RequestAlreadySent):
        await friend_service.send_request(db, alice.id, bob.id)


async def test_reverse_request_while_pending(db, friend_service, alice, bob):
    await friend_service.send_request(db, alice.id, bob.id)
    with pytest.raises(RequestAlreadyReceived):
        await friend_service.send_request(db, bob.id, alice.id)
    assert await _count_friendships(db) == 1


async def test_request_between_friends(db, friend_service, befriend, alice, bob):
    await befriend(alice, bob)
    with pytest.raises(AlreadyFriends):
        await friend_service.send_request(db, bob.id, alice.id)


async def test_accept(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)

    accepted = await friend_service.accept(db, bob.id, request.id)

    assert accepted.status == FriendshipStatus.ACCEPTED.value
    assert accepted.accepted_at is not None
    assert accepted.accepted_at >= accepted.requested_at


async def test_accept_by_requester_is_unauthorized(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)
    with pytest.raises(Unauthorized):
        await friend_service.accept(db, alice.id, request.id)


async def test_accept_twice(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)
    await friend_service.accept(db, bob.id, request.id)
    with pytest.raises(InvalidState):
        await friend_service.accept(db, bob.id, request.id)


async def test_accept_unknown_request(db, friend_service, bob):
    with pytest.raises(RequestNotFound):
        await friend_service.accept(db, bob.id, "missing")


async def test_reject_then_accept_fails(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)

    rejected = await friend_service.reject(db, bob.id, request.id)
    assert rejected.status == FriendshipStatus.REJECTED.value

    with pytest.raises(InvalidState):
        await friend_service.accept(db, bob.id, request.id)


async def test_rerequest_after_rejection_refused_by_default(db, friend_service, alice, bob):
    request = await friend_service.send_request(db, alice.id, bob.id)
    await friend_service.reject(db, bob.id, request.id)

    with pytest.raises(RequestPreviouslyRejected):
        await friend_service.send_request(db, alice.id, bob.id)
    with pytest.raises(RequestPreviouslyRejected):
        await friend_service.send_request(db, bob.id, alice.id)


async def test_rerequest_after_rejection_when_allowed(db, ledger, alice, bob):
    service = FriendService(ledger, Settings(ALLOW_REREQUEST_AFTER_REJECTION=True))
    request = await service.send_request(db, alice.id, bob.id)
    await service.reject(db, bob.id, request.id)

    again = await service.send_request(db, bob.id, alice.id)

    assert again.id != request.id
    assert again.slot_a_user_id == bob.id
    assert again.status == FriendshipStatus.PENDING.value
    assert await _count_friendships(db) == 1


async def test_remove_in_any_status(db, friend_service, alice, bob):
    await friend_service.send_request(db, alice.id, bob.id)

    await friend_service.remove(db, bob.id, alice.id)

    assert await repo.find_between(db, alice.id, bob.id) is None
    # the pair can start over
    await friend_service.send_request(db, bob.id, alice.id)


async def test_remove_without_record(db, friend_service, alice, bob):
    with pytest.raises(FriendshipNotFound):
        await friend_service.remove(db, alice.id, bob.id)


async def test_mute_writes_own_slot(db, friend_service, befriend, alice, bob):
    friendship = await befriend(alice, bob)

    await friend_service.set_mute(db, bob.id, alice.id, True)
    await db.refresh(friendship)

    assert friendship.slot_b_muted_peer is True
    assert friendship.slot_a_muted_peer is False


async def test_set_cooldown_range(db, friend_service, befriend, alice, bob):
    await befriend(alice, bob)
    for minutes in (0, 1441):
        with pytest.raises(InvalidCooldown):
            await friend_service.set_cooldown(db, alice.id, bob.id, minutes)


async def test_set_cooldown_requires_accepted(db, friend_service, alice, bob):
    await friend_service.send_request(db, alice.id, bob.id)
    with pytest.raises(InvalidState):
        await friend_service.set_cooldown(db, bob.id, alice.id, 10)


async def test_set_cooldown_without_friendship(db, friend_service, alice, bob):
    with pytest.raises(FriendshipNotFound):
        await friend_service.set_cooldown(db, alice.id, bob.id, 10)


async def test_set_cooldown_reconfigures_window_it_governs(db, friend_service, ledger, befriend, alice, bob):
    friendship = await befriend(alice, bob)
    # bob triggered alice under her 60 minute setting
    window = await ledger.create(db, bob.id, alice.id, 60)
    # and alice triggered bob
    other = await ledger.create(db, alice.id, bob.id, 60)

    await friend_service.set_cooldown(db, alice.id, bob.id, 10)

    await db.refresh(friendship)
    await db.refresh(window)
    await db.refresh(other)
    assert friendship.slot_a_cooldown_minutes == 10
    assert friendship.slot_b_cooldown_minutes == 60
    assert (window.expires_at - window.triggered_at).total_seconds() == 10 * 60
    assert (other.expires_at - other.triggered_at).total_seconds() == 60 * 60


async def test_list_friends(db, friend_service, ledger, befriend, alice, bob, make_user):
    carol = await make_user("carol")
    await befriend(alice, bob)
    await befriend(carol, alice)
    await friend_service.set_cooldown(db, bob.id, alice.id, 15)
    await friend_service.set_mute(db, carol.id, alice.id, True)
    await ledger.create(db, alice.id, bob.id, 15)

    friends = {f.username: f for f in await friend_service.list_friends(db, alice.id)}

    assert set(friends) == {"bob", "carol"}
    assert friends["bob"].cooldown_minutes == 15
    assert friends["bob"].my_cooldown_minutes == 60
    assert friends["bob"].can_trigger is False
    assert friends["bob"].cooldown_remaining == 15 * 60
    assert friends["carol"].is_muted_by is True
    assert friends["carol"].is_muted is False
    assert friends["carol"].can_trigger is True


async def test_list_friends_heals_uninitialized_cooldown(db, friend_service, befriend, alice, bob):
    friendship = await befriend(alice, bob)
    await db.execute(
        update(Friendship).where(Friendship.id == friendship.id).values(slot_b_cooldown_minutes=0)
    )
    await db.commit()

    friends = await friend_service.list_friends(db, alice.id)

    assert friends[0].cooldown_minutes == 60
    await db.refresh(friendship)
    assert friendship.slot_b_cooldown_minutes == 60


async def test_pending_requests_incoming_only(db, friend_service, alice, bob, make_user):
    carol = await make_user("carol")
    await friend_service.send_request(db, alice.id, bob.id)
    await friend_service.send_request(db, bob.id, carol.id)

    pending = await friend_service.pending_requests(db, bob.id)

    assert [p.username for p in pending] == ["alice"]


async def test_search_users(db, friend_service, alice, make_user):
    await make_user("Alfred")
    await make_user("bob_al")

    matches = await friend_service.search_users(db, alice.id, "AL")

    assert [m.username for m in matches] == ["Alfred"]


async def test_search_users_short_query(db, friend_service, alice):
    assert await friend_service.search_users(db, alice.id, "a") == []


async def test_concurrent_requests_keep_one_record(session_factory, friend_service, alice, bob):
    alice_id, bob_id = alice.id, bob.id

    async def send(sender_id, target_id):
        async with session_factory() as session:
            return await friend_service.send_request(session, sender_id, target_id)

    outcomes = await asyncio.gather(
        send(alice_id, bob_id),
        send(alice_id, bob_id),
        send(bob_id, alice_id),
        return_exceptions=True,
    )

    created = [o for o in outcomes if isinstance(o, Friendship)]
    refused = [o for o in outcomes if isinstance(o, (RequestAlreadySent, RequestAlreadyReceived))]
    assert len(created) == 1
    assert len(refused) == 2
    async with session_factory() as session:
        assert await _count_friendships(session) == 1


async def test_lost_race_against_rejected_record(db, ledger, monkeypatch, alice, bob):
    alice_id, bob_id = alice.id, bob.id
    service = FriendService(ledger, Settings(ALLOW_REREQUEST_AFTER_REJECTION=True))
    request = await service.send_request(db, alice_id, bob_id)
    await service.reject(db, bob_id, request.id)

    real_find_between = repo.find_between
    calls = []

    async def stale_first_read(session, user_id, other_user_id):
        # the first lookup misses the rejected record, so the insert collides with it
        calls.append(user_id)
        if len(calls) == 1:
            return None
        return await real_find_between(session, user_id, other_user_id)

    monkeypatch.setattr(repo, "find_between", stale_first_read)

    with pytest.raises(RequestPreviouslyRejected):
        await service.send_request(db, bob_id, alice_id)

    assert len(calls) == 2
    assert await _count_friendships(db) == 1
