from datetime import timedelta

from respawn.db.models import History
from respawn.services import history


async def _seed(db, clock, pairs):
    """One entry per (sender, receiver), each a minute after the previous."""
    for offset, (sender, receiver) in enumerate(pairs):
        await history.record_trigger(
            db, sender, receiver, sender, triggered_at=clock.now + timedelta(minutes=offset)
        )


async def test_both_directions_newest_first(db, clock):
    await _seed(db, clock, [("alice", "bob"), ("bob", "alice"), ("alice", "bob"), ("carol", "bob")])

    entries, total = await history.list_between(db, "alice", "bob")

    assert total == 3
    assert [(e.sender_id, e.triggered_at) for e in entries] == [
        ("alice", clock.now + timedelta(minutes=2)),
        ("bob", clock.now + timedelta(minutes=1)),
        ("alice", clock.now),
    ]
    _, reverse_total = await history.list_between(db, "bob", "alice")
    assert reverse_total == 3


async def test_pages(db, clock):
    await _seed(db, clock, [("alice", "bob")] * 5)

    pages = [await history.list_between(db, "alice", "bob", page=n, limit=2) for n in (1, 2, 3, 4)]

    assert [total for _, total in pages] == [5, 5, 5, 5]
    assert [len(items) for items, _ in pages] == [2, 2, 1, 0]
    seen = [e.triggered_at for items, _ in pages for e in items]
    assert seen == sorted(seen, reverse=True)
    assert len(set(seen)) == 5


async def test_page_below_one_is_first_page(db, clock):
    await _seed(db, clock, [("alice", "bob")] * 3)

    first, _ = await history.list_between(db, "alice", "bob", page=1, limit=2)
    zero, _ = await history.list_between(db, "alice", "bob", page=0, limit=2)

    assert [e.id for e in zero] == [e.id for e in first]


async def test_limit_is_clamped(db, clock):
    db.add_all(
        History(
            sender_id="alice",
            receiver_id="bob",
            sender_username="alice",
            triggered_at=clock.now + timedelta(seconds=i),
        )
        for i in range(history.MAX_PAGE_SIZE + 5)
    )
    await db.commit()

    too_small, total = await history.list_between(db, "alice", "bob", limit=0)
    too_large, _ = await history.list_between(db, "alice", "bob", limit=500)
    default, _ = await history.list_between(db, "alice", "bob")

    assert total == history.MAX_PAGE_SIZE + 5
    assert len(too_small) == 1
    assert len(too_large) == history.MAX_PAGE_SIZE
    assert len(default) == history.DEFAULT_PAGE_SIZE
