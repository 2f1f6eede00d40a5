from datetime import datetime

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from civicapp.core.config import settings
from civicapp.core.exceptions import InvalidState, NotFound, PersistenceFailure
from civicapp.models.base import GeoPoint, VoteType
from civicapp.models.complaint import Complaint
from civicapp.models.user import User
from civicapp.services import repository
from civicapp.services.engagement import toggle_vote


def _complaint():
    return Complaint(
        title="Pothole on 5th Avenue",
        description="Large pothole near the school gate",
        category="Roads",
        location=GeoPoint(coordinates=[77.6, 12.9]),
        submitted_by="650000000000000000000aaa",
    )


@pytest.mark.asyncio
async def test_insert_and_get_round_trip(fake_db):
    complaint = await repository.complaints.insert(_complaint())

    loaded = await repository.complaints.get(complaint.id)
    assert loaded.title == "Pothole on 5th Avenue"
    assert loaded.version == 0
    assert isinstance(fake_db["complaints"].documents[0]["_id"], ObjectId)
    assert fake_db["complaints"].documents[0]["category"] == "Roads"


@pytest.mark.asyncio
@pytest.mark.parametrize("entity_id", ["not-an-id", str(ObjectId())])
async def test_missing_entity_is_not_found(entity_id):
    assert await repository.complaints.find(entity_id) is None
    with pytest.raises(NotFound, match="Complaint not found"):
        await repository.complaints.get(entity_id)


@pytest.mark.asyncio
async def test_mutate_bumps_version_and_returns_result():
    complaint = await repository.complaints.insert(_complaint())

    updated, result = await repository.complaints.mutate(
        complaint.id, lambda c: toggle_vote(c, "u2", VoteType.UP)
    )

    assert updated.version == 1
    assert result.up_count == 1
    stored = await repository.complaints.get(complaint.id)
    assert "u2" in stored.upvotes
    assert stored.version == 1


@pytest.mark.asyncio
async def test_mutate_domain_error_writes_nothing():
    complaint = await repository.complaints.insert(_complaint())

    def refuse(c):
        raise InvalidState("nope")

    with pytest.raises(InvalidState):
        await repository.complaints.mutate(complaint.id, refuse)
    assert (await repository.complaints.get(complaint.id)).version == 0


@pytest.mark.asyncio
async def test_concurrent_write_is_not_lost(fake_db, monkeypatch):
    complaint = await repository.complaints.insert(_complaint())
    collection = fake_db["complaints"]
    original_replace = collection.replace_one
    attempts = []

    async def racing_replace(query, doc):
        if not attempts:
            # Another request votes down between our read and our write
            await collection.update_one(
                {"_id": query["_id"]},
                {"$set": {"downvotes.u3": datetime.utcnow()}, "$inc": {"version": 1}},
            )
        attempts.append(query["version"])
        return await original_replace(query, doc)

    monkeypatch.setattr(collection, "replace_one", racing_replace)

    updated, result = await repository.complaints.mutate(
        complaint.id, lambda c: toggle_vote(c, "u2", VoteType.UP)
    )

    assert attempts == [0, 1]
    assert (result.up_count, result.down_count) == (1, 1)
    stored = await repository.complaints.get(complaint.id)
    assert set(stored.upvotes) == {"u2"}
    assert set(stored.downvotes) == {"u3"}
    assert stored.version == 2


@pytest.mark.asyncio
async def test_mutate_gives_up_after_repeated_conflicts(fake_db, monkeypatch):
    complaint = await repository.complaints.insert(_complaint())
    calls = []

    async def always_conflicts(query, doc):
        calls.append(query)
        return type("Result", (), {"matched_count": 0})()

    monkeypatch.setattr(fake_db["complaints"], "replace_one", always_conflicts)

    with pytest.raises(PersistenceFailure):
        await repository.complaints.mutate(complaint.id, lambda c: toggle_vote(c, "u2", "up"))
    assert len(calls) == settings.MUTATION_MAX_ATTEMPTS


@pytest.mark.asyncio
async def test_storage_errors_become_persistence_failures(fake_db, monkeypatch):
    async def down(*args, **kwargs):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(fake_db["complaints"], "find_one", down)

    with pytest.raises(PersistenceFailure):
        await repository.complaints.get(str(ObjectId()))


@pytest.mark.asyncio
async def test_duplicate_key_is_invalid_state(fake_db, monkeypatch):
    async def duplicate(doc):
        raise DuplicateKeyError("E11000 duplicate key")

    monkeypatch.setattr(fake_db["complaints"], "insert_one", duplicate)

    with pytest.raises(InvalidState):
        await repository.complaints.insert(_complaint())


@pytest.mark.asyncio
async def test_find_many_skips_dangling_ids():
    kept = await repository.complaints.insert(_complaint())

    found = await repository.complaints.find_many([kept.id, str(ObjectId()), "garbage"])

    assert list(found) == [kept.id]


@pytest.mark.asyncio
async def test_references_are_added_once_and_removed():
    complaint = await repository.complaints.insert(_complaint())

    assert await repository.complaints.add_reference(complaint.id, "comments", "c1")
    assert await repository.complaints.add_reference(complaint.id, "comments", "c1")
    stored = await repository.complaints.get(complaint.id)
    assert stored.comments == ["c1"]
    assert stored.version == 2

    await repository.complaints.remove_reference(complaint.id, "comments", "c1")
    assert (await repository.complaints.get(complaint.id)).comments == []
    assert not await repository.complaints.add_reference(str(ObjectId()), "comments", "c1")


@pytest.mark.asyncio
async def test_list_pages_and_counts():
    for _ in range(3):
        await repository.complaints.insert(_complaint())

    items, total = await repository.complaints.list({}, sort=[("created_at", -1)], skip=1, limit=1)

    assert total == 3
    assert len(items) == 1


@pytest.mark.asyncio
async def test_mutate_rejects_invalid_entity(fake_db):
    complaint = await repository.complaints.insert(_complaint())

    with pytest.raises(InvalidState, match="Complaint update is not valid"):
        await repository.complaints.mutate(
            complaint.id, lambda c: c.model_copy(update={"title": ""})
        )

    stored = fake_db["complaints"].documents[0]
    assert stored["title"] == "Pothole on 5th Avenue"
    assert stored["version"] == 0


@pytest.mark.asyncio
async def test_increment_bumps_counter_and_version(fake_db):
    user = await repository.users.insert(User(name="Counter", email="counter@example.com"))

    assert await repository.users.increment(user.id, "complaints_submitted")
    assert await repository.users.increment(user.id, "complaints_submitted", 2)
    assert not await repository.users.increment("not-an-id", "complaints_submitted")

    stored = await repository.users.get(user.id)
    assert stored.complaints_submitted == 3
    assert stored.version == 2
