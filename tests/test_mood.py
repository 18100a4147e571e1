"""
Mood Entry Tests
================

CRUD, ownership, validation, listing, stats and insights over the API.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.helpers import time_of_day, weekday_name

MOOD_URL = "/api/v1/mood"


async def _create(client: AsyncClient, headers: dict, **fields) -> dict:
    payload = {"mood": "happy", "intensity": 6}
    payload.update(fields)
    response = await client.post(MOOD_URL, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_stamps_owner(client: AsyncClient, register):
    alice = await register("alice")
    bob = await register("bob")

    entry = await _create(
        client,
        alice["headers"],
        user_id=bob["user"]["user_id"],
    )

    assert entry["user_id"] == alice["user"]["user_id"]


@pytest.mark.asyncio
async def test_create_fills_note_and_tags(client: AsyncClient, register):
    alice = await register("alice")

    entry = await _create(client, alice["headers"], mood="calm", intensity=4)

    assert entry["note"] == "Feeling calm with intensity 4/10"
    created_at = datetime.fromisoformat(entry["created_at"].replace("Z", "+00:00"))
    assert entry["tags"] == [weekday_name(created_at), time_of_day(created_at)]
    assert entry["is_shared"] is False


@pytest.mark.asyncio
async def test_create_keeps_supplied_note_and_tags(client: AsyncClient, register):
    alice = await register("alice")

    entry = await _create(
        client,
        alice["headers"],
        note="Long walk",
        tags=["outdoors"],
        activities=["exercise", "social"],
    )

    assert entry["note"] == "Long walk"
    assert entry["tags"] == ["outdoors"]
    assert entry["activities"] == ["exercise", "social"]


@pytest.mark.asyncio
@pytest.mark.parametrize("intensity", [1, 10])
async def test_intensity_bounds_accepted(client: AsyncClient, register, intensity):
    alice = await register("alice")

    entry = await _create(client, alice["headers"], intensity=intensity)

    assert entry["intensity"] == intensity


@pytest.mark.asyncio
@pytest.mark.parametrize("intensity", [0, 11])
async def test_intensity_out_of_range_rejected(client: AsyncClient, register, intensity):
    alice = await register("alice")

    response = await client.post(
        MOOD_URL,
        json={"mood": "happy", "intensity": intensity},
        headers=alice["headers"],
    )

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "intensity"


@pytest.mark.asyncio
async def test_unknown_mood_rejected(client: AsyncClient, register):
    alice = await register("alice")

    response = await client.post(
        MOOD_URL,
        json={"mood": "ecstatic", "intensity": 5},
        headers=alice["headers"],
    )

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "mood"


@pytest.mark.asyncio
async def test_create_requires_auth(client: AsyncClient):
    response = await client.post(MOOD_URL, json={"mood": "happy", "intensity": 5})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_round_trip(client: AsyncClient, register):
    alice = await register("alice")
    created = await _create(client, alice["headers"], sleep_quality=3, weather="rainy")

    response = await client.get(f"{MOOD_URL}/{created['mood_id']}", headers=alice["headers"])

    assert response.status_code == 200
    assert response.json()["data"] == created


@pytest.mark.asyncio
async def test_get_missing_entry(client: AsyncClient, register):
    alice = await register("alice")

    response = await client.get(
        f"{MOOD_URL}/00000000-0000-0000-0000-000000000000",
        headers=alice["headers"],
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "MOOD_001"


@pytest.mark.asyncio
async def test_other_user_is_forbidden(client: AsyncClient, register):
    alice = await register("alice")
    bob = await register("bob")
    entry = await _create(client, alice["headers"])
    url = f"{MOOD_URL}/{entry['mood_id']}"

    get = await client.get(url, headers=bob["headers"])
    put = await client.put(url, json={"intensity": 2}, headers=bob["headers"])
    delete = await client.delete(url, headers=bob["headers"])

    for response in (get, put, delete):
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    # Untouched
    still = await client.get(url, headers=alice["headers"])
    assert still.json()["data"]["intensity"] == 6


@pytest.mark.asyncio
async def test_admin_can_modify_any_entry(client: AsyncClient, register, make_admin):
    alice = await register("alice")
    root = await register("root")
    await make_admin(root["user"]["user_id"])
    entry = await _create(client, alice["headers"])

    response = await client.put(
        f"{MOOD_URL}/{entry['mood_id']}",
        json={"intensity": 9},
        headers=root["headers"],
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["intensity"] == 9
    assert data["user_id"] == alice["user"]["user_id"]


@pytest.mark.asyncio
async def test_update_partial_and_validated(client: AsyncClient, register):
    alice = await register("alice")
    entry = await _create(client, alice["headers"], note="first")
    url = f"{MOOD_URL}/{entry['mood_id']}"

    response = await client.put(url, json={"mood": "sad"}, headers=alice["headers"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["mood"] == "sad"
    assert data["intensity"] == 6
    assert data["note"] == "first"

    bad = await client.put(url, json={"intensity": 42}, headers=alice["headers"])
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_update_ignores_owner_field(client: AsyncClient, register):
    alice = await register("alice")
    bob = await register("bob")
    entry = await _create(client, alice["headers"])

    response = await client.put(
        f"{MOOD_URL}/{entry['mood_id']}",
        json={"user_id": bob["user"]["user_id"], "intensity": 3},
        headers=alice["headers"],
    )

    assert response.status_code == 200
    assert response.json()["data"]["user_id"] == alice["user"]["user_id"]


@pytest.mark.asyncio
async def test_delete_twice(client: AsyncClient, register):
    alice = await register("alice")
    entry = await _create(client, alice["headers"])
    url = f"{MOOD_URL}/{entry['mood_id']}"

    first = await client.delete(url, headers=alice["headers"])
    second = await client.delete(url, headers=alice["headers"])

    assert first.status_code == 200
    assert first.json()["data"] == {}
    assert second.status_code == 404


@pytest.mark.asyncio
async def test_list_is_owner_scoped_and_paginated(client: AsyncClient, register):
    alice = await register("alice")
    bob = await register("bob")
    created = [await _create(client, alice["headers"], intensity=i) for i in range(1, 6)]
    await _create(client, bob["headers"])

    response = await client.get(MOOD_URL, params={"page": 1, "limit": 2}, headers=alice["headers"])

    assert response.status_code == 200
    body = response.json()
    assert [e["mood_id"] for e in body["data"]] == [
        created[4]["mood_id"],
        created[3]["mood_id"],
    ]
    assert body["pagination"] == {
        "current_page": 1,
        "total_pages": 3,
        "total_items": 5,
        "per_page": 2,
        "has_next": True,
        "has_previous": False,
    }

    last = await client.get(MOOD_URL, params={"page": 3, "limit": 2}, headers=alice["headers"])
    assert [e["mood_id"] for e in last.json()["data"]] == [created[0]["mood_id"]]
    assert last.json()["pagination"]["has_next"] is False


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, register):
    alice = await register("alice")
    await _create(client, alice["headers"], mood="sad")
    shared = await _create(client, alice["headers"], mood="happy", is_shared=True)
    await _create(client, alice["headers"], mood="happy")

    by_mood = await client.get(MOOD_URL, params={"mood": "happy"}, headers=alice["headers"])
    by_shared = await client.get(MOOD_URL, params={"is_shared": "true"}, headers=alice["headers"])

    assert by_mood.json()["pagination"]["total_items"] == 2
    assert [e["mood_id"] for e in by_shared.json()["data"]] == [shared["mood_id"]]


@pytest.mark.asyncio
async def test_stats_single_entry_scenario(client: AsyncClient, register):
    alice = await register("alice")
    await _create(client, alice["headers"], mood="anxious", intensity=8, activities=["exercise"])

    response = await client.get(f"{MOOD_URL}/stats", headers=alice["headers"])

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["mood_distribution"] == [
        {"key": "anxious", "count": 1, "avg_intensity": 8.0},
    ]
    assert stats["activities_correlation"] == [
        {"key": "exercise", "count": 1, "avg_intensity": 8.0, "moods": ["anxious"]},
    ]
    assert len(stats["mood_timeline"]) == 1
    assert stats["mood_timeline"][0]["count"] == 1
    assert sum(s["count"] for s in stats["mood_by_day"]) == 1
    assert sum(s["count"] for s in stats["mood_by_hour"]) == 1


@pytest.mark.asyncio
async def test_stats_distribution_sums_to_total(client: AsyncClient, register):
    alice = await register("alice")
    for mood, intensity in [("happy", 8), ("sad", 2), ("happy", 6), ("calm", 5), ("happy", 7)]:
        await _create(client, alice["headers"], mood=mood, intensity=intensity)

    response = await client.get(f"{MOOD_URL}/stats", headers=alice["headers"])
    distribution = response.json()["data"]["mood_distribution"]

    assert sum(s["count"] for s in distribution) == 5
    assert distribution[0] == {"key": "happy", "count": 3, "avg_intensity": 7.0}
    # Ties broken by first appearance
    assert [s["key"] for s in distribution[1:]] == ["sad", "calm"]


@pytest.mark.asyncio
async def test_stats_reflect_changes(client: AsyncClient, register):
    alice = await register("alice")
    entry = await _create(client, alice["headers"], mood="happy")

    first = await client.get(f"{MOOD_URL}/stats", headers=alice["headers"])
    await client.delete(f"{MOOD_URL}/{entry['mood_id']}", headers=alice["headers"])
    second = await client.get(f"{MOOD_URL}/stats", headers=alice["headers"])

    assert first.json()["data"]["mood_distribution"][0]["count"] == 1
    assert second.json()["data"]["mood_distribution"] == []


@pytest.mark.asyncio
async def test_insights_without_entries(client: AsyncClient, register):
    alice = await register("alice")

    response = await client.get(f"{MOOD_URL}/insights", headers=alice["headers"])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["message"] == "No mood entries found in the last 7 days"
    assert data["insights"] == []
    assert data["suggestions"] == [
        "Start by adding your first mood entry to track your emotional well-being."
    ]


@pytest.mark.asyncio
async def test_insights_with_entries(client: AsyncClient, register):
    alice = await register("alice")
    first = await _create(client, alice["headers"], mood="anxious", intensity=8, activities=["exercise"])
    await _create(client, alice["headers"], mood="anxious", intensity=9)

    response = await client.get(f"{MOOD_URL}/insights", headers=alice["headers"])

    data = response.json()["data"]
    assert data["stats"]["total_entries"] == 2
    assert data["stats"]["most_common_mood"] == "anxious"
    assert data["stats"]["average_intensity"] == 8.5
    assert data["recent_mood"]["intensity"] == 9
    assert data["mood_trend"][-1]["intensity"] == first["intensity"]
    assert "You've been engaging in exercise frequently." in data["insights"]
    assert len(data["suggestions"]) == 3


@pytest.mark.asyncio
async def test_malformed_id_is_a_validation_error(client: AsyncClient, register):
    alice = await register("alice")

    response = await client.get(f"{MOOD_URL}/not-a-uuid", headers=alice["headers"])

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "path.mood_id"


@pytest.mark.asyncio
async def test_cache_dropped_after_commit(client: AsyncClient, register):
    alice = await register("alice")
    events = []
    real_commit = AsyncSession.commit

    async def commit(self):
        events.append("commit")
        await real_commit(self)

    async def invalidate(user_id):
        events.append("invalidate")

    with patch.object(AsyncSession, "commit", commit), patch(
        "app.api.v1.mood.CacheInvalidator.on_mood_change",
        side_effect=invalidate,
    ):
        entry = await _create(client, alice["headers"])
        await client.delete(f"{MOOD_URL}/{entry['mood_id']}", headers=alice["headers"])

    assert events.count("invalidate") == 2
    for i, event in enumerate(events):
        if event == "invalidate":
            assert events[i - 1] == "commit"
