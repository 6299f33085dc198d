"""Tests for lists, membership ordering and privacy."""
import pytest
from prometheus_client import REGISTRY
from sqlalchemy import Update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import bearer, count_rows, create_list, create_post
from sweetholic.models import ListItem, Post


async def _add(client, user, list_id, post_id, item_order=None):
    kwargs = {"headers": bearer(user)}
    if item_order is not None:
        kwargs["json"] = {"item_order": item_order}
    return await client.post(f"/api/lists/{list_id}/posts/{post_id}", **kwargs)


async def _post_ids(client, user, list_id):
    response = await client.get(f"/api/lists/{list_id}", headers=bearer(user))
    assert response.status_code == 200, response.text
    return [p["id"] for p in response.json()["data"]["list"]["posts"]]


@pytest.mark.asyncio
async def test_create_list_defaults_public(client, alice) -> None:
    lst = await create_list(client, alice, title="  Paris pastries  ")
    assert lst["title"] == "Paris pastries"
    assert lst["is_public"] is True
    assert lst["item_count"] == 0


@pytest.mark.asyncio
async def test_create_list_requires_title(client, alice) -> None:
    response = await client.post("/api/lists", json={"title": " "}, headers=bearer(alice))
    assert response.status_code == 400
    assert response.json()["message"] == "List title is required"

    response = await client.post("/api/lists", json={"title": "x" * 256}, headers=bearer(alice))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_add_appends_after_current_max(client, alice) -> None:
    lst = await create_list(client, alice)
    p1 = await create_post(client, alice, caption="one")
    p2 = await create_post(client, alice, caption="two")
    p3 = await create_post(client, alice, caption="three")

    first = await _add(client, alice, lst["id"], p1["id"])
    explicit = await _add(client, alice, lst["id"], p2["id"], item_order=10)
    appended = await _add(client, alice, lst["id"], p3["id"])

    assert first.status_code == 201
    assert first.json()["data"]["list_item"]["item_order"] == 0
    assert explicit.json()["data"]["list_item"]["item_order"] == 10
    assert appended.json()["data"]["list_item"]["item_order"] == 11
    assert await _post_ids(client, alice, lst["id"]) == [p1["id"], p2["id"], p3["id"]]


@pytest.mark.asyncio
async def test_add_duplicate_member(client, alice) -> None:
    lst = await create_list(client, alice)
    post = await create_post(client, alice)
    await _add(client, alice, lst["id"], post["id"])

    response = await _add(client, alice, lst["id"], post["id"])

    assert response.status_code == 400
    assert response.json()["message"] == "Post is already in this list"
    assert await count_rows(ListItem) == 1


@pytest.mark.asyncio
async def test_add_requires_owning_list_and_post(client, alice, bob) -> None:
    alice_list = await create_list(client, alice)
    bob_list = await create_list(client, bob)
    bob_post = await create_post(client, bob)
    alice_post = await create_post(client, alice)

    not_list_owner = await _add(client, alice, bob_list["id"], bob_post["id"])
    assert not_list_owner.status_code == 403
    assert not_list_owner.json()["message"] == "Not authorized to modify this list"

    not_post_owner = await _add(client, alice, alice_list["id"], bob_post["id"])
    assert not_post_owner.status_code == 403
    assert not_post_owner.json()["message"] == "Can only add your own posts to lists"

    missing_post = await _add(client, alice, alice_list["id"], 999)
    assert missing_post.status_code == 404
    assert missing_post.json()["message"] == "Post not found"

    missing_list = await _add(client, alice, 999, alice_post["id"])
    assert missing_list.status_code == 404
    assert missing_list.json()["message"] == "List not found"

    assert await count_rows(ListItem) == 0


@pytest.mark.asyncio
async def test_remove_member(client, alice, bob) -> None:
    lst = await create_list(client, alice)
    post = await create_post(client, alice)
    await _add(client, alice, lst["id"], post["id"])

    forbidden = await client.delete(
        f"/api/lists/{lst['id']}/posts/{post['id']}", headers=bearer(bob)
    )
    assert forbidden.status_code == 403

    removed = await client.delete(
        f"/api/lists/{lst['id']}/posts/{post['id']}", headers=bearer(alice)
    )
    assert removed.status_code == 200
    assert await count_rows(ListItem) == 0
    assert await count_rows(Post) == 1

    again = await client.delete(
        f"/api/lists/{lst['id']}/posts/{post['id']}", headers=bearer(alice)
    )
    assert again.status_code == 404
    assert again.json()["message"] == "Post not found in this list"


@pytest.mark.asyncio
async def test_reorder_rewrites_orders(client, alice) -> None:
    lst = await create_list(client, alice)
    p1 = await create_post(client, alice, caption="one")
    p2 = await create_post(client, alice, caption="two")
    p3 = await create_post(client, alice, caption="three")
    for post in (p1, p2, p3):
        await _add(client, alice, lst["id"], post["id"])

    response = await client.put(
        f"/api/lists/{lst['id']}/reorder",
        json={
            "item_orders": [
                {"post_id": p1["id"], "item_order": 2},
                {"post_id": p2["id"], "item_order": 0},
                {"post_id": p3["id"], "item_order": 1},
            ]
        },
        headers=bearer(alice),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "List items reordered successfully"}
    assert await _post_ids(client, alice, lst["id"]) == [p2["id"], p3["id"], p1["id"]]


@pytest.mark.asyncio
async def test_reorder_ignores_non_members(client, alice) -> None:
    lst = await create_list(client, alice)
    member = await create_post(client, alice)
    outsider = await create_post(client, alice)
    await _add(client, alice, lst["id"], member["id"])

    response = await client.put(
        f"/api/lists/{lst['id']}/reorder",
        json={
            "item_orders": [
                {"post_id": outsider["id"], "item_order": 0},
                {"post_id": member["id"], "item_order": 5},
            ]
        },
        headers=bearer(alice),
    )

    assert response.status_code == 200
    detail = (await client.get(f"/api/lists/{lst['id']}")).json()["data"]["list"]
    assert [(p["id"], p["item_order"]) for p in detail["posts"]] == [(member["id"], 5)]


@pytest.mark.asyncio
async def test_reorder_validation_and_ownership(client, alice, bob) -> None:
    lst = await create_list(client, alice)
    post = await create_post(client, alice)
    await _add(client, alice, lst["id"], post["id"])

    empty = await client.put(
        f"/api/lists/{lst['id']}/reorder", json={"item_orders": []}, headers=bearer(alice)
    )
    assert empty.status_code == 400
    assert empty.json()["message"] == (
        "item_orders must be a non-empty array of { post_id, item_order }"
    )

    forbidden = await client.put(
        f"/api/lists/{lst['id']}/reorder",
        json={"item_orders": [{"post_id": post["id"], "item_order": 9}]},
        headers=bearer(bob),
    )
    assert forbidden.status_code == 403
    detail = (await client.get(f"/api/lists/{lst['id']}")).json()["data"]["list"]
    assert detail["posts"][0]["item_order"] == 0


@pytest.mark.asyncio
async def test_private_list_visible_to_owner_only(client, alice, bob) -> None:
    lst = await create_list(client, alice, is_public=False)

    assert (await client.get(f"/api/lists/{lst['id']}", headers=bearer(alice))).status_code == 200

    as_bob = await client.get(f"/api/lists/{lst['id']}", headers=bearer(bob))
    assert as_bob.status_code == 403
    assert as_bob.json()["message"] == "This list is private"

    anonymous = await client.get(f"/api/lists/{lst['id']}")
    assert anonymous.status_code == 403


@pytest.mark.asyncio
async def test_list_detail_shape(client, alice) -> None:
    lst = await create_list(client, alice, description="Sweet spots")
    post = await create_post(
        client, alice, photos=[{"photo_url": "https://img.example/1.jpg"}]
    )
    await _add(client, alice, lst["id"], post["id"])

    detail = (await client.get(f"/api/lists/{lst['id']}")).json()["data"]["list"]

    assert detail["user"]["username"] == "alice"
    assert "email" not in detail["user"]
    assert detail["item_count"] == 1
    member = detail["posts"][0]
    assert member["item_order"] == 0
    assert member["added_at"]
    assert member["photos"][0]["photo_url"] == "https://img.example/1.jpg"


@pytest.mark.asyncio
async def test_user_lists_hide_private_from_others(client, alice, bob) -> None:
    public = await create_list(client, alice, title="Public")
    private = await create_list(client, alice, title="Private", is_public=False)

    as_owner = (await client.get("/api/lists/user/alice", headers=bearer(alice))).json()["data"]
    assert [lst["id"] for lst in as_owner["lists"]] == [private["id"], public["id"]]
    assert as_owner["pagination"]["total"] == 2

    as_bob = (await client.get("/api/lists/user/alice", headers=bearer(bob))).json()["data"]
    assert [lst["id"] for lst in as_bob["lists"]] == [public["id"]]
    assert as_bob["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_user_lists_pages_are_stable(client, alice) -> None:
    for n in range(3):
        await create_list(client, alice, title=f"List {n}")

    first = await client.get("/api/lists/user/alice", params={"limit": 2, "offset": 0})
    again = await client.get("/api/lists/user/alice", params={"limit": 2, "offset": 0})
    rest = await client.get("/api/lists/user/alice", params={"limit": 2, "offset": 2})

    assert first.json() == again.json()
    ids = [lst["id"] for lst in first.json()["data"]["lists"]]
    ids += [lst["id"] for lst in rest.json()["data"]["lists"]]
    assert len(set(ids)) == 3


@pytest.mark.asyncio
async def test_update_and_delete_list(client, alice, bob) -> None:
    lst = await create_list(client, alice)
    post = await create_post(client, alice)
    await _add(client, alice, lst["id"], post["id"])

    blank = await client.put(f"/api/lists/{lst['id']}", json={"title": ""}, headers=bearer(alice))
    assert blank.status_code == 400
    assert blank.json()["message"] == "List title cannot be empty"

    forbidden = await client.put(
        f"/api/lists/{lst['id']}", json={"title": "Mine now"}, headers=bearer(bob)
    )
    assert forbidden.status_code == 403

    updated = await client.put(
        f"/api/lists/{lst['id']}", json={"is_public": False}, headers=bearer(alice)
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["list"]["is_public"] is False
    assert updated.json()["data"]["list"]["item_count"] == 1

    deleted = await client.delete(f"/api/lists/{lst['id']}", headers=bearer(alice))
    assert deleted.status_code == 200
    assert await count_rows(ListItem) == 0
    assert await count_rows(Post) == 1


async def _orders(client, user, list_id):
    response = await client.get(f"/api/lists/{list_id}", headers=bearer(user))
    return sorted((p["id"], p["item_order"]) for p in response.json()["data"]["list"]["posts"])


def _rollbacks(operation: str) -> float:
    value = REGISTRY.get_sample_value("transaction_rollbacks_total", {"operation": operation})
    return value or 0.0


@pytest.mark.asyncio
async def test_reorder_rejects_out_of_range_order(client, alice) -> None:
    lst = await create_list(client, alice)
    p1 = await create_post(client, alice)
    p2 = await create_post(client, alice)
    for post in (p1, p2):
        await _add(client, alice, lst["id"], post["id"])
    before = await _orders(client, alice, lst["id"])

    response = await client.put(
        f"/api/lists/{lst['id']}/reorder",
        json={
            "item_orders": [
                {"post_id": p1["id"], "item_order": 7},
                {"post_id": p2["id"], "item_order": 2**70},
            ]
        },
        headers=bearer(alice),
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid request: item_orders.1.item_order")
    assert await _orders(client, alice, lst["id"]) == before


@pytest.mark.asyncio
async def test_reorder_failure_mid_batch_applies_nothing(client, alice, monkeypatch) -> None:
    lst = await create_list(client, alice)
    p1 = await create_post(client, alice, caption="one")
    p2 = await create_post(client, alice, caption="two")
    p3 = await create_post(client, alice, caption="three")
    for post in (p1, p2, p3):
        await _add(client, alice, lst["id"], post["id"])
    before = await _orders(client, alice, lst["id"])
    rollbacks = _rollbacks("reorder_list_items")

    # The second UPDATE of the batch fails after the first one has run
    execute = AsyncSession.execute
    updates = []

    async def flaky_execute(self, statement, *args, **kwargs):
        if isinstance(statement, Update):
            updates.append(statement)
            if len(updates) == 2:
                raise OperationalError("UPDATE list_items", {}, Exception("disk I/O error"))
        return await execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", flaky_execute)

    response = await client.put(
        f"/api/lists/{lst['id']}/reorder",
        json={
            "item_orders": [
                {"post_id": p1["id"], "item_order": 2},
                {"post_id": p2["id"], "item_order": 0},
                {"post_id": p3["id"], "item_order": 1},
            ]
        },
        headers=bearer(alice),
    )

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Server error during reorder_list_items",
    }
    assert len(updates) == 2
    assert await _orders(client, alice, lst["id"]) == before
    assert _rollbacks("reorder_list_items") == rollbacks + 1


@pytest.mark.asyncio
async def test_list_update_bumps_updated_at(client, alice) -> None:
    lst = await create_list(client, alice, title="Same title")

    response = await client.put(
        f"/api/lists/{lst['id']}", json={"title": "Same title"}, headers=bearer(alice)
    )

    assert response.status_code == 200
    assert response.json()["data"]["list"]["updated_at"] != lst["updated_at"]
