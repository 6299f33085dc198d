"""Tests for the per-type reaction ledger."""
import pytest

from helpers import bearer, count_rows, create_post, create_user
from sweetholic.models import Reaction


async def _react(client, user, post_id, reaction_type):
    return await client.post(
        f"/api/reactions/{post_id}", json={"reaction_type": reaction_type}, headers=bearer(user)
    )


@pytest.mark.asyncio
async def test_one_reaction_per_type(client, alice, bob) -> None:
    post = await create_post(client, alice)

    first = await _react(client, bob, post["id"], "heart")
    duplicate = await _react(client, bob, post["id"], "heart")
    other_type = await _react(client, bob, post["id"], "thumbs_up")

    assert first.status_code == 201
    assert first.json()["data"]["reaction"]["reaction_type"] == "heart"
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "You have already reacted with this type"
    assert other_type.status_code == 201
    assert await count_rows(Reaction) == 2


@pytest.mark.asyncio
async def test_invalid_reaction_type(client, alice) -> None:
    post = await create_post(client, alice)

    response = await _react(client, alice, post["id"], "laugh")

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Invalid reaction type. Must be one of: heart, thumbs_up, star_eyes, jealous, dislike"
    )


@pytest.mark.asyncio
async def test_react_to_missing_post(client, alice) -> None:
    response = await _react(client, alice, 404, "heart")
    assert response.status_code == 404
    assert response.json()["message"] == "Post not found"


@pytest.mark.asyncio
async def test_reaction_summary(client, alice, bob) -> None:
    post = await create_post(client, alice)
    await _react(client, alice, post["id"], "heart")
    await _react(client, bob, post["id"], "heart")
    await _react(client, bob, post["id"], "jealous")

    anonymous = (await client.get(f"/api/reactions/{post['id']}")).json()["data"]
    assert anonymous["total_reactions"] == 3
    assert anonymous["reaction_counts"] == {"heart": 2, "jealous": 1}
    assert anonymous["user_reactions"] == []

    as_bob = (
        await client.get(f"/api/reactions/{post['id']}", headers=bearer(bob))
    ).json()["data"]
    assert sorted(as_bob["user_reactions"]) == ["heart", "jealous"]


@pytest.mark.asyncio
async def test_remove_reaction(client, alice, bob) -> None:
    post = await create_post(client, alice)
    await _react(client, bob, post["id"], "star_eyes")

    # Another user's reaction is not theirs to remove
    not_mine = await client.delete(f"/api/reactions/{post['id']}/star_eyes", headers=bearer(alice))
    assert not_mine.status_code == 404
    assert not_mine.json()["message"] == "Reaction not found"

    removed = await client.delete(f"/api/reactions/{post['id']}/star_eyes", headers=bearer(bob))
    assert removed.status_code == 200
    assert removed.json()["message"] == "Reaction removed successfully"
    assert await count_rows(Reaction) == 0

    again = await _react(client, bob, post["id"], "star_eyes")
    assert again.status_code == 201


@pytest.mark.asyncio
async def test_reaction_users_newest_first(client, alice, bob) -> None:
    carol = await create_user("carol")
    post = await create_post(client, alice)
    await _react(client, bob, post["id"], "heart")
    await _react(client, carol, post["id"], "heart")
    await _react(client, alice, post["id"], "dislike")

    response = await client.get(f"/api/reactions/{post['id']}/heart/users")

    data = response.json()["data"]
    assert [u["username"] for u in data["users"]] == ["carol", "bob"]
    assert all("reacted_at" in u and "email" not in u for u in data["users"])
    assert data["pagination"] == {"limit": 20, "offset": 0, "total": 2}
