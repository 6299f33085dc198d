"""Tests for follows, profiles, stats and the service endpoints."""
import pytest

from helpers import bearer, create_post


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["database"] == "connected"


@pytest.mark.asyncio
async def test_index_lists_endpoints(client) -> None:
    body = (await client.get("/api")).json()
    assert body["success"] is True
    assert body["endpoints"]["lists"] == "/api/lists/*"


@pytest.mark.asyncio
async def test_follow_and_unfollow(client, alice, bob) -> None:
    followed = await client.post("/api/follows/bob", headers=bearer(alice))
    assert followed.status_code == 201
    assert followed.json()["message"] == "Successfully followed bob"

    twice = await client.post("/api/follows/bob", headers=bearer(alice))
    assert twice.status_code == 400
    assert twice.json()["message"] == "Already following this user"

    self_follow = await client.post("/api/follows/alice", headers=bearer(alice))
    assert self_follow.status_code == 400
    assert self_follow.json()["message"] == "Cannot follow yourself"

    followers = (await client.get("/api/follows/bob/followers")).json()["data"]
    assert [u["username"] for u in followers["followers"]] == ["alice"]
    following = (await client.get("/api/follows/alice/following")).json()["data"]
    assert [u["username"] for u in following["following"]] == ["bob"]

    unfollowed = await client.delete("/api/follows/bob", headers=bearer(alice))
    assert unfollowed.status_code == 200
    not_following = await client.delete("/api/follows/bob", headers=bearer(alice))
    assert not_following.status_code == 400
    assert not_following.json()["message"] == "Not following this user"


@pytest.mark.asyncio
async def test_follow_unknown_user(client, alice) -> None:
    response = await client.post("/api/follows/ghost", headers=bearer(alice))
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_profile_counts_and_follow_state(client, alice, bob) -> None:
    await create_post(client, bob)
    await client.post("/api/follows/bob", headers=bearer(alice))

    as_alice = (await client.get("/api/users/bob", headers=bearer(alice))).json()["data"]["user"]
    assert as_alice["post_count"] == 1
    assert as_alice["follower_count"] == 1
    assert as_alice["following_count"] == 0
    assert as_alice["is_following"] is True
    assert "email" not in as_alice

    anonymous = (await client.get("/api/users/bob")).json()["data"]["user"]
    assert anonymous["is_following"] is False


@pytest.mark.asyncio
async def test_user_stats(client, alice, bob) -> None:
    post = await create_post(
        client,
        alice,
        photos=[{"photo_url": "https://img.example/1.jpg"}, {"photo_url": "https://img.example/2.jpg"}],
    )
    await client.post(
        f"/api/reactions/{post['id']}", json={"reaction_type": "heart"}, headers=bearer(bob)
    )
    await client.post(
        f"/api/comments/{post['id']}", json={"content": "Wow"}, headers=bearer(bob)
    )
    await client.post("/api/follows/alice", headers=bearer(bob))

    stats = (await client.get("/api/users/alice/stats")).json()["data"]["stats"]
    assert stats == {
        "total_posts": 1,
        "total_photos": 2,
        "follower_count": 1,
        "following_count": 0,
        "total_reactions_received": 1,
        "total_comments_received": 1,
    }


@pytest.mark.asyncio
async def test_update_profile(client, alice) -> None:
    response = await client.put(
        "/api/users/profile", json={"bio": "Pastry hunter"}, headers=bearer(alice)
    )
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["bio"] == "Pastry hunter"
    assert user["display_name"] == "Alice"

    empty = await client.put("/api/users/profile", json={}, headers=bearer(alice))
    assert empty.status_code == 400
    assert empty.json()["message"] == "No fields to update"


@pytest.mark.asyncio
async def test_malformed_path_parameter(client) -> None:
    response = await client.get("/api/posts/not-a-number")
    assert response.status_code == 400
    assert response.json()["success"] is False
