#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for trying the API by hand.

Creates:
  • 6 users (inserted directly; accounts belong to the auth service)
  • A follow graph (each user follows 2-4 others)
  • 4 posts per user, each with photos and rated food items
  • Reactions and comments across posts
  • One public and one private list per user, reordered once

Run against a running API that shares the database configured for
sweetholic (DATABASE_URL or DB_* variables, same JWT_SECRET):
  python scripts/seed_data.py --api-url http://localhost:8000

A bearer token is printed for every user so you can use them in curl commands.
"""
import argparse
import asyncio
import json
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional

import jwt
from sqlalchemy import select

from sweetholic.config import settings
from sweetholic.database import AsyncSessionLocal, init_db
from sweetholic.models import RATING_SCALES, REACTION_TYPES, User

BASE_USERS = [
    ("sugar_sara", "Sara Lopez"),
    ("choux_chen", "Wei Chen"),
    ("gelato_gio", "Giovanni Rossi"),
    ("mochi_mai", "Mai Tanaka"),
    ("baklava_ben", "Ben Aydin"),
    ("flan_fatima", "Fatima Diaz"),
]

SAMPLE_POSTS = [
    ("Pistachio croissant, still warm", "Pastry", "Maison Beurre"),
    ("Hojicha soft serve on a rainy day", "Ice cream", "Kyo Kissa"),
    ("Basque cheesecake with a burnt top", "Cake", "La Viña"),
    ("Mango sticky rice from the night market", "Dessert", "Chatuchak"),
    ("Triple chocolate brownie, fudgy centre", "Baked goods", "Cocoa Lab"),
    ("Portuguese egg tarts, six pack", "Pastry", "Pastéis Corner"),
    ("Strawberry daifuku, peak season", "Wagashi", "Minamoto"),
    ("Churros con chocolate after midnight", "Fried dough", "San Ginés"),
    ("Tiramisu done the classic way", "Dessert", "Nonna Lia"),
    ("Ube cheesecake bars", "Cake", "Halo Halo Co"),
]

SAMPLE_COMMENTS = [
    "Need the address!",
    "This looks unreal",
    "Adding to my list",
    "Went last week, the queue was worth it",
    "Recipe please?",
]


@dataclass
class ApiClient:
    base_url: str

    def request(self, method: str, path: str, data: Optional[dict] = None,
                token: Optional[str] = None) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: Optional[dict] = None, token: Optional[str] = None) -> dict:
        return self.request("POST", path, data, token)

    def put(self, path: str, data: dict, token: str) -> dict:
        return self.request("PUT", path, data, token)

    def get(self, path: str) -> dict:
        return self.request("GET", path)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for _ in range(retries):
        try:
            if client.get("/api/health").get("success"):
                print("  API is ready!\n")
                return
        except urllib.error.URLError as e:
            print(f"  not yet: {e.reason}")
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


async def ensure_users() -> list[User]:
    """Insert the seed accounts that don't exist yet and return all of them."""
    await init_db()
    async with AsyncSessionLocal() as session:
        users = []
        for username, display_name in BASE_USERS:
            user = await session.scalar(select(User).where(User.username == username))
            if user is None:
                user = User(
                    username=username,
                    email=f"{username}@sweetholic.dev",
                    display_name=display_name,
                )
                session.add(user)
            users.append(user)
        await session.commit()
        return users


def token_for(user: User) -> str:
    return jwt.encode(
        {"id": user.id, "username": user.username, "email": user.email},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Users ─────────────────────────────────────────────────────────────
    print("Creating users...")
    users = asyncio.run(ensure_users())
    tokens = {user.username: token_for(user) for user in users}
    for user in users:
        print(f"  ✓ {user.username} ({user.id})")

    # ── Follow graph ──────────────────────────────────────────────────────
    print("\nCreating follow relationships...")
    follows = 0
    for user in users:
        others = [u for u in users if u.id != user.id]
        for target in random.sample(others, k=random.randint(2, min(4, len(others)))):
            if client.post(f"/api/follows/{target.username}", token=tokens[user.username]):
                follows += 1
    print(f"  ✓ {follows} follows")

    # ── Posts ─────────────────────────────────────────────────────────────
    print("\nCreating posts...")
    posts_by_user: dict[str, list[int]] = {}
    for user in users:
        posts_by_user[user.username] = []
        for caption, food_type, place in random.sample(SAMPLE_POSTS, k=4):
            rating_type = random.choice(list(RATING_SCALES))
            top = RATING_SCALES[rating_type]
            result = client.post(
                "/api/posts",
                {
                    "caption": caption,
                    "food_type": food_type,
                    "location_name": place,
                    "price": round(random.uniform(3, 18), 2),
                    "rating_type": rating_type,
                    "rating": random.randint(1, top),
                    "is_public": random.random() < 0.7,
                    "photos": [
                        {"photo_url": f"https://picsum.photos/seed/{user.username}-{n}/800/800"}
                        for n in range(random.randint(1, 3))
                    ],
                    "food_items": [
                        {"item_name": food_type, "rating": random.randint(1, top)},
                    ],
                },
                token=tokens[user.username],
            )
            post = result.get("data", {}).get("post")
            if post:
                posts_by_user[user.username].append(post["id"])
    all_posts = [pid for ids in posts_by_user.values() for pid in ids]
    print(f"  ✓ {len(all_posts)} posts created")

    # ── Reactions & comments ──────────────────────────────────────────────
    print("\nAdding reactions and comments...")
    reactions = comments = 0
    for post_id in all_posts:
        for user in random.sample(users, k=random.randint(0, 4)):
            for reaction_type in random.sample(REACTION_TYPES, k=random.randint(1, 2)):
                if client.post(f"/api/reactions/{post_id}", {"reaction_type": reaction_type},
                               token=tokens[user.username]):
                    reactions += 1
            if random.random() < 0.4:
                client.post(f"/api/comments/{post_id}", {"content": random.choice(SAMPLE_COMMENTS)},
                            token=tokens[user.username])
                comments += 1
    print(f"  ✓ {reactions} reactions, {comments} comments")

    # ── Lists ─────────────────────────────────────────────────────────────
    print("\nCreating lists...")
    for user in users:
        token = tokens[user.username]
        own_posts = posts_by_user[user.username]
        for title, is_public in (("Go-to spots", True), ("Secret stash", False)):
            created = client.post("/api/lists", {"title": title, "is_public": is_public}, token=token)
            lst = created.get("data", {}).get("list")
            if not lst:
                continue
            for post_id in own_posts:
                client.post(f"/api/lists/{lst['id']}/posts/{post_id}", token=token)
            reversed_orders = [
                {"post_id": post_id, "item_order": order}
                for order, post_id in enumerate(reversed(own_posts))
            ]
            if reversed_orders:
                client.put(f"/api/lists/{lst['id']}/reorder", {"item_orders": reversed_orders}, token)
    print("  ✓ Lists created and reordered")

    # ── Print summary ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    first = users[0]
    print(f"# Tokens (Authorization: Bearer <token>):")
    for username, token in tokens.items():
        print(f"  {username}: {token}")
    print(f"\n# Read the feed:")
    print(f"  curl -s '{api_url}/api/posts/feed?limit=5' | python3 -m json.tool\n")
    print(f"# {first.username}'s lists, including private ones:")
    print(f"  curl -s '{api_url}/api/lists/user/{first.username}' \\")
    print(f"    -H 'Authorization: Bearer {tokens[first.username]}' | python3 -m json.tool\n")
    print(f"# Check Jaeger traces: http://localhost:16686")
    print(f"# Check Prometheus metrics: {api_url}/metrics")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the SweetHolic API")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
