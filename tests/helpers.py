"""Builders shared by the test modules."""
from typing import Optional

import jwt
from httpx import AsyncClient
from sqlalchemy import func, select

from sweetholic.config import settings
from sweetholic.database import AsyncSessionLocal
from sweetholic.models import User


def make_token(user: User) -> str:
    return jwt.encode(
        {"id": user.id, "username": user.username, "email": user.email},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


async def create_user(username: str, display_name: Optional[str] = None) -> User:
    async with AsyncSessionLocal() as session:
        user = User(
            username=username,
            email=f"{username}@example.com",
            display_name=display_name or username.title(),
        )
        session.add(user)
        await session.commit()
        return user


async def count_rows(model, **filters) -> int:
    """Row count straight from the store, bypassing the API."""
    stmt = select(func.count()).select_from(model)
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    async with AsyncSessionLocal() as session:
        return await session.scalar(stmt)


async def create_post(client: AsyncClient, user: User, **fields) -> dict:
    payload = {"caption": "Matcha tiramisu"}
    payload.update(fields)
    response = await client.post("/api/posts", json=payload, headers=bearer(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]["post"]


async def create_list(client: AsyncClient, user: User, **fields) -> dict:
    payload = {"title": "Best desserts"}
    payload.update(fields)
    response = await client.post("/api/lists", json=payload, headers=bearer(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]["list"]
