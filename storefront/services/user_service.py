"""User admin endpoints — CRUD on /users.

Responses arrive wrapped as {"data": ...}; the envelope is unwrapped here.
"""

from __future__ import annotations

from typing import Any

from storefront.api.client import ApiClient
from storefront.schemas.common import DataEnvelope
from storefront.schemas.users import UserCreate, UserResponse, UserUpdate


class UserAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_all(self) -> list[UserResponse]:
        response = await self.client.get("/users", response_schema=DataEnvelope[list[UserResponse]])
        return response.data

    async def get_by_id(self, user_id: str) -> UserResponse:
        response = await self.client.get(f"/users/{user_id}", response_schema=DataEnvelope[UserResponse])
        return response.data

    async def create(self, user: dict) -> UserResponse:
        response = await self.client.post(
            "/users", user, request_schema=UserCreate, response_schema=DataEnvelope[UserResponse]
        )
        return response.data

    async def update(self, user_id: str, user: dict) -> UserResponse:
        response = await self.client.put(
            f"/users/{user_id}",
            user,
            request_schema=UserUpdate,
            response_schema=DataEnvelope[UserResponse],
        )
        return response.data

    async def delete(self, user_id: str) -> Any:
        response = await self.client.delete(f"/users/{user_id}")
        return response.get("data") if isinstance(response, dict) else response
