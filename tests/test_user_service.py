"""
test_user_service.py — Tests for storefront/services/user_service.py

Called by: pytest
Depends on: storefront/services/user_service.py, tests/conftest.py
"""

import json

import httpx
import pytest

from storefront.errors import ValidationError
from storefront.services.user_service import UserAPI

ADA = {"id": 1, "name": "Ada", "email": "ada@example.com"}


@pytest.fixture
def users(api_client):
    return UserAPI(api_client)


@pytest.mark.asyncio
async def test_get_all_unwraps_envelope(users, router):
    router.add("GET", "/users", httpx.Response(200, json={"data": [ADA]}))

    result = await users.get_all()

    assert [u.id for u in result] == ["1"]


@pytest.mark.asyncio
async def test_get_by_id(users, router):
    router.add("GET", "/users/1", httpx.Response(200, json={"data": ADA}))
    assert (await users.get_by_id("1")).email == "ada@example.com"


@pytest.mark.asyncio
async def test_create_validates_role(users, router):
    with pytest.raises(ValidationError):
        await users.create({"name": "Ada", "email": "ada@example.com", "role": "ROOT"})
    assert router.calls == []


@pytest.mark.asyncio
async def test_create(users, router):
    router.add("POST", "/users", httpx.Response(201, json={"data": ADA}))

    created = await users.create({"name": "Ada", "email": "ADA@example.com", "role": "USER"})

    assert created.name == "Ada"
    assert json.loads(router.calls[0].content)["email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_update_and_delete(users, router):
    router.add("PUT", "/users/1", httpx.Response(200, json={"data": dict(ADA, name="Ada L.")}))
    router.add("DELETE", "/users/1", httpx.Response(200, json={"data": {"id": 1}}))

    updated = await users.update("1", {"name": "Ada L."})
    deleted = await users.delete("1")

    assert updated.name == "Ada L."
    assert deleted == {"id": 1}


@pytest.mark.asyncio
async def test_partial_update_sends_only_given_fields(users, router):
    router.add("PUT", "/users/1", httpx.Response(200, json={"data": ADA}))

    await users.update("1", {"email": "Ada@Example.com"})

    assert json.loads(router.calls[0].content) == {"email": "ada@example.com"}
