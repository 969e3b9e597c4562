"""Tests for user profiles, identity resolution and worker listings."""

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import as_user, create_user, make_user_data


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient) -> None:
    data = make_user_data("worker", name="Ana")
    resp = await client.post("/users", json=data)
    assert resp.status_code == 201
    body = resp.json()
    assert body["role"] == "worker"
    assert body["display_name"] == "Ana"
    assert body["average_rating"] == 0.0
    assert body["review_count"] == 0


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    data = make_user_data()
    await client.post("/users", json=data)
    resp = await client.post("/users", json=data)
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


@pytest.mark.asyncio
async def test_register_invalid_role(client: AsyncClient) -> None:
    data = make_user_data()
    data["role"] = "broker"
    resp = await client.post("/users", json=data)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient) -> None:
    resp = await client.get(f"/users/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_rating_read_model_defaults(client: AsyncClient) -> None:
    worker_id = await create_user(client, "worker")
    resp = await client.get(f"/users/{worker_id}/rating")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": worker_id, "average_rating": 0.0, "review_count": 0}


@pytest.mark.asyncio
async def test_list_workers_only_workers(client: AsyncClient) -> None:
    worker_id = await create_user(client, "worker")
    requester_id = await create_user(client, "requester")
    resp = await client.get("/users/workers")
    assert resp.status_code == 200
    ids = [u["user_id"] for u in resp.json()]
    assert worker_id in ids
    assert requester_id not in ids


@pytest.mark.asyncio
async def test_missing_identity_header(client: AsyncClient) -> None:
    resp = await client.get("/requests/open")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Missing identity header"


@pytest.mark.asyncio
async def test_malformed_identity_header(client: AsyncClient) -> None:
    resp = await client.get("/requests/open", headers=as_user("not-a-uuid"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_unknown_identity(client: AsyncClient) -> None:
    resp = await client.get("/requests/open", headers=as_user(str(uuid.uuid4())))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "User not found"
