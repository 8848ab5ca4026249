import uuid

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_recruiter_creates_and_reads_mission(
    test_client: AsyncClient, recruiter, recruiter_headers: dict, talent_headers: dict
):
    response = await test_client.post(
        "/missions",
        json={"title": "Landing page", "description": "Marketing site"},
        headers=recruiter_headers,
    )
    assert response.status_code == 201
    mission = response.json()
    assert mission["status"] == "open"
    assert mission["recruiter_id"] == str(recruiter.id)

    response = await test_client.get(
        f"/missions/{mission['id']}", headers=talent_headers
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Landing page"


async def test_talent_cannot_create_mission(
    test_client: AsyncClient, talent_headers: dict
):
    response = await test_client.post(
        "/missions", json={"title": "Nope"}, headers=talent_headers
    )
    assert response.status_code == 403


async def test_unknown_mission(test_client: AsyncClient, recruiter_headers: dict):
    response = await test_client.get(
        f"/missions/{uuid.uuid4()}", headers=recruiter_headers
    )
    assert response.status_code == 404
