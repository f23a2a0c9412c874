from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import AsyncClient

from fieldbook.errors import FarmDataError, FarmDataErrorCode

from conftest import InMemoryDocumentStore


async def _farm(client: AsyncClient, name: str = "Hillside") -> str:
    response = await client.post("/api/v1/farms", json={"name": name, "location": "Valley Rd"})
    assert response.status_code == 201
    return response.json()["id"]


async def _area(client: AsyncClient, farm_id: str, name: str = "House 1", area_type: str = "greenhouse") -> str:
    response = await client.post(f"/api/v1/farms/{farm_id}/areas", json={"name": name, "type": area_type})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_create_and_list_farms(client: AsyncClient, store: InMemoryDocumentStore) -> None:
    farm_id = await _farm(client)

    listed = await client.get("/api/v1/farms")
    fetched = await client.get(f"/api/v1/farms/{farm_id}")

    assert listed.status_code == 200
    assert [farm["id"] for farm in listed.json()["items"]] == [farm_id]
    assert fetched.json()["location"] == "Valley Rd"
    assert store.paths_under("farms/") == [f"farms/{farm_id}"]


@pytest.mark.asyncio
async def test_unknown_farm_is_404(client: AsyncClient) -> None:
    response = await client.get(f"/api/v1/farms/{uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_farm_payload(client: AsyncClient) -> None:
    response = await client.post("/api/v1/farms", json={"name": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_crop_area_crud(client: AsyncClient) -> None:
    farm_id = await _farm(client)
    area_id = await _area(client, farm_id)

    updated = await client.put(
        f"/api/v1/farms/{farm_id}/areas/{area_id}",
        json={"name": "House One", "type": "high_tunnel", "dimensions": "30x96"},
    )
    listed = await client.get(f"/api/v1/farms/{farm_id}/areas")

    assert updated.status_code == 200
    assert updated.json()["type"] == "high_tunnel"
    assert updated.json()["farm_id"] == farm_id
    assert [area["name"] for area in listed.json()["items"]] == ["House One"]


@pytest.mark.asyncio
async def test_area_for_unknown_farm_is_404(client: AsyncClient) -> None:
    response = await client.post(
        f"/api/v1/farms/{uuid4()}/areas",
        json={"name": "House 1", "type": "greenhouse"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleting_area_removes_its_subtree(client: AsyncClient, store: InMemoryDocumentStore) -> None:
    farm_id = await _farm(client)
    area_id = await _area(client, farm_id)
    section = await client.post(
        f"/api/v1/farms/{farm_id}/areas/{area_id}/sections",
        json={"name": "North", "section_number": "1"},
    )
    section_id = section.json()["id"]
    bed = await client.post(
        f"/api/v1/farms/{farm_id}/areas/{area_id}/sections/{section_id}/beds",
        json={"bed_number": "N1"},
    )
    assert bed.status_code == 201

    response = await client.delete(f"/api/v1/farms/{farm_id}/areas/{area_id}")

    assert response.status_code == 200
    assert response.json() == {"deleted_documents": 3}
    assert store.paths_under(f"farms/{farm_id}/cropAreas") == []
    missing = await client.get(f"/api/v1/farms/{farm_id}/areas/{area_id}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_section_crud(client: AsyncClient) -> None:
    farm_id = await _farm(client)
    area_id = await _area(client, farm_id)
    base = f"/api/v1/farms/{farm_id}/areas/{area_id}/sections"

    created = await client.post(base, json={"name": "North"})
    section_id = created.json()["id"]
    renamed = await client.put(f"{base}/{section_id}", json={"name": "North Block", "section_number": "A"})
    listed = await client.get(base)
    removed = await client.delete(f"{base}/{section_id}")
    gone = await client.get(f"{base}/{section_id}")

    assert created.json()["crop_area_id"] == area_id
    assert renamed.json()["section_number"] == "A"
    assert [section["name"] for section in listed.json()["items"]] == ["North Block"]
    assert removed.json() == {"deleted_documents": 1}
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_section_in_unknown_area_is_404(client: AsyncClient) -> None:
    farm_id = await _farm(client)
    response = await client.post(f"/api/v1/farms/{farm_id}/areas/{uuid4()}/sections", json={"name": "North"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_summary(client: AsyncClient) -> None:
    farm_id = await _farm(client)
    await _area(client, farm_id, "House 1", "greenhouse")
    await _area(client, farm_id, "House 2", "greenhouse")
    await _area(client, farm_id, "Field", "outdoor_beds")

    response = await client.get(f"/api/v1/farms/{farm_id}/summary")

    assert response.status_code == 200
    body = response.json()
    assert body["total_crop_areas"] == 3
    assert body["crop_area_breakdown"] == {"Greenhouse": 2, "Outdoor Beds": 1}
    assert body["bed_status_counts"]["total"] == 0
    assert body["upcoming_tasks"] == []


@pytest.mark.asyncio
async def test_crop_stats_empty(client: AsyncClient) -> None:
    farm_id = await _farm(client)
    response = await client.get(f"/api/v1/farms/{farm_id}/crop-stats")
    assert response.status_code == 200
    assert response.json() == {"items": []}


@pytest.mark.asyncio
async def test_store_outage_is_503(client: AsyncClient, store: InMemoryDocumentStore) -> None:
    farm_id = await _farm(client)
    store.fail_with = FarmDataError(FarmDataErrorCode.network_error, detail="connection reset")

    response = await client.get(f"/api/v1/farms/{farm_id}/areas")

    assert response.status_code == 503
    assert response.json()["detail"] == {
        "error": "network_error",
        "message": "Network error occurred.",
    }
