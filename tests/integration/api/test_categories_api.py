"""
Test category API endpoints
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient


BASE = "/api/v1/categories"


async def _create(client: AsyncClient, name: str, parent_id=None, **fields) -> dict:
    response = await client.post(f"{BASE}/", json={"name": name, "parent_id": parent_id, **fields})
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def catalog(client: AsyncClient):
    electronics = await _create(client, "Electronics")
    phones = await _create(client, "Phones", electronics["id"])
    smartphones = await _create(client, "Smartphones", phones["id"])
    home = await _create(client, "Home")
    return {"electronics": electronics, "phones": phones, "smartphones": smartphones, "home": home}


@pytest.mark.asyncio
async def test_create_category(client: AsyncClient):
    """Test creating a nested category"""
    root = await _create(client, "Electronics")
    child = await _create(client, "Mobile Phones", root["id"])

    assert root["id"] == "electronics"
    assert root["tier"] == 0
    assert child["id"] == "electronics-mobile-phones"
    assert child["slug"] == "mobile-phones"
    assert child["parent_ids"] == ["electronics"]
    assert child["root_id"] == "electronics"
    assert child["metrics"]["total_item_count"] == 0

    response = await client.get(f"{BASE}/electronics")
    assert response.json()["children_ids"] == ["electronics-mobile-phones"]
    assert response.json()["is_leaf"] is False


@pytest.mark.asyncio
async def test_create_rejects_blank_name(client: AsyncClient):
    response = await client.post(f"{BASE}/", json={"name": "   "})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_duplicate(client: AsyncClient):
    await _create(client, "Electronics")

    response = await client.post(f"{BASE}/", json={"name": "Electronics"})

    assert response.status_code == 409
    assert response.json()["error"]["type"] == "ConflictError"


@pytest.mark.asyncio
async def test_missing_category_error_shape(client: AsyncClient):
    """Errors carry message, type, request id and timestamp"""
    response = await client.get(f"{BASE}/ghost", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"]["type"] == "NotFoundError"
    assert "ghost" in body["error"]["message"]
    assert body["request_id"] == "req-123"
    assert "timestamp" in body
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_move_category(client: AsyncClient, catalog):
    response = await client.post(f"{BASE}/{catalog['phones']['id']}/move", json={"new_parent_id": "home"})

    assert response.status_code == 200
    moved = response.json()
    assert moved["parent_ids"] == ["home"]
    assert moved["root_id"] == "home"

    response = await client.get(f"{BASE}/{catalog['smartphones']['id']}")
    assert response.json()["parent_ids"] == ["home", catalog["phones"]["id"]]
    assert response.json()["tier"] == 2


@pytest.mark.asyncio
async def test_move_into_own_subtree_is_rejected(client: AsyncClient, catalog):
    response = await client.post(
        f"{BASE}/electronics/move", json={"new_parent_id": catalog["smartphones"]["id"]}
    )

    assert response.status_code == 409
    assert response.json()["error"]["type"] == "InvalidMoveError"

    response = await client.get(f"{BASE}/electronics")
    assert response.json()["tier"] == 0


@pytest.mark.asyncio
async def test_featuring_requires_items(client: AsyncClient, catalog):
    phones_id = catalog["phones"]["id"]

    response = await client.post(f"{BASE}/{phones_id}/featured", json={"featured": True})
    assert response.status_code == 422
    assert response.json()["error"]["type"] == "ValidationError"

    for n in range(5):
        response = await client.post(f"{BASE}/{phones_id}/items", json={"kind": "product", "item_id": f"p{n}"})
        assert response.status_code == 200

    response = await client.post(f"{BASE}/{phones_id}/featured", json={"featured": True, "priority": 3})
    assert response.status_code == 200
    assert response.json()["is_featured"] is True
    assert response.json()["featured_priority"] == 3

    response = await client.get(f"{BASE}/featured")
    assert [category["id"] for category in response.json()] == [phones_id]


@pytest.mark.asyncio
async def test_item_events(client: AsyncClient, catalog):
    smartphones_id = catalog["smartphones"]["id"]

    response = await client.post(f"{BASE}/{smartphones_id}/items", json={"kind": "product", "item_id": "p1"})
    assert response.json()["metrics"]["product_count"] == 1
    response = await client.post(f"{BASE}/{smartphones_id}/items", json={"kind": "auction", "item_id": "a1"})
    assert response.json()["metrics"]["total_item_count"] == 2

    response = await client.get(f"{BASE}/electronics")
    assert response.json()["metrics"]["total_product_count"] == 1
    assert response.json()["metrics"]["total_auction_count"] == 1
    assert response.json()["metrics"]["product_count"] == 0

    response = await client.get(f"{BASE}/{smartphones_id}", params={"include_products": True})
    assert response.json()["metrics"]["product_ids"] == ["p1"]

    response = await client.delete(f"{BASE}/{smartphones_id}/items/product/p1")
    assert response.status_code == 200
    assert response.json()["metrics"]["product_count"] == 0

    response = await client.get(f"{BASE}/electronics")
    assert response.json()["metrics"]["total_item_count"] == 1


@pytest.mark.asyncio
async def test_item_event_for_unknown_kind(client: AsyncClient, catalog):
    response = await client.post(f"{BASE}/home/items", json={"kind": "bundle", "item_id": "b1"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_tree(client: AsyncClient, catalog):
    response = await client.get(f"{BASE}/tree")

    assert response.status_code == 200
    roots = response.json()
    assert [node["id"] for node in roots] == ["electronics", "home"]
    phones = roots[0]["children"][0]
    assert phones["id"] == catalog["phones"]["id"]
    assert [node["id"] for node in phones["children"]] == [catalog["smartphones"]["id"]]

    response = await client.get(f"{BASE}/tree", params={"root_id": "home"})
    assert [node["id"] for node in response.json()] == ["home"]


@pytest.mark.asyncio
async def test_navigation_endpoints(client: AsyncClient, catalog):
    smartphones_id = catalog["smartphones"]["id"]

    response = await client.get(f"{BASE}/{smartphones_id}/breadcrumb")
    assert [category["name"] for category in response.json()] == ["Electronics", "Phones", "Smartphones"]

    response = await client.get(f"{BASE}/electronics/descendants")
    assert [category["id"] for category in response.json()] == [catalog["phones"]["id"], smartphones_id]

    response = await client.get(f"{BASE}/electronics/children")
    assert [category["id"] for category in response.json()] == [catalog["phones"]["id"]]

    response = await client.get(f"{BASE}/roots")
    assert [category["id"] for category in response.json()] == ["electronics", "home"]

    response = await client.get(f"{BASE}/tier/2")
    assert [category["id"] for category in response.json()] == [smartphones_id]

    response = await client.get(f"{BASE}/slug/smartphones")
    assert response.json()["id"] == smartphones_id


@pytest.mark.asyncio
async def test_deactivate_hides_from_active_listings(client: AsyncClient, catalog):
    response = await client.post(f"{BASE}/home/active", json={"active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.get(f"{BASE}/roots", params={"active_only": True})
    assert [category["id"] for category in response.json()] == ["electronics"]


@pytest.mark.asyncio
async def test_reorder(client: AsyncClient, catalog):
    response = await client.post(
        f"{BASE}/reorder",
        json=[{"id": "home", "order": 0}, {"id": "electronics", "order": 1}],
    )
    assert response.status_code == 204

    response = await client.get(f"{BASE}/roots")
    assert [category["id"] for category in response.json()] == ["home", "electronics"]

    response = await client.post(f"{BASE}/reorder", json=[{"id": "ghost", "order": 0}])
    assert response.status_code == 404
