"""
TechGear Catalog Backend — Product Endpoint Tests
===================================================

What:  End-to-end tests for /products through the full middleware and
       dependency pipeline, backed by a per-test SQLite store.

What we test:
    ✅ Create → get returns the same fields
    ✅ Public reads, authenticated writes
    ✅ Rejected writes leave the catalog untouched
    ✅ 400 for malformed ids and bodies, 404 for unknown ids
    ✅ Case-insensitive title search
"""

import uuid

import pytest

from tests.conftest import VALID_PRODUCT


async def create(client, headers, **overrides):
    body = {**VALID_PRODUCT, **overrides}
    response = await client.post("/products", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestProductReads:

    @pytest.mark.asyncio
    async def test_empty_catalog(self, test_client):
        response = await test_client.get("/products")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_create_then_get(self, test_client, auth_headers):
        created = await create(test_client, auth_headers)

        response = await test_client.get(f"/products/{created['id']}")

        assert response.status_code == 200
        fetched = response.json()
        for field in ("id", "title", "price", "description", "image"):
            assert fetched[field] == created[field]
        assert created["price"] == 129.99

    @pytest.mark.asyncio
    async def test_malformed_id(self, test_client):
        response = await test_client.get("/products/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID format"

    @pytest.mark.asyncio
    async def test_unknown_id(self, test_client):
        response = await test_client.get(f"/products/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, test_client, auth_headers):
        await create(test_client, auth_headers, title="Gaming Mouse")
        await create(test_client, auth_headers, title="Mouse Pad XL")
        await create(test_client, auth_headers, title="Webcam")

        response = await test_client.get("/products", params={"search": "mOuSe"})

        titles = sorted(p["title"] for p in response.json())
        assert titles == ["Gaming Mouse", "Mouse Pad XL"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, test_client, auth_headers):
        await create(test_client, auth_headers, title="Charger 100% PD")
        await create(test_client, auth_headers, title="Charger 65W")

        response = await test_client.get("/products", params={"search": "100%"})

        assert [p["title"] for p in response.json()] == ["Charger 100% PD"]


class TestProductWrites:

    @pytest.mark.asyncio
    async def test_create_requires_token(self, test_client):
        response = await test_client.post("/products", json=VALID_PRODUCT)

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized: No token provided"
        assert response.headers["www-authenticate"] == "Bearer"
        assert (await test_client.get("/products")).json() == []

    @pytest.mark.asyncio
    async def test_create_with_forged_token(self, test_client, registered_user):
        response = await test_client.post(
            "/products", json=VALID_PRODUCT, headers={"Authorization": "Bearer abc.def.ghi"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized: Invalid or expired token"

    @pytest.mark.asyncio
    async def test_auth_is_checked_before_validation(self, test_client):
        response = await test_client.post("/products", json={"price": -1})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_negative_price_is_rejected(self, test_client, auth_headers):
        response = await test_client.post(
            "/products", json={**VALID_PRODUCT, "price": -5}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Price must be a non-negative number"
        assert (await test_client.get("/products")).json() == []

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, test_client, auth_headers):
        response = await test_client.post(
            "/products",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be valid JSON"

    @pytest.mark.asyncio
    async def test_oversized_integer_literal(self, test_client, auth_headers):
        """Integer literals past the interpreter digit limit are a bad body, not a crash."""
        raw = (
            b'{"title": "Cable", "price": ' + b"9" * 5000
            + b', "description": "USB-C", "image": "https://cdn.example.com/c.png"}'
        )
        response = await test_client.post(
            "/products",
            content=raw,
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be valid JSON"
        assert (await test_client.get("/products")).json() == []

    @pytest.mark.asyncio
    async def test_huge_price_is_rejected(self, test_client, auth_headers):
        response = await test_client.post(
            "/products", json={**VALID_PRODUCT, "price": 10 ** 400}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Price must be a non-negative number"

    @pytest.mark.asyncio
    async def test_update_product(self, test_client, auth_headers):
        created = await create(test_client, auth_headers)
        changes = {**VALID_PRODUCT, "title": "Mechanical Keyboard v2", "price": 139}

        response = await test_client.put(
            f"/products/{created['id']}", json=changes, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Mechanical Keyboard v2"
        fetched = (await test_client.get(f"/products/{created['id']}")).json()
        assert fetched["price"] == 139

    @pytest.mark.asyncio
    async def test_update_requires_all_fields(self, test_client, auth_headers):
        created = await create(test_client, auth_headers)

        response = await test_client.put(
            f"/products/{created['id']}", json={"title": "Only a title"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Product price is required"

    @pytest.mark.asyncio
    async def test_update_unknown_product(self, test_client, auth_headers):
        response = await test_client.put(
            f"/products/{uuid.uuid4()}", json=VALID_PRODUCT, headers=auth_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, test_client, auth_headers):
        response = await test_client.put(
            "/products/123", json=VALID_PRODUCT, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID format"

    @pytest.mark.asyncio
    async def test_delete_product(self, test_client, auth_headers):
        created = await create(test_client, auth_headers)

        response = await test_client.delete(f"/products/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Product deleted successfully"}
        assert (await test_client.get(f"/products/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_token(self, test_client, auth_headers):
        created = await create(test_client, auth_headers)

        response = await test_client.delete(f"/products/{created['id']}")

        assert response.status_code == 401
        assert (await test_client.get(f"/products/{created['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_token_for_removed_user(self, test_client, test_app):
        token = test_app.state.auth_service.create_access_token(uuid.uuid4(), "gone@techgear.io")

        response = await test_client.post(
            "/products", json=VALID_PRODUCT, headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized: User not found"


class TestResponseEnvelope:

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get(
            "/products/not-a-uuid", headers={"X-Request-ID": "trace-123"}
        )
        assert response.json()["request_id"] == "trace-123"
        assert response.headers["x-request-id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_rate_limit_headers_on_success(self, test_client):
        response = await test_client.get("/products")
        assert response.headers["x-ratelimit-limit"] == "100"
