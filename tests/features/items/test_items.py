"""Tests for the item catalogue.
Covers: Item stock rules, ItemService, item endpoints and their permissions.
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status
from pydantic import ValidationError
from sqlalchemy import select

from stockroom.features.items.exceptions import InsufficientStock, InvalidQuantity
from stockroom.features.items.models import Item
from stockroom.features.items.schemas import CreateItemRequest
from stockroom.features.items.service import ItemService
from stockroom.features.movements.models import Movement, MovementType
from stockroom.shared.audit.audit import AuditAction, AuditLog


def _item_payload(**overrides):
    payload = {
        "name": "Safety Helmet",
        "sku": "hlm-001",
        "category": "PPE",
        "location": "Shelf A1",
        "quantity": 25,
        "minStock": 5,
        "maxStock": 100,
        "cost": "12.50",
        "isPpe": True,
    }
    payload.update(overrides)
    return payload


# Model


class TestItemStock:
    def test_decrease_stock(self):
        item = Item(name="Gloves", sku="GLV-1", category="PPE", quantity=10)
        item.decrease_stock(4)
        assert item.quantity == 6

    def test_decrease_to_zero_is_allowed(self):
        item = Item(name="Gloves", sku="GLV-1", category="PPE", quantity=3)
        item.decrease_stock(3)
        assert item.quantity == 0

    def test_decrease_beyond_stock_raises(self):
        item = Item(name="Gloves", sku="GLV-1", category="PPE", quantity=2)
        with pytest.raises(InsufficientStock) as exc_info:
            item.decrease_stock(3)
        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert "2 available, 3 requested" in exc_info.value.detail
        assert item.quantity == 2

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amounts_raise(self, amount):
        item = Item(name="Gloves", sku="GLV-1", category="PPE", quantity=2)
        with pytest.raises(InvalidQuantity):
            item.increase_stock(amount)
        with pytest.raises(InvalidQuantity):
            item.decrease_stock(amount)

    def test_below_min_stock(self):
        item = Item(name="Gloves", sku="GLV-1", category="PPE", quantity=2, min_stock=5)
        assert item.below_min_stock
        item.increase_stock(3)
        assert not item.below_min_stock

    def test_is_expired(self):
        item = Item(name="Filter", sku="FLT-1", category="PPE", quantity=1)
        assert not item.is_expired()
        item.expiry_date = datetime.now(UTC) - timedelta(days=1)
        assert item.is_expired()


class TestCreateItemRequest:
    def test_sku_is_normalized(self):
        data = CreateItemRequest(name="Helmet", sku=" hlm-9 ", category="PPE")
        assert data.sku == "HLM-9"

    def test_past_expiry_date_is_rejected(self):
        with pytest.raises(ValidationError, match="must be a future date"):
            CreateItemRequest(name="Helmet", sku="HLM-9", category="PPE", expiry_date=datetime(2000, 1, 1))

    def test_naive_expiry_date_is_read_as_utc(self):
        naive = datetime.now() + timedelta(days=10)
        data = CreateItemRequest(name="Helmet", sku="HLM-9", category="PPE", expiry_date=naive)
        assert data.expiry_date.tzinfo is UTC

    def test_min_stock_above_max_stock_is_rejected(self):
        with pytest.raises(ValidationError, match="minStock cannot be greater than maxStock"):
            CreateItemRequest(name="Helmet", sku="HLM-9", category="PPE", min_stock=10, max_stock=5)

    def test_negative_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            CreateItemRequest(name="Helmet", sku="HLM-9", category="PPE", quantity=-1)


# Service


class TestItemService:
    async def test_get_by_sku_is_case_insensitive(self, session, make_item):
        item = await make_item(sku="DRL-18")
        assert await ItemService.get_by_sku(session, "drl-18") is item

    async def test_get_expiring_window(self, session, make_item, in_days):
        soon = await make_item(name="Soon", expiry_date=in_days(5))
        await make_item(name="Later", expiry_date=in_days(45))
        await make_item(name="Expired", expiry_date=in_days(-1))
        await make_item(name="Never")

        assert await ItemService.get_expiring(session, 30) == [soon]

    async def test_get_expiring_sorted_by_date(self, session, make_item, in_days):
        second = await make_item(expiry_date=in_days(20))
        first = await make_item(expiry_date=in_days(2))

        assert await ItemService.get_expiring(session, 30) == [first, second]

    async def test_count_items(self, session, make_item):
        await make_item()
        await make_item()
        assert await ItemService.count_items(session) == 2


# Endpoints


class TestItemEndpoints:
    async def test_create_item(self, manager_client, session):
        client, manager = manager_client

        response = await client.post("/api/items", json=_item_payload())

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["sku"] == "HLM-001"
        assert data["quantity"] == 25
        assert data["isPpe"] is True
        assert data["cost"] == "12.50"

        result = await session.execute(select(AuditLog).where(AuditLog.entity_type == "items"))
        entry = result.scalar_one()
        assert entry.action == AuditAction.CREATE
        assert entry.user_id == str(manager.id)

    async def test_hr_can_manage_items(self, hr_client):
        client, _ = hr_client
        response = await client.post("/api/items", json=_item_payload())
        assert response.status_code == status.HTTP_201_CREATED

    async def test_duplicate_sku_is_409(self, manager_client, make_item):
        client, _ = manager_client
        await make_item(sku="HLM-001")

        response = await client.post("/api/items", json=_item_payload(sku="hlm-001"))

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_invalid_sku_is_422(self, manager_client):
        client, _ = manager_client
        response = await client.post("/api/items", json=_item_payload(sku="bad sku"))
        assert response.status_code == 422

    async def test_employee_cannot_create_items(self, auth_client):
        client, _ = auth_client
        response = await client.post("/api/items", json=_item_payload())
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_employee_can_browse_items(self, auth_client, make_item):
        client, _ = auth_client
        item = await make_item(name="Hammer")

        listing = await client.get("/api/items")
        detail = await client.get(f"/api/items/{item.id}")

        assert listing.status_code == status.HTTP_200_OK
        assert listing.json()["total"] == 1
        assert detail.json()["name"] == "Hammer"

    async def test_list_requires_authentication(self, client):
        response = await client.get("/api/items")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_search_and_sort(self, auth_client, make_item):
        client, _ = auth_client
        await make_item(name="Drill", category="Tools", quantity=3)
        await make_item(name="Gloves", category="PPE", quantity=50)
        await make_item(name="Goggles", category="PPE", quantity=8)

        response = await client.get(
            "/api/items", params={"search_term": "ppe", "sort_by": "quantity", "sort_order": "desc"}
        )

        assert [i["name"] for i in response.json()["items"]] == ["Gloves", "Goggles"]

    async def test_get_missing_item_is_404(self, auth_client):
        client, _ = auth_client
        response = await client.get(f"/api/items/{uuid.uuid4()}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_update_item(self, manager_client, make_item, session):
        client, _ = manager_client
        item = await make_item(name="Old Name", quantity=7)

        response = await client.put(f"/api/items/{item.id}", json={"name": "New Name", "quantity": 999})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "New Name"
        # Stock is not editable through updates
        assert response.json()["quantity"] == 7

        result = await session.execute(select(AuditLog).where(AuditLog.action == AuditAction.UPDATE))
        assert result.scalar_one().diff["name"] == {"from": "Old Name", "to": "New Name"}

    async def test_delete_item(self, manager_client, make_item, session):
        client, _ = manager_client
        item = await make_item()
        item_id = item.id

        response = await client.delete(f"/api/items/{item_id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert await session.get(Item, item_id) is None

    async def test_delete_item_with_movements_is_409(self, manager_client, make_item, session):
        client, manager = manager_client
        item = await make_item()
        session.add(Movement(item=item, user=manager, type=MovementType.CHECKIN, quantity=1))
        await session.flush()

        response = await client.delete(f"/api/items/{item.id}")

        assert response.status_code == status.HTTP_409_CONFLICT
