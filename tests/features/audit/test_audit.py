"""Tests for the audit logging system.
Tests audit helpers, actor context and the audit log endpoint.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

from fastapi import status
from sqlalchemy import select

from stockroom.features.user.models import UserRole
from stockroom.shared.audit.audit import (
    AuditAction,
    AuditLog,
    clear_current_user,
    compute_diff,
    create_audit_log,
    get_current_user,
    serialize_model,
    set_current_user,
)


class TestComputeDiff:
    """Tests for the compute_diff helper function."""

    def test_diff_with_changed_fields(self):
        before = {"name": "Old Name", "quantity": 10, "location": "A1"}
        after = {"name": "New Name", "quantity": 10, "location": "B2"}

        diff = compute_diff(before, after)

        assert diff == {
            "name": {"from": "Old Name", "to": "New Name"},
            "location": {"from": "A1", "to": "B2"},
        }

    def test_diff_with_no_changes(self):
        assert compute_diff({"name": "Name"}, {"name": "Name"}) is None

    def test_diff_with_added_and_removed_fields(self):
        diff = compute_diff({"sku": "A-1"}, {"cost": 100})

        assert diff["sku"] == {"from": "A-1", "to": None}
        assert diff["cost"] == {"from": None, "to": 100}

    def test_diff_converts_values_to_json(self):
        before = {"expiry_date": datetime(2024, 1, 1, tzinfo=UTC), "cost": Decimal("1.50")}
        after = {"expiry_date": datetime(2024, 1, 2, tzinfo=UTC), "cost": Decimal("2.00")}

        diff = compute_diff(before, after)

        assert diff["expiry_date"] == {"from": "2024-01-01T00:00:00+00:00", "to": "2024-01-02T00:00:00+00:00"}
        assert diff["cost"] == {"from": "1.50", "to": "2.00"}


class TestSerializeModel:
    """Tests for the serialize_model helper function."""

    def test_serialize_none(self):
        assert serialize_model(None) is None

    async def test_serialize_user_model_redacts_password(self, make_user):
        user = await make_user(email="test@example.com", role=UserRole.HR)

        serialized = serialize_model(user)

        assert serialized["email"] == "test@example.com"
        assert serialized["id"] == str(user.id)
        assert serialized["role"] == "HR"
        assert "hashed_password" not in serialized

    async def test_serialize_item_model(self, make_item):
        item = await make_item(sku="HLM-1", cost=Decimal("3.20"))

        serialized = serialize_model(item)

        assert serialized["sku"] == "HLM-1"
        assert serialized["cost"] == "3.20"
        assert isinstance(serialized["created_at"], str)


class TestCreateAuditLog:
    async def test_actor_defaults_to_context_user(self, session):
        set_current_user(SimpleNamespace(id="actor-1"))

        entry = await create_audit_log(session, "items", "item-1", AuditAction.DELETE, before={"sku": "A"})

        assert entry.user_id == "actor-1"
        assert entry.entity_id == "item-1"
        assert entry.diff is None

    async def test_explicit_actor_wins(self, session):
        set_current_user(SimpleNamespace(id="actor-1"))
        entry = await create_audit_log(session, "users", "u-1", AuditAction.LOGIN_SUCCESS, user_id="u-1")
        assert entry.user_id == "u-1"

    async def test_diff_only_for_updates(self, session):
        before, after = {"name": "A"}, {"name": "B"}

        update = await create_audit_log(session, "items", "1", AuditAction.UPDATE, before, after)
        create = await create_audit_log(session, "items", "1", AuditAction.CREATE, before, after)

        assert update.diff == {"name": {"from": "A", "to": "B"}}
        assert create.diff is None

    async def test_entry_is_persisted_with_the_session(self, session):
        await create_audit_log(session, "reports", "overdue-returns", AuditAction.VIEW_REPORT, details="x")
        await session.flush()

        result = await session.execute(select(AuditLog))
        entry = result.scalar_one()
        assert entry.action == AuditAction.VIEW_REPORT
        assert entry.timestamp.tzinfo is not None


class TestUserContext:
    """Tests for user context management."""

    def test_set_get_and_clear(self):
        assert get_current_user() is None

        user = SimpleNamespace(id=123)
        set_current_user(user)
        assert get_current_user() is user

        clear_current_user()
        assert get_current_user() is None

    async def test_unauthenticated_request_has_no_actor(self, client, session):
        # Simulates an actor left over from earlier work in the same context
        set_current_user(SimpleNamespace(id="stale"))

        response = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "Nope1234"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        result = await session.execute(select(AuditLog).where(AuditLog.action == AuditAction.LOGIN_FAILURE))
        assert result.scalar_one().user_id is None


class TestAuditLogEndpoint:
    async def _seed(self, session):
        now = datetime.now(UTC)
        session.add_all(
            [
                AuditLog(entity_type="items", entity_id="1", action=AuditAction.CREATE, user_id="a", timestamp=now),
                AuditLog(
                    entity_type="items",
                    entity_id="1",
                    action=AuditAction.UPDATE,
                    user_id="b",
                    timestamp=now + timedelta(seconds=1),
                ),
                AuditLog(
                    entity_type="users",
                    entity_id="2",
                    action=AuditAction.LOGIN_SUCCESS,
                    user_id="b",
                    timestamp=now + timedelta(seconds=2),
                ),
            ]
        )
        await session.flush()

    async def test_lists_newest_first(self, hr_client, session):
        client, _ = hr_client
        await self._seed(session)

        response = await client.get("/api/audit-logs")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 3
        assert [e["action"] for e in data["items"]] == ["LOGIN_SUCCESS", "UPDATE", "CREATE"]

    async def test_filters(self, hr_client, session):
        client, _ = hr_client
        await self._seed(session)

        by_entity = await client.get("/api/audit-logs", params={"entity_type": "items"})
        by_action = await client.get("/api/audit-logs", params={"action": "CREATE"})
        by_user = await client.get("/api/audit-logs", params={"user_id": "b"})

        assert by_entity.json()["total"] == 2
        assert by_action.json()["items"][0]["entityType"] == "items"
        assert by_user.json()["total"] == 2

    async def test_pagination(self, hr_client, session):
        client, _ = hr_client
        await self._seed(session)

        response = await client.get("/api/audit-logs", params={"page": 2, "page_size": 2})

        data = response.json()
        assert data["total"] == 3
        assert [e["action"] for e in data["items"]] == ["CREATE"]

    async def test_warehouse_manager_cannot_read_audit_log(self, manager_client):
        client, _ = manager_client
        response = await client.get("/api/audit-logs")
        assert response.status_code == status.HTTP_403_FORBIDDEN
