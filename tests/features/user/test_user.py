"""Tests for the user feature.
Covers: UserService, profile endpoints, HR user administration, role assignment.
"""

import uuid

from fastapi import status
from sqlalchemy import select

from stockroom.features.user.models import User, UserRole, UserStatus
from stockroom.features.user.schemas import UserRegisterRequest
from stockroom.features.user.service import UserService
from stockroom.shared.audit.audit import AuditAction, AuditLog
from stockroom.shared.pagination.pagination import QueryParams

PASSWORD = "TestPass123"


def _register_payload(**overrides):
    payload = {
        "email": "new.hire@example.com",
        "fullName": "New Hire",
        "password": "NewHire123",
        "costCenter": "CC-100",
    }
    payload.update(overrides)
    return payload


# UserService


class TestUserService:
    async def test_register_user_lowercases_email(self, session):
        data = UserRegisterRequest(email="Upper@Example.com", full_name="Upper", password="Upper1234")

        user = await UserService.register_user(session, data)

        assert user.email == "upper@example.com"
        assert user.role == UserRole.EMPLOYEE
        assert user.status == UserStatus.ACTIVE
        assert user.verify_password("Upper1234")

    async def test_password_is_hashed(self, make_user):
        user = await make_user(password="Secret123")
        assert user.hashed_password != "Secret123"
        assert user.hashed_password.startswith("$argon2")

    async def test_get_users_search(self, session, make_user):
        await make_user(full_name="Alice Smith")
        await make_user(full_name="Bob Jones")

        users, total = await UserService.get_users(session, QueryParams(search_term="alice"))

        assert total == 1
        assert users[0].full_name == "Alice Smith"

    async def test_count_active(self, session, make_user):
        await make_user()
        await make_user()
        await make_user(status=UserStatus.INACTIVE)

        assert await UserService.count_active(session) == 2

    async def test_set_active_clears_lockout(self, make_user, in_days):
        user = await make_user(status=UserStatus.LOCKED, failed_login_attempts=5, locked_until=in_days(1))

        await UserService.set_active(user, True)

        assert user.status == UserStatus.ACTIVE
        assert user.failed_login_attempts == 0
        assert user.locked_until is None


# Profile


class TestProfileEndpoints:
    async def test_get_me(self, auth_client):
        client, user = auth_client

        response = await client.get("/api/users/me")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["role"] == "Employee"
        assert data["isActive"] is True
        assert "hashedPassword" not in data

    async def test_update_me(self, auth_client):
        client, _ = auth_client

        response = await client.put("/api/users/me", json={"fullName": "Updated Name", "costCenter": "CC-7"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["fullName"] == "Updated Name"
        assert response.json()["costCenter"] == "CC-7"

    async def test_update_me_with_taken_email_is_409(self, auth_client, make_user):
        client, _ = auth_client
        await make_user(email="taken@example.com")

        response = await client.put("/api/users/me", json={"email": "taken@example.com"})

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_change_password(self, auth_client):
        client, user = auth_client

        response = await client.post(
            "/api/users/me/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Changed123", "confirmNewPassword": "Changed123"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert user.verify_password("Changed123")

    async def test_change_password_mismatch_is_422(self, auth_client):
        client, _ = auth_client

        response = await client.post(
            "/api/users/me/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Changed123", "confirmNewPassword": "Changed456"},
        )

        assert response.status_code == 422


# Administration


class TestUserAdministration:
    async def test_hr_registers_user(self, hr_client, session):
        client, hr = hr_client

        response = await client.post("/api/users", json=_register_payload())

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "new.hire@example.com"
        assert data["role"] == "Employee"
        assert data["costCenter"] == "CC-100"

        result = await session.execute(select(AuditLog).where(AuditLog.action == AuditAction.CREATE))
        entry = result.scalar_one()
        assert entry.entity_type == "users"
        assert entry.user_id == str(hr.id)
        assert "hashed_password" not in entry.after

    async def test_duplicate_email_is_409(self, hr_client, make_user):
        client, _ = hr_client
        await make_user(email="new.hire@example.com")

        response = await client.post("/api/users", json=_register_payload())

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_weak_password_is_422(self, hr_client):
        client, _ = hr_client
        response = await client.post("/api/users", json=_register_payload(password="weakpassword"))
        assert response.status_code == 422

    async def test_employee_cannot_register_users(self, auth_client):
        client, _ = auth_client
        response = await client.post("/api/users", json=_register_payload())
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_admin_has_no_user_management(self, admin_client):
        client, _ = admin_client
        response = await client.get("/api/users")
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_list_users_paginated(self, hr_client, make_user):
        client, _ = hr_client
        for i in range(3):
            await make_user(full_name=f"Worker {i}")

        response = await client.get("/api/users", params={"page": 1, "page_size": 2, "sort_by": "fullName"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 4
        assert len(data["items"]) == 2
        assert data["pageSize"] == 2

    async def test_get_user_not_found(self, hr_client):
        client, _ = hr_client
        response = await client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_deactivate_and_activate(self, hr_client, make_user):
        client, _ = hr_client
        target = await make_user()

        response = await client.post(f"/api/users/{target.id}/deactivate")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "inactive"

        response = await client.post(f"/api/users/{target.id}/activate")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["isActive"] is True

    async def test_cannot_deactivate_own_account(self, hr_client):
        client, hr = hr_client
        response = await client.post(f"/api/users/{hr.id}/deactivate")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert hr.status == UserStatus.ACTIVE


class TestRoleAssignment:
    async def test_admin_assigns_role(self, admin_client, session, make_user):
        client, _ = admin_client
        target = await make_user()

        response = await client.put(f"/api/users/{target.id}/role", json={"role": "WarehouseManager"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role"] == "WarehouseManager"

        result = await session.execute(select(AuditLog).where(AuditLog.entity_id == str(target.id)))
        entry = result.scalar_one()
        assert entry.diff["role"] == {"from": "Employee", "to": "WarehouseManager"}

    async def test_hr_cannot_assign_roles(self, hr_client, make_user):
        client, _ = hr_client
        target = await make_user()

        response = await client.put(f"/api/users/{target.id}/role", json={"role": "Admin"})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert target.role == UserRole.EMPLOYEE

    async def test_unknown_role_is_422(self, admin_client, make_user):
        client, _ = admin_client
        target = await make_user()
        response = await client.put(f"/api/users/{target.id}/role", json={"role": "Superuser"})
        assert response.status_code == 422


async def test_users_table_starts_empty(session):
    result = await session.execute(select(User))
    assert result.scalars().all() == []
