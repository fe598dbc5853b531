"""Tests for the RBAC administration API."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from accessnav.core.rbac import AssignmentStore, PermissionResolver, RoleRegistry
from accessnav.db.base import utcnow
from accessnav.db.models import LegacyRole, Role, UserRole

from tests.factories import assign, create_role, create_user


def holder(db_session, role_name, **kwargs):
    """Create a user holding the seeded system role ``role_name``."""
    user = create_user(db_session, **kwargs)
    assign(db_session, user, RoleRegistry(db_session).get_role_by_name(role_name))
    return user


@pytest.fixture
def super_admin(db_session, seeded):
    return holder(db_session, "super_admin")


@pytest.fixture
def admin(db_session, seeded):
    return holder(db_session, "admin")


class TestInitialize:

    def test_legacy_admin_can_initialize(self, client, db_session, auth_headers):
        user = create_user(db_session, role=LegacyRole.ADMIN)

        response = client.post("/api/rbac/initialize", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "RBAC system initialized successfully"
        assert body["data"]["status"] == "initialized"
        assert body["data"]["roles"] == 6
        assert db_session.query(Role).count() == 6

    def test_rerun_is_harmless(self, client, super_admin, db_session, auth_headers):
        before = db_session.query(Role).count()

        response = client.post("/api/rbac/initialize", headers=auth_headers(super_admin))

        assert response.status_code == 200
        assert db_session.query(Role).count() == before

    def test_regular_user_denied(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "guide")

        response = client.post("/api/rbac/initialize", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ROLE_DENIED"

    def test_requires_authentication(self, client):
        response = client.post("/api/rbac/initialize")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


class TestRoles:

    def test_list_roles(self, client, admin, auth_headers):
        response = client.get("/api/rbac/roles", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Roles retrieved successfully"
        data = body["data"]
        assert data["total"] == 6
        assert data["page"] == 1
        assert data["per_page"] == 10
        assert data["pages"] == 1
        names = {r["name"] for r in data["items"]}
        assert names == {"super_admin", "admin", "guide", "moderator", "tourist", "user"}

    def test_list_roles_search_and_paging(self, client, admin, auth_headers):
        response = client.get(
            "/api/rbac/roles",
            params={"search": "admin", "per_page": 1, "page": 2},
            headers=auth_headers(admin),
        )

        data = response.json()["data"]
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    def test_list_roles_page_size_capped(self, client, admin, auth_headers):
        response = client.get(
            "/api/rbac/roles", params={"per_page": 1000}, headers=auth_headers(admin)
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_list_roles_denied_without_role_read(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "tourist")

        response = client.get("/api/rbac/roles", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.json()["error"]["required_permission"] == "role.read"

    def test_get_role(self, client, admin, db_session, auth_headers):
        guide = RoleRegistry(db_session).get_role_by_name("guide")

        response = client.get(f"/api/rbac/roles/{guide.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        role = response.json()["data"]["role"]
        assert role["name"] == "guide"
        assert role["is_system"] is True
        assert "route.create" in [p["name"] for p in role["permissions"]]

    def test_get_missing_role(self, client, admin, auth_headers):
        response = client.get(f"/api/rbac/roles/{uuid.uuid4()}", headers=auth_headers(admin))

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "NotFoundError"

    def test_create_role(self, client, super_admin, db_session, auth_headers):
        response = client.post(
            "/api/rbac/roles",
            json={
                "name": "night_guide",
                "display_name": "Night Guide",
                "description": "Evening tours",
                "permissions": ["route.read", "voice_guide.read"],
            },
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 201
        role = response.json()["data"]["role"]
        assert role["is_system"] is False
        assert [p["name"] for p in role["permissions"]] == ["route.read", "voice_guide.read"]
        assert RoleRegistry(db_session).get_role_by_name("night_guide") is not None

    def test_create_role_duplicate(self, client, super_admin, auth_headers):
        response = client.post(
            "/api/rbac/roles",
            json={"name": "guide", "display_name": "Guide"},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Role with this name already exists"

    def test_create_role_unknown_permission(self, client, super_admin, auth_headers):
        response = client.post(
            "/api/rbac/roles",
            json={"name": "pilot", "display_name": "Pilot", "permissions": ["plane.fly"]},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 404
        assert response.json()["error"]["permissions"] == ["plane.fly"]

    def test_create_role_bad_name(self, client, super_admin, auth_headers):
        response = client.post(
            "/api/rbac/roles",
            json={"name": "Night Guide", "display_name": "Night Guide"},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 422

    def test_create_role_needs_permission(self, client, admin, auth_headers):
        response = client.post(
            "/api/rbac/roles",
            json={"name": "night_guide", "display_name": "Night Guide"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["error"]["required_permission"] == "role.create"

    def test_update_role(self, client, super_admin, db_session, auth_headers):
        role = create_role(db_session, name="reviewer", permissions=["route.read", "message.read"])

        response = client.put(
            f"/api/rbac/roles/{role.id}",
            json={"display_name": "Content Reviewer", "permissions": ["message.read"]},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        data = response.json()["data"]["role"]
        assert data["display_name"] == "Content Reviewer"
        assert [p["name"] for p in data["permissions"]] == ["message.read"]

    def test_update_system_role_rejected(self, client, super_admin, db_session, auth_headers):
        moderator = RoleRegistry(db_session).get_role_by_name("moderator")

        response = client.put(
            f"/api/rbac/roles/{moderator.id}",
            json={"permissions": ["message.read"]},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot modify system roles"
        assert "route.read" in RoleRegistry(db_session).get_role_by_name("moderator").permission_names

    def test_delete_role(self, client, super_admin, db_session, auth_headers):
        role = create_role(db_session, name="temporary")
        role_id = role.id

        response = client.delete(f"/api/rbac/roles/{role_id}", headers=auth_headers(super_admin))

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Role deleted successfully",
            "data": None,
        }
        assert db_session.get(Role, role_id) is None

    def test_delete_role_in_use(self, client, super_admin, db_session, auth_headers):
        role = create_role(db_session, name="temporary")
        assign(db_session, create_user(db_session), role)

        response = client.delete(f"/api/rbac/roles/{role.id}", headers=auth_headers(super_admin))

        assert response.status_code == 409
        assert response.json()["message"] == "Cannot delete role: 1 users are assigned to this role"

    def test_delete_system_role(self, client, super_admin, db_session, auth_headers):
        guide = RoleRegistry(db_session).get_role_by_name("guide")

        response = client.delete(f"/api/rbac/roles/{guide.id}", headers=auth_headers(super_admin))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_OPERATION"


class TestPermissions:

    def test_list_permissions(self, client, admin, auth_headers):
        response = client.get(
            "/api/rbac/permissions", params={"per_page": 100}, headers=auth_headers(admin)
        )

        data = response.json()["data"]
        assert data["total"] == 33
        keys = [(p["resource"], p["action"]) for p in data["items"]]
        assert keys == sorted(keys)

    def test_list_permissions_filtered(self, client, admin, auth_headers):
        response = client.get(
            "/api/rbac/permissions", params={"resource": "roles"}, headers=auth_headers(admin)
        )

        names = [p["name"] for p in response.json()["data"]["items"]]
        assert names == ["role.assign", "role.create", "role.delete", "role.read", "role.update"]

    def test_create_permission(self, client, super_admin, auth_headers):
        response = client.post(
            "/api/rbac/permissions",
            json={
                "name": "report.export",
                "display_name": "Export Reports",
                "resource": "reports",
                "action": "export",
            },
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 201
        permission = response.json()["data"]["permission"]
        assert permission["name"] == "report.export"
        assert permission["is_active"] is True

    def test_create_permission_requires_admin_permission(self, client, admin, auth_headers):
        response = client.post(
            "/api/rbac/permissions",
            json={
                "name": "report.export",
                "display_name": "Export Reports",
                "resource": "reports",
                "action": "export",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["error"]["required_permission"] == "system.admin"

    def test_deactivate_permission(self, client, super_admin, db_session, auth_headers):
        guide_user = holder(db_session, "guide")
        assert PermissionResolver(db_session).has_permission(guide_user.id, "route.delete")

        response = client.patch(
            "/api/rbac/permissions/route.delete",
            json={"is_active": False},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["permission"]["is_active"] is False
        assert PermissionResolver(db_session).has_permission(guide_user.id, "route.delete") is False

    def test_deactivate_unknown_permission(self, client, super_admin, auth_headers):
        response = client.patch(
            "/api/rbac/permissions/plane.fly",
            json={"is_active": False},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 404


class TestAssignments:

    def test_assign_role(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)
        expires = (utcnow() + timedelta(days=30)).isoformat()

        response = client.post(
            "/api/rbac/assign-role",
            json={"user_id": str(user.id), "role_name": "guide", "expires_at": expires},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Role assigned to user successfully"
        user_role = body["data"]["user_role"]
        assert user_role["user_id"] == str(user.id)
        assert user_role["assigned_by"] == str(admin.id)
        assert user_role["is_active"] is True
        assert PermissionResolver(db_session).has_permission(user.id, "route.create")

    def test_assign_twice(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)
        payload = {"user_id": str(user.id), "role_name": "guide"}

        client.post("/api/rbac/assign-role", json=payload, headers=auth_headers(admin))
        response = client.post("/api/rbac/assign-role", json=payload, headers=auth_headers(admin))

        assert response.status_code == 409
        assert response.json()["message"] == "User already has this role"

    def test_assign_unknown_role(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)

        response = client.post(
            "/api/rbac/assign-role",
            json={"user_id": str(user.id), "role_name": "pirate"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Role not found or inactive"

    def test_assign_with_offset_expiry(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)
        plus_five = timezone(timedelta(hours=5))
        expired = (datetime.now(plus_five) - timedelta(hours=1)).isoformat()

        response = client.post(
            "/api/rbac/assign-role",
            json={"user_id": str(user.id), "role_name": "guide", "expires_at": expired},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        stored = datetime.fromisoformat(response.json()["data"]["user_role"]["expires_at"])
        assert stored < utcnow()
        assert PermissionResolver(db_session).has_permission(user.id, "route.create") is False

    def test_assign_unknown_user(self, client, admin, db_session, auth_headers):
        response = client.post(
            "/api/rbac/assign-role",
            json={"user_id": str(uuid.uuid4()), "role_name": "guide"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        body = response.json()
        assert body["message"] == "User not found"
        assert body["error"]["type"] == "NotFoundError"
        assert db_session.query(UserRole).count() == 1

    def test_assign_needs_role_assign(self, client, db_session, auth_headers, seeded):
        moderator = holder(db_session, "moderator")
        user = create_user(db_session)

        response = client.post(
            "/api/rbac/assign-role",
            json={"user_id": str(user.id), "role_name": "guide"},
            headers=auth_headers(moderator),
        )

        assert response.status_code == 403

    def test_remove_and_reassign(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)
        payload = {"user_id": str(user.id), "role_name": "guide"}
        first = client.post("/api/rbac/assign-role", json=payload, headers=auth_headers(admin))

        removed = client.post("/api/rbac/remove-role", json=payload, headers=auth_headers(admin))
        assert removed.status_code == 200
        assert removed.json()["message"] == "Role removed from user successfully"
        assert PermissionResolver(db_session).has_permission(user.id, "route.create") is False

        again = client.post("/api/rbac/assign-role", json=payload, headers=auth_headers(admin))
        assert again.json()["data"]["user_role"]["id"] == first.json()["data"]["user_role"]["id"]
        assert db_session.query(UserRole).filter(UserRole.user_id == user.id).count() == 1

    def test_remove_not_held(self, client, admin, db_session, auth_headers):
        user = create_user(db_session)

        response = client.post(
            "/api/rbac/remove-role",
            json={"user_id": str(user.id), "role_name": "guide"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "User does not have this role"


class TestUserQueries:

    def test_user_roles_for_self(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "tourist")
        AssignmentStore(db_session).assign_role(user.id, "user")

        response = client.get(f"/api/rbac/users/{user.id}/roles", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_id"] == str(user.id)
        assert {r["role_name"] for r in data["roles"]} == {"tourist", "user"}
        assert {r["role_display_name"] for r in data["roles"]} == {"Tourist", "Regular User"}

    def test_user_roles_for_other_needs_user_read(self, client, db_session, auth_headers, seeded):
        tourist = holder(db_session, "tourist")
        other = holder(db_session, "user")
        moderator = holder(db_session, "moderator")

        denied = client.get(f"/api/rbac/users/{other.id}/roles", headers=auth_headers(tourist))
        allowed = client.get(f"/api/rbac/users/{other.id}/roles", headers=auth_headers(moderator))

        assert denied.status_code == 403
        assert denied.json()["error"]["required_permission"] == "user.read"
        assert allowed.status_code == 200

    def test_expired_role_not_listed(self, client, db_session, auth_headers, seeded):
        user = create_user(db_session)
        registry = RoleRegistry(db_session)
        assign(db_session, user, registry.get_role_by_name("guide"),
               expires_at=utcnow() - timedelta(hours=1))
        assign(db_session, user, registry.get_role_by_name("user"))

        response = client.get(f"/api/rbac/users/{user.id}/roles", headers=auth_headers(user))

        assert [r["role_name"] for r in response.json()["data"]["roles"]] == ["user"]

    def test_user_permissions(self, client, admin, db_session, auth_headers):
        user = holder(db_session, "user")

        response = client.get(f"/api/rbac/user-permissions/{user.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["data"] == {
            "user_id": str(user.id),
            "permissions": ["message.read", "route.read", "voice_guide.read"],
        }

    def test_check_permission(self, client, admin, db_session, auth_headers):
        user = holder(db_session, "guide")

        granted = client.post(
            "/api/rbac/check-permission",
            json={"user_id": str(user.id), "permission": "route.create"},
            headers=auth_headers(admin),
        )
        refused = client.post(
            "/api/rbac/check-permission",
            json={"user_id": str(user.id), "permission": "user.delete"},
            headers=auth_headers(admin),
        )

        assert granted.json()["message"] == "Permission check completed"
        assert granted.json()["data"]["has_permission"] is True
        assert refused.json()["data"]["has_permission"] is False

    def test_check_own_permission(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "tourist")

        response = client.post(
            "/api/rbac/check-permission",
            json={"user_id": str(user.id), "permission": "tourist.create"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["has_permission"] is True

    def test_check_other_user_denied(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "tourist")
        other = create_user(db_session)

        response = client.post(
            "/api/rbac/check-permission",
            json={"user_id": str(other.id), "permission": "route.read"},
            headers=auth_headers(user),
        )

        assert response.status_code == 403

    def test_my_permissions(self, client, db_session, auth_headers, seeded):
        user = holder(db_session, "user")

        response = client.get("/api/rbac/me/permissions", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["data"]["permissions"] == [
            "message.read", "route.read", "voice_guide.read",
        ]

    def test_legacy_admin_without_assignments_has_no_permissions(
        self, client, db_session, auth_headers, seeded
    ):
        user = create_user(db_session, role=LegacyRole.ADMIN)

        assert client.get("/api/rbac/me/permissions", headers=auth_headers(user)).json()[
            "data"
        ]["permissions"] == []
        assert client.get("/api/rbac/roles", headers=auth_headers(user)).status_code == 403
