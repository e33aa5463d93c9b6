"""API tests for the access endpoints"""
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from main import app
from src.infrastructure.persistence.database import get_db
from src.presentation.api.dependencies import set_access_control_service

BASE = "/api/v1/access"


@pytest.fixture
async def client(access_control):
    set_access_control_service(access_control)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    set_access_control_service(None)


def as_user(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


class TestIdentity:
    async def test_missing_identity_is_unauthorized(self, client):
        response = await client.get(f"{BASE}/me/capabilities")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_blank_identity_is_unauthorized(self, client):
        response = await client.get(f"{BASE}/me/navigation", headers=as_user("   "))

        assert response.status_code == 401


class TestMyAccess:
    async def test_capabilities_sorted(self, client):
        response = await client.get(f"{BASE}/me/capabilities", headers=as_user("admin-user"))

        assert response.status_code == 200
        assert response.json() == {
            "user_id": "admin-user",
            "capabilities": ["ADMIN_ACCESS", "USER_VIEW"],
        }

    async def test_unknown_user_gets_empty_capabilities(self, client):
        response = await client.get(f"{BASE}/me/capabilities", headers=as_user("ghost"))

        assert response.status_code == 200
        assert response.json()["capabilities"] == []

    async def test_viewer_navigation_is_pruned(self, client):
        response = await client.get(f"{BASE}/me/navigation", headers=as_user("viewer-user"))

        assert response.status_code == 200
        items = response.json()["items"]
        assert [item["id"] for item in items] == ["nav-dashboard", "nav-documents"]
        assert items[1]["children"] == []

    async def test_admin_navigation_is_complete(self, client):
        response = await client.get(f"{BASE}/me/navigation", headers=as_user("admin-user"))

        items = response.json()["items"]
        assert [item["id"] for item in items] == ["nav-dashboard", "nav-documents", "nav-admin"]
        assert [child["id"] for child in items[2]["children"]] == [
            "nav-admin-users",
            "nav-admin-roles",
        ]

    async def test_routes_carry_access_flags(self, client):
        response = await client.get(f"{BASE}/me/routes", headers=as_user("viewer-user"))

        flags = {item["id"]: item["is_accessible"] for item in response.json()}
        assert flags["route-dashboard"] is True
        assert flags["route-document-detail"] is True
        assert flags["route-document-edit"] is False
        assert flags["route-admin"] is False

    async def test_apis_include_method(self, client):
        response = await client.get(f"{BASE}/me/apis", headers=as_user("editor-user"))

        by_id = {item["id"]: item for item in response.json()}
        assert by_id["api-documents-create"]["method"] == "POST"
        assert by_id["api-documents-create"]["is_accessible"] is True


class TestChecks:
    @pytest.mark.parametrize(
        "user_id,path,allowed",
        [
            ("viewer-user", "/documents/42", True),
            ("viewer-user", "/documents/42/edit", False),
            ("editor-user", "/documents/42/edit", True),
            ("viewer-user", "/not-registered", False),
            ("admin-user", "/admin/users", True),
        ],
    )
    async def test_check_route(self, client, user_id, path, allowed):
        response = await client.post(
            f"{BASE}/check/route", json={"path": path}, headers=as_user(user_id)
        )

        assert response.status_code == 200
        assert response.json() == {"allowed": allowed}

    async def test_check_api_uses_method(self, client):
        headers = as_user("viewer-user")

        get = await client.post(f"{BASE}/check/api", json={"path": "/api/documents"}, headers=headers)
        post = await client.post(
            f"{BASE}/check/api",
            json={"path": "/api/documents", "method": "POST"},
            headers=headers,
        )

        assert get.json()["allowed"] is True
        assert post.json()["allowed"] is False

    async def test_route_requirement(self, client):
        response = await client.get(
            f"{BASE}/routes/requirement",
            params={"path": "/documents/42"},
            headers=as_user("no-role-user"),
        )

        assert response.status_code == 200
        assert response.json() == {
            "path": "/documents/:id",
            "resource_id": "route-document-detail",
            "required_capability": "DOCUMENT_VIEW",
            "is_protected": True,
        }

    async def test_route_requirement_unregistered(self, client):
        response = await client.get(
            f"{BASE}/routes/requirement", params={"path": "/reports"}, headers=as_user("viewer-user")
        )

        assert response.status_code == 404

    async def test_check_capabilities_any_and_all(self, client):
        payload = {"capabilities": ["DOCUMENT_VIEW", "DOCUMENT_EDIT"]}
        headers = as_user("viewer-user")

        any_mode = await client.post(
            f"{BASE}/check/capabilities", json={**payload, "mode": "any"}, headers=headers
        )
        all_mode = await client.post(
            f"{BASE}/check/capabilities", json={**payload, "mode": "all"}, headers=headers
        )

        assert any_mode.json()["allowed"] is True
        assert all_mode.json()["allowed"] is False
        assert all_mode.json()["results"] == {"DOCUMENT_VIEW": True, "DOCUMENT_EDIT": False}

    async def test_check_capabilities_rejects_empty_list(self, client):
        response = await client.post(
            f"{BASE}/check/capabilities",
            json={"capabilities": []},
            headers=as_user("viewer-user"),
        )

        assert response.status_code == 422


class TestCacheInvalidation:
    async def test_requires_admin_access(self, client):
        response = await client.post(
            f"{BASE}/cache/invalidate", json={"scope": "all"}, headers=as_user("viewer-user")
        )

        assert response.status_code == 403
        assert response.json() == {"detail": "Access denied"}

    async def test_user_scope_requires_user_id(self, client):
        response = await client.post(
            f"{BASE}/cache/invalidate", json={"scope": "user"}, headers=as_user("admin-user")
        )

        assert response.status_code == 400

    async def test_user_scope_drops_cached_capabilities(self, client, store):
        headers = as_user("admin-user")
        await client.get(f"{BASE}/me/capabilities", headers=as_user("viewer-user"))
        store.grant("viewer", "DOCUMENT_EDIT")

        response = await client.post(
            f"{BASE}/cache/invalidate",
            json={"scope": "user", "user_id": "viewer-user"},
            headers=headers,
        )
        refreshed = await client.get(f"{BASE}/me/capabilities", headers=as_user("viewer-user"))

        assert response.status_code == 200
        assert response.json()["user_id"] == "viewer-user"
        assert "DOCUMENT_EDIT" in refreshed.json()["capabilities"]

    async def test_resources_scope(self, client):
        response = await client.post(
            f"{BASE}/cache/invalidate", json={"scope": "resources"}, headers=as_user("admin-user")
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Access cache invalidated",
            "scope": "resources",
            "user_id": None,
        }


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


class TestHealth:
    @pytest.fixture
    def db_session(self):
        session = AsyncMock()

        async def override():
            yield session

        app.dependency_overrides[get_db] = override
        yield session
        app.dependency_overrides.pop(get_db, None)

    async def test_healthy_reports_unknown_capabilities(self, client, store, db_session):
        store.capabilities.discard("ROLE_MANAGE")
        await client.get(f"{BASE}/me/navigation", headers=as_user("viewer-user"))

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["checks"]["database"] is True
        assert body["checks"]["unknown_capabilities"] == ["ROLE_MANAGE"]

    async def test_database_down_is_unhealthy(self, client, db_session):
        db_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("gone"))

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
