"""Integration tests for user administration endpoints."""

import uuid

import pytest

from library_api.models.user import UserRole
from library_api.services.token_blacklist import TokenBlacklistService, fingerprint
from tests.conftest import TEST_PASSWORD

USERS = "/api/v1/users"


class TestAccess:
    @pytest.mark.asyncio
    async def test_regular_user_forbidden(self, async_client, regular_user, user_headers):
        response = await async_client.get(USERS, headers=user_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied. Insufficient permissions."

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, async_client):
        async_client.cookies.clear()

        response = await async_client.get(USERS)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_super_admin_allowed(self, async_client, user_factory, headers_for):
        super_admin = await user_factory(role=UserRole.SUPER_ADMIN)

        response = await async_client.get(USERS, headers=headers_for(super_admin))

        assert response.status_code == 200


class TestListAndGet:
    @pytest.mark.asyncio
    async def test_list_paginates(self, async_client, admin_user, admin_headers, user_factory):
        for _ in range(3):
            await user_factory()

        response = await async_client.get(USERS, headers=admin_headers, params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["total"] == 4
        assert body["current_page"] == 1
        assert body["total_pages"] == 2

    @pytest.mark.asyncio
    async def test_list_filters_by_role(self, async_client, admin_user, admin_headers, regular_user):
        response = await async_client.get(USERS, headers=admin_headers, params={"role": "user"})

        usernames = [u["username"] for u in response.json()["data"]]
        assert usernames == ["reader"]

    @pytest.mark.asyncio
    async def test_get_user(self, async_client, admin_user, admin_headers, regular_user):
        response = await async_client.get(f"{USERS}/{regular_user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["username"] == "reader"

    @pytest.mark.asyncio
    async def test_get_missing_user(self, async_client, admin_user, admin_headers):
        missing = uuid.uuid4()

        response = await async_client.get(f"{USERS}/{missing}", headers=admin_headers)

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": f"User not found with id of {missing}",
        }

    @pytest.mark.asyncio
    async def test_malformed_id(self, async_client, admin_user, admin_headers):
        response = await async_client.get(f"{USERS}/not-a-uuid", headers=admin_headers)

        assert response.status_code == 400


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_admin(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            USERS,
            headers=admin_headers,
            json={
                "username": "deputy",
                "email": "deputy@example.com",
                "password": TEST_PASSWORD,
                "role": "admin",
            },
        )

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "admin"

        login = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "deputy@example.com", "password": TEST_PASSWORD},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_create_duplicate(self, async_client, admin_user, admin_headers, regular_user):
        response = await async_client.post(
            USERS,
            headers=admin_headers,
            json={"username": "reader", "email": "x@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_create_unknown_role(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            USERS,
            headers=admin_headers,
            json={
                "username": "ghost",
                "email": "ghost@example.com",
                "password": TEST_PASSWORD,
                "role": "librarian",
            },
        )

        assert response.status_code == 400


class TestUpdate:
    @pytest.mark.asyncio
    async def test_promote_user(self, async_client, admin_user, admin_headers, regular_user):
        response = await async_client.put(
            f"{USERS}/{regular_user.id}", headers=admin_headers, json={"role": "admin"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_admin_cannot_change_own_role(self, async_client, admin_user, admin_headers):
        response = await async_client.put(
            f"{USERS}/{admin_user.id}", headers=admin_headers, json={"role": "user"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Cannot change your own role"

    @pytest.mark.asyncio
    async def test_admin_can_update_own_email(self, async_client, admin_user, admin_headers):
        response = await async_client.put(
            f"{USERS}/{admin_user.id}",
            headers=admin_headers,
            json={"email": "Boss@Example.com", "role": "admin"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "boss@example.com"

    @pytest.mark.asyncio
    async def test_super_admin_can_change_own_role(self, async_client, user_factory, headers_for):
        super_admin = await user_factory(role=UserRole.SUPER_ADMIN)

        response = await async_client.put(
            f"{USERS}/{super_admin.id}", headers=headers_for(super_admin), json={"role": "admin"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_reset_password(self, async_client, admin_user, admin_headers, regular_user):
        response = await async_client.put(
            f"{USERS}/{regular_user.id}", headers=admin_headers, json={"password": "Res3t!pass"}
        )
        assert response.status_code == 200

        login = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "reader@example.com", "password": "Res3t!pass"},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_update_missing(self, async_client, admin_user, admin_headers):
        response = await async_client.put(
            f"{USERS}/{uuid.uuid4()}", headers=admin_headers, json={"username": "nobody"}
        )

        assert response.status_code == 404


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_user_invalidates_their_tokens(
        self, async_client, admin_user, admin_headers, regular_user, user_headers
    ):
        response = await async_client.delete(f"{USERS}/{regular_user.id}", headers=admin_headers)

        assert response.status_code == 200
        me = await async_client.get("/api/v1/auth/me", headers=user_headers)
        assert me.status_code == 401
        assert me.json()["error"] == "Access denied. User not found."

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, async_client, admin_user, admin_headers):
        response = await async_client.delete(f"{USERS}/{admin_user.id}", headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Cannot delete your own account"

    @pytest.mark.asyncio
    async def test_delete_missing(self, async_client, admin_user, admin_headers):
        response = await async_client.delete(f"{USERS}/{uuid.uuid4()}", headers=admin_headers)

        assert response.status_code == 404


class TestSessions:
    @pytest.mark.asyncio
    async def test_revoked_tokens_listed_without_raw_token(
        self, async_client, db_session, admin_user, admin_headers, regular_user, token_service
    ):
        token = token_service.issue(regular_user.id, regular_user.role)
        await TokenBlacklistService(db_session).revoke(token, user_id=regular_user.id)

        response = await async_client.get(
            f"{USERS}/{regular_user.id}/revoked-tokens", headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["token_hash"] == fingerprint(token)
        assert body["data"][0]["reason"] == "logout"
        assert token not in response.text

    @pytest.mark.asyncio
    async def test_revoke_sessions(
        self, async_client, admin_user, admin_headers, regular_user, user_headers
    ):
        response = await async_client.post(
            f"{USERS}/{regular_user.id}/revoke-sessions", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["token_version"] == 2
        me = await async_client.get("/api/v1/auth/me", headers=user_headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_revoke_sessions_missing_user(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            f"{USERS}/{uuid.uuid4()}/revoke-sessions", headers=admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_own_token_survives_other_revocation(
        self, async_client, admin_user, admin_headers, regular_user
    ):
        await async_client.post(f"{USERS}/{regular_user.id}/revoke-sessions", headers=admin_headers)

        response = await async_client.get(USERS, headers=admin_headers)

        assert response.status_code == 200
