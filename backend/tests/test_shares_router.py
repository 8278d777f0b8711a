"""Tests for the share API endpoints.

This module exercises the HTTP layer: status codes, JSON bodies, error
mapping and that a request's changes are committed only when it succeeds.
"""

import time

import pytest
import pytest_asyncio
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select

from passwords.encryption import CSE_ENCRYPTION_V1R1, SSE_ENCRYPTION_V1R1, SSE_ENCRYPTION_V1R2
from passwords.host.base import SHAREAPI_ALLOW_USER_ENUMERATION, SHAREAPI_ENABLED
from passwords.models import Password, PasswordRevision, Share

BASE = "/api/1.0/share"


async def share_count(session_maker) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(Share))
        return result.scalar_one()


async def create_share(client: AsyncClient, headers: dict, **payload):
    return await client.post(f"{BASE}/create", json=payload, headers=headers)


class TestCreateEndpoint:
    """Test cases for POST /create."""

    @pytest.mark.asyncio
    async def test_create_share(
        self, async_client, session_maker, users, make_password, auth_headers
    ) -> None:
        """A legacy password is upgraded, flagged and shared in one request."""
        password = await make_password(sse_type=SSE_ENCRYPTION_V1R1)

        response = await create_share(
            async_client,
            auth_headers("alice"),
            password=password.uuid,
            receiver="bob",
            type="user",
            expires=None,
            editable=True,
            shareable=False,
        )

        assert response.status_code == status.HTTP_201_CREATED
        share_id = response.json()["id"]

        async with session_maker() as session:
            share = await session.get(Share, share_id)
            assert share.receiver == "bob"
            assert share.user_id == "alice"
            assert share.editable is True

            model = await session.get(Password, password.uuid)
            assert model.has_shares is True
            revision = await session.get(PasswordRevision, model.revision)
            assert revision.sse_type == SSE_ENCRYPTION_V1R2

    @pytest.mark.asyncio
    async def test_create_duplicate_returns_420(
        self, async_client, session_maker, users, make_password, auth_headers
    ) -> None:
        password = await make_password()
        headers = auth_headers("alice")
        first = await create_share(
            async_client, headers, password=password.uuid, receiver="bob"
        )
        assert first.status_code == status.HTTP_201_CREATED

        second = await create_share(
            async_client, headers, password=password.uuid, receiver="bob"
        )

        assert second.status_code == 420
        assert second.json() == {
            "status": "error",
            "message": "Password already shared with user",
        }
        assert await share_count(session_maker) == 1

    @pytest.mark.asyncio
    async def test_create_cse_password_returns_420(
        self, async_client, users, make_password, auth_headers
    ) -> None:
        password = await make_password(cse_type=CSE_ENCRYPTION_V1R1)

        response = await create_share(
            async_client, auth_headers("alice"), password=password.uuid, receiver="bob"
        )

        assert response.status_code == 420
        assert response.json()["message"] == "CSE type does not support sharing"

    @pytest.mark.asyncio
    async def test_create_with_past_expiry(
        self, async_client, users, make_password, auth_headers
    ) -> None:
        password = await make_password()

        response = await create_share(
            async_client,
            auth_headers("alice"),
            password=password.uuid,
            receiver="bob",
            expires=int(time.time()) - 60,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid expiration date"

    @pytest.mark.asyncio
    async def test_create_invalid_receiver(
        self, async_client, users, make_password, auth_headers
    ) -> None:
        password = await make_password()

        response = await create_share(
            async_client, auth_headers("alice"), password=password.uuid, receiver="ghost"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Invalid receiver uid"

    @pytest.mark.asyncio
    async def test_create_unknown_password(
        self, async_client, users, auth_headers
    ) -> None:
        response = await create_share(
            async_client, auth_headers("alice"), password="unknown", receiver="bob"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_create_for_password_of_another_user(
        self, async_client, session_maker, users, make_password, auth_headers
    ) -> None:
        """carol cannot share alice's password with bob."""
        password = await make_password(owner="alice")

        response = await create_share(
            async_client, auth_headers("carol"), password=password.uuid, receiver="bob"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"status": "error", "message": "Object not found"}
        assert await share_count(session_maker) == 0

    @pytest.mark.asyncio
    async def test_create_with_out_of_range_expiry(
        self, async_client, session_maker, users, make_password, auth_headers
    ) -> None:
        password = await make_password()

        response = await create_share(
            async_client,
            auth_headers("alice"),
            password=password.uuid,
            receiver="bob",
            expires=10**12,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid expiration date"
        assert await share_count(session_maker) == 0

    @pytest.mark.asyncio
    async def test_create_when_sharing_disabled(
        self, async_client, users, set_policy, make_password, auth_headers
    ) -> None:
        await set_policy(SHAREAPI_ENABLED, "no")
        password = await make_password()

        response = await create_share(
            async_client, auth_headers("alice"), password=password.uuid, receiver="bob"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Sharing disabled"

    @pytest.mark.asyncio
    async def test_create_missing_fields(self, async_client, users, auth_headers) -> None:
        response = await async_client.post(
            f"{BASE}/create", json={"receiver": "bob"}, headers=auth_headers("alice")
        )

        assert response.status_code == 422


class TestUpdateAndDeleteEndpoints:
    """Test cases for /update and /delete."""

    @pytest_asyncio.fixture
    async def share_id(self, async_client, users, make_password, auth_headers) -> str:
        password = await make_password()
        response = await create_share(
            async_client,
            auth_headers("alice"),
            password=password.uuid,
            receiver="bob",
            editable=True,
        )
        return response.json()["id"]

    @pytest.mark.parametrize("method", ["PATCH", "POST"])
    @pytest.mark.asyncio
    async def test_update_by_owner(
        self, async_client, session_maker, share_id, auth_headers, method
    ) -> None:
        expires = int(time.time()) + 3600

        response = await async_client.request(
            method,
            f"{BASE}/update",
            json={"id": share_id, "expires": expires, "editable": False, "shareable": True},
            headers=auth_headers("alice"),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"id": share_id}
        async with session_maker() as session:
            share = await session.get(Share, share_id)
            assert share.editable is False
            assert share.shareable is True
            assert share.source_updated is True
            assert share.expires is not None

    @pytest.mark.asyncio
    async def test_update_by_receiver_is_forbidden(
        self, async_client, session_maker, share_id, auth_headers
    ) -> None:
        """The receiver cannot change a share; it stays unchanged."""
        response = await async_client.patch(
            f"{BASE}/update",
            json={
                "id": share_id,
                "expires": int(time.time()) + 3600,
                "editable": False,
                "shareable": True,
            },
            headers=auth_headers("bob"),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Access denied"
        async with session_maker() as session:
            share = await session.get(Share, share_id)
            assert share.editable is True
            assert share.shareable is False
            assert share.expires is None

    @pytest.mark.asyncio
    async def test_delete_by_owner(
        self, async_client, session_maker, share_id, auth_headers
    ) -> None:
        response = await async_client.request(
            "DELETE", f"{BASE}/delete", json={"id": share_id}, headers=auth_headers("alice")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"id": share_id}
        assert await share_count(session_maker) == 0

    @pytest.mark.asyncio
    async def test_delete_by_receiver_is_forbidden(
        self, async_client, session_maker, share_id, auth_headers
    ) -> None:
        response = await async_client.request(
            "DELETE", f"{BASE}/delete", json={"id": share_id}, headers=auth_headers("bob")
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert await share_count(session_maker) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_share(self, async_client, users, auth_headers) -> None:
        response = await async_client.request(
            "DELETE", f"{BASE}/delete", json={"id": "missing"}, headers=auth_headers("alice")
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestReadEndpoints:
    """Test cases for /info, /partners, /list and /show."""

    @pytest.mark.asyncio
    async def test_info(self, async_client, users, auth_headers) -> None:
        response = await async_client.get(f"{BASE}/info", headers=auth_headers("alice"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"enabled": True, "resharing": True, "types": ["user"]}

    @pytest.mark.asyncio
    async def test_partners_disabled_by_default(
        self, async_client, users, auth_headers
    ) -> None:
        response = await async_client.get(
            f"{BASE}/partners", params={"search": "bob"}, headers=auth_headers("alice")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {}

    @pytest.mark.asyncio
    async def test_partners_search(
        self, async_client, users, set_policy, auth_headers
    ) -> None:
        await set_policy(SHAREAPI_ALLOW_USER_ENUMERATION, "yes")

        response = await async_client.get(
            f"{BASE}/partners", params={"search": "car"}, headers=auth_headers("alice")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"carol": "Carol Danvers"}

    @pytest.mark.asyncio
    async def test_list_and_show(
        self, async_client, users, make_password, auth_headers
    ) -> None:
        password = await make_password()
        created = await create_share(
            async_client, auth_headers("alice"), password=password.uuid, receiver="bob"
        )
        share_id = created.json()["id"]

        listed = await async_client.get(f"{BASE}/list", headers=auth_headers("bob"))
        assert listed.status_code == status.HTTP_200_OK
        assert [share["id"] for share in listed.json()] == [share_id]

        shown = await async_client.get(
            f"{BASE}/show", params={"id": share_id}, headers=auth_headers("alice")
        )
        assert shown.status_code == status.HTTP_200_OK
        data = shown.json()
        assert data["password"] == password.uuid
        assert data["owner"] == {"id": "alice", "name": "Alice Liddell"}
        assert data["receiver"] == {"id": "bob", "name": "Bob Builder"}
        assert data["expires"] is None

    @pytest.mark.asyncio
    async def test_show_to_third_party(
        self, async_client, users, make_password, auth_headers
    ) -> None:
        password = await make_password()
        created = await create_share(
            async_client, auth_headers("alice"), password=password.uuid, receiver="bob"
        )

        response = await async_client.get(
            f"{BASE}/show",
            params={"id": created.json()["id"]},
            headers=auth_headers("carol"),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestAuthentication:
    """Test cases for requests without a valid user."""

    @pytest.mark.asyncio
    async def test_invalid_token(self, async_client, users) -> None:
        response = await async_client.get(
            f"{BASE}/info", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_inactive_user(self, async_client, users, auth_headers) -> None:
        response = await async_client.get(f"{BASE}/info", headers=auth_headers("mallory"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Inactive user"

    @pytest.mark.asyncio
    async def test_unknown_user(self, async_client, users, auth_headers) -> None:
        response = await async_client.get(f"{BASE}/info", headers=auth_headers("ghost"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "User not found"
