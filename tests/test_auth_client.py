"""Tests for AuthServiceClient.

The auth service is stubbed with httpx.MockTransport; no network access.

Tests verify:
- Identity resolution from the JSON:API user document
- Token rejection and transport failures map to the right errors
- Scope checks against the resource scopes document
"""

import uuid

import httpx
import pytest

from worktrack.adapters.auth_client import AuthServiceClient
from worktrack.auth import UserContext
from worktrack.errors import AuthServiceError, ForbiddenError, UnauthorizedError

AUTH_URL = "http://auth.test"


def make_client(transport: httpx.MockTransport) -> AuthServiceClient:
    """Create an AuthServiceClient that talks to a mock transport."""
    return AuthServiceClient(auth_url=f"{AUTH_URL}/", timeout_seconds=1.0, transport=transport)


class TestGetIdentity:
    """Tests for AuthServiceClient.get_identity."""

    @pytest.mark.asyncio()
    async def test_resolves_identity(self) -> None:
        """The identity id and username come from the user document."""
        identity_id = uuid.uuid4()
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"data": {"id": str(identity_id), "type": "identities", "attributes": {"username": "jdoe"}}},
            )

        user = await make_client(httpx.MockTransport(handler)).get_identity("token-123")

        assert user.identity_id == identity_id
        assert user.username == "jdoe"
        assert user.token == "token-123"
        assert str(seen[0].url) == f"{AUTH_URL}/api/user"
        assert seen[0].headers["Authorization"] == "Bearer token-123"

    @pytest.mark.asyncio()
    async def test_rejected_token_is_unauthorized(self) -> None:
        """A 401 from the auth service surfaces as UnauthorizedError."""
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"errors": []}))

        with pytest.raises(UnauthorizedError):
            await make_client(transport).get_identity("expired")

    @pytest.mark.asyncio()
    async def test_server_error_is_auth_service_error(self) -> None:
        """An unexpected status surfaces as AuthServiceError (502)."""
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(AuthServiceError) as exc_info:
            await make_client(transport).get_identity("token-123")
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio()
    async def test_malformed_identity_is_auth_service_error(self) -> None:
        """A user document without a UUID id is rejected."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": {"id": "nope"}}))

        with pytest.raises(AuthServiceError):
            await make_client(transport).get_identity("token-123")

    @pytest.mark.asyncio()
    async def test_connection_failure_is_auth_service_error(self) -> None:
        """Transport errors surface as AuthServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthServiceError):
            await make_client(httpx.MockTransport(handler)).get_identity("token-123")


class TestRequireScope:
    """Tests for AuthServiceClient.require_scope."""

    @pytest.mark.asyncio()
    async def test_granted_scope_passes(self, user: UserContext, space_id: uuid.UUID) -> None:
        """A listed scope lets the call return quietly."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"data": [{"id": "view", "type": "user_resource_scope"}, {"id": "contribute"}]},
            )

        await make_client(httpx.MockTransport(handler)).require_scope(user, str(space_id), "contribute")

        assert seen[0].url.path == f"/api/resources/{space_id}/scopes"
        assert seen[0].headers["Authorization"] == f"Bearer {user.token}"

    @pytest.mark.asyncio()
    async def test_missing_scope_is_forbidden(self, user: UserContext, space_id: uuid.UUID) -> None:
        """A scope absent from the document raises ForbiddenError."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [{"id": "view"}]}))

        with pytest.raises(ForbiddenError):
            await make_client(transport).require_scope(user, str(space_id), "contribute")
