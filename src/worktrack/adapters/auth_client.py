"""Auth service REST API client.

Provides async HTTP communication with the external auth service for:
- Resolving a bearer token to the calling identity
- Checking the scopes a caller holds on a resource (a space)

Both endpoints answer JSON:API documents:

    GET /api/user                      -> {"data": {"id": "<uuid>", "attributes": {"username": "..."}}}
    GET /api/resources/{id}/scopes     -> {"data": [{"id": "contribute", "type": "user_resource_scope"}]}

The caller's own token is forwarded on every request. The client uses httpx
for async HTTP and enforces a per-request timeout
(WORKTRACK_AUTH_TIMEOUT_SECONDS).
"""

import logging
import uuid
from typing import Any

import httpx

from worktrack.auth import UserContext
from worktrack.errors import AuthServiceError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

# Default auth service base URL, overridden by WORKTRACK_AUTH_URL
_DEFAULT_AUTH_URL = "http://localhost:8089"

# Default request timeout in seconds
_DEFAULT_TIMEOUT_SECONDS = 5.0


class AuthServiceClient:
    """Async client for the auth service REST API.

    Args:
        auth_url: Auth service base URL.
        timeout_seconds: Timeout applied to every request.
        transport: Optional httpx transport, used to stub the service in tests.
    """

    def __init__(
        self,
        auth_url: str = _DEFAULT_AUTH_URL,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize AuthServiceClient.

        Args:
            auth_url: Auth service base URL (e.g., http://localhost:8089).
            timeout_seconds: Per-request timeout in seconds.
            transport: Optional httpx transport override.
        """
        self._auth_url = auth_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def _get(self, path: str, token: str) -> dict[str, Any]:
        """Send an authenticated GET request and return the decoded body.

        Args:
            path: Path below the auth service base URL.
            token: Bearer token to forward.

        Returns:
            The decoded JSON document.

        Raises:
            UnauthorizedError: If the auth service rejects the token.
            AuthServiceError: On transport failures, timeouts, unexpected
                statuses, or a body that is not a JSON object.
        """
        url = f"{self._auth_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.TimeoutException as exc:
            logger.warning("Auth service request timed out", extra={"url": url})
            raise AuthServiceError(f"auth service request to {path} timed out") from exc
        except httpx.RequestError as exc:
            logger.error("Auth service request failed", extra={"url": url, "error": str(exc)})
            raise AuthServiceError(f"auth service request error: {exc}") from exc

        if response.status_code in (401, 403):
            raise UnauthorizedError("the auth service rejected the bearer token")
        if response.status_code != 200:
            logger.error(
                "Auth service returned unexpected status",
                extra={"url": url, "status_code": response.status_code, "body": response.text[:500]},
            )
            raise AuthServiceError(f"auth service answered {path} with status {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise AuthServiceError(f"auth service answered {path} with a non-JSON body") from exc
        if not isinstance(body, dict):
            raise AuthServiceError(f"auth service answered {path} with an unexpected document")
        return body

    async def get_identity(self, token: str) -> UserContext:
        """Resolve a bearer token to the calling identity.

        Args:
            token: The bearer token the caller presented.

        Returns:
            UserContext for the caller.

        Raises:
            UnauthorizedError: If the token is not accepted.
            AuthServiceError: If the auth service fails or answers a malformed
                identity document.
        """
        body = await self._get("/api/user", token)
        data = body.get("data") or {}
        try:
            identity_id = uuid.UUID(str(data["id"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthServiceError("auth service returned an identity without a valid id") from exc

        attributes = data.get("attributes") or {}
        user = UserContext(
            identity_id=identity_id,
            username=attributes.get("username"),
            token=token,
        )
        logger.debug("Resolved caller identity", extra={"identity_id": str(identity_id)})
        return user

    async def require_scope(self, user: UserContext, resource_id: str, scope: str) -> None:
        """Ensure the caller holds a scope on a resource.

        Args:
            user: The authenticated caller.
            resource_id: The protected resource (a space id).
            scope: Required scope name, e.g. ``contribute``.

        Raises:
            ForbiddenError: If the scope is missing.
            UnauthorizedError: If the token is not accepted.
            AuthServiceError: If the auth service fails.
        """
        body = await self._get(f"/api/resources/{resource_id}/scopes", user.token)
        granted = {entry.get("id") for entry in body.get("data") or [] if isinstance(entry, dict)}
        if scope not in granted:
            logger.info(
                "Scope check denied",
                extra={"identity_id": str(user.identity_id), "resource_id": resource_id, "scope": scope},
            )
            raise ForbiddenError(f"user is not authorized to {scope} in {resource_id}")
